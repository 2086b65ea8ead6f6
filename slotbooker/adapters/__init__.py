"""
Adapters layer - Booking store backends.
"""

from ..config import StoreConfig
from .firestore_store import FirestoreBookingStore
from .json_store import JsonFileBookingStore
from .memory_store import InMemoryBookingStore


def build_store(store_config: StoreConfig, access_token: str | None = None):
    """Create the booking store selected in the configuration."""
    if store_config.backend == "memory":
        return InMemoryBookingStore()
    if store_config.backend == "firestore":
        return FirestoreBookingStore(
            project_id=store_config.project_id,
            api_key=store_config.api_key,
            access_token=access_token,
            collection=store_config.collection,
            timeout=store_config.timeout,
        )
    return JsonFileBookingStore(path=store_config.path, timeout=store_config.timeout)


__all__ = ["FirestoreBookingStore", "InMemoryBookingStore", "JsonFileBookingStore", "build_store"]
