"""
Cloud Firestore booking store using the Firestore REST API.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Set

import requests
from pendulum import Date

from ..domain.exceptions import BookingStoreError
from ..domain.models import Actor, Booking, booking_key

logger = logging.getLogger(__name__)


class FirestoreBookingStore:
    """
    Booking store backed by a Firestore collection.

    One document per booking, named ``YYYY-MM-DD_HH-MM``, so two bookings of
    the same slot land on the same document. New bookings of one commit are
    written in a single ``documents:commit`` call, which Firestore applies
    atomically.

    The blocking HTTP calls run in a worker thread so the store can be
    awaited like the other backends.
    """

    FIRESTORE_API_ENDPOINT = "https://firestore.googleapis.com/v1"

    def __init__(
        self,
        project_id: str,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        collection: str = "bookings",
        timeout: int = 30,
    ):
        """
        Initialize the Firestore store.

        Args:
            project_id: Google Cloud project holding the database
            api_key: Optional web API key (sent as ``key`` query parameter)
            access_token: Optional OAuth bearer token
            collection: Collection holding the booking documents
            timeout: HTTP timeout in seconds
        """
        self.project_id = project_id
        self.collection = collection
        self.timeout = timeout
        self.database = f"projects/{project_id}/databases/(default)"
        self.documents_url = f"{self.FIRESTORE_API_ENDPOINT}/{self.database}/documents"

        self.headers = {"Content-Type": "application/json"}
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"
        self.params: Dict[str, str] = {"key": api_key} if api_key else {}

    async def read_booked_labels(self, day: Date) -> Set[str]:
        records = await self._query_day(day)
        return {record["time"] for record in records if "time" in record}

    async def list_bookings(self, day: Date) -> List[Booking]:
        bookings: List[Booking] = []

        for record in await self._query_day(day):
            try:
                bookings.append(Booking.from_record(record))
            except (KeyError, ValueError) as e:
                logger.warning("Skipping unreadable booking document: %s", e)
                continue

        return bookings

    async def commit_bookings(self, day: Date, labels: Iterable[str], actor: Actor) -> Set[str]:
        existing = await self.read_booked_labels(day)
        pending = [
            Booking.create(day, label, actor)
            for label in dict.fromkeys(labels)
            if label not in existing
        ]

        if not pending:
            return set()

        payload = {
            "writes": [
                {
                    "update": {
                        "name": self._document_name(booking.key),
                        "fields": self._encode_fields(booking.to_record()),
                    }
                }
                for booking in pending
            ]
        }

        await asyncio.to_thread(self._request, "POST", f"{self.documents_url}:commit", payload)
        logger.debug("Committed %d booking document(s) for %s", len(pending), day.to_date_string())
        return {booking.time for booking in pending}

    async def remove_booking(self, day: Date, label: str) -> bool:
        url = f"{self.FIRESTORE_API_ENDPOINT}/{self._document_name(booking_key(day, label))}"
        response = await asyncio.to_thread(
            self._request,
            "DELETE",
            url,
            params={"currentDocument.exists": "true"},
            allow_missing=True,
        )
        return response is not None

    async def _query_day(self, day: Date) -> List[Dict[str, Any]]:
        """Run a structured query for all documents of ``day``."""
        payload = {
            "structuredQuery": {
                "from": [{"collectionId": self.collection}],
                "where": {
                    "fieldFilter": {
                        "field": {"fieldPath": "date"},
                        "op": "EQUAL",
                        "value": {"stringValue": day.to_date_string()},
                    }
                },
            }
        }

        data = await asyncio.to_thread(self._request, "POST", f"{self.documents_url}:runQuery", payload)
        return self._parse_query_response(data or [])

    def _request(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        allow_missing: bool = False,
    ) -> Any:
        """
        Send one request to Firestore.

        Returns:
            The decoded JSON body, or None when ``allow_missing`` is set
            and the document does not exist

        Raises:
            BookingStoreError: If the call fails
        """
        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                params={**self.params, **(params or {})},
                json=payload,
                timeout=self.timeout,
            )
            if allow_missing and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json() if response.content else {}

        except requests.exceptions.RequestException as e:
            logger.warning("Firestore %s %s failed: %s", method, url, e)
            raise BookingStoreError(f"Firestore request failed: {e}") from e

    def _document_name(self, key: str) -> str:
        return f"{self.database}/documents/{self.collection}/{key}"

    @staticmethod
    def _encode_fields(record: Dict[str, str]) -> Dict[str, Dict[str, str]]:
        return {name: {"stringValue": value} for name, value in record.items()}

    @staticmethod
    def _parse_query_response(response_data: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Flatten a runQuery response into plain records.

        Response format:
        [
            {
                "document": {
                    "name": "projects/.../documents/bookings/2024-11-25_10-00",
                    "fields": {
                        "date": {"stringValue": "2024-11-25"},
                        "time": {"stringValue": "10:00"}
                    }
                },
                "readTime": "..."
            }
        ]

        Entries without a ``document`` only carry the read time.
        """
        records: List[Dict[str, Any]] = []

        for entry in response_data:
            document = entry.get("document")
            if not document:
                continue

            record: Dict[str, Any] = {}
            for name, value in document.get("fields", {}).items():
                if "stringValue" in value:
                    record[name] = value["stringValue"]
                elif "timestampValue" in value:
                    record[name] = value["timestampValue"]
            records.append(record)

        return records
