"""
Booking store persisted as a single JSON document on disk.
"""

import asyncio
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Set

from filelock import FileLock, Timeout
from pendulum import Date

from ..domain.exceptions import BookingStoreError
from ..domain.models import Actor, Booking, booking_key

logger = logging.getLogger(__name__)


class JsonFileBookingStore:
    """
    Stores booking records in a JSON file.

    Layout::

        {
            "bookings": {
                "2024-11-25_10-00": {
                    "date": "2024-11-25",
                    "time": "10:00",
                    "actorId": "u-1",
                    "actorName": "Alice",
                    "bookedAt": "2024-11-20T08:15:00+00:00"
                }
            }
        }

    Every write goes to a temporary file that replaces the previous one in a
    single rename, so readers see either the old or the new document, never a
    mix. Commits and removals hold an exclusive lock on ``<path>.lock`` from
    load to write, so processes sharing the file never overwrite each other.

    File access runs in a worker thread to keep the event loop free.
    """

    def __init__(self, path: Path, timeout: float = 30):
        self.path = Path(path)
        self.timeout = timeout
        self.lock_path = self.path.with_name(f"{self.path.name}.lock")

    async def read_booked_labels(self, day: Date) -> Set[str]:
        date_string = day.to_date_string()
        return {
            record["time"]
            for record in (await asyncio.to_thread(self._load_records)).values()
            if record.get("date") == date_string and "time" in record
        }

    async def list_bookings(self, day: Date) -> List[Booking]:
        date_string = day.to_date_string()
        bookings: List[Booking] = []

        for key, record in (await asyncio.to_thread(self._load_records)).items():
            if record.get("date") != date_string:
                continue
            try:
                bookings.append(Booking.from_record(record))
            except (KeyError, ValueError) as e:
                # Skip invalid records
                logger.warning("Skipping unreadable booking record %s: %s", key, e)
                continue

        return bookings

    async def commit_bookings(self, day: Date, labels: Iterable[str], actor: Actor) -> Set[str]:
        committed = await asyncio.to_thread(self._commit_locked, day, list(labels), actor)
        logger.debug("Stored %d new booking(s) for %s in %s", len(committed), day.to_date_string(), self.path)
        return committed

    async def remove_booking(self, day: Date, label: str) -> bool:
        return await asyncio.to_thread(self._remove_locked, day, label)

    def _commit_locked(self, day: Date, labels: List[str], actor: Actor) -> Set[str]:
        with self._lock():
            records = self._load_records()
            committed: Set[str] = set()

            for label in labels:
                key = booking_key(day, label)
                if key in records:
                    continue
                records[key] = Booking.create(day, label, actor).to_record()
                committed.add(label)

            if committed:
                self._write_records(records)
            return committed

    def _remove_locked(self, day: Date, label: str) -> bool:
        with self._lock():
            records = self._load_records()
            if records.pop(booking_key(day, label), None) is None:
                return False

            self._write_records(records)
            return True

    @contextmanager
    def _lock(self) -> Iterator[None]:
        """Hold the lock shared by every process using this booking file."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            lock = FileLock(self.lock_path, timeout=self.timeout)
            lock.acquire()
        except Timeout as exc:
            logger.warning("Timed out waiting for %s", self.lock_path)
            raise BookingStoreError(f"Booking file {self.path} is locked by another process") from exc
        except OSError as exc:
            raise BookingStoreError(f"Could not lock {self.path}: {exc}") from exc

        try:
            yield
        finally:
            lock.release()

    def _load_records(self) -> Dict[str, Dict[str, Any]]:
        """Load all booking records; a missing file means no bookings yet."""
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read booking file %s: %s", self.path, exc)
            raise BookingStoreError(f"Could not read bookings from {self.path}: {exc}") from exc

        if not isinstance(data, dict) or not isinstance(data.get("bookings", {}), dict):
            raise BookingStoreError(f"Booking file {self.path} has an unexpected layout.")

        return dict(data.get("bookings", {}))

    def _write_records(self, records: Dict[str, Dict[str, Any]]) -> None:
        """Atomically replace the booking file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump({"bookings": records}, f, indent=2, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.warning("Could not write booking file %s: %s", self.path, exc)
            raise BookingStoreError(f"Could not write bookings to {self.path}: {exc}") from exc
