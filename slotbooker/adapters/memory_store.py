"""
In-memory booking store for tests and throwaway sessions.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from pendulum import Date

from ..domain.models import Actor, Booking, booking_key

logger = logging.getLogger(__name__)


class InMemoryBookingStore:
    """
    Keeps bookings in a dict keyed by ``YYYY-MM-DD_HH-MM``.

    Each operation runs to completion without suspending, so a commit is
    applied all at once from the event loop's point of view.
    """

    def __init__(self, bookings: Optional[Iterable[Booking]] = None):
        self._records: Dict[str, Booking] = {}
        for booking in bookings or []:
            self._records[booking.key] = booking

    async def read_booked_labels(self, day: Date) -> Set[str]:
        return {booking.time for booking in self._day_bookings(day)}

    async def list_bookings(self, day: Date) -> List[Booking]:
        return self._day_bookings(day)

    async def commit_bookings(self, day: Date, labels: Iterable[str], actor: Actor) -> Set[str]:
        # Build every record before touching the dict so a bad label fails the whole batch
        pending: Dict[str, Booking] = {}
        for label in labels:
            key = booking_key(day, label)
            if key in self._records or key in pending:
                continue
            pending[key] = Booking.create(day, label, actor)

        self._records.update(pending)
        logger.debug("Stored %d new booking(s) for %s", len(pending), day.to_date_string())
        return {booking.time for booking in pending.values()}

    async def remove_booking(self, day: Date, label: str) -> bool:
        return self._records.pop(booking_key(day, label), None) is not None

    def _day_bookings(self, day: Date) -> List[Booking]:
        return [booking for booking in self._records.values() if booking.date == day]
