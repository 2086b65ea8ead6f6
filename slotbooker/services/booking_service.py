"""
Application services for reading slot grids and committing bookings.

The service coordinates the booking store adapter and delegates the slot
derivation to the domain-level ``SlotGenerator``. The store dependency is a
simple protocol so the in-memory, JSON-file and Firestore backends (or a stub
in tests) can be swapped freely.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Protocol, Sequence, Set

from pendulum import Date

from ..domain.calendar import week_days
from ..domain.exceptions import EmptySelectionError
from ..domain.models import Actor, Booking, CommitResult, SlotStatus, TimeSlot
from ..domain.slot_generator import SlotGenerator

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Protocol describing the persistence behaviour needed by the service."""

    async def read_booked_labels(self, day: Date) -> Set[str]:
        """Return the HH:MM labels booked on ``day`` (empty set if none)."""

    async def list_bookings(self, day: Date) -> List[Booking]:
        """Return the full booking records of ``day``."""

    async def commit_bookings(self, day: Date, labels: Iterable[str], actor: Actor) -> Set[str]:
        """
        Atomically book ``labels`` for ``actor``.

        Labels already booked are left untouched. Returns the labels that
        became new bookings.
        """

    async def remove_booking(self, day: Date, label: str) -> bool:
        """Delete one booking; return False if there was nothing to delete."""


class BookingService:
    """
    Orchestrates store reads, slot generation and booking commits.

    Holds no state between calls other than its collaborators; every grid is
    re-derived from a fresh store read.
    """

    def __init__(
        self,
        store: BookingStoreProtocol,
        slot_generator: SlotGenerator,
    ) -> None:
        self._store = store
        self._slot_generator = slot_generator

    @property
    def schedule_config(self):
        return self._slot_generator.config

    async def load_slots(self, day: Date) -> List[TimeSlot]:
        """Read the bookings of ``day`` and derive its slot grid."""
        booked_labels = await self._store.read_booked_labels(day)
        return self._slot_generator.generate(day, booked_labels)

    async def commit(
        self,
        day: Date,
        selected_labels: Sequence[str],
        actor: Actor,
    ) -> CommitResult:
        """
        Book the selected slots of ``day`` for ``actor``.

        The selection is re-validated against a fresh read: labels that are
        no longer available are dropped and reported instead of failing the
        whole batch. Store errors propagate untouched; nothing is retried.

        Raises:
            EmptySelectionError: If no label was selected
            BookingStoreError: If the store cannot be read or written
        """
        requested = self._dedupe(selected_labels)
        if not requested:
            raise EmptySelectionError("Select at least one slot before confirming.")

        slots = await self.load_slots(day)
        available = {slot.label for slot in slots if slot.status is not SlotStatus.DISABLED}

        accepted = [label for label in requested if label in available]
        dropped = tuple(label for label in requested if label not in available)

        if dropped:
            logger.warning(
                "Dropping unavailable slot(s) %s on %s for %s",
                ", ".join(dropped), day.to_date_string(), actor.id,
            )

        if not accepted:
            return CommitResult(date=day, requested=tuple(requested), dropped=dropped)

        newly_committed = await self._store.commit_bookings(day, accepted, actor)
        committed = tuple(label for label in accepted if label in newly_committed)

        logger.info(
            "Committed %d of %d slot(s) on %s for %s",
            len(committed), len(requested), day.to_date_string(), actor.id,
        )

        return CommitResult(
            date=day,
            requested=tuple(requested),
            committed=committed,
            dropped=dropped,
        )

    async def remove(self, day: Date, label: str) -> bool:
        """
        Administrative removal of a single booking.

        Removing a booking that does not exist is a successful no-op.
        """
        removed = await self._store.remove_booking(day, label)
        if removed:
            logger.info("Removed booking %s on %s", label, day.to_date_string())
        else:
            logger.info("No booking %s on %s to remove", label, day.to_date_string())
        return removed

    async def list_bookings(self, day: Date) -> List[Booking]:
        """Bookings of ``day`` sorted by time, for the admin view."""
        bookings = await self._store.list_bookings(day)
        return sorted(bookings, key=lambda b: b.time)

    async def week_overview(self, week_start: Date) -> Dict[Date, int]:
        """Number of available slots for each day of the week."""
        overview: Dict[Date, int] = {}

        for day in week_days(week_start):
            slots = await self.load_slots(day)
            overview[day] = sum(1 for slot in slots if slot.status is SlotStatus.AVAILABLE)

        return overview

    @staticmethod
    def _dedupe(labels: Sequence[str]) -> List[str]:
        """Remove duplicates while preserving selection order."""
        seen: Set[str] = set()
        unique: List[str] = []
        for label in labels:
            if label not in seen:
                unique.append(label)
                seen.add(label)
        return unique
