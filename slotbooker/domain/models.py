"""
Domain models for slots, bookings and commit outcomes.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidLabelError

_LABEL_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class SlotStatus(str, Enum):
    """Availability state of a slot as shown to the user."""
    AVAILABLE = "AVAILABLE"
    SELECTED = "SELECTED"
    DISABLED = "DISABLED"


class DisabledReason(str, Enum):
    """Why a disabled slot cannot be booked."""
    BOOKED = "BOOKED"
    BREAK = "BREAK"
    CLASS_PART = "CLASS_PART"
    TOO_CLOSE = "TOO_CLOSE"

    def display_name(self) -> str:
        """Short human-readable text for the reason."""
        return {
            DisabledReason.BOOKED: "Booked",
            DisabledReason.BREAK: "Break",
            DisabledReason.CLASS_PART: "Class",
            DisabledReason.TOO_CLOSE: "Blocked",
        }[self]


def format_label(hour: int, minute: int = 0) -> str:
    """Render a wall-clock time as a zero-padded 24-hour HH:MM label."""
    return f"{hour:02d}:{minute:02d}"


def parse_label(label: str) -> Tuple[int, int]:
    """
    Split an HH:MM label into hour and minute.

    Raises:
        InvalidLabelError: If the label is not a zero-padded 24-hour time
    """
    match = _LABEL_PATTERN.match(label)
    if not match:
        raise InvalidLabelError(f"Invalid slot label '{label}', expected HH:MM (e.g. 09:00)")
    return int(match.group(1)), int(match.group(2))


def booking_key(day: Date, label: str) -> str:
    """
    Build the stored record key for a booking.

    Format: ``YYYY-MM-DD_HH-MM``. One key per (date, label), which makes a
    second booking of the same slot overwrite instead of duplicate.
    """
    return f"{day.to_date_string()}_{label.replace(':', '-')}"


@dataclass(frozen=True)
class TimeSlot:
    """
    One bookable hour within the daily window.

    Invariant: ``reason`` is set if and only if the slot is disabled.
    """
    label: str
    start: DateTime
    status: SlotStatus = SlotStatus.AVAILABLE
    reason: Optional[DisabledReason] = None

    def __post_init__(self):
        if (self.status is SlotStatus.DISABLED) != (self.reason is not None):
            raise ValueError(
                f"Slot {self.label}: reason must be set exactly when the slot is disabled"
            )

    @property
    def end(self) -> DateTime:
        return self.start.add(hours=1)

    @property
    def is_disabled(self) -> bool:
        return self.status is SlotStatus.DISABLED

    def format_display(self) -> str:
        """Text shown in a grid cell: the time, or the reason when disabled."""
        if self.reason is not None:
            return self.reason.display_name()
        return self.label


@dataclass(frozen=True)
class Actor:
    """The person a booking is made for."""
    id: str
    display_name: str


@dataclass(frozen=True)
class Booking:
    """A persisted booking of one slot on one date."""
    date: Date
    time: str
    actor_id: str
    actor_name: str
    booked_at: DateTime

    @classmethod
    def create(
        cls,
        day: Date,
        label: str,
        actor: Actor,
        booked_at: Optional[DateTime] = None,
    ) -> "Booking":
        """
        Build a new booking, validating the label.

        Raises:
            InvalidLabelError: If the label is not HH:MM
        """
        parse_label(label)
        return cls(
            date=day,
            time=label,
            actor_id=actor.id,
            actor_name=actor.display_name,
            booked_at=booked_at or pendulum.now("UTC"),
        )

    @property
    def key(self) -> str:
        return booking_key(self.date, self.time)

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the stored record layout."""
        return {
            "date": self.date.to_date_string(),
            "time": self.time,
            "actorId": self.actor_id,
            "actorName": self.actor_name,
            "bookedAt": self.booked_at.to_iso8601_string(),
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Booking":
        """
        Parse a stored record.

        Records written by older clients carry ``userId``/``userName``
        instead of ``actorId``/``actorName``.

        Raises:
            KeyError: If a required field is missing
            ValueError: If the date or timestamp cannot be parsed
        """
        actor_id = record.get("actorId", record.get("userId"))
        actor_name = record.get("actorName", record.get("userName"))
        if actor_id is None:
            raise KeyError("actorId")

        day = pendulum.parse(record["date"], exact=True)
        if not isinstance(day, Date) or isinstance(day, DateTime):
            raise ValueError(f"Invalid booking date: {record['date']}")

        booked_at = pendulum.parse(record["bookedAt"])
        if not isinstance(booked_at, DateTime):
            raise ValueError(f"Invalid booking timestamp: {record['bookedAt']}")

        return cls(
            date=day,
            time=record["time"],
            actor_id=actor_id,
            actor_name=actor_name or "",
            booked_at=booked_at,
        )


@dataclass(frozen=True)
class CommitResult:
    """
    Outcome of committing a selection.

    ``committed`` holds labels that became new bookings, ``dropped`` holds
    labels that were no longer available when re-validated. Accepted labels
    that another commit filled first appear in neither.
    """
    date: Date
    requested: Tuple[str, ...]
    committed: Tuple[str, ...] = field(default_factory=tuple)
    dropped: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def committed_count(self) -> int:
        return len(self.committed)

    @property
    def absorbed(self) -> Tuple[str, ...]:
        """Accepted labels that were already booked when the write landed."""
        return tuple(
            label for label in self.requested
            if label not in self.committed and label not in self.dropped
        )
