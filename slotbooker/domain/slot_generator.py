"""
Core business logic for deriving the bookable slots of a day.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List

import pendulum
from pendulum import Date

from .exceptions import ConfigurationError
from .models import DisabledReason, SlotStatus, TimeSlot, format_label

if TYPE_CHECKING:
    from ..config import ScheduleConfig


class SlotGenerator:
    """
    Generates the ordered slot list of a day from the booked labels.

    Algorithm:
    1. Walk the window hour by hour from start_hour to end_hour (exclusive)
    2. A slot whose label is booked is disabled as BOOKED
    3. A slot whose previous hour is booked is disabled as BREAK
       (a session lasts one hour and is followed by a mandatory break)
    4. Everything else is available

    Booked labels outside the window are ignored, including for breaks;
    no slot is created just to carry a break past closing time.

    Hours that do not exist on the day (spring-forward DST gap) produce no
    slot, so every label matches its start time and starts stay strictly
    ascending. The break rule still looks at the previous wall-clock label.
    """

    def __init__(self, config: "ScheduleConfig"):
        if not 0 <= config.start_hour < config.end_hour <= 24:
            raise ConfigurationError(
                f"Invalid schedule window {config.start_hour}:00 - {config.end_hour}:00"
            )
        self.config = config

    def generate(self, day: Date, booked_labels: Iterable[str]) -> List[TimeSlot]:
        """
        Build the slots for ``day``.

        Args:
            day: Calendar date in the configured timezone
            booked_labels: HH:MM labels already booked on that date

        Returns:
            TimeSlot list ordered by start time
        """
        booked = frozenset(booked_labels)
        slots: List[TimeSlot] = []

        for hour in range(self.config.start_hour, self.config.end_hour):
            start = self._slot_start(day, hour)
            if start.hour != hour:
                # Wall-clock hour skipped by a DST jump
                continue

            label = format_label(hour)
            is_booked = label in booked
            # Only a slot inside the window can cast a break
            is_break = hour > self.config.start_hour and format_label(hour - 1) in booked

            if is_booked:
                status, reason = SlotStatus.DISABLED, DisabledReason.BOOKED
            elif is_break:
                status, reason = SlotStatus.DISABLED, DisabledReason.BREAK
            else:
                status, reason = SlotStatus.AVAILABLE, None

            slots.append(
                TimeSlot(
                    label=label,
                    start=start,
                    status=status,
                    reason=reason,
                )
            )

        return slots

    def _slot_start(self, day: Date, hour: int) -> pendulum.DateTime:
        return pendulum.datetime(
            day.year, day.month, day.day, hour, 0, 0, tz=self.config.timezone
        )
