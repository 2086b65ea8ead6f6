"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability import project_selection, selected_slots, toggle_selection
from .models import Actor, Booking, CommitResult, DisabledReason, SlotStatus, TimeSlot
from .slot_generator import SlotGenerator

__all__ = [
    "Actor",
    "Booking",
    "CommitResult",
    "DisabledReason",
    "SlotStatus",
    "TimeSlot",
    "SlotGenerator",
    "project_selection",
    "selected_slots",
    "toggle_selection",
]
