"""
Merging a user's in-progress selection into the generated slot list.
"""

from dataclasses import replace
from typing import Collection, List, Sequence

from .models import SlotStatus, TimeSlot


def project_selection(slots: Sequence[TimeSlot], selected_labels: Collection[str]) -> List[TimeSlot]:
    """
    Mark selected slots as SELECTED.

    Disabled slots stay disabled even when their label is in the selection;
    the projection never turns an unavailable slot into a selected one.
    """
    selected = set(selected_labels)
    projected: List[TimeSlot] = []

    for slot in slots:
        if slot.label in selected and not slot.is_disabled:
            projected.append(replace(slot, status=SlotStatus.SELECTED, reason=None))
        else:
            projected.append(slot)

    return projected


def toggle_selection(slots: Sequence[TimeSlot], selected_labels: Sequence[str], label: str) -> List[str]:
    """
    Add ``label`` to the selection, or remove it if already selected.

    Clicks on unknown or disabled slots leave the selection unchanged.
    Returns a new list; selection order is preserved.
    """
    slot = next((s for s in slots if s.label == label), None)
    if slot is None or slot.is_disabled:
        return list(selected_labels)

    if label in selected_labels:
        return [existing for existing in selected_labels if existing != label]
    return [*selected_labels, label]


def selected_slots(slots: Sequence[TimeSlot]) -> List[TimeSlot]:
    """Selected slots sorted by start time."""
    return sorted(
        (slot for slot in slots if slot.status is SlotStatus.SELECTED),
        key=lambda s: s.start,
    )
