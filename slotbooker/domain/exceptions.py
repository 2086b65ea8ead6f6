"""
Domain-specific exception hierarchy for the slot booking application.
"""


class SlotBookingError(Exception):
    """Base class for all application-level errors."""


class ConfigurationError(SlotBookingError, ValueError):
    """Raised when the schedule or store configuration is invalid."""


class InvalidLabelError(SlotBookingError, ValueError):
    """Raised when a slot label is not a zero-padded HH:MM string."""


class EmptySelectionError(SlotBookingError, ValueError):
    """Raised when a commit is requested without any selected slot."""


class BookingStoreError(SlotBookingError):
    """Raised when bookings cannot be read from or written to the store."""
