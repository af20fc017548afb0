"""Errors raised by slot generation and appointment status transitions.

They are plain exceptions so the HTTP layer decides how to present them.
"""


class SchedulingError(Exception):
    """Base class for recoverable booking errors."""


class InvalidDate(SchedulingError):
    """Date is unparseable or lies in the past."""


class InvalidTime(SchedulingError):
    """Time is not one of the bookable slots for its date."""


class InvalidStatus(SchedulingError):
    """Status name is outside the requestable set."""


class IllegalTransition(SchedulingError):
    """Status change is not permitted from the current state."""


class NotFound(SchedulingError):
    """Appointment identifier does not resolve to a stored record."""
