"""Appointment lifecycle states and the transitions allowed between them."""

from enum import Enum

from law_office.scheduling.errors import IllegalTransition, InvalidStatus


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    # Reserved. Nothing assigns it; a reschedule resets to PENDING instead.
    RESCHEDULED = "rescheduled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition_to(self, new_status: "AppointmentStatus") -> bool:
        return new_status in ALLOWED_TRANSITIONS[self]

    def can_reschedule(self) -> bool:
        return self is not AppointmentStatus.CANCELLED


# Statuses a caller may ask for through a status change.
REQUESTABLE_STATUSES = frozenset({
    AppointmentStatus.PENDING,
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
})

TERMINAL_STATUSES = frozenset({
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
})

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.RESCHEDULED: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


def parse_status(value: str | AppointmentStatus) -> AppointmentStatus:
    """Map a requested status name onto the enumeration.

    ``rescheduled`` is a stored value only and is rejected here, like any
    unknown name.
    """
    if isinstance(value, AppointmentStatus):
        status = value
    else:
        try:
            status = AppointmentStatus((value or '').strip().lower())
        except ValueError as exc:
            raise InvalidStatus(f'Invalid status value: {value!r}.') from exc

    if status not in REQUESTABLE_STATUSES:
        raise InvalidStatus(f'Invalid status value: {status.value!r}.')

    return status


def check_transition(current: str | AppointmentStatus, requested: str | AppointmentStatus) -> AppointmentStatus:
    """Return the validated target status or raise.

    Raises ``InvalidStatus`` for names outside the requestable set and
    ``IllegalTransition`` when the move is not allowed from ``current``.
    """
    target = parse_status(requested)
    source = AppointmentStatus(current)

    if not source.can_transition_to(target):
        raise IllegalTransition(f'Cannot change status from {source.value} to {target.value}.')

    return target


def check_reschedule(current: str | AppointmentStatus) -> AppointmentStatus:
    source = AppointmentStatus(current)
    if not source.can_reschedule():
        raise IllegalTransition(f'A {source.value} appointment cannot be rescheduled.')
    return AppointmentStatus.PENDING
