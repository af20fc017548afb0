import pytest

from law_office.scheduling.errors import IllegalTransition, InvalidStatus
from law_office.scheduling.status import (
    AppointmentStatus,
    check_reschedule,
    check_transition,
    parse_status,
)


@pytest.mark.parametrize(
    ('current', 'requested'),
    [
        ('pending', 'confirmed'),
        ('pending', 'completed'),
        ('pending', 'cancelled'),
        ('confirmed', 'completed'),
        ('confirmed', 'cancelled'),
    ],
)
def test_check_transition_allows_lifecycle_moves(current: str, requested: str) -> None:
    assert check_transition(current, requested) is AppointmentStatus(requested)


@pytest.mark.parametrize(
    ('current', 'requested'),
    [
        ('cancelled', 'completed'),
        ('cancelled', 'pending'),
        ('cancelled', 'confirmed'),
        ('completed', 'cancelled'),
        ('completed', 'pending'),
        ('confirmed', 'pending'),
        ('confirmed', 'confirmed'),
        ('pending', 'pending'),
    ],
)
def test_check_transition_rejects_illegal_moves(current: str, requested: str) -> None:
    with pytest.raises(IllegalTransition):
        check_transition(current, requested)


@pytest.mark.parametrize('requested', ['archived', '', None, 'rescheduled', 'Pending!'])
def test_parse_status_rejects_unknown_or_reserved_values(requested) -> None:
    with pytest.raises(InvalidStatus):
        parse_status(requested)


def test_parse_status_normalizes_case_and_whitespace() -> None:
    assert parse_status(' Confirmed ') is AppointmentStatus.CONFIRMED


def test_invalid_status_is_reported_before_transition_rules() -> None:
    with pytest.raises(InvalidStatus):
        check_transition('cancelled', 'archived')


@pytest.mark.parametrize('current', ['pending', 'confirmed', 'completed', 'rescheduled'])
def test_check_reschedule_resets_to_pending(current: str) -> None:
    assert check_reschedule(current) is AppointmentStatus.PENDING


def test_check_reschedule_rejects_cancelled_appointments() -> None:
    with pytest.raises(IllegalTransition):
        check_reschedule(AppointmentStatus.CANCELLED)


def test_terminal_statuses() -> None:
    assert AppointmentStatus.CANCELLED.is_terminal
    assert AppointmentStatus.COMPLETED.is_terminal
    assert not AppointmentStatus.PENDING.is_terminal
    assert not AppointmentStatus.CONFIRMED.is_terminal
