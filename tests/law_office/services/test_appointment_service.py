import os
from datetime import date, datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from law_office.database import Base  # noqa: E402
from law_office.models.appointment import Appointment  # noqa: E402
from law_office.models.user import User  # noqa: E402
from law_office.scheduling.errors import IllegalTransition, InvalidDate, InvalidStatus, InvalidTime, NotFound  # noqa: E402
from law_office.scheduling.status import AppointmentStatus  # noqa: E402
from law_office.services import appointment_service  # noqa: E402
from law_office.services.appointment_service import AppointmentListSettings  # noqa: E402

TODAY = date(2024, 6, 10)
OLD_TIMESTAMP = datetime(2024, 1, 1, 8, 0)


@pytest.fixture
def appointment_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=[User.__table__, Appointment.__table__])

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=[Appointment.__table__, User.__table__])


@pytest.fixture
def client_user(appointment_db):
    user = User(email='client@example.com', hashed_password='x', full_name='Casey Client', role='client')
    appointment_db.add(user)
    appointment_db.commit()
    appointment_db.refresh(user)
    return user


def _add_appointment(db, user, status='pending', appointment_date=date(2024, 6, 12), appointment_time=time(10, 0),
                     case_type='family'):
    appointment = Appointment(
        user_id=user.id,
        date=appointment_date,
        time=appointment_time,
        case_type=case_type,
        status=status,
        created_at=OLD_TIMESTAMP,
        updated_at=OLD_TIMESTAMP,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def test_create_appointment_starts_pending(appointment_db, client_user) -> None:
    appointment = appointment_service.create_appointment(
        appointment_db, client_user, '2024-06-15', time(11, 30), 'civil', notes='Lease dispute', today=TODAY,
    )

    assert appointment.id is not None
    assert appointment.status == 'pending'
    assert appointment.date == date(2024, 6, 15)
    assert appointment.time == time(11, 30)
    assert appointment.notes == 'Lease dispute'
    assert appointment.created_at is not None


def test_create_appointment_rejects_weekend_afternoon(appointment_db, client_user) -> None:
    with pytest.raises(InvalidTime):
        appointment_service.create_appointment(
            appointment_db, client_user, '2024-06-15', time(14, 0), 'civil', today=TODAY,
        )

    assert appointment_db.query(Appointment).count() == 0


def test_create_appointment_rejects_past_date(appointment_db, client_user) -> None:
    with pytest.raises(InvalidDate):
        appointment_service.create_appointment(
            appointment_db, client_user, '2024-06-07', time(10, 0), 'civil', today=TODAY,
        )


def test_transition_pending_to_confirmed_updates_timestamp(appointment_db, client_user) -> None:
    appointment = _add_appointment(appointment_db, client_user)

    updated = appointment_service.transition_status(appointment_db, appointment.id, 'confirmed')

    assert updated.status == 'confirmed'
    assert updated.updated_at > OLD_TIMESTAMP


def test_cancelled_appointment_cannot_be_completed(appointment_db, client_user) -> None:
    appointment = _add_appointment(appointment_db, client_user, status='confirmed')

    cancelled = appointment_service.transition_status(appointment_db, appointment.id, AppointmentStatus.CANCELLED)
    assert cancelled.status == 'cancelled'

    with pytest.raises(IllegalTransition):
        appointment_service.transition_status(appointment_db, appointment.id, 'completed')

    appointment_db.refresh(appointment)
    assert appointment.status == 'cancelled'


def test_transition_with_unknown_status_leaves_record_unchanged(appointment_db, client_user) -> None:
    appointment = _add_appointment(appointment_db, client_user)

    with pytest.raises(InvalidStatus):
        appointment_service.transition_status(appointment_db, appointment.id, 'archived')

    appointment_db.refresh(appointment)
    assert appointment.status == 'pending'
    assert appointment.updated_at == OLD_TIMESTAMP


def test_transition_missing_appointment_raises_not_found(appointment_db) -> None:
    with pytest.raises(NotFound):
        appointment_service.transition_status(appointment_db, 999, 'confirmed')


@pytest.mark.parametrize('previous_status', ['pending', 'confirmed', 'completed'])
def test_reschedule_resets_status_to_pending(appointment_db, client_user, previous_status: str) -> None:
    appointment = _add_appointment(appointment_db, client_user, status=previous_status)

    updated = appointment_service.reschedule(appointment_db, appointment.id, '2024-06-16', time(9, 30), today=TODAY)

    assert updated.status == 'pending'
    assert updated.date == date(2024, 6, 16)
    assert updated.time == time(9, 30)
    assert updated.updated_at > OLD_TIMESTAMP


def test_reschedule_to_invalid_time_leaves_record_unchanged(appointment_db, client_user) -> None:
    appointment = _add_appointment(appointment_db, client_user, status='confirmed')

    with pytest.raises(InvalidTime):
        appointment_service.reschedule(appointment_db, appointment.id, '2024-06-15', time(16, 0), today=TODAY)

    appointment_db.refresh(appointment)
    assert appointment.status == 'confirmed'
    assert appointment.date == date(2024, 6, 12)
    assert appointment.time == time(10, 0)
    assert appointment.updated_at == OLD_TIMESTAMP


def test_reschedule_cancelled_appointment_is_rejected(appointment_db, client_user) -> None:
    appointment = _add_appointment(appointment_db, client_user, status='cancelled')

    with pytest.raises(IllegalTransition):
        appointment_service.reschedule(appointment_db, appointment.id, '2024-06-13', time(9, 0), today=TODAY)

    appointment_db.refresh(appointment)
    assert appointment.date == date(2024, 6, 12)


def test_reschedule_missing_appointment_raises_not_found(appointment_db) -> None:
    with pytest.raises(NotFound):
        appointment_service.reschedule(appointment_db, 42, '2024-06-13', time(9, 0), today=TODAY)


def test_list_appointments_orders_cancelled_last_then_newest_first(appointment_db, client_user) -> None:
    older = _add_appointment(appointment_db, client_user, appointment_date=date(2024, 6, 12), appointment_time=time(9, 0))
    newer = _add_appointment(appointment_db, client_user, appointment_date=date(2024, 6, 14), appointment_time=time(9, 0))
    later_same_day = _add_appointment(
        appointment_db, client_user, appointment_date=date(2024, 6, 14), appointment_time=time(15, 30),
    )
    cancelled = _add_appointment(
        appointment_db, client_user, status='cancelled', appointment_date=date(2024, 6, 20),
    )

    listed = appointment_service.list_appointments(appointment_db, user_id=client_user.id)

    assert [appointment.id for appointment in listed] == [later_same_day.id, newer.id, older.id, cancelled.id]


def test_list_appointments_respects_listing_settings(appointment_db, client_user) -> None:
    family = _add_appointment(appointment_db, client_user, case_type='family')
    _add_appointment(appointment_db, client_user, case_type='criminal', status='cancelled')
    corporate = _add_appointment(appointment_db, client_user, case_type='corporate', status='confirmed')

    hidden = appointment_service.list_appointments(
        appointment_db, AppointmentListSettings(show_cancelled=False), user_id=client_user.id,
    )
    searched = appointment_service.list_appointments(
        appointment_db, AppointmentListSettings(search='CORP'), user_id=client_user.id,
    )
    by_status = appointment_service.list_appointments(
        appointment_db, AppointmentListSettings(status=AppointmentStatus.PENDING),
    )

    assert {appointment.id for appointment in hidden} == {family.id, corporate.id}
    assert [appointment.id for appointment in searched] == [corporate.id]
    assert [appointment.id for appointment in by_status] == [family.id]


def test_count_by_status_includes_every_status(appointment_db, client_user) -> None:
    _add_appointment(appointment_db, client_user)
    _add_appointment(appointment_db, client_user)
    _add_appointment(appointment_db, client_user, status='completed')

    counts = appointment_service.count_by_status(appointment_db)

    assert counts == {
        'pending': 2,
        'confirmed': 0,
        'completed': 1,
        'cancelled': 0,
        'rescheduled': 0,
        'total': 3,
    }
