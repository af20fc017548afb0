"""Appointment booking, status transitions and listings.

Each mutating operation validates first and touches the record only once
every check has passed, so a failed request leaves the stored row unchanged.
Transitions are single-row updates committed immediately; concurrent writers
to the same appointment are last-writer-wins.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy.orm import Session

from law_office.models.appointment import Appointment
from law_office.models.user import User
from law_office.scheduling.errors import NotFound
from law_office.scheduling.slots import ensure_bookable_slot, format_slot
from law_office.scheduling.status import AppointmentStatus, check_reschedule, check_transition

audit_logger = logging.getLogger('law_office.audit')


@dataclass(frozen=True)
class AppointmentListSettings:
    """Per-request listing preferences supplied by the caller."""

    show_cancelled: bool = True
    search: str | None = None
    status: AppointmentStatus | None = None


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise NotFound(f'Appointment {appointment_id} not found.')
    return appointment


def create_appointment(
    db: Session,
    user: User,
    appointment_date: str | date,
    appointment_time: time,
    case_type: str,
    notes: str | None = None,
    today: date | None = None,
) -> Appointment:
    slot_date, slot_time = ensure_bookable_slot(appointment_date, appointment_time, today=today)
    now = datetime.now()

    appointment = Appointment(
        user_id=user.id,
        date=slot_date,
        time=slot_time,
        case_type=case_type,
        notes=notes,
        status=AppointmentStatus.PENDING.value,
        created_at=now,
        updated_at=now,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)

    audit_logger.info(
        'appointment %s booked by user %s for %s %s',
        appointment.id, user.id, slot_date.isoformat(), format_slot(slot_time),
    )
    return appointment


def transition_status(db: Session, appointment_id: int, requested_status: str | AppointmentStatus) -> Appointment:
    appointment = get_appointment(db, appointment_id)
    previous = appointment.status
    target = check_transition(previous, requested_status)

    appointment.status = target.value
    appointment.updated_at = datetime.now()
    db.commit()
    db.refresh(appointment)

    audit_logger.info('appointment %s status %s -> %s', appointment.id, previous, target.value)
    return appointment


def reschedule(
    db: Session,
    appointment_id: int,
    new_date: str | date,
    new_time: time,
    today: date | None = None,
) -> Appointment:
    appointment = get_appointment(db, appointment_id)
    next_status = check_reschedule(appointment.status)
    slot_date, slot_time = ensure_bookable_slot(new_date, new_time, today=today)
    previous_status = appointment.status

    appointment.date = slot_date
    appointment.time = slot_time
    appointment.status = next_status.value
    appointment.updated_at = datetime.now()
    db.commit()
    db.refresh(appointment)

    audit_logger.info(
        'appointment %s rescheduled to %s %s (status %s -> %s)',
        appointment.id, slot_date.isoformat(), format_slot(slot_time), previous_status, next_status.value,
    )
    return appointment


def _matches_search(appointment: Appointment, search: str) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True

    haystack = (
        appointment.case_type or '',
        appointment.date.isoformat() if appointment.date else '',
        appointment.status or '',
    )
    return any(needle in value.lower() for value in haystack)


def _listing_sort_key(appointment: Appointment):
    is_cancelled = appointment.status == AppointmentStatus.CANCELLED.value
    # Dates and times sort newest first, so negate their ordinals.
    day = appointment.date.toordinal() if appointment.date else 0
    minutes = appointment.time.hour * 60 + appointment.time.minute if appointment.time else 0
    return (is_cancelled, -day, -minutes)


def apply_list_settings(
    appointments: list[Appointment],
    settings: AppointmentListSettings,
) -> list[Appointment]:
    """Filter and order appointments the way listings present them.

    Cancelled appointments go last; everything else is newest first.
    """
    visible = []
    for appointment in appointments:
        if not settings.show_cancelled and appointment.status == AppointmentStatus.CANCELLED.value:
            continue
        if settings.status is not None and appointment.status != settings.status.value:
            continue
        if settings.search and not _matches_search(appointment, settings.search):
            continue
        visible.append(appointment)

    return sorted(visible, key=_listing_sort_key)


def list_appointments(
    db: Session,
    settings: AppointmentListSettings | None = None,
    user_id: int | None = None,
) -> list[Appointment]:
    query = db.query(Appointment)
    if user_id is not None:
        query = query.filter(Appointment.user_id == user_id)

    return apply_list_settings(query.all(), settings or AppointmentListSettings())


def count_by_status(db: Session) -> dict[str, int]:
    counts = Counter(status for (status,) in db.query(Appointment.status).all())
    summary = {status.value: counts.get(status.value, 0) for status in AppointmentStatus}
    summary['total'] = sum(counts.values())
    return summary
