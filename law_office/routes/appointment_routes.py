import logging
from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_serializer, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from law_office.auth.dependencies import get_current_user, require_admin
from law_office.database import get_db
from law_office.models.appointment import Appointment, CaseType
from law_office.models.user import User
from law_office.routes import common
from law_office.scheduling.errors import SchedulingError
from law_office.scheduling.slots import ensure_bookable_date, format_slot, generate_slots, is_weekend
from law_office.scheduling.status import AppointmentStatus, parse_status
from law_office.services import appointment_service
from law_office.services.appointment_service import AppointmentListSettings

router = APIRouter(tags=['appointments'])

logger = logging.getLogger(__name__)

MAX_APPOINTMENT_NOTES_LENGTH = 600


class CreateAppointmentRequest(BaseModel):
    date: str
    time: time
    case_type: CaseType
    notes: str | None = None

    @field_validator('case_type', mode='before')
    @classmethod
    def normalize_case_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

        return normalized


class UpdateStatusRequest(BaseModel):
    status: str


class RescheduleRequest(BaseModel):
    date: str
    time: time


class AppointmentResponse(BaseModel):
    id: int
    user_id: int
    date: date
    time: time
    case_type: str
    status: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

    @field_serializer('time')
    def serialize_time(self, value: time) -> str:
        return format_slot(value)


class AdminAppointmentResponse(AppointmentResponse):
    client_name: str
    client_email: str
    client_phone: str


class SlotListResponse(BaseModel):
    date: date
    is_weekend: bool
    slots: list[str]


class CaseTypeOptionResponse(BaseModel):
    case_type: str
    label: str


def build_admin_response(appointment: Appointment) -> AdminAppointmentResponse:
    client = appointment.user
    return AdminAppointmentResponse(
        id=appointment.id,
        user_id=appointment.user_id,
        date=appointment.date,
        time=appointment.time,
        case_type=appointment.case_type,
        status=appointment.status,
        notes=appointment.notes,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at,
        client_name=client.full_name if client else 'Unknown',
        client_email=client.email if client else 'Unknown',
        client_phone=(client.phone if client else None) or 'Not provided',
    )


def build_list_settings(
    show_cancelled: bool,
    search: str | None,
    status_filter: str | None = None,
) -> AppointmentListSettings:
    parsed_status = None
    if status_filter:
        try:
            parsed_status = AppointmentStatus(status_filter.strip().lower())
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Invalid status filter.',
            ) from exc

    return AppointmentListSettings(
        show_cancelled=show_cancelled,
        search=search.strip() if search and search.strip() else None,
        status=parsed_status,
    )


def ensure_can_manage(appointment: Appointment, current_user: User, action: str) -> None:
    if current_user.is_admin:
        return
    if appointment.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f'Only the client who booked this appointment can {action} it.',
        )


@router.get('/slots', response_model=SlotListResponse)
def list_slots(date: str = Query(...)):
    try:
        slot_date = ensure_bookable_date(date)
    except SchedulingError as exc:
        raise common.to_http_exception(exc) from exc

    return SlotListResponse(
        date=slot_date,
        is_weekend=is_weekend(slot_date),
        slots=[format_slot(slot) for slot in generate_slots(slot_date)],
    )


@router.get('/case-types', response_model=list[CaseTypeOptionResponse])
def list_case_types():
    return [
        CaseTypeOptionResponse(case_type=case_type.value, label=case_type.value.replace('_', ' ').title())
        for case_type in CaseType
    ]


@router.get('/all', response_model=list[AdminAppointmentResponse])
def list_all_appointments(
    show_cancelled: bool = Query(default=True),
    search: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias='status'),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    settings = build_list_settings(show_cancelled, search, status_filter)

    common.ensure_database_ready()

    try:
        appointments = appointment_service.list_appointments(db, settings)
        logger.info('Admin %s listed %d appointments', current_user.id, len(appointments))
        return [build_admin_response(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc


@router.get('/stats', response_model=dict[str, int])
def appointment_stats(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del current_user
    common.ensure_database_ready()

    try:
        return appointment_service.count_by_status(db)
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc


@router.get('/user/{user_id}', response_model=list[AppointmentResponse])
def list_user_appointments(
    user_id: int,
    show_cancelled: bool = Query(default=True),
    search: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not current_user.is_admin and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Clients can only view their own appointments.',
        )

    settings = build_list_settings(show_cancelled, search)

    common.ensure_database_ready()

    try:
        return appointment_service.list_appointments(db, settings, user_id=user_id)
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc


@router.post('/', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only clients can book appointments.',
        )

    common.ensure_database_ready()

    try:
        return appointment_service.create_appointment(
            db,
            current_user,
            data.date,
            data.time,
            data.case_type.value,
            notes=data.notes,
        )
    except SchedulingError as exc:
        raise common.to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create appointment for user %s', current_user.id)
        raise common.database_unavailable() from exc


@router.patch('/{appointment_id}/status', response_model=AdminAppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    common.ensure_database_ready()

    try:
        appointment = appointment_service.get_appointment(db, appointment_id)
        ensure_can_manage(appointment, current_user, 'cancel')

        requested = parse_status(data.status)
        if not current_user.is_admin and requested is not AppointmentStatus.CANCELLED:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Clients can only cancel their appointments.',
            )

        updated = appointment_service.transition_status(db, appointment_id, requested)
        return build_admin_response(updated)
    except SchedulingError as exc:
        raise common.to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to update status of appointment %s', appointment_id)
        raise common.database_unavailable() from exc


@router.patch('/{appointment_id}/reschedule', response_model=AppointmentResponse)
def reschedule_appointment(
    appointment_id: int,
    data: RescheduleRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    common.ensure_database_ready()

    try:
        appointment = appointment_service.get_appointment(db, appointment_id)
        ensure_can_manage(appointment, current_user, 'reschedule')

        return appointment_service.reschedule(db, appointment_id, data.date, data.time)
    except SchedulingError as exc:
        raise common.to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to reschedule appointment %s', appointment_id)
        raise common.database_unavailable() from exc
