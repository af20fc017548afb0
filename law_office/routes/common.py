import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from law_office.database import ensure_appointment_schema, ensure_user_schema
from law_office.scheduling.errors import (
    IllegalTransition,
    InvalidDate,
    InvalidStatus,
    InvalidTime,
    NotFound,
    SchedulingError,
)

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

SCHEDULING_ERROR_STATUS_CODES = {
    InvalidDate: status.HTTP_400_BAD_REQUEST,
    InvalidTime: status.HTTP_400_BAD_REQUEST,
    InvalidStatus: status.HTTP_400_BAD_REQUEST,
    IllegalTransition: status.HTTP_409_CONFLICT,
    NotFound: status.HTTP_404_NOT_FOUND,
}


def ensure_database_ready() -> None:
    try:
        ensure_user_schema()
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        logger.exception('Schema check failed.')
        raise database_unavailable() from exc


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def to_http_exception(exc: SchedulingError) -> HTTPException:
    status_code = SCHEDULING_ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=status_code, detail=str(exc))
