import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from law_office.auth import jwt_handler
from law_office.auth.dependencies import get_current_user, require_admin
from law_office.auth.passwords import hash_password, is_strong_password, verify_password
from law_office.core import config
from law_office.database import get_db
from law_office.models.user import ROLE_ADMIN, ROLE_CLIENT, User
from law_office.routes import common
from law_office.routes.appointment_routes import AppointmentResponse

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger('law_office.audit')

PASSWORD_RULES_DETAIL = (
    'Password must be at least 8 characters and contain uppercase, lowercase, numbers and special characters'
)


def _normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized or '@' not in normalized:
        raise ValueError('A valid email is required.')
    return normalized


def _normalize_optional(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str
    phone: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Full name is required.')
        return normalized

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        return _normalize_optional(value)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return value.strip().lower()


class UpdateProfileRequest(BaseModel):
    email: str | None = None
    full_name: str | None = None
    phone: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_email(value)

    @field_validator('full_name', 'phone')
    @classmethod
    def validate_optional_text(cls, value: str | None) -> str | None:
        return _normalize_optional(value)


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: str
    phone: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class ProfileResponse(UserResponse):
    appointments: list[AppointmentResponse] = []


class AuthResponse(ProfileResponse):
    token: str


def issue_auth_response(user: User) -> AuthResponse:
    token = jwt_handler.create_access_token(subject=str(user.id), role=user.role)
    profile = ProfileResponse.model_validate(user)
    return AuthResponse(**profile.model_dump(), token=token)


@router.post('/register', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    if not is_strong_password(data.password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PASSWORD_RULES_DETAIL)

    common.ensure_database_ready()

    try:
        if db.query(User).filter(User.email == data.email).first():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='User already exists')

        now = datetime.now()
        user = User(
            email=data.email,
            hashed_password=hash_password(data.password),
            full_name=data.full_name,
            phone=data.phone,
            role=ROLE_ADMIN if data.email == config.ADMIN_EMAIL else ROLE_CLIENT,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='User already exists') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Registration failed for %s', data.email)
        raise common.database_unavailable() from exc

    audit_logger.info('user %s registered as %s', user.id, user.role)
    return issue_auth_response(user)


@router.post('/login', response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    common.ensure_database_ready()

    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc

    if user is None or not verify_password(data.password, user.hashed_password):
        logger.info('Rejected login for %s', data.email)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid credentials')

    return issue_auth_response(user)


@router.get('/profile', response_model=ProfileResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch('/profile', response_model=ProfileResponse)
def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    common.ensure_database_ready()

    try:
        if data.email and data.email != current_user.email:
            existing_user = db.query(User).filter(
                User.email == data.email,
                User.id != current_user.id,
            ).first()
            if existing_user:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Email already in use')
            current_user.email = data.email

        if data.full_name is not None:
            current_user.full_name = data.full_name
        if 'phone' in data.model_fields_set:
            current_user.phone = data.phone

        current_user.updated_at = datetime.now()
        db.commit()
        db.refresh(current_user)
        return current_user
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Profile update failed for user %s', current_user.id)
        raise common.database_unavailable() from exc


@router.get('/clients', response_model=list[ProfileResponse])
def list_clients(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    del current_user
    common.ensure_database_ready()

    try:
        return db.query(User).filter(User.role == ROLE_CLIENT).order_by(User.full_name.asc()).all()
    except SQLAlchemyError as exc:
        raise common.database_unavailable() from exc
