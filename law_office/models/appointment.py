"""Appointment model definitions."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Time
from sqlalchemy.orm import relationship

from law_office.database import Base
from law_office.scheduling.status import AppointmentStatus


class CaseType(str, Enum):
    """Category of legal matter an appointment is booked for."""

    CORPORATE = "corporate"
    FAMILY = "family"
    CIVIL = "civil"
    CRIMINAL = "criminal"
    REAL_ESTATE = "real_estate"
    INTELLECTUAL_PROPERTY = "intellectual_property"


class Appointment(Base):
    """Represents a booked consultation."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    case_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now)

    user = relationship("User", back_populates="appointments")
