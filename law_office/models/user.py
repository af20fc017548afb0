"""User model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from law_office.database import Base

ROLE_CLIENT = "client"
ROLE_ADMIN = "admin"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    role = Column(String, default=ROLE_CLIENT)  # client/admin
    phone = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now)

    appointments = relationship(
        "Appointment",
        back_populates="user",
        order_by="Appointment.date.desc()",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
