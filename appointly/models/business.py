# appointly/models/business.py
"""
Business and BusinessSettings models.
BusinessSettings holds everything the availability engine reads for a business.
"""
from sqlalchemy import Column, String, Boolean, DateTime, JSON, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from appointly.models.base import Base

WEEKDAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

DEFAULT_WORKING_HOURS = [
    {"day": "Monday", "open": "09:00", "close": "17:00", "isClosed": False},
    {"day": "Tuesday", "open": "09:00", "close": "17:00", "isClosed": False},
    {"day": "Wednesday", "open": "09:00", "close": "17:00", "isClosed": False},
    {"day": "Thursday", "open": "09:00", "close": "17:00", "isClosed": False},
    {"day": "Friday", "open": "09:00", "close": "17:00", "isClosed": False},
    {"day": "Saturday", "open": "10:00", "close": "15:00", "isClosed": False},
    {"day": "Sunday", "open": "00:00", "close": "00:00", "isClosed": True},
]

DEFAULT_APPOINTMENT_DURATION = 30


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)

    # Appointment times are stored naive in this timezone
    timezone = Column(String(50), default="UTC")

    settings = relationship(
        "BusinessSettings", back_populates="business", uselist=False
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"


class BusinessSettings(Base):
    """One row per business: working hours, breaks and blocked dates"""
    __tablename__ = "business_settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid,
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # [{"day": "Monday", "open": "09:00", "close": "17:00", "isClosed": false}, ...]
    working_hours = Column(JSON, nullable=False, default=lambda: list(DEFAULT_WORKING_HOURS))
    # [{"start": "12:00", "end": "13:00"}], applied to every working day
    breaks = Column(JSON, nullable=False, default=list)
    # ["2025-12-25", ...]
    blocked_dates = Column(JSON, nullable=False, default=list)
    appointment_duration = Column(Integer, nullable=False, default=DEFAULT_APPOINTMENT_DURATION)

    business = relationship("Business", back_populates="settings")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<BusinessSettings(business_id={self.business_id})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "business_id": str(self.business_id),
            "working_hours": self.working_hours or [],
            "breaks": self.breaks or [],
            "blocked_dates": self.blocked_dates or [],
            "appointment_duration": self.appointment_duration,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
