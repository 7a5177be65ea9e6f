# appointly/models/appointment.py
from datetime import timedelta

from sqlalchemy import Column, String, Integer, Text, DateTime, Boolean, ForeignKey, Uuid, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from appointly.models.base import Base

STATUS_SCHEDULED = "scheduled"
STATUS_CONFIRMED = "confirmed"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"
STATUS_NO_SHOW = "no-show"

APPOINTMENT_STATUSES = (
    STATUS_SCHEDULED,
    STATUS_CONFIRMED,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
    STATUS_NO_SHOW,
)

# Appointments in these states occupy their time window
ACTIVE_STATUSES = (STATUS_SCHEDULED, STATUS_CONFIRMED, STATUS_COMPLETED)

# Allowed forward moves; anything missing here is terminal
STATUS_TRANSITIONS = {
    STATUS_SCHEDULED: (STATUS_CONFIRMED, STATUS_CANCELLED),
    STATUS_CONFIRMED: (STATUS_COMPLETED, STATUS_CANCELLED, STATUS_NO_SHOW),
}

CONFIRMATION_PENDING = "pending"
CONFIRMATION_CONFIRMED = "confirmed"

SLOT_LOCK_MINUTES = 5


def build_slot_lock_keys(business_id, employee_id, starts_at, duration: int) -> list:
    """
    One key per SLOT_LOCK_MINUTES bucket touched by [starts_at, starts_at + duration).

    Two windows that overlap share at least one minute and therefore one
    bucket, so the unique lock_key column rejects the second insert.
    Windows whose edges fall off the 5-minute grid may also collide when
    they only share a bucket.
    """
    employee_part = str(employee_id) if employee_id else "any"
    ends_at = starts_at + timedelta(minutes=duration)
    bucket = starts_at.replace(
        minute=starts_at.minute - starts_at.minute % SLOT_LOCK_MINUTES, second=0, microsecond=0
    )

    keys = []
    while bucket < ends_at:
        keys.append(f"{business_id}:{employee_part}:{bucket.strftime('%Y-%m-%dT%H:%M')}")
        bucket += timedelta(minutes=SLOT_LOCK_MINUTES)
    return keys


class AppointmentSlotLock(Base):
    """Held while the owning appointment is active; deleted on cancel / no-show"""
    __tablename__ = "appointment_slot_locks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    appointment_id = Column(
        Uuid, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    lock_key = Column(String(120), nullable=False, unique=True)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_business_date", "business_id", "date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(Uuid, ForeignKey("businesses.id"), nullable=False)
    service_id = Column(Uuid, ForeignKey("services.id"), nullable=False)
    employee_id = Column(Uuid, ForeignKey("employees.id"), nullable=True, index=True)
    customer_id = Column(Uuid, ForeignKey("customers.id"), nullable=False)

    # Customer info as entered at booking time
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)

    # Naive local business time
    date = Column(DateTime(timezone=False), nullable=False)
    # Copied from the service when booked
    duration = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)

    # Status tracking: scheduled, confirmed, completed, cancelled, no-show
    status = Column(String(20), nullable=False, default=STATUS_SCHEDULED)
    booking_source = Column(String(20), default="web")  # web, chat, dashboard

    # Present while active, emptied once cancelled / no-show
    slot_locks = relationship("AppointmentSlotLock", cascade="all, delete-orphan")

    # Double opt-in confirmation
    confirmation_status = Column(String(20), default=CONFIRMATION_PENDING)
    confirmation_token = Column(String(64), nullable=True, unique=True)
    confirmation_token_expires = Column(DateTime(timezone=False), nullable=True)

    reminder_sent = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Appointment(id={self.id}, date={self.date}, status={self.status})>"

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def to_dict(self):
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "service_id": str(self.service_id),
            "employee_id": str(self.employee_id) if self.employee_id else None,
            "customer_id": str(self.customer_id),
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "date": self.date.isoformat(),
            "duration": self.duration,
            "status": self.status,
            "confirmation_status": self.confirmation_status,
            "booking_source": self.booking_source,
            "reminder_sent": self.reminder_sent,
            "notes": self.notes,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancellation_reason": self.cancellation_reason,
        }
