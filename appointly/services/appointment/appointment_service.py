# ============================================================================
# appointly/services/appointment/appointment_service.py
# ============================================================================
"""Appointment store and reservation writer"""
import logging
import secrets
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from appointly.core.exceptions import (
    ConfirmationExpiredError,
    ConflictError,
    InvalidStatusTransitionError,
    NotFoundError,
    PersistenceError,
)
from appointly.models.appointment import (
    ACTIVE_STATUSES,
    Appointment,
    CONFIRMATION_CONFIRMED,
    CONFIRMATION_PENDING,
    STATUS_CANCELLED,
    STATUS_CONFIRMED,
    STATUS_SCHEDULED,
    STATUS_TRANSITIONS,
    AppointmentSlotLock,
    build_slot_lock_keys,
)

logger = logging.getLogger(__name__)

CONFIRMATION_TOKEN_TTL_HOURS = 48


def generate_confirmation_token() -> str:
    """64 hex characters"""
    return secrets.token_hex(32)


class AppointmentService:
    """Handles appointment reads, the reservation insert and status changes"""

    @staticmethod
    def list_appointments_on_date(
            db: Session,
            business_id: UUID,
            day: date,
            employee_id: Optional[UUID] = None,
            active_only: bool = True
    ) -> List[Appointment]:
        """Appointments starting on `day`, ordered by start time"""
        day_start = datetime.combine(day, datetime.min.time())
        day_end = day_start + timedelta(days=1)

        query = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.date >= day_start,
            Appointment.date < day_end,
        )
        if employee_id:
            query = query.filter(Appointment.employee_id == employee_id)
        if active_only:
            query = query.filter(Appointment.status.in_(ACTIVE_STATUSES))

        return query.order_by(Appointment.date.asc()).all()

    @staticmethod
    def list_appointments(
            db: Session,
            business_id: UUID,
            day: Optional[date] = None,
            status: Optional[str] = None,
            skip: int = 0,
            limit: int = 50
    ) -> List[Appointment]:
        query = db.query(Appointment).filter(Appointment.business_id == business_id)
        if day:
            day_start = datetime.combine(day, datetime.min.time())
            query = query.filter(
                Appointment.date >= day_start,
                Appointment.date < day_start + timedelta(days=1),
            )
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.date.asc()).offset(skip).limit(limit).all()

    @staticmethod
    def get_appointment(db: Session, appointment_id: UUID) -> Appointment:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    @staticmethod
    def insert_appointment(
            db: Session,
            *,
            business_id: UUID,
            service_id: UUID,
            employee_id: Optional[UUID],
            customer_id: UUID,
            name: str,
            email: str,
            phone: Optional[str],
            starts_at: datetime,
            duration: int,
            now: datetime,
            notes: Optional[str] = None,
            booking_source: str = "web",
            token_ttl_hours: int = CONFIRMATION_TOKEN_TTL_HOURS
    ) -> Appointment:
        """
        Insert a scheduled appointment and flush it.

        One AppointmentSlotLock row is written per 5-minute bucket the window
        covers. The unique lock_key rejects any second active appointment
        overlapping it for the same business/employee, whatever its start
        time; that IntegrityError surfaces as ConflictError. The caller commits.
        """
        appointment = Appointment(
            business_id=business_id,
            service_id=service_id,
            employee_id=employee_id,
            customer_id=customer_id,
            name=name,
            email=email,
            phone=phone,
            date=starts_at,
            duration=duration,
            notes=notes,
            status=STATUS_SCHEDULED,
            booking_source=booking_source,
            confirmation_status=CONFIRMATION_PENDING,
            confirmation_token=generate_confirmation_token(),
            confirmation_token_expires=now + timedelta(hours=token_ttl_hours),
            reminder_sent=False,
        )
        appointment.slot_locks = [
            AppointmentSlotLock(lock_key=key)
            for key in build_slot_lock_keys(business_id, employee_id, starts_at, duration)
        ]

        db.add(appointment)
        try:
            db.flush()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Slot already taken for business {business_id} at {starts_at}: {e.orig}")
            raise ConflictError("That time slot was just booked. Please pick another time.")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to insert appointment for business {business_id}: {e}")
            raise PersistenceError("Could not save the appointment. Please try again later.")

        return appointment

    @staticmethod
    def transition_status(appointment: Appointment, new_status: str, now: Optional[datetime] = None) -> Appointment:
        """Apply a forward status move in memory; terminal states accept nothing"""
        allowed = STATUS_TRANSITIONS.get(appointment.status, ())
        if new_status not in allowed:
            raise InvalidStatusTransitionError(appointment.status, new_status)

        appointment.status = new_status
        if new_status not in ACTIVE_STATUSES:
            # frees the window for new bookings
            appointment.slot_locks = []
        if new_status == STATUS_CANCELLED:
            appointment.cancelled_at = now or datetime.now(timezone.utc)
        if new_status == STATUS_CONFIRMED:
            # token kept so a repeated click reports "already confirmed"
            appointment.confirmation_status = CONFIRMATION_CONFIRMED
            appointment.confirmation_token_expires = None
        return appointment

    @staticmethod
    def update_status(db: Session, appointment_id: UUID, new_status: str) -> Appointment:
        appointment = AppointmentService.get_appointment(db, appointment_id)
        previous = appointment.status
        AppointmentService.transition_status(appointment, new_status)
        AppointmentService._commit(db, appointment)

        logger.info(f"Appointment {appointment_id}: {previous} -> {new_status}")
        return appointment

    @staticmethod
    def cancel(db: Session, appointment_id: UUID, reason: Optional[str] = None) -> Appointment:
        """Cancellation is a status change; rows are never deleted"""
        appointment = AppointmentService.get_appointment(db, appointment_id)
        AppointmentService.transition_status(appointment, STATUS_CANCELLED)
        appointment.cancellation_reason = reason
        AppointmentService._commit(db, appointment)

        logger.info(f"Appointment {appointment_id} cancelled")
        return appointment

    @staticmethod
    def confirm_by_token(db: Session, token: str, now: datetime) -> Tuple[Appointment, bool]:
        """
        Redeem a double opt-in token.

        Returns (appointment, already_confirmed).
        """
        appointment = db.query(Appointment).filter(
            Appointment.confirmation_token == token
        ).first()
        if not appointment:
            raise NotFoundError("Invalid or expired confirmation token")

        if appointment.confirmation_status == CONFIRMATION_CONFIRMED:
            return appointment, True

        if appointment.confirmation_token_expires and appointment.confirmation_token_expires < now:
            raise ConfirmationExpiredError(
                "Confirmation token has expired. Please contact the business to reschedule."
            )

        AppointmentService.transition_status(appointment, STATUS_CONFIRMED)
        AppointmentService._commit(db, appointment)

        logger.info(f"Appointment {appointment.id} confirmed by customer")
        return appointment, False

    @staticmethod
    def expire_confirmation_tokens(db: Session, now: datetime) -> int:
        """Clear opt-in tokens that expired unredeemed; the appointments stay"""
        expired = db.query(Appointment).filter(
            Appointment.confirmation_status == CONFIRMATION_PENDING,
            Appointment.confirmation_token.isnot(None),
            Appointment.confirmation_token_expires < now,
        ).all()

        for appointment in expired:
            appointment.confirmation_token = None
            appointment.confirmation_token_expires = None

        if expired:
            db.commit()
        return len(expired)

    @staticmethod
    def _commit(db: Session, appointment: Appointment) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to update appointment {appointment.id}: {e}")
            raise PersistenceError("Could not update the appointment. Please try again later.")
        db.refresh(appointment)
