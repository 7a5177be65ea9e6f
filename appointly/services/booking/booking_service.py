# ============================================================================
# appointly/services/booking/booking_service.py
# The one booking entry point shared by the public API, chat and dashboard
# ============================================================================
"""
Booking orchestrator.

Read path: business settings -> slot generator -> conflict filter.
Write path: lock the settings row, check the time against the day's
schedule, re-check it with exact overlap, upsert the customer, insert the
appointment with its slot lock rows, commit, then hand off to the notifier.

Overlap is prevented in two layers. The settings lock serializes writers
for one business (SELECT ... FOR UPDATE on PostgreSQL, the database write
lock on SQLite) so the re-check sees every committed booking. Independent
of that, appointment_slot_locks holds one unique row per 5-minute bucket an
active appointment covers, so the store itself rejects an overlapping
insert on any backend.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Union
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from appointly.config.settings import Settings, get_settings
from appointly.core.exceptions import (
    BookingError,
    ConflictError,
    InputValidationError,
    NotFoundError,
    PersistenceError,
)
from appointly.models.appointment import Appointment
from appointly.models.business import Business
from appointly.models.service import Service
from appointly.schemas.booking import BookingData, BookingResult
from appointly.services.appointment.appointment_service import AppointmentService
from appointly.services.availability.availability_rules import SettingsSnapshot, is_date_available
from appointly.services.availability.calendar_arithmetic import format_time, parse_date, parse_time
from appointly.services.availability.conflict_filter import MODE_EXACT, filter_booked_slots
from appointly.services.availability.slot_generator import get_available_times
from appointly.services.business.business_service import BusinessService, CatalogService
from appointly.services.customer.customer_service import CustomerService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


class BookingService:
    """Availability queries and reservations for one database session"""

    def __init__(
            self,
            db: Session,
            notifier=None,
            clock: Optional[Clock] = None,
            app_settings: Optional[Settings] = None
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock or utc_clock
        self.settings = app_settings or get_settings()

    # ------------------------------------------------------------------ clocks

    def _business_now(self, business: Business) -> datetime:
        """Current naive wall-clock time in the business timezone"""
        current = self.clock()
        if current.tzinfo is None:
            return current

        tz_name = business.timezone or self.settings.DEFAULT_TIMEZONE
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone '{tz_name}' for business {business.id}, using {self.settings.DEFAULT_TIMEZONE}")
            tz = ZoneInfo(self.settings.DEFAULT_TIMEZONE)
        return current.astimezone(tz).replace(tzinfo=None)

    def _utc_now(self) -> datetime:
        """Naive UTC, used for confirmation token expiry"""
        current = self.clock()
        if current.tzinfo is None:
            return current
        return current.astimezone(timezone.utc).replace(tzinfo=None)

    # ---------------------------------------------------------------- read path

    def _read(self, fn, *args, **kwargs):
        """Run an idempotent read, retrying once on a dropped connection"""
        for attempt in (1, 2):
            try:
                return fn(*args, **kwargs)
            except OperationalError as e:
                self.db.rollback()
                if attempt == 2:
                    logger.error(f"Read failed twice in {fn.__name__}: {e}")
                    raise PersistenceError("The booking store is unavailable. Please try again later.")
                logger.warning(f"Read failed in {fn.__name__}, retrying once: {e}")

    def _load_snapshot(self, business_id: UUID, for_update: bool = False) -> SettingsSnapshot:
        row = self._read(BusinessService.require_settings, self.db, business_id, for_update=for_update)
        return SettingsSnapshot.from_model(row)

    def _free_slots(
            self,
            business_id: UUID,
            day: date,
            duration: int,
            snapshot: SettingsSnapshot,
            now: datetime,
            employee_id: Optional[UUID],
            mode: str
    ) -> List[str]:
        if day < now.date():
            return []

        candidates = get_available_times(
            day, duration, snapshot, now, lead_minutes=self.settings.SAME_DAY_LEAD_MINUTES
        )
        if not candidates:
            return []

        existing = self._read(
            AppointmentService.list_appointments_on_date, self.db, business_id, day, employee_id
        )
        return filter_booked_slots(day, candidates, duration, existing, employee_id, mode=mode)

    def get_available_dates(self, business_id: UUID, days: Optional[int] = None) -> List[str]:
        """Open, unblocked dates from today through the booking window"""
        business = self._read(BusinessService.get_business, self.db, business_id)
        snapshot = self._load_snapshot(business_id)
        today = self._business_now(business).date()

        window = days or self.settings.BOOKING_WINDOW_DAYS
        return [
            (today + timedelta(days=offset)).isoformat()
            for offset in range(window)
            if is_date_available(today + timedelta(days=offset), snapshot)
        ]

    def get_available_times(
            self,
            business_id: UUID,
            day: Union[str, date],
            service_id: UUID,
            employee_id: Optional[UUID] = None
    ) -> List[str]:
        day = parse_date(day)
        business = self._read(BusinessService.get_business, self.db, business_id)
        service = self._active_service(business_id, service_id)
        if employee_id:
            self._active_employee(business_id, employee_id)

        snapshot = self._load_snapshot(business_id)
        return self._free_slots(
            business_id,
            day,
            service.duration,
            snapshot,
            self._business_now(business),
            employee_id,
            self.settings.CONFLICT_CHECK_MODE,
        )

    def check_availability(
            self,
            business_id: UUID,
            day: Union[str, date],
            time_of_day: str,
            service_id: UUID,
            employee_id: Optional[UUID] = None
    ) -> bool:
        wanted = format_time(parse_time(time_of_day))
        return wanted in self.get_available_times(business_id, day, service_id, employee_id)

    # --------------------------------------------------------------- write path

    def create_appointment(self, booking_data: Union[BookingData, Dict]) -> BookingResult:
        """
        Book a slot.

        Returns success with the appointment id, or a failure carrying one
        error_code: invalid_input, not_configured, not_found, conflict or
        persistence_error. Notification problems never turn a booking into a
        failure.
        """
        try:
            booking = self._validate(booking_data)
            appointment, service, business = self._reserve(booking)
        except BookingError as e:
            logger.info(f"Booking rejected ({e.error_code}): {e.message}")
            return BookingResult(success=False, error=e.message, error_code=e.error_code)

        logger.info(
            f"Booked appointment {appointment.id} for business {business.id} "
            f"at {appointment.date.isoformat()} ({appointment.duration} min)"
        )
        self._notify(appointment, service, business)
        return BookingResult(success=True, appointment_id=str(appointment.id))

    @staticmethod
    def _validate(booking_data: Union[BookingData, Dict]) -> BookingData:
        if isinstance(booking_data, BookingData):
            return booking_data
        try:
            return BookingData.model_validate(booking_data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise InputValidationError(f"Invalid booking request: {problems}")

    def _reserve(self, booking: BookingData):
        business = self._read(BusinessService.get_business, self.db, booking.business_id)
        service = self._active_service(booking.business_id, booking.service_id)
        starts_at = datetime.combine(parse_date(booking.date), parse_time(booking.time))
        try:
            snapshot = self._load_snapshot(booking.business_id, for_update=True)
            employee_id = self._check_slot(booking, service, snapshot, self._business_now(business))
        except BookingError:
            # releases the settings lock
            self.db.rollback()
            raise

        try:
            customer = CustomerService.get_or_create(
                self.db, booking.name, booking.email, booking.phone
            )
            appointment = AppointmentService.insert_appointment(
                self.db,
                business_id=booking.business_id,
                service_id=service.id,
                employee_id=employee_id,
                customer_id=customer.id,
                name=booking.name,
                email=booking.email,
                phone=booking.phone,
                starts_at=starts_at,
                duration=service.duration,
                now=self._utc_now(),
                notes=booking.notes,
                booking_source=booking.booking_source,
                token_ttl_hours=self.settings.CONFIRMATION_TOKEN_TTL_HOURS,
            )
            self.db.commit()
        except BookingError:
            raise
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Commit rejected for business {booking.business_id} at {starts_at}: {e.orig}")
            raise ConflictError("That time slot was just booked. Please pick another time.")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save appointment for business {booking.business_id}: {e}")
            raise PersistenceError("Could not save the appointment. Please try again later.")

        self.db.refresh(appointment)
        return appointment, service, business

    def _check_slot(
            self,
            booking: BookingData,
            service: Service,
            snapshot: SettingsSnapshot,
            now: datetime
    ) -> Optional[UUID]:
        """
        Validate the requested start under the settings lock and pick the employee.

        A time that the day's schedule never offers (past, closed day, off
        the service grid, inside a break or the same-day lead) is invalid
        input. A schedulable time that is already taken is a conflict.
        """
        day = parse_date(booking.date)
        if datetime.combine(day, parse_time(booking.time)) < now:
            raise InputValidationError("Cannot book an appointment in the past")

        if not is_date_available(day, snapshot):
            raise InputValidationError(f"The business does not take bookings on {day.isoformat()}")

        schedule = get_available_times(
            day, service.duration, snapshot, now, lead_minutes=self.settings.SAME_DAY_LEAD_MINUTES
        )
        if booking.time not in schedule:
            raise InputValidationError(
                f"{booking.time} is not a bookable start time for {service.name} on {day.isoformat()}"
            )

        return self._resolve_employee(booking, day, service, snapshot, now)

    def _resolve_employee(
            self,
            booking: BookingData,
            day: date,
            service: Service,
            snapshot: SettingsSnapshot,
            now: datetime
    ) -> Optional[UUID]:
        """Requested employee if free, else the first free employee by name, else None"""
        def is_free(employee_id: Optional[UUID]) -> bool:
            free = self._free_slots(
                booking.business_id, day, service.duration, snapshot, now, employee_id, MODE_EXACT
            )
            return booking.time in free

        if booking.employee_id:
            self._active_employee(booking.business_id, booking.employee_id)
            if not is_free(booking.employee_id):
                raise ConflictError("That time is no longer available. Please pick another time.")
            return booking.employee_id

        employees = CatalogService.list_employees(self.db, booking.business_id)
        if not employees:
            if not is_free(None):
                raise ConflictError("That time is no longer available. Please pick another time.")
            return None

        for employee in employees:
            if is_free(employee.id):
                return employee.id

        raise ConflictError("No staff member is available at that time. Please pick another time.")

    def _active_service(self, business_id: UUID, service_id: UUID) -> Service:
        service = self._read(CatalogService.get_service, self.db, business_id, service_id)
        if not service.is_active:
            raise NotFoundError(f"Service {service_id} is no longer offered")
        return service

    def _active_employee(self, business_id: UUID, employee_id: UUID):
        employee = self._read(CatalogService.get_employee, self.db, business_id, employee_id)
        if not employee.is_active:
            raise NotFoundError(f"Employee {employee_id} is no longer available")
        return employee

    def _notify(self, appointment: Appointment, service: Service, business: Business) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.dispatch_booking_confirmation(appointment, service, business)
        except Exception as e:
            logger.error(f"Notification dispatch failed for appointment {appointment.id}: {e}")

    # ------------------------------------------------------------ status changes

    def confirm_appointment(self, token: str) -> Dict:
        if not token or not token.strip():
            raise InputValidationError("Confirmation token is required")

        appointment, already_confirmed = AppointmentService.confirm_by_token(
            self.db, token.strip(), self._utc_now()
        )
        return {
            "success": True,
            "already_confirmed": already_confirmed,
            "message": "Appointment already confirmed" if already_confirmed else "Appointment confirmed successfully!",
            "appointment": appointment.to_dict(),
        }

    def cancel_appointment(self, appointment_id: UUID, reason: Optional[str] = None) -> Appointment:
        return AppointmentService.cancel(self.db, appointment_id, reason)

    def update_status(self, appointment_id: UUID, status: str) -> Appointment:
        return AppointmentService.update_status(self.db, appointment_id, status)
