# appointly/services/notification/notification_service.py
"""Hands booking notifications to Celery after the appointment is committed"""
import logging
from typing import Optional

from appointly.config.settings import get_settings
from appointly.models.appointment import Appointment
from appointly.models.business import Business
from appointly.models.service import Service

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Fire-and-forget dispatcher.

    Each channel is enqueued separately; a broker failure on one channel is
    logged and does not stop the other or the booking.
    """

    def __init__(self, email_task=None, sms_task=None, frontend_url: Optional[str] = None):
        if email_task is None or sms_task is None:
            from appointly.tasks.notification_tasks import (
                send_appointment_confirmation_email,
                send_appointment_confirmation_sms,
            )
            email_task = email_task or send_appointment_confirmation_email
            sms_task = sms_task or send_appointment_confirmation_sms

        self.email_task = email_task
        self.sms_task = sms_task
        self.frontend_url = (frontend_url or get_settings().FRONTEND_URL).rstrip("/")

    def confirmation_link(self, appointment: Appointment) -> Optional[str]:
        if not appointment.confirmation_token:
            return None
        return f"{self.frontend_url}/confirm-appointment?token={appointment.confirmation_token}"

    def cancel_link(self, appointment: Appointment) -> str:
        return f"{self.frontend_url}/cancel/{appointment.id}"

    def dispatch_booking_confirmation(
            self,
            appointment: Appointment,
            service: Service,
            business: Business
    ) -> None:
        appointment_date = appointment.date.strftime("%A, %B %d, %Y")
        appointment_time = appointment.date.strftime("%I:%M %p")
        confirmation_link = self.confirmation_link(appointment)

        try:
            self.email_task.delay(
                appointment_id=str(appointment.id),
                email=appointment.email,
                customer_name=appointment.name,
                business_name=business.name or "Our Business",
                service_name=service.name,
                appointment_date=appointment_date,
                appointment_time=appointment_time,
                duration_minutes=appointment.duration,
                confirmation_link=confirmation_link,
                cancel_link=self.cancel_link(appointment),
            )
        except Exception as e:
            logger.error(f"Could not enqueue confirmation email for appointment {appointment.id}: {e}")

        if not appointment.phone:
            return

        try:
            self.sms_task.delay(
                appointment_id=str(appointment.id),
                phone=appointment.phone,
                customer_name=appointment.name,
                service_name=service.name,
                appointment_date=appointment_date,
                appointment_time=appointment_time,
                confirmation_link=confirmation_link,
            )
        except Exception as e:
            logger.error(f"Could not enqueue confirmation SMS for appointment {appointment.id}: {e}")
