# ===== appointly/tasks/notification_tasks.py =====
from typing import Optional
import logging

from appointly.config.celery_config import celery_app
from appointly.services.email.email_service import EmailService
from appointly.services.sms.sms_service import SMSService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_appointment_confirmation_email(
        self,
        appointment_id: str,
        email: str,
        customer_name: str,
        business_name: str,
        service_name: str,
        appointment_date: str,
        appointment_time: str,
        duration_minutes: int,
        confirmation_link: Optional[str] = None,
        cancel_link: Optional[str] = None
):
    """
    Send the booking email with confirm / cancel links

    Args:
        appointment_id: Appointment the email is about (for logging)
        email: Customer's email address
        customer_name: Customer's name
        business_name: Name of the business
        service_name: Booked service
        appointment_date: Human readable date
        appointment_time: Human readable time
        duration_minutes: Appointment duration
        confirmation_link: Double opt-in link (optional)
        cancel_link: Self-service cancel link (optional)
    """
    try:
        logger.info(f"Sending appointment confirmation email for {appointment_id} to {email}")

        subject, html_content, plain_text = EmailService.build_appointment_confirmation(
            customer_name=customer_name,
            business_name=business_name,
            service_name=service_name,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            duration_minutes=duration_minutes,
            confirmation_link=confirmation_link,
            cancel_link=cancel_link,
        )
        EmailService.send_email(
            to_email=email,
            subject=subject,
            html_content=html_content,
            plain_text=plain_text
        )

        return {"status": "success", "appointment_id": appointment_id, "email": email}

    except Exception as exc:
        logger.error(f"Failed to send appointment confirmation email to {email}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )


@celery_app.task(bind=True, max_retries=3)
def send_appointment_confirmation_sms(
        self,
        appointment_id: str,
        phone: str,
        customer_name: str,
        service_name: str,
        appointment_date: str,
        appointment_time: str,
        confirmation_link: Optional[str] = None
):
    """Send the booking SMS"""
    try:
        logger.info(f"Sending appointment confirmation SMS for {appointment_id}")

        sms_service = SMSService()
        body = SMSService.build_appointment_confirmation(
            customer_name=customer_name,
            service_name=service_name,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            confirmation_link=confirmation_link,
        )
        sid = sms_service.send_sms(to_phone=phone, message_body=body)

        if sid is None:
            return {"status": "skipped", "appointment_id": appointment_id}
        return {"status": "success", "appointment_id": appointment_id, "message_sid": sid}

    except Exception as exc:
        logger.error(f"Failed to send appointment confirmation SMS for {appointment_id}: {exc}")

        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )
