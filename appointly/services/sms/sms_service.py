# ============================================================================
# appointly/services/sms/sms_service.py
# ============================================================================
"""Service for SMS operations"""
import logging
from typing import Optional

from twilio.rest import Client

from appointly.config.settings import get_settings

logger = logging.getLogger(__name__)


class SMSService:
    """Handles SMS sending operations"""

    def __init__(self, client: Optional[Client] = None):
        settings = get_settings()
        self.from_phone = settings.TWILIO_FROM_NUMBER
        if client is not None:
            self.client = client
        elif settings.TWILIO_ACCOUNT_SID:
            self.client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        else:
            self.client = None

    @property
    def enabled(self) -> bool:
        return self.client is not None and bool(self.from_phone)

    def send_sms(self, to_phone: str, message_body: str) -> Optional[str]:
        """
        Send SMS message via Twilio.

        Returns the message SID, or None when Twilio is not configured.
        TwilioException propagates so the calling task can retry.
        """
        if not self.enabled:
            logger.warning("Twilio not configured, skipping SMS")
            return None

        message = self.client.messages.create(
            to=to_phone,
            from_=self.from_phone,
            body=message_body
        )
        logger.info(f"SMS sent successfully to {to_phone}: {message.sid}")
        return message.sid

    @staticmethod
    def build_appointment_confirmation(
            customer_name: str,
            service_name: str,
            appointment_date: str,
            appointment_time: str,
            confirmation_link: Optional[str] = None
    ) -> str:
        body = (
            f"Hi {customer_name}! Your {service_name} appointment is booked for "
            f"{appointment_date} at {appointment_time}."
        )
        if confirmation_link:
            body += f" Confirm here: {confirmation_link}"
        return body
