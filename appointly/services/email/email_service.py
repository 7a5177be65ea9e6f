# ===== appointly/services/email/email_service.py =====
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List, Optional
import logging

from appointly.config.settings import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=30)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=30)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None,
            cc: Optional[List[str]] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)
            cc: List of CC email addresses

        Returns:
            bool: True once the SMTP server accepted the message

        Raises:
            smtplib.SMTPException / OSError when delivery fails, so the
            calling task can retry.
        """
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
        msg['To'] = to_email

        recipients = [to_email]
        if cc:
            msg['Cc'] = ', '.join(cc)
            recipients.extend(cc)

        if plain_text:
            msg.attach(MIMEText(plain_text, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))

        try:
            server = EmailService._get_smtp_connection()
            try:
                server.sendmail(settings.EMAIL_FROM_ADDRESS, recipients, msg.as_string())
            finally:
                server.quit()
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise

        logger.info(f"Email sent successfully to {to_email}")
        return True

    @staticmethod
    def build_appointment_confirmation(
            customer_name: str,
            business_name: str,
            service_name: str,
            appointment_date: str,
            appointment_time: str,
            duration_minutes: int,
            confirmation_link: Optional[str] = None,
            cancel_link: Optional[str] = None
    ) -> tuple:
        """Return (subject, html, plain_text) for a new booking"""
        confirm_block = ""
        if confirmation_link:
            confirm_block = f"""
                <p style="font-size: 16px; color: #555;">
                    Please confirm your appointment within 48 hours:
                </p>
                <div style="text-align: center; margin: 30px 0;">
                    <a href="{confirmation_link}"
                       style="background: #43a047; color: white; padding: 14px 40px;
                              text-decoration: none; border-radius: 5px; font-weight: bold;
                              display: inline-block; font-size: 16px;">
                        Confirm Appointment
                    </a>
                </div>"""

        cancel_block = ""
        if cancel_link:
            cancel_block = f"""
                <p style="font-size: 14px; color: #777;">
                    Can't make it? <a href="{cancel_link}" style="color: #e53935;">Cancel your appointment</a>.
                </p>"""

        html_content = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background: linear-gradient(135deg, #43e97b 0%, #38f9d7 100%); padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
                <h1 style="color: white; margin: 0; font-size: 28px;">Appointment Booked</h1>
            </div>

            <div style="background-color: #ffffff; padding: 30px; border: 1px solid #e0e0e0; border-top: none; border-radius: 0 0 10px 10px;">
                <h2 style="color: #333; margin-top: 0;">Hi {customer_name},</h2>

                <p style="font-size: 16px; color: #555;">
                    Your appointment with <strong>{business_name}</strong> is booked.
                </p>

                <table style="width: 100%; border-collapse: collapse; background-color: #f8f9fa; border-radius: 8px;">
                    <tr>
                        <td style="padding: 8px 12px; color: #666; font-weight: bold;">Service:</td>
                        <td style="padding: 8px 12px; color: #333;">{service_name}</td>
                    </tr>
                    <tr>
                        <td style="padding: 8px 12px; color: #666; font-weight: bold;">Date:</td>
                        <td style="padding: 8px 12px; color: #333;">{appointment_date}</td>
                    </tr>
                    <tr>
                        <td style="padding: 8px 12px; color: #666; font-weight: bold;">Time:</td>
                        <td style="padding: 8px 12px; color: #333;">{appointment_time}</td>
                    </tr>
                    <tr>
                        <td style="padding: 8px 12px; color: #666; font-weight: bold;">Duration:</td>
                        <td style="padding: 8px 12px; color: #333;">{duration_minutes} minutes</td>
                    </tr>
                </table>
                {confirm_block}
                {cancel_block}
                <hr style="border: none; border-top: 1px solid #e0e0e0; margin: 30px 0;">

                <p style="font-size: 12px; color: #999; margin: 0;">
                    This is an automated message. Please don't reply to this email.
                </p>
            </div>
        </body>
        </html>
        """

        plain_lines = [
            f"Hi {customer_name},",
            "",
            f"Your appointment with {business_name} is booked.",
            "",
            f"- Service: {service_name}",
            f"- Date: {appointment_date}",
            f"- Time: {appointment_time}",
            f"- Duration: {duration_minutes} minutes",
        ]
        if confirmation_link:
            plain_lines += ["", f"Confirm within 48 hours: {confirmation_link}"]
        if cancel_link:
            plain_lines += [f"Cancel: {cancel_link}"]

        subject = f"Appointment Booked - {business_name}"
        return subject, html_content, "\n".join(plain_lines)
