# ============================================================================
# FILE: appointly/api/dependencies.py
# Service wiring for the route handlers
# ============================================================================
from fastapi import Depends
from sqlalchemy.orm import Session

from appointly.config.database import get_db
from appointly.services.booking.booking_service import BookingService
from appointly.services.chat.booking_handler import ChatBookingHandler
from appointly.services.chat.session_store import ChatSessionStore
from appointly.services.notification.notification_service import NotificationService


def get_notifier() -> NotificationService:
    return NotificationService()


def get_booking_service(
        db: Session = Depends(get_db),
        notifier: NotificationService = Depends(get_notifier)
) -> BookingService:
    return BookingService(db, notifier=notifier)


def get_session_store() -> ChatSessionStore:
    return ChatSessionStore()


def get_chat_handler(
        booking_service: BookingService = Depends(get_booking_service),
        session_store: ChatSessionStore = Depends(get_session_store)
) -> ChatBookingHandler:
    return ChatBookingHandler(booking_service, session_store)
