# ============================================================================
# appointly/services/chat/booking_handler.py
# ============================================================================
"""
Chat booking flow.

Each message contributes fields to the session state; once everything the
booking needs is known the handler books through BookingService, the same
path the web form uses.
"""
import logging
from typing import Any, Dict, List, Optional, Protocol
from uuid import UUID

from appointly.core.exceptions import BookingError
from appointly.schemas.chat import ChatReply
from appointly.services.booking.booking_service import BookingService
from appointly.services.chat.session_store import ChatSessionStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("service_id", "date", "time", "name", "email")
OPTIONAL_FIELDS = ("employee_id", "phone", "notes")
BOOKING_FIELDS = REQUIRED_FIELDS + OPTIONAL_FIELDS


class BookingExtractor(Protocol):
    def extract(self, message: Optional[str], state: Dict[str, Any]) -> Dict[str, Any]:
        ...


class StructuredFieldExtractor:
    """Takes fields the client already extracted and keeps the booking ones"""

    def __init__(self, fields: Optional[Dict[str, Any]] = None):
        self.fields = fields or {}

    def extract(self, message: Optional[str], state: Dict[str, Any]) -> Dict[str, Any]:
        extracted = {}
        for name in BOOKING_FIELDS:
            value = self.fields.get(name)
            if value is None:
                continue
            value = str(value).strip()
            if name == "email":
                value = value.lower()
            if value:
                extracted[name] = value
        return extracted


class ChatBookingHandler:
    """Drives one booking conversation step per message"""

    def __init__(self, booking_service: BookingService, session_store: ChatSessionStore):
        self.booking_service = booking_service
        self.session_store = session_store

    @staticmethod
    def missing_fields(state: Dict[str, Any]) -> List[str]:
        return [name for name in REQUIRED_FIELDS if not state.get(name)]

    async def handle(
            self,
            session_id: str,
            business_id: UUID,
            message: Optional[str] = None,
            fields: Optional[Dict[str, Any]] = None,
            extractor: Optional[BookingExtractor] = None
    ) -> ChatReply:
        extractor = extractor or StructuredFieldExtractor(fields)
        current = await self.session_store.get(session_id)
        state = await self.session_store.merge(session_id, extractor.extract(message, current))
        missing = self.missing_fields(state)

        reply = ChatReply(session_id=session_id, state=state, missing_fields=missing)

        if missing:
            if "date" not in missing and "service_id" not in missing:
                try:
                    reply.available_times = self.booking_service.get_available_times(
                        business_id,
                        state["date"],
                        UUID(state["service_id"]),
                        UUID(state["employee_id"]) if state.get("employee_id") else None,
                    )
                except BookingError as e:
                    reply.error = e.message
                    reply.error_code = e.error_code
                except ValueError as e:
                    reply.error = f"Invalid booking details: {e}"
                    reply.error_code = "invalid_input"
            return reply

        result = self.booking_service.create_appointment({
            "business_id": str(business_id),
            "service_id": state["service_id"],
            "employee_id": state.get("employee_id"),
            "name": state["name"],
            "email": state["email"],
            "phone": state.get("phone"),
            "date": state["date"],
            "time": state["time"],
            "notes": state.get("notes"),
            "booking_source": "chat",
        })

        if not result.success:
            logger.info(f"Chat booking for session {session_id} failed: {result.error_code}")
            reply.error = result.error
            reply.error_code = result.error_code
            return reply

        await self.session_store.clear(session_id)
        reply.state = {}
        reply.booked = True
        reply.appointment_id = result.appointment_id
        return reply
