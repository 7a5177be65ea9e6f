# ============================================================================
# FILE: appointly/api/v1/public/chat.py
# Chat assistant booking endpoint
# ============================================================================
from fastapi import APIRouter, Depends, Path

from appointly.api.dependencies import get_chat_handler
from appointly.schemas.chat import ChatMessageRequest, ChatReply
from appointly.services.chat.booking_handler import ChatBookingHandler

router = APIRouter()


@router.post("/chat/{session_id}/messages", response_model=ChatReply)
async def post_chat_message(
        payload: ChatMessageRequest,
        session_id: str = Path(..., min_length=1, max_length=128),
        handler: ChatBookingHandler = Depends(get_chat_handler)
):
    """
    Feed one chat turn into the booking flow.
    The reply lists what is still missing, offers times once date and
    service are known, and carries the appointment id once booked.
    """
    return await handler.handle(
        session_id=session_id,
        business_id=payload.business_id,
        message=payload.message,
        fields=payload.fields,
    )
