"""
Schemas for the chat booking endpoint.
Field extraction happens upstream (form, regex or LLM); this endpoint only
receives what was extracted.
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ChatMessageRequest(BaseModel):
    business_id: UUID
    message: Optional[str] = None
    fields: Dict[str, Any] = Field(default_factory=dict)


class ChatReply(BaseModel):
    session_id: str
    state: Dict[str, Any]
    missing_fields: List[str] = Field(default_factory=list)
    available_times: Optional[List[str]] = None
    booked: bool = False
    appointment_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
