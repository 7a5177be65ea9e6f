"""
Pydantic schemas for booking requests and results
"""
from typing import List, Optional, Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from appointly.models.appointment import APPOINTMENT_STATUSES
from appointly.services.availability.calendar_arithmetic import format_time, parse_date, parse_time


class BookingData(BaseModel):
    """Structured booking request consumed by BookingService.create_appointment"""
    business_id: UUID
    service_id: UUID
    employee_id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    date: str = Field(..., description="YYYY-MM-DD, business local date")
    time: str = Field(..., description="HH:MM, business local time")
    notes: Optional[str] = None
    booking_source: Literal["web", "chat", "dashboard"] = "web"

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        return parse_date(v).isoformat()

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return format_time(parse_time(v))

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if not v.strip():
            raise ValueError("name cannot be blank")
        return v.strip()


class BookingResult(BaseModel):
    """Outcome of a booking attempt: an appointment id or one actionable reason"""
    success: bool
    appointment_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class StatusUpdateRequest(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in APPOINTMENT_STATUSES:
            raise ValueError(f"status must be one of {', '.join(APPOINTMENT_STATUSES)}")
        return v


class AvailableDatesResponse(BaseModel):
    business_id: str
    dates: List[str]


class AvailableTimesResponse(BaseModel):
    business_id: str
    date: str
    service_id: str
    employee_id: Optional[str] = None
    times: List[str]


class AvailabilityCheckResponse(BaseModel):
    business_id: str
    date: str
    time: str
    available: bool
