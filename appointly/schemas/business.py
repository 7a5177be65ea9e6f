"""
Pydantic schemas for business settings, services and employees
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from appointly.models.business import WEEKDAY_NAMES
from appointly.services.availability.calendar_arithmetic import to_minutes


# ============================================================================
# Business settings
# ============================================================================

class WorkingHoursEntry(BaseModel):
    """Opening hours for one weekday"""
    model_config = ConfigDict(populate_by_name=True)

    day: str
    open: str = "09:00"
    close: str = "17:00"
    is_closed: bool = Field(False, alias="isClosed")

    @field_validator("day")
    @classmethod
    def validate_day(cls, v):
        normalized = v.strip().capitalize()
        if normalized not in WEEKDAY_NAMES:
            raise ValueError(f"day must be one of {', '.join(WEEKDAY_NAMES)}")
        return normalized

    @field_validator("open", "close")
    @classmethod
    def validate_time(cls, v):
        to_minutes(v)
        return v

    @model_validator(mode="after")
    def validate_window(self):
        if not self.is_closed and to_minutes(self.open) >= to_minutes(self.close):
            raise ValueError(f"{self.day}: open must be earlier than close")
        return self

    def to_storage(self) -> dict:
        return {"day": self.day, "open": self.open, "close": self.close, "isClosed": self.is_closed}


class BreakEntry(BaseModel):
    """Daily recurring break"""
    start: str
    end: str

    @model_validator(mode="after")
    def validate_window(self):
        if to_minutes(self.start) >= to_minutes(self.end):
            raise ValueError("break start must be earlier than end")
        return self


class BusinessSettingsUpdate(BaseModel):
    """
    Schema for updating booking settings.
    All fields are optional - only send what you want to update.
    """
    working_hours: Optional[List[WorkingHoursEntry]] = None
    breaks: Optional[List[BreakEntry]] = None
    blocked_dates: Optional[List[date]] = None
    appointment_duration: Optional[int] = Field(None, gt=0, le=24 * 60)

    @field_validator("working_hours")
    @classmethod
    def validate_week(cls, v):
        """Exactly one entry per weekday"""
        if v is None:
            return v
        days = [entry.day for entry in v]
        if len(days) != len(set(days)) or set(days) != set(WEEKDAY_NAMES):
            raise ValueError("working_hours must contain exactly one entry per weekday")
        return sorted(v, key=lambda entry: WEEKDAY_NAMES.index(entry.day))


class BusinessSettingsResponse(BaseModel):
    business_id: str
    working_hours: List[dict]
    breaks: List[dict]
    blocked_dates: List[str]
    appointment_duration: int
    updated_at: Optional[str] = None


# ============================================================================
# Services & employees
# ============================================================================

class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    duration: int = Field(..., gt=0, le=24 * 60, description="Duration in minutes")
    price: Decimal = Field(Decimal("0"), ge=0)


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    price: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    role: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    role: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
