# ============================================================================
# FILE: appointly/api/v1/public/booking.py
# Customer-facing availability and booking endpoints - thin HTTP layer
# ============================================================================
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse

from appointly.api.dependencies import get_booking_service
from appointly.core.middleware import status_code_for_code
from appointly.schemas.booking import (
    AvailabilityCheckResponse,
    AvailableDatesResponse,
    AvailableTimesResponse,
    BookingData,
    BookingResult,
    CancelRequest,
)
from appointly.services.booking.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# Availability
# ============================================================================

@router.get("/businesses/{business_id}/available-dates", response_model=AvailableDatesResponse)
def available_dates(
        business_id: UUID = Path(..., description="The business ID"),
        days: Optional[int] = Query(None, ge=1, le=365, description="Days ahead to include"),
        booking_service: BookingService = Depends(get_booking_service)
):
    """Dates in the booking window on which the business is open"""
    dates = booking_service.get_available_dates(business_id, days)
    return AvailableDatesResponse(business_id=str(business_id), dates=dates)


@router.get("/businesses/{business_id}/available-times", response_model=AvailableTimesResponse)
def available_times(
        business_id: UUID = Path(..., description="The business ID"),
        day: date = Query(..., alias="date", description="YYYY-MM-DD"),
        service_id: UUID = Query(..., description="Service to book"),
        employee_id: Optional[UUID] = Query(None, description="Restrict to one staff member"),
        booking_service: BookingService = Depends(get_booking_service)
):
    """Free start times (HH:MM) for a service on one date"""
    times = booking_service.get_available_times(business_id, day, service_id, employee_id)
    return AvailableTimesResponse(
        business_id=str(business_id),
        date=day.isoformat(),
        service_id=str(service_id),
        employee_id=str(employee_id) if employee_id else None,
        times=times,
    )


@router.get("/businesses/{business_id}/availability", response_model=AvailabilityCheckResponse)
def check_availability(
        business_id: UUID = Path(..., description="The business ID"),
        day: date = Query(..., alias="date", description="YYYY-MM-DD"),
        time_of_day: str = Query(..., alias="time", description="HH:MM"),
        service_id: UUID = Query(...),
        employee_id: Optional[UUID] = Query(None),
        booking_service: BookingService = Depends(get_booking_service)
):
    available = booking_service.check_availability(business_id, day, time_of_day, service_id, employee_id)
    return AvailabilityCheckResponse(
        business_id=str(business_id),
        date=day.isoformat(),
        time=time_of_day,
        available=available,
    )


# ============================================================================
# Appointments
# ============================================================================

@router.post("/appointments", response_model=BookingResult, status_code=201)
def create_appointment(
        booking_data: BookingData,
        booking_service: BookingService = Depends(get_booking_service)
):
    """
    Book an appointment.
    On failure the body still carries success=false with an error_code.
    """
    result = booking_service.create_appointment(booking_data)
    if not result.success:
        return JSONResponse(
            status_code=status_code_for_code(result.error_code),
            content=result.model_dump(),
        )
    return result


@router.get("/appointments/confirm")
def confirm_appointment(
        token: str = Query(..., min_length=1, description="Token from the confirmation email"),
        booking_service: BookingService = Depends(get_booking_service)
):
    """Double opt-in link target"""
    return booking_service.confirm_appointment(token)


@router.post("/appointments/{appointment_id}/cancel")
def cancel_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        cancel_request: Optional[CancelRequest] = None,
        booking_service: BookingService = Depends(get_booking_service)
):
    reason = cancel_request.reason if cancel_request else None
    appointment = booking_service.cancel_appointment(appointment_id, reason)
    return {
        "success": True,
        "message": "Appointment cancelled",
        "appointment": appointment.to_dict(),
    }
