# ============================================================================
# FILE: appointly/api/v1/dashboard/appointments.py
# Appointment list and status changes - thin HTTP layer
# ============================================================================
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from appointly.api.dependencies import get_booking_service
from appointly.config.database import get_db
from appointly.schemas.booking import StatusUpdateRequest
from appointly.services.appointment.appointment_service import AppointmentService
from appointly.services.booking.booking_service import BookingService
from appointly.services.business.business_service import BusinessService

business_router = APIRouter()
router = APIRouter(prefix="/appointments")


@business_router.get("/{business_id}/appointments")
def list_appointments(
        business_id: UUID = Path(..., description="The business ID"),
        day: Optional[date] = Query(None, alias="date", description="Only appointments on this date"),
        status: Optional[str] = Query(None,
                                      description="Filter by status (scheduled, confirmed, completed, cancelled, no-show)"),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
        db: Session = Depends(get_db)
):
    BusinessService.get_business(db, business_id)
    appointments = AppointmentService.list_appointments(
        db=db,
        business_id=business_id,
        day=day,
        status=status,
        skip=skip,
        limit=limit
    )
    return {
        "total": len(appointments),
        "appointments": [a.to_dict() for a in appointments]
    }


@router.get("/{appointment_id}")
def get_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    return AppointmentService.get_appointment(db, appointment_id).to_dict()


@router.patch("/{appointment_id}/status")
def update_appointment_status(
        payload: StatusUpdateRequest,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        booking_service: BookingService = Depends(get_booking_service)
):
    """
    Move an appointment through its lifecycle.
    Cancelled, completed and no-show are terminal.
    """
    appointment = booking_service.update_status(appointment_id, payload.status)
    return {"success": True, "appointment": appointment.to_dict()}
