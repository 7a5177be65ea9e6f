# ============================================================================
# FILE: appointly/api/v1/dashboard/settings.py
# Booking settings for one business - thin HTTP layer
# ============================================================================
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from appointly.config.database import get_db
from appointly.schemas.business import BusinessSettingsResponse, BusinessSettingsUpdate
from appointly.services.business.business_service import BusinessService

router = APIRouter()


@router.get("/{business_id}/settings", response_model=BusinessSettingsResponse)
def get_booking_settings(
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
):
    """Working hours, breaks, blocked dates and default slot length"""
    BusinessService.get_business(db, business_id)
    settings = BusinessService.require_settings(db, business_id)
    return BusinessSettingsResponse(**settings.to_dict())


@router.put("/{business_id}/settings", response_model=BusinessSettingsResponse)
def update_booking_settings(
        update: BusinessSettingsUpdate,
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
):
    """
    Update booking settings.
    Only the fields sent are changed. A business without settings gets the
    onboarding defaults first.
    """
    BusinessService.get_business(db, business_id)
    BusinessService.create_default_settings(db, business_id)
    settings = BusinessService.update_settings(db, business_id, update)
    return BusinessSettingsResponse(**settings.to_dict())
