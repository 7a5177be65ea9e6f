# appointly/api/v1/dashboard/services.py
"""
Service Management API Endpoints
Handles CRUD operations for the services a business offers
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from appointly.config.database import get_db
from appointly.models.service import Service
from appointly.schemas.business import ServiceCreate, ServiceUpdate
from appointly.services.business.business_service import BusinessService, CatalogService

logger = logging.getLogger(__name__)
router = APIRouter()


def _service_to_response(service: Service) -> dict:
    data = service.to_dict()
    data["formatted_duration"] = service.formatted_duration
    return data


@router.get("/{business_id}/services")
def list_services(
        business_id: UUID = Path(..., description="The business ID"),
        include_inactive: bool = Query(False),
        db: Session = Depends(get_db)
):
    BusinessService.get_business(db, business_id)
    services = CatalogService.list_services(db, business_id, include_inactive=include_inactive)
    return {
        "total": len(services),
        "services": [_service_to_response(s) for s in services]
    }


@router.post("/{business_id}/services", status_code=201)
def create_service(
        service_data: ServiceCreate,
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
):
    BusinessService.get_business(db, business_id)
    service = CatalogService.create_service(db, business_id, service_data)
    return _service_to_response(service)


@router.get("/{business_id}/services/{service_id}")
def get_service(
        business_id: UUID = Path(...),
        service_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    return _service_to_response(CatalogService.get_service(db, business_id, service_id))


@router.put("/{business_id}/services/{service_id}")
def update_service(
        update_data: ServiceUpdate,
        business_id: UUID = Path(...),
        service_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    service = CatalogService.update_service(db, business_id, service_id, update_data)
    return _service_to_response(service)


@router.delete("/{business_id}/services/{service_id}")
def delete_service(
        business_id: UUID = Path(...),
        service_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    """Soft delete: existing appointments keep their service"""
    CatalogService.delete_service(db, business_id, service_id)
    return {"success": True, "message": "Service deactivated"}
