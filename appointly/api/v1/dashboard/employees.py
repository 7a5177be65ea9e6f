# appointly/api/v1/dashboard/employees.py
"""Staff members that appointments can be assigned to"""
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from appointly.config.database import get_db
from appointly.schemas.business import EmployeeCreate, EmployeeUpdate
from appointly.services.business.business_service import BusinessService, CatalogService

router = APIRouter()


@router.get("/{business_id}/employees")
def list_employees(
        business_id: UUID = Path(..., description="The business ID"),
        include_inactive: bool = Query(False),
        db: Session = Depends(get_db)
):
    BusinessService.get_business(db, business_id)
    employees = CatalogService.list_employees(db, business_id, include_inactive=include_inactive)
    return {
        "total": len(employees),
        "employees": [e.to_dict() for e in employees]
    }


@router.post("/{business_id}/employees", status_code=201)
def create_employee(
        employee_data: EmployeeCreate,
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
):
    BusinessService.get_business(db, business_id)
    return CatalogService.create_employee(db, business_id, employee_data).to_dict()


@router.get("/{business_id}/employees/{employee_id}")
def get_employee(
        business_id: UUID = Path(...),
        employee_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    return CatalogService.get_employee(db, business_id, employee_id).to_dict()


@router.put("/{business_id}/employees/{employee_id}")
def update_employee(
        update_data: EmployeeUpdate,
        business_id: UUID = Path(...),
        employee_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    return CatalogService.update_employee(db, business_id, employee_id, update_data).to_dict()


@router.delete("/{business_id}/employees/{employee_id}")
def delete_employee(
        business_id: UUID = Path(...),
        employee_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    CatalogService.delete_employee(db, business_id, employee_id)
    return {"success": True, "message": "Employee deactivated"}
