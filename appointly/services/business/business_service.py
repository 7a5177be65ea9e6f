# appointly/services/business/business_service.py
"""Business settings store and service/employee catalog"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from appointly.core.exceptions import BusinessNotConfiguredError, NotFoundError
from appointly.models.business import (
    Business,
    BusinessSettings,
    DEFAULT_APPOINTMENT_DURATION,
    DEFAULT_WORKING_HOURS,
)
from appointly.models.employee import Employee
from appointly.models.service import Service
from appointly.schemas.business import (
    BusinessSettingsUpdate,
    EmployeeCreate,
    EmployeeUpdate,
    ServiceCreate,
    ServiceUpdate,
)

logger = logging.getLogger(__name__)


class BusinessService:
    """Handles business settings reads and writes"""

    @staticmethod
    def get_business(db: Session, business_id: UUID) -> Business:
        business = db.query(Business).filter(Business.id == business_id).first()
        if not business:
            raise NotFoundError(f"Business {business_id} not found")
        return business

    @staticmethod
    def get_settings(db: Session, business_id: UUID) -> Optional[BusinessSettings]:
        """Settings row for the business, or None when onboarding never created one"""
        return db.query(BusinessSettings).filter(
            BusinessSettings.business_id == business_id
        ).first()

    @staticmethod
    def require_settings(db: Session, business_id: UUID, for_update: bool = False) -> BusinessSettings:
        """
        Settings row or BusinessNotConfiguredError.

        for_update=True serializes reservations for one business until the
        caller commits or rolls back. PostgreSQL takes a row lock with
        SELECT ... FOR UPDATE. SQLite ignores FOR UPDATE, so a no-op UPDATE
        of the row takes the database write lock instead.
        """
        query = db.query(BusinessSettings).filter(BusinessSettings.business_id == business_id)
        if for_update:
            if db.get_bind().dialect.name == "sqlite":
                table = BusinessSettings.__table__
                db.execute(
                    update(table)
                    .where(table.c.business_id == business_id)
                    .values(updated_at=table.c.updated_at)
                )
            else:
                query = query.with_for_update()
        settings = query.first()
        if settings is None:
            raise BusinessNotConfiguredError(business_id)
        return settings

    @staticmethod
    def create_default_settings(db: Session, business_id: UUID) -> BusinessSettings:
        """Onboarding defaults: Mon-Fri 09-17, Sat 10-15, Sun closed"""
        existing = BusinessService.get_settings(db, business_id)
        if existing:
            return existing

        settings = BusinessSettings(
            business_id=business_id,
            working_hours=[dict(entry) for entry in DEFAULT_WORKING_HOURS],
            breaks=[],
            blocked_dates=[],
            appointment_duration=DEFAULT_APPOINTMENT_DURATION,
        )
        db.add(settings)
        db.commit()
        db.refresh(settings)

        logger.info(f"Created default booking settings for business {business_id}")
        return settings

    @staticmethod
    def update_settings(
            db: Session,
            business_id: UUID,
            update: BusinessSettingsUpdate
    ) -> BusinessSettings:
        settings = BusinessService.require_settings(db, business_id)

        changed = []
        if update.working_hours is not None:
            settings.working_hours = [entry.to_storage() for entry in update.working_hours]
            changed.append("working_hours")
        if update.breaks is not None:
            settings.breaks = [{"start": b.start, "end": b.end} for b in update.breaks]
            changed.append("breaks")
        if update.blocked_dates is not None:
            settings.blocked_dates = sorted({d.isoformat() for d in update.blocked_dates})
            changed.append("blocked_dates")
        if update.appointment_duration is not None:
            settings.appointment_duration = update.appointment_duration
            changed.append("appointment_duration")

        db.commit()
        db.refresh(settings)

        logger.info(f"Updated booking settings for business {business_id}: {', '.join(changed) or 'no changes'}")
        return settings


class CatalogService:
    """Service and employee CRUD, always scoped to the owning business"""

    # ------------------------------------------------------------------ services

    @staticmethod
    def list_services(db: Session, business_id: UUID, include_inactive: bool = False) -> List[Service]:
        query = db.query(Service).filter(Service.business_id == business_id)
        if not include_inactive:
            query = query.filter(Service.is_active == True)  # noqa: E712
        return query.order_by(Service.name).all()

    @staticmethod
    def get_service(db: Session, business_id: UUID, service_id: UUID) -> Service:
        service = db.query(Service).filter(
            Service.id == service_id,
            Service.business_id == business_id
        ).first()
        if not service:
            raise NotFoundError(f"Service {service_id} not found")
        return service

    @staticmethod
    def create_service(db: Session, business_id: UUID, data: ServiceCreate) -> Service:
        service = Service(business_id=business_id, **data.model_dump())
        db.add(service)
        db.commit()
        db.refresh(service)
        logger.info(f"Created service '{service.name}' for business {business_id}")
        return service

    @staticmethod
    def update_service(db: Session, business_id: UUID, service_id: UUID, data: ServiceUpdate) -> Service:
        service = CatalogService.get_service(db, business_id, service_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(service, key, value)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def delete_service(db: Session, business_id: UUID, service_id: UUID) -> None:
        """Soft delete; past appointments keep pointing at the row"""
        service = CatalogService.get_service(db, business_id, service_id)
        service.is_active = False
        db.commit()
        logger.info(f"Deactivated service {service_id} for business {business_id}")

    # ----------------------------------------------------------------- employees

    @staticmethod
    def list_employees(db: Session, business_id: UUID, include_inactive: bool = False) -> List[Employee]:
        query = db.query(Employee).filter(Employee.business_id == business_id)
        if not include_inactive:
            query = query.filter(Employee.is_active == True)  # noqa: E712
        return query.order_by(Employee.name).all()

    @staticmethod
    def get_employee(db: Session, business_id: UUID, employee_id: UUID) -> Employee:
        employee = db.query(Employee).filter(
            Employee.id == employee_id,
            Employee.business_id == business_id
        ).first()
        if not employee:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    @staticmethod
    def create_employee(db: Session, business_id: UUID, data: EmployeeCreate) -> Employee:
        employee = Employee(business_id=business_id, **data.model_dump())
        db.add(employee)
        db.commit()
        db.refresh(employee)
        logger.info(f"Added employee '{employee.name}' to business {business_id}")
        return employee

    @staticmethod
    def update_employee(db: Session, business_id: UUID, employee_id: UUID, data: EmployeeUpdate) -> Employee:
        employee = CatalogService.get_employee(db, business_id, employee_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(employee, key, value)
        db.commit()
        db.refresh(employee)
        return employee

    @staticmethod
    def delete_employee(db: Session, business_id: UUID, employee_id: UUID) -> None:
        employee = CatalogService.get_employee(db, business_id, employee_id)
        employee.is_active = False
        db.commit()
        logger.info(f"Deactivated employee {employee_id} for business {business_id}")
