from decimal import Decimal

import pytest
from pydantic import ValidationError

from appointly.core.exceptions import NotFoundError
from appointly.models import Business
from appointly.models.business import DEFAULT_WORKING_HOURS
from appointly.schemas.business import BusinessSettingsUpdate, EmployeeCreate, ServiceCreate, ServiceUpdate
from appointly.services.business.business_service import BusinessService, CatalogService


def week(**changes):
    hours = [dict(entry) for entry in DEFAULT_WORKING_HOURS]
    for entry in hours:
        entry.update(changes.get(entry["day"], {}))
    return hours


def test_default_settings_for_new_business(db):
    business = Business(name="Fresh Start")
    db.add(business)
    db.commit()

    settings = BusinessService.create_default_settings(db, business.id)

    assert settings.appointment_duration == 30
    assert settings.breaks == []
    assert settings.blocked_dates == []
    sunday = next(e for e in settings.working_hours if e["day"] == "Sunday")
    assert sunday["isClosed"]
    # idempotent
    assert BusinessService.create_default_settings(db, business.id).id == settings.id


def test_update_settings(db, business):
    update = BusinessSettingsUpdate(
        working_hours=week(Monday={"open": "08:00", "close": "12:00"}),
        breaks=[{"start": "10:00", "end": "10:15"}],
        blocked_dates=["2025-12-25", "2025-12-24", "2025-12-25"],
        appointment_duration=45,
    )
    settings = BusinessService.update_settings(db, business.id, update)

    monday = next(e for e in settings.working_hours if e["day"] == "Monday")
    assert (monday["open"], monday["close"]) == ("08:00", "12:00")
    assert settings.breaks == [{"start": "10:00", "end": "10:15"}]
    assert settings.blocked_dates == ["2025-12-24", "2025-12-25"]
    assert settings.appointment_duration == 45


def test_partial_update_keeps_other_fields(db, business):
    BusinessService.update_settings(db, business.id, BusinessSettingsUpdate(appointment_duration=20))
    settings = BusinessService.require_settings(db, business.id)
    assert settings.appointment_duration == 20
    assert len(settings.working_hours) == 7


def test_working_hours_must_cover_each_weekday_once():
    with pytest.raises(ValidationError):
        BusinessSettingsUpdate(working_hours=week()[:6])

    duplicated = week()
    duplicated[6] = dict(duplicated[0])
    with pytest.raises(ValidationError):
        BusinessSettingsUpdate(working_hours=duplicated)


def test_open_must_precede_close():
    with pytest.raises(ValidationError):
        BusinessSettingsUpdate(working_hours=week(Tuesday={"open": "17:00", "close": "09:00"}))


def test_closed_day_may_have_equal_times():
    update = BusinessSettingsUpdate(working_hours=week())
    assert update.working_hours[6].is_closed


def test_break_must_be_a_window():
    with pytest.raises(ValidationError):
        BusinessSettingsUpdate(breaks=[{"start": "13:00", "end": "12:00"}])


def test_invalid_blocked_date_and_duration():
    with pytest.raises(ValidationError):
        BusinessSettingsUpdate(blocked_dates=["25/12/2025"])
    with pytest.raises(ValidationError):
        BusinessSettingsUpdate(appointment_duration=0)


def test_service_and_employee_catalog(db, business):
    service = CatalogService.create_service(
        db, business.id, ServiceCreate(name="Beard Trim", duration=15, price=Decimal("10"))
    )
    assert service.formatted_duration == "15m"

    CatalogService.update_service(db, business.id, service.id, ServiceUpdate(duration=90))
    assert CatalogService.get_service(db, business.id, service.id).formatted_duration == "1h 30m"

    CatalogService.delete_service(db, business.id, service.id)
    assert CatalogService.list_services(db, business.id) == []
    assert len(CatalogService.list_services(db, business.id, include_inactive=True)) == 1

    zoe = CatalogService.create_employee(db, business.id, EmployeeCreate(name="Zoe"))
    CatalogService.create_employee(db, business.id, EmployeeCreate(name="Adam"))
    assert [e.name for e in CatalogService.list_employees(db, business.id)] == ["Adam", "Zoe"]

    CatalogService.delete_employee(db, business.id, zoe.id)
    assert [e.name for e in CatalogService.list_employees(db, business.id)] == ["Adam"]


def test_service_validation():
    with pytest.raises(ValidationError):
        ServiceCreate(name="Free lunch", duration=0)
    with pytest.raises(ValidationError):
        ServiceCreate(name="Refund", duration=30, price=Decimal("-1"))


def test_catalog_is_scoped_to_business(db, business, haircut):
    other = Business(name="Elsewhere")
    db.add(other)
    db.commit()

    with pytest.raises(NotFoundError):
        CatalogService.get_service(db, other.id, haircut.id)
