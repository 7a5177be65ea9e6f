import threading
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from appointly.config.database import build_engine
from appointly.core.exceptions import BusinessNotConfiguredError, ConflictError, PersistenceError
from appointly.models import Appointment, Base, Business, BusinessSettings, Customer, Service
from appointly.models.appointment import build_slot_lock_keys
from appointly.models.business import DEFAULT_WORKING_HOURS
from appointly.services.appointment.appointment_service import AppointmentService
from appointly.services.booking import booking_service as booking_module
from appointly.services.booking.booking_service import BookingService
from appointly.services.customer.customer_service import CustomerService

from tests.conftest import FIXED_NOW, MONDAY, SUNDAY, TUESDAY, RecordingNotifier


# ---------------------------------------------------------------- availability

def test_available_dates_skip_closed_days(booking_service, business):
    dates = booking_service.get_available_dates(business.id, days=7)
    assert dates == [
        "2025-06-02", "2025-06-03", "2025-06-04", "2025-06-05", "2025-06-06", "2025-06-07",
    ]
    assert SUNDAY not in dates


def test_available_times_for_service(booking_service, business, haircut):
    times = booking_service.get_available_times(business.id, TUESDAY, haircut.id)
    assert times[0] == "09:00"
    assert times[-1] == "16:30"


def test_past_dates_have_no_times(booking_service, business, haircut):
    assert booking_service.get_available_times(business.id, "2025-05-30", haircut.id) == []


def test_available_times_are_stable_between_calls(booking_service, business, haircut, booking_request):
    booking_service.create_appointment(booking_request())

    first = booking_service.get_available_times(business.id, MONDAY, haircut.id)
    second = booking_service.get_available_times(business.id, MONDAY, haircut.id)
    assert first == second
    assert "10:00" not in first


def test_late_today_leaves_tomorrow_untouched(db, business, haircut):
    evening = BookingService(db, clock=lambda: datetime(2025, 6, 2, 16, 50))

    assert evening.get_available_times(business.id, MONDAY, haircut.id) == []
    tomorrow = evening.get_available_times(business.id, TUESDAY, haircut.id)
    assert tomorrow[0] == "09:00"
    assert len(tomorrow) == 16


def test_unconfigured_business_is_reported(db, booking_service, haircut):
    bare = Business(name="No Settings Yet")
    db.add(bare)
    db.commit()

    result = booking_service.create_appointment({
        "business_id": str(bare.id),
        "service_id": str(haircut.id),
        "name": "Jamie",
        "email": "jamie@example.com",
        "date": MONDAY,
        "time": "10:00",
    })
    # the service belongs to another business
    assert result.error_code == "not_found"

    with pytest.raises(BusinessNotConfiguredError):
        booking_service.get_available_dates(bare.id)


def test_check_availability(booking_service, business, haircut, booking_request):
    assert booking_service.check_availability(business.id, MONDAY, "10:00", haircut.id)
    booking_service.create_appointment(booking_request())
    assert not booking_service.check_availability(business.id, MONDAY, "10:00", haircut.id)


# ---------------------------------------------------------------- reservations

def test_book_last_slot_of_the_day(booking_service, business, haircut, booking_request, notifier):
    result = booking_service.create_appointment(booking_request(time="16:30"))

    assert result.success
    assert result.appointment_id
    assert "16:30" not in booking_service.get_available_times(business.id, MONDAY, haircut.id)
    assert notifier.sent and notifier.sent[0][1] == "Haircut"


def test_booking_same_slot_twice_conflicts(booking_service, booking_request):
    first = booking_service.create_appointment(booking_request())
    second = booking_service.create_appointment(booking_request(email="other@example.com"))

    assert first.success
    assert not second.success
    assert second.error_code == "conflict"


def test_longer_service_blocks_overlapping_start(booking_service, booking_request, colouring):
    booking_service.create_appointment(booking_request(service_id=str(colouring.id)))
    result = booking_service.create_appointment(booking_request(time="10:30", email="b@example.com"))
    assert result.error_code == "conflict"


def insert_at(db, business, service, customer, starts_at, duration=30):
    return AppointmentService.insert_appointment(
        db,
        business_id=business.id,
        service_id=service.id,
        employee_id=None,
        customer_id=customer.id,
        name="Jamie",
        email="jamie@example.com",
        phone=None,
        starts_at=starts_at,
        duration=duration,
        now=FIXED_NOW,
    )


def test_slot_lock_keys_cover_every_bucket():
    keys = build_slot_lock_keys("b1", None, datetime(2025, 6, 2, 10, 0), 60)
    assert len(keys) == 12
    assert keys[0] == "b1:any:2025-06-02T10:00"
    assert keys[-1] == "b1:any:2025-06-02T10:55"

    inside = build_slot_lock_keys("b1", None, datetime(2025, 6, 2, 10, 30), 30)
    adjacent = build_slot_lock_keys("b1", None, datetime(2025, 6, 2, 11, 0), 30)
    assert set(inside) <= set(keys)
    assert not set(adjacent) & set(keys)


def test_slot_lock_rejects_duplicate_insert(db, business, haircut):
    customer = CustomerService.get_or_create(db, "Jamie", "jamie@example.com")
    db.commit()

    insert_at(db, business, haircut, customer, datetime(2025, 6, 2, 11, 0))
    db.commit()
    with pytest.raises(ConflictError):
        insert_at(db, business, haircut, customer, datetime(2025, 6, 2, 11, 0))


def test_slot_locks_reject_overlap_with_different_start(db, business, haircut, colouring):
    customer = CustomerService.get_or_create(db, "Jamie", "jamie@example.com")
    db.commit()

    insert_at(db, business, colouring, customer, datetime(2025, 6, 2, 10, 0), duration=60)
    db.commit()
    with pytest.raises(ConflictError):
        insert_at(db, business, haircut, customer, datetime(2025, 6, 2, 10, 30))

    insert_at(db, business, haircut, customer, datetime(2025, 6, 2, 11, 0))
    db.commit()
    assert db.query(Appointment).count() == 2


def test_store_rejects_overlap_the_recheck_missed(monkeypatch, db, booking_service, booking_request, colouring):
    # every slot looks free, as it does to a writer racing another transaction
    monkeypatch.setattr(
        booking_module, "filter_booked_slots", lambda day, candidates, *args, **kwargs: list(candidates)
    )

    first = booking_service.create_appointment(booking_request(service_id=str(colouring.id)))
    second = booking_service.create_appointment(booking_request(time="10:30", email="b@example.com"))

    assert first.success
    assert second.error_code == "conflict"
    assert db.query(Appointment).count() == 1
    assert db.query(Customer).count() == 1


def test_concurrent_overlapping_bookings_commit_once(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with Session() as setup:
        shop = Business(name="Sunny Cuts", timezone="UTC")
        setup.add(shop)
        setup.flush()
        setup.add(BusinessSettings(
            business_id=shop.id,
            working_hours=[dict(entry) for entry in DEFAULT_WORKING_HOURS],
            breaks=[],
            blocked_dates=[],
            appointment_duration=30,
        ))
        cut = Service(business_id=shop.id, name="Haircut", duration=30, price=Decimal("25.00"))
        colour = Service(business_id=shop.id, name="Colouring", duration=60, price=Decimal("80.00"))
        setup.add_all([cut, colour])
        setup.commit()
        business_id, cut_id, colour_id = shop.id, cut.id, colour.id

    barrier = threading.Barrier(2)
    results = []

    def book(service_id, hhmm, email):
        session = Session()
        try:
            service = BookingService(session, clock=lambda: FIXED_NOW)
            barrier.wait(timeout=10)
            results.append(service.create_appointment({
                "business_id": str(business_id),
                "service_id": str(service_id),
                "name": "Jamie Doe",
                "email": email,
                "date": MONDAY,
                "time": hhmm,
            }))
        finally:
            session.close()

    threads = [
        threading.Thread(target=book, args=(colour_id, "10:00", "a@example.com")),
        threading.Thread(target=book, args=(cut_id, "10:30", "b@example.com")),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(r.error_code or "ok" for r in results) == ["conflict", "ok"]
    with Session() as check:
        assert check.query(Appointment).count() == 1
    engine.dispose()


def test_cancelled_slot_can_be_booked_again(booking_service, booking_request):
    first = booking_service.create_appointment(booking_request())
    booking_service.cancel_appointment(UUID(first.appointment_id), "Running late")

    again = booking_service.create_appointment(booking_request(email="next@example.com"))
    assert again.success


def test_notification_failure_does_not_fail_booking(db, booking_request):
    service = BookingService(db, notifier=RecordingNotifier(fail=True), clock=lambda: FIXED_NOW)
    result = service.create_appointment(booking_request())
    assert result.success
    assert db.query(Appointment).count() == 1


def test_past_time_is_rejected(booking_service, booking_request):
    result = booking_service.create_appointment(booking_request(time="07:30"))
    assert result.error_code == "invalid_input"


def test_invalid_payload_is_rejected(booking_service, booking_request):
    result = booking_service.create_appointment(booking_request(email="not-an-email"))
    assert not result.success
    assert result.error_code == "invalid_input"

    result = booking_service.create_appointment(booking_request(time="25:00"))
    assert result.error_code == "invalid_input"


def test_closed_day_cannot_be_booked(booking_service, booking_request):
    result = booking_service.create_appointment(booking_request(date=SUNDAY))
    assert result.error_code == "invalid_input"
    assert "does not take bookings" in result.error


def test_off_grid_time_is_invalid_not_taken(booking_service, booking_request):
    result = booking_service.create_appointment(booking_request(time="10:15"))
    assert result.error_code == "invalid_input"
    assert "not a bookable start time" in result.error


def test_customer_created_by_concurrent_booking_is_reused(monkeypatch, db, booking_service, booking_request):
    existing = CustomerService.get_or_create(db, "Jamie Doe", "jamie@example.com")
    db.commit()
    lookup = CustomerService.find_by_email
    missed = []

    def lookup_before_other_commit(session, email):
        # first lookup runs before the other booking's customer row is visible
        if not missed:
            missed.append(email)
            return None
        return lookup(session, email)

    monkeypatch.setattr(CustomerService, "find_by_email", staticmethod(lookup_before_other_commit))
    result = booking_service.create_appointment(booking_request(time="14:00"))

    assert result.success
    assert len(missed) == 1
    assert db.query(Customer).count() == 1
    assert db.query(Appointment).one().customer_id == existing.id


def test_customer_is_reused_by_email(db, booking_service, booking_request):
    booking_service.create_appointment(booking_request(email="jamie@example.com"))
    booking_service.create_appointment(booking_request(email="JAMIE@example.com", time="11:00"))

    customers = db.query(Customer).all()
    assert len(customers) == 1
    assert customers[0].email == "jamie@example.com"


def test_appointment_defaults(db, booking_service, booking_request):
    result = booking_service.create_appointment(booking_request(booking_source="chat"))
    appointment = db.query(Appointment).one()

    assert str(appointment.id) == result.appointment_id
    assert appointment.status == "scheduled"
    assert appointment.confirmation_status == "pending"
    assert len(appointment.confirmation_token) == 64
    assert (appointment.confirmation_token_expires - FIXED_NOW).total_seconds() == 48 * 3600
    assert appointment.duration == 30
    assert appointment.booking_source == "chat"


# ---------------------------------------------------------------- employees

def test_employee_fallback_assigns_free_staff(db, booking_service, booking_request, employees):
    alice, bob = employees

    first = booking_service.create_appointment(booking_request())
    second = booking_service.create_appointment(booking_request(email="b@example.com"))
    third = booking_service.create_appointment(booking_request(email="c@example.com"))

    assert first.success and second.success
    assigned = {a.employee_id for a in db.query(Appointment).all()}
    assert assigned == {alice.id, bob.id}
    assert third.error_code == "conflict"


def test_requested_employee_must_be_free(booking_service, booking_request, employees):
    alice, _ = employees
    booking_service.create_appointment(booking_request(employee_id=str(alice.id)))

    result = booking_service.create_appointment(
        booking_request(employee_id=str(alice.id), email="b@example.com")
    )
    assert result.error_code == "conflict"


def test_unknown_employee_not_found(booking_service, booking_request, employees):
    result = booking_service.create_appointment(booking_request(employee_id=str(uuid4())))
    assert result.error_code == "not_found"


def test_rejected_reservation_releases_settings_lock(db, booking_service, booking_request, employees):
    alice, _ = employees

    missing = booking_service.create_appointment(booking_request(employee_id=str(uuid4())))
    assert missing.error_code == "not_found"
    assert not db.in_transaction()

    booking_service.create_appointment(booking_request(employee_id=str(alice.id)))
    taken = booking_service.create_appointment(
        booking_request(employee_id=str(alice.id), email="b@example.com")
    )
    assert taken.error_code == "conflict"
    assert not db.in_transaction()


# ---------------------------------------------------------------- store failures

def test_reads_retry_once_on_dropped_connection(booking_service):
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))
        return "ok"

    assert booking_service._read(flaky) == "ok"
    assert len(calls) == 2


def test_reads_give_up_after_second_failure(booking_service):
    def broken():
        raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    with pytest.raises(PersistenceError):
        booking_service._read(broken)
