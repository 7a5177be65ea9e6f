import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "true")

from datetime import datetime
from decimal import Decimal

import fakeredis
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from appointly.models import Base, Business, BusinessSettings, Employee, Service
from appointly.models.business import DEFAULT_WORKING_HOURS
from appointly.services.booking.booking_service import BookingService
from appointly.services.chat.session_store import ChatSessionStore

# Monday 2 June 2025, 08:00 business time
FIXED_NOW = datetime(2025, 6, 2, 8, 0)
MONDAY = "2025-06-02"
TUESDAY = "2025-06-03"
SUNDAY = "2025-06-08"


class RecordingNotifier:
    """Stands in for NotificationService and records what would be enqueued"""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def dispatch_booking_confirmation(self, appointment, service, business):
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.sent.append((appointment.id, service.name, business.name))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def business(db):
    business = Business(name="Sunny Cuts", email="owner@sunnycuts.test", timezone="UTC")
    db.add(business)
    db.flush()
    db.add(BusinessSettings(
        business_id=business.id,
        working_hours=[dict(entry) for entry in DEFAULT_WORKING_HOURS],
        breaks=[],
        blocked_dates=[],
        appointment_duration=30,
    ))
    db.commit()
    db.refresh(business)
    return business


@pytest.fixture
def haircut(db, business):
    service = Service(business_id=business.id, name="Haircut", duration=30, price=Decimal("25.00"))
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def colouring(db, business):
    service = Service(business_id=business.id, name="Colouring", duration=60, price=Decimal("80.00"))
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def employees(db, business):
    alice = Employee(business_id=business.id, name="Alice")
    bob = Employee(business_id=business.id, name="Bob")
    db.add_all([alice, bob])
    db.commit()
    db.refresh(alice)
    db.refresh(bob)
    return alice, bob


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def booking_service(db, notifier):
    return BookingService(db, notifier=notifier, clock=lambda: FIXED_NOW)


@pytest.fixture
def booking_request(business, haircut):
    def build(**overrides):
        data = {
            "business_id": str(business.id),
            "service_id": str(haircut.id),
            "name": "Jamie Doe",
            "email": "Jamie@Example.com",
            "phone": "+15550100",
            "date": MONDAY,
            "time": "10:00",
        }
        data.update(overrides)
        return data
    return build


@pytest.fixture
def fake_redis():
    return fakeredis.FakeAsyncRedis(decode_responses=True)


@pytest.fixture
def session_store(fake_redis):
    return ChatSessionStore(redis_client=fake_redis, ttl_seconds=600)
