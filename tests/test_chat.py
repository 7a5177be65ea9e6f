from appointly.services.chat.booking_handler import ChatBookingHandler, StructuredFieldExtractor

from tests.conftest import MONDAY


async def test_session_store_merges_and_expires(session_store, fake_redis):
    await session_store.merge("abc", {"name": "Jamie", "phone": None})
    state = await session_store.merge("abc", {"date": MONDAY, "name": ""})

    assert state == {"name": "Jamie", "date": MONDAY}
    assert await session_store.get("abc") == state
    assert 0 < await fake_redis.ttl("chat:abc:booking") <= 600

    await session_store.clear("abc")
    assert await session_store.get("abc") == {}


async def test_unreadable_state_is_discarded(session_store, fake_redis):
    await fake_redis.set("chat:broken:booking", "{not json")
    assert await session_store.get("broken") == {}


def test_structured_extractor_keeps_booking_fields():
    extractor = StructuredFieldExtractor({"Email": "x", "email": " Jamie@Example.com ", "mood": "happy", "time": 10})
    assert extractor.extract("hi", {}) == {"email": "jamie@example.com", "time": "10"}


async def test_chat_collects_fields_then_books(db, booking_service, session_store, business, haircut, notifier):
    handler = ChatBookingHandler(booking_service, session_store)

    reply = await handler.handle("s1", business.id, "I'd like a haircut", {"service_id": str(haircut.id)})
    assert not reply.booked
    assert set(reply.missing_fields) == {"date", "time", "name", "email"}
    assert reply.available_times is None

    reply = await handler.handle("s1", business.id, "Monday please", {"date": MONDAY})
    assert reply.available_times[0] == "09:00"
    assert reply.missing_fields == ["time", "name", "email"]

    reply = await handler.handle("s1", business.id, "10am, Jamie", {
        "time": "10:00", "name": "Jamie", "email": "jamie@example.com",
    })
    assert reply.booked
    assert reply.appointment_id
    assert reply.state == {}
    assert await session_store.get("s1") == {}
    assert len(notifier.sent) == 1


async def test_chat_reports_conflict_and_keeps_state(booking_service, session_store, business, haircut, booking_request):
    booking_service.create_appointment(booking_request())
    handler = ChatBookingHandler(booking_service, session_store)

    reply = await handler.handle("s2", business.id, None, {
        "service_id": str(haircut.id),
        "date": MONDAY,
        "time": "10:00",
        "name": "Robin",
        "email": "robin@example.com",
    })

    assert not reply.booked
    assert reply.error_code == "conflict"
    assert (await session_store.get("s2"))["time"] == "10:00"


async def test_chat_bad_date_is_reported(booking_service, session_store, business, haircut):
    handler = ChatBookingHandler(booking_service, session_store)
    reply = await handler.handle("s3", business.id, None, {"service_id": str(haircut.id), "date": "next monday"})
    assert reply.error_code == "invalid_input"
