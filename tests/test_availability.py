from datetime import date, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest

from appointly.core.exceptions import InvalidDurationError
from appointly.models.business import DEFAULT_WORKING_HOURS
from appointly.services.availability import (
    MODE_EXACT,
    MODE_GRID,
    SettingsSnapshot,
    filter_booked_slots,
    get_available_times,
    get_working_window,
    is_date_available,
)

MONDAY = date(2025, 6, 2)
SATURDAY = date(2025, 6, 7)
SUNDAY = date(2025, 6, 8)
EARLIER = datetime(2025, 6, 1, 8, 0)


def snapshot(**overrides):
    data = {
        "working_hours": [dict(entry) for entry in DEFAULT_WORKING_HOURS],
        "breaks": [],
        "blocked_dates": [],
        "appointment_duration": 30,
    }
    data.update(overrides)
    return SettingsSnapshot.from_mapping(data)


def appointment(hhmm, duration=30, status="scheduled", employee_id=None, day=MONDAY):
    hour, minute = (int(part) for part in hhmm.split(":"))
    return SimpleNamespace(
        date=datetime(day.year, day.month, day.day, hour, minute),
        duration=duration,
        status=status,
        employee_id=employee_id,
    )


# ---------------------------------------------------------------- working days

def test_weekday_open_sunday_closed():
    settings = snapshot()
    assert is_date_available(MONDAY, settings)
    assert not is_date_available(SUNDAY, settings)


def test_blocked_date_is_unavailable():
    settings = snapshot(blocked_dates=["2025-06-02"])
    assert not is_date_available("2025-06-02", settings)
    assert get_working_window(MONDAY, settings) is None


def test_missing_weekday_entry_is_closed():
    hours = [entry for entry in DEFAULT_WORKING_HOURS if entry["day"] != "Monday"]
    assert not is_date_available(MONDAY, snapshot(working_hours=hours))


def test_day_names_match_case_insensitively():
    hours = [dict(entry, day=entry["day"].lower()) for entry in DEFAULT_WORKING_HOURS]
    window = get_working_window(SATURDAY, snapshot(working_hours=hours))
    assert (window.open, window.close) == ("10:00", "15:00")


# ---------------------------------------------------------------- slot generator

def test_available_times_full_day_thirty_minutes():
    times = get_available_times(MONDAY, 30, snapshot(), EARLIER)
    assert times[0] == "09:00"
    assert times[-1] == "16:30"
    assert len(times) == 16


def test_available_times_skips_breaks():
    settings = snapshot(breaks=[{"start": "12:00", "end": "13:00"}])
    times = get_available_times(MONDAY, 60, settings, EARLIER)
    assert "11:00" in times
    assert "12:00" not in times
    assert "13:00" in times


def test_slot_running_into_break_is_dropped():
    settings = snapshot(breaks=[{"start": "12:30", "end": "13:00"}])
    times = get_available_times(MONDAY, 60, settings, EARLIER)
    # 12:00-13:00 would overlap the break
    assert "12:00" not in times
    assert "11:00" in times


def test_same_day_lead_time():
    now = datetime(2025, 6, 2, 10, 0)
    times = get_available_times(MONDAY, 30, snapshot(), now, lead_minutes=15)
    assert "10:00" not in times
    assert times[0] == "10:30"


def test_same_day_slot_exactly_at_cutoff_is_kept():
    now = datetime(2025, 6, 2, 10, 15)
    times = get_available_times(MONDAY, 30, snapshot(), now, lead_minutes=15)
    assert times[0] == "10:30"


def test_now_late_today_leaves_tomorrow_untouched():
    now = datetime(2025, 6, 2, 10, 0)
    tomorrow = get_available_times(date(2025, 6, 3), 30, snapshot(), now, lead_minutes=15)
    assert tomorrow[0] == "09:00"
    assert len(tomorrow) == 16


def test_closed_day_has_no_times():
    assert get_available_times(SUNDAY, 30, snapshot(), EARLIER) == []


def test_zero_duration_rejected():
    with pytest.raises(InvalidDurationError):
        get_available_times(MONDAY, 0, snapshot(), EARLIER)


# ---------------------------------------------------------------- conflict filter

CANDIDATES = ["09:00", "09:30", "10:00", "10:30", "11:00"]


def test_booked_slot_removed_neighbours_kept():
    free = filter_booked_slots(MONDAY, CANDIDATES, 30, [appointment("10:00")])
    assert "10:00" not in free
    assert "09:30" in free
    assert "10:30" in free


def test_longer_request_overlapping_existing_is_removed():
    free = filter_booked_slots(MONDAY, CANDIDATES, 60, [appointment("10:00")])
    # 09:30-10:30 overlaps 10:00-10:30
    assert "09:30" not in free
    assert "09:00" in free


def test_cancelled_appointments_do_not_block():
    free = filter_booked_slots(MONDAY, CANDIDATES, 30, [
        appointment("10:00", status="cancelled"),
        appointment("10:30", status="no-show"),
    ])
    assert free == CANDIDATES


def test_other_days_ignored():
    other_day = appointment("10:00", day=date(2025, 6, 3))
    assert filter_booked_slots(MONDAY, CANDIDATES, 30, [other_day]) == CANDIDATES


def test_employee_scope():
    alice, bob = uuid4(), uuid4()
    booked = [appointment("10:00", employee_id=alice)]

    assert "10:00" in filter_booked_slots(MONDAY, CANDIDATES, 30, booked, employee_id=bob)
    assert "10:00" not in filter_booked_slots(MONDAY, CANDIDATES, 30, booked, employee_id=alice)
    # no employee requested: every appointment counts
    assert "10:00" not in filter_booked_slots(MONDAY, CANDIDATES, 30, booked)


def test_grid_mode_misses_off_grid_overlap_that_exact_catches():
    # 45 minute appointment at 09:00 runs to 09:45
    booked = [appointment("09:00", duration=45)]
    candidates = ["09:00", "09:15", "09:30", "10:00"]

    grid = filter_booked_slots(MONDAY, candidates, 15, booked, mode=MODE_GRID)
    exact = filter_booked_slots(MONDAY, candidates, 15, booked, mode=MODE_EXACT)

    assert "09:15" in grid
    assert "09:15" not in exact
    assert "09:30" not in exact
    assert "10:00" in exact


def test_unknown_mode_falls_back_to_exact():
    free = filter_booked_slots(MONDAY, CANDIDATES, 30, [appointment("10:00")], mode="fuzzy")
    assert "10:00" not in free
