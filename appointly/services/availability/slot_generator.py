# appointly/services/availability/slot_generator.py
"""Bookable start times for one business day, before appointments are considered"""
from datetime import date, datetime, timedelta
from typing import List, Union

from appointly.services.availability.availability_rules import SettingsSnapshot, get_working_window
from appointly.services.availability.calendar_arithmetic import (
    combine,
    generate_slots,
    parse_date,
    validate_duration,
    windows_overlap,
)

SAME_DAY_LEAD_MINUTES = 15


def _overlaps_break(day: date, slot: str, duration: int, settings: SettingsSnapshot) -> bool:
    slot_start = combine(day, slot)
    slot_end = slot_start + timedelta(minutes=duration)

    for window in settings.breaks:
        if windows_overlap(slot_start, slot_end, combine(day, window.start), combine(day, window.end)):
            return True
    return False


def get_available_times(
        day: Union[str, date],
        service_duration: int,
        settings: SettingsSnapshot,
        now: datetime,
        lead_minutes: int = SAME_DAY_LEAD_MINUTES
) -> List[str]:
    """
    Slots for `day` stepped by the service duration.

    Closed and blocked days yield an empty list. Slots running into a break
    are dropped, and when `day` is today (per `now`, naive business time)
    slots starting before now + lead_minutes are dropped as well.
    """
    day = parse_date(day)
    validate_duration(service_duration, "service_duration")

    window = get_working_window(day, settings)
    if window is None:
        return []

    candidates = generate_slots(window.open, window.close, service_duration)
    available = [
        slot for slot in candidates
        if not _overlaps_break(day, slot, service_duration, settings)
    ]

    if day == now.date():
        cutoff = now + timedelta(minutes=lead_minutes)
        available = [slot for slot in available if combine(day, slot) >= cutoff]

    return sorted(available)
