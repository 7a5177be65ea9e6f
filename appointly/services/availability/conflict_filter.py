# appointly/services/availability/conflict_filter.py
"""Remove candidate slots that collide with appointments already on the books"""
import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Set, Union

from appointly.models.appointment import ACTIVE_STATUSES
from appointly.services.availability.calendar_arithmetic import (
    combine,
    format_time,
    parse_date,
    validate_duration,
    windows_overlap,
)

logger = logging.getLogger(__name__)

MODE_EXACT = "exact"
MODE_GRID = "grid"

GRID_MINUTES = 30


def _relevant_appointments(day: date, appointments: Iterable, employee_id) -> List:
    wanted_employee = str(employee_id) if employee_id else None
    relevant = []
    for appointment in appointments:
        if getattr(appointment, "status", ACTIVE_STATUSES[0]) not in ACTIVE_STATUSES:
            continue
        if appointment.date.date() != day:
            continue
        if wanted_employee and str(appointment.employee_id) != wanted_employee:
            continue
        relevant.append(appointment)
    return relevant


def _grid_markers(appointments: Iterable, service_duration: int) -> Set[str]:
    """30-minute markers from each appointment start across max(existing, requested) minutes"""
    booked = set()
    for appointment in appointments:
        span = max(appointment.duration, service_duration)
        for offset in range(0, span, GRID_MINUTES):
            booked.add(format_time(appointment.date + timedelta(minutes=offset)))
    return booked


def filter_booked_slots(
        day: Union[str, date],
        candidate_slots: Iterable[str],
        service_duration: int,
        existing_appointments: Iterable,
        employee_id=None,
        mode: Optional[str] = MODE_EXACT
) -> List[str]:
    """
    Subsequence of candidate_slots that does not collide with existing appointments.

    Only active appointments starting on `day` count, and only the given
    employee's when employee_id is set. In "exact" mode a slot is dropped when
    its window overlaps an appointment window; "grid" keeps the legacy
    30-minute marker behaviour, which can miss overlaps for durations that
    are not multiples of 30.
    """
    day = parse_date(day)
    validate_duration(service_duration, "service_duration")
    candidates = list(candidate_slots)

    appointments = _relevant_appointments(day, existing_appointments, employee_id)
    if not appointments:
        return candidates

    if mode == MODE_GRID:
        booked = _grid_markers(appointments, service_duration)
        return [slot for slot in candidates if slot not in booked]

    if mode != MODE_EXACT:
        logger.warning(f"Unknown conflict check mode '{mode}', using exact overlap")

    booked_windows = [
        (a.date, a.date + timedelta(minutes=a.duration)) for a in appointments
    ]

    available = []
    for slot in candidates:
        slot_start = combine(day, slot)
        slot_end = slot_start + timedelta(minutes=service_duration)
        if not any(windows_overlap(slot_start, slot_end, start, end) for start, end in booked_windows):
            available.append(slot)

    return available
