from .calendar_arithmetic import generate_slots, parse_date, parse_time, windows_overlap
from .availability_rules import SettingsSnapshot, WorkingWindow, is_date_available, get_working_window
from .slot_generator import get_available_times
from .conflict_filter import filter_booked_slots, MODE_EXACT, MODE_GRID

__all__ = [
    "generate_slots",
    "parse_date",
    "parse_time",
    "windows_overlap",
    "SettingsSnapshot",
    "WorkingWindow",
    "is_date_available",
    "get_working_window",
    "get_available_times",
    "filter_booked_slots",
    "MODE_EXACT",
    "MODE_GRID",
]
