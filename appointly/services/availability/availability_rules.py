# appointly/services/availability/availability_rules.py
"""Working-day and working-window rules for a business"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Union

from appointly.models.business import WEEKDAY_NAMES, DEFAULT_APPOINTMENT_DURATION
from appointly.services.availability.calendar_arithmetic import parse_date


@dataclass(frozen=True)
class WorkingWindow:
    open: str
    close: str


@dataclass(frozen=True)
class BreakWindow:
    start: str
    end: str


@dataclass
class SettingsSnapshot:
    """Storage-independent view of BusinessSettings"""

    working_hours: List[Dict] = field(default_factory=list)
    breaks: List[BreakWindow] = field(default_factory=list)
    blocked_dates: frozenset = field(default_factory=frozenset)
    appointment_duration: int = DEFAULT_APPOINTMENT_DURATION

    @classmethod
    def from_mapping(cls, data: Dict) -> "SettingsSnapshot":
        return cls(
            working_hours=list(data.get("working_hours") or []),
            breaks=[
                BreakWindow(start=b["start"], end=b["end"])
                for b in (data.get("breaks") or [])
            ],
            blocked_dates=frozenset(data.get("blocked_dates") or []),
            appointment_duration=data.get("appointment_duration") or DEFAULT_APPOINTMENT_DURATION,
        )

    @classmethod
    def from_model(cls, settings) -> "SettingsSnapshot":
        return cls.from_mapping({
            "working_hours": settings.working_hours,
            "breaks": settings.breaks,
            "blocked_dates": settings.blocked_dates,
            "appointment_duration": settings.appointment_duration,
        })

    def hours_for(self, weekday_name: str) -> Optional[Dict]:
        wanted = weekday_name.lower()
        return next(
            (entry for entry in self.working_hours if str(entry.get("day", "")).lower() == wanted),
            None,
        )


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def is_date_available(day: Union[str, date], settings: SettingsSnapshot) -> bool:
    """True when the date is not blocked and its weekday is open"""
    day = parse_date(day)

    if day.isoformat() in settings.blocked_dates:
        return False

    entry = settings.hours_for(weekday_name(day))
    if not entry or entry.get("isClosed"):
        return False

    return True


def get_working_window(day: Union[str, date], settings: SettingsSnapshot) -> Optional[WorkingWindow]:
    """Open/close times for the date, or None when the business is closed"""
    day = parse_date(day)
    if not is_date_available(day, settings):
        return None

    entry = settings.hours_for(weekday_name(day))
    return WorkingWindow(open=entry["open"], close=entry["close"])
