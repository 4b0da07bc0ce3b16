# Operating-hours parsing and open/closed/emergency status evaluation
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import get_clinic_timezone
from models import Clinic, WEEKDAYS

logger = logging.getLogger(__name__)

HOURS_NOT_AVAILABLE = "Hours not available"
EMERGENCY_FALLBACK_MESSAGE = "Emergency services available"
MINUTES_PER_DAY = 24 * 60

_TIME_RANGE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)\s*-\s*(?:([01]?\d|2[0-3]):([0-5]\d)|(24):(00))$")
_OPEN_ALL_DAY = re.compile(r"^24\s*hours?$", re.IGNORECASE)


@dataclass(frozen=True)
class ClosedAllDay:
    pass


@dataclass(frozen=True)
class OpenAllDay:
    pass


@dataclass(frozen=True)
class Ranges:
    """Open intervals as (start_minute, end_minute); end < start wraps past midnight"""
    ranges: Tuple[Tuple[int, int], ...]


@dataclass(frozen=True)
class Unparseable:
    """Schedule text that could not be read; evaluates as closed"""
    raw: str


DaySchedule = Union[ClosedAllDay, OpenAllDay, Ranges, Unparseable]


@dataclass(frozen=True)
class ClinicStatus:
    status: str  # "open" | "closed" | "emergency"
    message: str


def _parse_range(text: str) -> Optional[Tuple[int, int]]:
    match = _TIME_RANGE.match(text.strip())
    if not match:
        return None
    start_h, start_m, end_h, end_m, midnight_h, _ = match.groups()
    start = int(start_h) * 60 + int(start_m)
    end = MINUTES_PER_DAY if midnight_h else int(end_h) * 60 + int(end_m)
    return start, end


def parse_day_schedule(raw: Optional[str]) -> DaySchedule:
    """
    Parse one weekday value: "Closed", "24 Hours" or "HH:MM - HH:MM"[, ...].
    Never raises; anything else comes back as Unparseable.
    """
    if not isinstance(raw, str):
        return Unparseable(raw="" if raw is None else str(raw))

    text = raw.strip()
    if text.lower() == "closed":
        return ClosedAllDay()
    if _OPEN_ALL_DAY.match(text):
        return OpenAllDay()

    ranges: List[Tuple[int, int]] = []
    for part in text.split(","):
        parsed = _parse_range(part)
        if parsed is None:
            logger.debug("Unparseable schedule %r", raw)
            return Unparseable(raw=raw)
        ranges.append(parsed)
    return Ranges(ranges=tuple(ranges))


def is_valid_schedule(raw: Optional[str]) -> bool:
    """Whether a weekday value conforms to the schedule grammar"""
    return not isinstance(parse_day_schedule(raw), Unparseable)


def parse_week(hours: Optional[Dict[str, str]]) -> Dict[str, DaySchedule]:
    """Parse all seven weekdays once; missing days are Unparseable"""
    hours = hours if isinstance(hours, dict) else {}
    return {day: parse_day_schedule(hours.get(day)) for day in WEEKDAYS}


def to_clinic_time(instant: datetime) -> datetime:
    """
    Naive instants are taken as wall-clock time in the caller's zone.
    Aware instants are converted to the configured clinic time zone.
    """
    if instant.tzinfo is None:
        return instant
    try:
        zone = ZoneInfo(get_clinic_timezone())
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown CLINIC_TIMEZONE %r, using instant's own zone", get_clinic_timezone())
        return instant
    return instant.astimezone(zone)


def weekday_name(instant: datetime) -> str:
    """Monday=0 .. Sunday=6, independent of locale"""
    return WEEKDAYS[instant.weekday()]


def _open_same_day(schedule: DaySchedule, minute: int) -> bool:
    if isinstance(schedule, OpenAllDay):
        return True
    if not isinstance(schedule, Ranges):
        return False
    for start, end in schedule.ranges:
        if start < end and start <= minute < end:
            return True
        # Overnight range: evening part belongs to this day
        if end < start and minute >= start:
            return True
    return False


def _open_from_previous_day(schedule: DaySchedule, minute: int) -> bool:
    """Morning spill-over of the previous day's overnight ranges"""
    if not isinstance(schedule, Ranges):
        return False
    return any(end < start and minute < end for start, end in schedule.ranges)


def _is_open(week: Dict[str, DaySchedule], local: datetime) -> bool:
    minute = local.hour * 60 + local.minute
    today = weekday_name(local)
    yesterday = weekday_name(local - timedelta(days=1))
    return _open_same_day(week[today], minute) or _open_from_previous_day(week[yesterday], minute)


def is_open_at(hours: Optional[Dict[str, str]], instant: datetime) -> bool:
    """Opening minute counts as open, closing minute as closed"""
    return _is_open(parse_week(hours), to_clinic_time(instant))


def _emergency_message(clinic: Clinic) -> str:
    parts = [part for part in (clinic.emergency_hours, clinic.emergency_details) if part]
    if not parts:
        return EMERGENCY_FALLBACK_MESSAGE
    return "Emergency: " + " - ".join(parts)


def get_clinic_status(clinic: Clinic, instant: datetime) -> ClinicStatus:
    """Status badge for a clinic: open, emergency-only, or closed"""
    local = to_clinic_time(instant)
    week = parse_week(clinic.hours)

    if _is_open(week, local):
        if clinic.emergency:
            return ClinicStatus("open", "Open - Emergency services available")
        return ClinicStatus("open", "Currently Open")

    if clinic.emergency:
        return ClinicStatus("emergency", _emergency_message(clinic))

    if isinstance(week[weekday_name(local)], Unparseable):
        return ClinicStatus("closed", HOURS_NOT_AVAILABLE)
    return ClinicStatus("closed", "Currently Closed")


def get_today_hours(
    hours: Optional[Dict[str, str]],
    instant: datetime,
    fallback: str = HOURS_NOT_AVAILABLE,
) -> str:
    """Raw schedule text for the instant's weekday"""
    if not isinstance(hours, dict):
        return fallback
    value = hours.get(weekday_name(to_clinic_time(instant)))
    if not isinstance(value, str) or not value.strip():
        return fallback
    return value


def format_business_hours(hours: Optional[Dict[str, str]], instant: datetime) -> List[Dict]:
    """Weekly rows for the detail page, Monday first"""
    if not isinstance(hours, dict):
        return []
    today = weekday_name(to_clinic_time(instant))
    rows = []
    for day in WEEKDAYS:
        schedule = parse_day_schedule(hours.get(day))
        label = hours.get(day) if not isinstance(schedule, Unparseable) else HOURS_NOT_AVAILABLE
        rows.append({
            "day": day.capitalize(),
            "hours": label,
            "isToday": day == today,
            "isOpenDay": isinstance(schedule, (OpenAllDay, Ranges)),
        })
    return rows
