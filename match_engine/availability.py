"""
Availability helpers.

Derive weekly free hours and month-by-month availability windows from a
student's schedule entries. Only active entries are considered.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from match_engine.types import ScheduleEntry
from match_engine.utils import round1, to_date

FULL_WEEK_HOURS = 40.0
TRAVEL_WINDOW_HOURS = 8.0  # rough weekly cost of a travel conflict inside a window


@dataclass
class AvailabilityWindow:
    start_date: date
    end_date: date
    available_hours_per_week: float
    constraints: List[str] = field(default_factory=list)


def is_month_in_range(month: int, start: int, end: int) -> bool:
    """True if ``month`` lies in [start, end], wrapping across year end (e.g. 10..2)."""
    if start <= end:
        return start <= month <= end
    return month >= start or month <= end


def parse_time_to_hours(value: Optional[str]) -> float:
    """Parse "HH:MM" into fractional hours; malformed parts count as 0."""
    if not value:
        return 0.0
    parts = value.split(':')
    try:
        hours = int(parts[0]) if parts[0] else 0
    except ValueError:
        hours = 0
    try:
        minutes = int(parts[1]) if len(parts) > 1 and parts[1] else 0
    except ValueError:
        minutes = 0
    return hours + minutes / 60.0


def _academic_hours(intensity: int) -> float:
    if intensity >= 4:
        return 20.0
    if intensity >= 3:
        return 15.0
    return 5.0


def calculate_available_hours(
    schedules: List[ScheduleEntry],
    base_hours_per_week: float = FULL_WEEK_HOURS
) -> float:
    """Weekly hours left after sport, custom-block and academic commitments."""
    active = [s for s in schedules if s.is_active]

    committed = 0.0
    for sched in active:
        if sched.schedule_type == 'sport':
            committed += sched.weekly_sport_hours
        for block in sched.custom_blocks or []:
            if block.start_time and block.end_time:
                hours = parse_time_to_hours(block.end_time) - parse_time_to_hours(block.start_time)
                if hours > 0:
                    committed += hours

    academic = 0.0
    for sched in active:
        if sched.schedule_type == 'academic':
            academic = _academic_hours(sched.intensity_level)

    return round1(max(0.0, base_hours_per_week - committed - academic))


def _add_month(d: date) -> date:
    year = d.year + (1 if d.month == 12 else 0)
    month = 1 if d.month == 12 else d.month + 1
    # Clamp day for shorter months
    for day in (d.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    return date(year, month, 28)


def get_availability_windows(
    schedules: List[ScheduleEntry],
    start_date,
    end_date
) -> List[AvailabilityWindow]:
    """Split [start_date, end_date) into monthly windows with per-window availability."""
    start = to_date(start_date)
    end = to_date(end_date)
    if start is None or end is None or end <= start:
        return []

    active = [s for s in schedules if s.is_active]
    if not active:
        return [AvailabilityWindow(start, end, FULL_WEEK_HOURS, [])]

    windows: List[AvailabilityWindow] = []
    current = start
    while current < end:
        window_end = min(_add_month(current), end)
        constraints: List[str] = []
        committed = 0.0

        for sched in active:
            if sched.schedule_type == 'sport' and sched.start_month and sched.end_month:
                if is_month_in_range(current.month, sched.start_month, sched.end_month):
                    committed += sched.weekly_sport_hours
                    constraints.append(f"{sched.sport_name or 'Sport'} {sched.season_type or 'season'}")

        for sched in active:
            for tc in sched.travel_conflicts or []:
                tc_start, tc_end = to_date(tc.start_date), to_date(tc.end_date)
                if tc_start is None or tc_end is None:
                    continue
                if tc_start <= window_end and tc_end >= current:
                    constraints.append(f"Travel: {tc.reason or 'Away'}")
                    committed += TRAVEL_WINDOW_HOURS

        windows.append(AvailabilityWindow(
            start_date=current,
            end_date=window_end,
            available_hours_per_week=round1(max(0.0, FULL_WEEK_HOURS - committed)),
            constraints=constraints,
        ))
        current = window_end

    return windows


def overlap_days(start_a: date, end_a: date, start_b: date, end_b: date) -> float:
    latest_start = max(start_a, start_b)
    earliest_end = min(end_a, end_b)
    return float(max(0, (earliest_end - latest_start).days))


def count_travel_conflicts(schedules: List[ScheduleEntry], start_date, end_date) -> float:
    """Days of [start_date, end_date) covered by active travel conflicts."""
    start = to_date(start_date)
    end = to_date(end_date)
    if start is None or end is None:
        return 0.0

    conflict_days = 0.0
    for sched in schedules:
        if not sched.is_active:
            continue
        for tc in sched.travel_conflicts or []:
            tc_start, tc_end = to_date(tc.start_date), to_date(tc.end_date)
            if tc_start is None or tc_end is None:
                continue
            conflict_days += overlap_days(start, end, tc_start, tc_end)

    return round1(conflict_days)
