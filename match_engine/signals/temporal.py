#!/usr/bin/env python3
"""
Temporal Fit Signal (25%)

Scores how well a student's schedule lines up with a listing's hours and dates.

Factors (unweighted mean of those that apply):
- Hours availability: shortfall penalized harder than surplus
- Sport season conflict: only when the listing starts inside an active season
- Travel days per month: only for students with a sport schedule
- Explicit travel conflicts overlapping the listing's date range
- Academic calendar alignment: breaks score high, heavy terms low
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from match_engine.availability import count_travel_conflicts, is_month_in_range
from match_engine.types import ListingData, SignalResult, StudentData
from match_engine.utils import clamp_score, round1, round_half_up, to_date

DEFAULT_LISTING_HOURS = 15.0
DEFAULT_STUDENT_HOURS = 20.0
MAX_SPORT_LOAD_HOURS = 30.0  # weekly athletic hours treated as full load
NEUTRAL_SCORE = 50


def score_hours(available_hours: float, required_hours: float) -> int:
    gap = abs(available_hours - required_hours)
    if available_hours >= required_hours:
        if gap <= 5:
            return 100
        if gap <= 10:
            return 85
        if gap <= 20:
            return 70
        return 60
    if gap <= 3:
        return 75
    if gap <= 8:
        return 50
    if gap <= 15:
        return 25
    return 10


def score_travel_days(travel_days: float) -> int:
    if travel_days <= 2:
        return 100
    if travel_days <= 4:
        return 85
    if travel_days <= 6:
        return 65
    if travel_days <= 8:
        return 45
    return 25


def score_academic_intensity(intensity: int) -> int:
    if intensity <= 2:
        return 95
    if intensity <= 3:
        return 70
    if intensity <= 4:
        return 50
    return 30


def score_temporal_fit(
    student: StudentData,
    listing: ListingData,
    now: Optional[datetime] = None
) -> SignalResult:
    """Pure function; ``now`` is accepted for a uniform calculator signature."""
    details: Dict[str, Any] = {}
    factors: List[float] = []

    # Hours availability
    required_hours = listing.hours_per_week or DEFAULT_LISTING_HOURS
    available_hours = student.hours_per_week or DEFAULT_STUDENT_HOURS
    hours_score = score_hours(available_hours, required_hours)
    details['hours_score'] = hours_score
    details['available_hours'] = available_hours
    details['required_hours'] = required_hours
    factors.append(hours_score)

    active = student.active_schedules
    sport_schedules = [s for s in active if s.schedule_type == 'sport']
    listing_start = to_date(listing.start_date)
    listing_end = to_date(listing.end_date)

    # Sport season conflict
    if sport_schedules and listing_start:
        season_score = 100.0
        for sched in sport_schedules:
            if not (sched.start_month and sched.end_month):
                continue
            if is_month_in_range(listing_start.month, sched.start_month, sched.end_month):
                intensity = sched.intensity_level or 3
                load_factor = min(sched.weekly_sport_hours / MAX_SPORT_LOAD_HOURS, 1.0)
                season_score = max(20.0, 100 - intensity * 12 - load_factor * 20)
        details['season_conflict_score'] = round1(season_score)
        factors.append(season_score)

    # Travel day load
    if sport_schedules:
        travel_days = sum(s.travel_days_per_month or 0 for s in sport_schedules)
        travel_score = score_travel_days(travel_days)
        details['travel_score'] = travel_score
        details['travel_days_per_month'] = travel_days
        factors.append(travel_score)

    # Explicit travel conflicts
    if listing_start and listing_end:
        conflict_days = count_travel_conflicts(active, listing_start, listing_end)
        if conflict_days > 0:
            duration = float((listing_end - listing_start).days)
            ratio = conflict_days / duration if duration > 0 else 0.0
            conflict_score = max(10.0, 100 - ratio * 200)
            details['travel_conflict_days'] = round1(conflict_days)
            details['travel_conflict_score'] = round_half_up(conflict_score)
            factors.append(conflict_score)

    # Academic calendar
    academic = [s for s in active if s.schedule_type == 'academic']
    if academic and listing_start:
        academic_score = 70
        for sched in academic:
            start, end = to_date(sched.effective_start), to_date(sched.effective_end)
            if start and end and start <= listing_start <= end:
                academic_score = score_academic_intensity(sched.intensity_level or 3)
        details['academic_score'] = academic_score
        factors.append(academic_score)

    final = sum(factors) / len(factors) if factors else NEUTRAL_SCORE
    details['factor_count'] = len(factors)

    return SignalResult(signal='temporal', score=clamp_score(final), details=details)
