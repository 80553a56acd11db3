#!/usr/bin/env python3
"""
Sustainability Signal (15%)

Burnout risk from total weekly load, concurrent commitments and sport intensity.
Workload 50%, concurrent listings 30%, season intensity 20%.
"""

from datetime import datetime
from typing import Optional

from match_engine.types import ListingData, SignalResult, StudentData
from match_engine.utils import clamp_score

MAX_SUSTAINABLE_HOURS = 50
IDEAL_CONCURRENT = 1
MAX_CONCURRENT = 3
HOURS_PER_EXISTING_PROJECT = 10  # rough estimate per accepted listing
DEFAULT_LISTING_HOURS = 15.0


def score_workload(total_hours: float) -> float:
    if total_hours <= 30:
        return 100
    if total_hours <= 40:
        return 85
    if total_hours <= MAX_SUSTAINABLE_HOURS:
        return 65
    overload = total_hours - MAX_SUSTAINABLE_HOURS
    return max(10.0, 50 - overload * 3)


def score_concurrent(concurrent: int) -> int:
    if concurrent <= IDEAL_CONCURRENT:
        return 100
    if concurrent <= 2:
        return 75
    if concurrent <= MAX_CONCURRENT:
        return 50
    # Past the ceiling the score drops straight to the floor
    return max(10, 25 - (concurrent - MAX_CONCURRENT) * 15)


def score_intensity(max_intensity: Optional[int]) -> int:
    if max_intensity is None:
        return 100
    if max_intensity <= 2:
        return 90
    if max_intensity <= 3:
        return 70
    if max_intensity <= 4:
        return 45
    return 25


def score_sustainability(
    student: StudentData,
    listing: ListingData,
    now: Optional[datetime] = None
) -> SignalResult:
    seasons = [s for s in student.active_schedules if s.schedule_type == 'sport']

    listing_hours = listing.hours_per_week or DEFAULT_LISTING_HOURS
    sport_hours = sum(s.weekly_sport_hours for s in seasons)
    existing_project_hours = student.active_concurrent_listings * HOURS_PER_EXISTING_PROJECT
    total_hours = sport_hours + existing_project_hours + listing_hours

    workload = score_workload(total_hours)
    concurrent = score_concurrent(student.active_concurrent_listings)
    max_intensity = max((s.intensity_level for s in seasons), default=None)
    intensity = score_intensity(max_intensity)

    final = workload * 0.50 + concurrent * 0.30 + intensity * 0.20

    return SignalResult(
        signal='sustainability',
        score=clamp_score(final),
        details={
            'workload_score': workload,
            'total_committed_hours': total_hours,
            'sport_hours': sport_hours,
            'existing_project_hours': existing_project_hours,
            'listing_hours': listing_hours,
            'concurrent_score': concurrent,
            'concurrent_listings': student.active_concurrent_listings,
            'intensity_score': intensity,
        },
    )
