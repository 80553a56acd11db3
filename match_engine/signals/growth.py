#!/usr/bin/env python3
"""
Growth Trajectory Signal (10%)

A modest stretch is rewarded: missing 15-45% of the required skills scores
highest. Also weighs category progression from history and GPA as an
academic-capacity proxy. Gap 50%, progression 30%, capacity 20%.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from match_engine.types import ListingData, SignalResult, StudentData
from match_engine.utils import clamp_score, normalize_skill, round_half_up

IDEAL_GAP_MIN = 0.15
IDEAL_GAP_MAX = 0.45
STRETCH_GAP_MAX = 0.6

SUCCESS_STATUSES = ('completed', 'accepted')


def score_gap(gap_ratio: float) -> float:
    if IDEAL_GAP_MIN <= gap_ratio <= IDEAL_GAP_MAX:
        return 100
    if gap_ratio < IDEAL_GAP_MIN:
        # Already knows almost everything: 60-90
        return 60 + gap_ratio * 200
    if gap_ratio <= STRETCH_GAP_MAX:
        return round_half_up(80 - (gap_ratio - IDEAL_GAP_MAX) * 150)
    return max(10, round_half_up(50 - (gap_ratio - STRETCH_GAP_MAX) * 100))


def score_gpa(gpa: Optional[str]) -> int:
    if not gpa:
        return 65
    try:
        value = float(str(gpa).strip())
    except ValueError:
        return 65
    if value != value:  # NaN
        return 65
    if value >= 3.5:
        return 95
    if value >= 3.0:
        return 80
    if value >= 2.5:
        return 60
    return 40


def score_growth_trajectory(
    student: StudentData,
    listing: ListingData,
    now: Optional[datetime] = None
) -> SignalResult:
    details: Dict[str, Any] = {}

    required = [normalize_skill(s) for s in (listing.skills_required or []) if normalize_skill(s)]
    known = {normalize_skill(s.name) for s in student.skills}

    gap_score: float = 50
    if required:
        matched_count = sum(1 for s in required if s in known)
        gap_ratio = 1 - matched_count / len(required)
        gap_score = score_gap(gap_ratio)
        details['gap_ratio'] = round(gap_ratio, 2)
        details['matched_skill_count'] = matched_count
        details['total_required'] = len(required)
    details['gap_score'] = gap_score

    progression = 50
    history = student.application_history or []
    category = normalize_skill(listing.category)
    if history and category:
        in_category = [h for h in history if normalize_skill(h.category) == category]
        completed = sum(1 for h in in_category if h.status in SUCCESS_STATUSES)
        if not in_category:
            progression = 80
        elif completed == 0:
            progression = 55
        elif completed <= 2:
            progression = 90
        else:
            progression = 60
    details['progression_score'] = progression

    capacity = score_gpa(student.gpa)
    details['capacity_score'] = capacity

    final = gap_score * 0.50 + progression * 0.30 + capacity * 0.20
    return SignalResult(signal='growth', score=clamp_score(final), details=details)
