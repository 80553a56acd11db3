#!/usr/bin/env python3
"""
Trust / Reliability Signal (10%)

Track record of the student. New students get a neutral-positive default
rather than a penalty.

Completion 35%, on-time 25%, ratings 25%, tenure 15%.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from match_engine.types import ListingData, SignalResult, StudentData
from match_engine.utils import clamp_score, days_between, round_half_up, utcnow

NEW_USER_SCORE = 55
MIN_HISTORY_THRESHOLD = 3
MIN_RATING_COUNT = 3
MAX_TENURE_DAYS = 365
RATING_PRIOR = 55


def score_completion(rate: float) -> int:
    if rate >= 0.9:
        return 100
    if rate >= 0.75:
        return 85
    if rate >= 0.5:
        return 65
    return 35


def score_on_time(rate: float) -> int:
    if rate <= 0:
        return 60
    if rate >= 0.9:
        return 100
    if rate >= 0.75:
        return 80
    if rate >= 0.5:
        return 55
    return 30


def score_rating(avg_rating: Optional[float], count: int) -> int:
    if avg_rating is None or count <= 0:
        return RATING_PRIOR
    if avg_rating >= 4.5:
        score = 100
    elif avg_rating >= 4.0:
        score = 85
    elif avg_rating >= 3.5:
        score = 70
    elif avg_rating >= 3.0:
        score = 50
    else:
        score = 25
    if count < MIN_RATING_COUNT:
        score = round_half_up(score * 0.85 + RATING_PRIOR * 0.15)
    return score


def score_trust_reliability(
    student: StudentData,
    listing: Optional[ListingData] = None,
    now: Optional[datetime] = None
) -> SignalResult:
    history = student.application_history or []

    if not history:
        return SignalResult(
            signal='trust',
            score=NEW_USER_SCORE,
            details={
                'is_new_user': True,
                'completion_score': NEW_USER_SCORE,
                'rating_score': NEW_USER_SCORE,
                'tenure_score': 30,
                'note': 'New user - no history to evaluate',
            },
        )

    details: Dict[str, Any] = {'is_new_user': False}

    accepted = [h for h in history if h.status in ('accepted', 'completed')]
    completed = [h for h in history if h.status == 'completed']

    if len(accepted) >= MIN_HISTORY_THRESHOLD:
        completion = score_completion(student.completion_rate)
    elif accepted:
        # Small sample: benefit of the doubt
        completion = 75 if completed else 50
    else:
        completion = NEW_USER_SCORE
    details['completion_score'] = completion
    details['completion_rate'] = student.completion_rate
    details['total_accepted'] = len(accepted)
    details['total_completed'] = len(completed)

    on_time = score_on_time(student.on_time_rate)
    details['on_time_score'] = on_time
    details['on_time_rate'] = student.on_time_rate

    rating = score_rating(student.avg_rating, student.rating_count)
    details['rating_score'] = rating
    details['avg_rating'] = student.avg_rating
    details['rating_count'] = student.rating_count

    now = now or utcnow()
    days_joined = max(0.0, days_between(student.joined_at, now))
    tenure_factor = min(days_joined / MAX_TENURE_DAYS, 1.0)
    tenure = round_half_up(30 + tenure_factor * 40)
    details['tenure_score'] = tenure
    details['days_since_joined'] = round_half_up(days_joined)

    final = completion * 0.35 + on_time * 0.25 + rating * 0.25 + tenure * 0.15
    return SignalResult(signal='trust', score=clamp_score(final), details=details)
