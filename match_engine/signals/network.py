#!/usr/bin/env python3
"""
Network Affinity Signal (10%)

How close the listing sits to the student's own network.

Factors:
- Same tenant as the student (40%)
- Prior successful engagement in the listing's category (20%)
- Listing source exclusivity: own-tenant private > open network > other tenant (20%)
- Listing freshness since publication (20%)
"""

from datetime import datetime
from typing import Optional

from match_engine.types import ListingData, SignalResult, StudentData
from match_engine.utils import clamp_score, days_between, normalize_skill, round1, utcnow

SUCCESS_STATUSES = ('completed', 'accepted')


def _same_tenant(student: StudentData, listing: ListingData) -> bool:
    return bool(student.tenant_id) and bool(listing.tenant_id) and str(student.tenant_id) == str(listing.tenant_id)


def score_familiarity(prior_successes: int) -> int:
    if prior_successes >= 2:
        return 100
    if prior_successes == 1:
        return 80
    return 50


def score_exclusivity(student: StudentData, listing: ListingData) -> int:
    if not listing.tenant_id:
        return 60  # open network
    if _same_tenant(student, listing):
        return 100
    return 40


def score_freshness(days_since_publish: Optional[float]) -> int:
    if days_since_publish is None:
        return 50
    if days_since_publish <= 7:
        return 100
    if days_since_publish <= 14:
        return 85
    if days_since_publish <= 30:
        return 70
    if days_since_publish <= 60:
        return 50
    return 30


def score_network_affinity(
    student: StudentData,
    listing: ListingData,
    now: Optional[datetime] = None
) -> SignalResult:
    now = now or utcnow()

    same_tenant = _same_tenant(student, listing)
    tenant_score = 100 if same_tenant else 40

    category = normalize_skill(listing.category)
    prior_successes = 0
    if category:
        prior_successes = sum(
            1 for h in student.application_history or []
            if normalize_skill(h.category) == category and h.status in SUCCESS_STATUSES
        )
        familiarity = score_familiarity(prior_successes)
    else:
        familiarity = 50

    exclusivity = score_exclusivity(student, listing)

    days_since_publish = None
    if listing.published_at is not None:
        days_since_publish = max(0.0, days_between(listing.published_at, now))
    freshness = score_freshness(days_since_publish)

    final = tenant_score * 0.40 + familiarity * 0.20 + exclusivity * 0.20 + freshness * 0.20

    return SignalResult(
        signal='network',
        score=clamp_score(final),
        details={
            'same_tenant': same_tenant,
            'tenant_score': tenant_score,
            'prior_category_successes': prior_successes,
            'familiarity_score': familiarity,
            'exclusivity_score': exclusivity,
            'days_since_publish': round1(days_since_publish) if days_since_publish is not None else None,
            'freshness_score': freshness,
        },
    )
