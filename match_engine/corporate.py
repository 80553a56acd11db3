#!/usr/bin/env python3
"""
Corporate Attractiveness - reverse-direction scoring.

How attractive a listing is to students, independent of any one student:
compensation 25%, flexibility 20%, company reputation 25%, company
completion rate 15%, growth indicators in the listing text 15%.
"""

import re
from typing import Any, Dict, List, Tuple

from match_engine.types import AttractivenessResult, CompanyStats, ListingData
from match_engine.utils import clamp_score, round_half_up

MONTHLY_WORK_HOURS = 160
MIN_REPUTATION_SAMPLE = 5

GROWTH_KEYWORDS: List[Tuple[str, int]] = [
    ('mentor', 15),
    ('training', 10),
    ('learn', 8),
    ('develop', 8),
    ('growth', 10),
    ('leadership', 12),
    ('full-time', 15),
    ('hire', 12),
    ('career', 10),
    ('advancement', 10),
    ('certification', 10),
    ('presentation', 8),
]

_AMOUNT_RE = re.compile(r'\$?(\d+)')

Signal = Dict[str, Any]


def score_compensation(listing: ListingData) -> Signal:
    if not listing.is_paid:
        return {'score': 20, 'details': {'is_paid': False, 'note': 'Unpaid listing'}}

    if not listing.compensation:
        return {'score': 40, 'details': {'is_paid': True, 'note': 'Paid but compensation not specified'}}

    comp = listing.compensation.lower()
    if 'negotiable' in comp or 'competitive' in comp:
        return {'score': 70, 'details': {'is_paid': True, 'compensation': listing.compensation,
                                         'note': 'Competitive/negotiable'}}

    match = _AMOUNT_RE.search(comp)
    if match:
        amount = int(match.group(1))
        is_hourly = '/hr' in comp or 'per hour' in comp or 'hourly' in comp
        hourly_rate = amount if is_hourly else amount / MONTHLY_WORK_HOURS
        if hourly_rate >= 25:
            score = 95
        elif hourly_rate >= 18:
            score = 80
        elif hourly_rate >= 12:
            score = 65
        else:
            score = 45
        return {'score': score, 'details': {'is_paid': True, 'compensation': listing.compensation,
                                            'estimated_hourly_rate': round_half_up(hourly_rate)}}

    return {'score': 55, 'details': {'is_paid': True, 'compensation': listing.compensation}}


def score_flexibility(listing: ListingData) -> Signal:
    hours = listing.hours_per_week or 20
    score = 50
    details: Dict[str, Any] = {'remote': bool(listing.remote_allowed), 'hours_per_week': hours}

    if listing.remote_allowed:
        score += 25

    if hours <= 10:
        score += 20
        details['flexibility'] = 'Very flexible (<=10 hrs/wk)'
    elif hours <= 20:
        score += 10
        details['flexibility'] = 'Standard (10-20 hrs/wk)'
    else:
        score -= 5
        details['flexibility'] = 'Heavy commitment (>20 hrs/wk)'

    return {'score': clamp_score(score), 'details': details}


def score_reputation(stats: CompanyStats) -> Signal:
    if stats.rating_count == 0:
        return {'score': 50, 'details': {'note': 'No ratings yet', 'rating_count': 0}}

    rating = stats.avg_rating or 0
    if rating >= 4.5:
        score = 100
    elif rating >= 4.0:
        score = 85
    elif rating >= 3.5:
        score = 70
    elif rating >= 3.0:
        score = 50
    else:
        score = 25

    if stats.rating_count < MIN_REPUTATION_SAMPLE:
        score = round_half_up(score * 0.8 + 50 * 0.2)

    return {'score': score, 'details': {'avg_rating': stats.avg_rating, 'rating_count': stats.rating_count}}


def score_company_completion(stats: CompanyStats) -> Signal:
    if stats.accepted_students == 0:
        return {'score': 50, 'details': {'note': 'No completed projects yet'}}

    rate = stats.completed_projects / max(stats.accepted_students, 1)
    if rate >= 0.9:
        score = 100
    elif rate >= 0.75:
        score = 80
    elif rate >= 0.5:
        score = 60
    else:
        score = 35

    return {'score': score, 'details': {
        'completion_rate': round(rate, 2),
        'completed_projects': stats.completed_projects,
        'accepted_students': stats.accepted_students,
    }}


def score_growth_opportunity(listing: ListingData) -> Signal:
    text = f"{listing.title or ''} {listing.description or ''}".lower()
    score = 50
    indicators: List[str] = []
    for keyword, boost in GROWTH_KEYWORDS:
        if keyword in text:
            score += boost
            indicators.append(keyword)
    return {'score': clamp_score(score), 'details': {
        'indicators': indicators,
        'note': 'Growth indicators found' if indicators else 'No specific growth indicators',
    }}


def compute_attractiveness(listing: ListingData, stats: CompanyStats) -> AttractivenessResult:
    signals = {
        'compensation': score_compensation(listing),
        'flexibility': score_flexibility(listing),
        'reputation': score_reputation(stats),
        'completion_rate': score_company_completion(stats),
        'growth_opportunity': score_growth_opportunity(listing),
    }
    total = (
        signals['compensation']['score'] * 0.25
        + signals['flexibility']['score'] * 0.20
        + signals['reputation']['score'] * 0.25
        + signals['completion_rate']['score'] * 0.15
        + signals['growth_opportunity']['score'] * 0.15
    )
    return AttractivenessResult(
        listing_id=listing.id,
        author_id=listing.author_id,
        tenant_id=listing.tenant_id,
        attractiveness_score=clamp_score(total),
        signals=signals,
        sample_size=stats.total_listings,
    )
