#!/usr/bin/env python3
"""
Skills Alignment Signal (30%)

Factors:
- Direct match ratio between required and student skills (55%)
- Proficiency of matched skills against a level-3 baseline (20%)
- Athletic transfer credit for missing skills (15%)
- Coarse skill-category overlap (10%)

Athletic transfers are passed in pre-loaded; the calculator never touches the DB.
"""

from datetime import datetime
from typing import Dict, List, Optional

from match_engine.types import AthleticTransferSkill, ListingData, SignalResult, StudentData
from match_engine.utils import clamp_score, normalize_skill, round_half_up

BASELINE_PROFICIENCY = 3
BASELINE_PROFICIENCY_SCORE = 70
MAX_TRANSFER_SCORE = 60

WEIGHT_DIRECT = 0.55
WEIGHT_PROFICIENCY = 0.20
WEIGHT_TRANSFER = 0.15
WEIGHT_CATEGORY = 0.10


def proficiency_score(level: int) -> float:
    """Level 3 meets expectations (70); 5 caps at 100."""
    return min(100.0, (level / BASELINE_PROFICIENCY) * BASELINE_PROFICIENCY_SCORE)


def _strongest_transfers(transfers: List[AthleticTransferSkill]) -> Dict[str, AthleticTransferSkill]:
    strongest: Dict[str, AthleticTransferSkill] = {}
    for transfer in transfers:
        key = normalize_skill(transfer.professional_skill)
        existing = strongest.get(key)
        if existing is None or transfer.transfer_strength > existing.transfer_strength:
            strongest[key] = transfer
    return strongest


def score_skills_alignment(
    student: StudentData,
    listing: ListingData,
    athletic_transfers: Optional[List[AthleticTransferSkill]] = None,
    now: Optional[datetime] = None
) -> SignalResult:
    athletic_transfers = athletic_transfers or []
    required = [normalize_skill(s) for s in (listing.skills_required or []) if normalize_skill(s)]
    student_skills = {normalize_skill(s.name): s for s in student.skills if normalize_skill(s.name)}

    if not required:
        return SignalResult(
            signal='skills',
            score=50 if student_skills else 30,
            details={
                'direct_match_count': 0,
                'total_required': 0,
                'direct_match_ratio': 0.0,
                'direct_match_score': 50,
                'proficiency_score': 50,
                'transfer_score': 0,
                'category_score': 50,
                'matched_skills': [],
                'missing_skills': [],
                'athletic_transfer_skills': [],
            },
        )

    matched: List[str] = []
    missing: List[str] = []
    proficiency_scores: List[float] = []
    for skill in required:
        student_skill = student_skills.get(skill)
        if student_skill is not None:
            matched.append(skill)
            proficiency_scores.append(proficiency_score(student_skill.proficiency_level))
        else:
            missing.append(skill)

    direct_ratio = len(matched) / len(required)
    direct_score = round_half_up(direct_ratio * 100)
    prof_score = round_half_up(sum(proficiency_scores) / len(proficiency_scores)) if proficiency_scores else 0

    # Athletic transfers only credit skills the student lacks directly
    transfer_matches: List[AthleticTransferSkill] = []
    transfer_score = 0
    if athletic_transfers and missing:
        strongest = _strongest_transfers(athletic_transfers)
        transfer_matches = [strongest[s] for s in missing if s in strongest]
        if transfer_matches:
            contribution = sum(t.transfer_strength for t in transfer_matches)
            transfer_score = round_half_up(min(1.0, contribution / len(missing)) * MAX_TRANSFER_SCORE)

    student_categories = {normalize_skill(s.category) for s in student.skills if s.category}
    transfer_categories = {normalize_skill(t.skill_category) for t in athletic_transfers if t.skill_category}
    category_overlap = len(student_categories & transfer_categories)
    category_score = min(100, category_overlap * 25 + 25)

    final = (
        direct_score * WEIGHT_DIRECT
        + prof_score * WEIGHT_PROFICIENCY
        + transfer_score * WEIGHT_TRANSFER
        + category_score * WEIGHT_CATEGORY
    )

    return SignalResult(
        signal='skills',
        score=clamp_score(final),
        details={
            'direct_match_count': len(matched),
            'total_required': len(required),
            'direct_match_ratio': direct_ratio,
            'direct_match_score': direct_score,
            'proficiency_score': prof_score,
            'transfer_score': transfer_score,
            'category_score': category_score,
            'matched_skills': matched,
            'missing_skills': missing,
            'athletic_transfer_skills': [t.to_dict() for t in transfer_matches],
        },
    )
