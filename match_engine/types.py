#!/usr/bin/env python3
"""
Match Engine Types - Plain data structures shared by signals, the
composite scorer, the cache layer and the orchestrator.

Signal ``details`` maps are documented open maps (Dict[str, Any]). They
exist for explainability and debugging only and never drive control flow.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

SignalName = Literal['temporal', 'skills', 'sustainability', 'growth', 'trust', 'network']

SIGNAL_NAMES: List[str] = ['temporal', 'skills', 'sustainability', 'growth', 'trust', 'network']

ScheduleType = Literal['sport', 'academic', 'custom']


# ----------------------------
# Student side
# ----------------------------
@dataclass
class StudentSkill:
    name: str
    category: str = 'General'
    proficiency_level: int = 3  # 1-5


@dataclass
class CustomBlock:
    day: str
    start_time: str  # "HH:MM"
    end_time: str
    label: Optional[str] = None


@dataclass
class TravelConflict:
    start_date: date
    end_date: date
    reason: Optional[str] = None


@dataclass
class ScheduleEntry:
    """One active (or inactive) schedule row for a student.

    Sport-season fields are populated only when the entry is linked to a
    season; academic entries reuse ``intensity_level`` as the term's
    priority level.
    """
    id: str
    schedule_type: str = 'custom'
    sport_season_id: Optional[str] = None
    sport_name: Optional[str] = None
    season_type: Optional[str] = None
    start_month: Optional[int] = None
    end_month: Optional[int] = None
    practice_hours_per_week: float = 0.0
    competition_hours_per_week: float = 0.0
    travel_days_per_month: int = 0
    intensity_level: int = 3
    custom_blocks: List[CustomBlock] = field(default_factory=list)
    travel_conflicts: List[TravelConflict] = field(default_factory=list)
    available_hours_per_week: Optional[float] = None
    effective_start: Optional[date] = None
    effective_end: Optional[date] = None
    is_active: bool = True

    @property
    def weekly_sport_hours(self) -> float:
        return (self.practice_hours_per_week or 0.0) + (self.competition_hours_per_week or 0.0)


@dataclass
class ApplicationHistoryEntry:
    listing_id: str
    status: str
    category: Optional[str] = None
    skills_required: List[str] = field(default_factory=list)
    applied_at: Optional[datetime] = None


@dataclass
class StudentData:
    id: str
    tenant_id: Optional[str] = None
    skills: List[StudentSkill] = field(default_factory=list)
    schedules: List[ScheduleEntry] = field(default_factory=list)
    sport_name: Optional[str] = None
    position: Optional[str] = None
    hours_per_week: float = 20.0
    application_history: List[ApplicationHistoryEntry] = field(default_factory=list)
    completion_rate: float = 0.0
    on_time_rate: float = 0.0
    avg_rating: Optional[float] = None
    rating_count: int = 0
    active_concurrent_listings: int = 0
    joined_at: Optional[datetime] = None
    gpa: Optional[str] = None

    @property
    def active_schedules(self) -> List[ScheduleEntry]:
        return [s for s in self.schedules if s.is_active]


# ----------------------------
# Listing side
# ----------------------------
@dataclass
class ListingData:
    id: str
    title: str = ''
    description: str = ''
    category: Optional[str] = None
    skills_required: List[str] = field(default_factory=list)
    hours_per_week: Optional[float] = None
    duration: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    remote_allowed: bool = False
    compensation: Optional[str] = None
    is_paid: bool = False
    tenant_id: Optional[str] = None
    author_id: Optional[str] = None
    company_name: Optional[str] = None
    published_at: Optional[datetime] = None
    max_students: int = 1
    students_accepted: int = 0


@dataclass
class AthleticTransferSkill:
    """Soft equivalence between athletic experience and a professional skill."""
    professional_skill: str
    transfer_strength: float  # 0-1
    source_sport: str
    source_position: Optional[str] = None
    skill_category: str = 'General'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'professional_skill': self.professional_skill,
            'transfer_strength': self.transfer_strength,
            'source_sport': self.source_sport,
            'source_position': self.source_position,
            'skill_category': self.skill_category,
        }


# ----------------------------
# Scores
# ----------------------------
@dataclass
class SignalResult:
    signal: str
    score: int  # 0-100
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CompositeScore:
    """Weighted aggregate of the six signals.

    ``signals`` maps each signal name to ``{'score', 'weight', 'details'}``.
    """
    score: int
    signals: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    computed_at: Optional[datetime] = None
    version: int = 1


@dataclass
class CachedMatchScore:
    id: str
    student_id: str
    listing_id: str
    tenant_id: Optional[str]
    composite_score: float
    signal_breakdown: Dict[str, Dict[str, Any]]
    is_stale: bool
    version: int
    computed_at: Optional[datetime]

    def to_composite(self) -> CompositeScore:
        return CompositeScore(
            score=int(round(self.composite_score)),
            signals=self.signal_breakdown,
            computed_at=self.computed_at,
            version=self.version,
        )


@dataclass
class QueueEntry:
    """A pending (or processed) recomputation request."""
    id: str
    student_id: str
    listing_id: Optional[str]
    reason: str
    priority: int
    queued_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    attempts: int = 0
    tenant_id: Optional[str] = None


@dataclass
class ScoreHistoryEntry:
    old_score: Optional[float]
    new_score: float
    change_reason: Optional[str]
    changed_at: Optional[datetime]
    old_breakdown: Optional[Dict[str, Any]] = None
    new_breakdown: Dict[str, Any] = field(default_factory=dict)


# ----------------------------
# Batch results
# ----------------------------
@dataclass
class StudentSummary:
    id: str
    first_name: str = ''
    last_name: str = ''
    email: str = ''
    university: Optional[str] = None


@dataclass
class MatchResult:
    """One ranked listing for a student."""
    listing_id: str
    student_id: str
    composite_score: float
    signals: Dict[str, Dict[str, Any]]
    listing: ListingData
    matched_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    athletic_transfer_skills: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class StudentMatchResult:
    """One ranked student for a listing owner."""
    student_id: str
    first_name: str
    last_name: str
    email: str
    university: Optional[str]
    composite_score: float
    signals: Dict[str, Dict[str, Any]]
    matched_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    athletic_transfer_skills: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class CompanyStats:
    total_listings: int = 0
    avg_rating: Optional[float] = None
    rating_count: int = 0
    completed_projects: int = 0
    accepted_students: int = 0


@dataclass
class AttractivenessResult:
    listing_id: str
    author_id: Optional[str]
    tenant_id: Optional[str]
    attractiveness_score: int
    signals: Dict[str, Dict[str, Any]]
    sample_size: int = 0


@dataclass
class CompanyAttractiveness:
    """Attractiveness aggregated across one author's scored listings."""
    author_id: str
    avg_score: int = 0
    listing_count: int = 0
    scores: List[Dict[str, Any]] = field(default_factory=list)  # [{'listing_id', 'score'}], best first
