#!/usr/bin/env python3
"""
Data loaders - the boundary between the engine and the platform tables.

The engine only depends on the MatchDataSource protocol. SqlMatchDataSource
reads the platform's tables (users, skills, schedules, applications,
listings, ratings, athletic mappings) through raw SQL on a SQLAlchemy
session; tests substitute an in-memory source.
"""

import json
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from sqlalchemy import bindparam, text
from sqlalchemy.orm import Session

from match_engine.types import (
    ApplicationHistoryEntry,
    AthleticTransferSkill,
    CompanyStats,
    CustomBlock,
    ListingData,
    ScheduleEntry,
    StudentData,
    StudentSkill,
    StudentSummary,
    TravelConflict,
)
from match_engine.utils import normalize_skill, to_date

logger = logging.getLogger(__name__)

CANDIDATE_LIMIT = 200
DESCRIPTION_MAX_CHARS = 500
DEFAULT_PROFICIENCY = 3
DEFAULT_HOURS_PER_WEEK = 20.0

ACCEPTED_STATUSES = ('accepted', 'completed')


class MatchDataSource(Protocol):
    """Everything the engine needs to read about students and listings."""

    def load_student(self, student_id: str) -> Optional[StudentData]:
        ...

    def load_listing(self, listing_id: str) -> Optional[ListingData]:
        ...

    def load_athletic_transfers(self, student: StudentData) -> List[AthleticTransferSkill]:
        ...

    def list_candidate_listing_ids(self, tenant_id: Optional[str] = None, limit: int = CANDIDATE_LIMIT) -> List[str]:
        ...

    def list_candidate_student_ids(self, tenant_id: Optional[str] = None, limit: int = CANDIDATE_LIMIT) -> List[str]:
        ...

    def load_student_summary(self, student_id: str) -> Optional[StudentSummary]:
        ...

    def load_company_stats(self, author_id: str) -> CompanyStats:
        ...


# ----------------------------
# Row -> dataclass helpers
# ----------------------------
def _json_list(value: Any) -> List[Dict[str, Any]]:
    """JSON columns arrive decoded on PostgreSQL and as text on other drivers."""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning(f"Ignoring malformed JSON column value: {value[:80]!r}")
            return []
    return [v for v in value if isinstance(v, dict)] if isinstance(value, list) else []


def _json_map(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return {}
    return value if isinstance(value, dict) else {}


def _num(value: Any, default: float = 0.0) -> float:
    try:
        return float(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _str_id(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _parse_schedule(row: Mapping[str, Any]) -> ScheduleEntry:
    blocks = [
        CustomBlock(
            day=b.get('day', ''),
            start_time=b.get('start_time', ''),
            end_time=b.get('end_time', ''),
            label=b.get('label'),
        )
        for b in _json_list(row.get('custom_blocks'))
    ]

    conflicts = []
    for c in _json_list(row.get('travel_conflicts')):
        start, end = to_date(c.get('start_date')), to_date(c.get('end_date'))
        if start is None or end is None:
            continue
        conflicts.append(TravelConflict(start_date=start, end_date=end, reason=c.get('reason')))

    available = row.get('available_hours_per_week')
    return ScheduleEntry(
        id=str(row['id']),
        schedule_type=row.get('schedule_type') or 'custom',
        sport_season_id=_str_id(row.get('sport_season_id')),
        sport_name=row.get('sport_name'),
        season_type=row.get('season_type'),
        start_month=row.get('start_month'),
        end_month=row.get('end_month'),
        practice_hours_per_week=_num(row.get('practice_hours_per_week')),
        competition_hours_per_week=_num(row.get('competition_hours_per_week')),
        travel_days_per_month=int(_num(row.get('travel_days_per_month'))),
        intensity_level=int(_num(row.get('intensity_level'), 3)) or 3,
        custom_blocks=blocks,
        travel_conflicts=conflicts,
        available_hours_per_week=_num(available) if available is not None else None,
        effective_start=to_date(row.get('effective_start')),
        effective_end=to_date(row.get('effective_end')),
        is_active=bool(row.get('is_active', True)),
    )


def build_student_data(
    user: Mapping[str, Any],
    skills: Sequence[Mapping[str, Any]],
    schedules: Sequence[Mapping[str, Any]],
    applications: Sequence[Mapping[str, Any]],
    concurrent_count: int = 0,
    avg_rating: Optional[float] = None,
    rating_count: int = 0
) -> StudentData:
    """Assemble a StudentData from raw rows; derives completion and on-time rates."""
    public_data = _json_map(user.get('public_data'))

    accepted = [a for a in applications if a.get('status') in ACCEPTED_STATUSES]
    completed = [a for a in applications if a.get('status') == 'completed']
    completion_rate = len(completed) / len(accepted) if accepted else 0.0

    parsed_schedules = [_parse_schedule(s) for s in schedules]
    sport_name = next((s.sport_name for s in parsed_schedules if s.sport_name), None)

    return StudentData(
        id=str(user['id']),
        tenant_id=_str_id(user.get('tenant_id')),
        skills=[
            StudentSkill(
                name=s['name'],
                category=s.get('category') or 'General',
                proficiency_level=int(_num(s.get('proficiency_level'), DEFAULT_PROFICIENCY)) or DEFAULT_PROFICIENCY,
            )
            for s in skills
        ],
        schedules=parsed_schedules,
        sport_name=sport_name,
        position=public_data.get('position'),
        hours_per_week=_num(public_data.get('hoursPerWeek') or public_data.get('hours_per_week'),
                            DEFAULT_HOURS_PER_WEEK) or DEFAULT_HOURS_PER_WEEK,
        application_history=[
            ApplicationHistoryEntry(
                listing_id=str(a['listing_id']),
                status=a.get('status') or '',
                category=a.get('category'),
                skills_required=list(a.get('skills_required') or []),
                applied_at=a.get('created_at'),
            )
            for a in applications
        ],
        completion_rate=completion_rate,
        # No separate deadline tracking exists yet; on-time mirrors completion
        on_time_rate=completion_rate,
        avg_rating=float(avg_rating) if avg_rating is not None else None,
        rating_count=int(rating_count or 0),
        active_concurrent_listings=int(concurrent_count or 0),
        joined_at=user.get('created_at'),
        gpa=user.get('gpa'),
    )


def filter_transfers_for_position(
    transfers: Sequence[AthleticTransferSkill],
    position: Optional[str]
) -> List[AthleticTransferSkill]:
    """Keep sport-wide mappings plus those for the student's position (all of them if unknown)."""
    if not position:
        return list(transfers)
    wanted = normalize_skill(position)
    return [
        t for t in transfers
        if not t.source_position or normalize_skill(t.source_position) == wanted
    ]


def _to_date_or_none(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return to_date(value)


class SqlMatchDataSource:
    """MatchDataSource over the platform's PostgreSQL tables."""

    def __init__(self, db: Session):
        self.db = db

    def _rows(self, sql: str, **params) -> List[Mapping[str, Any]]:
        return list(self.db.execute(text(sql), params).mappings().all())

    def _row(self, sql: str, **params) -> Optional[Mapping[str, Any]]:
        return self.db.execute(text(sql), params).mappings().first()

    def load_student(self, student_id: str) -> Optional[StudentData]:
        user = self._row(
            "SELECT id, tenant_id, gpa, public_data, created_at FROM users WHERE id = :id",
            id=student_id
        )
        if user is None:
            logger.debug(f"Student {student_id} not found")
            return None

        skills = self._rows(
            """
            SELECT s.name, s.category, COALESCE(us.proficiency_level, 3) AS proficiency_level
            FROM user_skills us
            JOIN skills s ON s.id = us.skill_id
            WHERE us.user_id = :id
            """,
            id=student_id
        )

        schedules = self._rows(
            """
            SELECT ss.id, ss.schedule_type, ss.sport_season_id,
                   sp.sport_name, sp.season_type, sp.start_month, sp.end_month,
                   COALESCE(sp.practice_hours_per_week, 0) AS practice_hours_per_week,
                   COALESCE(sp.competition_hours_per_week, 0) AS competition_hours_per_week,
                   COALESCE(sp.travel_days_per_month, 0) AS travel_days_per_month,
                   COALESCE(sp.intensity_level, 3) AS intensity_level,
                   ss.custom_blocks, ss.travel_conflicts,
                   ss.available_hours_per_week, ss.effective_start, ss.effective_end,
                   ss.is_active
            FROM student_schedules ss
            LEFT JOIN sport_seasons sp ON sp.id = ss.sport_season_id
            WHERE ss.user_id = :id AND ss.is_active = TRUE
            """,
            id=student_id
        )

        applications = self._rows(
            """
            SELECT pa.listing_id, pa.status, l.category, l.skills_required, pa.created_at
            FROM project_applications pa
            JOIN listings l ON l.id = pa.listing_id
            WHERE pa.student_id = :id
            ORDER BY pa.created_at DESC
            """,
            id=student_id
        )

        concurrent = self._row(
            "SELECT COUNT(*) AS count FROM project_applications WHERE student_id = :id AND status = 'accepted'",
            id=student_id
        )

        ratings = self._row(
            "SELECT AVG(r.rating) AS avg_rating, COUNT(r.id) AS count FROM student_ratings r WHERE r.student_id = :id",
            id=student_id
        )

        return build_student_data(
            user,
            skills,
            schedules,
            applications,
            concurrent_count=int(concurrent['count']) if concurrent else 0,
            avg_rating=ratings['avg_rating'] if ratings and ratings['avg_rating'] is not None else None,
            rating_count=int(ratings['count']) if ratings else 0,
        )

    def load_listing(self, listing_id: str) -> Optional[ListingData]:
        row = self._row(
            """
            SELECT l.id, l.title, l.description, l.category, l.skills_required,
                   l.hours_per_week, l.duration, l.start_date, l.end_date,
                   l.remote_allowed, l.compensation, l.is_paid,
                   l.tenant_id, l.author_id, l.published_at,
                   l.max_students, l.students_accepted,
                   u.company_name
            FROM listings l
            LEFT JOIN users u ON u.id = l.author_id
            WHERE l.id = :id
            """,
            id=listing_id
        )
        if row is None:
            logger.debug(f"Listing {listing_id} not found")
            return None

        return ListingData(
            id=str(row['id']),
            title=row['title'] or '',
            description=(row['description'] or '')[:DESCRIPTION_MAX_CHARS],
            category=row['category'],
            skills_required=list(row['skills_required'] or []),
            hours_per_week=_num(row['hours_per_week']) if row['hours_per_week'] is not None else None,
            duration=row['duration'],
            start_date=_to_date_or_none(row['start_date']),
            end_date=_to_date_or_none(row['end_date']),
            remote_allowed=bool(row['remote_allowed']),
            compensation=row['compensation'],
            is_paid=bool(row['is_paid']),
            tenant_id=_str_id(row['tenant_id']),
            author_id=_str_id(row['author_id']),
            company_name=row['company_name'],
            published_at=row['published_at'],
            max_students=row['max_students'] or 1,
            students_accepted=row['students_accepted'] or 0,
        )

    def load_athletic_transfers(self, student: StudentData) -> List[AthleticTransferSkill]:
        sport_names = sorted({s.sport_name for s in student.active_schedules if s.sport_name})
        if not sport_names:
            return []

        stmt = text(
            """
            SELECT sport_name, position, professional_skill, transfer_strength, skill_category
            FROM athletic_skill_mappings
            WHERE sport_name IN :sports
            ORDER BY transfer_strength DESC
            """
        ).bindparams(bindparam('sports', expanding=True))
        rows = self.db.execute(stmt, {'sports': sport_names}).mappings().all()

        transfers = [
            AthleticTransferSkill(
                professional_skill=r['professional_skill'],
                transfer_strength=_num(r['transfer_strength']),
                source_sport=r['sport_name'],
                source_position=r['position'],
                skill_category=r['skill_category'] or 'General',
            )
            for r in rows
        ]
        return filter_transfers_for_position(transfers, student.position)

    def list_candidate_listing_ids(self, tenant_id: Optional[str] = None, limit: int = CANDIDATE_LIMIT) -> List[str]:
        if tenant_id:
            rows = self._rows(
                """
                SELECT id FROM listings
                WHERE status = 'published' AND tenant_id = :tenant_id
                ORDER BY published_at DESC NULLS LAST
                LIMIT :limit
                """,
                tenant_id=tenant_id, limit=limit
            )
        else:
            rows = self._rows(
                """
                SELECT id FROM listings
                WHERE status = 'published'
                ORDER BY published_at DESC NULLS LAST
                LIMIT :limit
                """,
                limit=limit
            )
        return [str(r['id']) for r in rows]

    def list_candidate_student_ids(self, tenant_id: Optional[str] = None, limit: int = CANDIDATE_LIMIT) -> List[str]:
        if tenant_id:
            rows = self._rows(
                "SELECT id FROM users WHERE role = 'student' AND tenant_id = :tenant_id LIMIT :limit",
                tenant_id=tenant_id, limit=limit
            )
        else:
            rows = self._rows("SELECT id FROM users WHERE role = 'student' LIMIT :limit", limit=limit)
        return [str(r['id']) for r in rows]

    def load_student_summary(self, student_id: str) -> Optional[StudentSummary]:
        row = self._row(
            "SELECT id, first_name, last_name, email, university FROM users WHERE id = :id",
            id=student_id
        )
        if row is None:
            return None
        return StudentSummary(
            id=str(row['id']),
            first_name=row['first_name'] or '',
            last_name=row['last_name'] or '',
            email=row['email'] or '',
            university=row['university'],
        )

    def load_company_stats(self, author_id: str) -> CompanyStats:
        stats = self._row(
            """
            SELECT
              COUNT(DISTINCT l.id) AS total_listings,
              COUNT(DISTINCT CASE WHEN pa.status = 'completed' THEN pa.id END) AS completed_projects,
              COUNT(DISTINCT CASE WHEN pa.status IN ('accepted', 'completed') THEN pa.student_id END)
                AS accepted_students
            FROM listings l
            LEFT JOIN project_applications pa ON pa.listing_id = l.id
            WHERE l.author_id = :author_id
            """,
            author_id=author_id
        )
        ratings = self._row(
            """
            SELECT AVG(r.rating) AS avg_rating, COUNT(r.id) AS rating_count
            FROM corporate_ratings r
            WHERE r.corporate_user_id = :author_id
            """,
            author_id=author_id
        )

        avg = ratings['avg_rating'] if ratings else None
        return CompanyStats(
            total_listings=int(stats['total_listings'] or 0) if stats else 0,
            avg_rating=round(float(avg), 2) if avg is not None else None,
            rating_count=int(ratings['rating_count'] or 0) if ratings else 0,
            completed_projects=int(stats['completed_projects'] or 0) if stats else 0,
            accepted_students=int(stats['accepted_students'] or 0) if stats else 0,
        )
