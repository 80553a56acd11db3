import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from database.models import (
    CorporateAttractivenessScore,
    MatchScore,
    MatchScoreHistory,
    RecomputationQueueEntry,
)
from database.models.base import utcnow
from database.repositories.base import BaseRepository
from match_engine.config import ENGINE_VERSION
from match_engine.types import (
    AttractivenessResult,
    CachedMatchScore,
    CompanyAttractiveness,
    CompositeScore,
    QueueEntry,
    ScoreHistoryEntry,
)
from match_engine.utils import round_half_up

logger = logging.getLogger(__name__)

# Score movement (points) above which a recomputation is written to history
HISTORY_THRESHOLD = 0.5

STUDENT_INVALIDATION_PRIORITY = 5
LISTING_INVALIDATION_PRIORITY = 3
MANUAL_PRIORITY = 10

_UPSERT_INSERTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


def _to_cached(row: MatchScore) -> CachedMatchScore:
    return CachedMatchScore(
        id=str(row.id),
        student_id=row.student_id,
        listing_id=row.listing_id,
        tenant_id=row.tenant_id,
        composite_score=float(row.composite_score or 0.0),
        signal_breakdown=row.signal_breakdown or {},
        is_stale=bool(row.is_stale),
        version=row.version,
        computed_at=row.computed_at,
    )


def _to_queue_entry(row: RecomputationQueueEntry) -> QueueEntry:
    return QueueEntry(
        id=str(row.id),
        student_id=row.student_id,
        listing_id=row.listing_id,
        reason=row.reason,
        priority=row.priority,
        queued_at=row.queued_at,
        processed_at=row.processed_at,
        attempts=row.attempts or 0,
        tenant_id=row.tenant_id,
    )


class MatchScoreRepository(BaseRepository):
    """
    Owns reads and writes of cached match scores, their history and the
    recomputation queue. Methods flush but never commit; the unit of work
    decides when to commit.
    """

    # ----------------------------
    # Read
    # ----------------------------
    def _get_row(self, student_id: str, listing_id: str) -> Optional[MatchScore]:
        stmt = select(MatchScore).where(
            MatchScore.student_id == student_id,
            MatchScore.listing_id == listing_id
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cached_score(self, student_id: str, listing_id: str) -> Optional[CachedMatchScore]:
        row = self._get_row(student_id, listing_id)
        return _to_cached(row) if row is not None else None

    def get_student_scores(
        self,
        student_id: str,
        include_stale: bool = True,
        limit: int = 50
    ) -> List[CachedMatchScore]:
        stmt = select(MatchScore).where(MatchScore.student_id == student_id)
        if not include_stale:
            stmt = stmt.where(MatchScore.is_stale.is_(False))
        stmt = stmt.order_by(MatchScore.composite_score.desc()).limit(limit)
        return [_to_cached(r) for r in self.db.execute(stmt).scalars().all()]

    def get_stale_student_scores(self, student_id: str, limit: int = 50) -> List[CachedMatchScore]:
        """The student's stale scores, least recently computed first."""
        stmt = (
            select(MatchScore)
            .where(MatchScore.student_id == student_id, MatchScore.is_stale.is_(True))
            .order_by(MatchScore.computed_at.asc())
            .limit(limit)
        )
        return [_to_cached(r) for r in self.db.execute(stmt).scalars().all()]

    def count_stale_student_scores(self, student_id: str) -> int:
        stmt = select(func.count(MatchScore.id)).where(
            MatchScore.student_id == student_id,
            MatchScore.is_stale.is_(True)
        )
        return int(self.db.execute(stmt).scalar_one())

    def get_listing_scores(self, listing_id: str, limit: int = 50) -> List[CachedMatchScore]:
        stmt = (
            select(MatchScore)
            .where(MatchScore.listing_id == listing_id)
            .order_by(MatchScore.composite_score.desc())
            .limit(limit)
        )
        return [_to_cached(r) for r in self.db.execute(stmt).scalars().all()]

    def get_score_history(self, student_id: str, listing_id: str) -> List[ScoreHistoryEntry]:
        stmt = (
            select(MatchScoreHistory)
            .join(MatchScore, MatchScore.id == MatchScoreHistory.match_score_id)
            .where(MatchScore.student_id == student_id, MatchScore.listing_id == listing_id)
            .order_by(MatchScoreHistory.changed_at.desc())
        )
        return [
            ScoreHistoryEntry(
                old_score=h.old_score,
                new_score=h.new_score,
                change_reason=h.change_reason,
                changed_at=h.changed_at,
                old_breakdown=h.old_breakdown,
                new_breakdown=h.new_breakdown or {},
            )
            for h in self.db.execute(stmt).scalars().all()
        ]

    # ----------------------------
    # Write
    # ----------------------------
    def upsert_score(
        self,
        student_id: str,
        listing_id: str,
        tenant_id: Optional[str],
        composite: CompositeScore,
        compute_duration_ms: int
    ) -> str:
        """Create or supersede the cached score for a pair. Returns the record id.

        An existing record is updated in place and its staleness cleared; a
        history row is appended only when the score moved by more than
        HISTORY_THRESHOLD. A new record gets an 'initial' history row.
        """
        now = utcnow()
        new_score = float(composite.score)
        existing = self._get_row(student_id, listing_id)

        if existing is not None:
            old_score = float(existing.composite_score or 0.0)
            old_breakdown = existing.signal_breakdown

            existing.composite_score = new_score
            existing.signal_breakdown = composite.signals
            existing.is_stale = False
            existing.version = ENGINE_VERSION
            existing.computation_time_ms = compute_duration_ms
            existing.computed_at = now
            existing.updated_at = now

            if abs(old_score - new_score) > HISTORY_THRESHOLD:
                self.db.add(MatchScoreHistory(
                    match_score_id=existing.id,
                    old_score=old_score,
                    new_score=new_score,
                    old_breakdown=old_breakdown,
                    new_breakdown=composite.signals,
                    change_reason='recomputation',
                    changed_at=now,
                ))
            self.flush()

            logger.info(f"Updated match score {student_id}/{listing_id}: {old_score:.1f} -> {new_score:.1f}")
            return str(existing.id)

        record_id = self._insert_score(student_id, listing_id, tenant_id, composite, compute_duration_ms, now)

        self.db.add(MatchScoreHistory(
            match_score_id=record_id,
            old_score=None,
            new_score=new_score,
            new_breakdown=composite.signals,
            change_reason='initial',
            changed_at=now,
        ))
        self.flush()

        logger.info(f"Saved match score {student_id}/{listing_id}: {new_score:.1f}")
        return str(record_id)

    def _insert_score(
        self,
        student_id: str,
        listing_id: str,
        tenant_id: Optional[str],
        composite: CompositeScore,
        compute_duration_ms: int,
        now
    ) -> uuid.UUID:
        """Insert a score row; a concurrent insert for the same pair is overwritten (last write wins)."""
        values: Dict[str, Any] = {
            'id': uuid.uuid4(),
            'student_id': student_id,
            'listing_id': listing_id,
            'tenant_id': tenant_id,
            'composite_score': float(composite.score),
            'signal_breakdown': composite.signals,
            'is_stale': False,
            'version': ENGINE_VERSION,
            'computation_time_ms': compute_duration_ms,
            'computed_at': now,
            'created_at': now,
            'updated_at': now,
        }

        dialect = self.db.get_bind().dialect.name
        insert_fn = _UPSERT_INSERTS.get(dialect)
        if insert_fn is None:
            record = MatchScore(**values)
            self.db.add(record)
            self.flush()
            return record.id

        stmt = insert_fn(MatchScore).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=['student_id', 'listing_id'],
            set_={
                'composite_score': stmt.excluded.composite_score,
                'signal_breakdown': stmt.excluded.signal_breakdown,
                'is_stale': False,
                'version': stmt.excluded.version,
                'computation_time_ms': stmt.excluded.computation_time_ms,
                'computed_at': stmt.excluded.computed_at,
                'updated_at': stmt.excluded.updated_at,
            },
        ).returning(MatchScore.id)
        return self.db.execute(stmt).scalar_one()

    # ----------------------------
    # Invalidation
    # ----------------------------
    def invalidate_student_scores(self, student_id: str, reason: str = 'profile_update') -> int:
        """Mark the student's fresh scores stale and queue one student-level recomputation."""
        stmt = select(MatchScore).where(
            MatchScore.student_id == student_id,
            MatchScore.is_stale.is_(False)
        )
        matches = self.db.execute(stmt).scalars().all()

        now = utcnow()
        count = 0
        tenant_id = None
        for match in matches:
            match.is_stale = True
            match.updated_at = now
            tenant_id = tenant_id or match.tenant_id
            count += 1

        self.enqueue_recomputation(
            student_id, None, reason=reason,
            priority=STUDENT_INVALIDATION_PRIORITY, tenant_id=tenant_id
        )
        self.flush()

        if count > 0:
            logger.info(f"Invalidated {count} match scores for student {student_id}: {reason}")

        return count

    def invalidate_listing_scores(self, listing_id: str, reason: str = 'listing_update') -> int:
        """Mark the listing's scores stale and queue each affected student for this listing."""
        stmt = select(MatchScore).where(MatchScore.listing_id == listing_id)
        matches = self.db.execute(stmt).scalars().all()

        now = utcnow()
        count = 0
        for match in matches:
            if not match.is_stale:
                match.is_stale = True
                match.updated_at = now
                count += 1

        queued = set()
        for match in matches:
            if match.student_id in queued:
                continue
            queued.add(match.student_id)
            self.enqueue_recomputation(
                match.student_id, listing_id, reason=reason,
                priority=LISTING_INVALIDATION_PRIORITY, tenant_id=match.tenant_id
            )
        self.flush()

        if count > 0:
            logger.info(f"Invalidated {count} match scores for listing {listing_id}: {reason}")

        return count

    # ----------------------------
    # Recomputation queue
    # ----------------------------
    def _pending_entry(self, student_id: str, listing_id: Optional[str]) -> Optional[RecomputationQueueEntry]:
        stmt = select(RecomputationQueueEntry).where(
            RecomputationQueueEntry.student_id == student_id,
            RecomputationQueueEntry.processed_at.is_(None)
        )
        if listing_id is None:
            stmt = stmt.where(RecomputationQueueEntry.listing_id.is_(None))
        else:
            stmt = stmt.where(RecomputationQueueEntry.listing_id == listing_id)
        return self.db.execute(stmt.limit(1)).scalars().first()

    def enqueue_recomputation(
        self,
        student_id: str,
        listing_id: Optional[str] = None,
        reason: str = 'manual',
        priority: int = MANUAL_PRIORITY,
        tenant_id: Optional[str] = None
    ) -> bool:
        """Queue a pair (or a whole student) for recomputation.

        Returns False without writing when the same pair is already pending.
        """
        if self._pending_entry(student_id, listing_id) is not None:
            logger.debug(f"Recomputation already pending for {student_id}/{listing_id or '*'}")
            return False

        self.db.add(RecomputationQueueEntry(
            student_id=student_id,
            listing_id=listing_id,
            tenant_id=tenant_id,
            reason=reason,
            priority=max(1, min(10, priority)),
            queued_at=utcnow(),
        ))
        self.flush()
        return True

    def get_stale_scores(self, limit: int = 50) -> List[QueueEntry]:
        """Pending queue entries, highest priority first, oldest first within a priority."""
        stmt = (
            select(RecomputationQueueEntry)
            .where(RecomputationQueueEntry.processed_at.is_(None))
            .order_by(RecomputationQueueEntry.priority.desc(), RecomputationQueueEntry.queued_at.asc())
            .limit(limit)
        )
        return [_to_queue_entry(r) for r in self.db.execute(stmt).scalars().all()]

    def mark_processed(self, student_id: str, listing_id: Optional[str] = None) -> int:
        """Stamp processed_at on pending entries; no listing_id covers all of the student's entries."""
        stmt = select(RecomputationQueueEntry).where(
            RecomputationQueueEntry.student_id == student_id,
            RecomputationQueueEntry.processed_at.is_(None)
        )
        if listing_id is not None:
            stmt = stmt.where(RecomputationQueueEntry.listing_id == listing_id)

        now = utcnow()
        count = 0
        for entry in self.db.execute(stmt).scalars().all():
            entry.processed_at = now
            count += 1
        self.flush()
        return count

    def mark_entry_processed(self, entry_id: str) -> bool:
        """Stamp processed_at on a single entry, e.g. one that exhausted its retries."""
        entry = self.db.get(RecomputationQueueEntry, uuid.UUID(str(entry_id)))
        if entry is None or entry.processed_at is not None:
            return False
        entry.processed_at = utcnow()
        self.flush()
        return True

    def mark_failed(self, entry_id: str, error: str) -> None:
        """Record a failed attempt; the entry stays pending."""
        entry = self.db.get(RecomputationQueueEntry, uuid.UUID(str(entry_id)))
        if entry is None:
            return
        entry.attempts = (entry.attempts or 0) + 1
        entry.error = error[:1000]
        self.flush()

    # ----------------------------
    # Corporate attractiveness
    # ----------------------------
    def upsert_attractiveness(self, result: AttractivenessResult) -> str:
        stmt = select(CorporateAttractivenessScore).where(
            CorporateAttractivenessScore.listing_id == result.listing_id
        )
        row = self.db.execute(stmt).scalar_one_or_none()
        now = utcnow()

        if row is None:
            row = CorporateAttractivenessScore(listing_id=result.listing_id, computed_at=now)
            self.db.add(row)

        row.author_id = result.author_id
        row.tenant_id = result.tenant_id
        row.attractiveness_score = float(result.attractiveness_score)
        row.signal_breakdown = result.signals
        row.sample_size = result.sample_size
        row.computed_at = now
        row.updated_at = now
        self.flush()

        logger.info(f"Saved attractiveness for listing {result.listing_id}: {result.attractiveness_score}")
        return str(row.id)

    def get_company_attractiveness(self, author_id: str) -> CompanyAttractiveness:
        stmt = (
            select(CorporateAttractivenessScore)
            .where(CorporateAttractivenessScore.author_id == author_id)
            .order_by(CorporateAttractivenessScore.attractiveness_score.desc())
        )
        rows = self.db.execute(stmt).scalars().all()
        if not rows:
            return CompanyAttractiveness(author_id=author_id)

        scores = [
            {'listing_id': r.listing_id, 'score': float(r.attractiveness_score)}
            for r in rows
        ]
        avg = sum(s['score'] for s in scores) / len(scores)
        return CompanyAttractiveness(
            author_id=author_id,
            avg_score=round_half_up(avg),
            listing_count=len(rows),
            scores=scores,
        )
