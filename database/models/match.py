import uuid

from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Boolean, Integer, Numeric, Uuid, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, JSONType, utcnow


class MatchScore(Base):
    """
    Cached composite match score for one (student, listing) pair.

    Tracks:
    - Composite score and per-signal breakdown (explainability)
    - Staleness flag set by invalidation, cleared by recomputation
    - Engine version and computation time
    """
    __tablename__ = 'match_scores'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Text, nullable=False)
    listing_id = Column(Text, nullable=False)
    tenant_id = Column(Text, nullable=True)

    composite_score = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    signal_breakdown = Column(JSONType, nullable=False, default=dict)
    # signal_breakdown format:
    # {"temporal": {"score": 85, "weight": 0.25, "details": {...}}, "skills": {...}, ...}

    is_stale = Column(Boolean, nullable=False, default=False)
    computation_time_ms = Column(Integer, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    computed_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    history = relationship("MatchScoreHistory", back_populates="match_score", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('student_id', 'listing_id', name='uq_match_scores_student_listing'),
        Index('idx_match_scores_listing', 'listing_id'),
        Index('idx_match_scores_tenant', 'tenant_id'),
        Index('idx_match_scores_stale', 'is_stale'),
        Index('idx_match_scores_composite', 'composite_score'),
    )


class MatchScoreHistory(Base):
    """
    Audit trail of significant score changes.

    Written on first computation ('initial') and whenever a recomputation
    moves the score by more than the history threshold ('recomputation').
    """
    __tablename__ = 'match_score_history'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    match_score_id = Column(Uuid(as_uuid=True), ForeignKey('match_scores.id', ondelete='CASCADE'), nullable=False)

    old_score = Column(Numeric(5, 2, asdecimal=False), nullable=True)
    new_score = Column(Numeric(5, 2, asdecimal=False), nullable=False)
    old_breakdown = Column(JSONType, nullable=True)
    new_breakdown = Column(JSONType, nullable=False, default=dict)
    change_reason = Column(Text, nullable=True)  # initial|recomputation

    changed_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    match_score = relationship("MatchScore", back_populates="history")

    __table_args__ = (
        Index('idx_match_score_history_score', 'match_score_id'),
        Index('idx_match_score_history_date', 'changed_at'),
    )
