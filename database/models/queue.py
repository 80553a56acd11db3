import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Integer, Uuid, Index, CheckConstraint

from .base import Base, utcnow


class RecomputationQueueEntry(Base):
    """
    Pending score recomputation work, drained by a polling sweep.

    listing_id NULL means "recompute every stale match for this student".
    Priority 10 is highest (manual request), 1 lowest (background).
    """
    __tablename__ = 'recomputation_queue'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Text, nullable=False)
    listing_id = Column(Text, nullable=True)
    tenant_id = Column(Text, nullable=True)

    reason = Column(Text, nullable=False, default='manual')
    # profile_update|listing_update|schedule_change|skill_change|manual|cron
    priority = Column(Integer, nullable=False, default=5)

    queued_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    processed_at = Column(TIMESTAMP(timezone=True), nullable=True)
    error = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint('priority BETWEEN 1 AND 10', name='chk_recomp_priority'),
        Index(
            'idx_recomp_queue_pending', 'priority', 'queued_at',
            postgresql_where=processed_at.is_(None),
            sqlite_where=processed_at.is_(None),
        ),
        Index('idx_recomp_queue_student', 'student_id'),
        Index('idx_recomp_queue_listing', 'listing_id'),
    )
