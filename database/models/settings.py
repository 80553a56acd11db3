import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Integer, Numeric, Uuid, UniqueConstraint, Index

from .base import Base, JSONType, utcnow


class TenantEngineConfig(Base):
    """
    Per-tenant match engine overrides.

    Only the columns that are set override the tier/default layers; NULL
    means "inherit".
    """
    __tablename__ = 'match_engine_config'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Text, nullable=False)
    tier = Column(Text, nullable=True)  # starter|professional|enterprise

    signal_weights = Column(JSONType, nullable=True)  # partial map, merged key by key
    overrides = Column(JSONType, nullable=False, default=dict)
    # overrides format: {"min_score_threshold": 20, "max_results_per_query": 50, ...}

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint('tenant_id', name='uq_match_engine_config_tenant'),
    )


class CorporateAttractivenessScore(Base):
    """Reverse-direction score: how attractive a listing is to students."""
    __tablename__ = 'corporate_attractiveness_scores'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id = Column(Text, nullable=False)
    author_id = Column(Text, nullable=True)
    tenant_id = Column(Text, nullable=True)

    attractiveness_score = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    signal_breakdown = Column(JSONType, nullable=False, default=dict)
    sample_size = Column(Integer, nullable=False, default=0)

    computed_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint('listing_id', name='uq_corp_attract_listing'),
        Index('idx_corp_attract_author', 'author_id'),
    )
