import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from sqlalchemy import select

from database.models import TenantEngineConfig
from database.models.base import utcnow
from database.repositories.base import BaseRepository
from match_engine.config import DEFAULT_CONFIG, MatchEngineConfig, resolve_config

logger = logging.getLogger(__name__)


class EngineConfigRepository(BaseRepository):
    """Per-tenant tier and override storage for the match engine."""

    def get_tenant_config(self, tenant_id: str) -> Optional[TenantEngineConfig]:
        stmt = select(TenantEngineConfig).where(TenantEngineConfig.tenant_id == str(tenant_id))
        return self.db.execute(stmt).scalar_one_or_none()

    def get_tenant_overrides(self, tenant_id: str) -> Tuple[Optional[str], Dict[str, Any]]:
        """Return (tier, overrides) for a tenant; (None, {}) when nothing is stored."""
        row = self.get_tenant_config(tenant_id)
        if row is None:
            return None, {}

        overrides = dict(row.overrides or {})
        if row.signal_weights:
            overrides['signal_weights'] = dict(row.signal_weights)
        return row.tier, overrides

    def save_tenant_config(
        self,
        tenant_id: str,
        tier: Optional[str] = None,
        signal_weights: Optional[Mapping[str, float]] = None,
        overrides: Optional[Mapping[str, Any]] = None
    ) -> TenantEngineConfig:
        row = self.get_tenant_config(tenant_id)
        now = utcnow()
        if row is None:
            row = TenantEngineConfig(tenant_id=str(tenant_id), created_at=now)
            self.db.add(row)

        row.tier = tier
        row.signal_weights = dict(signal_weights) if signal_weights else None
        row.overrides = dict(overrides or {})
        row.updated_at = now
        self.flush()

        logger.info(f"Saved match engine config for tenant {tenant_id} (tier={tier})")
        return row

    def resolve_for_tenant(
        self,
        tenant_id: Optional[str],
        base: MatchEngineConfig = DEFAULT_CONFIG
    ) -> MatchEngineConfig:
        """Effective engine config for a tenant: base -> stored tier -> stored overrides."""
        if not tenant_id:
            return base
        tier, overrides = self.get_tenant_overrides(tenant_id)
        return resolve_config(tier, overrides, base=base)
