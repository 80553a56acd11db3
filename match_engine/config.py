"""Match engine configuration: signal weights, tier overrides, tenant overrides."""
import os
import logging
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

ENGINE_VERSION = 1

WEIGHT_SUM_TOLERANCE = 0.01


class ConfigError(ValueError):
    """Raised when a config file cannot be turned into an engine config."""


class SignalWeights(BaseModel):
    """Relative weight of each signal in the composite score. Must sum to ~1.0."""
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    temporal: float = 0.25
    skills: float = 0.30
    sustainability: float = 0.15
    growth: float = 0.10
    trust: float = 0.10
    network: float = 0.10


class MatchEngineConfig(BaseModel):
    """
    Fully specified engine configuration.

    Immutable; build variants with ``resolve_config`` or ``model_copy``.
    """
    model_config = ConfigDict(frozen=True)

    signal_weights: SignalWeights = Field(default_factory=SignalWeights)
    min_score_threshold: float = 20.0  # 0-100
    max_results_per_query: int = 50
    enable_athletic_transfer: bool = True
    enable_schedule_matching: bool = True
    stale_threshold_hours: int = 24
    batch_size: int = 20  # max pairs computed per batch call


DEFAULT_CONFIG = MatchEngineConfig()

# Partial overrides per subscription tier. Shape mirrors MatchEngineConfig;
# signal_weights may name a subset of signals.
TIER_OVERRIDES: Dict[str, Dict[str, Any]] = {
    'starter': {
        'enable_athletic_transfer': False,
        'enable_schedule_matching': False,
        'max_results_per_query': 10,
    },
    'professional': {
        'max_results_per_query': 25,
    },
    'enterprise': {},
}


def validate_weights(weights: Any) -> bool:
    """Return True iff the six weights sum to within 0.01 of 1.0.

    Advisory only: callers decide whether to reject the config or fall
    back to defaults. Accepts a SignalWeights model or a plain mapping;
    missing keys count as 0.
    """
    if isinstance(weights, SignalWeights):
        values = weights.model_dump()
    elif isinstance(weights, Mapping):
        values = dict(weights)
    else:
        return False

    total = 0.0
    for name in SignalWeights.model_fields:
        raw = values.get(name, 0.0)
        try:
            total += float(raw)
        except (TypeError, ValueError):
            return False
    return abs(total - 1.0) <= WEIGHT_SUM_TOLERANCE


def _merge_layer(base: Dict[str, Any], layer: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Apply one override layer on top of a full config dict.

    ``signal_weights`` merges key by key; every other key replaces.
    Keys not known to MatchEngineConfig are ignored with a warning.
    """
    if not layer:
        return base

    merged = dict(base)
    for key, value in layer.items():
        if key not in MatchEngineConfig.model_fields:
            logger.warning("Ignoring unknown match engine config key %r", key)
            continue
        if value is None:
            continue
        if key == 'signal_weights':
            weights = dict(merged['signal_weights'])
            if isinstance(value, SignalWeights):
                value = value.model_dump()
            for name, weight in dict(value).items():
                if name not in SignalWeights.model_fields:
                    logger.warning("Ignoring unknown signal weight %r", name)
                    continue
                weights[name] = weight
            merged['signal_weights'] = weights
        else:
            merged[key] = value
    return merged


def resolve_config(
    tier_name: Optional[str] = None,
    tenant_overrides: Optional[Mapping[str, Any]] = None,
    base: MatchEngineConfig = DEFAULT_CONFIG,
) -> MatchEngineConfig:
    """Layer defaults -> tier overrides -> tenant overrides.

    An unknown or absent tier and absent tenant overrides fall through to
    the layer beneath. The resulting weights are not renormalized; run
    ``validate_weights`` on ``config.signal_weights`` to check them.
    """
    merged = base.model_dump()

    if tier_name:
        tier = TIER_OVERRIDES.get(tier_name.lower())
        if tier is None:
            logger.warning("Unknown subscription tier %r; using defaults", tier_name)
        merged = _merge_layer(merged, tier)

    merged = _merge_layer(merged, tenant_overrides)

    config = MatchEngineConfig(**merged)
    if not validate_weights(config.signal_weights):
        logger.warning(
            "Resolved signal weights for tier=%s do not sum to 1.0: %s",
            tier_name, config.signal_weights.model_dump()
        )
    return config


class EngineSettings(BaseModel):
    """Contents of the engine's YAML config file."""
    database_url: Optional[str] = None
    tier: Optional[str] = None
    engine: Dict[str, Any] = Field(default_factory=dict)
    tenants: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def config_for_tenant(self, tenant_id: Optional[str] = None) -> MatchEngineConfig:
        base = resolve_config(None, self.engine)
        overrides = self.tenants.get(str(tenant_id)) if tenant_id else None
        return resolve_config(self.tier, overrides, base=base)


def load_engine_config(config_path: str = "config.yaml") -> EngineSettings:
    """Load engine settings from YAML, honouring the DATABASE_URL env override."""
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        data['database_url'] = env_db_url

    try:
        return EngineSettings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid match engine config in {config_path}: {e}") from e
