"""
Match engine: six-signal student/listing compatibility scoring with a
staleness-aware database cache and a recomputation queue.
"""

from match_engine.config import (
    DEFAULT_CONFIG,
    ENGINE_VERSION,
    ConfigError,
    MatchEngineConfig,
    SignalWeights,
    load_engine_config,
    resolve_config,
    validate_weights,
)
from match_engine.composite import compute_composite_score, quick_score
from match_engine.engine import MatchEngine, compute_signals
from match_engine.availability import calculate_available_hours, get_availability_windows
from match_engine.recompute import RecomputationSweeper

__all__ = [
    'DEFAULT_CONFIG',
    'ENGINE_VERSION',
    'ConfigError',
    'MatchEngineConfig',
    'SignalWeights',
    'load_engine_config',
    'resolve_config',
    'validate_weights',
    'compute_composite_score',
    'quick_score',
    'MatchEngine',
    'compute_signals',
    'calculate_available_hours',
    'get_availability_windows',
    'RecomputationSweeper',
]
