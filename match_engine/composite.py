#!/usr/bin/env python3
"""
Composite Scorer - weighted aggregate of the six signals.

A signal that was not computed counts as a neutral 50 so it cannot zero
out the composite; a weight missing from the weight set counts as 0.
"""

import math
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from match_engine.config import ENGINE_VERSION, SignalWeights
from match_engine.types import SIGNAL_NAMES, CompositeScore, SignalResult
from match_engine.utils import clamp_score, utcnow

MISSING_SIGNAL_SCORE = 50

WeightsLike = Union[SignalWeights, Mapping[str, float]]


def _weights_map(weights: WeightsLike) -> Dict[str, float]:
    """Float weight per signal; missing, null and non-finite weights count as 0."""
    raw = weights.model_dump() if isinstance(weights, SignalWeights) else dict(weights or {})
    result = {}
    for name in SIGNAL_NAMES:
        weight = float(raw.get(name) or 0.0)
        result[name] = weight if math.isfinite(weight) else 0.0
    return result


def _finite_total(total: float) -> float:
    return total if math.isfinite(total) else 0.0


def _by_name(signals: Iterable[SignalResult]) -> Dict[str, SignalResult]:
    return {s.signal: s for s in signals}


def compute_composite_score(
    signals: Iterable[SignalResult],
    weights: WeightsLike,
    now: Optional[datetime] = None
) -> CompositeScore:
    """Aggregate signal results into one 0-100 score with a per-signal breakdown."""
    results = _by_name(signals)
    weight_map = _weights_map(weights)

    total = 0.0
    breakdown: Dict[str, Dict[str, Any]] = {}
    for name in SIGNAL_NAMES:
        result = results.get(name)
        score = result.score if result is not None else MISSING_SIGNAL_SCORE
        weight = weight_map[name]
        total += score * weight
        breakdown[name] = {
            'score': score,
            'weight': weight,
            'details': result.details if result is not None else {},
        }

    return CompositeScore(
        score=clamp_score(_finite_total(total)),
        signals=breakdown,
        computed_at=now or utcnow(),
        version=ENGINE_VERSION,
    )


def quick_score(signals: Iterable[SignalResult], weights: WeightsLike) -> int:
    """Numeric composite only, for ranking many candidates by sort key."""
    results = _by_name(signals)
    weight_map = _weights_map(weights)
    total = 0.0
    for name in SIGNAL_NAMES:
        result = results.get(name)
        total += (result.score if result is not None else MISSING_SIGNAL_SCORE) * weight_map[name]
    return clamp_score(_finite_total(total))


def empty_composite(now: Optional[datetime] = None) -> CompositeScore:
    """Zero score returned when the student or listing cannot be loaded."""
    return CompositeScore(score=0, signals={}, computed_at=now or utcnow(), version=ENGINE_VERSION)
