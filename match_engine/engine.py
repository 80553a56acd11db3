#!/usr/bin/env python3
"""
Match Engine - public entry point for computing and retrieving match scores.

Lazy computation with a DB-backed cache:
1. compute_match: cache-first single pair; recompute on miss, staleness,
   version change or age beyond ``stale_threshold_hours``
2. get_student_matches / get_listing_matches: ranked batch reads that top up
   at most ``batch_size`` missing or stale pairs per call
3. compute_attractiveness: reverse-direction listing score

The engine owns no connections. It is handed a repository (persistence) and
a data source (read-only platform data) and works within the caller's
unit of work.
"""

import dataclasses
import logging
import time
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from match_engine.composite import compute_composite_score, empty_composite
from match_engine.config import DEFAULT_CONFIG, ENGINE_VERSION, MatchEngineConfig
from match_engine.corporate import compute_attractiveness as score_attractiveness
from match_engine.loaders import CANDIDATE_LIMIT, MatchDataSource
from match_engine.signals import (
    score_growth_trajectory,
    score_network_affinity,
    score_skills_alignment,
    score_sustainability,
    score_temporal_fit,
    score_trust_reliability,
)
from match_engine.types import (
    AthleticTransferSkill,
    AttractivenessResult,
    CachedMatchScore,
    CompanyAttractiveness,
    CompanyStats,
    CompositeScore,
    ListingData,
    MatchResult,
    SignalResult,
    StudentData,
    StudentMatchResult,
)
from match_engine.utils import to_aware, utcnow

logger = logging.getLogger(__name__)

ConfigResolver = Callable[[Optional[str]], MatchEngineConfig]


def compute_signals(
    student: StudentData,
    listing: ListingData,
    athletic_transfers: Optional[List[AthleticTransferSkill]] = None,
    config: MatchEngineConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None
) -> List[SignalResult]:
    """Run the six calculators for one pair, honouring the feature flags in ``config``."""
    if not config.enable_schedule_matching:
        student = dataclasses.replace(student, schedules=[])
    transfers = athletic_transfers if config.enable_athletic_transfer else []

    return [
        score_temporal_fit(student, listing, now=now),
        score_skills_alignment(student, listing, transfers, now=now),
        score_sustainability(student, listing, now=now),
        score_growth_trajectory(student, listing, now=now),
        score_trust_reliability(student, listing, now=now),
        score_network_affinity(student, listing, now=now),
    ]


def _skills_details(signals: Dict[str, Dict]) -> Dict:
    return (signals or {}).get('skills', {}).get('details', {}) or {}


class MatchEngine:
    """
    Orchestrates loaders, calculators, the composite scorer and the cache.

    ``config`` is the default for every call; a per-call ``config`` wins, and
    otherwise ``config_resolver`` (e.g. stored tenant overrides) is consulted
    when a tenant id is given.
    """

    def __init__(
        self,
        repo,
        data_source: MatchDataSource,
        config: MatchEngineConfig = DEFAULT_CONFIG,
        config_resolver: Optional[ConfigResolver] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.repo = repo
        self.data = data_source
        self.config = config
        self.config_resolver = config_resolver
        self.clock = clock

    def config_for(self, tenant_id: Optional[str], config: Optional[MatchEngineConfig]) -> MatchEngineConfig:
        if config is not None:
            return config
        if tenant_id and self.config_resolver is not None:
            return self.config_resolver(tenant_id)
        return self.config

    def _needs_recompute(self, cached: Optional[CachedMatchScore], config: MatchEngineConfig, now: datetime) -> bool:
        if cached is None or cached.is_stale:
            return True
        if cached.version != ENGINE_VERSION:
            return True
        if cached.computed_at is not None and config.stale_threshold_hours > 0:
            age = to_aware(now) - to_aware(cached.computed_at)
            if age > timedelta(hours=config.stale_threshold_hours):
                return True
        return False

    # ----------------------------
    # Single pair
    # ----------------------------
    def compute_match(
        self,
        student_id: str,
        listing_id: str,
        force_recompute: bool = False,
        tenant_id: Optional[str] = None,
        config: Optional[MatchEngineConfig] = None
    ) -> CompositeScore:
        """Score one student against one listing.

        Returns the cached score when it is fresh. A missing student or
        listing yields a zero composite with an empty breakdown.
        """
        engine_config = self.config_for(tenant_id, config)
        now = self.clock()

        if not force_recompute:
            cached = self.repo.get_cached_score(student_id, listing_id)
            if not self._needs_recompute(cached, engine_config, now):
                logger.debug(f"Cache hit for {student_id}/{listing_id}")
                return cached.to_composite()
            logger.debug(f"Cache miss for {student_id}/{listing_id}")

        start_time = time.perf_counter()

        student = self.data.load_student(student_id)
        listing = self.data.load_listing(listing_id)
        if student is None or listing is None:
            logger.info(f"Cannot score {student_id}/{listing_id}: "
                        f"{'student' if student is None else 'listing'} not found")
            return empty_composite(now)

        transfers: List[AthleticTransferSkill] = []
        if engine_config.enable_athletic_transfer:
            transfers = self.data.load_athletic_transfers(student)

        signals = compute_signals(student, listing, transfers, engine_config, now=now)
        composite = compute_composite_score(signals, engine_config.signal_weights, now=now)
        duration_ms = int((time.perf_counter() - start_time) * 1000)

        self.repo.upsert_score(
            student_id,
            listing_id,
            tenant_id or student.tenant_id,
            composite,
            duration_ms
        )
        return composite

    def _compute_pairs(self, pairs, tenant_id, config) -> int:
        """Compute each (student, listing) pair in its own savepoint; one failure never aborts the rest."""
        computed = 0
        for student_id, listing_id in pairs:
            try:
                with self.repo.savepoint():
                    self.compute_match(student_id, listing_id, tenant_id=tenant_id, config=config)
                computed += 1
            except Exception as e:
                logger.warning(f"Failed to compute match {student_id}/{listing_id}: {e}")
        return computed

    # ----------------------------
    # Batch: listings for a student
    # ----------------------------
    def get_student_matches(
        self,
        student_id: str,
        limit: int = 50,
        min_score: float = 0,
        tenant_id: Optional[str] = None,
        config: Optional[MatchEngineConfig] = None
    ) -> List[MatchResult]:
        engine_config = self.config_for(tenant_id, config)
        limit = min(limit, engine_config.max_results_per_query)
        now = self.clock()

        candidates = self.data.list_candidate_listing_ids(tenant_id, CANDIDATE_LIMIT)
        cached_map = {
            c.listing_id: c
            for c in self.repo.get_student_scores(student_id, include_stale=True, limit=CANDIDATE_LIMIT)
        }

        to_compute = [
            lid for lid in candidates
            if self._needs_recompute(cached_map.get(lid), engine_config, now)
        ][:engine_config.batch_size]
        if to_compute:
            computed = self._compute_pairs([(student_id, lid) for lid in to_compute], tenant_id, engine_config)
            logger.info(f"Computed {computed}/{len(to_compute)} pending matches for student {student_id}")

        results: List[MatchResult] = []
        for score in self.repo.get_student_scores(student_id, include_stale=True, limit=CANDIDATE_LIMIT):
            if score.composite_score < min_score:
                continue

            listing = self.data.load_listing(score.listing_id)
            if listing is None:
                continue
            if tenant_id and listing.tenant_id != tenant_id:
                continue

            details = _skills_details(score.signal_breakdown)
            results.append(MatchResult(
                listing_id=score.listing_id,
                student_id=score.student_id,
                composite_score=score.composite_score,
                signals=score.signal_breakdown,
                listing=listing,
                matched_skills=list(details.get('matched_skills', [])),
                missing_skills=list(details.get('missing_skills', [])),
                athletic_transfer_skills=list(details.get('athletic_transfer_skills', [])),
            ))

        results.sort(key=lambda r: r.composite_score, reverse=True)
        return results[:limit]

    # ----------------------------
    # Batch: students for a listing
    # ----------------------------
    def get_listing_matches(
        self,
        listing_id: str,
        limit: int = 50,
        min_score: float = 0,
        tenant_id: Optional[str] = None,
        config: Optional[MatchEngineConfig] = None
    ) -> List[StudentMatchResult]:
        engine_config = self.config_for(tenant_id, config)
        limit = min(limit, engine_config.max_results_per_query)
        now = self.clock()

        candidates = self.data.list_candidate_student_ids(tenant_id, CANDIDATE_LIMIT)
        cached_map = {
            c.student_id: c
            for c in self.repo.get_listing_scores(listing_id, limit=CANDIDATE_LIMIT)
        }

        to_compute = [
            sid for sid in candidates
            if self._needs_recompute(cached_map.get(sid), engine_config, now)
        ][:engine_config.batch_size]
        if to_compute:
            computed = self._compute_pairs([(sid, listing_id) for sid in to_compute], tenant_id, engine_config)
            logger.info(f"Computed {computed}/{len(to_compute)} pending matches for listing {listing_id}")

        results: List[StudentMatchResult] = []
        for score in self.repo.get_listing_scores(listing_id, limit=CANDIDATE_LIMIT):
            if score.composite_score < min_score:
                continue

            summary = self.data.load_student_summary(score.student_id)
            if summary is None:
                continue

            details = _skills_details(score.signal_breakdown)
            results.append(StudentMatchResult(
                student_id=score.student_id,
                first_name=summary.first_name,
                last_name=summary.last_name,
                email=summary.email,
                university=summary.university,
                composite_score=score.composite_score,
                signals=score.signal_breakdown,
                matched_skills=list(details.get('matched_skills', [])),
                missing_skills=list(details.get('missing_skills', [])),
                athletic_transfer_skills=list(details.get('athletic_transfer_skills', [])),
            ))

        results.sort(key=lambda r: r.composite_score, reverse=True)
        return results[:limit]

    # ----------------------------
    # Invalidation
    # ----------------------------
    def invalidate_student(self, student_id: str, reason: str = 'profile_update') -> int:
        return self.repo.invalidate_student_scores(student_id, reason)

    def invalidate_listing(self, listing_id: str, reason: str = 'listing_update') -> int:
        return self.repo.invalidate_listing_scores(listing_id, reason)

    # ----------------------------
    # Corporate attractiveness
    # ----------------------------
    def compute_attractiveness(self, listing_id: str) -> Optional[AttractivenessResult]:
        listing = self.data.load_listing(listing_id)
        if listing is None:
            return None

        stats = self.data.load_company_stats(listing.author_id) if listing.author_id else CompanyStats()
        result = score_attractiveness(listing, stats)
        self.repo.upsert_attractiveness(result)
        return result

    def get_company_attractiveness(self, author_id: str) -> CompanyAttractiveness:
        return self.repo.get_company_attractiveness(author_id)
