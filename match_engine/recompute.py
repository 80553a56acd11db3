#!/usr/bin/env python3
"""
Recomputation sweep - drains the recomputation queue.

Each pending entry is handled on its own, inside a savepoint:
- listing-tagged entry: force-recompute that single pair
- student-level entry: force-recompute the student's stale cached pairs,
  at most the config's batch size per sweep. The entry stays pending until
  no stale pair is left.

Recomputing a pair also closes any listing-tagged entries pending for it.
A failed entry gets its error and attempt count recorded and stays pending;
after ``max_attempts`` it is closed out so it cannot block the queue.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from match_engine.engine import MatchEngine
from match_engine.types import QueueEntry

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_LIMIT = 50
MAX_ATTEMPTS = 5


@dataclass
class SweepStats:
    entries: int = 0
    processed: int = 0
    deferred: int = 0  # student entries with stale pairs left for the next sweep
    failed: int = 0
    abandoned: int = 0
    pairs_computed: int = 0


class RecomputationSweeper:

    def __init__(self, engine: MatchEngine, repo=None, max_attempts: int = MAX_ATTEMPTS):
        self.engine = engine
        self.repo = repo or engine.repo
        self.max_attempts = max_attempts

    def _recompute_pair(self, student_id: str, listing_id: str, tenant_id: Optional[str]) -> None:
        self.engine.compute_match(student_id, listing_id, force_recompute=True, tenant_id=tenant_id)
        self.repo.mark_processed(student_id, listing_id)

    def _recompute_entry(self, entry: QueueEntry):
        """Returns (pairs recomputed, whether the entry is finished)."""
        if entry.listing_id:
            self._recompute_pair(entry.student_id, entry.listing_id, entry.tenant_id)
            return 1, True

        config = self.engine.config_for(entry.tenant_id, None)
        before = self.repo.count_stale_student_scores(entry.student_id)
        stale = self.repo.get_stale_student_scores(entry.student_id, limit=config.batch_size)
        for score in stale:
            self._recompute_pair(entry.student_id, score.listing_id, entry.tenant_id or score.tenant_id)

        remaining = self.repo.count_stale_student_scores(entry.student_id)
        if 0 < remaining < before:
            return len(stale), False
        if remaining:
            # Pairs whose student or listing no longer loads are never rewritten
            logger.warning(f"{remaining} stale scores for student {entry.student_id} could not be recomputed")

        self.repo.mark_entry_processed(entry.id)
        return len(stale), True

    def run_once(self, limit: Optional[int] = DEFAULT_SWEEP_LIMIT) -> SweepStats:
        """Process up to ``limit`` pending entries, highest priority first."""
        stats = SweepStats()
        entries = self.repo.get_stale_scores(limit=limit or DEFAULT_SWEEP_LIMIT)
        stats.entries = len(entries)

        for entry in entries:
            target = f"{entry.student_id}/{entry.listing_id or '*'}"

            if entry.attempts >= self.max_attempts:
                logger.error(f"Abandoning recomputation {target} after {entry.attempts} attempts")
                self.repo.mark_entry_processed(entry.id)
                stats.abandoned += 1
                continue

            try:
                with self.repo.savepoint():
                    pairs, finished = self._recompute_entry(entry)
            except Exception as e:
                logger.warning(f"Recomputation {target} failed ({entry.reason}): {e}")
                self.repo.mark_failed(entry.id, str(e))
                stats.failed += 1
                continue

            stats.pairs_computed += pairs
            if finished:
                stats.processed += 1
            else:
                logger.info(f"Recomputation {target} has stale pairs left after {pairs}; keeping it queued")
                stats.deferred += 1

        if stats.entries:
            logger.info(
                f"Sweep done: {stats.processed} processed, {stats.deferred} deferred, {stats.failed} failed, "
                f"{stats.abandoned} abandoned, {stats.pairs_computed} pairs recomputed"
            )
        return stats
