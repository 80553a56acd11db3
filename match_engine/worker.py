#!/usr/bin/env python3
"""
Recomputation worker for the match engine.

Polls the recomputation queue and recomputes stale match scores.

Usage:
    python -m match_engine.worker
    python -m match_engine.worker --burst
    python -m match_engine.worker --limit 100 --interval 10 --verbose
"""

import argparse
import logging
import sys
import time
from typing import Optional

from database.database import make_session_factory
from database.repositories.engine_config import EngineConfigRepository
from database.uow import match_uow
from match_engine.config import ConfigError, EngineSettings, load_engine_config
from match_engine.engine import MatchEngine
from match_engine.loaders import SqlMatchDataSource
from match_engine.recompute import DEFAULT_SWEEP_LIMIT, RecomputationSweeper, SweepStats

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30.0


def run_sweep(settings: EngineSettings, session_factory=None, limit: int = DEFAULT_SWEEP_LIMIT) -> SweepStats:
    """One sweep inside one unit of work."""
    with match_uow(session_factory) as repo:
        config_repo = EngineConfigRepository(repo.db)

        def resolve(tenant_id: Optional[str]):
            return config_repo.resolve_for_tenant(tenant_id, base=settings.config_for_tenant(tenant_id))

        engine = MatchEngine(
            repo,
            SqlMatchDataSource(repo.db),
            config=settings.config_for_tenant(None),
            config_resolver=resolve,
        )
        return RecomputationSweeper(engine, repo).run_once(limit)


def start_worker(
    settings: EngineSettings,
    burst: bool = False,
    limit: int = DEFAULT_SWEEP_LIMIT,
    interval: float = DEFAULT_INTERVAL_SECONDS
):
    """Start the polling loop. In burst mode, stop once the queue is drained."""
    session_factory = make_session_factory(settings.database_url) if settings.database_url else None

    logger.info("Starting match engine recomputation worker")
    logger.info(f"Batch limit: {limit}")
    logger.info(f"Burst mode: {burst}")

    try:
        while True:
            stats = run_sweep(settings, session_factory, limit)

            if burst and stats.entries < limit and not stats.deferred:
                logger.info("Queue drained, exiting burst mode")
                break
            if stats.entries == 0:
                time.sleep(interval)
    except KeyboardInterrupt:
        logger.info("\nWorker stopped")
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(description='Match Engine Recomputation Worker')
    parser.add_argument('--burst', action='store_true', help='Process all pending entries and exit')
    parser.add_argument('--limit', type=int, default=DEFAULT_SWEEP_LIMIT, help='Queue entries per sweep')
    parser.add_argument('--interval', type=float, default=DEFAULT_INTERVAL_SECONDS,
                        help='Seconds to sleep when the queue is empty')
    parser.add_argument('--config', default='config.yaml')
    parser.add_argument('--verbose', action='store_true')

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        settings = load_engine_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        logger.error(f"Could not load config: {e}")
        sys.exit(1)

    start_worker(settings, burst=args.burst, limit=args.limit, interval=args.interval)


if __name__ == "__main__":
    main()
