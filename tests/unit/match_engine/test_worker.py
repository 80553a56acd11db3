#!/usr/bin/env python3
"""
Tests for the recomputation worker entry points.
"""

import sys
import unittest
from unittest.mock import patch

import pytest

from database.repositories.match_score import MatchScoreRepository
from match_engine import worker
from match_engine.config import ConfigError, EngineSettings
from match_engine.recompute import SweepStats
from tests.mocks.match_mocks import InMemoryMatchDataSource, make_composite, make_listing, make_student


@pytest.mark.db
def test_run_sweep_commits_recomputed_scores(session_factory):
    print("\n🛠️ run_sweep: drains queue in one unit of work")
    session = session_factory()
    repo = MatchScoreRepository(session)
    repo.upsert_score('s1', 'l1', 'tenant-a', make_composite(10), 1)
    repo.invalidate_student_scores('s1')
    session.commit()
    session.close()

    source = InMemoryMatchDataSource(students=[make_student('s1')], listings=[make_listing('l1')])
    with patch('match_engine.worker.SqlMatchDataSource', return_value=source):
        stats = worker.run_sweep(EngineSettings(), session_factory)

    assert stats.processed == 1

    check = session_factory()
    try:
        repo = MatchScoreRepository(check)
        assert repo.get_stale_scores() == []
        assert repo.get_cached_score('s1', 'l1').is_stale is False
    finally:
        check.close()
    print(f"  ✓ {stats}")


class TestWorkerLoop(unittest.TestCase):

    @patch('match_engine.worker.run_sweep')
    def test_burst_exits_when_drained(self, mock_sweep):
        mock_sweep.side_effect = [SweepStats(entries=10), SweepStats(entries=3)]

        worker.start_worker(EngineSettings(), burst=True, limit=10)

        self.assertEqual(mock_sweep.call_count, 2)

    @patch('match_engine.worker.time.sleep')
    @patch('match_engine.worker.run_sweep')
    def test_sleeps_on_empty_queue(self, mock_sweep, mock_sleep):
        mock_sweep.side_effect = [SweepStats(entries=0), KeyboardInterrupt()]

        worker.start_worker(EngineSettings(), interval=5)

        mock_sleep.assert_called_once_with(5)

    @patch('match_engine.worker.run_sweep', side_effect=RuntimeError('db down'))
    def test_error_exits_nonzero(self, _):
        with self.assertRaises(SystemExit) as ctx:
            worker.start_worker(EngineSettings(), burst=True)
        self.assertEqual(ctx.exception.code, 1)


class TestWorkerMain(unittest.TestCase):

    @patch('match_engine.worker.start_worker')
    @patch('match_engine.worker.load_engine_config')
    def test_parses_arguments(self, mock_load, mock_start):
        settings = EngineSettings(tier='starter')
        mock_load.return_value = settings

        with patch.object(sys, 'argv', ['worker', '--burst', '--limit', '5', '--config', 'custom.yaml']):
            worker.main()

        mock_load.assert_called_once_with('custom.yaml')
        mock_start.assert_called_once_with(settings, burst=True, limit=5, interval=worker.DEFAULT_INTERVAL_SECONDS)

    @patch('match_engine.worker.start_worker')
    @patch('match_engine.worker.load_engine_config', side_effect=ConfigError('bad'))
    def test_bad_config_exits(self, _, mock_start):
        with patch.object(sys, 'argv', ['worker']):
            with self.assertRaises(SystemExit):
                worker.main()
        mock_start.assert_not_called()
