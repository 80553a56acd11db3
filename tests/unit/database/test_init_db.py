from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, inspect
from tenacity import RetryError, wait_none

from database.init_db import init_db


def test_creates_match_tables():
    engine = create_engine("sqlite://")

    init_db(engine)

    tables = set(inspect(engine).get_table_names())
    assert {
        'match_scores',
        'match_score_history',
        'recomputation_queue',
        'match_engine_config',
        'corporate_attractiveness_scores',
    } <= tables


def test_gives_up_after_five_attempts():
    engine = create_engine("sqlite://")
    fast_init = init_db.retry_with(wait=wait_none())

    with patch('database.init_db.Base.metadata.create_all', side_effect=RuntimeError('db down')) as create_all:
        with pytest.raises(RetryError):
            fast_init(engine)

    assert create_all.call_count == 5
