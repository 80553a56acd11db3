import pytest

from database.models import MatchScore
from database.uow import match_uow
from tests.mocks.match_mocks import make_composite


@pytest.mark.db
def test_commits_on_success(session_factory):
    with match_uow(session_factory) as repo:
        repo.upsert_score('s1', 'l1', None, make_composite(70), 3)

    session = session_factory()
    try:
        assert session.query(MatchScore).count() == 1
    finally:
        session.close()


@pytest.mark.db
def test_rolls_back_on_error(session_factory):
    with pytest.raises(RuntimeError):
        with match_uow(session_factory) as repo:
            repo.upsert_score('s1', 'l1', None, make_composite(70), 3)
            raise RuntimeError("boom")

    session = session_factory()
    try:
        assert session.query(MatchScore).count() == 0
    finally:
        session.close()
