import contextlib
import logging

from database.database import SessionLocal
from database.repositories.match_score import MatchScoreRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def match_uow(session_factory=None):
    """Per-unit-of-work transaction scope.

    Yields a MatchScoreRepository bound to a fresh Session. Commits on
    success, rolls back on exception, always closes.

    Usage:
        with match_uow() as repo:
            repo.invalidate_student_scores(student_id)
        # commit happens automatically on successful exit
    """
    session = (session_factory or SessionLocal)()
    try:
        repo = MatchScoreRepository(session)
        yield repo
        session.commit()
    except Exception:
        logger.debug("Rolling back match unit of work")
        session.rollback()
        raise
    finally:
        session.close()
