from sqlalchemy.orm import Session, SessionTransaction


class BaseRepository:
    """Shared session handling. Repositories flush; the unit of work commits."""

    def __init__(self, db: Session):
        self.db = db

    def savepoint(self) -> SessionTransaction:
        """SAVEPOINT scope; an error inside rolls back only this block and leaves the session usable."""
        return self.db.begin_nested()

    def flush(self) -> None:
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
