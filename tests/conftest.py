"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
"""

import os
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.models import Base


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "db: marks tests as requiring database (deselect with '-m \"not db\"')"
    )


def _enable_sqlite_savepoints(engine):
    """
    pysqlite defers BEGIN on its own and breaks SAVEPOINT; let SQLAlchemy
    emit BEGIN itself so begin_nested() behaves as on PostgreSQL.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest.fixture(scope="function")
def db_engine():
    """
    Fresh schema per test.

    Uses TEST_DATABASE_URL when set, otherwise an in-memory SQLite engine
    shared across connections.
    """
    external_url = os.environ.get("TEST_DATABASE_URL")
    if external_url:
        engine = create_engine(external_url)
    else:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(engine)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a fresh database session for each test."""
    session = session_factory()
    yield session
    session.close()
