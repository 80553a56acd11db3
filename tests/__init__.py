#!/usr/bin/env python3
"""
Test suite for the match engine.

    # Run all tests
    python -m pytest tests/ -v

    # Run only pure unit tests (no database session)
    python -m pytest tests/ -v -m "not db"

Database tests run against an in-memory SQLite engine created per test, so
no external database is needed. Set TEST_DATABASE_URL to run them against
PostgreSQL instead.
"""
