"""Shared test fixtures - uses in-memory SQLite for isolated testing."""

import os
import sys
from contextlib import contextmanager

# Add project to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep the module-level engine off the real database file
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from rich.console import Console
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from networking_tracker.models import Base


@pytest.fixture
def engine():
    """Fresh in-memory database with all tables."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """Direct DB session for service-level tests."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def cli_db(session_factory, monkeypatch):
    """Point the CLI at the test database and widen its console."""

    @contextmanager
    def _get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    monkeypatch.setattr("networking_tracker.cli.get_db", _get_db)
    monkeypatch.setattr("networking_tracker.cli.init_db", lambda: None)
    monkeypatch.setattr("networking_tracker.cli.console", Console(width=200))
    return session_factory
