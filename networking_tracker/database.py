"""
Database initialization and session management.
"""

import logging
from contextlib import contextmanager
from typing import Optional
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .config import config
from .models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite leaves FK constraints off per connection; meetings rely on ON DELETE CASCADE
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def make_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create an engine for ``url`` (defaults to config.DATABASE_URL)."""
    url = url or config.DATABASE_URL
    new_engine = create_engine(
        url,
        echo=config.SQL_ECHO if echo is None else echo,
        pool_pre_ping=True,
    )
    if new_engine.dialect.name == "sqlite":
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


engine = make_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create the contacts, meetings and templates tables if missing."""
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info(f"Database ready at {config.DATABASE_URL}")


def drop_db() -> None:
    """Drop every table, contacts and meetings included."""
    Base.metadata.drop_all(bind=engine)
    logger.warning(f"Dropped all tables at {config.DATABASE_URL}")


@contextmanager
def get_db() -> Session:
    """
    Open a session that commits on success and rolls back on error.

    Usage:
        with get_db() as db:
            ContactService(db).record_email_sent(contact_id)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
