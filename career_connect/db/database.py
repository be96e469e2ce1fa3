"""
SQL store connection - users, conversations, messages, interview requests.

PostgreSQL in production; any SQLAlchemy URL works (tests use SQLite).
"""
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker

from career_connect.core.config import get_settings
from career_connect.core.errors import TransientIO

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Threads share the file; wait on the writer lock instead of failing fast
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    # pool_size=5: maintain 5 connections ready
    # max_overflow=10: allow 10 extra connections under load
    return {"pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}


engine = create_engine(
    settings.sqlalchemy_url,
    echo=settings.debug,  # Log SQL queries in debug mode
    **_engine_options(settings.sqlalchemy_url)
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

Base = declarative_base()


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Commits on success, rolls back on any exception so every mutating
    operation is all-or-nothing. Connection-level failures surface as
    TransientIO.

    Usage:
        with get_db_session() as db:
            db.execute(select(User))
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except OperationalError as e:
        session.rollback()
        logger.warning("Transient store error: %s", e.orig)
        raise TransientIO() from e
    except DBAPIError as e:
        session.rollback()
        if e.connection_invalidated:
            raise TransientIO() from e
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create all tables (idempotent)."""
    from career_connect import models  # noqa: F401  (registers tables on Base)

    Base.metadata.create_all(bind=engine)


def test_database_connection() -> bool:
    """
    Test if the SQL store is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        with get_db_session() as db:
            result = db.execute(text("SELECT 1 as test"))
            row = result.fetchone()
            return row[0] == 1
    except Exception as e:
        logger.error("SQL store connection failed: %s", e)
        return False
