"""
Engine and session helpers for the direct-database backend.

Nothing is created at import time: the app builds an engine only
when PERSISTENCE_BACKEND is "database".
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


def normalize_database_url(database_url: str) -> str:
    """Accept the ``postgres://`` scheme shown in the Supabase dashboard."""
    if database_url.startswith("postgres://"):
        return "postgresql://" + database_url[len("postgres://"):]
    return database_url


def create_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10
) -> Engine:
    """
    Create the engine for the sprint and problem tables.

    SQLite URLs (used by tests and local runs) get a single shared
    connection usable from the worker threads the repository runs in.
    """
    url = make_url(normalize_database_url(database_url))

    if url.get_backend_name() == "sqlite":
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo
        )

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=max_overflow,
        echo=echo
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    # Loaded values stay readable after commit
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Yield a session that is rolled back if the block raises."""
    session = session_factory()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
