"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from the resolved
`settings.DATABASE_URL` and provides small helpers used by the
application, scripts and tests. Without any connection settings the
engine points at a local SQLite file `app.db` next to the package.
"""

from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import text

from .config import settings


def make_engine(url: str):
    """Create an engine for `url`, enabling cross-thread use for SQLite."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, pool_pre_ping=True, connect_args=connect_args)


engine = make_engine(settings.DATABASE_URL)


def create_db_and_tables(bind=None):
    """Create database tables using SQLModel metadata.

    Intended for local development, seeding and tests; a shared database
    is expected to be provisioned ahead of time.
    """
    # models must be imported so their tables are registered on the metadata
    from . import models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)


def ping(bind=None) -> None:
    """Run `SELECT 1`; raises the driver's error if the store is unreachable."""
    with (bind or engine).connect() as conn:
        conn.execute(text("SELECT 1"))


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine) as session:
        yield session
