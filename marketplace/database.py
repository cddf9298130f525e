"""Engine, session factory and the declarative base for the marketplace schema."""

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from marketplace.config import get_settings

settings = get_settings()


def build_engine(database_url: str) -> Engine:
    """SQLite (local runs) needs cross-thread access; PostgreSQL gets a small pool."""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True, pool_size=5, max_overflow=10)


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base: Any = declarative_base()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request: Celery jobs and scripts."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session dependency."""
    with session_scope() as db:
        yield db


def init_db() -> None:
    """Create any missing tables. Alembic owns the schema in deployed environments."""
    from marketplace import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
