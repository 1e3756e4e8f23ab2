from __future__ import annotations

from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tender_system.core.config import get_settings


def build_engine(url: str) -> Engine:
    """
    PostgreSQL in production. SQLite is accepted for local runs and tests;
    an in-memory SQLite database is pinned to one shared connection.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def build_session_factory(bind: Engine) -> sessionmaker:
    # services commit themselves; returned rows stay readable afterwards
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = build_engine(get_settings().database_url)  # fail fast if missing

SessionLocal = build_session_factory(engine)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
