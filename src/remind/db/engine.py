"""SQLAlchemy engine construction.

The engine is created by whoever owns the process lifecycle (the FastAPI
application factory or the CLI) and passed down explicitly.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from remind.config import Settings


def create_engine_from_url(database_url: str) -> Engine:
    """Create an engine for SQLite or PostgreSQL.

    SQLite connections are shared with FastAPI's worker threads, and the
    in-memory variant needs a single static connection to keep its data.
    """

    if database_url.startswith("sqlite"):
        kwargs: dict[str, object] = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            db_path = database_url.split("///", 1)[-1]
            if db_path:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(database_url, **kwargs)

    return create_engine(database_url, pool_pre_ping=True)


def create_engine_from_settings(settings: Settings) -> Engine:
    return create_engine_from_url(settings.database_url)


def check_connection(engine: Engine) -> None:
    """Verify the database is reachable."""

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
