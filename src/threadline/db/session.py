"""Engine and session factories for the forum database."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from threadline.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for every forum table."""


# Models attach their tables to Base.metadata on import.
import threadline.models  # noqa: E402,F401


def build_engine(url: str, **kwargs: Any) -> Engine:
    """Create an engine for ``url``.

    SQLite connections are handed between FastAPI's worker threads, so the
    same-thread check is switched off for them. Server databases get
    ``pool_pre_ping`` so stale pooled connections are replaced.

    Args:
        url: SQLAlchemy database URL
        **kwargs: Extra ``create_engine`` options

    Returns:
        The configured engine
    """
    if url.startswith("sqlite"):
        connect_args = dict(kwargs.pop("connect_args", {}))
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    else:
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


engine = build_engine(settings.effective_database_url, echo=settings.sql_debug)

SessionLocal = sessionmaker(bind=engine, autoflush=False)


def get_db() -> Iterator[Session]:
    """Yield one session per request; anything left uncommitted is rolled back on close."""
    with SessionLocal() as db:
        yield db


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for scripts run outside a request."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
