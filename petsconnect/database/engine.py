"""
petsconnect.database.engine — Database Connection & Session Helper
===================================================================

Every engagement handler is one request-scoped unit of work: open a
session, apply the primary mutation and its point side effect, commit.
:func:`get_session` is that unit.  A failure anywhere inside the block
rolls back both writes together, so engagement state and reward state
never diverge.

Usage::

    from petsconnect.database.engine import create_db_engine, get_session, init_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    with get_session(engine) as session:
        session.add(Profile(user_id=uid, username="milo"))
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine, make_url
from sqlalchemy.orm import Session

from petsconnect.database.models import Base

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None


def create_db_engine(url: str | None = None) -> Engine:
    """Build a SQLAlchemy :class:`Engine`, by default from ``DATABASE_URL``.

    Feed reads and engagement writes are short request-scoped
    transactions, so the pool is small.  ``DB_POOL_SIZE`` (default 5) and
    ``DB_MAX_OVERFLOW`` (default 10) tune it for server databases; SQLite
    URLs keep SQLAlchemy's default pool.  ``SQL_ECHO=1`` logs every
    statement.

    Raises
    ------
    RuntimeError
        If no URL is given and ``DATABASE_URL`` is not set, or a pool
        variable isn't an integer.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and point it at the PetsConnect database."
        )

    kwargs: dict = {"echo": os.getenv("SQL_ECHO", "") == "1", "pool_pre_ping": True}
    # SQLite picks its own pool class, which takes no sizing arguments.
    if make_url(url).get_backend_name() != "sqlite":
        kwargs.update(
            pool_size=_env_int("DB_POOL_SIZE", 5),
            max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
            pool_timeout=10,
            pool_recycle=3600,
        )

    engine = create_engine(url, **kwargs)
    logger.info("Database engine created → %s/%s", engine.url.host, engine.url.database)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`petsconnect.database.models`.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is retained for dev/test environments.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """Yield a :class:`Session` that commits on success and rolls back on
    exception.

    ``expire_on_commit`` is off so rows returned from a handler stay
    readable after the block exits.
    """
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
