"""
Module: mes_kernel.db.engine
Responsibility: One process-wide SQLAlchemy engine for the SQL snapshot
    store, its session factory, and a commit-or-rollback session scope.
Architecture position: Kernel > DB.  May import from db/base.py and models/.
    MUST NOT import from storage/, domain/, or outer layers.

Invariants enforced:
    - An in-memory SQLite URL is served by a single shared connection
      (StaticPool), otherwise each session would get an empty database.
    - SQLite connections may be used from any thread; the snapshot store
      serializes writers itself.
    - session_scope() commits on success and rolls back on any exception.

Failure modes:
    - RuntimeError from get_engine() / get_session_factory() before
      init_engine_from_url() or after reset_engine().
"""

import atexit
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mes_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _engine_options(url: URL, echo: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo}
    if url.get_backend_name() != "sqlite":
        options["pool_pre_ping"] = True
        return options
    options["connect_args"] = {"check_same_thread": False}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Create the engine and session factory, replacing any previous engine.

    Args:
        database_url: ``sqlite://`` for an in-memory store,
            ``sqlite:///path/mes.db`` for a file, or any SQLAlchemy URL.
        echo: Log every SQL statement.
    """
    global _engine, _SessionFactory

    reset_engine()
    url = make_url(database_url)
    _engine = create_engine(url, **_engine_options(url, echo))
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "database": url.database or ":memory:"},
    )
    return _engine


def _not_initialized() -> RuntimeError:
    return RuntimeError("Engine not initialized. Call init_engine_from_url() first.")


def get_engine() -> Engine:
    if _engine is None:
        raise _not_initialized()
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise _not_initialized()
    return _SessionFactory


@contextmanager
def session_scope(
    session_factory: sessionmaker[Session] | None = None,
) -> Iterator[Session]:
    """Yield a session that commits on exit and rolls back on error."""
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create the snapshot table if it does not exist yet."""
    from mes_kernel.db.base import Base
    from mes_kernel.models import StoredBlob  # noqa: F401  registers the table

    Base.metadata.create_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


atexit.register(reset_engine)
