# backend/referral_api/db/session.py
"""
SQLAlchemy session/engine bootstrap.
- Reads DATABASE_URL from core.config (SQLite file by default).
- Exposes: engine, SessionLocal, session_scope(), get_session(),
  configure_engine(), ensure_tables(), reset_tables().
- Schema changes are explicit: ensure_tables() only creates what is missing,
  reset_tables() drops and recreates and is only called from db.init_db.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, DeclarativeBase
from sqlalchemy.pool import StaticPool

from ..core import config

logger = logging.getLogger(__name__)

# --- SQLAlchemy base ---------------------------------------------------------

class Base(DeclarativeBase):
    pass

# --- engine & session --------------------------------------------------------

engine: Optional[Engine] = None
SessionLocal: Optional[sessionmaker[Session]] = None


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite gets thread-safe connect args (in-memory shares one connection)."""
    kwargs = {"echo": echo, "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(url, **kwargs)


def configure_engine(url: str, echo: bool = False) -> Engine:
    """(Re)bind the module-level engine and session factory to `url`."""
    global engine, SessionLocal
    if engine is not None:
        engine.dispose()
    engine = build_engine(url, echo=echo)
    SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False)
    logger.info("database configured: %s", engine.url.render_as_string(hide_password=True))
    return engine


configure_engine(config.DATABASE_URL, echo=config.DB_ECHO)

# --- helpers ----------------------------------------------------------------

@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Context manager for a DB session.
    Example:
        with session_scope() as s:
            s.add(obj)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

def get_session() -> Iterator[Session]:
    """
    FastAPI dependency style generator.
    Usage:
        @app.get(...)
        def handler(db: Session = Depends(get_session)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def ensure_tables() -> None:
    """
    Create missing tables. Import models lazily to avoid circulars.
    """
    # local import to prevent circular import during module import
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=engine)

def reset_tables() -> None:
    """Drop and recreate every table. Destroys all referrals."""
    from . import models  # noqa: F401
    logger.warning("dropping and recreating all tables on %s", engine.url.render_as_string(hide_password=True))
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "build_engine",
    "configure_engine",
    "session_scope",
    "get_session",
    "ensure_tables",
    "reset_tables",
]
