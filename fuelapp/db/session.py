"""SQLAlchemy engine, session factory and unit-of-work helpers."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from fuelapp.core.config import get_settings
from fuelapp.obs import instrument_sqlalchemy_engine

settings = get_settings()
_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
engine = create_engine(settings.database_url, pool_pre_ping=True, connect_args=_connect_args)
if settings.enable_tracing:
    instrument_sqlalchemy_engine(engine)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_session() -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def unit_of_work(session: Session) -> Iterator[Session]:
    """Commit every write made inside the block together, or none of them.

    Services never commit on their own; multi-table effects (coupon redemption
    and balance credit, vehicle decision and audit row) share one block.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


__all__ = ["SessionLocal", "engine", "get_session", "unit_of_work"]
