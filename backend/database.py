"""
Database engine and session factory.

The engine is created on first use so importing this module never needs a
database driver.
"""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from api.config import settings


@lru_cache()
def get_engine() -> Engine:
    """Get the shared database engine."""
    return create_engine(
        settings.DATABASE_URL,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=settings.DB_POOL_PRE_PING,
        echo=settings.DEBUG
    )


@lru_cache()
def get_session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db_session() -> Session:
    """Get database session."""
    return get_session_factory()()
