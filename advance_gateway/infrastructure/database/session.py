"""Database session management with connection pooling"""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from advance_gateway.config import settings


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite gets thread-sharing enabled instead of a sized pool"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
        pool_timeout=settings.http_timeout_seconds,
    )


@lru_cache
def get_session_factory() -> sessionmaker:
    """Session factory bound to the configured database, built on first use"""
    engine = build_engine(settings.database_url)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
