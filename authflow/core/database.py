"""
Database engine and session management
"""

from typing import Generator
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from authflow.core.config import settings


class Base(DeclarativeBase):
    """Declarative base for all ORM models"""


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the configured database

    SQLite URLs get thread-sharing enabled (requests run in a threadpool);
    in-memory SQLite additionally shares a single connection so every
    session sees the same database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=settings.DATABASE_ECHO, **kwargs)

    return create_engine(
        database_url,
        echo=settings.DATABASE_ECHO,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create any missing tables; existing tables and rows are left as they are"""
    # Register models on the metadata
    from authflow import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def ping_db() -> bool:
    """Return True if the database answers a trivial query"""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return True


def dispose_db() -> None:
    """Close all pooled connections"""
    engine.dispose()
