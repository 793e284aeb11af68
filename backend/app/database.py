"""
Parcel Server Backend: Database Engine & Session Factory
=========================================================

What:  Async SQLAlchemy engine factory, session factory and declarative base.
How:   `create_engine_from_settings()` builds an async engine with connection
       pooling; `create_session_factory()` wraps it. Both are called once by
       the application lifespan, and the results live inside the
       SQLDocumentStore kept on `app.state` (no module-level engine).
Who:   main.py (lifespan), the document store, Alembic (Base metadata).

Connection Pooling Strategy:
    pool_size / max_overflow:  sized from settings (PostgreSQL only)
    pool_pre_ping:             validates connections before use
    pool_recycle=3600:         recycles connections every hour
    SQLite URLs (tests, local runs) use SQLAlchemy's default pool.
"""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import Settings, settings as default_settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations.
    """
    pass


def create_engine_from_settings(
    config: Optional[Settings] = None,
    url: Optional[str] = None,
) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    Args:
        config: Settings to read pool options from (defaults to the singleton)
        url:    Explicit URL overriding `config.sqlalchemy_url`
    """
    config = config or default_settings
    url = url or config.sqlalchemy_url

    options: Dict[str, Any] = {
        # Echo SQL only while debugging
        "echo": config.log_level == "DEBUG",
    }
    if not url.startswith("sqlite"):
        options.update(
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_pre_ping=config.db_pool_pre_ping,
            pool_recycle=3600,
        )

    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False keeps loaded attributes readable after commit.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
