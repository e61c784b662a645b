"""
==============================================================================
Database Module
==============================================================================

Engine and session handling for the catalog database.

This module implements:
- Base: declarative base shared by all ORM models
- DatabaseManager: process-wide owner of the engine and session factory
- get_db: request-scoped session dependency for FastAPI

Engines:
--------
- File-backed SQLite: one connection per checkout, foreign keys enforced
- In-memory SQLite: a single shared connection (StaticPool), otherwise
  every new connection would see an empty database
- Anything else: a bounded pool with pre-ping and recycling

Sessions never expire attributes on commit and never autoflush; the store
flushes explicitly after every structural change.

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from productmanager.config import get_settings


# Module logger
logger = logging.getLogger(__name__)

Base = declarative_base()


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Run ``PRAGMA foreign_keys=ON`` on every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _engine_options(database_url: str, in_memory: bool) -> Dict[str, Any]:
    if not database_url.startswith("sqlite"):
        return {
            "pool_size": 5,
            "max_overflow": 10,
            "pool_timeout": 30,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
        }

    options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if in_memory:
        options["poolclass"] = StaticPool
    return options


class DatabaseManager:
    """
    Owner of the catalog engine and its session factory.

    Only one instance exists per process. The engine is built on first use,
    so settings can still be changed before anything connects.

    Example:
        >>> manager = get_database_manager()
        >>> with manager.session_scope() as session:
        ...     session.query(Category).count()
    """

    _instance: Optional[DatabaseManager] = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        self._settings = get_settings()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._initialized = True

    # =========================================================================
    # ENGINE
    # =========================================================================

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        database_url = self._settings.database_url
        is_sqlite = database_url.startswith("sqlite")
        in_memory = is_sqlite and self._settings.get_database_path() is None

        engine = create_engine(
            database_url,
            echo=self._settings.debug,
            **_engine_options(database_url, in_memory)
        )
        if is_sqlite:
            enable_sqlite_foreign_keys(engine)

        kind = "in-memory SQLite" if in_memory else ("SQLite" if is_sqlite else "pooled")
        logger.info(f"Created {kind} engine: {database_url}")
        return engine

    def verify_connection(self) -> bool:
        """
        Run ``SELECT 1`` against the database.

        Returns:
            True if the query succeeded
        """
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            return False
        return True

    def dispose(self) -> None:
        """Close every pooled connection."""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database connections closed")

    # =========================================================================
    # SESSIONS
    # =========================================================================

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def get_session(self) -> Session:
        """New session; the caller closes it."""
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Session that commits on success and rolls back on error.

        The session is closed either way.
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # =========================================================================
    # SCHEMA
    # =========================================================================

    def create_tables(self) -> None:
        """Create missing tables for every model (idempotent)."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created/verified")

    def __repr__(self) -> str:
        return f"DatabaseManager(url={self._settings.database_url!r})"


@lru_cache(maxsize=1)
def get_database_manager() -> DatabaseManager:
    return DatabaseManager()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding one session per request.

    Usage:
        @router.get("/products")
        async def list_products(db: Session = Depends(get_db)):
            ...
    """
    session = get_database_manager().get_session()
    try:
        yield session
    finally:
        session.close()
