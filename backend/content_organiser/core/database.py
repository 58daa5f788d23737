"""
Database configuration and session management
"""
import logging
import time
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from content_organiser.core.config import get_settings
from content_organiser.core.logging_config import LoggingConfig
from content_organiser.core.metrics import (db_queries_total,
                                            db_query_duration_seconds)

# Lazy initialization - don't create engine at module level
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None

# Base class for models (can be created immediately)
Base = declarative_base()


def _setup_db_metrics(engine: Engine):
    """Setup SQLAlchemy event listeners for database metrics"""

    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault('query_start_time', []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if not conn.info.get('query_start_time'):
            return
        duration = time.time() - conn.info['query_start_time'].pop()
        words = statement.strip().split()
        operation = words[0].lower() if words else "unknown"
        db_queries_total.labels(operation=operation).inc()
        db_query_duration_seconds.labels(operation=operation).observe(duration)


def _engine_options(database_url: str) -> dict:
    """Pool and driver options for the configured backend"""
    settings = get_settings()
    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False, "timeout": 5}}
        # An in-memory database only exists on a single shared connection
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_pre_ping": True,
        "connect_args": {
            "connect_timeout": 5,
            "options": "-c statement_timeout=5000",
        } if "postgresql" in database_url else {},
    }


def get_engine() -> Engine:
    """Get or create database engine (lazy initialization)"""
    global _engine
    if _engine is None:
        settings = get_settings()
        LoggingConfig.configure()

        _engine = create_engine(
            settings.database_url,
            echo=settings.log_sqlalchemy,
            **_engine_options(settings.database_url)
        )

        sqlalchemy_logger = logging.getLogger("sqlalchemy.engine")
        if not settings.log_sqlalchemy:
            sqlalchemy_logger.setLevel(logging.WARNING)
            sqlalchemy_logger.propagate = False

        _setup_db_metrics(_engine)

    return _engine


def get_session_local() -> sessionmaker:
    """Get or create session factory (lazy initialization)"""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _SessionLocal


def init_db():
    """Create all tables registered on Base"""
    import content_organiser.models  # noqa: F401  register models with Base metadata

    Base.metadata.create_all(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
