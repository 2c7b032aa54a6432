"""Database session management for the SlotBook booking core."""

from typing import Generator

from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from core.settings import settings


class DatabaseConfig:
    """Database configuration settings."""

    # Connection pool settings
    POOL_SIZE: int = settings.db_pool_size
    MAX_OVERFLOW: int = settings.db_max_overflow
    POOL_TIMEOUT: int = settings.db_pool_timeout
    POOL_RECYCLE: int = settings.db_pool_recycle
    POOL_PRE_PING: bool = True

    # Query settings
    ECHO: bool = settings.db_echo

    # Seconds SQLite waits on a locked database before failing
    SQLITE_BUSY_TIMEOUT: int = 30


def create_engine(url: str = settings.database_url, echo: bool = DatabaseConfig.ECHO) -> Engine:
    """
    Create SQLAlchemy engine.

    SQLite engines are shared across threads and wait on write locks;
    other backends get a sized connection pool.

    Args:
        url: Database URL
        echo: Whether to log all SQL statements

    Returns:
        SQLAlchemy engine
    """
    if url.startswith("sqlite"):
        return sa_create_engine(
            url,
            echo=echo,
            connect_args={
                "check_same_thread": False,
                "timeout": DatabaseConfig.SQLITE_BUSY_TIMEOUT,
            },
        )

    return sa_create_engine(
        url,
        echo=echo,
        pool_size=DatabaseConfig.POOL_SIZE,
        max_overflow=DatabaseConfig.MAX_OVERFLOW,
        pool_timeout=DatabaseConfig.POOL_TIMEOUT,
        pool_recycle=DatabaseConfig.POOL_RECYCLE,
        pool_pre_ping=DatabaseConfig.POOL_PRE_PING,
    )


def create_test_engine(url: str) -> Engine:
    """
    Create engine for testing with NullPool.

    Args:
        url: Database URL

    Returns:
        SQLAlchemy engine with NullPool
    """
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,
            "timeout": DatabaseConfig.SQLITE_BUSY_TIMEOUT,
        }
    return sa_create_engine(url, echo=False, poolclass=NullPool, connect_args=connect_args)


# Global engine instance
engine: Engine = create_engine()

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    class_=Session,
    expire_on_commit=False,
    autoflush=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting a database session.

    Services own their commits; anything left open is rolled back.

    Yields:
        Session instance

    Example:
        def my_view(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine = engine) -> None:
    """Initialize database by creating all tables."""
    from .base import Base
    from . import models_sqlalchemy  # noqa: F401

    Base.metadata.create_all(bind=bind)


def drop_db(bind: Engine = engine) -> None:
    """Drop all database tables. Use with caution!"""
    from .base import Base

    Base.metadata.drop_all(bind=bind)


def close_db() -> None:
    """Close database engine and all connections."""
    engine.dispose()
