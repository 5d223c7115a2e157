"""Database connection and session management.

This module provides SQLModel engine setup, connection pooling, session management,
and database initialization utilities for the book exchange server.
"""

from typing import Any, AsyncIterator, Generator
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import QueuePool, StaticPool
from contextlib import asynccontextmanager
from fastapi import FastAPI

from .config import settings
# Import models to register them with SQLModel
from .models import (  # noqa: F401
    Book,
    ExchangeRequest,
    Message,
    Notification,
    Review,
    User,
    WishlistItem,
)


def _engine_options(database_url: str) -> dict[str, Any]:
    """Build engine keyword arguments for the configured backend."""
    if database_url.startswith("sqlite"):
        # A single shared connection keeps in-memory databases alive across sessions
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_size": 10,  # Number of connections to maintain in the pool
        "max_overflow": 20,  # Additional connections that can be created on demand
        "pool_timeout": 30,  # Timeout for getting connection from pool
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "poolclass": QueuePool,
    }


# Create database engine with connection pooling
engine = create_engine(
    settings.database_url,
    echo=settings.debug,  # Log SQL queries in debug mode
    **_engine_options(settings.database_url),
)


def get_session() -> Generator[Session, None, None]:
    """Dependency to get database session.

    This function provides a database session for dependency injection
    in FastAPI endpoints. The session is automatically closed after use.

    Yields:
        Session: SQLModel database session

    Example:
        @app.get("/books/")
        def get_books(session: Session = Depends(get_session)):
            return session.exec(select(Book)).all()
    """
    with Session(engine) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def create_db_and_tables() -> None:
    """Create database tables based on SQLModel definitions.

    Note:
        This function is idempotent - it won't recreate existing tables.
    """
    SQLModel.metadata.create_all(engine)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """FastAPI lifespan context manager for database initialization.

    Args:
        app: FastAPI application instance

    Yields:
        None: Control to the application
    """
    # Startup: Create database tables
    create_db_and_tables()
    yield
    # Shutdown: Close database connections
    engine.dispose()


def get_database_info() -> dict[str, Any]:
    """Get database connection information for health checks.

    Returns:
        dict: Database connection information including URL and pool class
    """
    info: dict[str, Any] = {
        "url": settings.database_url.split("@")[-1] if "@" in settings.database_url else settings.database_url,  # Hide credentials
        "pool": type(engine.pool).__name__,
    }
    if isinstance(engine.pool, QueuePool):
        info.update(
            {
                "pool_size": engine.pool.size(),
                "checked_in": engine.pool.checkedin(),
                "checked_out": engine.pool.checkedout(),
                "overflow": engine.pool.overflow(),
            }
        )
    return info


def test_database_connection() -> bool:
    """Test database connection.

    Returns:
        bool: True if connection is successful, False otherwise
    """
    try:
        with Session(engine) as session:
            session.connection().execute(text("SELECT 1"))
            return True
    except SQLAlchemyError:
        return False
