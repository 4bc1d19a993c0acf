"""
Database connection and session management for the image catalog.

Provides:
- Configuration loading from environment variables
- SQLite engine and session factory creation
- Session context manager with commit/rollback
- Schema initialization and verification
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from catalog.models import Base

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "image_catalog.db"

# ────────────────────────────────────────────────────────────────────────────────
# Configuration
# ────────────────────────────────────────────────────────────────────────────────

def get_database_path() -> Path:
    """
    Get the catalog file location from the environment.

    Returns:
        Path to the SQLite file (CATALOG_DB_PATH, default image_catalog.db).
    """
    return Path(os.getenv("CATALOG_DB_PATH", DEFAULT_DB_PATH))


def get_database_url(db_path: str | Path | None = None) -> str:
    """
    Build the SQLite connection URL.

    Args:
        db_path: Catalog file. Defaults to get_database_path().

    Returns:
        SQLite connection string in SQLAlchemy format.
    """
    path = Path(db_path) if db_path is not None else get_database_path()
    return f"sqlite:///{path}"


def get_engine_settings() -> dict:
    """
    Get engine settings from environment variables.

    Returns:
        Dictionary of keyword arguments for create_engine().
    """
    return {
        "echo": os.getenv("CATALOG_SQL_ECHO", "0") == "1",
        # Seconds to wait on a locked database before failing
        "connect_args": {"timeout": float(os.getenv("CATALOG_DB_TIMEOUT", "30"))},
    }


# ────────────────────────────────────────────────────────────────────────────────
# Engine and Session Management
# ────────────────────────────────────────────────────────────────────────────────

def create_catalog_engine(db_path: str | Path | None = None) -> Engine:
    """
    Create a new engine bound to a catalog file.

    Args:
        db_path: Catalog file. Defaults to get_database_path().

    Returns:
        Configured SQLAlchemy Engine instance.
    """
    database_url = get_database_url(db_path)
    logger.debug(f"Creating database engine for {database_url}")
    return create_engine(database_url, **get_engine_settings())


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory whose objects stay usable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


# Global engine instance (lazy initialization)
_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_engine() -> Engine:
    """
    Get or create the process-wide engine for the configured catalog file.

    Returns:
        Configured SQLAlchemy Engine instance.
    """
    global _engine

    if _engine is None:
        _engine = create_catalog_engine()
        logger.info(f"Engine created for {get_database_path()}")

    return _engine


def get_session_factory() -> sessionmaker:
    """
    Get or create the process-wide session factory.

    Returns:
        Configured sessionmaker instance.
    """
    global _session_factory

    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())

    return _session_factory


def get_session() -> Session:
    """
    Create a new database session.

    Note:
        Caller is responsible for closing the session.
        Prefer using session_scope() context manager instead.
    """
    return get_session_factory()()


@contextmanager
def session_scope(
    factory: sessionmaker | None = None
) -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic commit/rollback.

    Args:
        factory: Session factory to use. Defaults to the process-wide one.

    Yields:
        SQLAlchemy Session instance.

    Example:
        with session_scope() as session:
            image = session.query(Image).first()
            image.width = 640
        # Automatically commits on success, rolls back on exception
    """
    session = factory() if factory is not None else get_session()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.debug(f"Session rollback due to: {e}")
        raise
    finally:
        session.close()


# ────────────────────────────────────────────────────────────────────────────────
# Database Initialization
# ────────────────────────────────────────────────────────────────────────────────

def create_schema(engine: Engine) -> None:
    """
    Create the catalog tables if they are absent.

    Also creates the directory holding the catalog file. Safe to call on
    every run.

    Args:
        engine: Engine bound to the catalog file.
    """
    database = engine.url.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(engine)


def init_db() -> bool:
    """
    Initialize the configured catalog by creating all tables.

    Returns:
        True if successful, False otherwise.
    """
    try:
        logger.info("Creating database tables...")
        create_schema(get_engine())
        logger.info("Database tables created successfully!")
        return True
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        return False


def verify_connection(engine: Engine | None = None) -> bool:
    """
    Verify the catalog file can be opened and queried.

    Args:
        engine: Engine to check. Defaults to the process-wide one.

    Returns:
        True if connection successful, False otherwise.
    """
    try:
        engine = engine or get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info("Database connection verified successfully!")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


def get_db_info() -> dict:
    """
    Get effective catalog configuration (for debugging).

    Returns:
        Dictionary with configuration values.
    """
    path = get_database_path()
    return {
        "database": str(path.resolve()),
        "exists": path.exists(),
        "timeout": os.getenv("CATALOG_DB_TIMEOUT", "30"),
        "echo": os.getenv("CATALOG_SQL_ECHO", "0"),
        "image_dir": os.getenv("CATALOG_IMAGE_DIR", "./images"),
        "workers": os.getenv("CATALOG_WORKERS", "1"),
    }


# ────────────────────────────────────────────────────────────────────────────────
# Cleanup
# ────────────────────────────────────────────────────────────────────────────────

def dispose_engine() -> None:
    """
    Dispose of the process-wide engine and close all connections.

    Call this when shutting down the application.
    """
    global _engine, _session_factory

    if _engine is not None:
        logger.info("Disposing database engine...")
        _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database engine disposed.")
