"""Database configuration and session management."""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .core.config import settings

DATABASE_URL = settings.database_url


def is_sqlite(url: str = DATABASE_URL) -> bool:
    """Check if a database URL points at SQLite."""
    return url.startswith("sqlite")


def create_db_engine(url: str = DATABASE_URL):
    """Create an engine with database-specific tuning.

    SQLite connections are shared across the detail generation threads, so
    the same-thread check is disabled and foreign keys are switched on for
    every connection.
    """
    if is_sqlite(url):
        db_engine = create_engine(url, connect_args={"check_same_thread": False})

        @event.listens_for(db_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return db_engine

    return create_engine(url, pool_pre_ping=True)


engine = create_db_engine()

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create base class for models
Base = declarative_base()


def get_db():
    """Dependency for FastAPI routes to get database session.

    Rolls back the transaction on unhandled exceptions so that the
    connection is returned to the pool in a clean state.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
