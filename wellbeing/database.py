"""
Database configuration and session management.

SQLite serves local development and the test suite, PostgreSQL production.
On SQLite, foreign keys are switched on per connection so that membership,
post and RSVP rows can never point at a missing user, group or event.
"""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from wellbeing.config import settings

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Render/Heroku hand out postgres:// but SQLAlchemy needs postgresql://"""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def create_db_engine(url: str, **engine_options):
    url = normalize_database_url(url)
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False}, **engine_options)

        @event.listens_for(engine, "connect")
        def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    options = {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }
    options.update(engine_options)
    logger.info("Using pooled database engine (size=%s)", options["pool_size"])
    return create_engine(url, **options)


engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for FastAPI endpoints to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Dependency returning the factory used for out-of-request writes (audit trail)."""
    return SessionLocal
