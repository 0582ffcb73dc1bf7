import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from clinic.core import config

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()

# Internal lazy globals
_engine = None
_SessionLocal = None
_database_url = None


def _build_engine(database_url: str):
    url = make_url(database_url)
    if url.drivername.startswith("postgres"):
        return create_engine(
            database_url,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args={"application_name": "toxin_clinic", "connect_timeout": 10},
        )
    if url.drivername.startswith("sqlite") and ":memory:" in database_url:
        # Share one in-memory database across sessions so DDL stays visible
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if url.drivername.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url)


def get_engine(database_url: Optional[str] = None):
    """Return a cached SQLAlchemy engine, creating it on first call.

    The URL defaults to DATABASE_URL; the engine is rebuilt when the URL
    changes, which lets tests point the app at an in-memory database.
    """
    global _engine, _SessionLocal, _database_url
    database_url = database_url or config.get_database_url()
    if _engine is None or _database_url != database_url:
        if _engine is not None:
            _engine.dispose()
        _engine = _build_engine(database_url)
        _SessionLocal = None
        _database_url = database_url
        logger.info(
            "Database engine created",
            extra={"context": {"dialect": _engine.dialect.name}},
        )
    return _engine


def get_sessionmaker(database_url: Optional[str] = None):
    """Return a cached sessionmaker bound to the lazy engine."""
    global _SessionLocal
    engine = get_engine(database_url)
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return _SessionLocal


def create_tables(database_url: Optional[str] = None):
    """Create all tables on the lazy engine."""
    # Models must be imported so Base.metadata is populated
    from clinic.db import base  # noqa: F401

    Base.metadata.create_all(bind=get_engine(database_url))


def dispose_engine():
    global _engine, _SessionLocal, _database_url
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
    _database_url = None
