"""
Base SQLAlchemy configuration and utilities for Therapease models.
"""

import json
from datetime import datetime, timezone

from sqlalchemy import create_engine, Enum as SQLEnum, JSON
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.types import TypeDecorator

from therapease.config import DATABASE_URL, SQL_ECHO


def utcnow() -> datetime:
    """Naive UTC timestamp, the format every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize a caller-supplied datetime to the stored naive UTC form."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def json_serializer(value) -> str:
    """Encode JSON columns with non-ASCII text kept as-is so text searches match it."""
    return json.dumps(value, ensure_ascii=False)


class JSONType(TypeDecorator):
    """Cross-database JSON type that works with both PostgreSQL and SQLite.

    Uses JSONB on PostgreSQL for performance, falls back to JSON on SQLite.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import JSONB
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


def StrEnumType(enum_cls):
    """Enum column stored as its lower-case string values in a VARCHAR."""
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
    )


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def get_engine(database_url: str | None = None):
    """Create SQLAlchemy engine.

    Args:
        database_url: Optional database URL override.

    Returns:
        SQLAlchemy engine instance.
    """
    url = database_url or DATABASE_URL

    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=SQL_ECHO,
            json_serializer=json_serializer,
        )

    return create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=SQL_ECHO,
        json_serializer=json_serializer,
    )


_engine = None
_SessionLocal = None


def get_session_factory(engine=None):
    """Get or create session factory."""
    global _engine, _SessionLocal

    if engine is not None:
        return sessionmaker(autocommit=False, autoflush=False, bind=engine)

    if _SessionLocal is None:
        _engine = get_engine()
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    return _SessionLocal


def init_db(engine=None) -> None:
    """Initialize database tables.

    Args:
        engine: Optional engine to use. Uses default if not provided.
    """
    if engine is None:
        engine = get_engine()

    Base.metadata.create_all(bind=engine)

