"""
Pytest configuration and fixtures for Therapease tests.
"""

import os
import sys
from datetime import timedelta
from uuid import uuid4

import pytest

# Keep the app from creating tables in the working directory on startup
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("JWT_SECRET", "therapease-test-secret")

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from therapease.models.account import Account, AccountRole  # noqa: E402
from therapease.models.base import Base, json_serializer, utcnow  # noqa: E402
from therapease.models.post import Post  # noqa: E402
from therapease.models.therapist_profile import TherapistProfile, VerificationStatus  # noqa: E402
from therapease.services.auth import hash_password  # noqa: E402

import therapease.models  # noqa: E402, F401

DEFAULT_PASSWORD = "Password1"
_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


# Change to project root for tests that reference relative paths
@pytest.fixture(autouse=True)
def change_to_project_root():
    """Change to project root directory for all tests."""
    original_dir = os.getcwd()
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    os.chdir(project_root)
    yield
    os.chdir(original_dir)


# =============================================================================
# Database
# =============================================================================

@pytest.fixture()
def engine():
    """In-memory SQLite engine shared across threads, foreign keys enforced."""
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        json_serializer=json_serializer,
    )

    @event.listens_for(eng, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def sf(engine):
    """Session factory bound to the in-memory engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def mock_audit():
    """Mock audit service."""
    from unittest.mock import MagicMock
    from therapease.services.audit import AuditService
    return MagicMock(spec=AuditService)


# =============================================================================
# Record factories
# =============================================================================

@pytest.fixture()
def make_account(sf):
    """Insert an account directly and return its id."""

    def _make(role=AccountRole.USER, name=None, email=None, created_offset=0, **fields):
        account_id = uuid4()
        now = utcnow() + timedelta(seconds=created_offset)
        values = dict(
            id=account_id,
            name=name or f"{role.value.title()} {str(account_id)[:6]}",
            email=email or f"{role.value}-{account_id.hex[:10]}@example.com",
            password_hash=_PASSWORD_HASH,
            role=role,
            is_active=True,
            is_verified=False,
            is_banned=False,
            created_at=now,
            updated_at=now,
        )
        if role == AccountRole.THERAPIST:
            values.update(specialization="Anxiety", license_number=f"LIC-{account_id.hex[:8]}", experience=5)
        values.update(fields)

        session = sf()
        session.add(Account(**values))
        session.commit()
        session.close()
        return account_id

    return _make


@pytest.fixture()
def make_post(sf):
    """Insert a post directly with an explicit creation offset and return its id."""

    def _make(author_id, content="Feeling a bit better today", created_offset=0, **fields):
        post_id = uuid4()
        created = utcnow() + timedelta(seconds=created_offset)
        values = dict(
            id=post_id,
            author_id=author_id,
            content=content,
            anonymous=False,
            is_active=True,
            flag_count=0,
            reply_count=0,
            created_at=created,
            updated_at=created,
        )
        values.update(fields)

        session = sf()
        session.add(Post(**values))
        session.commit()
        session.close()
        return post_id

    return _make


@pytest.fixture()
def make_profile(sf):
    """Insert a therapist profile for an account and return its id."""

    def _make(account_id, status=VerificationStatus.PENDING, specialization=None, created_offset=0, **fields):
        profile_id = uuid4()
        created = utcnow() + timedelta(seconds=created_offset)
        values = dict(
            id=profile_id,
            account_id=account_id,
            verified=status == VerificationStatus.APPROVED,
            verification_status=status,
            specialization=specialization or ["Anxiety"],
            license_number=f"PRF-{profile_id.hex[:10]}",
            experience=7,
            certifications=[],
            contact_info={
                "email": "clinic@example.com",
                "phone": "9876543210",
                "address": {"street": "1 Main Rd", "state": "Kerala", "country": "India"},
            },
            rating_average=0.0,
            rating_count=0,
            is_active=True,
            created_at=created,
            updated_at=created,
        )
        values.update(fields)

        session = sf()
        session.add(TherapistProfile(**values))
        session.commit()
        session.close()
        return profile_id

    return _make
