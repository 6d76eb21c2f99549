# Therapease Models Package
# SQLAlchemy ORM models with Pydantic schemas

from therapease.models.base import Base, get_engine, init_db
from therapease.models.account import (
    Account, AccountRead, AccountRole, AccountSummary, LoginRequest, ProfileUpdate,
    Registration, TherapistRegistration, UserRegistration,
)
from therapease.models.common import Page, Pagination
from therapease.models.post import (
    FlagCreate, FlagReason, Post, PostCreate, PostFlag, PostModerationRead, PostRead,
    PostRemoval, PostReply, ReplyCreate,
)
from therapease.models.journal import Journal, JournalCreate, JournalRead, JournalStats, JournalUpdate, Mood
from therapease.models.therapist_profile import (
    ContactRequest, ContactRequestCreate, ContactStatus, TherapistAdminRead, TherapistApplication,
    TherapistProfile, TherapistPublicRead, VerificationDecision, VerificationStatus,
)
from therapease.models.audit_log import AuditLog, AuditLogRead

__all__ = [
    # Base
    "Base",
    "get_engine",
    "init_db",
    # Account
    "Account",
    "AccountRead",
    "AccountRole",
    "AccountSummary",
    "LoginRequest",
    "ProfileUpdate",
    "Registration",
    "TherapistRegistration",
    "UserRegistration",
    # Common
    "Page",
    "Pagination",
    # Post
    "FlagCreate",
    "FlagReason",
    "Post",
    "PostCreate",
    "PostFlag",
    "PostModerationRead",
    "PostRead",
    "PostRemoval",
    "PostReply",
    "ReplyCreate",
    # Journal
    "Journal",
    "JournalCreate",
    "JournalRead",
    "JournalStats",
    "JournalUpdate",
    "Mood",
    # Therapist Profile
    "ContactRequest",
    "ContactRequestCreate",
    "ContactStatus",
    "TherapistAdminRead",
    "TherapistApplication",
    "TherapistProfile",
    "TherapistPublicRead",
    "VerificationDecision",
    "VerificationStatus",
    # Audit Log
    "AuditLog",
    "AuditLogRead",
]
