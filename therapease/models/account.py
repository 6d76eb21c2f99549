"""
Account model - users, therapists, and administrators.

One table holds every account; the role decides which fields are required.
At the schema layer accounts are a tagged union on ``role`` so a therapist
payload cannot be built without its professional fields.
"""

import re
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Discriminator, EmailStr, Field, Tag, field_validator
from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from therapease.models.base import Base, StrEnumType, utcnow
from therapease.models.common import Pagination


# =============================================================================
# Enums
# =============================================================================

class AccountRole(str, Enum):
    """Role of an account on the platform."""
    USER = "user"
    THERAPIST = "therapist"
    ADMIN = "admin"


# =============================================================================
# SQLAlchemy Model
# =============================================================================

class Account(Base):
    """SQLAlchemy model for accounts table."""

    __tablename__ = "accounts"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(StrEnumType(AccountRole), nullable=False, default=AccountRole.USER, index=True)

    # Therapist-only professional fields
    specialization = Column(String(255), nullable=True)
    license_number = Column(String(100), nullable=True)
    experience = Column(Integer, nullable=True)

    phone = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_banned = Column(Boolean, nullable=False, default=False, index=True)
    banned_at = Column(DateTime(timezone=True), nullable=True)
    banned_by = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    ban_reason = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role != 'therapist' OR "
            "(specialization IS NOT NULL AND license_number IS NOT NULL AND experience IS NOT NULL)",
            name="therapist_fields_required",
        ),
    )

    # Relationships
    banned_by_account = relationship("Account", remote_side=[id], foreign_keys=[banned_by])
    therapist_profile = relationship(
        "TherapistProfile", back_populates="account", uselist=False, foreign_keys="TherapistProfile.account_id"
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, email={self.email!r}, role={self.role})>"


# =============================================================================
# Pydantic Schemas
# =============================================================================

_PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


class AccountSummary(BaseModel):
    """Minimal account reference embedded in other payloads."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: Optional[str] = None
    role: AccountRole


class _RegistrationBase(BaseModel):
    """Fields shared by every self-service registration."""
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$", description="10-digit phone number")
    date_of_birth: Optional[date] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_complexity(cls, v: str) -> str:
        if not _PASSWORD_PATTERN.match(v):
            raise ValueError(
                "Password must contain at least one uppercase letter, "
                "one lowercase letter, and one number"
            )
        return v


class UserRegistration(_RegistrationBase):
    """Registration for a regular platform user."""
    role: Literal["user"] = "user"


class TherapistRegistration(_RegistrationBase):
    """Registration for a therapist; professional fields are mandatory."""
    role: Literal["therapist"]
    specialization: str = Field(..., min_length=1, max_length=255)
    license_number: str = Field(..., min_length=1, max_length=100)
    experience: int = Field(..., ge=0, le=50, description="Years of experience")

    @field_validator("specialization", "license_number", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


def _registration_role(value: Any) -> str:
    """Pick the registration variant; a missing role means a regular user."""
    if isinstance(value, dict):
        role = value.get("role")
    else:
        role = getattr(value, "role", None)
    return str(role or "user")


Registration = Annotated[
    Union[
        Annotated[UserRegistration, Tag("user")],
        Annotated[TherapistRegistration, Tag("therapist")],
    ],
    Discriminator(_registration_role),
]


class LoginRequest(BaseModel):
    """Credentials for password login."""
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class ProfileUpdate(BaseModel):
    """Self-service profile changes."""
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$")
    date_of_birth: Optional[date] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class _AccountReadBase(BaseModel):
    """Fields every account read model exposes."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_active: bool
    is_verified: bool
    is_banned: bool
    banned_at: Optional[datetime] = None
    banned_by: Optional[AccountSummary] = None
    ban_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserAccountRead(_AccountReadBase):
    role: Literal["user"]


class TherapistAccountRead(_AccountReadBase):
    role: Literal["therapist"]
    specialization: str
    license_number: str
    experience: int


class AdminAccountRead(_AccountReadBase):
    role: Literal["admin"]


AccountRead = Annotated[
    Union[UserAccountRead, TherapistAccountRead, AdminAccountRead],
    Field(discriminator="role"),
]


class AccountPage(BaseModel):
    """One page of the admin account listing."""
    items: list[AccountRead] = Field(default_factory=list)
    pagination: Pagination


class AuthSession(BaseModel):
    """Issued token plus the account it belongs to."""
    token: str
    account: AccountRead


class CurrentAccount(BaseModel):
    """The authenticated caller, resolved once per request."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    role: AccountRole
    is_active: bool
    is_verified: bool
    is_banned: bool


class BanRequest(BaseModel):
    """Admin ban payload."""
    reason: str = Field(..., min_length=1, max_length=500)

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v
