"""
Therapist profile model - verification applications and contact inbox.

A profile belongs to exactly one account and moves through a small state
machine: pending -> approved or pending -> rejected. Both outcomes are
terminal. Verified, active profiles are listed publicly and can receive
contact requests from other accounts.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from therapease.models.account import AccountSummary
from therapease.models.base import Base, JSONType, StrEnumType, utcnow
from therapease.models.common import Page

CONTACT_MESSAGE_MAX_LENGTH = 1000
BIO_MAX_LENGTH = 2000
PLACEHOLDER_PHONE = "000-000-0000"


# =============================================================================
# Enums
# =============================================================================

class VerificationStatus(str, Enum):
    """Position of a profile in the review workflow."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ContactStatus(str, Enum):
    """Lifecycle of a contact request in the therapist's inbox."""
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    RESPONDED = "responded"


class PreferredContactMethod(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    BOTH = "both"


class PracticeType(str, Enum):
    PRIVATE = "private"
    CLINIC = "clinic"
    HOSPITAL = "hospital"
    ONLINE = "online"


class SessionType(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"
    FAMILY = "family"
    COUPLES = "couples"


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


# =============================================================================
# SQLAlchemy Models
# =============================================================================

class TherapistProfile(Base):
    """SQLAlchemy model for therapist_profiles table."""

    __tablename__ = "therapist_profiles"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    account_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # Verification
    verified = Column(Boolean, nullable=False, default=False)
    verification_status = Column(
        StrEnumType(VerificationStatus),
        nullable=False,
        default=VerificationStatus.PENDING,
    )
    verified_by = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Professional information
    specialization = Column(JSONType, nullable=False, default=list)
    license_number = Column(String(100), nullable=False, unique=True)
    experience = Column(Integer, nullable=False)
    education = Column(JSONType, nullable=True)
    certifications = Column(JSONType, nullable=False, default=list)

    # Contact and practice
    contact_info = Column(JSONType, nullable=False, default=dict)
    practice_info = Column(JSONType, nullable=True)

    rating_average = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)

    bio = Column(Text, nullable=True)
    profile_image = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_therapist_profiles_verified_active", "verified", "is_active"),
        Index("ix_therapist_profiles_status", "verification_status"),
    )

    # Relationships
    account = relationship("Account", back_populates="therapist_profile", foreign_keys=[account_id])
    verifier = relationship("Account", foreign_keys=[verified_by])
    contact_requests = relationship(
        "ContactRequest",
        back_populates="therapist",
        order_by="ContactRequest.created_at.desc()",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return (
            f"<TherapistProfile(id={self.id}, account_id={self.account_id}, "
            f"status={self.verification_status})>"
        )


class ContactRequest(Base):
    """SQLAlchemy model for contact_requests table."""

    __tablename__ = "contact_requests"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    therapist_id = Column(
        PG_UUID(as_uuid=True),
        ForeignKey("therapist_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    requester_id = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    message = Column(Text, nullable=False)
    contact_info = Column(JSONType, nullable=False, default=dict)
    status = Column(StrEnumType(ContactStatus), nullable=False, default=ContactStatus.PENDING)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_contact_requests_therapist_requester", "therapist_id", "requester_id", "status"),
    )

    therapist = relationship("TherapistProfile", back_populates="contact_requests")
    requester = relationship("Account")

    def __repr__(self) -> str:
        return f"<ContactRequest(id={self.id}, therapist_id={self.therapist_id}, status={self.status})>"


# =============================================================================
# Pydantic Schemas - nested documents
# =============================================================================

class Education(BaseModel):
    degree: Optional[str] = None
    institution: Optional[str] = None
    year: Optional[int] = None


class Certification(BaseModel):
    name: Optional[str] = None
    issuer: Optional[str] = None
    year: Optional[int] = None


class Address(BaseModel):
    street: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: str = "India"


class SocialMedia(BaseModel):
    linkedin: Optional[str] = None
    twitter: Optional[str] = None


class ProfileContactInfo(BaseModel):
    """Contact details published on a therapist profile."""
    email: EmailStr
    phone: str = Field(..., min_length=1)
    address: Address = Field(default_factory=Address)
    website: Optional[str] = None
    social_media: Optional[SocialMedia] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("phone", mode="before")
    @classmethod
    def strip_phone(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class AvailabilityHours(BaseModel):
    start: Optional[str] = Field(None, description='e.g. "09:00"')
    end: Optional[str] = Field(None, description='e.g. "17:00"')


class Availability(BaseModel):
    days: list[Weekday] = Field(default_factory=list)
    hours: Optional[AvailabilityHours] = None


class PracticeInfo(BaseModel):
    name: Optional[str] = None
    type: PracticeType = PracticeType.PRIVATE
    accepts_insurance: bool = False
    session_types: list[SessionType] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=lambda: ["English"])
    availability: Optional[Availability] = None


# =============================================================================
# Pydantic Schemas - requests
# =============================================================================

class TherapistApplication(BaseModel):
    """Schema for an account applying to be listed as a therapist."""
    specialization: list[str] = Field(..., min_length=1)
    license_number: str = Field(..., min_length=1, max_length=100)
    experience: int = Field(..., ge=0, le=50)
    contact_info: ProfileContactInfo
    education: Optional[Education] = None
    certifications: list[Certification] = Field(default_factory=list)
    practice_info: Optional[PracticeInfo] = None
    bio: Optional[str] = Field(None, max_length=BIO_MAX_LENGTH)
    profile_image: Optional[str] = Field(None, max_length=500)

    @field_validator("specialization", mode="before")
    @classmethod
    def clean_specialization(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        return [s.strip() for s in v if isinstance(s, str) and s.strip()]

    @field_validator("license_number", "bio", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class ContactInfo(BaseModel):
    """How the requester wants to be reached."""
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    preferred_method: PreferredContactMethod = PreferredContactMethod.EMAIL

    @model_validator(mode="after")
    def require_channel(self) -> "ContactInfo":
        if not self.email and not self.phone:
            raise ValueError("At least email or phone contact information is required")
        return self


class ContactRequestCreate(BaseModel):
    """Schema for contacting a therapist."""
    message: str = Field(..., min_length=1, max_length=CONTACT_MESSAGE_MAX_LENGTH)
    contact_info: ContactInfo

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class VerificationDecision(BaseModel):
    """Admin decision on a pending application."""
    approved: bool
    rejection_reason: Optional[str] = Field(None, max_length=1000)

    @field_validator("rejection_reason", mode="before")
    @classmethod
    def strip_reason(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class ContactStatusUpdate(BaseModel):
    """Therapist moving a request forward in their inbox."""
    status: ContactStatus

    @field_validator("status")
    @classmethod
    def not_pending(cls, v: ContactStatus) -> ContactStatus:
        if v == ContactStatus.PENDING:
            raise ValueError("Status must be acknowledged or responded")
        return v


# =============================================================================
# Pydantic Schemas - responses
# =============================================================================

class PublicContactInfo(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    state: Optional[str] = None


class TherapistPublicRead(BaseModel):
    """Profile as shown in the public directory."""
    id: UUID
    account: AccountSummary
    verified: bool
    verification_status: VerificationStatus
    verified_at: Optional[datetime] = None
    specialization: list[str]
    experience: int
    education: Optional[dict[str, Any]] = None
    certifications: list[dict[str, Any]] = Field(default_factory=list)
    contact_info: PublicContactInfo
    practice_info: Optional[dict[str, Any]] = None
    rating_average: float = 0.0
    rating_count: int = 0
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class TherapistAdminRead(BaseModel):
    """Full profile for reviewers, including license and decision data."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account: AccountSummary
    verified: bool
    verification_status: VerificationStatus
    verified_by: Optional[UUID] = None
    verified_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    specialization: list[str]
    license_number: str
    experience: int
    education: Optional[dict[str, Any]] = None
    certifications: list[dict[str, Any]] = Field(default_factory=list)
    contact_info: dict[str, Any] = Field(default_factory=dict)
    practice_info: Optional[dict[str, Any]] = None
    bio: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class TherapistOverviewItem(BaseModel):
    """Row of the admin-wide therapist listing."""
    id: UUID
    name: Optional[str] = None
    email: Optional[str] = None
    verified: bool
    verification_status: VerificationStatus
    is_active: bool
    specialization: list[str]
    created_at: datetime


class TherapistOverview(BaseModel):
    total: int
    verified: int
    pending: int
    rejected: int
    therapists: list[TherapistOverviewItem] = Field(default_factory=list)


class ApplicationResult(BaseModel):
    id: UUID
    verification_status: VerificationStatus


class VerificationResult(BaseModel):
    therapist_id: UUID
    therapist_name: str
    verification_status: VerificationStatus
    verified: bool


class ContactRequestRead(BaseModel):
    """Contact request as seen by the receiving therapist."""
    id: UUID
    requester: AccountSummary
    message: str
    contact_info: dict[str, Any] = Field(default_factory=dict)
    status: ContactStatus
    created_at: datetime


class TherapistPage(Page[TherapistPublicRead]):
    """One page of the public therapist directory."""
