"""
Community board models - posts, replies, and user flags.

Counters on the post row mirror the size of the reply/flag tables and are
recomputed in the same transaction that inserts a child row. A user can
flag a post at most once; the (post_id, user_id) unique constraint is the
authority for that rule.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from therapease.models.account import AccountRole, AccountSummary
from therapease.models.base import Base, StrEnumType, utcnow
from therapease.models.common import Page

POST_MAX_LENGTH = 2000
REPLY_MAX_LENGTH = 1000
REMOVAL_REASON_MAX_LENGTH = 500


# =============================================================================
# Enums
# =============================================================================

class FlagReason(str, Enum):
    """Reason codes a user can attach to a flag."""
    SPAM = "spam"
    ABUSE = "abuse"
    INAPPROPRIATE = "inappropriate"
    OTHER = "other"


# =============================================================================
# SQLAlchemy Models
# =============================================================================

class Post(Base):
    """SQLAlchemy model for posts table."""

    __tablename__ = "posts"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    author_id = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    anonymous = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    flag_count = Column(Integer, nullable=False, default=0)
    reply_count = Column(Integer, nullable=False, default=0)
    removed_by = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    removed_at = Column(DateTime(timezone=True), nullable=True)
    removal_reason = Column(String(REMOVAL_REASON_MAX_LENGTH), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_posts_created_at", "created_at"),
        Index("ix_posts_author_id", "author_id"),
        Index("ix_posts_active_flags", "is_active", "flag_count"),
    )

    # Relationships
    author = relationship("Account", foreign_keys=[author_id])
    removed_by_account = relationship("Account", foreign_keys=[removed_by])
    replies = relationship(
        "PostReply",
        back_populates="post",
        order_by="PostReply.created_at",
        cascade="all, delete-orphan",
    )
    flags = relationship(
        "PostFlag",
        back_populates="post",
        order_by="PostFlag.flagged_at",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return (
            f"<Post(id={self.id}, author_id={self.author_id}, "
            f"is_active={self.is_active}, flag_count={self.flag_count})>"
        )


class PostReply(Base):
    """SQLAlchemy model for post_replies table."""

    __tablename__ = "post_replies"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    post_id = Column(PG_UUID(as_uuid=True), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    anonymous = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    post = relationship("Post", back_populates="replies")
    author = relationship("Account")

    def __repr__(self) -> str:
        return f"<PostReply(id={self.id}, post_id={self.post_id})>"


class PostFlag(Base):
    """SQLAlchemy model for post_flags table."""

    __tablename__ = "post_flags"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    post_id = Column(PG_UUID(as_uuid=True), ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    reason = Column(StrEnumType(FlagReason), nullable=False, default=FlagReason.OTHER)
    flagged_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_post_flags_post_user"),
    )

    post = relationship("Post", back_populates="flags")
    user = relationship("Account")

    def __repr__(self) -> str:
        return f"<PostFlag(post_id={self.post_id}, user_id={self.user_id}, reason={self.reason})>"


# =============================================================================
# Pydantic Schemas
# =============================================================================

def _strip(v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v


class PostCreate(BaseModel):
    """Schema for creating a post."""
    content: str = Field(..., min_length=1, max_length=POST_MAX_LENGTH)
    anonymous: bool = False

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v: Any) -> Any:
        return _strip(v)


class ReplyCreate(BaseModel):
    """Schema for replying to a post."""
    content: str = Field(..., min_length=1, max_length=REPLY_MAX_LENGTH)
    anonymous: bool = False

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v: Any) -> Any:
        return _strip(v)


class FlagCreate(BaseModel):
    """Schema for flagging a post."""
    reason: FlagReason = FlagReason.OTHER


class PostRemoval(BaseModel):
    """Schema for an admin removing a post."""
    reason: str = Field(..., min_length=1, max_length=REMOVAL_REASON_MAX_LENGTH)

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, v: Any) -> Any:
        return _strip(v)


class AuthorView(BaseModel):
    """Author as shown to viewers; anonymous content shows a placeholder."""
    id: UUID
    name: str
    role: AccountRole


class ReplyRead(BaseModel):
    """Schema for reading a reply."""
    id: UUID
    content: str
    author: AuthorView
    anonymous: bool
    created_at: datetime


class FlagRead(BaseModel):
    """Schema for reading a flag (moderation views)."""
    user: AccountSummary
    reason: FlagReason
    flagged_at: datetime


class PostRead(BaseModel):
    """Schema for reading a post."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    author: AuthorView
    anonymous: bool
    replies: list[ReplyRead] = Field(default_factory=list)
    flag_count: int
    reply_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PostModerationRead(PostRead):
    """Post with flag details and removal metadata for admins."""
    flags: list[FlagRead] = Field(default_factory=list)
    removed_by: Optional[UUID] = None
    removed_at: Optional[datetime] = None
    removal_reason: Optional[str] = None


class FlagResult(BaseModel):
    """Result of flagging a post."""
    post_id: UUID
    flag_count: int


class RemovalResult(BaseModel):
    """Result of an admin removing a post."""
    post_id: UUID
    removed_at: datetime
    removal_reason: str


class PostPage(Page[PostRead]):
    """One page of board posts."""


class FlaggedPostPage(Page[PostModerationRead]):
    """One page of the moderation queue."""
