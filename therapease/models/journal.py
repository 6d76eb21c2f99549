"""
Journal model - private, mood-tagged diary entries.

Journals are visible only to the account that wrote them; there is no
sharing and no moderation path, so deletes are physical.
"""

from datetime import date as date_type, datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from therapease.models.base import Base, JSONType, StrEnumType, utcnow
from therapease.models.common import Page

JOURNAL_CONTENT_MAX_LENGTH = 5000
JOURNAL_TITLE_MAX_LENGTH = 100


# =============================================================================
# Enums
# =============================================================================

class Mood(str, Enum):
    """Five-point mood scale attached to each entry."""
    VERY_BAD = "very-bad"
    BAD = "bad"
    NEUTRAL = "neutral"
    GOOD = "good"
    VERY_GOOD = "very-good"


# =============================================================================
# SQLAlchemy Model
# =============================================================================

class Journal(Base):
    """SQLAlchemy model for journals table."""

    __tablename__ = "journals"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    owner_id = Column(PG_UUID(as_uuid=True), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    title = Column(String(JOURNAL_TITLE_MAX_LENGTH), nullable=False)
    content = Column(Text, nullable=False)
    mood = Column(StrEnumType(Mood), nullable=False, default=Mood.NEUTRAL)
    tags = Column(JSONType, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_journals_owner_date", "owner_id", "date"),
        Index("ix_journals_owner_created", "owner_id", "created_at"),
    )

    owner = relationship("Account")

    def __repr__(self) -> str:
        return f"<Journal(id={self.id}, owner_id={self.owner_id}, mood={self.mood})>"


# =============================================================================
# Pydantic Schemas
# =============================================================================

def _clean_tags(tags: Any) -> Any:
    """Trim and lower-case tags, dropping empty ones."""
    if not isinstance(tags, list):
        return tags
    return [t.strip().lower() for t in tags if isinstance(t, str) and t.strip()]


class JournalCreate(BaseModel):
    """Schema for creating a journal entry."""
    title: Optional[str] = Field(None, max_length=JOURNAL_TITLE_MAX_LENGTH)
    content: str = Field(..., min_length=1, max_length=JOURNAL_CONTENT_MAX_LENGTH)
    mood: Mood = Mood.NEUTRAL
    tags: list[str] = Field(default_factory=list)
    date: Optional[datetime] = Field(None, description="Entry date; defaults to now")

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v: Any) -> Any:
        return _clean_tags(v)


class JournalUpdate(BaseModel):
    """Schema for a partial journal update."""
    title: Optional[str] = Field(None, max_length=JOURNAL_TITLE_MAX_LENGTH)
    content: Optional[str] = Field(None, min_length=1, max_length=JOURNAL_CONTENT_MAX_LENGTH)
    mood: Optional[Mood] = None
    tags: Optional[list[str]] = None

    @field_validator("title", "content", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v: Any) -> Any:
        return _clean_tags(v)


class JournalRead(BaseModel):
    """Schema for reading a journal entry."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    date: datetime
    title: str
    content: str
    mood: Mood
    tags: list[str] = Field(default_factory=list)
    is_private: bool = True
    created_at: datetime
    updated_at: datetime


class JournalStats(BaseModel):
    """Mood distribution and date range of an owner's entries."""
    total_entries: int = 0
    mood_counts: dict[Mood, int] = Field(
        default_factory=lambda: {mood: 0 for mood in Mood}
    )
    first_entry: Optional[datetime] = None
    last_entry: Optional[datetime] = None


def default_title(entry_date: date_type) -> str:
    """Title used when the author leaves it blank."""
    return f"Journal Entry - {entry_date.month}/{entry_date.day}/{entry_date.year}"


class JournalPage(Page[JournalRead]):
    """One page of the owner's journal."""
