"""
AuditLog model - trail of moderation and security actions.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

from therapease.models.base import Base, JSONType, utcnow


# =============================================================================
# SQLAlchemy Model
# =============================================================================

class AuditLog(Base):
    """SQLAlchemy model for audit_logs table."""

    __tablename__ = "audit_logs"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    event_type = Column(String(100), nullable=False, index=True)
    actor_id = Column(PG_UUID(as_uuid=True), nullable=True, index=True)  # Null for anonymous login failures
    resource_type = Column(String(100), nullable=False, index=True)
    resource_id = Column(PG_UUID(as_uuid=True), nullable=True)
    action = Column(String(50), nullable=False, index=True)
    ip_address = Column(String(45), nullable=True)  # IPv6 max length
    user_agent = Column(Text, nullable=True)
    details = Column(JSONType, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, event_type={self.event_type}, action={self.action})>"


# =============================================================================
# Pydantic Schemas
# =============================================================================

class AuditLogRead(BaseModel):
    """Schema for reading audit log data."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_type: str = Field(..., max_length=100, description="Category of event")
    actor_id: Optional[UUID] = None
    resource_type: str = Field(..., max_length=100, description="Type of resource acted on")
    resource_id: Optional[UUID] = None
    action: str = Field(..., max_length=50, description="Action performed")
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    details: dict[str, Any] = {}
    created_at: datetime


# =============================================================================
# Audit Event Types (Constants)
# =============================================================================

class AuditEventType:
    """Audit event categories."""
    # Authentication events
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    LOGOUT = "logout"

    # Account moderation
    ACCOUNT_BAN = "account_ban"
    ACCOUNT_UNBAN = "account_unban"

    # Post moderation
    POST_DELETE = "post_delete"
    POST_REMOVE = "post_remove"
    POST_RESTORE = "post_restore"

    # Therapist review
    THERAPIST_VERIFY = "therapist_verify"


class AuditAction:
    """Standard audit actions."""
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
