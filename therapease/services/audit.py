"""
Centralized Audit Service

Records moderation and security actions: who did what to which resource,
and when. Persists to the audit_logs table when a session factory is
available and always emits a structlog event.
"""

from typing import Any, Callable, Optional
from uuid import UUID, uuid4

import structlog

from therapease.models.audit_log import AuditAction, AuditEventType, AuditLog
from therapease.models.base import utcnow


def _to_uuid(value) -> Optional[UUID]:
    """Convert a string to a UUID object, or return None."""
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    return UUID(str(value))

logger = structlog.get_logger(__name__)


class AuditService:
    """
    Audit logging for moderation and authentication events.

    Args:
        session_factory: Optional SQLAlchemy session factory for DB persistence.
            When None, audit entries are logged via structlog only.
    """

    def __init__(self, session_factory: Optional[Callable] = None) -> None:
        self._session_factory = session_factory

    def _create_entry(
        self,
        event_type: str,
        actor_id,
        resource_type: str,
        resource_id,
        action: str,
        details: Optional[dict[str, Any]] = None,
        ip_address: str = "unknown",
        session=None,
    ) -> AuditLog:
        """
        Create an AuditLog entry, persist to DB if possible, and emit structlog event.

        Args:
            event_type: Category of audit event (see AuditEventType).
            actor_id: ID of the account performing the action.
            resource_type: Type of resource acted on.
            resource_id: ID of the specific resource.
            action: Action performed (create, update, delete, login, ...).
            details: Additional context as a JSON-serializable dict.
            ip_address: Client IP address for the request.
            session: Caller's open session. The entry is added to it and
                commits or rolls back with the caller's own changes.

        Returns:
            The created AuditLog ORM instance.
        """
        entry = AuditLog(
            id=uuid4(),
            event_type=event_type,
            actor_id=_to_uuid(actor_id),
            resource_type=resource_type,
            resource_id=_to_uuid(resource_id),
            action=action,
            ip_address=ip_address,
            details=details or {},
            created_at=utcnow(),
        )

        if session is not None:
            session.add(entry)
        elif self._session_factory is not None:
            session = self._session_factory()
            try:
                session.add(entry)
                session.commit()
                session.refresh(entry)
            except Exception:
                session.rollback()
                logger.error(
                    "audit_persist_failed",
                    event_type=event_type,
                    action=action,
                    resource_type=resource_type,
                )
                raise
            finally:
                session.close()

        logger.info(
            "audit_event",
            event_type=event_type,
            actor_id=str(actor_id) if actor_id else None,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id else None,
            action=action,
            ip_address=ip_address,
            details=details or {},
        )

        return entry

    def log_moderation(
        self,
        event_type: str,
        actor_id,
        resource_type: str,
        resource_id,
        details: Optional[dict[str, Any]] = None,
        ip_address: str = "unknown",
        session=None,
    ) -> AuditLog:
        """Log an admin or author action against another record."""
        action = AuditAction.DELETE if event_type == AuditEventType.POST_DELETE else AuditAction.UPDATE
        return self._create_entry(
            event_type=event_type,
            actor_id=actor_id,
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            details=details,
            ip_address=ip_address,
            session=session,
        )

    def log_auth_event(
        self,
        actor_id,
        success: bool,
        details: Optional[dict[str, Any]] = None,
        ip_address: str = "unknown",
    ) -> AuditLog:
        """Log a login attempt."""
        return self._create_entry(
            event_type=AuditEventType.LOGIN_SUCCESS if success else AuditEventType.LOGIN_FAILURE,
            actor_id=actor_id,
            resource_type="auth",
            resource_id=actor_id,
            action=AuditAction.LOGIN,
            details=details,
            ip_address=ip_address,
        )

    def get_audit_trail(
        self,
        resource_type: Optional[str] = None,
        resource_id=None,
        actor_id=None,
        event_type: Optional[str] = None,
        limit: int = 100,
    ) -> list[AuditLog]:
        """
        Query audit entries with optional filters.

        Args:
            resource_type: Filter by resource type.
            resource_id: Filter by resource ID.
            actor_id: Filter by acting account ID.
            event_type: Filter by event type.
            limit: Maximum number of entries to return.

        Returns:
            List of matching AuditLog entries, newest first. Empty when
            no session factory is configured.
        """
        if self._session_factory is None:
            return []

        session = self._session_factory()
        try:
            query = session.query(AuditLog)

            if resource_type is not None:
                query = query.filter(AuditLog.resource_type == resource_type)
            if resource_id is not None:
                query = query.filter(AuditLog.resource_id == _to_uuid(resource_id))
            if actor_id is not None:
                query = query.filter(AuditLog.actor_id == _to_uuid(actor_id))
            if event_type is not None:
                query = query.filter(AuditLog.event_type == event_type)

            query = query.order_by(AuditLog.created_at.desc()).limit(limit)
            return query.all()
        finally:
            session.close()
