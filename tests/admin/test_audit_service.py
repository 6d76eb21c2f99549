"""
Audit Service Tests

Verifies audit entries are persisted with the right event type and action
and that the audit trail can be filtered.
"""

from uuid import uuid4

import pytest

from therapease.models.audit_log import AuditAction, AuditEventType, AuditLog, AuditLogRead
from therapease.services.audit import AuditService


@pytest.fixture()
def audit(sf):
    return AuditService(session_factory=sf)


class TestAuditEntries:

    def test_moderation_entry_persisted(self, audit, sf):
        actor, post_id = uuid4(), uuid4()

        audit.log_moderation(
            event_type=AuditEventType.POST_REMOVE,
            actor_id=actor,
            resource_type="post",
            resource_id=post_id,
            details={"reason": "Spam"},
        )

        session = sf()
        entry = session.query(AuditLog).one()
        assert entry.event_type == AuditEventType.POST_REMOVE
        assert entry.action == AuditAction.UPDATE
        assert entry.actor_id == actor
        assert entry.resource_id == post_id
        assert entry.details == {"reason": "Spam"}
        session.close()

    def test_author_delete_is_a_delete_action(self, audit):
        entry = audit.log_moderation(
            event_type=AuditEventType.POST_DELETE,
            actor_id=uuid4(),
            resource_type="post",
            resource_id=uuid4(),
        )
        assert entry.action == AuditAction.DELETE

    def test_string_ids_accepted(self, audit):
        actor = uuid4()
        entry = audit.log_moderation(
            event_type=AuditEventType.ACCOUNT_BAN,
            actor_id=str(actor),
            resource_type="account",
            resource_id=str(uuid4()),
        )
        assert entry.actor_id == actor

    def test_failed_login_without_actor(self, audit):
        entry = audit.log_auth_event(None, success=False, details={"email": "x@example.com"}, ip_address="10.0.0.1")
        assert entry.event_type == AuditEventType.LOGIN_FAILURE
        assert entry.action == AuditAction.LOGIN
        assert entry.actor_id is None
        assert entry.ip_address == "10.0.0.1"

    def test_without_session_factory_nothing_persisted(self):
        audit = AuditService()
        entry = audit.log_auth_event(uuid4(), success=True)
        assert entry.event_type == AuditEventType.LOGIN_SUCCESS
        assert audit.get_audit_trail() == []

    def test_caller_session_controls_the_write(self, audit, sf):
        session = sf()
        audit.log_moderation(AuditEventType.ACCOUNT_BAN, uuid4(), "account", uuid4(), session=session)
        session.rollback()
        assert session.query(AuditLog).count() == 0

        audit.log_moderation(AuditEventType.ACCOUNT_UNBAN, uuid4(), "account", uuid4(), session=session)
        session.commit()
        session.close()

        assert [e.event_type for e in audit.get_audit_trail()] == [AuditEventType.ACCOUNT_UNBAN]


class TestAuditTrail:

    def test_filters(self, audit):
        admin, post_id = uuid4(), uuid4()
        audit.log_moderation(AuditEventType.POST_REMOVE, admin, "post", post_id)
        audit.log_moderation(AuditEventType.POST_RESTORE, admin, "post", post_id)
        audit.log_moderation(AuditEventType.ACCOUNT_BAN, admin, "account", uuid4())
        audit.log_auth_event(uuid4(), success=True)

        assert len(audit.get_audit_trail(resource_type="post", resource_id=post_id)) == 2
        assert len(audit.get_audit_trail(actor_id=admin)) == 3
        assert len(audit.get_audit_trail(event_type=AuditEventType.ACCOUNT_BAN)) == 1
        assert len(audit.get_audit_trail(limit=2)) == 2

    def test_newest_first_and_readable(self, audit):
        post_id = uuid4()
        audit.log_moderation(AuditEventType.POST_REMOVE, uuid4(), "post", post_id)
        audit.log_moderation(AuditEventType.POST_RESTORE, uuid4(), "post", post_id)

        trail = [AuditLogRead.model_validate(e) for e in audit.get_audit_trail(resource_id=post_id)]

        assert [e.event_type for e in trail] == [AuditEventType.POST_RESTORE, AuditEventType.POST_REMOVE]
