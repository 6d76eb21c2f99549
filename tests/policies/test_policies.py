"""
Domain Rule Tests

Tests verify the pure rules shared by the services, without a database:
1. Ban and unban eligibility, including check order
2. Session gate for banned and deactivated accounts
3. Anonymous author display and post visibility
4. Flag, reply, delete, remove, and restore guards
5. Therapist verification and contact guards
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from therapease.models.account import AccountRole
from therapease.models.therapist_profile import ContactStatus, VerificationStatus
from therapease.services import policies
from therapease.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


def _account(role=AccountRole.USER, **fields):
    values = dict(id=uuid4(), name="Asha", role=role, is_active=True, is_banned=False)
    values.update(fields)
    return SimpleNamespace(**values)


def _post(**fields):
    values = dict(id=uuid4(), author_id=uuid4(), is_active=True)
    values.update(fields)
    return SimpleNamespace(**values)


def _profile(**fields):
    values = dict(
        account_id=uuid4(),
        verified=True,
        is_active=True,
        verification_status=VerificationStatus.APPROVED,
    )
    values.update(fields)
    return SimpleNamespace(**values)


# =============================================================================
# Pagination
# =============================================================================

class TestPagination:

    @pytest.mark.parametrize("page,size", [(0, 10), (1, 0), (1, 51), (-3, 10)])
    def test_rejects_out_of_range(self, page, size):
        with pytest.raises(ValidationError, match="Invalid pagination parameters"):
            policies.validate_pagination(page, size)

    def test_accepts_bounds(self):
        policies.validate_pagination(1, 1)
        policies.validate_pagination(7, 50)

    def test_account_listing_allows_larger_pages(self):
        policies.validate_pagination(1, 100, policies.MAX_ACCOUNT_PAGE_SIZE)
        with pytest.raises(ValidationError):
            policies.validate_pagination(1, 101, policies.MAX_ACCOUNT_PAGE_SIZE)


# =============================================================================
# Accounts
# =============================================================================

class TestBanRules:

    def test_cannot_ban_admin(self):
        with pytest.raises(AuthorizationError, match="Cannot ban admin users"):
            policies.ensure_can_ban(uuid4(), _account(AccountRole.ADMIN))

    def test_admin_banning_self_hits_admin_rule_first(self):
        admin = _account(AccountRole.ADMIN)
        with pytest.raises(AuthorizationError, match="Cannot ban admin users"):
            policies.ensure_can_ban(admin.id, admin)

    def test_cannot_ban_self(self):
        target = _account(AccountRole.THERAPIST)
        with pytest.raises(AuthorizationError, match="Cannot ban yourself"):
            policies.ensure_can_ban(target.id, target)

    def test_cannot_ban_twice(self):
        with pytest.raises(ConflictError, match="already banned"):
            policies.ensure_can_ban(uuid4(), _account(is_banned=True))

    def test_ban_allowed_for_regular_user(self):
        policies.ensure_can_ban(uuid4(), _account())

    def test_unban_requires_ban(self):
        with pytest.raises(ConflictError, match="User is not banned"):
            policies.ensure_can_unban(_account())
        policies.ensure_can_unban(_account(is_banned=True))


class TestSessionGate:

    def test_banned_account_rejected(self):
        with pytest.raises(AuthorizationError, match="banned"):
            policies.ensure_account_usable(_account(is_banned=True, is_active=False))

    def test_inactive_account_rejected(self):
        with pytest.raises(AuthorizationError, match="deactivated"):
            policies.ensure_account_usable(_account(is_active=False))

    def test_role_check(self):
        policies.ensure_role(_account(AccountRole.ADMIN), AccountRole.ADMIN)
        with pytest.raises(AuthorizationError, match="Insufficient permissions"):
            policies.ensure_role(_account(AccountRole.USER), AccountRole.ADMIN, AccountRole.THERAPIST)

    def test_role_check_accepts_plain_strings(self):
        policies.ensure_role(SimpleNamespace(role="therapist"), AccountRole.THERAPIST)


# =============================================================================
# Community board
# =============================================================================

class TestAuthorDisplay:

    def test_anonymous_hides_name_and_role(self):
        author = _account(AccountRole.THERAPIST, name="Dr. Rao")
        view = policies.display_author(author, anonymous=True)
        assert view.name == "Anonymous"
        assert view.role == AccountRole.USER
        assert view.id == author.id

    def test_named_author(self):
        author = _account(AccountRole.THERAPIST, name="Dr. Rao")
        view = policies.display_author(author, anonymous=False)
        assert view.name == "Dr. Rao"
        assert view.role == AccountRole.THERAPIST


class TestPostGuards:

    def test_inactive_post_visible_to_author_and_admin_only(self):
        post = _post(is_active=False)
        assert policies.can_view_post(post, post.author_id, AccountRole.USER)
        assert policies.can_view_post(post, uuid4(), AccountRole.ADMIN)
        assert not policies.can_view_post(post, uuid4(), AccountRole.USER)

    def test_reply_requires_active_post(self):
        with pytest.raises(ConflictError, match="Cannot reply to inactive post"):
            policies.ensure_can_reply(_post(is_active=False))

    def test_flag_once_per_user(self):
        user_id = uuid4()
        with pytest.raises(ConflictError, match="already flagged"):
            policies.ensure_can_flag(user_id, [uuid4(), user_id])
        policies.ensure_can_flag(user_id, [uuid4()])

    def test_delete_by_author_or_admin(self):
        post = _post()
        policies.ensure_can_delete_post(post, post.author_id, AccountRole.USER)
        policies.ensure_can_delete_post(post, uuid4(), AccountRole.ADMIN)
        with pytest.raises(AuthorizationError, match="Not authorized to delete this post"):
            policies.ensure_can_delete_post(post, uuid4(), AccountRole.THERAPIST)

    def test_remove_and_restore_states(self):
        with pytest.raises(ConflictError, match="already removed"):
            policies.ensure_removable(_post(is_active=False))
        with pytest.raises(ConflictError, match="not removed"):
            policies.ensure_restorable(_post())


class TestJournalOwnership:

    def test_owner_only(self):
        owner_id = uuid4()
        journal = SimpleNamespace(owner_id=owner_id)
        policies.ensure_journal_owner(journal, owner_id)
        with pytest.raises(AuthorizationError):
            policies.ensure_journal_owner(journal, uuid4())


# =============================================================================
# Therapist registry
# =============================================================================

class TestVerificationRules:

    @pytest.mark.parametrize("status", [VerificationStatus.APPROVED, VerificationStatus.REJECTED])
    def test_decided_applications_are_final(self, status):
        with pytest.raises(ConflictError, match=f"already been {status.value}"):
            policies.ensure_pending(_profile(verification_status=status))

    def test_pending_application_accepted(self):
        policies.ensure_pending(_profile(verification_status=VerificationStatus.PENDING))

    def test_rejection_needs_reason(self):
        with pytest.raises(ValidationError, match="Rejection reason is required"):
            policies.ensure_decision_complete(False, None)
        policies.ensure_decision_complete(False, "License could not be verified")
        policies.ensure_decision_complete(True, None)


class TestContactRules:

    def test_unverified_therapist_unavailable(self):
        with pytest.raises(ConflictError, match="not available for contact"):
            policies.ensure_contactable(_profile(verified=False), uuid4(), [])

    def test_inactive_therapist_unavailable(self):
        with pytest.raises(ConflictError, match="not available for contact"):
            policies.ensure_contactable(_profile(is_active=False), uuid4(), [])

    def test_cannot_contact_self(self):
        profile = _profile()
        with pytest.raises(AuthorizationError, match="cannot contact yourself"):
            policies.ensure_contactable(profile, profile.account_id, [])

    def test_one_pending_request_per_requester(self):
        requester_id = uuid4()
        pending = SimpleNamespace(requester_id=requester_id, status=ContactStatus.PENDING)
        with pytest.raises(ConflictError, match="pending contact request"):
            policies.ensure_contactable(_profile(), requester_id, [pending])

    def test_answered_request_does_not_block(self):
        requester_id = uuid4()
        answered = SimpleNamespace(requester_id=requester_id, status=ContactStatus.RESPONDED)
        policies.ensure_contactable(_profile(), requester_id, [answered])

    def test_public_listing_requires_verified_active(self):
        with pytest.raises(NotFoundError, match="Therapist not available"):
            policies.ensure_publicly_listed(_profile(verified=False))
        policies.ensure_publicly_listed(_profile())

    def test_public_contact_info_drops_private_fields(self):
        info = policies.public_contact_info({
            "email": "dr@example.com",
            "phone": "9876543210",
            "website": "https://example.com",
            "address": {"street": "1 Main Rd", "state": "Goa", "zip_code": "403001"},
        })
        assert info == {"email": "dr@example.com", "phone": "9876543210", "state": "Goa"}

    def test_public_contact_info_handles_missing(self):
        assert policies.public_contact_info(None) == {"email": None, "phone": None, "state": None}
