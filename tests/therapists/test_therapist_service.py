"""
Therapist Registry Service Tests

Tests verify:
1. Applications start pending; one per account, unique license numbers
2. Verification is one-shot; rejection requires a reason
3. The public directory lists verified, active profiles only
4. Public views drop license and private contact fields
5. Contact requests respect availability, self-contact, and pending rules
6. A verified therapist manages their own inbox
"""

from uuid import uuid4

import pytest
from pydantic import ValidationError as SchemaValidationError

from therapease.models.account import Account, AccountRole
from therapease.models.audit_log import AuditEventType
from therapease.models.therapist_profile import (
    ContactRequestCreate,
    ContactStatus,
    ContactStatusUpdate,
    TherapistApplication,
    TherapistProfile,
    VerificationDecision,
    VerificationStatus,
)
from therapease.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from therapease.services.therapists import TherapistService


@pytest.fixture()
def service(sf, mock_audit):
    return TherapistService(session_factory=sf, audit_service=mock_audit)


@pytest.fixture()
def admin(make_account):
    return make_account(role=AccountRole.ADMIN)


@pytest.fixture()
def verified(make_account, make_profile):
    """A verified therapist: (account_id, profile_id)."""
    account_id = make_account(role=AccountRole.THERAPIST, name="Dr. Meera")
    return account_id, make_profile(account_id, status=VerificationStatus.APPROVED)


def _application(**fields):
    values = dict(
        specialization=[" Anxiety ", "Depression", ""],
        license_number=" KMC-2024-117 ",
        experience=8,
        contact_info={
            "email": "Clinic@Example.com",
            "phone": "9876543210",
            "address": {"street": "12 Lake Rd", "state": "Karnataka", "zip_code": "560001"},
        },
        bio="CBT practitioner",
    )
    values.update(fields)
    return TherapistApplication(**values)


def _contact(message="I would like to book a session", **info):
    return ContactRequestCreate(message=message, contact_info=info or {"email": "me@example.com"})


# =============================================================================
# Applications
# =============================================================================

class TestApply:

    def test_application_is_pending(self, service, make_account, sf):
        account_id = make_account(role=AccountRole.THERAPIST)

        result = service.apply(account_id, _application())

        assert result.verification_status == VerificationStatus.PENDING
        session = sf()
        profile = session.query(TherapistProfile).filter(TherapistProfile.id == result.id).one()
        assert profile.verified is False
        assert profile.specialization == ["Anxiety", "Depression"]
        assert profile.license_number == "KMC-2024-117"
        assert profile.contact_info["email"] == "clinic@example.com"
        session.close()

    def test_applying_does_not_change_role(self, service, make_account, sf):
        account_id = make_account()
        service.apply(account_id, _application())
        session = sf()
        assert session.get(Account, account_id).role == AccountRole.USER
        session.close()

    def test_second_application_conflicts(self, service, make_account):
        account_id = make_account(role=AccountRole.THERAPIST)
        service.apply(account_id, _application())
        with pytest.raises(ConflictError, match="Current status: pending"):
            service.apply(account_id, _application(license_number="OTHER-1"))

    def test_duplicate_license_conflicts(self, service, make_account):
        service.apply(make_account(role=AccountRole.THERAPIST), _application())
        with pytest.raises(ConflictError, match="License number already exists"):
            service.apply(make_account(role=AccountRole.THERAPIST), _application())

    def test_application_needs_specialization(self):
        with pytest.raises(SchemaValidationError):
            _application(specialization=["  "])

    def test_experience_bounds(self):
        with pytest.raises(SchemaValidationError):
            _application(experience=51)


# =============================================================================
# Verification
# =============================================================================

class TestVerify:

    def test_pending_queue_oldest_first(self, service, make_account, make_profile):
        later = make_profile(make_account(role=AccountRole.THERAPIST), created_offset=5)
        earlier = make_profile(make_account(role=AccountRole.THERAPIST))
        make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.APPROVED)

        assert [p.id for p in service.list_pending()] == [earlier, later]

    def test_approve(self, service, admin, make_account, make_profile, sf, mock_audit):
        account_id = make_account(role=AccountRole.THERAPIST, name="Dr. Iyer")
        profile_id = make_profile(account_id)

        result = service.verify(admin, profile_id, VerificationDecision(approved=True))

        assert result.verified is True
        assert result.verification_status == VerificationStatus.APPROVED
        assert result.therapist_name == "Dr. Iyer"

        session = sf()
        profile = session.get(TherapistProfile, profile_id)
        assert profile.verified_by == admin
        assert profile.verified_at is not None
        assert session.get(Account, account_id).is_verified is True
        session.close()

        assert mock_audit.log_moderation.call_args.kwargs["event_type"] == AuditEventType.THERAPIST_VERIFY

    def test_reject_with_reason(self, service, admin, make_account, make_profile, sf):
        profile_id = make_profile(make_account(role=AccountRole.THERAPIST))

        result = service.verify(admin, profile_id, VerificationDecision(approved=False, rejection_reason="Expired"))

        assert result.verified is False
        assert result.verification_status == VerificationStatus.REJECTED
        session = sf()
        assert session.get(TherapistProfile, profile_id).rejection_reason == "Expired"
        session.close()

    def test_reject_without_reason(self, service, admin, make_account, make_profile):
        profile_id = make_profile(make_account(role=AccountRole.THERAPIST))
        with pytest.raises(ValidationError, match="Rejection reason is required"):
            service.verify(admin, profile_id, VerificationDecision(approved=False, rejection_reason="  "))

    @pytest.mark.parametrize("status", [VerificationStatus.APPROVED, VerificationStatus.REJECTED])
    def test_decision_is_final(self, service, admin, make_account, make_profile, status):
        profile_id = make_profile(make_account(role=AccountRole.THERAPIST), status=status)
        with pytest.raises(ConflictError, match="already been"):
            service.verify(admin, profile_id, VerificationDecision(approved=True))

    def test_unknown_application(self, service, admin):
        with pytest.raises(NotFoundError, match="application not found"):
            service.verify(admin, uuid4(), VerificationDecision(approved=True))

    def test_overview_totals(self, service, make_account, make_profile):
        make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.APPROVED)
        make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.REJECTED)
        make_profile(make_account(role=AccountRole.THERAPIST))

        overview = service.list_all()

        assert (overview.total, overview.verified, overview.pending, overview.rejected) == (3, 1, 1, 1)
        assert len(overview.therapists) == 3


# =============================================================================
# Public directory
# =============================================================================

class TestDirectory:

    def test_only_verified_active(self, service, verified, make_account, make_profile):
        make_profile(make_account(role=AccountRole.THERAPIST))
        make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.APPROVED, is_active=False)

        page = service.list_verified()

        assert [p.id for p in page.items] == [verified[1]]

    def test_rating_then_newest(self, service, make_account, make_profile):
        low = make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.APPROVED,
                           rating_average=3.5)
        high = make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.APPROVED,
                            rating_average=4.8)
        newer_low = make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.APPROVED,
                                 rating_average=3.5, created_offset=10)

        assert [p.id for p in service.list_verified().items] == [high, newer_low, low]

    def test_specialization_filter_matches_whole_entry(self, service, make_account, make_profile):
        trauma = make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.APPROVED,
                              specialization=["Trauma", "PTSD"])
        make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.APPROVED,
                     specialization=["Trauma Recovery"])

        assert [p.id for p in service.list_verified(specialization="Trauma").items] == [trauma]

    def test_specialization_filter_non_ascii(self, service, make_account, make_profile):
        profile = make_profile(make_account(role=AccountRole.THERAPIST), status=VerificationStatus.APPROVED,
                               specialization=["Thérapie de couple"])

        assert [p.id for p in service.list_verified(specialization="Thérapie de couple").items] == [profile]

    def test_public_view_hides_private_fields(self, service, verified):
        view = service.get_public(verified[1])
        payload = view.model_dump()

        assert "license_number" not in payload
        assert "verified_by" not in payload
        assert view.contact_info.state == "Kerala"
        assert view.account.name == "Dr. Meera"

    def test_unverified_profile_not_public(self, service, make_account, make_profile):
        profile_id = make_profile(make_account(role=AccountRole.THERAPIST))
        with pytest.raises(NotFoundError, match="not available"):
            service.get_public(profile_id)

    def test_unknown_profile(self, service):
        with pytest.raises(NotFoundError):
            service.get_public(uuid4())


# =============================================================================
# Contact requests
# =============================================================================

class TestContact:

    def test_contact_verified_therapist(self, service, verified, make_account):
        requester = make_account(name="Kiran")

        request = service.contact(requester, verified[1], _contact())

        assert request.status == ContactStatus.PENDING
        assert request.requester.name == "Kiran"
        assert request.contact_info["email"] == "me@example.com"

    def test_pending_request_blocks_second(self, service, verified, make_account):
        requester = make_account()
        service.contact(requester, verified[1], _contact())
        with pytest.raises(ConflictError, match="pending contact request"):
            service.contact(requester, verified[1], _contact("Following up"))

    def test_unverified_therapist_unavailable(self, service, make_account, make_profile):
        profile_id = make_profile(make_account(role=AccountRole.THERAPIST))
        with pytest.raises(ConflictError, match="not available for contact"):
            service.contact(make_account(), profile_id, _contact())

    def test_cannot_contact_self(self, service, verified):
        with pytest.raises(AuthorizationError):
            service.contact(verified[0], verified[1], _contact())

    def test_contact_needs_a_channel(self):
        with pytest.raises(SchemaValidationError, match="email or phone"):
            ContactRequestCreate(message="Hi", contact_info={"preferred_method": "phone"})


class TestInbox:

    def test_inbox_newest_first_and_status_update(self, service, verified, make_account):
        first = service.contact(make_account(), verified[1], _contact("First"))
        second = service.contact(make_account(), verified[1], _contact("Second", phone="9000000000"))

        inbox = service.list_my_requests(verified[0])
        assert [r.id for r in inbox] == [second.id, first.id]

        updated = service.update_request_status(verified[0], first.id, ContactStatus.RESPONDED)
        assert updated.status == ContactStatus.RESPONDED

    def test_answered_request_allows_new_one(self, service, verified, make_account):
        requester = make_account()
        first = service.contact(requester, verified[1], _contact())
        service.update_request_status(verified[0], first.id, ContactStatus.ACKNOWLEDGED)

        again = service.contact(requester, verified[1], _contact("Checking in"))
        assert again.status == ContactStatus.PENDING

    def test_unverified_therapist_has_no_inbox(self, service, make_account, make_profile):
        account_id = make_account(role=AccountRole.THERAPIST)
        make_profile(account_id)
        with pytest.raises(AuthorizationError, match="not verified"):
            service.list_my_requests(account_id)

    def test_account_without_profile(self, service, make_account):
        with pytest.raises(NotFoundError, match="profile not found"):
            service.list_my_requests(make_account(role=AccountRole.THERAPIST))

    def test_other_therapists_request_not_found(self, service, verified, make_account, make_profile):
        request = service.contact(make_account(), verified[1], _contact())
        other = make_account(role=AccountRole.THERAPIST)
        make_profile(other, status=VerificationStatus.APPROVED)

        with pytest.raises(NotFoundError, match="Contact request not found"):
            service.update_request_status(other, request.id, ContactStatus.RESPONDED)

    def test_cannot_move_back_to_pending(self, service, verified):
        with pytest.raises(ValidationError):
            service.update_request_status(verified[0], uuid4(), ContactStatus.PENDING)
        with pytest.raises(SchemaValidationError):
            ContactStatusUpdate(status="pending")
