"""
Therapist Registry Service

Applications, admin verification, the public directory, and the contact
request inbox. Verification is a one-shot transition out of ``pending``;
approved and rejected profiles cannot be decided again.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog
from sqlalchemy import String, cast
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from therapease.models.account import AccountSummary
from therapease.models.audit_log import AuditEventType
from therapease.models.base import utcnow
from therapease.models.common import Pagination, page_offset
from therapease.models.therapist_profile import (
    ApplicationResult,
    ContactRequest,
    ContactRequestCreate,
    ContactRequestRead,
    ContactStatus,
    PublicContactInfo,
    TherapistAdminRead,
    TherapistApplication,
    TherapistOverview,
    TherapistOverviewItem,
    TherapistPage,
    TherapistProfile,
    TherapistPublicRead,
    VerificationDecision,
    VerificationResult,
    VerificationStatus,
)
from therapease.services import policies
from therapease.services.audit import AuditService
from therapease.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

_PROFILE_LOAD_OPTIONS = (selectinload(TherapistProfile.account),)


def to_public_read(profile: TherapistProfile) -> TherapistPublicRead:
    """Directory view without license, reviewer data, or the inbox."""
    return TherapistPublicRead(
        id=profile.id,
        account=AccountSummary.model_validate(profile.account),
        verified=profile.verified,
        verification_status=profile.verification_status,
        verified_at=profile.verified_at,
        specialization=profile.specialization or [],
        experience=profile.experience,
        education=profile.education,
        certifications=profile.certifications or [],
        contact_info=PublicContactInfo(**policies.public_contact_info(profile.contact_info)),
        practice_info=profile.practice_info,
        rating_average=profile.rating_average,
        rating_count=profile.rating_count,
        bio=profile.bio,
        profile_image=profile.profile_image,
        is_active=profile.is_active,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


def to_admin_read(profile: TherapistProfile) -> TherapistAdminRead:
    return TherapistAdminRead.model_validate({
        **{c.key: getattr(profile, c.key) for c in TherapistProfile.__table__.columns},
        "account": AccountSummary.model_validate(profile.account),
    })


def to_request_read(request: ContactRequest) -> ContactRequestRead:
    return ContactRequestRead(
        id=request.id,
        requester=AccountSummary.model_validate(request.requester),
        message=request.message,
        contact_info=request.contact_info or {},
        status=request.status,
        created_at=request.created_at,
    )


class TherapistService:
    """
    Manages therapist profiles and their contact requests.

    Args:
        session_factory: SQLAlchemy session factory.
        audit_service: Optional audit service for verification decisions.
    """

    def __init__(self, session_factory=None, audit_service: Optional[AuditService] = None):
        self._session_factory = session_factory
        self._audit = audit_service or AuditService(session_factory=session_factory)

    def _get_session(self):
        if self._session_factory is None:
            raise ServiceError("Database session not configured")
        return self._session_factory()

    @staticmethod
    def _load(db, therapist_id: UUID, for_update: bool = False, message: str = "Therapist not found"):
        query = db.query(TherapistProfile).options(*_PROFILE_LOAD_OPTIONS).filter(TherapistProfile.id == therapist_id)
        if for_update:
            query = query.with_for_update()
        profile = query.first()
        if profile is None:
            raise NotFoundError(message)
        return profile

    @staticmethod
    def _own_profile(db, account_id: UUID) -> TherapistProfile:
        profile = db.query(TherapistProfile).filter(TherapistProfile.account_id == account_id).first()
        if profile is None:
            raise NotFoundError("Therapist profile not found")
        return profile

    # =========================================================================
    # Applications and review
    # =========================================================================

    def apply(self, account_id: UUID, data: TherapistApplication) -> ApplicationResult:
        """Submit a pending application for the calling account.

        Raises:
            ConflictError: The account already has a profile, or the license
                number is taken.
        """
        db = self._get_session()
        try:
            existing = db.query(TherapistProfile).filter(TherapistProfile.account_id == account_id).first()
            if existing is not None:
                raise ConflictError(
                    "You already have a therapist application. "
                    f"Current status: {existing.verification_status.value}"
                )

            license_taken = (
                db.query(TherapistProfile.id)
                .filter(TherapistProfile.license_number == data.license_number)
                .first()
            )
            if license_taken is not None:
                raise ConflictError("License number already exists. Please use a unique license number.")

            now = utcnow()
            profile = TherapistProfile(
                id=uuid4(),
                account_id=account_id,
                specialization=data.specialization,
                license_number=data.license_number,
                experience=data.experience,
                education=data.education.model_dump() if data.education else None,
                certifications=[c.model_dump() for c in data.certifications],
                contact_info=data.contact_info.model_dump(mode="json", exclude_none=True),
                practice_info=data.practice_info.model_dump(mode="json") if data.practice_info else None,
                bio=data.bio or None,
                profile_image=data.profile_image,
                verified=False,
                verification_status=VerificationStatus.PENDING,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            db.add(profile)
            db.commit()

            logger.info("therapist_applied", therapist_id=str(profile.id), account_id=str(account_id))
            return ApplicationResult(id=profile.id, verification_status=VerificationStatus.PENDING)

        except ServiceError:
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            raise ConflictError("License number already exists. Please use a unique license number.") from e
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to submit therapist application: {e}") from e
        finally:
            db.close()

    def list_pending(self) -> list[TherapistAdminRead]:
        """Applications awaiting review, oldest first."""
        db = self._get_session()
        try:
            profiles = (
                db.query(TherapistProfile)
                .options(*_PROFILE_LOAD_OPTIONS)
                .filter(
                    TherapistProfile.verification_status == VerificationStatus.PENDING,
                    TherapistProfile.verified.is_(False),
                )
                .order_by(TherapistProfile.created_at.asc())
                .all()
            )
            return [to_admin_read(p) for p in profiles]
        finally:
            db.close()

    def list_all(self) -> TherapistOverview:
        """Every profile with totals per review state, newest first."""
        db = self._get_session()
        try:
            profiles = (
                db.query(TherapistProfile)
                .options(*_PROFILE_LOAD_OPTIONS)
                .order_by(TherapistProfile.created_at.desc())
                .all()
            )
            return TherapistOverview(
                total=len(profiles),
                verified=sum(1 for p in profiles if p.verified),
                pending=sum(1 for p in profiles if p.verification_status == VerificationStatus.PENDING),
                rejected=sum(1 for p in profiles if p.verification_status == VerificationStatus.REJECTED),
                therapists=[
                    TherapistOverviewItem(
                        id=p.id,
                        name=p.account.name if p.account else None,
                        email=p.account.email if p.account else None,
                        verified=p.verified,
                        verification_status=p.verification_status,
                        is_active=p.is_active,
                        specialization=p.specialization or [],
                        created_at=p.created_at,
                    )
                    for p in profiles
                ],
            )
        finally:
            db.close()

    def verify(self, admin_id: UUID, therapist_id: UUID, decision: VerificationDecision) -> VerificationResult:
        """Approve or reject a pending application.

        Raises:
            ValidationError: Rejection without a reason.
            NotFoundError: Unknown profile.
            ConflictError: Profile already approved or rejected.
        """
        policies.ensure_decision_complete(decision.approved, decision.rejection_reason)

        db = self._get_session()
        try:
            profile = self._load(db, therapist_id, for_update=True, message="Therapist application not found")
            policies.ensure_pending(profile)

            now = utcnow()
            profile.verified = decision.approved
            profile.verification_status = (
                VerificationStatus.APPROVED if decision.approved else VerificationStatus.REJECTED
            )
            profile.verified_by = admin_id
            profile.verified_at = now
            if not decision.approved:
                profile.rejection_reason = decision.rejection_reason
            profile.updated_at = now

            if decision.approved and profile.account is not None:
                profile.account.is_verified = True

            self._audit.log_moderation(
                event_type=AuditEventType.THERAPIST_VERIFY,
                actor_id=admin_id,
                resource_type="therapist_profile",
                resource_id=therapist_id,
                details={"approved": decision.approved, "rejection_reason": decision.rejection_reason},
                session=db,
            )
            db.commit()

            result = VerificationResult(
                therapist_id=profile.id,
                therapist_name=profile.account.name if profile.account else "Unknown",
                verification_status=profile.verification_status,
                verified=profile.verified,
            )

            logger.info(
                "therapist_verified",
                therapist_id=str(therapist_id),
                status=result.verification_status.value,
                verified_by=str(admin_id),
            )
            return result

        except ServiceError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to verify therapist: {e}") from e
        finally:
            db.close()

    # =========================================================================
    # Public directory
    # =========================================================================

    def list_verified(
        self,
        specialization: Optional[str] = None,
        page: int = 1,
        page_size: int = policies.DEFAULT_PAGE_SIZE,
    ) -> TherapistPage:
        """Verified, active profiles; highest rated first, then newest."""
        policies.validate_pagination(page, page_size)

        db = self._get_session()
        try:
            query = (
                db.query(TherapistProfile)
                .options(*_PROFILE_LOAD_OPTIONS)
                .filter(TherapistProfile.verified.is_(True), TherapistProfile.is_active.is_(True))
            )
            if specialization and specialization.strip():
                # Matches a whole element of the JSON list
                token = specialization.strip().replace('"', "")
                query = query.filter(cast(TherapistProfile.specialization, String).like(f'%"{token}"%'))

            total = query.count()
            profiles = (
                query.order_by(TherapistProfile.rating_average.desc(), TherapistProfile.created_at.desc())
                .offset(page_offset(page, page_size))
                .limit(page_size)
                .all()
            )
            return TherapistPage(
                items=[to_public_read(p) for p in profiles],
                pagination=Pagination.build(page, page_size, total),
            )
        finally:
            db.close()

    def get_public(self, therapist_id: UUID) -> TherapistPublicRead:
        db = self._get_session()
        try:
            profile = self._load(db, therapist_id)
            policies.ensure_publicly_listed(profile)
            return to_public_read(profile)
        finally:
            db.close()

    # =========================================================================
    # Contact requests
    # =========================================================================

    def contact(self, requester_id: UUID, therapist_id: UUID, data: ContactRequestCreate) -> ContactRequestRead:
        """Queue a contact request for a verified therapist.

        Raises:
            NotFoundError: Unknown profile.
            ConflictError: Therapist unavailable, or a pending request exists.
            AuthorizationError: Requester owns the profile.
        """
        db = self._get_session()
        try:
            profile = self._load(db, therapist_id, for_update=True)
            pending = (
                db.query(ContactRequest)
                .filter(
                    ContactRequest.therapist_id == therapist_id,
                    ContactRequest.requester_id == requester_id,
                    ContactRequest.status == ContactStatus.PENDING,
                )
                .all()
            )
            policies.ensure_contactable(profile, requester_id, pending)

            request = ContactRequest(
                id=uuid4(),
                therapist_id=therapist_id,
                requester_id=requester_id,
                message=data.message,
                contact_info=data.contact_info.model_dump(mode="json", exclude_none=True),
                status=ContactStatus.PENDING,
                created_at=utcnow(),
            )
            db.add(request)
            db.commit()

            logger.info("therapist_contacted", therapist_id=str(therapist_id), request_id=str(request.id))
            request = (
                db.query(ContactRequest)
                .options(selectinload(ContactRequest.requester))
                .filter(ContactRequest.id == request.id)
                .one()
            )
            return to_request_read(request)

        except ServiceError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to send contact request: {e}") from e
        finally:
            db.close()

    def list_my_requests(self, account_id: UUID) -> list[ContactRequestRead]:
        """Inbox of the calling therapist, newest first.

        Raises:
            NotFoundError: Caller has no profile.
            AuthorizationError: Profile not verified yet.
        """
        db = self._get_session()
        try:
            profile = self._own_profile(db, account_id)
            if not profile.verified:
                raise AuthorizationError("Your therapist profile is not verified yet")

            requests = (
                db.query(ContactRequest)
                .options(selectinload(ContactRequest.requester))
                .filter(ContactRequest.therapist_id == profile.id)
                .order_by(ContactRequest.created_at.desc())
                .all()
            )
            return [to_request_read(r) for r in requests]
        finally:
            db.close()

    def update_request_status(self, account_id: UUID, request_id: UUID, status: ContactStatus) -> ContactRequestRead:
        """Move one of the caller's requests to acknowledged or responded."""
        if status == ContactStatus.PENDING:
            raise ValidationError("Status must be acknowledged or responded")

        db = self._get_session()
        try:
            profile = self._own_profile(db, account_id)
            request = (
                db.query(ContactRequest)
                .options(selectinload(ContactRequest.requester))
                .filter(ContactRequest.id == request_id, ContactRequest.therapist_id == profile.id)
                .first()
            )
            if request is None:
                raise NotFoundError("Contact request not found")

            request.status = status
            db.commit()
            db.refresh(request)

            logger.info("contact_request_updated", request_id=str(request_id), status=status.value)
            return to_request_read(request)

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to update contact request: {e}") from e
        finally:
            db.close()
