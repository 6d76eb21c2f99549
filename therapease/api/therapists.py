"""
Therapist Registry API Endpoints

Public directory, applications, admin review, and the therapist inbox.
Static paths are declared before ``/{therapist_id}`` so they are not
captured by it.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from therapease.api.deps import get_current_account, require_admin, require_therapist
from therapease.api.envelope import Envelope
from therapease.models.account import CurrentAccount
from therapease.models.base import get_session_factory
from therapease.models.therapist_profile import (
    ApplicationResult,
    ContactRequestCreate,
    ContactRequestRead,
    ContactStatusUpdate,
    TherapistAdminRead,
    TherapistApplication,
    TherapistOverview,
    TherapistPage,
    TherapistPublicRead,
    VerificationDecision,
    VerificationResult,
)
from therapease.services.policies import DEFAULT_PAGE_SIZE
from therapease.services.therapists import TherapistService

router = APIRouter(prefix="/therapists", tags=["therapists"])


# =============================================================================
# Module-level services (for dependency injection)
# =============================================================================

_therapist_service: Optional[TherapistService] = None


def get_therapist_service() -> TherapistService:
    """Get or create therapist service."""
    global _therapist_service
    if _therapist_service is None:
        _therapist_service = TherapistService(session_factory=get_session_factory())
    return _therapist_service


def set_therapist_service(service: Optional[TherapistService]) -> None:
    """Set therapist service (for testing)."""
    global _therapist_service
    _therapist_service = service


# =============================================================================
# Directory
# =============================================================================

@router.get("/", response_model=Envelope[TherapistPage])
def list_therapists(
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    specialization: Optional[str] = Query(None),
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[TherapistPage]:
    """Verified, active therapists; highest rated first."""
    therapists = get_therapist_service().list_verified(
        specialization=specialization,
        page=page,
        page_size=limit,
    )
    return Envelope(data=therapists)


# =============================================================================
# Admin review
# =============================================================================

@router.get("/pending", response_model=Envelope[list[TherapistAdminRead]])
def list_pending(admin: CurrentAccount = Depends(require_admin)) -> Envelope[list[TherapistAdminRead]]:
    """Applications awaiting review, oldest first."""
    return Envelope(data=get_therapist_service().list_pending())


@router.get("/all", response_model=Envelope[TherapistOverview])
def list_all(admin: CurrentAccount = Depends(require_admin)) -> Envelope[TherapistOverview]:
    return Envelope(data=get_therapist_service().list_all())


@router.put("/verify/{therapist_id}", response_model=Envelope[VerificationResult])
def verify_therapist(
    therapist_id: UUID,
    decision: VerificationDecision,
    admin: CurrentAccount = Depends(require_admin),
) -> Envelope[VerificationResult]:
    result = get_therapist_service().verify(admin.id, therapist_id, decision)
    outcome = "approved" if decision.approved else "rejected"
    return Envelope(data=result, message=f"Therapist application {outcome} successfully")


# =============================================================================
# Therapist inbox
# =============================================================================

@router.get("/my-requests", response_model=Envelope[list[ContactRequestRead]])
def list_my_requests(
    therapist: CurrentAccount = Depends(require_therapist),
) -> Envelope[list[ContactRequestRead]]:
    return Envelope(data=get_therapist_service().list_my_requests(therapist.id))


@router.put("/my-requests/{request_id}", response_model=Envelope[ContactRequestRead])
def update_my_request(
    request_id: UUID,
    data: ContactStatusUpdate,
    therapist: CurrentAccount = Depends(require_therapist),
) -> Envelope[ContactRequestRead]:
    request = get_therapist_service().update_request_status(therapist.id, request_id, data.status)
    return Envelope(data=request, message="Contact request updated")


# =============================================================================
# Applications and contact
# =============================================================================

@router.post("/apply", status_code=status.HTTP_201_CREATED, response_model=Envelope[ApplicationResult])
def apply_as_therapist(
    data: TherapistApplication,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[ApplicationResult]:
    result = get_therapist_service().apply(account.id, data)
    return Envelope(
        data=result,
        message="Therapist application submitted successfully. Please wait for admin verification.",
    )


@router.post("/contact/{therapist_id}", status_code=status.HTTP_201_CREATED, response_model=Envelope[ContactRequestRead])
def contact_therapist(
    therapist_id: UUID,
    data: ContactRequestCreate,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[ContactRequestRead]:
    request = get_therapist_service().contact(account.id, therapist_id, data)
    return Envelope(
        data=request,
        message="Contact request sent successfully. The therapist will respond to you directly.",
    )


@router.get("/{therapist_id}", response_model=Envelope[TherapistPublicRead])
def get_therapist(
    therapist_id: UUID,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[TherapistPublicRead]:
    return Envelope(data=get_therapist_service().get_public(therapist_id))
