"""
Domain rules shared by the services.

Plain functions over records with the relevant attributes (ORM rows in the
services, simple namespaces in tests). Each ``ensure_*`` raises the matching
ServiceError subclass; nothing here touches a session.
"""

from typing import Any, Iterable, Optional
from uuid import UUID

from therapease.models.account import AccountRole
from therapease.models.post import AuthorView
from therapease.models.therapist_profile import ContactStatus, VerificationStatus
from therapease.services.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

ANONYMOUS_NAME = "Anonymous"

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50
DEFAULT_ACCOUNT_PAGE_SIZE = 20
MAX_ACCOUNT_PAGE_SIZE = 100


def _role(value: Any) -> str:
    return value.value if isinstance(value, AccountRole) else str(value)


def is_admin(role: Any) -> bool:
    return _role(role) == AccountRole.ADMIN.value


# =============================================================================
# Pagination
# =============================================================================

def validate_pagination(page: int, page_size: int, max_page_size: int = MAX_PAGE_SIZE) -> None:
    """Reject page < 1 and page sizes outside 1..max_page_size."""
    if page < 1 or page_size < 1 or page_size > max_page_size:
        raise ValidationError("Invalid pagination parameters")


# =============================================================================
# Accounts
# =============================================================================

def ensure_can_ban(actor_id: UUID, target: Any) -> None:
    """An admin may ban any non-admin account other than their own."""
    if is_admin(target.role):
        raise AuthorizationError("Cannot ban admin users")
    if target.id == actor_id:
        raise AuthorizationError("Cannot ban yourself")
    if target.is_banned:
        raise ConflictError("User is already banned")


def ensure_can_unban(target: Any) -> None:
    if not target.is_banned:
        raise ConflictError("User is not banned")


def ensure_account_usable(account: Any) -> None:
    """Gate for an authenticated session: banned and inactive accounts stop here."""
    if account.is_banned:
        raise AuthorizationError("Your account has been banned. Please contact support.")
    if not account.is_active:
        raise AuthorizationError("Account is deactivated. Please contact support.")


def ensure_role(account: Any, *roles: AccountRole) -> None:
    allowed = {r.value for r in roles}
    if _role(account.role) not in allowed:
        raise AuthorizationError("Access denied. Insufficient permissions.")


# =============================================================================
# Community board
# =============================================================================

def display_author(author: Any, anonymous: bool) -> AuthorView:
    """Author as viewers see it; anonymous content keeps only the id."""
    if anonymous:
        return AuthorView(id=author.id, name=ANONYMOUS_NAME, role=AccountRole.USER)
    return AuthorView(id=author.id, name=author.name, role=_role(author.role))


def can_view_post(post: Any, viewer_id: UUID, viewer_role: Any) -> bool:
    return post.is_active or is_admin(viewer_role) or post.author_id == viewer_id


def ensure_can_reply(post: Any) -> None:
    if not post.is_active:
        raise ConflictError("Cannot reply to inactive post")


def ensure_can_flag(user_id: UUID, flagger_ids: Iterable[UUID]) -> None:
    """One flag per user; removed posts stay flaggable."""
    if user_id in set(flagger_ids):
        raise ConflictError("You have already flagged this post")


def ensure_can_delete_post(post: Any, actor_id: UUID, actor_role: Any) -> None:
    """Author or admin; compared against the stored author, never the displayed one."""
    if post.author_id != actor_id and not is_admin(actor_role):
        raise AuthorizationError("Not authorized to delete this post")


def ensure_removable(post: Any) -> None:
    if not post.is_active:
        raise ConflictError("Post is already removed")


def ensure_restorable(post: Any) -> None:
    if post.is_active:
        raise ConflictError("Post is not removed")


# =============================================================================
# Journals
# =============================================================================

def ensure_journal_owner(journal: Any, actor_id: UUID) -> None:
    if journal.owner_id != actor_id:
        raise AuthorizationError("Not authorized to access this journal entry")


# =============================================================================
# Therapist registry
# =============================================================================

def ensure_pending(profile: Any) -> None:
    """Verification decisions apply to pending applications only."""
    status = profile.verification_status
    status = status.value if isinstance(status, VerificationStatus) else str(status)
    if status != VerificationStatus.PENDING.value:
        raise ConflictError(f"Application has already been {status}")


def ensure_decision_complete(approved: bool, rejection_reason: Optional[str]) -> None:
    if not approved and not rejection_reason:
        raise ValidationError("Rejection reason is required when rejecting an application")


def ensure_contactable(profile: Any, requester_id: UUID, requests: Iterable[Any]) -> None:
    """A verified, active therapist other than the requester with no open request from them."""
    if not profile.verified or not profile.is_active:
        raise ConflictError("This therapist is not available for contact")
    if profile.account_id == requester_id:
        raise AuthorizationError("You cannot contact yourself")
    for request in requests:
        status = request.status.value if isinstance(request.status, ContactStatus) else str(request.status)
        if request.requester_id == requester_id and status == ContactStatus.PENDING.value:
            raise ConflictError("You already have a pending contact request with this therapist")


def ensure_publicly_listed(profile: Any) -> None:
    if not profile.verified or not profile.is_active:
        raise NotFoundError("Therapist not available")


def public_contact_info(contact_info: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Email, phone, and state only."""
    contact_info = contact_info or {}
    address = contact_info.get("address") or {}
    return {
        "email": contact_info.get("email"),
        "phone": contact_info.get("phone"),
        "state": address.get("state"),
    }
