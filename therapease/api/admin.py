"""
Admin API Endpoints

Account moderation, post moderation, platform analytics, and the audit
trail. Every route requires the admin role.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from therapease.api.deps import get_account_service, require_admin
from therapease.api.envelope import Envelope
from therapease.api.posts import get_community_service
from therapease.models.account import AccountPage, AccountRead, BanRequest, CurrentAccount
from therapease.models.analytics import AnalyticsReport
from therapease.models.audit_log import AuditLogRead
from therapease.models.base import get_session_factory
from therapease.models.post import FlaggedPostPage, PostModerationRead, PostRemoval, RemovalResult
from therapease.services.analytics import AnalyticsService
from therapease.services.audit import AuditService
from therapease.services.policies import DEFAULT_ACCOUNT_PAGE_SIZE, DEFAULT_PAGE_SIZE

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# =============================================================================
# Module-level services (for dependency injection)
# =============================================================================

_analytics_service: Optional[AnalyticsService] = None
_audit_service: Optional[AuditService] = None


def get_analytics_service() -> AnalyticsService:
    """Get or create analytics service."""
    global _analytics_service
    if _analytics_service is None:
        _analytics_service = AnalyticsService(session_factory=get_session_factory())
    return _analytics_service


def set_analytics_service(service: Optional[AnalyticsService]) -> None:
    """Set analytics service (for testing)."""
    global _analytics_service
    _analytics_service = service


def get_audit_service() -> AuditService:
    """Get or create audit service."""
    global _audit_service
    if _audit_service is None:
        _audit_service = AuditService(session_factory=get_session_factory())
    return _audit_service


def set_audit_service(service: Optional[AuditService]) -> None:
    """Set audit service (for testing)."""
    global _audit_service
    _audit_service = service


# =============================================================================
# Accounts
# =============================================================================

@router.get("/users", response_model=Envelope[AccountPage])
def list_users(
    page: int = Query(1),
    limit: int = Query(DEFAULT_ACCOUNT_PAGE_SIZE),
    role: str = Query("all", description="user, therapist, admin, or all"),
    status: str = Query("all", description="banned, active, or all"),
    search: Optional[str] = Query(None, description="Substring of name or email"),
) -> Envelope[AccountPage]:
    accounts = get_account_service().list_accounts(
        role=role,
        status=status,
        search=search,
        page=page,
        page_size=limit,
    )
    return Envelope(data=accounts)


@router.put("/users/{account_id}/ban", response_model=Envelope[AccountRead])
def ban_user(
    account_id: UUID,
    data: BanRequest,
    admin: CurrentAccount = Depends(require_admin),
) -> Envelope[AccountRead]:
    account = get_account_service().ban(admin.id, account_id, data.reason)
    return Envelope(data=account, message="User banned successfully")


@router.put("/users/{account_id}/unban", response_model=Envelope[AccountRead])
def unban_user(
    account_id: UUID,
    admin: CurrentAccount = Depends(require_admin),
) -> Envelope[AccountRead]:
    account = get_account_service().unban(admin.id, account_id)
    return Envelope(data=account, message="User unbanned successfully")


# =============================================================================
# Posts
# =============================================================================

@router.get("/posts/flagged", response_model=Envelope[FlaggedPostPage])
def list_flagged_posts(
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    min_flags: int = Query(0, description="Only posts with more flags than this"),
) -> Envelope[FlaggedPostPage]:
    posts = get_community_service().list_flagged(min_flags=min_flags, page=page, page_size=limit)
    return Envelope(data=posts)


@router.put("/posts/{post_id}/remove", response_model=Envelope[RemovalResult])
def remove_post(
    post_id: UUID,
    data: PostRemoval,
    admin: CurrentAccount = Depends(require_admin),
) -> Envelope[RemovalResult]:
    result = get_community_service().remove_post(admin.id, post_id, data.reason)
    return Envelope(data=result, message="Post removed successfully")


@router.put("/posts/{post_id}/restore", response_model=Envelope[PostModerationRead])
def restore_post(
    post_id: UUID,
    admin: CurrentAccount = Depends(require_admin),
) -> Envelope[PostModerationRead]:
    post = get_community_service().restore_post(admin.id, post_id)
    return Envelope(data=post, message="Post restored successfully")


# =============================================================================
# Reporting
# =============================================================================

@router.get("/analytics", response_model=Envelope[AnalyticsReport])
def analytics() -> Envelope[AnalyticsReport]:
    return Envelope(data=get_analytics_service().report())


@router.get("/audit", response_model=Envelope[list[AuditLogRead]])
def audit_trail(
    resource_type: Optional[str] = Query(None),
    resource_id: Optional[UUID] = Query(None),
    actor_id: Optional[UUID] = Query(None),
    event_type: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
) -> Envelope[list[AuditLogRead]]:
    entries = get_audit_service().get_audit_trail(
        resource_type=resource_type,
        resource_id=resource_id,
        actor_id=actor_id,
        event_type=event_type,
        limit=limit,
    )
    return Envelope(data=[AuditLogRead.model_validate(e) for e in entries])
