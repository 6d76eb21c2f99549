"""
Community Board API Endpoints

- List active posts (admins may include removed ones)
- List the caller's own posts
- Create, reply to, flag, and delete posts
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status

from therapease.api.deps import get_current_account
from therapease.api.envelope import Envelope
from therapease.models.account import CurrentAccount
from therapease.models.base import get_session_factory
from therapease.models.post import FlagCreate, FlagResult, PostCreate, PostPage, PostRead, ReplyCreate
from therapease.services.community import CommunityService
from therapease.services.policies import DEFAULT_PAGE_SIZE

router = APIRouter(prefix="/posts", tags=["posts"])


# =============================================================================
# Module-level services (for dependency injection)
# =============================================================================

_community_service: Optional[CommunityService] = None


def get_community_service() -> CommunityService:
    """Get or create community service."""
    global _community_service
    if _community_service is None:
        _community_service = CommunityService(session_factory=get_session_factory())
    return _community_service


def set_community_service(service: Optional[CommunityService]) -> None:
    """Set community service (for testing)."""
    global _community_service
    _community_service = service


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/getAll", response_model=Envelope[PostPage])
def list_posts(
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    include_inactive: bool = Query(False),
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[PostPage]:
    """Newest first; ``include_inactive`` only takes effect for admins."""
    posts = get_community_service().list_posts(
        viewer_role=account.role,
        page=page,
        page_size=limit,
        include_inactive=include_inactive,
    )
    return Envelope(data=posts)


@router.get("/my-posts", response_model=Envelope[PostPage])
def list_my_posts(
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[PostPage]:
    return Envelope(data=get_community_service().list_my_posts(account.id, page=page, page_size=limit))


@router.post("/create", status_code=status.HTTP_201_CREATED, response_model=Envelope[PostRead])
def create_post(
    data: PostCreate,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[PostRead]:
    post = get_community_service().create_post(account.id, data)
    return Envelope(data=post, message="Post created successfully")


@router.post("/reply/{post_id}", status_code=status.HTTP_201_CREATED, response_model=Envelope[PostRead])
def reply_to_post(
    post_id: UUID,
    data: ReplyCreate,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[PostRead]:
    post = get_community_service().reply(account.id, post_id, data)
    return Envelope(data=post, message="Reply added successfully")


@router.post("/flag/{post_id}", response_model=Envelope[FlagResult])
def flag_post(
    post_id: UUID,
    data: Optional[FlagCreate] = Body(None),
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[FlagResult]:
    result = get_community_service().flag(account.id, post_id, data)
    return Envelope(data=result, message="Post flagged successfully")


@router.get("/{post_id}", response_model=Envelope[PostRead])
def get_post(
    post_id: UUID,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[PostRead]:
    return Envelope(data=get_community_service().get_post(account.id, account.role, post_id))


@router.delete("/{post_id}", response_model=Envelope[None])
def delete_post(
    post_id: UUID,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[None]:
    """Soft delete; the real author or an admin only."""
    get_community_service().delete_post(account.id, account.role, post_id)
    return Envelope(message="Post deleted successfully")
