"""
Community Board Service

Posts, replies, and user flags, plus the admin moderation path. Handles:
- Anonymous display of authors while keeping the real author for checks
- Soft delete by author or admin, removal and restore by admin
- Flag and reply counters kept equal to the child tables

Flags and replies lock the post row, insert the child row, and recompute
the counter from the child table inside one transaction. The unique
(post_id, user_id) constraint on flags rejects a concurrent duplicate.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from therapease.models.account import AccountSummary
from therapease.models.audit_log import AuditEventType
from therapease.models.base import utcnow
from therapease.models.common import Pagination, page_offset
from therapease.models.post import (
    FlagCreate,
    FlaggedPostPage,
    FlagRead,
    FlagResult,
    Post,
    PostCreate,
    PostFlag,
    PostModerationRead,
    PostPage,
    PostRead,
    PostReply,
    RemovalResult,
    ReplyCreate,
    ReplyRead,
)
from therapease.services import policies
from therapease.services.audit import AuditService
from therapease.services.errors import ConflictError, NotFoundError, ServiceError, ValidationError

logger = structlog.get_logger(__name__)

_POST_LOAD_OPTIONS = (
    selectinload(Post.author),
    selectinload(Post.replies).selectinload(PostReply.author),
)
_MODERATION_LOAD_OPTIONS = _POST_LOAD_OPTIONS + (
    selectinload(Post.flags).selectinload(PostFlag.user),
)


def _reply_read(reply: PostReply) -> ReplyRead:
    return ReplyRead(
        id=reply.id,
        content=reply.content,
        author=policies.display_author(reply.author, reply.anonymous),
        anonymous=reply.anonymous,
        created_at=reply.created_at,
    )


def _post_fields(post: Post) -> dict:
    return {
        "id": post.id,
        "content": post.content,
        "author": policies.display_author(post.author, post.anonymous),
        "anonymous": post.anonymous,
        "replies": [_reply_read(r) for r in post.replies],
        "flag_count": post.flag_count,
        "reply_count": post.reply_count,
        "is_active": post.is_active,
        "created_at": post.created_at,
        "updated_at": post.updated_at,
    }


def to_post_read(post: Post) -> PostRead:
    return PostRead(**_post_fields(post))


def to_moderation_read(post: Post) -> PostModerationRead:
    return PostModerationRead(
        **_post_fields(post),
        flags=[
            FlagRead(
                user=AccountSummary.model_validate(flag.user),
                reason=flag.reason,
                flagged_at=flag.flagged_at,
            )
            for flag in post.flags
        ],
        removed_by=post.removed_by,
        removed_at=post.removed_at,
        removal_reason=post.removal_reason,
    )


class CommunityService:
    """
    Manages the community board.

    Args:
        session_factory: SQLAlchemy session factory.
        audit_service: Optional audit service for moderation events.
    """

    def __init__(self, session_factory=None, audit_service: Optional[AuditService] = None):
        self._session_factory = session_factory
        self._audit = audit_service or AuditService(session_factory=session_factory)

    def _get_session(self):
        if self._session_factory is None:
            raise ServiceError("Database session not configured")
        return self._session_factory()

    @staticmethod
    def _load(db, post_id: UUID, options=_POST_LOAD_OPTIONS, for_update: bool = False) -> Post:
        query = db.query(Post).options(*options).filter(Post.id == post_id)
        if for_update:
            query = query.with_for_update()
        post = query.first()
        if post is None:
            raise NotFoundError("Post not found")
        return post

    @staticmethod
    def _page(query, page: int, page_size: int, serialize, page_cls):
        total = query.order_by(None).count()
        rows = query.offset(page_offset(page, page_size)).limit(page_size).all()
        return page_cls(items=[serialize(p) for p in rows], pagination=Pagination.build(page, page_size, total))

    # =========================================================================
    # Posts
    # =========================================================================

    def create_post(self, author_id: UUID, data: PostCreate) -> PostRead:
        db = self._get_session()
        try:
            now = utcnow()
            post = Post(
                id=uuid4(),
                author_id=author_id,
                content=data.content,
                anonymous=data.anonymous,
                is_active=True,
                flag_count=0,
                reply_count=0,
                created_at=now,
                updated_at=now,
            )
            db.add(post)
            db.commit()

            logger.info("post_created", post_id=str(post.id), anonymous=data.anonymous)
            return to_post_read(self._load(db, post.id))

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to create post: {e}") from e
        finally:
            db.close()

    def list_posts(
        self,
        viewer_role,
        page: int = 1,
        page_size: int = policies.DEFAULT_PAGE_SIZE,
        include_inactive: bool = False,
    ) -> PostPage:
        """Newest first. ``include_inactive`` is honoured for admins only."""
        policies.validate_pagination(page, page_size)
        include_inactive = include_inactive and policies.is_admin(viewer_role)

        db = self._get_session()
        try:
            query = db.query(Post).options(*_POST_LOAD_OPTIONS)
            if not include_inactive:
                query = query.filter(Post.is_active.is_(True))
            query = query.order_by(Post.created_at.desc())
            return self._page(query, page, page_size, to_post_read, PostPage)
        finally:
            db.close()

    def list_my_posts(
        self,
        author_id: UUID,
        page: int = 1,
        page_size: int = policies.DEFAULT_PAGE_SIZE,
    ) -> PostPage:
        """The caller's own posts, inactive ones included."""
        policies.validate_pagination(page, page_size)

        db = self._get_session()
        try:
            query = (
                db.query(Post)
                .options(*_POST_LOAD_OPTIONS)
                .filter(Post.author_id == author_id)
                .order_by(Post.created_at.desc())
            )
            return self._page(query, page, page_size, to_post_read, PostPage)
        finally:
            db.close()

    def get_post(self, viewer_id: UUID, viewer_role, post_id: UUID) -> PostRead:
        db = self._get_session()
        try:
            post = self._load(db, post_id)
            if not policies.can_view_post(post, viewer_id, viewer_role):
                raise NotFoundError("Post not found")
            return to_post_read(post)
        finally:
            db.close()

    def reply(self, author_id: UUID, post_id: UUID, data: ReplyCreate) -> PostRead:
        """Append a reply and recompute the reply counter.

        Raises:
            NotFoundError: Unknown post.
            ConflictError: Post is inactive.
        """
        db = self._get_session()
        try:
            post = self._load(db, post_id, options=(), for_update=True)
            policies.ensure_can_reply(post)

            db.add(PostReply(
                id=uuid4(),
                post_id=post_id,
                author_id=author_id,
                content=data.content,
                anonymous=data.anonymous,
                created_at=utcnow(),
            ))
            db.flush()
            reply_total = (
                select(func.count(PostReply.id))
                .where(PostReply.post_id == post_id)
                .scalar_subquery()
            )
            db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(reply_count=reply_total, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            db.commit()

            logger.info("post_replied", post_id=str(post_id), anonymous=data.anonymous)
            return to_post_read(self._load(db, post_id))

        except ServiceError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to add reply: {e}") from e
        finally:
            db.close()

    def flag(self, user_id: UUID, post_id: UUID, data: Optional[FlagCreate] = None) -> FlagResult:
        """Record one flag per (post, user) and recompute the flag counter.

        Raises:
            NotFoundError: Unknown post.
            ConflictError: This user already flagged it.
        """
        data = data or FlagCreate()
        db = self._get_session()
        try:
            post = self._load(db, post_id, options=(), for_update=True)
            flagged = (
                db.query(PostFlag.user_id)
                .filter(PostFlag.post_id == post_id, PostFlag.user_id == user_id)
                .all()
            )
            policies.ensure_can_flag(user_id, [row.user_id for row in flagged])

            db.add(PostFlag(
                id=uuid4(),
                post_id=post_id,
                user_id=user_id,
                reason=data.reason,
                flagged_at=utcnow(),
            ))
            try:
                db.flush()
            except IntegrityError as e:
                raise ConflictError("You have already flagged this post") from e

            flag_total = (
                select(func.count(PostFlag.id))
                .where(PostFlag.post_id == post_id)
                .scalar_subquery()
            )
            db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(flag_count=flag_total, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            db.commit()

            flag_count = db.query(Post.flag_count).filter(Post.id == post_id).scalar()
            logger.info("post_flagged", post_id=str(post_id), reason=data.reason.value, flag_count=flag_count)
            return FlagResult(post_id=post_id, flag_count=flag_count)

        except ServiceError:
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            raise ConflictError("You have already flagged this post") from e
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to flag post: {e}") from e
        finally:
            db.close()

    def delete_post(self, actor_id: UUID, actor_role, post_id: UUID) -> None:
        """Soft delete by the real author or an admin."""
        db = self._get_session()
        try:
            post = self._load(db, post_id, options=())
            policies.ensure_can_delete_post(post, actor_id, actor_role)

            post.is_active = False
            post.updated_at = utcnow()
            self._audit.log_moderation(
                event_type=AuditEventType.POST_DELETE,
                actor_id=actor_id,
                resource_type="post",
                resource_id=post_id,
                details={"by_author": post.author_id == actor_id},
                session=db,
            )
            db.commit()

            logger.info("post_deleted", post_id=str(post_id), by_admin=post.author_id != actor_id)

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to delete post: {e}") from e
        finally:
            db.close()

    # =========================================================================
    # Moderation
    # =========================================================================

    def list_flagged(
        self,
        min_flags: int = 0,
        page: int = 1,
        page_size: int = policies.DEFAULT_PAGE_SIZE,
    ) -> FlaggedPostPage:
        """Active posts with more than ``min_flags`` flags, most flagged first."""
        policies.validate_pagination(page, page_size)
        if min_flags < 0:
            raise ValidationError("min_flags must not be negative")

        db = self._get_session()
        try:
            query = (
                db.query(Post)
                .options(*_MODERATION_LOAD_OPTIONS)
                .filter(Post.is_active.is_(True), Post.flag_count > min_flags)
                .order_by(Post.flag_count.desc(), Post.created_at.desc())
            )
            return self._page(query, page, page_size, to_moderation_read, FlaggedPostPage)
        finally:
            db.close()

    def remove_post(self, admin_id: UUID, post_id: UUID, reason: str) -> RemovalResult:
        """Admin removal with recorded reason.

        Raises:
            NotFoundError: Unknown post.
            ConflictError: Post already inactive.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Removal reason is required")

        db = self._get_session()
        try:
            post = self._load(db, post_id, options=())
            policies.ensure_removable(post)

            now = utcnow()
            post.is_active = False
            post.removed_by = admin_id
            post.removed_at = now
            post.removal_reason = reason
            post.updated_at = now
            self._audit.log_moderation(
                event_type=AuditEventType.POST_REMOVE,
                actor_id=admin_id,
                resource_type="post",
                resource_id=post_id,
                details={"reason": reason},
                session=db,
            )
            db.commit()

            logger.info("post_removed", post_id=str(post_id), removed_by=str(admin_id))
            return RemovalResult(post_id=post_id, removed_at=now, removal_reason=reason)

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to remove post: {e}") from e
        finally:
            db.close()

    def restore_post(self, admin_id: UUID, post_id: UUID) -> PostModerationRead:
        """Reactivate a removed post and clear its removal metadata."""
        db = self._get_session()
        try:
            post = self._load(db, post_id, options=_MODERATION_LOAD_OPTIONS)
            policies.ensure_restorable(post)

            post.is_active = True
            post.removed_by = None
            post.removed_at = None
            post.removal_reason = None
            post.updated_at = utcnow()
            self._audit.log_moderation(
                event_type=AuditEventType.POST_RESTORE,
                actor_id=admin_id,
                resource_type="post",
                resource_id=post_id,
                session=db,
            )
            db.commit()

            logger.info("post_restored", post_id=str(post_id), restored_by=str(admin_id))
            return to_moderation_read(self._load(db, post_id, options=_MODERATION_LOAD_OPTIONS))

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to restore post: {e}") from e
        finally:
            db.close()

