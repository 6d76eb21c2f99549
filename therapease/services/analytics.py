"""
Analytics Service

Read-only aggregation for the admin console and the per-role dashboards.
Nothing here mutates state.
"""

from datetime import timedelta
from uuid import UUID

import structlog
from sqlalchemy import func
from sqlalchemy.orm import selectinload

from therapease.models.account import Account, AccountRole, AccountSummary
from therapease.models.analytics import (
    Alerts,
    AnalyticsReport,
    Dashboard,
    DashboardProfile,
    FlaggedPostAlert,
    PlatformOverview,
    RecentAccount,
    RecentActivity,
    RoleCounts,
)
from therapease.models.base import utcnow
from therapease.models.journal import Journal
from therapease.models.post import Post
from therapease.models.therapist_profile import TherapistProfile, VerificationStatus
from therapease.services.errors import NotFoundError, ServiceError

logger = structlog.get_logger(__name__)

RECENT_WINDOW_DAYS = 30
TOP_FLAGGED_LIMIT = 5
RECENT_ACCOUNTS_LIMIT = 5


def _count(db, model, *criteria) -> int:
    query = db.query(func.count(model.id))
    if criteria:
        query = query.filter(*criteria)
    return query.scalar() or 0


class AnalyticsService:
    """
    Platform metrics and dashboards.

    Args:
        session_factory: SQLAlchemy session factory.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def _get_session(self):
        if self._session_factory is None:
            raise ServiceError("Database session not configured")
        return self._session_factory()

    # =========================================================================
    # Admin analytics
    # =========================================================================

    def overview(self) -> PlatformOverview:
        db = self._get_session()
        try:
            return self._overview(db)
        finally:
            db.close()

    def recent_activity(self, window_days: int = RECENT_WINDOW_DAYS) -> RecentActivity:
        db = self._get_session()
        try:
            return self._recent_activity(db, window_days)
        finally:
            db.close()

    def alerts(self) -> Alerts:
        db = self._get_session()
        try:
            return self._alerts(db)
        finally:
            db.close()

    def report(self) -> AnalyticsReport:
        """Overview, recent activity, and alerts from one session."""
        db = self._get_session()
        try:
            report = AnalyticsReport(
                overview=self._overview(db),
                recent_activity=self._recent_activity(db, RECENT_WINDOW_DAYS),
                alerts=self._alerts(db),
            )
            logger.info(
                "analytics_report_built",
                total_users=report.overview.total_users,
                flagged_posts=report.overview.flagged_posts,
            )
            return report
        finally:
            db.close()

    @staticmethod
    def _overview(db) -> PlatformOverview:
        return PlatformOverview(
            total_users=_count(db, Account),
            active_users=_count(db, Account, Account.is_active.is_(True), Account.is_banned.is_(False)),
            banned_users=_count(db, Account, Account.is_banned.is_(True)),
            admin_users=_count(db, Account, Account.role == AccountRole.ADMIN),
            therapist_users=_count(db, Account, Account.role == AccountRole.THERAPIST),
            total_posts=_count(db, Post),
            active_posts=_count(db, Post, Post.is_active.is_(True)),
            flagged_posts=_count(db, Post, Post.is_active.is_(True), Post.flag_count > 0),
            total_journals=_count(db, Journal),
            total_therapists=_count(db, TherapistProfile),
            verified_therapists=_count(db, TherapistProfile, TherapistProfile.verified.is_(True)),
            pending_therapists=_count(
                db, TherapistProfile, TherapistProfile.verification_status == VerificationStatus.PENDING
            ),
        )

    @staticmethod
    def _recent_activity(db, window_days: int) -> RecentActivity:
        since = utcnow() - timedelta(days=window_days)
        return RecentActivity(
            window_days=window_days,
            new_users=_count(db, Account, Account.created_at >= since),
            new_posts=_count(db, Post, Post.created_at >= since),
            new_journals=_count(db, Journal, Journal.created_at >= since),
            new_therapists=_count(db, TherapistProfile, TherapistProfile.created_at >= since),
        )

    @staticmethod
    def _alerts(db) -> Alerts:
        top_posts = (
            db.query(Post)
            .options(selectinload(Post.author))
            .filter(Post.is_active.is_(True), Post.flag_count > 0)
            .order_by(Post.flag_count.desc(), Post.created_at.desc())
            .limit(TOP_FLAGGED_LIMIT)
            .all()
        )
        return Alerts(
            top_flagged_posts=[
                FlaggedPostAlert(
                    id=p.id,
                    content=p.content,
                    flag_count=p.flag_count,
                    created_at=p.created_at,
                    author=AccountSummary.model_validate(p.author),
                )
                for p in top_posts
            ],
            pending_verifications=_count(
                db, TherapistProfile, TherapistProfile.verification_status == VerificationStatus.PENDING
            ),
            banned_users=_count(db, Account, Account.is_banned.is_(True)),
        )

    # =========================================================================
    # Dashboards
    # =========================================================================

    @staticmethod
    def _account(db, account_id: UUID) -> Account:
        account = db.query(Account).filter(Account.id == account_id).first()
        if account is None:
            raise NotFoundError("User not found")
        return account

    def user_dashboard(self, account_id: UUID) -> Dashboard:
        db = self._get_session()
        try:
            account = self._account(db, account_id)
            return Dashboard(
                message=f"Welcome to your dashboard, {account.name}!",
                profile=DashboardProfile(
                    name=account.name,
                    email=account.email,
                    role=account.role,
                    joined_date=account.created_at,
                ),
            )
        finally:
            db.close()

    def therapist_dashboard(self, account_id: UUID) -> Dashboard:
        db = self._get_session()
        try:
            account = self._account(db, account_id)
            profile = (
                db.query(TherapistProfile)
                .filter(TherapistProfile.account_id == account_id)
                .first()
            )
            return Dashboard(
                message=f"Welcome to your therapist dashboard, Dr. {account.name}!",
                profile=DashboardProfile(
                    name=account.name,
                    email=account.email,
                    role=account.role,
                    joined_date=account.created_at,
                    specialization=account.specialization,
                    license_number=account.license_number,
                    experience=account.experience,
                    verification_status=profile.verification_status if profile else None,
                ),
            )
        finally:
            db.close()

    def admin_dashboard(self, account_id: UUID) -> Dashboard:
        db = self._get_session()
        try:
            account = self._account(db, account_id)
            users = _count(db, Account, Account.role == AccountRole.USER)
            therapists = _count(db, Account, Account.role == AccountRole.THERAPIST)
            admins = _count(db, Account, Account.role == AccountRole.ADMIN)
            recent = (
                db.query(Account)
                .order_by(Account.created_at.desc())
                .limit(RECENT_ACCOUNTS_LIMIT)
                .all()
            )
            return Dashboard(
                message=f"Welcome to the admin dashboard, {account.name}!",
                profile=DashboardProfile(
                    name=account.name,
                    email=account.email,
                    role=account.role,
                    joined_date=account.created_at,
                ),
                stats=RoleCounts(
                    total_users=users,
                    total_therapists=therapists,
                    total_admins=admins,
                    total_registrations=users + therapists + admins,
                ),
                recent_accounts=[
                    RecentAccount(id=a.id, name=a.name, email=a.email, role=a.role, created_at=a.created_at)
                    for a in recent
                ],
            )
        finally:
            db.close()
