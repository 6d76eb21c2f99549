"""
Read-only reporting schemas: admin analytics and role dashboards.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from therapease.models.account import AccountRole, AccountSummary
from therapease.models.therapist_profile import VerificationStatus


# =============================================================================
# Admin analytics
# =============================================================================

class PlatformOverview(BaseModel):
    """Totals across every store."""
    total_users: int = 0
    active_users: int = 0
    banned_users: int = 0
    admin_users: int = 0
    therapist_users: int = 0
    total_posts: int = 0
    active_posts: int = 0
    flagged_posts: int = 0
    total_journals: int = 0
    total_therapists: int = 0
    verified_therapists: int = 0
    pending_therapists: int = 0


class RecentActivity(BaseModel):
    """Rows created inside the recency window."""
    window_days: int = 30
    new_users: int = 0
    new_posts: int = 0
    new_journals: int = 0
    new_therapists: int = 0


class FlaggedPostAlert(BaseModel):
    id: UUID
    content: str
    flag_count: int
    created_at: datetime
    author: AccountSummary


class Alerts(BaseModel):
    top_flagged_posts: list[FlaggedPostAlert] = Field(default_factory=list)
    pending_verifications: int = 0
    banned_users: int = 0


class AnalyticsReport(BaseModel):
    overview: PlatformOverview
    recent_activity: RecentActivity
    alerts: Alerts


# =============================================================================
# Role dashboards
# =============================================================================

class DashboardProfile(BaseModel):
    name: str
    email: str
    role: AccountRole
    joined_date: datetime
    specialization: Optional[str] = None
    license_number: Optional[str] = None
    experience: Optional[int] = None
    verification_status: Optional[VerificationStatus] = None


class RoleCounts(BaseModel):
    total_users: int = 0
    total_therapists: int = 0
    total_admins: int = 0
    total_registrations: int = 0


class RecentAccount(BaseModel):
    id: UUID
    name: str
    email: str
    role: AccountRole
    created_at: datetime


class Dashboard(BaseModel):
    """Welcome payload for any role; admin fields are empty for others."""
    message: str
    profile: DashboardProfile
    stats: Optional[RoleCounts] = None
    recent_accounts: list[RecentAccount] = Field(default_factory=list)
