"""
Dashboard API Endpoints

One welcome payload per role.
"""

from fastapi import APIRouter, Depends

from therapease.api.admin import get_analytics_service
from therapease.api.deps import require_admin, require_therapist, require_user
from therapease.api.envelope import Envelope
from therapease.models.account import CurrentAccount
from therapease.models.analytics import Dashboard

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/user", response_model=Envelope[Dashboard])
def user_dashboard(account: CurrentAccount = Depends(require_user)) -> Envelope[Dashboard]:
    return Envelope(data=get_analytics_service().user_dashboard(account.id))


@router.get("/therapist", response_model=Envelope[Dashboard])
def therapist_dashboard(account: CurrentAccount = Depends(require_therapist)) -> Envelope[Dashboard]:
    return Envelope(data=get_analytics_service().therapist_dashboard(account.id))


@router.get("/admin", response_model=Envelope[Dashboard])
def admin_dashboard(account: CurrentAccount = Depends(require_admin)) -> Envelope[Dashboard]:
    return Envelope(data=get_analytics_service().admin_dashboard(account.id))
