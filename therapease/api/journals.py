"""
Journal API Endpoints

Private, owner-only journal CRUD and mood statistics.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from therapease.api.deps import get_current_account
from therapease.api.envelope import Envelope
from therapease.models.account import CurrentAccount
from therapease.models.base import get_session_factory
from therapease.models.journal import JournalCreate, JournalPage, JournalRead, JournalStats, JournalUpdate
from therapease.services.journals import JournalService
from therapease.services.policies import DEFAULT_PAGE_SIZE

router = APIRouter(prefix="/journals", tags=["journals"])


# =============================================================================
# Module-level services (for dependency injection)
# =============================================================================

_journal_service: Optional[JournalService] = None


def get_journal_service() -> JournalService:
    """Get or create journal service."""
    global _journal_service
    if _journal_service is None:
        _journal_service = JournalService(session_factory=get_session_factory())
    return _journal_service


def set_journal_service(service: Optional[JournalService]) -> None:
    """Set journal service (for testing)."""
    global _journal_service
    _journal_service = service


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/create", status_code=status.HTTP_201_CREATED, response_model=Envelope[JournalRead])
def create_journal(
    data: JournalCreate,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[JournalRead]:
    journal = get_journal_service().create(account.id, data)
    return Envelope(data=journal, message="Journal entry created successfully")


@router.get("/", response_model=Envelope[JournalPage])
def list_journals(
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    mood: Optional[str] = Query(None, description="Ignored unless one of the five moods"),
    search: Optional[str] = Query(None),
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[JournalPage]:
    journals = get_journal_service().list_entries(
        account.id,
        page=page,
        page_size=limit,
        mood=mood,
        search=search,
    )
    return Envelope(data=journals)


@router.get("/stats", response_model=Envelope[JournalStats])
def journal_stats(account: CurrentAccount = Depends(get_current_account)) -> Envelope[JournalStats]:
    return Envelope(data=get_journal_service().get_stats(account.id))


@router.get("/{journal_id}", response_model=Envelope[JournalRead])
def get_journal(
    journal_id: UUID,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[JournalRead]:
    return Envelope(data=get_journal_service().get(account.id, journal_id))


@router.put("/{journal_id}", response_model=Envelope[JournalRead])
def update_journal(
    journal_id: UUID,
    data: JournalUpdate,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[JournalRead]:
    journal = get_journal_service().update(account.id, journal_id, data)
    return Envelope(data=journal, message="Journal entry updated successfully")


@router.delete("/{journal_id}", response_model=Envelope[None])
def delete_journal(
    journal_id: UUID,
    account: CurrentAccount = Depends(get_current_account),
) -> Envelope[None]:
    get_journal_service().delete(account.id, journal_id)
    return Envelope(message="Journal entry deleted successfully")
