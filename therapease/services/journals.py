"""
Journal Service

Per-owner CRUD over private journal entries and mood statistics.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog
from sqlalchemy import String, cast, func, or_

from therapease.models.base import to_naive_utc, utcnow
from therapease.models.common import Pagination, page_offset
from therapease.models.journal import (
    Journal,
    JournalCreate,
    JournalPage,
    JournalRead,
    JournalStats,
    JournalUpdate,
    Mood,
    default_title,
)
from therapease.services import policies
from therapease.services.errors import NotFoundError, ServiceError

logger = structlog.get_logger(__name__)


def _parse_mood(value: Optional[str]) -> Optional[Mood]:
    """Mood filter from a query string; unknown values mean no filter."""
    if not value:
        return None
    try:
        return Mood(value)
    except ValueError:
        return None


class JournalService:
    """
    Manages private journal entries.

    Args:
        session_factory: SQLAlchemy session factory.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def _get_session(self):
        if self._session_factory is None:
            raise ServiceError("Database session not configured")
        return self._session_factory()

    @staticmethod
    def _load_owned(db, owner_id: UUID, journal_id: UUID) -> Journal:
        journal = db.query(Journal).filter(Journal.id == journal_id).first()
        if journal is None:
            raise NotFoundError("Journal entry not found")
        policies.ensure_journal_owner(journal, owner_id)
        return journal

    def create(self, owner_id: UUID, data: JournalCreate) -> JournalRead:
        db = self._get_session()
        try:
            now = utcnow()
            entry_date = to_naive_utc(data.date) if data.date else now
            journal = Journal(
                id=uuid4(),
                owner_id=owner_id,
                date=entry_date,
                title=data.title or default_title(entry_date),
                content=data.content,
                mood=data.mood,
                tags=data.tags,
                created_at=now,
                updated_at=now,
            )
            db.add(journal)
            db.commit()
            db.refresh(journal)

            logger.info("journal_created", journal_id=str(journal.id), mood=data.mood.value)
            return JournalRead.model_validate(journal)

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to create journal entry: {e}") from e
        finally:
            db.close()

    def list_entries(
        self,
        owner_id: UUID,
        page: int = 1,
        page_size: int = policies.DEFAULT_PAGE_SIZE,
        mood: Optional[str] = None,
        search: Optional[str] = None,
    ) -> JournalPage:
        """Owner's entries, newest date first.

        Args:
            mood: Mood filter; ignored when not one of the five moods.
            search: Case-insensitive substring over title, content, and tags.
        """
        policies.validate_pagination(page, page_size)

        db = self._get_session()
        try:
            query = db.query(Journal).filter(Journal.owner_id == owner_id)

            mood_filter = _parse_mood(mood)
            if mood_filter is not None:
                query = query.filter(Journal.mood == mood_filter)

            if search and search.strip():
                pattern = f"%{search.strip()}%"
                query = query.filter(or_(
                    Journal.title.ilike(pattern),
                    Journal.content.ilike(pattern),
                    cast(Journal.tags, String).ilike(pattern),
                ))

            total = query.count()
            journals = (
                query.order_by(Journal.date.desc(), Journal.created_at.desc())
                .offset(page_offset(page, page_size))
                .limit(page_size)
                .all()
            )
            return JournalPage(
                items=[JournalRead.model_validate(j) for j in journals],
                pagination=Pagination.build(page, page_size, total),
            )
        finally:
            db.close()

    def get(self, owner_id: UUID, journal_id: UUID) -> JournalRead:
        db = self._get_session()
        try:
            return JournalRead.model_validate(self._load_owned(db, owner_id, journal_id))
        finally:
            db.close()

    def update(self, owner_id: UUID, journal_id: UUID, data: JournalUpdate) -> JournalRead:
        """Apply the fields present in ``data``."""
        db = self._get_session()
        try:
            journal = self._load_owned(db, owner_id, journal_id)
            changes = data.model_dump(exclude_unset=True)

            if "title" in changes:
                journal.title = changes["title"] or default_title(journal.date)
            if changes.get("content") is not None:
                journal.content = changes["content"]
            if changes.get("mood") is not None:
                journal.mood = changes["mood"]
            if changes.get("tags") is not None:
                journal.tags = changes["tags"]

            journal.updated_at = utcnow()
            db.commit()
            db.refresh(journal)

            logger.info("journal_updated", journal_id=str(journal_id), fields=sorted(changes))
            return JournalRead.model_validate(journal)

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to update journal entry: {e}") from e
        finally:
            db.close()

    def delete(self, owner_id: UUID, journal_id: UUID) -> None:
        db = self._get_session()
        try:
            journal = self._load_owned(db, owner_id, journal_id)
            db.delete(journal)
            db.commit()

            logger.info("journal_deleted", journal_id=str(journal_id))

        except ServiceError:
            raise
        except Exception as e:
            db.rollback()
            raise ServiceError(f"Failed to delete journal entry: {e}") from e
        finally:
            db.close()

    def get_stats(self, owner_id: UUID) -> JournalStats:
        """Mood counts and date range; all zeros when there are no entries."""
        db = self._get_session()
        try:
            rows = (
                db.query(Journal.mood, func.count(Journal.id))
                .filter(Journal.owner_id == owner_id)
                .group_by(Journal.mood)
                .all()
            )
            stats = JournalStats()
            if not rows:
                return stats

            for mood, count in rows:
                stats.mood_counts[Mood(mood)] = count
            stats.total_entries = sum(stats.mood_counts.values())

            first_entry, last_entry = (
                db.query(func.min(Journal.date), func.max(Journal.date))
                .filter(Journal.owner_id == owner_id)
                .one()
            )
            stats.first_entry = first_entry
            stats.last_entry = last_entry
            return stats
        finally:
            db.close()
