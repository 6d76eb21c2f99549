"""
Concurrent flagging against a file-backed database.

Two threads flag the same post at the same moment. The stored counter
must equal the number of flag rows, and a user flagging twice must get
exactly one conflict.
"""

import threading
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from therapease.models.account import Account, AccountRole
from therapease.models.base import Base, utcnow
from therapease.models.post import Post, PostFlag
from therapease.services.audit import AuditService
from therapease.services.community import CommunityService
from therapease.services.errors import ConflictError


@pytest.fixture()
def file_sf(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'board.db'}",
        connect_args={"check_same_thread": False, "timeout": 15},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def _seed(sf, accounts=2):
    session = sf()
    now = utcnow()
    ids = [uuid4() for _ in range(accounts)]
    for account_id in ids:
        session.add(Account(
            id=account_id,
            name="Member",
            email=f"{account_id.hex}@example.com",
            password_hash="x",
            role=AccountRole.USER,
            created_at=now,
            updated_at=now,
        ))
    post_id = uuid4()
    session.add(Post(id=post_id, author_id=ids[0], content="Hard week", created_at=now, updated_at=now))
    session.commit()
    session.close()
    return ids, post_id


def _flag_together(service, post_id, user_ids):
    barrier = threading.Barrier(len(user_ids))
    outcomes = []
    lock = threading.Lock()

    def worker(user_id):
        barrier.wait()
        try:
            result = service.flag(user_id, post_id)
        except ConflictError as e:
            result = e
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(uid,)) for uid in user_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return outcomes


def _counts(sf, post_id):
    session = sf()
    try:
        stored = session.query(Post.flag_count).filter(Post.id == post_id).scalar()
        rows = session.query(PostFlag).filter(PostFlag.post_id == post_id).count()
        return stored, rows
    finally:
        session.close()


class TestConcurrentFlags:

    def test_distinct_users_both_counted(self, file_sf):
        (alice, bob), post_id = _seed(file_sf)
        service = CommunityService(session_factory=file_sf, audit_service=MagicMock(spec=AuditService))

        outcomes = _flag_together(service, post_id, [alice, bob])

        assert len(outcomes) == 2
        assert not any(isinstance(o, Exception) for o in outcomes)
        assert _counts(file_sf, post_id) == (2, 2)

    def test_same_user_twice_yields_one_conflict(self, file_sf):
        (alice, _), post_id = _seed(file_sf)
        service = CommunityService(session_factory=file_sf, audit_service=MagicMock(spec=AuditService))

        outcomes = _flag_together(service, post_id, [alice, alice])

        conflicts = [o for o in outcomes if isinstance(o, ConflictError)]
        assert len(outcomes) == 2
        assert len(conflicts) == 1
        assert _counts(file_sf, post_id) == (1, 1)
