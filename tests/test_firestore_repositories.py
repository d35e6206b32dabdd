"""Tests for the Firestore repositories.

The Firestore client is replaced by ``MagicMock`` objects; these tests pin
document mapping and query construction rather than Firestore itself.
"""

from datetime import (
    UTC,
    datetime,
)
from unittest.mock import (
    MagicMock,
    patch,
)

import pytest
from google.api_core.exceptions import AlreadyExists
from google.cloud.firestore import Query

from app.domain.entities import (
    SessionEntity,
    SessionStatus,
    UserEntity,
)
from app.domain.exceptions import UserAlreadyExistsError
from app.infrastructure.firestore import (
    FirestoreSessionRepository,
    FirestoreUserRepository,
)


def _snapshot(doc_id: str, data: dict, exists: bool = True) -> MagicMock:
    snapshot = MagicMock()
    snapshot.id = doc_id
    snapshot.exists = exists
    snapshot.to_dict.return_value = dict(data)
    return snapshot


class TestFirestoreSessionRepository:
    """Test suite for the session repository."""

    def test_document_round_trip(self):
        repo = FirestoreSessionRepository(db=MagicMock())
        created = datetime(2026, 3, 1, tzinfo=UTC)
        session = SessionEntity(
            problem="Two Sum",
            difficulty="easy",
            host_id="h",
            participant_ids=["p1", "p2"],
            max_participants=4,
            call_id="session_1_abcdef",
            version=3,
            created_at=created,
        )

        data = repo.from_entity(session)

        assert data["member_ids"] == ["h", "p1", "p2"]
        assert data["difficulty"] == "easy"
        assert data["status"] == "active"
        assert data["version"] == 3

        restored = repo.to_entity({**data, "id": session.id})
        assert restored.id == session.id
        assert restored.participant_ids == ["p1", "p2"]
        assert restored.max_participants == 4
        assert restored.version == 3
        assert restored.created_at == created

    @pytest.mark.asyncio
    async def test_get_missing(self):
        db = MagicMock()
        db.collection.return_value.document.return_value.get.return_value = _snapshot("x", {}, exists=False)
        repo = FirestoreSessionRepository(db=db)

        assert await repo.get_by_id("x") is None

    @pytest.mark.asyncio
    async def test_list_for_member_query(self):
        db = MagicMock()
        query = MagicMock()
        db.collection.return_value.where.return_value = query
        query.where.return_value = query
        query.order_by.return_value = query
        query.limit.return_value = query
        query.stream.return_value = []
        repo = FirestoreSessionRepository("sessions", db=db)

        result = await repo.list_for_member("u1", SessionStatus.COMPLETED, limit=20)

        assert result == []
        db.collection.assert_called_with("sessions")
        db.collection.return_value.where.assert_called_once_with("member_ids", "array_contains", "u1")
        query.where.assert_called_once_with("status", "==", "completed")
        query.order_by.assert_called_once_with("created_at", direction=Query.DESCENDING)
        query.limit.assert_called_once_with(20)

    @pytest.mark.asyncio
    async def test_save_runs_conditional_write_and_bumps_version(self):
        db = MagicMock()
        repo = FirestoreSessionRepository(db=db)
        session = SessionEntity(problem="Two Sum", difficulty="easy", host_id="h", version=2)

        with patch("app.infrastructure.firestore.session_repository._conditional_write") as write:
            saved = await repo.save(session)

        _, ref, data, expected_version = write.call_args.args
        assert expected_version == 2
        assert data["version"] == 3
        assert saved.version == 3


class TestFirestoreUserRepository:
    """Test suite for the user repository."""

    @pytest.mark.asyncio
    async def test_create_existing_maps_to_domain_error(self):
        db = MagicMock()
        db.collection.return_value.document.return_value.create.side_effect = AlreadyExists("exists")
        repo = FirestoreUserRepository(db=db)

        with pytest.raises(UserAlreadyExistsError):
            await repo.create(UserEntity(external_id="abc"))

    @pytest.mark.asyncio
    async def test_get_many_skips_missing(self):
        db = MagicMock()
        ada = UserEntity(external_id="ada", name="Ada")
        db.get_all.return_value = [
            _snapshot(ada.id, FirestoreUserRepository(db=db).from_entity(ada)),
            _snapshot("gone", {}, exists=False),
        ]
        repo = FirestoreUserRepository(db=db)

        users = await repo.get_many([ada.id, "gone", ada.id])

        assert list(users) == [ada.id]
        assert users[ada.id].name == "Ada"
        assert len(db.get_all.call_args.args[0]) == 2

    @pytest.mark.asyncio
    async def test_get_many_empty(self):
        db = MagicMock()
        repo = FirestoreUserRepository(db=db)

        assert await repo.get_many([]) == {}
        db.get_all.assert_not_called()
