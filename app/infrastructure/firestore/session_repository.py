"""Firestore Session Repository.

This module provides Firestore implementation for interview session storage.
Each document keeps a denormalised ``member_ids`` array (host first, then
participants) so "sessions I belong to" is a single ``array_contains`` query.
"""

from typing import (
    Any,
    Dict,
    List,
    Optional,
)

from google.cloud.firestore import (
    Client,
    DocumentReference,
    Query,
    Transaction,
    transactional,
)

from app.core.logging import logger
from app.domain.entities.session_entity import (
    SessionEntity,
    SessionStatus,
)
from app.domain.exceptions import (
    ConcurrentModificationError,
    RepositoryError,
    SessionNotFoundError,
)
from app.domain.repositories.session_repository import SessionRepositoryInterface
from app.infrastructure.firestore.base_repository import (
    BaseFirestoreRepository,
    to_datetime,
)


@transactional
def _conditional_write(
    transaction: Transaction,
    ref: DocumentReference,
    data: Dict[str, Any],
    expected_version: int,
) -> None:
    snapshot = ref.get(transaction=transaction)
    if not snapshot.exists:
        raise SessionNotFoundError(ref.id)

    stored_version = (snapshot.to_dict() or {}).get("version", 0)
    if stored_version != expected_version:
        raise ConcurrentModificationError(ref.id, expected_version=expected_version)

    transaction.set(ref, data)


class FirestoreSessionRepository(BaseFirestoreRepository, SessionRepositoryInterface):
    """Firestore implementation of Session Repository."""

    def __init__(self, collection_name: str = "sessions", db: Optional[Client] = None):
        """Initialize Firestore Session Repository."""
        super().__init__(collection_name, db)

    async def create(self, session: SessionEntity) -> SessionEntity:
        """Create a new session document.

        Args:
            session: Session entity to create

        Returns:
            SessionEntity: Created session entity
        """
        session.version = 0
        try:
            self.collection.document(session.id).create(self.from_entity(session))
        except Exception as e:
            logger.error("session_document_create_failed", session_id=session.id, error=str(e))
            raise RepositoryError(f"Failed to create session: {e}") from e
        return session

    async def get_by_id(self, session_id: str) -> Optional[SessionEntity]:
        """Get session by ID.

        Args:
            session_id: Session ID

        Returns:
            Optional[SessionEntity]: Session entity or None if not found
        """
        if not session_id:
            return None

        data = await self.get_document(session_id)
        if data:
            return self.to_entity(data)
        return None

    async def save(self, session: SessionEntity) -> SessionEntity:
        """Write the session back inside a transaction guarded by its version.

        Args:
            session: Session previously read from this repository

        Returns:
            SessionEntity: Session with its version incremented
        """
        expected_version = session.version
        data = self.from_entity(session)
        data["version"] = expected_version + 1

        ref = self.collection.document(session.id)
        _conditional_write(self.db.transaction(), ref, data, expected_version)

        session.version = expected_version + 1
        return session

    async def delete(self, session_id: str) -> bool:
        """Delete a session document.

        Args:
            session_id: Session ID

        Returns:
            bool: True if deleted successfully
        """
        return await self.delete_document(session_id)

    async def list_by_status(self, status: SessionStatus, limit: int = 20) -> List[SessionEntity]:
        """List sessions with a given status, newest first.

        Args:
            status: Session status
            limit: Maximum number of sessions to return

        Returns:
            List[SessionEntity]: Matching sessions
        """
        query = (
            self.collection.where("status", "==", SessionStatus(status).value)
            .order_by("created_at", direction=Query.DESCENDING)
            .limit(limit)
        )
        return [self.to_entity(data) for data in await self.run_query(query)]

    async def list_for_member(
        self,
        user_id: str,
        status: Optional[SessionStatus] = None,
        limit: int = 20,
    ) -> List[SessionEntity]:
        """List sessions where the user is host or participant, newest first.

        Args:
            user_id: Internal user id
            status: Optional status filter
            limit: Maximum number of sessions to return

        Returns:
            List[SessionEntity]: Matching sessions
        """
        query = self.collection.where("member_ids", "array_contains", user_id)
        if status is not None:
            query = query.where("status", "==", SessionStatus(status).value)

        query = query.order_by("created_at", direction=Query.DESCENDING).limit(limit)
        return [self.to_entity(data) for data in await self.run_query(query)]

    def to_entity(self, data: Dict[str, Any]) -> SessionEntity:
        """Convert Firestore document to SessionEntity.

        Args:
            data: Document data

        Returns:
            SessionEntity: Session entity
        """
        return SessionEntity(
            session_id=data["id"],
            problem=data.get("problem", ""),
            difficulty=data.get("difficulty"),
            host_id=data.get("host_id"),
            participant_ids=data.get("participant_ids", []),
            max_participants=data.get("max_participants", 10),
            status=data.get("status", SessionStatus.ACTIVE.value),
            call_id=data.get("call_id", ""),
            version=data.get("version", 0),
            created_at=to_datetime(data.get("created_at")),
            updated_at=to_datetime(data.get("updated_at")),
        )

    def from_entity(self, entity: SessionEntity) -> Dict[str, Any]:
        """Convert SessionEntity to Firestore document.

        Args:
            entity: Session entity

        Returns:
            Dict[str, Any]: Document data
        """
        return {
            "problem": entity.problem,
            "difficulty": entity.difficulty.value,
            "host_id": entity.host_id,
            "participant_ids": list(entity.participant_ids),
            "member_ids": entity.member_ids,
            "max_participants": entity.max_participants,
            "status": entity.status.value,
            "call_id": entity.call_id,
            "version": entity.version,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }
