"""Session repository interface.

This module defines the contract for session data access operations
without specifying implementation details.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from app.domain.entities import SessionEntity, SessionStatus


class SessionRepositoryInterface(ABC):
    """Abstract repository interface for Session operations.

    Writes after creation are conditional: ``save`` only succeeds if the
    stored version still equals ``session.version``, which is how racing
    membership changes are detected.
    """

    @abstractmethod
    async def create(self, session: SessionEntity) -> SessionEntity:
        """Persist a new session.

        Args:
            session: Session entity to create

        Returns:
            SessionEntity: Created session with store timestamps

        Raises:
            RepositoryError: If creation fails
        """

    @abstractmethod
    async def get_by_id(self, session_id: str) -> Optional[SessionEntity]:
        """Get session by ID.

        Args:
            session_id: Session ID to lookup

        Returns:
            SessionEntity or None if not found
        """

    @abstractmethod
    async def save(self, session: SessionEntity) -> SessionEntity:
        """Write back a modified session if nobody else wrote it first.

        Args:
            session: Session previously read from this repository

        Returns:
            SessionEntity: The session with its version incremented

        Raises:
            SessionNotFoundError: If the session no longer exists
            ConcurrentModificationError: If the stored version changed
        """

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Physically delete a session.

        Only used to roll back a creation whose provisioning failed.

        Returns:
            bool: True if deleted
        """

    @abstractmethod
    async def list_by_status(self, status: SessionStatus, limit: int = 20) -> List[SessionEntity]:
        """List sessions with a status, newest first."""

    @abstractmethod
    async def list_for_member(
        self,
        user_id: str,
        status: Optional[SessionStatus] = None,
        limit: int = 20,
    ) -> List[SessionEntity]:
        """List sessions where the user is host or participant, newest first."""
