"""Session domain entity.

This module contains the pure domain model for interview sessions,
independent of any external dependencies or frameworks.
"""

import secrets
import string
import time
import uuid
from datetime import (
    UTC,
    datetime,
)
from enum import Enum
from typing import (
    List,
    Optional,
)

_CALL_ID_ALPHABET = string.ascii_lowercase + string.digits


class SessionStatus(str, Enum):
    """Session status. Transitions only from ACTIVE to COMPLETED."""

    ACTIVE = "active"
    COMPLETED = "completed"


class Difficulty(str, Enum):
    """Problem difficulty."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def generate_call_id() -> str:
    """Generate the external correlation token for a session's call and chat."""
    suffix = "".join(secrets.choice(_CALL_ID_ALPHABET) for _ in range(6))
    return f"session_{int(time.time() * 1000)}_{suffix}"


class SessionEntity:
    """Pure domain entity for an interview session.

    Invariants kept by the mutators:
    - the host is never in ``participant_ids``
    - ``participant_ids`` has no duplicates and keeps join order
    - a completed session is never reactivated

    Capacity and actor-role checks belong to the lifecycle service, which
    knows who is acting.
    """

    def __init__(
        self,
        problem: str,
        difficulty: Difficulty,
        host_id: str,
        participant_ids: Optional[List[str]] = None,
        max_participants: int = 10,
        status: SessionStatus = SessionStatus.ACTIVE,
        call_id: Optional[str] = None,
        version: int = 0,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        session_id: Optional[str] = None,
    ):
        """Initialize a Session entity.

        Args:
            problem: Problem title
            difficulty: Problem difficulty
            host_id: Internal id of the hosting user
            participant_ids: Internal ids of participants in join order
            max_participants: Participant limit (host excluded)
            status: Current status
            call_id: External call/chat correlation token
            version: Store version used for conditional writes
            created_at: Creation timestamp
            updated_at: Last update timestamp
            session_id: Unique session identifier
        """
        if max_participants <= 0:
            raise ValueError("max_participants must be positive")

        self.id = session_id or str(uuid.uuid4())
        self.problem = problem
        self.difficulty = Difficulty(difficulty)
        self.host_id = host_id
        self.participant_ids: List[str] = list(dict.fromkeys(participant_ids or []))
        self.max_participants = max_participants
        self.status = SessionStatus(status)
        self.call_id = call_id if call_id is not None else generate_call_id()
        self.version = version
        self.created_at = created_at or datetime.now(UTC)
        self.updated_at = updated_at or self.created_at

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def is_full(self) -> bool:
        return len(self.participant_ids) >= self.max_participants

    @property
    def member_ids(self) -> List[str]:
        """Host followed by participants."""
        return [self.host_id, *self.participant_ids]

    def is_host(self, user_id: str) -> bool:
        return self.host_id == user_id

    def has_participant(self, user_id: str) -> bool:
        return user_id in self.participant_ids

    def add_participant(self, user_id: str) -> None:
        """Append a participant."""
        if not self.is_active:
            raise ValueError("Cannot add participants to a completed session")
        if self.is_host(user_id):
            raise ValueError("The host cannot be a participant")
        if self.has_participant(user_id):
            return

        self.participant_ids.append(user_id)
        self.updated_at = datetime.now(UTC)

    def remove_participant(self, user_id: str) -> bool:
        """Remove a participant.

        Returns:
            bool: True if the user was a participant
        """
        if user_id not in self.participant_ids:
            return False

        self.participant_ids.remove(user_id)
        self.updated_at = datetime.now(UTC)
        return True

    def complete(self) -> None:
        """Mark the session as completed."""
        self.status = SessionStatus.COMPLETED
        self.updated_at = datetime.now(UTC)

    def __repr__(self) -> str:
        return (
            f"SessionEntity(id={self.id!r}, status={self.status.value!r}, "
            f"host_id={self.host_id!r}, participants={len(self.participant_ids)}/{self.max_participants})"
        )
