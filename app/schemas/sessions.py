"""Session schemas for the API.

Sessions are returned with their host and participants expanded to user
summaries. ``participant`` mirrors the first participant for clients that
still read the single-participant shape; it is never stored.
"""

from datetime import datetime
from typing import (
    List,
    Optional,
)

from pydantic import (
    Field,
    computed_field,
)

from app.domain.entities import (
    Difficulty,
    SessionStatus,
    UserEntity,
)
from app.domain.services import SessionDetails
from app.schemas.base import CamelModel


class CreateSessionRequest(CamelModel):
    """Request body for creating a session.

    Fields are optional here so that missing values surface as a domain
    ``BadRequestError`` with the same message as any other invalid input.
    """

    problem: Optional[str] = Field(None, description="Problem title", max_length=200)
    difficulty: Optional[str] = Field(None, description="easy, medium or hard")
    max_participants: Optional[int] = Field(None, description="Participant limit, host excluded")


class RemoveParticipantRequest(CamelModel):
    """Request body for removing a participant."""

    participant_id: Optional[str] = Field(None, description="Internal id of the participant to remove")


class UserSummary(CamelModel):
    """Public view of a user embedded in session payloads."""

    id: str
    name: str
    email: str
    profile_image: str = ""
    external_id: str

    @classmethod
    def from_entity(cls, user: UserEntity) -> "UserSummary":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            profile_image=user.profile_image,
            external_id=user.external_id,
        )


class SessionResponse(CamelModel):
    """A session with expanded host and participants."""

    id: str
    problem: str
    difficulty: Difficulty
    status: SessionStatus
    call_id: str
    max_participants: int
    host: Optional[UserSummary] = None
    participants: List[UserSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def participant(self) -> Optional[UserSummary]:
        return self.participants[0] if self.participants else None

    @classmethod
    def from_details(cls, details: SessionDetails) -> "SessionResponse":
        session = details.session
        return cls(
            id=session.id,
            problem=session.problem,
            difficulty=session.difficulty,
            status=session.status,
            call_id=session.call_id,
            max_participants=session.max_participants,
            host=UserSummary.from_entity(details.host) if details.host else None,
            participants=[UserSummary.from_entity(user) for user in details.participants],
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class SessionEnvelope(CamelModel):
    """Single-session response."""

    session: SessionResponse
    message: Optional[str] = None


class SessionListResponse(CamelModel):
    """Session list response."""

    sessions: List[SessionResponse]
