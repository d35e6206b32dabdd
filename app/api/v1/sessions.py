"""Interview session API endpoints.

This module exposes the session lifecycle: create, list, fetch, join,
leave, remove a participant and end. Domain errors propagate to the
application's exception handlers, which map them to HTTP statuses.
"""

from typing import Optional

from fastapi import (
    APIRouter,
    Query,
    Request,
    status,
)

from app.core.config import settings
from app.core.dependencies import (
    CurrentUser,
    SessionServiceDep,
)
from app.core.limiter import limiter
from app.domain.entities import SessionStatus
from app.schemas.sessions import (
    CreateSessionRequest,
    RemoveParticipantRequest,
    SessionEnvelope,
    SessionListResponse,
    SessionResponse,
)

router = APIRouter()

SESSIONS_LIMIT = settings.RATE_LIMIT_ENDPOINTS["sessions"][0]


@router.post("", response_model=SessionEnvelope, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_ENDPOINTS["session_create"][0])
async def create_session(
    request: Request,
    current_user: CurrentUser,
    service: SessionServiceDep,
    payload: Optional[CreateSessionRequest] = None,
):
    """Create a session hosted by the caller and provision its call and chat."""
    payload = payload or CreateSessionRequest()
    details = await service.create_session(
        current_user,
        payload.problem,
        payload.difficulty,
        payload.max_participants,
    )
    return SessionEnvelope(session=SessionResponse.from_details(details))


@router.get("", response_model=SessionListResponse)
@limiter.limit(SESSIONS_LIMIT)
async def list_sessions(
    request: Request,
    current_user: CurrentUser,
    service: SessionServiceDep,
    session_status: SessionStatus = Query(SessionStatus.ACTIVE, alias="status"),
):
    """List the newest sessions with a status (active by default)."""
    sessions = await service.list_sessions(session_status)
    return SessionListResponse(sessions=[SessionResponse.from_details(d) for d in sessions])


@router.get("/mine", response_model=SessionListResponse)
@limiter.limit(SESSIONS_LIMIT)
async def list_my_sessions(
    request: Request,
    current_user: CurrentUser,
    service: SessionServiceDep,
    session_status: SessionStatus = Query(SessionStatus.COMPLETED, alias="status"),
):
    """List the newest sessions the caller hosted or joined (completed by default)."""
    sessions = await service.list_user_sessions(current_user, session_status)
    return SessionListResponse(sessions=[SessionResponse.from_details(d) for d in sessions])


@router.get("/{session_id}", response_model=SessionEnvelope)
@limiter.limit(SESSIONS_LIMIT)
async def get_session(
    request: Request,
    session_id: str,
    current_user: CurrentUser,
    service: SessionServiceDep,
):
    details = await service.get_session(session_id)
    return SessionEnvelope(session=SessionResponse.from_details(details))


@router.post("/{session_id}/join", response_model=SessionEnvelope)
@limiter.limit(SESSIONS_LIMIT)
async def join_session(
    request: Request,
    session_id: str,
    current_user: CurrentUser,
    service: SessionServiceDep,
):
    """Join a session, or rejoin one the caller already belongs to."""
    result = await service.join_session(session_id, current_user)
    return SessionEnvelope(
        session=SessionResponse.from_details(result.details),
        message=result.message,
    )


@router.post("/{session_id}/leave", response_model=SessionEnvelope)
@limiter.limit(SESSIONS_LIMIT)
async def leave_session(
    request: Request,
    session_id: str,
    current_user: CurrentUser,
    service: SessionServiceDep,
):
    details = await service.leave_session(session_id, current_user)
    return SessionEnvelope(
        session=SessionResponse.from_details(details),
        message="Left session successfully",
    )


@router.post("/{session_id}/remove-participant", response_model=SessionEnvelope)
@limiter.limit(SESSIONS_LIMIT)
async def remove_participant(
    request: Request,
    session_id: str,
    current_user: CurrentUser,
    service: SessionServiceDep,
    payload: Optional[RemoveParticipantRequest] = None,
):
    """Remove a participant from the caller's session."""
    participant_id = payload.participant_id if payload else None
    details = await service.remove_participant(session_id, current_user, participant_id)
    return SessionEnvelope(
        session=SessionResponse.from_details(details),
        message="Participant removed successfully",
    )


@router.post("/{session_id}/end", response_model=SessionEnvelope)
@limiter.limit(SESSIONS_LIMIT)
async def end_session(
    request: Request,
    session_id: str,
    current_user: CurrentUser,
    service: SessionServiceDep,
):
    """End the caller's session and tear down its call and chat."""
    details = await service.end_session(session_id, current_user)
    return SessionEnvelope(
        session=SessionResponse.from_details(details),
        message="Session ended successfully",
    )
