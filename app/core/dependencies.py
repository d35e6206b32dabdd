"""Dependency injection for the Mock Interview API.

This module wires repositories, the collaboration provisioner and the
domain services into FastAPI dependencies. The provisioner is created once
in the application lifespan and kept on ``app.state``; repositories and
services are cheap and built per request.
"""

from typing import (
    Annotated,
    Optional,
)

from fastapi import (
    Depends,
    Request,
)
from fastapi.security import (
    HTTPAuthorizationCredentials,
    HTTPBearer,
)

from app.core.config import settings
from app.core.logging import logger
from app.domain.entities import UserEntity
from app.domain.exceptions import AuthenticationError
from app.domain.repositories import (
    SessionRepositoryInterface,
    UserRepositoryInterface,
)
from app.domain.services import (
    CollaborationProvisioner,
    SessionDomainService,
    UserDomainService,
)
from app.infrastructure.firestore import (
    FirestoreSessionRepository,
    FirestoreUserRepository,
)
from app.infrastructure.stream import StreamProvisioner
from app.services.firebase_auth import (
    FirebaseAuthService,
    firebase_auth_service,
)

bearer_scheme = HTTPBearer(auto_error=False)


def create_provisioner() -> CollaborationProvisioner:
    """Build the Stream provisioner from settings."""
    return StreamProvisioner(
        api_key=settings.STREAM_API_KEY,
        api_secret=settings.STREAM_API_SECRET,
        chat_base_url=settings.STREAM_CHAT_BASE_URL,
        video_base_url=settings.STREAM_VIDEO_BASE_URL,
        timeout=settings.STREAM_TIMEOUT,
        call_type=settings.STREAM_CALL_TYPE,
        channel_type=settings.STREAM_CHANNEL_TYPE,
        token_expire_hours=settings.STREAM_USER_TOKEN_EXPIRE_HOURS,
    )


def get_provisioner(request: Request) -> CollaborationProvisioner:
    """Get the provisioner created at startup."""
    provisioner = getattr(request.app.state, "provisioner", None)
    if provisioner is None:
        raise RuntimeError("Collaboration provisioner is not configured")
    return provisioner


def get_session_repository() -> SessionRepositoryInterface:
    return FirestoreSessionRepository(settings.FIRESTORE_SESSIONS_COLLECTION)


def get_user_repository() -> UserRepositoryInterface:
    return FirestoreUserRepository(settings.FIRESTORE_USERS_COLLECTION)


def get_auth_service() -> FirebaseAuthService:
    return firebase_auth_service


def get_user_service(
    user_repository: Annotated[UserRepositoryInterface, Depends(get_user_repository)],
    provisioner: Annotated[CollaborationProvisioner, Depends(get_provisioner)],
) -> UserDomainService:
    """Build the user directory service."""
    return UserDomainService(user_repository, provisioner)


def get_session_service(
    session_repository: Annotated[SessionRepositoryInterface, Depends(get_session_repository)],
    user_repository: Annotated[UserRepositoryInterface, Depends(get_user_repository)],
    provisioner: Annotated[CollaborationProvisioner, Depends(get_provisioner)],
) -> SessionDomainService:
    """Build the session lifecycle service."""
    return SessionDomainService(
        session_repository,
        user_repository,
        provisioner,
        default_max_participants=settings.SESSION_MAX_PARTICIPANTS,
        list_limit=settings.SESSION_LIST_LIMIT,
        max_write_attempts=settings.SESSION_WRITE_MAX_ATTEMPTS,
    )


async def get_current_user(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    auth_service: Annotated[FirebaseAuthService, Depends(get_auth_service)],
    user_service: Annotated[UserDomainService, Depends(get_user_service)],
) -> UserEntity:
    """Resolve the bearer token to the internal user.

    Raises:
        AuthenticationError: If the token is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Authentication required")

    principal = await auth_service.verify_token(credentials.credentials)
    user = await user_service.resolve_principal(principal)

    request.state.user_id = user.id
    logger.debug("request_authenticated", user_id=user.id)
    return user


# Type aliases for cleaner endpoint signatures
CurrentUser = Annotated[UserEntity, Depends(get_current_user)]
SessionServiceDep = Annotated[SessionDomainService, Depends(get_session_service)]
ProvisionerDep = Annotated[CollaborationProvisioner, Depends(get_provisioner)]
