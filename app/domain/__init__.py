"""Domain layer.

This package contains the core business logic and domain models.
It is independent of any external dependencies like databases or APIs.
"""

from . import entities, repositories, services
from .exceptions import (
    AuthenticationError,
    BadRequestError,
    ConcurrentModificationError,
    DomainError,
    ForbiddenActionError,
    InvalidSessionStateError,
    ParticipantNotFoundError,
    ProvisioningError,
    RepositoryError,
    SessionCapacityError,
    SessionError,
    SessionNotFoundError,
    UserAlreadyExistsError,
    UserError,
)

__all__ = [
    "entities",
    "repositories",
    "services",
    # Exceptions
    "DomainError",
    "RepositoryError",
    "BadRequestError",
    "AuthenticationError",
    "UserError",
    "UserAlreadyExistsError",
    "SessionError",
    "SessionNotFoundError",
    "ParticipantNotFoundError",
    "ForbiddenActionError",
    "InvalidSessionStateError",
    "SessionCapacityError",
    "ConcurrentModificationError",
    "ProvisioningError",
]
