"""Domain-specific exceptions for the interview session API.

This module contains exceptions that represent domain business rule violations
and error conditions within the domain layer. Each exception carries the HTTP
status it surfaces as, so the API layer can map them without a lookup table
drifting out of sync.
"""

from typing import (
    Any,
    Dict,
    Optional,
)


class DomainError(Exception):
    """Base exception for all domain-related errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class RepositoryError(DomainError):
    """Base exception for repository-related errors."""


class BadRequestError(DomainError):
    """Raised when request input is missing or invalid."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, "BAD_REQUEST", {"field": field} if field else None)
        self.field = field


class AuthenticationError(DomainError):
    """Raised when the caller cannot be authenticated."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, "UNAUTHORIZED")


# User-related exceptions
class UserError(DomainError):
    """Base exception for user-related errors."""


class UserAlreadyExistsError(UserError):
    """Raised when trying to create a user record that already exists."""

    status_code = 409

    def __init__(self, user_id: str):
        super().__init__(f"User with ID {user_id} already exists", "USER_ALREADY_EXISTS")
        self.user_id = user_id


# Session-related exceptions
class SessionError(DomainError):
    """Base exception for session-related errors."""


class SessionNotFoundError(SessionError):
    """Raised when a session is not found."""

    status_code = 404

    def __init__(self, session_id: str):
        super().__init__("Session not found", "SESSION_NOT_FOUND", {"session_id": session_id})
        self.session_id = session_id


class ParticipantNotFoundError(SessionError):
    """Raised when a user is not a participant of the session."""

    status_code = 404

    def __init__(self, session_id: str, participant_id: str):
        super().__init__(
            "Participant not found in this session",
            "PARTICIPANT_NOT_FOUND",
            {"session_id": session_id, "participant_id": participant_id},
        )
        self.session_id = session_id
        self.participant_id = participant_id


class ForbiddenActionError(SessionError):
    """Raised when the actor's role does not allow the action."""

    status_code = 403

    def __init__(self, message: str, action: Optional[str] = None):
        super().__init__(message, "FORBIDDEN", {"action": action} if action else None)
        self.action = action


class InvalidSessionStateError(SessionError):
    """Raised when a status or role precondition is violated."""

    status_code = 400

    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message, "INVALID_SESSION_STATE", {"session_id": session_id} if session_id else None)
        self.session_id = session_id


class SessionCapacityError(SessionError):
    """Raised when a session has reached its participant limit."""

    status_code = 409

    def __init__(self, session_id: str, max_participants: int):
        super().__init__(
            f"Session is full (maximum {max_participants} participants)",
            "SESSION_FULL",
            {"session_id": session_id, "max_participants": max_participants},
        )
        self.session_id = session_id
        self.max_participants = max_participants


class ConcurrentModificationError(RepositoryError):
    """Raised when a conditional write loses a race against another writer."""

    status_code = 409

    def __init__(self, session_id: str, expected_version: Optional[int] = None):
        super().__init__(
            "Session was modified concurrently, please retry",
            "CONCURRENT_MODIFICATION",
            {"session_id": session_id},
        )
        self.session_id = session_id
        self.expected_version = expected_version


class ProvisioningError(DomainError):
    """Raised when the external call/chat provider rejects an operation."""

    status_code = 500

    def __init__(
        self,
        operation: str,
        call_id: str,
        detail: Optional[str] = None,
        message: Optional[str] = None,
        session_id: Optional[str] = None,
    ):
        details = {"operation": operation, "call_id": call_id, "detail": detail}
        if session_id:
            details["session_id"] = session_id
        super().__init__(
            message or f"Provider operation '{operation}' failed",
            "PROVISIONING_FAILED",
            details,
        )
        self.operation = operation
        self.call_id = call_id
        self.detail = detail
        self.session_id = session_id
