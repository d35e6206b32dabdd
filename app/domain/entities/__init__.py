"""Domain entities.

This module contains pure domain entities that represent
the core business objects without any external dependencies.
"""

from .session_entity import (
    Difficulty,
    SessionEntity,
    SessionStatus,
    generate_call_id,
)
from .user_entity import (
    UserEntity,
    internal_id_for,
)

__all__ = [
    # User
    "UserEntity",
    "internal_id_for",
    # Session
    "SessionEntity",
    "SessionStatus",
    "Difficulty",
    "generate_call_id",
]
