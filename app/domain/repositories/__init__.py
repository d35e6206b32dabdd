"""Repository interfaces.

This module contains abstract repository interfaces that define
the contracts for data access without specifying implementation details.
"""

from .session_repository import SessionRepositoryInterface
from .user_repository import UserRepositoryInterface

__all__ = [
    "UserRepositoryInterface",
    "SessionRepositoryInterface",
]
