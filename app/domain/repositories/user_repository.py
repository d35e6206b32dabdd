"""User repository interface.

This module defines the contract for user data access operations
without specifying implementation details.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from app.domain.entities import UserEntity


class UserRepositoryInterface(ABC):
    """Abstract repository interface for User operations."""

    @abstractmethod
    async def create(self, user: UserEntity) -> UserEntity:
        """Create a user.

        Raises:
            UserAlreadyExistsError: If a record with ``user.id`` exists
        """

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[UserEntity]:
        """Get user by internal id."""

    @abstractmethod
    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, UserEntity]:
        """Load several users at once.

        Returns:
            Dict[str, UserEntity]: Found users keyed by id; missing ids are absent
        """

    @abstractmethod
    async def update(self, user: UserEntity) -> UserEntity:
        """Update a user's profile fields."""
