"""Firestore User Repository.

This module provides Firestore implementation for user profile storage.
Documents are keyed by the internal user id.
"""

from typing import (
    Any,
    Dict,
    Iterable,
    Optional,
)

from google.api_core.exceptions import AlreadyExists
from google.cloud.firestore import Client

from app.core.logging import logger
from app.domain.entities.user_entity import UserEntity
from app.domain.exceptions import (
    RepositoryError,
    UserAlreadyExistsError,
)
from app.domain.repositories.user_repository import UserRepositoryInterface
from app.infrastructure.firestore.base_repository import (
    BaseFirestoreRepository,
    to_datetime,
)


class FirestoreUserRepository(BaseFirestoreRepository, UserRepositoryInterface):
    """Firestore implementation of User Repository."""

    def __init__(self, collection_name: str = "users", db: Optional[Client] = None):
        """Initialize Firestore User Repository."""
        super().__init__(collection_name, db)

    async def create(self, user: UserEntity) -> UserEntity:
        """Create a new user document.

        Args:
            user: User entity to create

        Returns:
            UserEntity: Created user entity

        Raises:
            UserAlreadyExistsError: If the document already exists
        """
        try:
            self.collection.document(user.id).create(self.from_entity(user))
        except AlreadyExists as e:
            raise UserAlreadyExistsError(user.id) from e
        return user

    async def get_by_id(self, user_id: str) -> Optional[UserEntity]:
        """Get user by ID.

        Args:
            user_id: User ID

        Returns:
            Optional[UserEntity]: User entity or None if not found
        """
        if not user_id:
            return None

        data = await self.get_document(user_id)
        if data:
            return self.to_entity(data)
        return None

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, UserEntity]:
        """Batch-load users.

        Args:
            user_ids: User IDs

        Returns:
            Dict[str, UserEntity]: Found users keyed by id
        """
        documents = await self.get_documents(uid for uid in user_ids if uid)
        return {data["id"]: self.to_entity(data) for data in documents}

    async def update(self, user: UserEntity) -> UserEntity:
        """Update user profile fields.

        Args:
            user: User entity to update

        Returns:
            UserEntity: Updated user entity
        """
        data = self.from_entity(user)
        data.pop("created_at", None)
        try:
            self.collection.document(user.id).update(data)
        except Exception as e:
            logger.error("user_document_update_failed", user_id=user.id, error=str(e))
            raise RepositoryError(f"Failed to update user: {e}") from e
        return user

    def to_entity(self, data: Dict[str, Any]) -> UserEntity:
        """Convert Firestore document to UserEntity.

        Args:
            data: Document data

        Returns:
            UserEntity: User entity
        """
        return UserEntity(
            user_id=data["id"],
            external_id=data["external_id"],
            name=data.get("name", ""),
            email=data.get("email", ""),
            profile_image=data.get("profile_image", ""),
            created_at=to_datetime(data.get("created_at")),
            updated_at=to_datetime(data.get("updated_at")),
        )

    def from_entity(self, entity: UserEntity) -> Dict[str, Any]:
        """Convert UserEntity to Firestore document.

        Args:
            entity: User entity

        Returns:
            Dict[str, Any]: Document data
        """
        return {
            "external_id": entity.external_id,
            "name": entity.name,
            "email": entity.email,
            "profile_image": entity.profile_image,
            "created_at": entity.created_at,
            "updated_at": entity.updated_at,
        }
