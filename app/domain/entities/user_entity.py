"""User domain entity.

This module contains the pure domain model for User,
independent of any external dependencies or frameworks.
"""

import uuid
from datetime import (
    UTC,
    datetime,
)
from typing import Optional

# Internal ids are derived from the identity-provider id so that creating the
# same principal twice always targets the same record.
USER_ID_NAMESPACE = uuid.UUID("6f1c7c86-2f3e-4b43-9a5e-1d0c3a8f4e21")

DEFAULT_USER_NAME = "User"


def internal_id_for(external_id: str) -> str:
    """Return the internal user id for an identity-provider id."""
    return str(uuid.uuid5(USER_ID_NAMESPACE, external_id))


class UserEntity:
    """Pure domain entity for an authenticated user.

    The external id is the identity provider's principal id and never
    changes after creation. Profile fields mirror what the provider reports.
    """

    def __init__(
        self,
        external_id: str,
        name: str = DEFAULT_USER_NAME,
        email: str = "",
        profile_image: str = "",
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ):
        """Initialize a User entity.

        Args:
            external_id: Identity-provider principal id
            name: Display name
            email: Email address
            profile_image: Avatar URL
            created_at: Creation timestamp
            updated_at: Last update timestamp
            user_id: Internal id (derived from external_id when omitted)
        """
        if not external_id:
            raise ValueError("external_id is required")

        self.id = user_id or internal_id_for(external_id)
        self.external_id = external_id
        self.name = name or DEFAULT_USER_NAME
        self.email = email or ""
        self.profile_image = profile_image or ""
        self.created_at = created_at or datetime.now(UTC)
        self.updated_at = updated_at or self.created_at

    def update_profile(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> bool:
        """Apply provider-reported profile values.

        Returns:
            bool: True if any field changed
        """
        changed = False
        for attr, value in (("name", name), ("email", email), ("profile_image", profile_image)):
            if value and getattr(self, attr) != value:
                setattr(self, attr, value)
                changed = True

        if changed:
            self.updated_at = datetime.now(UTC)
        return changed

    def __eq__(self, other) -> bool:
        if not isinstance(other, UserEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"UserEntity(id={self.id!r}, external_id={self.external_id!r}, name={self.name!r})"
