"""User directory domain service.

Resolves a verified identity-provider principal to the internal user
record, creating the record the first time the principal is seen.
"""

from typing import (
    Any,
    Dict,
    Optional,
)

from app.core.logging import logger
from app.domain.entities import (
    UserEntity,
    internal_id_for,
)
from app.domain.entities.user_entity import DEFAULT_USER_NAME
from app.domain.exceptions import (
    AuthenticationError,
    ProvisioningError,
    UserAlreadyExistsError,
)
from app.domain.repositories import UserRepositoryInterface
from app.domain.services.provisioner import CollaborationProvisioner


def _display_name(principal: Dict[str, Any]) -> str:
    name = (principal.get("name") or "").strip()
    if name:
        return name

    email = principal.get("email") or ""
    if "@" in email:
        return email.split("@", 1)[0]
    return DEFAULT_USER_NAME


class UserDomainService:
    """Domain service for user lookup and lazy creation."""

    def __init__(
        self,
        user_repository: UserRepositoryInterface,
        provisioner: Optional[CollaborationProvisioner] = None,
    ):
        """Initialize the user domain service.

        Args:
            user_repository: Repository for user data access
            provisioner: Optional provider adapter users are registered with
        """
        self.user_repository = user_repository
        self.provisioner = provisioner

    async def resolve_principal(self, principal: Dict[str, Any]) -> UserEntity:
        """Map verified token claims to a user, creating it on first sight.

        Profile fields are refreshed when the provider reports new values.

        Args:
            principal: Decoded identity token claims (``uid``, ``name``,
                ``email``, ``picture``)

        Returns:
            UserEntity: The internal user

        Raises:
            AuthenticationError: If the principal carries no id
        """
        external_id = principal.get("uid") or principal.get("sub")
        if not external_id:
            raise AuthenticationError("Token does not identify a user")

        name = _display_name(principal)
        email = principal.get("email") or f"{external_id}@users.local"
        image = principal.get("picture") or ""

        user = await self.user_repository.get_by_id(internal_id_for(external_id))
        if user is None:
            return await self._create(external_id, name, email, image)

        if user.update_profile(name=name, email=email, profile_image=image):
            user = await self.user_repository.update(user)
            logger.info("user_profile_refreshed", user_id=user.id)
        return user

    async def _create(self, external_id: str, name: str, email: str, image: str) -> UserEntity:
        user = UserEntity(external_id=external_id, name=name, email=email, profile_image=image)
        try:
            user = await self.user_repository.create(user)
        except UserAlreadyExistsError:
            # Another request created the same principal first
            existing = await self.user_repository.get_by_id(user.id)
            if existing is None:
                raise
            return existing

        logger.info("user_created", user_id=user.id, external_id=external_id)

        if self.provisioner is not None:
            try:
                await self.provisioner.upsert_user(user.external_id, user.name, user.profile_image or None)
            except ProvisioningError as e:
                logger.warning("provider_user_upsert_failed", user_id=user.id, error=str(e))

        return user
