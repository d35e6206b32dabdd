"""Domain services.

This module contains domain services that encapsulate
business logic that doesn't naturally fit within entities.
"""

from .provisioner import CollaborationProvisioner, ProvisioningMetadata
from .session_service import (
    JoinOutcome,
    JoinResult,
    SessionDetails,
    SessionDomainService,
)
from .user_service import UserDomainService

__all__ = [
    "CollaborationProvisioner",
    "ProvisioningMetadata",
    "JoinOutcome",
    "JoinResult",
    "SessionDetails",
    "SessionDomainService",
    "UserDomainService",
]
