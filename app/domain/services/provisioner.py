"""Collaboration provisioner interface.

The provisioner creates and tears down the video call and chat channel that
back a session, and manages chat membership. It holds no session state: every
operation is keyed by the session's ``call_id``. Implementations raise
``ProvisioningError`` on any provider failure and leave it to the caller to
decide whether that failure is fatal.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class ProvisioningMetadata:
    """Descriptive data attached to a session's call and chat channel."""

    created_by_id: str
    problem: str
    difficulty: str
    session_id: str

    @property
    def channel_name(self) -> str:
        return f"{self.problem} Session"

    def custom_data(self) -> Dict[str, str]:
        return {
            "problem": self.problem,
            "difficulty": self.difficulty,
            "sessionId": self.session_id,
        }


class CollaborationProvisioner(ABC):
    """Abstract adapter over the external video/chat provider."""

    @abstractmethod
    async def create_call(self, call_id: str, metadata: ProvisioningMetadata) -> None:
        """Create (or fetch) the video call for ``call_id``."""

    @abstractmethod
    async def delete_call(self, call_id: str) -> None:
        """Hard-delete the video call."""

    @abstractmethod
    async def create_chat_channel(self, call_id: str, metadata: ProvisioningMetadata) -> None:
        """Create the chat channel with the creator as its first member."""

    @abstractmethod
    async def delete_chat_channel(self, call_id: str) -> None:
        """Delete the chat channel."""

    @abstractmethod
    async def add_members(self, call_id: str, external_ids: List[str]) -> None:
        """Add users to the chat channel."""

    @abstractmethod
    async def remove_members(self, call_id: str, external_ids: List[str]) -> None:
        """Remove users from the chat channel."""

    @abstractmethod
    async def upsert_user(self, external_id: str, name: str, image: Optional[str] = None) -> None:
        """Register or refresh a user with the provider."""

    @abstractmethod
    def create_user_token(self, external_id: str) -> str:
        """Issue realtime credentials for a user."""

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""
