"""Client-side session controller.

One controller drives one session view for one signed-in user. It keeps an
explicit membership state:

    unknown -> joining -> member
                       -> blocked(capacity)
    unknown -> blocked(not_found) when the session does not exist
    any     -> blocked(ended) once the session is completed

``ensure_membership`` is idempotent and calls ``join`` at most once per
view. Realtime connections are opened only for members of an active
session, and ``close`` never raises.
"""

from abc import (
    ABC,
    abstractmethod,
)
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Dict,
    Optional,
)

import httpx

from app.client.api_client import (
    SessionApiClient,
    SessionApiError,
)
from app.core.logging import logger

CONNECT_FAILED_MESSAGE = "Failed to connect to video call. Please refresh and try again."


class MembershipState(str, Enum):
    UNKNOWN = "unknown"
    JOINING = "joining"
    MEMBER = "member"
    BLOCKED = "blocked"


class BlockReason(str, Enum):
    CAPACITY = "capacity"
    ENDED = "ended"
    NOT_FOUND = "not_found"


@dataclass
class RealtimeHandles:
    """Open realtime connections for a session view."""

    call: Any = None
    chat: Any = None


class RealtimeConnector(ABC):
    """Opens and closes the provider's call and chat connections."""

    @abstractmethod
    async def open_call(self, credentials: Dict[str, Any], call_id: str) -> Any:
        """Join the video call and return its handle."""

    @abstractmethod
    async def open_chat(self, credentials: Dict[str, Any], call_id: str) -> Any:
        """Connect to chat, watch the channel and return its handle."""

    @abstractmethod
    async def leave_call(self, call: Any) -> None:
        """Leave the video call."""

    @abstractmethod
    async def disconnect_chat(self, chat: Any) -> None:
        """Disconnect the chat client."""


class SessionController:
    """Membership and connection state for one session view."""

    def __init__(
        self,
        api: SessionApiClient,
        connector: RealtimeConnector,
        session_id: str,
        external_id: str,
    ):
        """Initialize the controller.

        Args:
            api: Session API client authenticated as the local user
            connector: Realtime connection adapter
            session_id: Session being viewed
            external_id: Identity-provider id of the local user
        """
        self.api = api
        self.connector = connector
        self.session_id = session_id
        self.external_id = external_id

        self.state = MembershipState.UNKNOWN
        self.block_reason: Optional[BlockReason] = None
        self.snapshot: Optional[Dict[str, Any]] = None
        self.is_host = False
        self.is_participant = False
        self.last_error: Optional[str] = None
        self.handles: Optional[RealtimeHandles] = None
        self._join_attempted = False

    @property
    def is_member(self) -> bool:
        return self.is_host or self.is_participant

    @property
    def is_active(self) -> bool:
        return bool(self.snapshot) and self.snapshot.get("status") == "active"

    def reconcile(self, snapshot: Dict[str, Any]) -> MembershipState:
        """Derive membership from a session snapshot.

        Participants are read from ``participants``, falling back to the
        single ``participant`` field of older payloads.
        """
        self.snapshot = snapshot

        host = snapshot.get("host") or {}
        participants = snapshot.get("participants")
        if not participants and snapshot.get("participant"):
            participants = [snapshot["participant"]]

        self.is_host = host.get("externalId") == self.external_id
        self.is_participant = any(
            (p or {}).get("externalId") == self.external_id for p in participants or []
        )

        if snapshot.get("status") == "completed":
            self._block(BlockReason.ENDED)
        elif self.is_member:
            self.state = MembershipState.MEMBER
            self.block_reason = None
        elif self.state is MembershipState.MEMBER:
            # Removed by the host
            self.state = MembershipState.UNKNOWN

        return self.state

    async def refresh(self) -> MembershipState:
        """Fetch the latest snapshot and reconcile it."""
        return self.reconcile(await self.api.get_session(self.session_id))

    async def ensure_membership(self) -> MembershipState:
        """Make the local user a member if possible.

        API and transport failures are recorded in ``last_error`` rather
        than raised.

        Returns:
            MembershipState: The resulting state
        """
        if self.snapshot is None:
            try:
                await self.refresh()
            except SessionApiError as e:
                logger.warning("session_fetch_failed", session_id=self.session_id, status_code=e.status_code)
                self.last_error = e.message
                if e.status_code == 404:
                    self._block(BlockReason.NOT_FOUND)
                return self.state
            except httpx.HTTPError as e:
                logger.warning("session_fetch_failed", session_id=self.session_id, error=str(e))
                self.last_error = "Failed to load session"
                return self.state

        if self.state in (MembershipState.MEMBER, MembershipState.BLOCKED):
            return self.state
        if self._join_attempted:
            return self.state

        self._join_attempted = True
        self.state = MembershipState.JOINING
        logger.info("session_auto_join_started", session_id=self.session_id)

        try:
            response = await self.api.join_session(self.session_id)
        except SessionApiError as e:
            self.last_error = e.message
            if e.is_capacity:
                logger.info("session_auto_join_blocked", session_id=self.session_id, reason="capacity")
                self._block(BlockReason.CAPACITY)
            else:
                logger.warning("session_auto_join_failed", session_id=self.session_id, status_code=e.status_code)
                self.state = MembershipState.UNKNOWN
            return self.state
        except httpx.HTTPError as e:
            logger.warning("session_auto_join_failed", session_id=self.session_id, error=str(e))
            self.last_error = "Failed to join session"
            self.state = MembershipState.UNKNOWN
            return self.state

        self.last_error = None
        self.reconcile(response["session"])
        if self.state is MembershipState.JOINING:
            try:
                await self.refresh()
            except (SessionApiError, httpx.HTTPError) as e:
                logger.warning("session_fetch_failed", session_id=self.session_id, error=str(e))
                self.last_error = "Failed to load session"
        if self.state is MembershipState.JOINING:
            self.state = MembershipState.UNKNOWN
        return self.state

    def dismiss_error(self) -> None:
        self.last_error = None

    async def connect(self) -> Optional[RealtimeHandles]:
        """Open call and chat for a member of an active session.

        Returns:
            Optional[RealtimeHandles]: Open handles, or None if not eligible or the connection failed
        """
        if self.handles is not None:
            return self.handles
        if self.state is not MembershipState.MEMBER or not self.is_active:
            return None

        call_id = self.snapshot.get("callId")
        if not call_id:
            return None

        handles = RealtimeHandles()
        self.handles = handles
        try:
            credentials = await self.api.get_stream_token()
            handles.call = await self.connector.open_call(credentials, call_id)
            handles.chat = await self.connector.open_chat(credentials, call_id)
        except Exception as e:
            logger.error("realtime_connect_failed", session_id=self.session_id, call_id=call_id, error=str(e))
            self.last_error = CONNECT_FAILED_MESSAGE
            await self.close()
            return None

        logger.info("realtime_connected", session_id=self.session_id, call_id=call_id)
        return handles

    async def close(self) -> None:
        """Tear down realtime connections. Never raises."""
        handles, self.handles = self.handles, None
        if handles is None:
            return

        if handles.call is not None:
            try:
                await self.connector.leave_call(handles.call)
            except Exception as e:
                logger.warning("realtime_call_leave_failed", session_id=self.session_id, error=str(e))

        if handles.chat is not None:
            try:
                await self.connector.disconnect_chat(handles.chat)
            except Exception as e:
                logger.warning("realtime_chat_disconnect_failed", session_id=self.session_id, error=str(e))

    def _block(self, reason: BlockReason) -> None:
        self.state = MembershipState.BLOCKED
        self.block_reason = reason
