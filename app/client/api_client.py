"""HTTP client for the session API."""

from typing import (
    Any,
    Dict,
    List,
    Optional,
)

import httpx

from app.core.logging import logger


SESSION_FULL = "SESSION_FULL"


class SessionApiError(Exception):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str, body: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.body = body or {}

    @property
    def error_code(self) -> Optional[str]:
        return self.body.get("error_code") if isinstance(self.body, dict) else None

    @property
    def is_capacity(self) -> bool:
        """True only for a full session, not for other 409 conflicts."""
        return self.status_code == 409 and self.error_code == SESSION_FULL

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"


class SessionApiClient:
    """Async client for ``/sessions`` and ``/chat`` endpoints.

    Payloads are returned as the decoded camelCase JSON the API produces.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        api_prefix: str = "/api/v1",
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Server root URL
            token: Bearer token of the signed-in user
            api_prefix: Versioned API prefix
            timeout: Request timeout in seconds
            http_client: Optional preconfigured client (tests inject a mock transport)
        """
        self._prefix = api_prefix.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {token}"}

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        response = await self._client.request(
            method,
            f"{self._prefix}{path}",
            headers=self._headers,
            **kwargs,
        )

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("message") if isinstance(body, dict) else None
            logger.debug("session_api_error", method=method, path=path, status_code=response.status_code)
            raise SessionApiError(response.status_code, message or response.reason_phrase, body)

        return response.json()

    async def create_session(
        self,
        problem: str,
        difficulty: str,
        max_participants: Optional[int] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"problem": problem, "difficulty": difficulty}
        if max_participants is not None:
            payload["maxParticipants"] = max_participants
        return (await self._request("POST", "/sessions", json=payload))["session"]

    async def list_active_sessions(self) -> List[Dict[str, Any]]:
        return (await self._request("GET", "/sessions", params={"status": "active"}))["sessions"]

    async def list_my_sessions(self, status: str = "completed") -> List[Dict[str, Any]]:
        return (await self._request("GET", "/sessions/mine", params={"status": status}))["sessions"]

    async def get_session(self, session_id: str) -> Dict[str, Any]:
        return (await self._request("GET", f"/sessions/{session_id}"))["session"]

    async def join_session(self, session_id: str) -> Dict[str, Any]:
        """Join a session.

        Returns:
            Dict[str, Any]: ``{"session": ..., "message": ...}``
        """
        return await self._request("POST", f"/sessions/{session_id}/join")

    async def leave_session(self, session_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/sessions/{session_id}/leave")

    async def remove_participant(self, session_id: str, participant_id: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"/sessions/{session_id}/remove-participant",
            json={"participantId": participant_id},
        )

    async def end_session(self, session_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/sessions/{session_id}/end")

    async def get_stream_token(self) -> Dict[str, Any]:
        """Fetch realtime credentials: ``token``, ``userId``, ``userName``, ``userImage``."""
        return await self._request("GET", "/chat/token")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
