"""Stream provisioner.

This module implements ``CollaborationProvisioner`` over the Stream video and
chat REST APIs. Server requests are authenticated with a short HS256 server
token; clients receive per-user tokens signed with the same secret.
"""

from datetime import (
    UTC,
    datetime,
    timedelta,
)
from typing import (
    Any,
    Dict,
    List,
    Optional,
)

import httpx
from jose import jwt

from app.core.logging import logger
from app.domain.exceptions import ProvisioningError
from app.domain.services.provisioner import (
    CollaborationProvisioner,
    ProvisioningMetadata,
)

JWT_ALGORITHM = "HS256"


class StreamProvisioner(CollaborationProvisioner):
    """Stream-backed call and chat provisioning."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        chat_base_url: str = "https://chat.stream-io-api.com",
        video_base_url: str = "https://video.stream-io-api.com",
        timeout: float = 10.0,
        call_type: str = "default",
        channel_type: str = "messaging",
        token_expire_hours: int = 24,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the provisioner.

        Args:
            api_key: Stream API key
            api_secret: Stream API secret used to sign tokens
            chat_base_url: Chat REST base URL
            video_base_url: Video REST base URL
            timeout: Request timeout in seconds
            call_type: Video call type
            channel_type: Chat channel type
            token_expire_hours: Lifetime of user tokens
            http_client: Optional preconfigured client (tests inject a mock transport)
        """
        if not api_key or not api_secret:
            raise ValueError("Stream API key and secret are required")

        self.api_key = api_key
        self._api_secret = api_secret
        self.chat_base_url = chat_base_url.rstrip("/")
        self.video_base_url = video_base_url.rstrip("/")
        self.call_type = call_type
        self.channel_type = channel_type
        self.token_expire_hours = token_expire_hours
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    def _server_token(self) -> str:
        return jwt.encode({"server": True}, self._api_secret, algorithm=JWT_ALGORITHM)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": self._server_token(),
            "stream-auth-type": "jwt",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        operation: str,
        call_id: str,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send one provider request and translate failures to ProvisioningError."""
        try:
            response = await self._client.request(
                method,
                url,
                params={"api_key": self.api_key},
                headers=self._headers(),
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.error(
                "stream_request_failed",
                operation=operation,
                call_id=call_id,
                error=str(e),
            )
            raise ProvisioningError(operation, call_id, detail=str(e)) from e

        if response.is_error:
            logger.error(
                "stream_request_rejected",
                operation=operation,
                call_id=call_id,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise ProvisioningError(
                operation,
                call_id,
                detail=f"HTTP {response.status_code}: {response.text[:200]}",
            )

        logger.debug("stream_request_completed", operation=operation, call_id=call_id)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    def _call_url(self, call_id: str) -> str:
        return f"{self.video_base_url}/api/v2/video/call/{self.call_type}/{call_id}"

    def _channel_url(self, call_id: str) -> str:
        return f"{self.chat_base_url}/channels/{self.channel_type}/{call_id}"

    async def create_call(self, call_id: str, metadata: ProvisioningMetadata) -> None:
        payload = {
            "data": {
                "created_by_id": metadata.created_by_id,
                "custom": metadata.custom_data(),
            }
        }
        await self._request("create_call", call_id, "POST", self._call_url(call_id), payload)

    async def delete_call(self, call_id: str) -> None:
        await self._request(
            "delete_call",
            call_id,
            "POST",
            f"{self._call_url(call_id)}/delete",
            {"hard": True},
        )

    async def create_chat_channel(self, call_id: str, metadata: ProvisioningMetadata) -> None:
        payload = {
            "data": {
                "name": metadata.channel_name,
                "created_by_id": metadata.created_by_id,
                "members": [metadata.created_by_id],
            }
        }
        await self._request(
            "create_chat_channel",
            call_id,
            "POST",
            f"{self._channel_url(call_id)}/query",
            payload,
        )

    async def delete_chat_channel(self, call_id: str) -> None:
        await self._request("delete_chat_channel", call_id, "DELETE", self._channel_url(call_id))

    async def add_members(self, call_id: str, external_ids: List[str]) -> None:
        await self._request(
            "add_members",
            call_id,
            "POST",
            self._channel_url(call_id),
            {"add_members": list(external_ids)},
        )

    async def remove_members(self, call_id: str, external_ids: List[str]) -> None:
        await self._request(
            "remove_members",
            call_id,
            "POST",
            self._channel_url(call_id),
            {"remove_members": list(external_ids)},
        )

    async def upsert_user(self, external_id: str, name: str, image: Optional[str] = None) -> None:
        user: Dict[str, Any] = {"id": external_id, "name": name}
        if image:
            user["image"] = image
        await self._request(
            "upsert_user",
            external_id,
            "POST",
            f"{self.chat_base_url}/users",
            {"users": {external_id: user}},
        )

    def create_user_token(self, external_id: str) -> str:
        """Sign a realtime token for one user.

        Args:
            external_id: Provider-facing user id

        Returns:
            str: HS256 token accepted by both video and chat SDKs
        """
        if not external_id:
            raise ValueError("external_id is required")

        issued_at = datetime.now(UTC)
        claims = {
            "user_id": external_id,
            "iat": issued_at,
            "exp": issued_at + timedelta(hours=self.token_expire_hours),
        }
        return jwt.encode(claims, self._api_secret, algorithm=JWT_ALGORITHM)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
