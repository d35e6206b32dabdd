"""Realtime credential schemas."""

from app.schemas.base import CamelModel


class StreamTokenResponse(CamelModel):
    """Credentials the client uses to connect to video and chat."""

    token: str
    user_id: str
    user_name: str
    user_image: str = ""
