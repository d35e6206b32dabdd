"""Realtime credential endpoints."""

from fastapi import (
    APIRouter,
    Request,
)

from app.core.config import settings
from app.core.dependencies import (
    CurrentUser,
    ProvisionerDep,
)
from app.core.limiter import limiter
from app.core.logging import logger
from app.schemas.chat import StreamTokenResponse

router = APIRouter()


@router.get("/token", response_model=StreamTokenResponse)
@limiter.limit(settings.RATE_LIMIT_ENDPOINTS["chat_token"][0])
async def get_stream_token(
    request: Request,
    current_user: CurrentUser,
    provisioner: ProvisionerDep,
):
    """Issue video and chat credentials for the authenticated user.

    Returns:
        StreamTokenResponse: Token plus the provider-facing identity
    """
    token = provisioner.create_user_token(current_user.external_id)
    logger.info("stream_token_issued", user_id=current_user.id)

    return StreamTokenResponse(
        token=token,
        user_id=current_user.external_id,
        user_name=current_user.name,
        user_image=current_user.profile_image,
    )
