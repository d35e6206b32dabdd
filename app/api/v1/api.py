"""API v1 router configuration.

This module sets up the main API router and includes the session and
realtime credential routers.
"""

from fastapi import APIRouter

from app.api.v1.chat import router as chat_router
from app.api.v1.sessions import router as sessions_router

api_router = APIRouter()

# Include routers
api_router.include_router(sessions_router, prefix="/sessions", tags=["sessions"])
api_router.include_router(chat_router, prefix="/chat", tags=["chat"])
