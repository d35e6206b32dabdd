"""Services used by the API layer."""

from app.services.firebase_auth import (
    FirebaseAuthService,
    firebase_auth_service,
)

__all__ = [
    "FirebaseAuthService",
    "firebase_auth_service",
]
