"""Firebase Authentication service.

This module verifies Firebase ID tokens presented as bearer credentials and
returns the decoded principal claims.
"""

from typing import (
    Any,
    Dict,
)

from firebase_admin.exceptions import FirebaseError

from app.core.firebase import get_firebase_auth
from app.domain.exceptions import AuthenticationError


class FirebaseAuthService:
    """Firebase Authentication service."""

    def __init__(self, auth_client=None):
        """Initialize Firebase Auth service.

        Args:
            auth_client: Object exposing ``verify_id_token`` (defaults to ``firebase_admin.auth``)
        """
        self._auth = auth_client

    @property
    def auth(self):
        if self._auth is None:
            self._auth = get_firebase_auth()
        return self._auth

    async def verify_token(self, id_token: str) -> Dict[str, Any]:
        """Verify Firebase ID token.

        Args:
            id_token: Firebase ID token

        Returns:
            Dict[str, Any]: Decoded token with user claims

        Raises:
            AuthenticationError: If token verification fails
        """
        if not id_token:
            raise AuthenticationError("Authentication required")

        try:
            return self.auth.verify_id_token(id_token)
        except (FirebaseError, ValueError) as e:
            raise AuthenticationError(f"Invalid token: {e}") from e


firebase_auth_service = FirebaseAuthService()
