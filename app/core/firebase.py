"""Firebase initialization and configuration.

This module handles Firebase Admin SDK initialization and exposes the
Firestore and Auth handles used by the repositories and the auth service.
"""

import os
from typing import Optional

import firebase_admin
from firebase_admin import (
    auth,
    credentials,
    firestore,
)
from google.cloud.firestore import Client

from app.core.config import settings
from app.core.logging import logger


class FirebaseConfig:
    """Lazily initialised Firebase Admin app with its Firestore and Auth handles."""

    def __init__(self):
        self._app: Optional[firebase_admin.App] = None
        self._firestore_client: Optional[Client] = None

    def initialize(self) -> None:
        """Initialize Firebase Admin SDK.

        Raises:
            RuntimeError: If the SDK cannot be initialized
        """
        if self._app is not None:
            return

        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None

        try:
            if settings.FIREBASE_CREDENTIALS_PATH and os.path.exists(settings.FIREBASE_CREDENTIALS_PATH):
                cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
                self._app = firebase_admin.initialize_app(cred, options)
            else:
                # Application Default Credentials (GCP runtimes, emulator)
                self._app = firebase_admin.initialize_app(options=options)
        except ValueError:
            # Already initialized by someone else in this process
            self._app = firebase_admin.get_app()
        except Exception as e:
            logger.error("firebase_initialization_failed", error=str(e), exc_info=True)
            raise RuntimeError(f"Failed to initialize Firebase: {e}") from e

        logger.info("firebase_initialized", project_id=self._app.project_id)

    @property
    def firestore(self) -> Client:
        """Firestore client bound to the app, created on first access."""
        if self._firestore_client is None:
            self.initialize()
            self._firestore_client = firestore.client(app=self._app)
        return self._firestore_client

    @property
    def auth(self):
        """Get Firebase Auth module bound to the initialized app."""
        self.initialize()
        return auth


# Process-wide Firebase handle
firebase_config = FirebaseConfig()


def get_firestore() -> Client:
    """Return the shared Firestore client."""
    return firebase_config.firestore


def get_firebase_auth():
    """Return the firebase_admin auth module for the shared app."""
    return firebase_config.auth
