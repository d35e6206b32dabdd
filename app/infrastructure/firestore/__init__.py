"""Firestore infrastructure package."""

from .base_repository import BaseFirestoreRepository
from .session_repository import FirestoreSessionRepository
from .user_repository import FirestoreUserRepository

__all__ = [
    "BaseFirestoreRepository",
    "FirestoreUserRepository",
    "FirestoreSessionRepository",
]
