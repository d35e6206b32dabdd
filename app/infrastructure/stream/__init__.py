"""Stream video/chat provider adapter."""

from .client import StreamProvisioner

__all__ = ["StreamProvisioner"]
