"""Client-side access to the session API.

``SessionApiClient`` speaks the HTTP API; ``SessionController`` decides per
session view whether to join, rejoin or block, and opens the realtime
connection once membership is confirmed.
"""

from .api_client import (
    SessionApiClient,
    SessionApiError,
)
from .session_controller import (
    BlockReason,
    MembershipState,
    RealtimeConnector,
    RealtimeHandles,
    SessionController,
)

__all__ = [
    "SessionApiClient",
    "SessionApiError",
    "BlockReason",
    "MembershipState",
    "RealtimeConnector",
    "RealtimeHandles",
    "SessionController",
]
