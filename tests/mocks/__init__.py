"""Mock services for testing.

This package contains in-memory implementations of the repositories, the
collaboration provisioner, identity verification and the realtime
connector, so tests run without Firestore or Stream.
"""

import copy
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Set,
)

from app.client.session_controller import RealtimeConnector
from app.domain.entities import (
    SessionEntity,
    SessionStatus,
    UserEntity,
)
from app.domain.exceptions import (
    AuthenticationError,
    ConcurrentModificationError,
    ProvisioningError,
    SessionNotFoundError,
    UserAlreadyExistsError,
)
from app.domain.repositories import (
    SessionRepositoryInterface,
    UserRepositoryInterface,
)
from app.domain.services import (
    CollaborationProvisioner,
    ProvisioningMetadata,
)


class InMemorySessionRepository(SessionRepositoryInterface):
    """Session store with the same versioned conditional save as Firestore.

    ``before_save`` runs just before each conditional write and may mutate
    ``self.rows`` to simulate a concurrent writer.
    """

    def __init__(self):
        self.rows: Dict[str, SessionEntity] = {}
        self.saves = 0
        self.deleted: List[str] = []
        self.before_save: Optional[Callable[["InMemorySessionRepository", SessionEntity], None]] = None

    async def create(self, session: SessionEntity) -> SessionEntity:
        session.version = 0
        self.rows[session.id] = copy.deepcopy(session)
        return session

    async def get_by_id(self, session_id: str) -> Optional[SessionEntity]:
        row = self.rows.get(session_id)
        return copy.deepcopy(row) if row else None

    async def save(self, session: SessionEntity) -> SessionEntity:
        if self.before_save is not None:
            self.before_save(self, session)

        stored = self.rows.get(session.id)
        if stored is None:
            raise SessionNotFoundError(session.id)
        if stored.version != session.version:
            raise ConcurrentModificationError(session.id, expected_version=session.version)

        session.version += 1
        self.rows[session.id] = copy.deepcopy(session)
        self.saves += 1
        return session

    async def delete(self, session_id: str) -> bool:
        self.deleted.append(session_id)
        return self.rows.pop(session_id, None) is not None

    async def list_by_status(self, status: SessionStatus, limit: int = 20) -> List[SessionEntity]:
        rows = [s for s in self.rows.values() if s.status == status]
        rows.sort(key=lambda s: s.created_at, reverse=True)
        return [copy.deepcopy(s) for s in rows[:limit]]

    async def list_for_member(
        self,
        user_id: str,
        status: Optional[SessionStatus] = None,
        limit: int = 20,
    ) -> List[SessionEntity]:
        rows = [
            s
            for s in self.rows.values()
            if user_id in s.member_ids and (status is None or s.status == status)
        ]
        rows.sort(key=lambda s: s.created_at, reverse=True)
        return [copy.deepcopy(s) for s in rows[:limit]]

    def bump(self, session_id: str, mutate: Optional[Callable[[SessionEntity], None]] = None) -> None:
        """Apply an out-of-band write, as another request would."""
        row = self.rows[session_id]
        if mutate is not None:
            mutate(row)
        row.version += 1


class InMemoryUserRepository(UserRepositoryInterface):
    """User store keyed by internal id."""

    def __init__(self):
        self.rows: Dict[str, UserEntity] = {}
        self.updates = 0

    async def create(self, user: UserEntity) -> UserEntity:
        if user.id in self.rows:
            raise UserAlreadyExistsError(user.id)
        self.rows[user.id] = copy.deepcopy(user)
        return user

    async def get_by_id(self, user_id: str) -> Optional[UserEntity]:
        row = self.rows.get(user_id)
        return copy.deepcopy(row) if row else None

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, UserEntity]:
        return {uid: copy.deepcopy(self.rows[uid]) for uid in user_ids if uid in self.rows}

    async def update(self, user: UserEntity) -> UserEntity:
        self.rows[user.id] = copy.deepcopy(user)
        self.updates += 1
        return user

    def add(self, external_id: str, name: Optional[str] = None) -> UserEntity:
        user = UserEntity(
            external_id=external_id,
            name=name or external_id.title(),
            email=f"{external_id}@example.com",
        )
        self.rows[user.id] = user
        return copy.deepcopy(user)


class FakeProvisioner(CollaborationProvisioner):
    """Records provider calls; operations named in ``fail_on`` raise."""

    def __init__(self, fail_on: Optional[Set[str]] = None):
        self.fail_on: Set[str] = set(fail_on or ())
        self.calls: List[tuple] = []
        self.closed = False

    def _record(self, operation: str, call_id: str, *args: Any) -> None:
        self.calls.append((operation, call_id, *args))
        if operation in self.fail_on:
            raise ProvisioningError(operation, call_id, detail="simulated provider failure")

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def create_call(self, call_id: str, metadata: ProvisioningMetadata) -> None:
        self._record("create_call", call_id, metadata)

    async def delete_call(self, call_id: str) -> None:
        self._record("delete_call", call_id)

    async def create_chat_channel(self, call_id: str, metadata: ProvisioningMetadata) -> None:
        self._record("create_chat_channel", call_id, metadata)

    async def delete_chat_channel(self, call_id: str) -> None:
        self._record("delete_chat_channel", call_id)

    async def add_members(self, call_id: str, external_ids: List[str]) -> None:
        self._record("add_members", call_id, list(external_ids))

    async def remove_members(self, call_id: str, external_ids: List[str]) -> None:
        self._record("remove_members", call_id, list(external_ids))

    async def upsert_user(self, external_id: str, name: str, image: Optional[str] = None) -> None:
        self._record("upsert_user", external_id, name, image)

    def create_user_token(self, external_id: str) -> str:
        return f"token-{external_id}"

    async def aclose(self) -> None:
        self.closed = True


class FakeAuthService:
    """Treats the bearer token as the identity-provider uid."""

    INVALID_TOKEN = "invalid_token"

    async def verify_token(self, id_token: str) -> Dict[str, Any]:
        if not id_token or id_token == self.INVALID_TOKEN:
            raise AuthenticationError("Invalid token: signature mismatch")
        return {
            "uid": id_token,
            "name": id_token.title(),
            "email": f"{id_token}@example.com",
            "picture": f"https://img.example.com/{id_token}.png",
        }


class FakeRealtimeConnector(RealtimeConnector):
    """Realtime connector that records opens and closes."""

    def __init__(self, fail_on: Optional[Set[str]] = None):
        self.fail_on: Set[str] = set(fail_on or ())
        self.events: List[tuple] = []

    def _record(self, event: str, *args: Any) -> None:
        self.events.append((event, *args))
        if event in self.fail_on:
            raise RuntimeError(f"{event} failed")

    async def open_call(self, credentials: Dict[str, Any], call_id: str) -> Any:
        self._record("open_call", call_id, credentials["token"])
        return {"call": call_id}

    async def open_chat(self, credentials: Dict[str, Any], call_id: str) -> Any:
        self._record("open_chat", call_id, credentials["userId"])
        return {"channel": call_id}

    async def leave_call(self, call: Any) -> None:
        self._record("leave_call", call["call"])

    async def disconnect_chat(self, chat: Any) -> None:
        self._record("disconnect_chat", chat["channel"])


def auth_headers(uid: str) -> Dict[str, str]:
    """Bearer header for a test principal; the fake auth service uses the token as uid."""
    return {"Authorization": f"Bearer {uid}"}
