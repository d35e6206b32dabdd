"""Tests for the client-side session controller and API client.

The API client talks to the real application through ``httpx.ASGITransport``
with in-memory repositories behind it.
"""

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from app.client import (
    BlockReason,
    MembershipState,
    SessionApiClient,
    SessionApiError,
    SessionController,
)
from app.core.dependencies import (
    get_auth_service,
    get_session_repository,
    get_user_repository,
)
from app.domain.entities import internal_id_for
from app.main import app
from tests.mocks import (
    FakeAuthService,
    FakeRealtimeConnector,
)


@pytest.fixture
def wired_app(session_repository, user_repository, provisioner):
    app.dependency_overrides[get_session_repository] = lambda: session_repository
    app.dependency_overrides[get_user_repository] = lambda: user_repository
    app.dependency_overrides[get_auth_service] = FakeAuthService
    app.state.provisioner = provisioner
    yield app
    app.dependency_overrides.clear()
    app.state.provisioner = None


@pytest_asyncio.fixture
async def api_factory(wired_app) -> AsyncGenerator:
    clients = []

    def make(uid: str) -> SessionApiClient:
        http_client = httpx.AsyncClient(transport=httpx.ASGITransport(app=wired_app), base_url="http://test")
        clients.append(http_client)
        return SessionApiClient("http://test", token=uid, http_client=http_client)

    yield make

    for http_client in clients:
        await http_client.aclose()


@pytest.fixture
def connector() -> FakeRealtimeConnector:
    return FakeRealtimeConnector()


async def _hosted_session(api_factory, **extra) -> dict:
    return await api_factory("host_uid").create_session("Two Sum", "easy", **extra)


class TestSessionApiClient:
    """Test suite for the HTTP client."""

    @pytest.mark.asyncio
    async def test_error_carries_status_and_message(self, api_factory):
        api = api_factory("guest_uid")

        with pytest.raises(SessionApiError) as exc_info:
            await api.get_session("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Session not found"

    @pytest.mark.asyncio
    async def test_round_trip_calls(self, api_factory):
        host = api_factory("host_uid")
        guest = api_factory("guest_uid")
        session = await host.create_session("Two Sum", "easy", max_participants=2)

        joined = await guest.join_session(session["id"])
        assert joined["message"] == "Joined session successfully"

        active = await guest.list_active_sessions()
        assert [s["id"] for s in active] == [session["id"]]

        removed = await host.remove_participant(session["id"], internal_id_for("guest_uid"))
        assert removed["session"]["participants"] == []

        await host.end_session(session["id"])
        mine = await host.list_my_sessions()
        assert [s["id"] for s in mine] == [session["id"]]

        token = await guest.get_stream_token()
        assert token["userId"] == "guest_uid"


class TestEnsureMembership:
    """Test suite for membership reconciliation and auto-join."""

    @pytest.mark.asyncio
    async def test_host_is_member_without_joining(self, api_factory, connector, session_repository):
        session = await _hosted_session(api_factory)
        saves = session_repository.saves
        controller = SessionController(api_factory("host_uid"), connector, session["id"], "host_uid")

        state = await controller.ensure_membership()

        assert state is MembershipState.MEMBER
        assert controller.is_host
        assert not controller.is_participant
        assert session_repository.saves == saves

    @pytest.mark.asyncio
    async def test_visitor_joins_once(self, api_factory, connector):
        session = await _hosted_session(api_factory)
        controller = SessionController(api_factory("guest_uid"), connector, session["id"], "guest_uid")

        state = await controller.ensure_membership()

        assert state is MembershipState.MEMBER
        assert controller.is_participant
        assert controller.last_error is None
        assert await controller.ensure_membership() is MembershipState.MEMBER

    @pytest.mark.asyncio
    async def test_full_session_blocks_without_retry(self, api_factory, connector, provisioner):
        session = await _hosted_session(api_factory, max_participants=1)
        await api_factory("other_uid").join_session(session["id"])
        controller = SessionController(api_factory("guest_uid"), connector, session["id"], "guest_uid")

        state = await controller.ensure_membership()

        assert state is MembershipState.BLOCKED
        assert controller.block_reason is BlockReason.CAPACITY
        assert "full" in controller.last_error
        assert await controller.ensure_membership() is MembershipState.BLOCKED

    @pytest.mark.asyncio
    async def test_failed_join_is_not_retried(self, api_factory, connector, provisioner):
        session = await _hosted_session(api_factory)
        provisioner.fail_on.add("add_members")
        controller = SessionController(api_factory("guest_uid"), connector, session["id"], "guest_uid")

        state = await controller.ensure_membership()
        await controller.ensure_membership()

        assert state is MembershipState.UNKNOWN
        assert controller.last_error == "Failed to add user to session chat"
        assert provisioner.operations().count("add_members") == 1

        controller.dismiss_error()
        assert controller.last_error is None

    @pytest.mark.asyncio
    async def test_write_conflict_is_not_treated_as_full(self, api_factory, connector, session_repository):
        session = await _hosted_session(api_factory)
        session_repository.before_save = lambda repo, pending: repo.bump(session["id"])
        controller = SessionController(api_factory("guest_uid"), connector, session["id"], "guest_uid")

        state = await controller.ensure_membership()

        assert state is MembershipState.UNKNOWN
        assert controller.block_reason is None
        assert controller.last_error == "Session was modified concurrently, please retry"

    @pytest.mark.asyncio
    async def test_missing_session_blocks_without_raising(self, api_factory, connector):
        controller = SessionController(api_factory("guest_uid"), connector, "nope", "guest_uid")

        state = await controller.ensure_membership()

        assert state is MembershipState.BLOCKED
        assert controller.block_reason is BlockReason.NOT_FOUND
        assert controller.last_error == "Session not found"

    @pytest.mark.asyncio
    async def test_unreachable_server_is_reported(self, connector):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url="http://test") as http_client:
            api = SessionApiClient("http://test", token="guest_uid", http_client=http_client)
            controller = SessionController(api, connector, "s1", "guest_uid")

            state = await controller.ensure_membership()

        assert state is MembershipState.UNKNOWN
        assert controller.last_error == "Failed to load session"

    @pytest.mark.asyncio
    async def test_completed_session_blocks(self, api_factory, connector):
        session = await _hosted_session(api_factory)
        await api_factory("host_uid").end_session(session["id"])
        controller = SessionController(api_factory("guest_uid"), connector, session["id"], "guest_uid")

        state = await controller.ensure_membership()

        assert state is MembershipState.BLOCKED
        assert controller.block_reason is BlockReason.ENDED


class TestReconcile:
    """Test suite for snapshot reconciliation."""

    def _controller(self, connector) -> SessionController:
        return SessionController(api=None, connector=connector, session_id="s1", external_id="me")

    def test_legacy_participant_shape(self, connector):
        controller = self._controller(connector)

        state = controller.reconcile(
            {"status": "active", "host": {"externalId": "host"}, "participant": {"externalId": "me"}}
        )

        assert state is MembershipState.MEMBER
        assert controller.is_participant

    def test_removed_member_drops_back_to_unknown(self, connector):
        controller = self._controller(connector)
        controller.reconcile({"status": "active", "host": {"externalId": "host"}, "participants": [{"externalId": "me"}]})

        state = controller.reconcile({"status": "active", "host": {"externalId": "host"}, "participants": []})

        assert state is MembershipState.UNKNOWN
        assert not controller.is_member


class TestRealtimeConnection:
    """Test suite for connect and close."""

    @pytest.mark.asyncio
    async def test_member_connects_call_then_chat(self, api_factory, connector):
        session = await _hosted_session(api_factory)
        controller = SessionController(api_factory("guest_uid"), connector, session["id"], "guest_uid")
        await controller.ensure_membership()

        handles = await controller.connect()

        assert handles is not None
        assert connector.events == [
            ("open_call", session["callId"], "token-guest_uid"),
            ("open_chat", session["callId"], "guest_uid"),
        ]
        assert await controller.connect() is handles

    @pytest.mark.asyncio
    async def test_non_member_does_not_connect(self, api_factory, connector, provisioner):
        session = await _hosted_session(api_factory, max_participants=1)
        await api_factory("other_uid").join_session(session["id"])
        controller = SessionController(api_factory("guest_uid"), connector, session["id"], "guest_uid")
        await controller.ensure_membership()

        assert await controller.connect() is None
        assert connector.events == []

    @pytest.mark.asyncio
    async def test_connect_failure_cleans_up(self, api_factory):
        connector = FakeRealtimeConnector(fail_on={"open_chat"})
        session = await _hosted_session(api_factory)
        controller = SessionController(api_factory("host_uid"), connector, session["id"], "host_uid")
        await controller.ensure_membership()

        assert await controller.connect() is None
        assert controller.last_error.startswith("Failed to connect")
        assert ("leave_call", session["callId"]) in connector.events
        assert controller.handles is None

    @pytest.mark.asyncio
    async def test_close_never_raises(self, api_factory):
        connector = FakeRealtimeConnector(fail_on={"leave_call"})
        session = await _hosted_session(api_factory)
        controller = SessionController(api_factory("host_uid"), connector, session["id"], "host_uid")
        await controller.ensure_membership()
        await controller.connect()

        await controller.close()
        await controller.close()

        assert ("disconnect_chat", session["callId"]) in connector.events
        assert controller.handles is None
