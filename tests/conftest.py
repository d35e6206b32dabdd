"""Configuration for pytest tests.

This file contains fixtures and setup configuration for all tests.
"""

import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Set test environment
os.environ["APP_ENV"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["STREAM_API_KEY"] = "test-key"
os.environ["STREAM_API_SECRET"] = "test-secret"

# Import app after setting environment
from app.core.dependencies import (  # noqa: E402
    get_auth_service,
    get_session_repository,
    get_user_repository,
)
from app.domain.services import (  # noqa: E402
    SessionDomainService,
    UserDomainService,
)
from app.main import app  # noqa: E402
from tests.mocks import (  # noqa: E402
    FakeAuthService,
    FakeProvisioner,
    InMemorySessionRepository,
    InMemoryUserRepository,
)


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def provisioner() -> FakeProvisioner:
    return FakeProvisioner()


@pytest.fixture
def session_service(session_repository, user_repository, provisioner) -> SessionDomainService:
    return SessionDomainService(
        session_repository,
        user_repository,
        provisioner,
        default_max_participants=10,
        list_limit=20,
        max_write_attempts=3,
    )


@pytest.fixture
def user_service(user_repository, provisioner) -> UserDomainService:
    return UserDomainService(user_repository, provisioner)


@pytest.fixture
def client(session_repository, user_repository, provisioner) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app backed by in-memory fakes."""
    app.dependency_overrides[get_session_repository] = lambda: session_repository
    app.dependency_overrides[get_user_repository] = lambda: user_repository
    app.dependency_overrides[get_auth_service] = FakeAuthService
    app.state.provisioner = provisioner

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.provisioner = None
