"""Tests for the user directory service."""

import pytest

from app.domain.entities import (
    UserEntity,
    internal_id_for,
)
from app.domain.exceptions import AuthenticationError


class TestResolvePrincipal:
    """Test suite for principal resolution."""

    @pytest.mark.asyncio
    async def test_first_sight_creates_user(self, user_service, user_repository, provisioner):
        user = await user_service.resolve_principal(
            {"uid": "abc", "name": "Ada", "email": "ada@example.com", "picture": "https://img/ada.png"}
        )

        assert user.id == internal_id_for("abc")
        assert user.external_id == "abc"
        assert user.profile_image == "https://img/ada.png"
        assert user.id in user_repository.rows
        assert provisioner.calls == [("upsert_user", "abc", "Ada", "https://img/ada.png")]

    @pytest.mark.asyncio
    async def test_internal_id_is_deterministic(self, user_service):
        first = await user_service.resolve_principal({"uid": "abc", "name": "Ada"})
        second = await user_service.resolve_principal({"uid": "abc", "name": "Ada"})

        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_existing_user_profile_is_refreshed(self, user_service, user_repository):
        await user_service.resolve_principal({"uid": "abc", "name": "Ada", "email": "ada@example.com"})

        user = await user_service.resolve_principal({"uid": "abc", "name": "Ada Lovelace", "email": "ada@example.com"})

        assert user.name == "Ada Lovelace"
        assert user_repository.rows[user.id].name == "Ada Lovelace"
        assert user_repository.updates == 1

    @pytest.mark.asyncio
    async def test_unchanged_profile_is_not_written(self, user_service, user_repository):
        claims = {"uid": "abc", "name": "Ada", "email": "ada@example.com"}
        await user_service.resolve_principal(claims)
        await user_service.resolve_principal(claims)

        assert user_repository.updates == 0

    @pytest.mark.asyncio
    async def test_name_and_email_fallbacks(self, user_service):
        nameless = await user_service.resolve_principal({"uid": "u1"})
        from_email = await user_service.resolve_principal({"uid": "u2", "email": "grace@example.com"})

        assert nameless.name == "User"
        assert nameless.email == "u1@users.local"
        assert from_email.name == "grace"

    @pytest.mark.asyncio
    async def test_missing_uid_is_rejected(self, user_service):
        with pytest.raises(AuthenticationError):
            await user_service.resolve_principal({"email": "nobody@example.com"})

    @pytest.mark.asyncio
    async def test_concurrent_creation_falls_back_to_read(self, user_service, user_repository):
        existing = UserEntity(external_id="abc", name="Ada")
        original_get = user_repository.get_by_id
        lookups = {"count": 0}

        async def racing_get(user_id):
            # The first lookup misses; another request creates the user meanwhile
            lookups["count"] += 1
            if lookups["count"] == 1:
                user_repository.rows[existing.id] = existing
                return None
            return await original_get(user_id)

        user_repository.get_by_id = racing_get

        user = await user_service.resolve_principal({"uid": "abc", "name": "Ada"})

        assert user.id == existing.id
        assert len(user_repository.rows) == 1

    @pytest.mark.asyncio
    async def test_provider_registration_failure_is_ignored(self, user_service, user_repository, provisioner):
        provisioner.fail_on.add("upsert_user")

        user = await user_service.resolve_principal({"uid": "abc", "name": "Ada"})

        assert user.id in user_repository.rows
