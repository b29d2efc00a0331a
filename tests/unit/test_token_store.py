# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Redis-backed token store."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.auth.jwt import JWTManager
from src.domains.auth.token_store import RESET_GRACE_MINUTES, TokenStore
from src.utils.datetime import format_iso, utc_now


@pytest.fixture
def redis() -> MagicMock:
    """Create mock Redis client with real key building."""
    client = MagicMock()
    client.key.side_effect = lambda *parts: ":".join(["lms", *(str(p) for p in parts)])
    client.set = AsyncMock()
    client.get = AsyncMock()
    client.delete = AsyncMock()
    client.exists = AsyncMock()
    return client


@pytest.fixture
def store(redis: MagicMock) -> TokenStore:
    return TokenStore(redis)


class TestBlacklist:
    """Tests for token revocation."""

    @pytest.mark.asyncio
    async def test_blacklist_stores_digest_with_ttl(self, store: TokenStore, redis: MagicMock) -> None:
        await store.blacklist("raw.jwt.token", ttl_seconds=300)

        key, value = redis.set.call_args.args
        assert key == f"lms:blacklist:{JWTManager.hash_token('raw.jwt.token')}"
        assert "raw.jwt.token" not in key
        assert value == "1"
        assert redis.set.call_args.kwargs["expire_seconds"] == 300

    @pytest.mark.asyncio
    async def test_blacklist_ttl_is_at_least_one_second(
        self, store: TokenStore, redis: MagicMock
    ) -> None:
        """Test that an already expired token is still remembered briefly."""
        await store.blacklist("raw.jwt.token", ttl_seconds=0)

        assert redis.set.call_args.kwargs["expire_seconds"] == 1

    @pytest.mark.asyncio
    async def test_is_blacklisted(self, store: TokenStore, redis: MagicMock) -> None:
        redis.exists.return_value = True

        assert await store.is_blacklisted("raw.jwt.token") is True
        redis.exists.assert_awaited_once_with(
            f"lms:blacklist:{JWTManager.hash_token('raw.jwt.token')}"
        )


class TestResetTokens:
    """Tests for password reset token storage."""

    @pytest.mark.asyncio
    async def test_save_reset_token(self, store: TokenStore, redis: MagicMock) -> None:
        await store.save_reset_token("student", "reset-token", principal_id=42, expire_minutes=60)

        key, value = redis.set.call_args.args
        assert key.startswith("lms:password_reset:student:")
        assert value["id"] == 42
        assert "expires_at" in value
        assert redis.set.call_args.kwargs["expire_seconds"] == (60 + RESET_GRACE_MINUTES) * 60

    @pytest.mark.asyncio
    async def test_get_reset_token(self, store: TokenStore, redis: MagicMock) -> None:
        expires_at = utc_now() + timedelta(minutes=30)
        redis.get.return_value = {"id": 42, "expires_at": format_iso(expires_at)}

        record = await store.get_reset_token("student", "reset-token")

        assert record is not None
        assert record.principal_id == 42
        assert record.is_expired is False

    @pytest.mark.asyncio
    async def test_get_reset_token_expired(self, store: TokenStore, redis: MagicMock) -> None:
        """Test that a record kept during the grace period reads as expired."""
        expires_at = utc_now() - timedelta(minutes=5)
        redis.get.return_value = {"id": 42, "expires_at": format_iso(expires_at)}

        record = await store.get_reset_token("student", "reset-token")

        assert record.is_expired is True

    @pytest.mark.asyncio
    async def test_get_reset_token_unknown(self, store: TokenStore, redis: MagicMock) -> None:
        redis.get.return_value = None

        assert await store.get_reset_token("teacher", "nope") is None

    @pytest.mark.asyncio
    async def test_delete_reset_token(self, store: TokenStore, redis: MagicMock) -> None:
        await store.delete_reset_token("teacher", "reset-token")

        redis.delete.assert_awaited_once()
        assert redis.delete.call_args.args[0].startswith("lms:password_reset:teacher:")
