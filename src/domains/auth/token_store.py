# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Redis-backed token blacklist and password reset token store.

Tokens are referenced by their SHA-256 digest, never stored in clear.
Both kinds of entries expire on their own through Redis TTLs.

Key layout:
    lms:blacklist:{sha256(token)}                      -> "1"
    lms:password_reset:{principal}:{sha256(token)}     -> {"id": ..., "expires_at": ...}
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from src.domains.auth.jwt import JWTManager
from src.infrastructure.cache.redis_client import RedisClient
from src.utils.datetime import ensure_utc, format_iso, is_expired, minutes_from_now

logger = logging.getLogger(__name__)

# Reset entries outlive their expiry so a late attempt reads as expired, not unknown.
RESET_GRACE_MINUTES = 60


@dataclass(frozen=True)
class ResetTokenRecord:
    """Stored password reset request."""

    principal_id: int
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        return is_expired(self.expires_at)


class TokenStore:
    """Blacklist and reset-token operations on top of RedisClient.

    Args:
        redis: Connected Redis client.
    """

    def __init__(self, redis: RedisClient) -> None:
        self._redis = redis

    def _blacklist_key(self, token: str) -> str:
        return self._redis.key("blacklist", JWTManager.hash_token(token))

    def _reset_key(self, principal: str, token_hash: str) -> str:
        return self._redis.key("password_reset", principal, token_hash)

    async def blacklist(self, token: str, ttl_seconds: int) -> None:
        """Revoke a token until it would have expired anyway.

        Args:
            token: Raw JWT.
            ttl_seconds: How long to remember the revocation.
        """
        await self._redis.set(self._blacklist_key(token), "1", expire_seconds=max(ttl_seconds, 1))

    async def is_blacklisted(self, token: str) -> bool:
        return await self._redis.exists(self._blacklist_key(token))

    async def save_reset_token(
        self,
        principal: str,
        token: str,
        principal_id: int,
        expire_minutes: int,
    ) -> None:
        """Remember a password reset token.

        Args:
            principal: Account family ("system_user", "student", "teacher").
            token: Raw reset token sent to the user.
            principal_id: Id of the account the token resets.
            expire_minutes: Token lifetime.
        """
        expires_at = minutes_from_now(expire_minutes)
        await self._redis.set(
            self._reset_key(principal, JWTManager.hash_token(token)),
            {"id": principal_id, "expires_at": format_iso(expires_at)},
            expire_seconds=(expire_minutes + RESET_GRACE_MINUTES) * 60,
        )
        logger.info("Password reset token stored for %s %s", principal, principal_id)

    async def get_reset_token(self, principal: str, token: str) -> ResetTokenRecord | None:
        """Look up a reset token.

        Returns:
            The stored record, or None if unknown or already evicted.
        """
        data = await self._redis.get(self._reset_key(principal, JWTManager.hash_token(token)))
        if not isinstance(data, dict):
            return None
        return ResetTokenRecord(
            principal_id=int(data["id"]),
            expires_at=ensure_utc(datetime.fromisoformat(data["expires_at"])),
        )

    async def delete_reset_token(self, principal: str, token: str) -> None:
        await self._redis.delete(self._reset_key(principal, JWTManager.hash_token(token)))
