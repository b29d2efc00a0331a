# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for JWT token utilities.

Tests the JWTManager class and token operations.
"""

import time
from unittest.mock import MagicMock

import pytest

from src.domains.auth.jwt import (
    InvalidTokenError,
    JWTManager,
    TokenExpiredError,
    TokenPair,
    TokenPayload,
)


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


class TestJWTManager:
    """Tests for JWTManager class."""

    def test_create_token_pair_returns_valid_tokens(
        self,
        jwt_manager: JWTManager,
    ) -> None:
        """Test that create_token_pair returns valid token pair."""
        result = jwt_manager.create_token_pair(
            principal_id=42,
            user_type="STUDENT",
            tenant_id=5,
            email="jdoe@example.com",
            username="jdoe",
            permissions=["catalog.read"],
        )

        assert isinstance(result, TokenPair)
        assert result.token_type == "Bearer"
        assert result.expires_in == 30 * 60
        assert result.refresh_expires_in == 7 * 24 * 60 * 60
        assert result.access_token != result.refresh_token

    def test_access_token_carries_scoping_claims(
        self,
        jwt_manager: JWTManager,
    ) -> None:
        """Test that the access token holds identity, role and tenant."""
        tokens = jwt_manager.create_token_pair(
            principal_id=42,
            user_type="STUDENT",
            tenant_id=5,
            email="jdoe@example.com",
            username="jdoe",
            permissions=["catalog.read"],
        )

        claims = jwt_manager.decode_token(tokens.access_token, "access")

        assert isinstance(claims, TokenPayload)
        assert claims.principal_id == 42
        assert claims.sub == "42"
        assert claims.user_type == "STUDENT"
        assert claims.role == "STUDENT"
        assert claims.tenant_id == 5
        assert claims.email == "jdoe@example.com"
        assert claims.username == "jdoe"
        assert claims.permissions == ["catalog.read"]

    def test_global_super_admin_has_no_tenant(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(principal_id=1, user_type="SUPER_ADMIN")

        claims = jwt_manager.decode_token(token)

        assert claims.tenant_id is None
        assert claims.permissions == []

    def test_refresh_token_type(self, jwt_manager: JWTManager) -> None:
        tokens = jwt_manager.create_token_pair(principal_id=7, user_type="TENANT_ADMIN", tenant_id=5)

        claims = jwt_manager.decode_token(tokens.refresh_token, "refresh")

        assert claims.type == "refresh"
        assert claims.principal_id == 7
        assert claims.tenant_id == 5

    def test_each_token_has_unique_jti(self, jwt_manager: JWTManager) -> None:
        first = jwt_manager.create_access_token(principal_id=1, user_type="TEACHER")
        second = jwt_manager.create_access_token(principal_id=1, user_type="TEACHER")

        assert first != second
        assert jwt_manager.decode_token(first).jti != jwt_manager.decode_token(second).jti

    def test_decode_token_wrong_type_raises(self, jwt_manager: JWTManager) -> None:
        """Test that a refresh token is refused where an access token is expected."""
        tokens = jwt_manager.create_token_pair(principal_id=42, user_type="STUDENT", tenant_id=5)

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(tokens.refresh_token, "access")

    def test_decode_token_invalid_raises(self, jwt_manager: JWTManager) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token("not-a-jwt")

    def test_decode_token_other_secret_raises(
        self,
        jwt_manager: JWTManager,
        jwt_settings: MagicMock,
    ) -> None:
        """Test that a token signed with another key is rejected."""
        other_settings = MagicMock()
        other_settings.secret_key = MagicMock()
        other_settings.secret_key.get_secret_value.return_value = "another-secret"
        other_settings.algorithm = jwt_settings.algorithm
        other_settings.access_token_expire_minutes = 30
        other_settings.refresh_token_expire_days = 7
        token = JWTManager(other_settings).create_access_token(principal_id=1, user_type="TEACHER")

        with pytest.raises(InvalidTokenError):
            jwt_manager.decode_token(token)

    def test_decode_token_expired_raises(self, jwt_settings: MagicMock) -> None:
        """Test that decode_token raises for expired token."""
        jwt_settings.access_token_expire_minutes = -1
        manager = JWTManager(jwt_settings)
        token = manager.create_access_token(principal_id=42, user_type="STUDENT")

        with pytest.raises(TokenExpiredError):
            manager.decode_token(token)

    def test_verify_token(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(principal_id=42, user_type="STUDENT")

        assert jwt_manager.verify_token(token, "access") is True
        assert jwt_manager.verify_token(token, "refresh") is False
        assert jwt_manager.verify_token("garbage") is False

    def test_seconds_until_expiry(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(principal_id=42, user_type="STUDENT")
        claims = jwt_manager.decode_token(token)

        remaining = jwt_manager.seconds_until_expiry(claims)

        assert 0 < remaining <= 30 * 60

    def test_seconds_until_expiry_never_negative(self, jwt_manager: JWTManager) -> None:
        now = int(time.time())
        claims = TokenPayload(
            sub="1", type="access", user_type="STUDENT", exp=now - 60, iat=now - 120, jti="x"
        )

        assert jwt_manager.seconds_until_expiry(claims) == 0

    def test_hash_token_is_stable_digest(self) -> None:
        digest = JWTManager.hash_token("abc")

        assert digest == JWTManager.hash_token("abc")
        assert digest != JWTManager.hash_token("abd")
        assert len(digest) == 64
