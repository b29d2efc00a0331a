# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the authentication middleware.

Tests the middleware components in isolation from the database.
"""

from typing import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from src.api.dependencies import get_token_store, require_auth
from src.api.errors import register_exception_handlers
from src.api.middleware.auth import (
    AuthMiddleware,
    CurrentUser,
    extract_bearer_token,
    get_current_user,
    is_public_path,
)
from src.domains.auth.jwt import JWTManager


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


@pytest.fixture
def token_store() -> MagicMock:
    store = MagicMock()
    store.is_blacklisted = AsyncMock(return_value=False)
    return store


@pytest.fixture
def client(jwt_settings: MagicMock, token_store: MagicMock) -> Iterator[TestClient]:
    """App with the middleware, a public route and a protected route."""
    with patch("src.api.middleware.auth.get_settings") as mock_settings:
        mock_settings.return_value.jwt = jwt_settings

        app = FastAPI()
        register_exception_handlers(app)
        app.add_middleware(AuthMiddleware)
        app.dependency_overrides[get_token_store] = lambda: token_store

        @app.get("/health")
        async def health() -> dict:
            return {"status": "ok"}

        @app.get("/whoami")
        async def whoami(request: Request) -> dict:
            user = get_current_user(request)
            if user is None:
                return {"user": None}
            return {"user": user.id, "role": user.user_type.value, "tenant": user.tenant_id}

        @app.get("/protected")
        async def protected(user: CurrentUser = Depends(require_auth)) -> dict:
            return {"user": user.id}

        yield TestClient(app)


class TestAuthMiddleware:
    """Tests for AuthMiddleware."""

    def test_public_path_bypasses_auth(self, client: TestClient) -> None:
        response = client.get("/health", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200

    def test_valid_token_sets_user(self, client: TestClient, jwt_manager: JWTManager) -> None:
        tokens = jwt_manager.create_token_pair(principal_id=42, user_type="STUDENT", tenant_id=5)

        response = client.get(
            "/whoami", headers={"Authorization": f"Bearer {tokens.access_token}"}
        )

        assert response.json() == {"user": 42, "role": "STUDENT", "tenant": 5}

    def test_refresh_token_is_not_accepted(
        self, client: TestClient, jwt_manager: JWTManager
    ) -> None:
        tokens = jwt_manager.create_token_pair(principal_id=42, user_type="STUDENT", tenant_id=5)

        response = client.get(
            "/whoami", headers={"Authorization": f"Bearer {tokens.refresh_token}"}
        )

        assert response.json() == {"user": None}

    def test_invalid_token_leaves_user_empty(self, client: TestClient) -> None:
        response = client.get("/whoami", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.json() == {"user": None}

    def test_protected_route_without_token(self, client: TestClient) -> None:
        response = client.get("/protected")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["errorCode"] == "UNAUTHORIZED"
        assert body["path"] == "/protected"

    def test_revoked_token_is_rejected(
        self, client: TestClient, jwt_manager: JWTManager, token_store: MagicMock
    ) -> None:
        """Test that a logged-out access token no longer authenticates."""
        token_store.is_blacklisted.return_value = True
        tokens = jwt_manager.create_token_pair(principal_id=7, user_type="TENANT_ADMIN", tenant_id=5)

        response = client.get(
            "/protected", headers={"Authorization": f"Bearer {tokens.access_token}"}
        )

        assert response.status_code == 401
        assert response.json()["errorCode"] == "TOKEN_REVOKED"
        token_store.is_blacklisted.assert_awaited_once_with(tokens.access_token)


class TestPathHelpers:
    @pytest.mark.parametrize(
        "path",
        [
            "/health",
            "/api/v1/auth/login",
            "/api/v1/student/auth/refresh",
            "/api/v1/teacher/auth/password-reset/initiate",
        ],
    )
    def test_public_paths(self, path: str) -> None:
        assert is_public_path(path)

    @pytest.mark.parametrize(
        "path", ["/api/v1/auth/logout", "/api/v1/students", "/api/v1/auth/me"]
    )
    def test_protected_paths(self, path: str) -> None:
        assert not is_public_path(path)

    @pytest.mark.parametrize(
        "header, expected",
        [
            ("Bearer abc", "abc"),
            ("bearer abc", "abc"),
            ("Basic abc", None),
            ("Bearer", None),
            (None, None),
        ],
    )
    def test_extract_bearer_token(self, header: str | None, expected: str | None) -> None:
        assert extract_bearer_token(header) == expected
