# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the students API.

The service layer is replaced through dependency overrides; these tests
cover routing, role guards and the response and error envelopes.
"""

from typing import Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies import get_student_service, get_token_store
from src.api.errors import register_exception_handlers
from src.api.middleware import AuthMiddleware, RequestContextMiddleware
from src.api.v1 import students
from src.domains.auth.jwt import JWTManager
from src.domains.common.people import DuplicateUsernameError
from src.domains.student.service import StudentNotFoundError
from src.models.enums import StudentStatus
from src.models.person import StudentResponse
from tests.helpers import NOW

NEW_STUDENT = {
    "username": "jdoe",
    "email_address": "jdoe@example.com",
    "password": "S3cure!pass",
    "first_name": "John",
    "last_name": "Doe",
}


def student_response(**overrides) -> StudentResponse:
    fields = {
        "student_id": 100,
        "tenant_id": 5,
        "full_name": "John Doe",
        "first_name": "John",
        "last_name": "Doe",
        "username": "jdoe",
        "primary_email": "jdoe@example.com",
        "student_status": StudentStatus.ACTIVE,
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return StudentResponse(**fields)


@pytest.fixture
def service() -> MagicMock:
    mock = MagicMock()
    mock.create_student = AsyncMock(return_value=student_response())
    mock.get_student = AsyncMock(return_value=student_response())
    mock.list_students = AsyncMock(return_value=([student_response()], 1))
    mock.delete_student = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    return JWTManager(jwt_settings)


@pytest.fixture
def client(jwt_settings: MagicMock, service: MagicMock) -> Iterator[TestClient]:
    token_store = MagicMock()
    token_store.is_blacklisted = AsyncMock(return_value=False)

    with patch("src.api.middleware.auth.get_settings") as mock_settings:
        mock_settings.return_value.jwt = jwt_settings

        app = FastAPI()
        register_exception_handlers(app)
        app.add_middleware(AuthMiddleware)
        app.add_middleware(RequestContextMiddleware)
        app.include_router(students.router, prefix="/api/v1/students")
        app.dependency_overrides[get_token_store] = lambda: token_store
        app.dependency_overrides[get_student_service] = lambda: service

        yield TestClient(app)


def auth_header(jwt_manager: JWTManager, user_type: str, principal_id: int = 7) -> dict:
    tokens = jwt_manager.create_token_pair(
        principal_id=principal_id, user_type=user_type, tenant_id=5
    )
    return {"Authorization": f"Bearer {tokens.access_token}"}


class TestCreateStudent:
    """Tests for POST /api/v1/students."""

    def test_tenant_admin_creates_student(
        self, client: TestClient, jwt_manager: JWTManager, service: MagicMock
    ) -> None:
        response = client.post(
            "/api/v1/students",
            json=NEW_STUDENT,
            headers=auth_header(jwt_manager, "TENANT_ADMIN"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["statusCode"] == 201
        assert body["data"]["student_id"] == 100
        assert body["data"]["tenant_id"] == 5
        assert "password" not in body["data"]

        data, actor = service.create_student.await_args.args
        assert data.full_name == "John Doe"
        assert actor.id == 7
        assert actor.tenant_id == 5

    def test_duplicate_username(
        self, client: TestClient, jwt_manager: JWTManager, service: MagicMock
    ) -> None:
        service.create_student.side_effect = DuplicateUsernameError()

        response = client.post(
            "/api/v1/students",
            json=NEW_STUDENT,
            headers=auth_header(jwt_manager, "TENANT_ADMIN"),
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["errorCode"] == "DUPLICATE_USERNAME"
        assert body["path"] == "/api/v1/students"

    def test_teacher_is_forbidden(self, client: TestClient, jwt_manager: JWTManager) -> None:
        response = client.post(
            "/api/v1/students",
            json=NEW_STUDENT,
            headers=auth_header(jwt_manager, "TEACHER", principal_id=21),
        )

        assert response.status_code == 403
        assert response.json()["errorCode"] == "INSUFFICIENT_PERMISSIONS"

    def test_anonymous_is_unauthorized(self, client: TestClient) -> None:
        response = client.post("/api/v1/students", json=NEW_STUDENT)

        assert response.status_code == 401

    def test_validation_errors_list_fields(
        self, client: TestClient, jwt_manager: JWTManager
    ) -> None:
        """Test that each invalid field is reported in the details."""
        payload = {**NEW_STUDENT, "email_address": "not-an-email", "password": "short"}

        response = client.post(
            "/api/v1/students", json=payload, headers=auth_header(jwt_manager, "TENANT_ADMIN")
        )

        assert response.status_code == 400
        body = response.json()
        assert body["errorCode"] == "VALIDATION_ERROR"
        fields = {d["field"] for d in body["details"]}
        assert {"email_address", "password"} <= fields


class TestUpdateStudent:
    """Tests for PUT /api/v1/students/{student_id}."""

    def test_null_for_required_column_is_rejected(
        self, client: TestClient, jwt_manager: JWTManager, service: MagicMock
    ) -> None:
        service.update_student = AsyncMock()

        response = client.put(
            "/api/v1/students/100",
            json={"username": None, "first_name": None, "is_active": None, "middle_name": None},
            headers=auth_header(jwt_manager, "TENANT_ADMIN"),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["errorCode"] == "VALIDATION_ERROR"
        assert {d["field"] for d in body["details"]} == {"username", "first_name", "is_active"}
        service.update_student.assert_not_awaited()


class TestReadStudents:
    def test_list_is_paginated(
        self, client: TestClient, jwt_manager: JWTManager, service: MagicMock
    ) -> None:
        response = client.get(
            "/api/v1/students?page=1&limit=10&sortBy=username&order=asc",
            headers=auth_header(jwt_manager, "TEACHER", principal_id=21),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [s["username"] for s in data["items"]] == ["jdoe"]
        assert data["pagination"]["total"] == 1
        params = service.list_students.await_args.args[0]
        assert params.limit == 10
        assert params.sort_by == "username"

    def test_limit_above_maximum_is_rejected(
        self, client: TestClient, jwt_manager: JWTManager
    ) -> None:
        response = client.get(
            "/api/v1/students?limit=500", headers=auth_header(jwt_manager, "TENANT_ADMIN")
        )

        assert response.status_code == 400

    def test_missing_student(
        self, client: TestClient, jwt_manager: JWTManager, service: MagicMock
    ) -> None:
        service.get_student.side_effect = StudentNotFoundError()

        response = client.get(
            "/api/v1/students/999",
            headers={**auth_header(jwt_manager, "TENANT_ADMIN"), "X-Request-ID": "req-123"},
        )

        assert response.status_code == 404
        assert response.headers["X-Request-ID"] == "req-123"
        body = response.json()
        assert body["errorCode"] == "STUDENT_NOT_FOUND"
        assert body["correlationId"] == "req-123"

    def test_delete(self, client: TestClient, jwt_manager: JWTManager, service: MagicMock) -> None:
        response = client.delete(
            "/api/v1/students/100", headers=auth_header(jwt_manager, "SUPER_ADMIN", principal_id=1)
        )

        assert response.status_code == 200
        assert response.json()["data"] is None
        service.delete_student.assert_awaited_once()
