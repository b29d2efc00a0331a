# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for application assembly."""

import pytest
from fastapi import FastAPI
from fastapi.routing import APIRoute, APIWebSocketRoute

from src.api.app import create_app


@pytest.fixture(scope="module")
def app() -> FastAPI:
    return create_app()


def routes(app: FastAPI) -> set[tuple[str, str]]:
    registered = set()
    for route in app.routes:
        if isinstance(route, APIRoute):
            registered.update((method, route.path) for method in route.methods)
    return registered


class TestRouteRegistration:
    """Tests that every API surface is mounted under its prefix."""

    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/health"),
            ("POST", "/api/v1/auth/login"),
            ("POST", "/api/v1/auth/logout"),
            ("POST", "/api/v1/student/auth/login"),
            ("POST", "/api/v1/teacher/auth/password-reset/initiate"),
            ("POST", "/api/v1/tenants"),
            ("POST", "/api/v1/tenants/bulk/deactivate"),
            ("POST", "/api/v1/tenants/{tenant_id}/logo-light"),
            ("POST", "/api/v1/clients"),
            ("GET", "/api/v1/programs/by-tenant"),
            ("GET", "/api/v1/programs/{program_id}/specializations"),
            ("POST", "/api/v1/specializations"),
            ("POST", "/api/v1/courses/{course_id}/teachers"),
            ("GET", "/api/v1/courses/catalog"),
            ("GET", "/api/v1/courses/catalog/topics/{topic_id}/videos"),
            ("POST", "/api/v1/students"),
            ("GET", "/api/v1/student-profile"),
            ("POST", "/api/v1/teachers"),
            ("POST", "/api/v1/system-users"),
            ("POST", "/api/v1/enrollments"),
            ("PUT", "/api/v1/enrollments/progress/{student_id}/{course_id}"),
        ],
    )
    def test_route_is_registered(self, app: FastAPI, method: str, path: str) -> None:
        assert (method, path) in routes(app)

    def test_course_socket_is_registered(self, app: FastAPI) -> None:
        sockets = {r.path for r in app.routes if isinstance(r, APIWebSocketRoute)}

        assert "/ws/courses" in sockets
