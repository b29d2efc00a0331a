# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests (services against a mocked AsyncSession)
- Integration tests (FastAPI TestClient with dependency overrides)
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr

from src.domains.common.scoping import Actor
from src.models.enums import UserType

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.flush = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    return db


# =============================================================================
# Actor Fixtures
# =============================================================================


@pytest.fixture
def super_admin() -> Actor:
    return Actor(id=1, user_type=UserType.SUPER_ADMIN, tenant_id=None, ip="10.0.0.1")


@pytest.fixture
def tenant_admin() -> Actor:
    return Actor(id=7, user_type=UserType.TENANT_ADMIN, tenant_id=5, ip="10.0.0.7")


@pytest.fixture
def teacher_actor() -> Actor:
    return Actor(id=21, user_type=UserType.TEACHER, tenant_id=5, ip="10.0.0.21")


@pytest.fixture
def student_actor() -> Actor:
    return Actor(id=42, user_type=UserType.STUDENT, tenant_id=5, ip="10.0.0.42")


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    settings.refresh_token_expire_days = 7
    return settings


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
