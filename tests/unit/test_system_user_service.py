# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for SystemUserService."""

from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from src.core.errors import CrossTenantAccessError
from src.domains.common.people import DuplicateEmailError, DuplicateUsernameError
from src.domains.common.scoping import Actor
from src.domains.system.user_service import (
    InsufficientRoleError,
    SelfDeleteError,
    SystemUserService,
)
from src.infrastructure.database.models import SystemUser
from src.models.enums import SystemUserStatus, UserType
from src.models.system_user import SystemUserCreate, SystemUserUpdate
from tests.helpers import NOW, scalar_result


@pytest.fixture
def service(mock_db: AsyncMock) -> SystemUserService:
    return SystemUserService(mock_db)


@pytest.fixture(autouse=True)
def fast_hash():
    with patch("src.domains.system.user_service.hash_password", return_value="hashed"):
        yield


def make_admin(**overrides) -> SystemUser:
    fields = {
        "system_user_id": 7,
        "tenant_id": 5,
        "role_type": UserType.TENANT_ADMIN,
        "username": "admin5",
        "full_name": "Tenant Admin",
        "email_address": "admin5@example.com",
        "password_hash": "hashed",
        "system_user_status": SystemUserStatus.ACTIVE,
        "login_attempts": 0,
        "is_active": True,
        "is_deleted": False,
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return SystemUser(**fields)


def create_payload(**overrides) -> SystemUserCreate:
    fields = {
        "username": "newadmin",
        "full_name": "New Admin",
        "email_address": "New@Example.com",
        "password": "S3cure!pass",
    }
    fields.update(overrides)
    return SystemUserCreate(**fields)


class TestCreateSystemUser:
    """Tests for create_system_user."""

    @pytest.mark.asyncio
    async def test_tenant_admin_creates_in_own_tenant(
        self, service: SystemUserService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        async def assign_id(user) -> None:
            user.system_user_id = 8

        mock_db.refresh.side_effect = assign_id

        result = await service.create_system_user(create_payload(), tenant_admin)

        user = mock_db.add.call_args.args[0]
        assert user.tenant_id == 5
        assert user.email_address == "new@example.com"
        assert user.password_hash == "hashed"
        assert result.system_user_id == 8
        assert result.role_type == UserType.TENANT_ADMIN
        assert "password_hash" not in result.model_dump()

    @pytest.mark.asyncio
    async def test_tenant_admin_cannot_create_super_admin(
        self, service: SystemUserService, tenant_admin: Actor
    ) -> None:
        with pytest.raises(InsufficientRoleError) as exc_info:
            await service.create_system_user(
                create_payload(role_type=UserType.SUPER_ADMIN), tenant_admin
            )

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_super_admin_creates_global_super_admin(
        self, service: SystemUserService, mock_db: AsyncMock, super_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)
        mock_db.refresh.side_effect = lambda user: setattr(user, "system_user_id", 9)

        result = await service.create_system_user(
            create_payload(role_type=UserType.SUPER_ADMIN, tenant_id=5), super_admin
        )

        assert result.tenant_id is None

    @pytest.mark.asyncio
    async def test_duplicate_username(
        self, service: SystemUserService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(make_admin(username="NewAdmin"))

        with pytest.raises(DuplicateUsernameError):
            await service.create_system_user(create_payload(), tenant_admin)

    @pytest.mark.asyncio
    async def test_duplicate_email(
        self, service: SystemUserService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(make_admin(email_address="new@example.com"))

        with pytest.raises(DuplicateEmailError):
            await service.create_system_user(create_payload(), tenant_admin)

    @pytest.mark.asyncio
    async def test_same_username_allowed_in_another_tenant(
        self, service: SystemUserService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        """Test that the duplicate lookup only looks at the caller's tenant."""
        mock_db.execute.return_value = scalar_result(None)
        mock_db.refresh.side_effect = lambda user: setattr(user, "system_user_id", 8)

        result = await service.create_system_user(create_payload(username="admin"), tenant_admin)

        assert result.username == "admin"
        assert result.tenant_id == 5
        lookup = mock_db.execute.call_args.args[0]
        assert "system_users.tenant_id = " in str(lookup)
        assert 5 in lookup.compile().params.values()

    @pytest.mark.asyncio
    async def test_super_admin_lookup_covers_global_accounts(
        self, service: SystemUserService, mock_db: AsyncMock, super_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)
        mock_db.refresh.side_effect = lambda user: setattr(user, "system_user_id", 9)

        await service.create_system_user(
            create_payload(role_type=UserType.SUPER_ADMIN), super_admin
        )

        assert "system_users.tenant_id IS NULL" in str(mock_db.execute.call_args.args[0])

    @pytest.mark.asyncio
    async def test_unique_index_violation_is_conflict(
        self, service: SystemUserService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        """Test that a concurrent insert caught by the index still answers 409."""
        mock_db.execute.return_value = scalar_result(None)
        mock_db.commit.side_effect = IntegrityError(
            "INSERT INTO system_users ...",
            {},
            Exception(
                'duplicate key value violates unique constraint "uq_system_users_email_live"'
            ),
        )

        with pytest.raises(DuplicateEmailError) as exc_info:
            await service.create_system_user(create_payload(), tenant_admin)

        assert exc_info.value.status_code == 409
        mock_db.rollback.assert_awaited_once()

    def test_student_role_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            create_payload(role_type=UserType.STUDENT)


class TestUpdateSystemUser:
    @pytest.mark.asyncio
    async def test_password_change_resets_attempts(
        self, service: SystemUserService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        admin = make_admin(system_user_id=12, login_attempts=4)
        mock_db.execute.return_value = scalar_result(admin)

        await service.update_system_user(12, SystemUserUpdate(password="N3w!password"), tenant_admin)

        assert admin.password_hash == "hashed"
        assert admin.login_attempts == 0
        assert admin.updated_by == 7


class TestDeleteSystemUser:
    @pytest.mark.asyncio
    async def test_cannot_delete_self(
        self, service: SystemUserService, tenant_admin: Actor
    ) -> None:
        with pytest.raises(SelfDeleteError) as exc_info:
            await service.delete_system_user(7, tenant_admin)

        assert exc_info.value.error_code == "CANNOT_DELETE_SELF"

    @pytest.mark.asyncio
    async def test_soft_deletes(
        self, service: SystemUserService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        admin = make_admin(system_user_id=12)
        mock_db.execute.return_value = scalar_result(admin)

        await service.delete_system_user(12, tenant_admin)

        assert admin.is_deleted is True
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_tenant_admin_cannot_touch_global_admin(
        self, service: SystemUserService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(
            make_admin(system_user_id=1, tenant_id=None, role_type=UserType.SUPER_ADMIN)
        )

        with pytest.raises(CrossTenantAccessError):
            await service.delete_system_user(1, tenant_admin)
