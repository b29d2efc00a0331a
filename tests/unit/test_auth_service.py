# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the login, token and password reset flows."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.errors import TenantNotFoundError, UnauthorizedError
from src.domains.auth.jwt import JWTManager
from src.domains.auth.service import (
    AccountLockedError,
    AuthService,
    ExpiredResetTokenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    InvalidResetTokenError,
    StudentAuthService,
    TenantContextRequiredError,
    TenantMismatchError,
    TokenRevokedError,
)
from src.domains.auth.token_store import ResetTokenRecord
from src.domains.system.auth_service import SystemAuthService
from src.infrastructure.database.models import Student, SystemUser, Tenant
from src.models.enums import StudentStatus, SystemUserStatus, UserType
from src.utils.datetime import utc_now
from tests.helpers import scalar_result, scalars_result


def unique_scalars_result(values: list) -> MagicMock:
    """Mock a Result whose scalars().unique().all() returns ``values``."""
    result = MagicMock()
    result.scalars.return_value.unique.return_value.all.return_value = values
    return result


def make_admin(**overrides) -> SystemUser:
    fields = {
        "system_user_id": 1,
        "tenant_id": None,
        "role_type": UserType.SUPER_ADMIN,
        "username": "root",
        "full_name": "Root Admin",
        "email_address": "root@example.com",
        "password_hash": "hashed",
        "login_attempts": 0,
        "system_user_status": SystemUserStatus.ACTIVE,
        "is_active": True,
        "is_deleted": False,
    }
    fields.update(overrides)
    return SystemUser(**fields)


def make_student(**overrides) -> Student:
    fields = {
        "student_id": 42,
        "tenant_id": 5,
        "username": "jdoe",
        "full_name": "John Doe",
        "first_name": "John",
        "last_name": "Doe",
        "password_hash": "hashed",
        "login_attempts": 0,
        "student_status": StudentStatus.ACTIVE,
        "is_active": True,
        "is_deleted": False,
    }
    fields.update(overrides)
    return Student(**fields)


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    return JWTManager(jwt_settings)


@pytest.fixture
def token_store() -> MagicMock:
    store = MagicMock()
    store.is_blacklisted = AsyncMock(return_value=False)
    store.blacklist = AsyncMock()
    store.save_reset_token = AsyncMock()
    store.get_reset_token = AsyncMock(return_value=None)
    store.delete_reset_token = AsyncMock()
    return store


@pytest.fixture
def hasher() -> MagicMock:
    mock = MagicMock()
    mock.verify.return_value = True
    mock.hash.return_value = "new-hash"
    return mock


@pytest.fixture
def admin_auth(
    mock_db: AsyncMock, jwt_manager: JWTManager, token_store: MagicMock, hasher: MagicMock
) -> SystemAuthService:
    return SystemAuthService(mock_db, jwt_manager, token_store, hasher, max_login_attempts=5)


@pytest.fixture
def student_auth(
    mock_db: AsyncMock, jwt_manager: JWTManager, token_store: MagicMock, hasher: MagicMock
) -> StudentAuthService:
    return StudentAuthService(mock_db, jwt_manager, token_store, hasher)


class TestAdminLogin:
    """Tests for SystemAuthService.login."""

    @pytest.mark.asyncio
    async def test_login_success(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock, jwt_manager: JWTManager
    ) -> None:
        admin = make_admin(login_attempts=2)
        mock_db.execute.return_value = scalars_result([admin])

        result = await admin_auth.login(" Root@Example.com ", "S3cure!pass")

        assert admin.login_attempts == 0
        assert admin.last_login_at is not None
        assert result.user.role == UserType.SUPER_ADMIN
        assert result.user.tenant_id is None
        assert result.permissions == ["*"]
        claims = jwt_manager.decode_token(result.tokens.access_token)
        assert claims.principal_id == 1
        assert claims.email == "root@example.com"

    @pytest.mark.asyncio
    async def test_unknown_email(self, admin_auth: SystemAuthService, mock_db: AsyncMock) -> None:
        mock_db.execute.return_value = scalars_result([])

        with pytest.raises(InvalidCredentialsError):
            await admin_auth.login("ghost@example.com", "whatever")

    @pytest.mark.asyncio
    async def test_suspended_account(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.return_value = scalars_result(
            [make_admin(system_user_status=SystemUserStatus.SUSPENDED)]
        )

        with pytest.raises(InvalidCredentialsError):
            await admin_auth.login("root@example.com", "S3cure!pass")

    @pytest.mark.asyncio
    async def test_wrong_password_counts_attempt(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock, hasher: MagicMock
    ) -> None:
        admin = make_admin(login_attempts=1)
        mock_db.execute.return_value = scalars_result([admin])
        hasher.verify.return_value = False

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await admin_auth.login("root@example.com", "wrong")

        assert exc_info.value.status_code == 401
        assert admin.login_attempts == 2
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_locked_after_max_attempts(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock, hasher: MagicMock
    ) -> None:
        mock_db.execute.return_value = scalars_result([make_admin(login_attempts=5)])

        with pytest.raises(AccountLockedError):
            await admin_auth.login("root@example.com", "S3cure!pass")

        hasher.verify.assert_not_called()

    @pytest.mark.asyncio
    async def test_super_admin_acts_in_tenant(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock, jwt_manager: JWTManager
    ) -> None:
        tenant = Tenant(tenant_id=5, tenant_name="Acme Academy")
        mock_db.execute.side_effect = [scalars_result([make_admin()]), scalar_result(tenant)]

        result = await admin_auth.login("root@example.com", "S3cure!pass", "acme academy")

        assert result.user.tenant_id == 5
        assert jwt_manager.decode_token(result.tokens.access_token).tenant_id == 5

    @pytest.mark.asyncio
    async def test_super_admin_unknown_tenant(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.side_effect = [scalars_result([make_admin()]), scalar_result(None)]

        with pytest.raises(TenantNotFoundError):
            await admin_auth.login("root@example.com", "S3cure!pass", "99")

    @pytest.mark.asyncio
    async def test_tenant_admin_other_tenant(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock
    ) -> None:
        admin = make_admin(system_user_id=7, role_type=UserType.TENANT_ADMIN, tenant_id=5)
        mock_db.execute.side_effect = [
            scalars_result([admin]),
            scalar_result(Tenant(tenant_id=6, tenant_name="Beta")),
        ]

        with pytest.raises(TenantMismatchError):
            await admin_auth.login("root@example.com", "S3cure!pass", "6")

    @pytest.mark.asyncio
    async def test_email_of_admins_in_several_tenants_needs_context(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.return_value = scalars_result(
            [
                make_admin(system_user_id=7, role_type=UserType.TENANT_ADMIN, tenant_id=5),
                make_admin(system_user_id=8, role_type=UserType.TENANT_ADMIN, tenant_id=6),
            ]
        )

        with pytest.raises(TenantContextRequiredError) as exc_info:
            await admin_auth.login("root@example.com", "S3cure!pass")

        assert exc_info.value.error_code == "TENANT_CONTEXT_REQUIRED"

    @pytest.mark.asyncio
    async def test_context_picks_admin_of_that_tenant(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.side_effect = [
            scalars_result(
                [
                    make_admin(),
                    make_admin(system_user_id=7, role_type=UserType.TENANT_ADMIN, tenant_id=5),
                    make_admin(system_user_id=8, role_type=UserType.TENANT_ADMIN, tenant_id=6),
                ]
            ),
            scalar_result(Tenant(tenant_id=6, tenant_name="Beta")),
        ]

        result = await admin_auth.login("root@example.com", "S3cure!pass", "Beta")

        assert result.user.id == 8
        assert result.user.role == UserType.TENANT_ADMIN
        assert result.user.tenant_id == 6

    @pytest.mark.asyncio
    async def test_super_admin_sharing_email_acts_in_other_tenant(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.side_effect = [
            scalars_result(
                [
                    make_admin(system_user_id=7, role_type=UserType.TENANT_ADMIN, tenant_id=5),
                    make_admin(),
                ]
            ),
            scalar_result(Tenant(tenant_id=9, tenant_name="Gamma")),
        ]

        result = await admin_auth.login("root@example.com", "S3cure!pass", "9")

        assert result.user.id == 1
        assert result.user.tenant_id == 9


class TestStudentLogin:
    """Tests for StudentAuthService.login."""

    @pytest.mark.asyncio
    async def test_login_success(
        self, student_auth: StudentAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.side_effect = [
            unique_scalars_result([make_student()]),
            scalar_result("jdoe@example.com"),
        ]

        result = await student_auth.login("jdoe@example.com", "S3cure!pass")

        assert result.user.id == 42
        assert result.user.role == UserType.STUDENT
        assert result.user.tenant_id == 5
        assert result.user.email == "jdoe@example.com"
        assert "progress.update.own" in result.permissions

    @pytest.mark.asyncio
    async def test_blacklisted_student_cannot_log_in(
        self, student_auth: StudentAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.return_value = unique_scalars_result(
            [make_student(student_status=StudentStatus.BLACKLISTED)]
        )

        with pytest.raises(InvalidCredentialsError):
            await student_auth.login("jdoe@example.com", "S3cure!pass")

    @pytest.mark.asyncio
    async def test_email_in_several_tenants_needs_context(
        self, student_auth: StudentAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.return_value = unique_scalars_result(
            [make_student(), make_student(student_id=43, tenant_id=6)]
        )

        with pytest.raises(TenantContextRequiredError):
            await student_auth.login("jdoe@example.com", "S3cure!pass")

    @pytest.mark.asyncio
    async def test_context_picks_tenant_account(
        self, student_auth: StudentAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.side_effect = [
            unique_scalars_result([make_student(), make_student(student_id=43, tenant_id=6)]),
            scalar_result(Tenant(tenant_id=6, tenant_name="Beta")),
            scalar_result("jdoe@example.com"),
        ]

        result = await student_auth.login("jdoe@example.com", "S3cure!pass", "6")

        assert result.user.id == 43
        assert result.user.tenant_id == 6

    @pytest.mark.asyncio
    async def test_context_of_foreign_tenant(
        self, student_auth: StudentAuthService, mock_db: AsyncMock
    ) -> None:
        mock_db.execute.side_effect = [
            unique_scalars_result([make_student()]),
            scalar_result(Tenant(tenant_id=6, tenant_name="Beta")),
        ]

        with pytest.raises(TenantMismatchError) as exc_info:
            await student_auth.login("jdoe@example.com", "S3cure!pass", "Beta")

        assert exc_info.value.status_code == 403


class TestTokens:
    """Tests for refresh and logout."""

    @pytest.mark.asyncio
    async def test_refresh_rotates_tokens(
        self,
        student_auth: StudentAuthService,
        mock_db: AsyncMock,
        jwt_manager: JWTManager,
        token_store: MagicMock,
    ) -> None:
        old = jwt_manager.create_token_pair(principal_id=42, user_type="STUDENT", tenant_id=5)
        mock_db.execute.return_value = scalar_result(make_student())

        tokens = await student_auth.refresh(old.refresh_token)

        token_store.blacklist.assert_awaited_once()
        assert token_store.blacklist.await_args.args[0] == old.refresh_token
        assert tokens.refresh_token != old.refresh_token
        assert jwt_manager.decode_token(tokens.access_token).tenant_id == 5

    @pytest.mark.asyncio
    async def test_refresh_with_revoked_token(
        self, student_auth: StudentAuthService, jwt_manager: JWTManager, token_store: MagicMock
    ) -> None:
        old = jwt_manager.create_token_pair(principal_id=42, user_type="STUDENT", tenant_id=5)
        token_store.is_blacklisted.return_value = True

        with pytest.raises(TokenRevokedError):
            await student_auth.refresh(old.refresh_token)

    @pytest.mark.asyncio
    async def test_refresh_with_access_token(
        self, student_auth: StudentAuthService, jwt_manager: JWTManager
    ) -> None:
        old = jwt_manager.create_token_pair(principal_id=42, user_type="STUDENT", tenant_id=5)

        with pytest.raises(InvalidRefreshTokenError):
            await student_auth.refresh(old.access_token)

    @pytest.mark.asyncio
    async def test_refresh_token_of_other_account_family(
        self, student_auth: StudentAuthService, jwt_manager: JWTManager
    ) -> None:
        old = jwt_manager.create_token_pair(principal_id=21, user_type="TEACHER", tenant_id=5)

        with pytest.raises(InvalidRefreshTokenError):
            await student_auth.refresh(old.refresh_token)

    @pytest.mark.asyncio
    async def test_logout_blacklists_both_tokens(
        self, admin_auth: SystemAuthService, jwt_manager: JWTManager, token_store: MagicMock
    ) -> None:
        pair = jwt_manager.create_token_pair(principal_id=1, user_type="SUPER_ADMIN")

        await admin_auth.logout(pair.access_token, pair.refresh_token)

        revoked = [call.args[0] for call in token_store.blacklist.await_args_list]
        assert revoked == [pair.access_token, pair.refresh_token]

    @pytest.mark.asyncio
    async def test_me_for_deleted_account(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock, jwt_manager: JWTManager
    ) -> None:
        pair = jwt_manager.create_token_pair(principal_id=1, user_type="SUPER_ADMIN")
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(UnauthorizedError):
            await admin_auth.me(jwt_manager.decode_token(pair.access_token))


class TestPasswordReset:
    """Tests for the password reset flow."""

    @pytest.mark.asyncio
    async def test_unknown_email_is_silent(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock, token_store: MagicMock
    ) -> None:
        mock_db.execute.return_value = scalars_result([])

        assert await admin_auth.initiate_password_reset("ghost@example.com") is None
        token_store.save_reset_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_initiate_stores_token(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock, token_store: MagicMock
    ) -> None:
        mock_db.execute.return_value = scalars_result([make_admin()])

        token = await admin_auth.initiate_password_reset("root@example.com")

        token_store.save_reset_token.assert_awaited_once_with("system_user", token, 1, 60)

    @pytest.mark.asyncio
    async def test_initiate_for_email_in_several_tenants_needs_context(
        self, student_auth: StudentAuthService, mock_db: AsyncMock, token_store: MagicMock
    ) -> None:
        mock_db.execute.return_value = unique_scalars_result(
            [make_student(), make_student(student_id=43, tenant_id=6)]
        )

        with pytest.raises(TenantContextRequiredError):
            await student_auth.initiate_password_reset("jdoe@example.com")

        token_store.save_reset_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_initiate_with_context_resets_that_tenants_account(
        self, student_auth: StudentAuthService, mock_db: AsyncMock, token_store: MagicMock
    ) -> None:
        mock_db.execute.side_effect = [
            unique_scalars_result([make_student(), make_student(student_id=43, tenant_id=6)]),
            scalar_result(Tenant(tenant_id=6, tenant_name="Beta")),
        ]

        token = await student_auth.initiate_password_reset("jdoe@example.com", "Beta")

        token_store.save_reset_token.assert_awaited_once_with("student", token, 43, 60)

    @pytest.mark.asyncio
    async def test_finalize_unknown_token(
        self, admin_auth: SystemAuthService
    ) -> None:
        with pytest.raises(InvalidResetTokenError):
            await admin_auth.finalize_password_reset("a" * 64, "N3w!password")

    @pytest.mark.asyncio
    async def test_finalize_expired_token(
        self, admin_auth: SystemAuthService, token_store: MagicMock
    ) -> None:
        token_store.get_reset_token.return_value = ResetTokenRecord(
            principal_id=1, expires_at=utc_now() - timedelta(minutes=1)
        )

        with pytest.raises(ExpiredResetTokenError):
            await admin_auth.finalize_password_reset("a" * 64, "N3w!password")

        token_store.delete_reset_token.assert_awaited_once_with("system_user", "a" * 64)

    @pytest.mark.asyncio
    async def test_finalize_unlocks_account(
        self, admin_auth: SystemAuthService, mock_db: AsyncMock, token_store: MagicMock
    ) -> None:
        admin = make_admin(
            login_attempts=5, is_active=False, system_user_status=SystemUserStatus.LOCKED
        )
        token_store.get_reset_token.return_value = ResetTokenRecord(
            principal_id=1, expires_at=utc_now() + timedelta(minutes=30)
        )
        mock_db.execute.return_value = scalar_result(admin)

        await admin_auth.finalize_password_reset("a" * 64, "N3w!password")

        assert admin.password_hash == "new-hash"
        assert admin.login_attempts == 0
        assert admin.is_active is True
        assert admin.system_user_status == SystemUserStatus.ACTIVE
        token_store.delete_reset_token.assert_awaited_once()


class TestAuthServiceBase:
    def test_account_hooks_are_abstract(
        self, mock_db: AsyncMock, jwt_manager: JWTManager, token_store: MagicMock
    ) -> None:
        with pytest.raises(TypeError):
            AuthService(mock_db, jwt_manager, token_store)
