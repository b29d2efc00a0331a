# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""System admin authentication service.

Administrators (SUPER_ADMIN and TENANT_ADMIN) authenticate against the
system_users table. A SUPER_ADMIN may pass a tenant context at login to
act as that tenant; the token then carries the tenant, which becomes the
default tenant for rows the admin creates.

Example:
    >>> auth_service = SystemAuthService(db, jwt_manager, token_store)
    >>> result = await auth_service.login("admin@example.com", "password", "Acme")
    >>> result.user.tenant_id
    5
"""

import logging
from typing import Any

from sqlalchemy import func, select

from src.core.errors import TenantNotFoundError
from src.domains.auth.service import (
    AuthService,
    TenantContextRequiredError,
    TenantMismatchError,
)
from src.infrastructure.database.models import SystemUser
from src.models.enums import SystemUserStatus, UserType

logger = logging.getLogger(__name__)


class SystemAuthService(AuthService):
    """Authentication service for system administrators."""

    principal = "system_user"
    user_types = (UserType.SUPER_ADMIN, UserType.TENANT_ADMIN)

    async def _find_accounts(self, email: str) -> list[SystemUser]:
        result = await self._db.execute(
            select(SystemUser).where(
                func.lower(SystemUser.email_address) == email,
                SystemUser.is_deleted.is_(False),
            )
        )
        return list(result.scalars().all())

    async def _get_account(self, account_id: int) -> SystemUser | None:
        result = await self._db.execute(
            select(SystemUser).where(
                SystemUser.system_user_id == account_id,
                SystemUser.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    def _account_id(self, account: SystemUser) -> int:
        return account.system_user_id

    def _user_type(self, account: SystemUser) -> UserType:
        return account.role_type

    async def _login_email(self, account: SystemUser) -> str | None:
        return account.email_address

    def _is_usable(self, account: SystemUser) -> bool:
        return super()._is_usable(account) and account.system_user_status in (
            SystemUserStatus.ACTIVE,
            SystemUserStatus.LOCKED,
        )

    def _reactivation_changes(self) -> dict[str, Any]:
        return {"is_active": True, "system_user_status": SystemUserStatus.ACTIVE}

    async def _pick_account(
        self, accounts: list[SystemUser], tenant_context: str | None
    ) -> tuple[SystemUser, int | None]:
        """Resolve the account and the tenant an administrator acts in.

        The same email may belong to admins of several tenants. A tenant
        context then selects the admin of that tenant, falling back to a
        SUPER_ADMIN account acting in it.

        Raises:
            TenantContextRequiredError: Several accounts match and no tenant was named.
            TenantNotFoundError: SUPER_ADMIN names an unknown tenant.
            TenantMismatchError: TENANT_ADMIN names a tenant other than its own.
        """
        if not tenant_context:
            if len(accounts) > 1:
                raise TenantContextRequiredError()
            return accounts[0], accounts[0].tenant_id

        tenant = await self._find_tenant(tenant_context)
        if tenant is not None:
            for account in accounts:
                if account.tenant_id == tenant.tenant_id:
                    return account, account.tenant_id

        account = next(
            (a for a in accounts if a.role_type == UserType.SUPER_ADMIN), accounts[0]
        )
        if account.role_type == UserType.SUPER_ADMIN:
            if tenant is None:
                raise TenantNotFoundError(f"Tenant '{tenant_context}' not found")
            logger.info(
                "Super admin %s acting in tenant %s", account.system_user_id, tenant.tenant_id
            )
            return account, tenant.tenant_id

        raise TenantMismatchError()
