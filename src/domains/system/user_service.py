# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""System user (administrator) management.

Who may create whom:
- SUPER_ADMIN creates SUPER_ADMIN (global, no tenant) or TENANT_ADMIN.
- TENANT_ADMIN creates TENANT_ADMIN in its own tenant only.

Usernames and email addresses are unique within a tenant. SUPER_ADMIN
accounts have no tenant and are unique among themselves.
"""

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import BadRequestError, ForbiddenError, NotFoundError
from src.domains.auth.password import hash_password
from src.domains.common.listing import ListParams, paginate
from src.domains.common.people import (
    PERSON_CONFLICTS,
    DuplicateEmailError,
    DuplicateUsernameError,
)
from src.domains.common.scoping import (
    Actor,
    commit_unique,
    create_audit_fields,
    load_owned,
    resolve_tenant_id,
    stamp_delete,
    stamp_update,
    tenant_filters,
)
from src.infrastructure.database.models import SystemUser
from src.models.enums import SystemUserStatus, UserType
from src.models.system_user import SystemUserCreate, SystemUserResponse, SystemUserUpdate

logger = logging.getLogger(__name__)

SYSTEM_USER_SORT_FIELDS = {
    "systemUserId": SystemUser.system_user_id,
    "username": SystemUser.username,
    "fullName": SystemUser.full_name,
    "roleType": SystemUser.role_type,
    "lastLoginAt": SystemUser.last_login_at,
    "createdAt": SystemUser.created_at,
}


class SystemUserNotFoundError(NotFoundError):
    default_code = "SYSTEM_USER_NOT_FOUND"
    default_message = "System user not found"


class InsufficientRoleError(ForbiddenError):
    default_code = "INSUFFICIENT_PERMISSIONS"
    default_message = "Tenant admins can only create tenant admins"


class SelfDeleteError(BadRequestError):
    default_code = "CANNOT_DELETE_SELF"
    default_message = "You cannot delete your own account"


class SystemUserService:
    """Service for managing administrator accounts.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_system_user(
        self, data: SystemUserCreate, actor: Actor
    ) -> SystemUserResponse:
        """Create an administrator.

        Args:
            data: Account fields and role.
            actor: The caller.

        Returns:
            The created account, without password hash.

        Raises:
            InsufficientRoleError: TENANT_ADMIN creating a SUPER_ADMIN.
            DuplicateUsernameError: Username already used.
            DuplicateEmailError: Email already used.
        """
        if data.role_type == UserType.SUPER_ADMIN:
            if not actor.is_super_admin:
                raise InsufficientRoleError()
            tenant_id = None
        else:
            tenant_id = resolve_tenant_id(actor, data.tenant_id)

        email = str(data.email_address).lower()
        existing = await self.find_existing_user(data.username, email, tenant_id)
        if existing is not None:
            if existing.username.lower() == data.username.lower():
                raise DuplicateUsernameError()
            raise DuplicateEmailError()

        user = SystemUser(
            tenant_id=tenant_id,
            role_type=data.role_type,
            username=data.username,
            full_name=data.full_name,
            email_address=email,
            password_hash=hash_password(data.password),
            system_user_status=data.system_user_status,
            login_attempts=0,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(user)
        await commit_unique(self._db, PERSON_CONFLICTS)
        await self._db.refresh(user)

        logger.info(
            "System user created: %s role=%s tenant=%s",
            user.system_user_id,
            user.role_type.value,
            tenant_id,
        )
        return SystemUserResponse.model_validate(user)

    async def get_system_user(self, system_user_id: int, actor: Actor) -> SystemUserResponse:
        return SystemUserResponse.model_validate(await self._get(system_user_id, actor))

    async def list_system_users(
        self,
        params: ListParams,
        actor: Actor,
        role_type: UserType | None = None,
        status: SystemUserStatus | None = None,
    ) -> tuple[list[SystemUserResponse], int]:
        stmt = select(SystemUser).where(*tenant_filters(SystemUser, actor))
        if role_type is not None:
            stmt = stmt.where(SystemUser.role_type == role_type)
        if status is not None:
            stmt = stmt.where(SystemUser.system_user_status == status)

        users, total = await paginate(
            self._db,
            stmt,
            params,
            sort_fields=SYSTEM_USER_SORT_FIELDS,
            default_sort=SystemUser.created_at,
            search_columns=[SystemUser.username, SystemUser.full_name, SystemUser.email_address],
        )
        return [SystemUserResponse.model_validate(u) for u in users], total

    async def update_system_user(
        self, system_user_id: int, data: SystemUserUpdate, actor: Actor
    ) -> SystemUserResponse:
        user = await self._get(system_user_id, actor)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("email_address"):
            changes["email_address"] = str(changes["email_address"]).lower()
        username = changes.get("username")
        email = changes.get("email_address")
        if (username and username != user.username) or (email and email != user.email_address):
            existing = await self.find_existing_user(
                username or user.username,
                email or user.email_address,
                user.tenant_id,
                exclude_id=system_user_id,
            )
            if existing is not None:
                if username and existing.username.lower() == username.lower():
                    raise DuplicateUsernameError()
                raise DuplicateEmailError()

        password = changes.pop("password", None)
        if password:
            changes["password_hash"] = hash_password(password)
            changes["login_attempts"] = 0

        stamp_update(user, actor, changes)
        await commit_unique(self._db, PERSON_CONFLICTS)
        await self._db.refresh(user)

        logger.info("System user updated: %s fields=%s", system_user_id, sorted(changes))
        return SystemUserResponse.model_validate(user)

    async def delete_system_user(self, system_user_id: int, actor: Actor) -> None:
        """Soft-delete an administrator.

        Raises:
            SelfDeleteError: When the caller targets its own account.
        """
        if system_user_id == actor.id and actor.user_type in (
            UserType.SUPER_ADMIN,
            UserType.TENANT_ADMIN,
        ):
            raise SelfDeleteError()

        user = await self._get(system_user_id, actor)
        stamp_delete([user], actor)
        await self._db.commit()
        logger.info("System user deleted: %s by %s", system_user_id, actor.id)

    async def find_existing_user(
        self,
        username: str,
        email: str,
        tenant_id: int | None,
        exclude_id: int | None = None,
    ) -> SystemUser | None:
        """Return a live account of the same tenant using the username or the email.

        A ``tenant_id`` of None searches the tenantless SUPER_ADMIN accounts.
        """
        same_tenant = (
            SystemUser.tenant_id.is_(None)
            if tenant_id is None
            else SystemUser.tenant_id == tenant_id
        )
        stmt = select(SystemUser).where(
            or_(
                func.lower(SystemUser.username) == username.lower(),
                func.lower(SystemUser.email_address) == email.lower(),
            ),
            same_tenant,
            SystemUser.is_deleted.is_(False),
        )
        if exclude_id is not None:
            stmt = stmt.where(SystemUser.system_user_id != exclude_id)
        result = await self._db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def _get(self, system_user_id: int, actor: Actor) -> SystemUser:
        return await load_owned(
            self._db,
            SystemUser,
            SystemUser.system_user_id,
            system_user_id,
            actor,
            SystemUserNotFoundError,
        )
