# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""System user (administrator) schemas."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, EmailStr, Field

from src.models.auth import PolicyPassword
from src.models.common import AuditedResponse, PartialUpdate
from src.models.enums import SystemUserStatus, UserType

ADMIN_ROLES = (UserType.SUPER_ADMIN, UserType.TENANT_ADMIN)


def _admin_role(value: UserType) -> UserType:
    if value not in ADMIN_ROLES:
        raise ValueError("role_type must be SUPER_ADMIN or TENANT_ADMIN")
    return value


AdminRole = Annotated[UserType, AfterValidator(_admin_role)]


class SystemUserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.-]+$")
    full_name: str = Field(..., min_length=2, max_length=255)
    email_address: EmailStr
    password: PolicyPassword
    role_type: AdminRole = UserType.TENANT_ADMIN
    tenant_id: int | None = None
    system_user_status: SystemUserStatus = SystemUserStatus.ACTIVE


class SystemUserUpdate(PartialUpdate):
    not_nullable = frozenset(
        {"username", "full_name", "email_address", "password", "system_user_status", "is_active"}
    )

    username: str | None = Field(
        default=None, min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.-]+$"
    )
    full_name: str | None = Field(default=None, min_length=2, max_length=255)
    email_address: EmailStr | None = None
    password: PolicyPassword | None = None
    system_user_status: SystemUserStatus | None = None
    is_active: bool | None = None


class SystemUserResponse(AuditedResponse):
    system_user_id: int
    tenant_id: int | None = None
    role_type: UserType
    username: str
    full_name: str
    email_address: str
    system_user_status: SystemUserStatus
    last_login_at: datetime | None = None
    login_attempts: int = 0
