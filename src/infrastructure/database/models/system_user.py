# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Administrative user model.

SUPER_ADMIN users have no tenant; TENANT_ADMIN users belong to exactly one.
Usernames and email addresses are unique within a tenant, and separately
among the tenantless SUPER_ADMIN accounts.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, EntityMixin, enum_column, unique_live
from src.models.enums import SystemUserStatus, UserType


class SystemUser(Base, EntityMixin):
    """Administrator account (SUPER_ADMIN or TENANT_ADMIN)."""

    __tablename__ = "system_users"
    __table_args__ = (
        unique_live("uq_system_users_username_live", "tenant_id", "username"),
        unique_live("uq_system_users_email_live", "tenant_id", "email_address"),
        Index(
            "uq_system_users_global_username_live",
            "username",
            unique=True,
            postgresql_where=text("tenant_id IS NULL AND is_deleted = false"),
        ),
        Index(
            "uq_system_users_global_email_address_live",
            "email_address",
            unique=True,
            postgresql_where=text("tenant_id IS NULL AND is_deleted = false"),
        ),
    )

    system_user_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("tenants.tenant_id"), nullable=True, index=True
    )
    role_type: Mapped[UserType] = mapped_column(enum_column(UserType), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email_address: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    login_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    system_user_status: Mapped[SystemUserStatus] = mapped_column(
        enum_column(SystemUserStatus), default=SystemUserStatus.ACTIVE, nullable=False
    )
