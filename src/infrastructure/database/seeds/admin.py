# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Bootstrap administrator seed.

Creates the first SUPER_ADMIN when the database has none, so that the
administrator API can be reached on a fresh install.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config.settings import AuthSettings
from src.domains.auth.password import hash_password
from src.infrastructure.database.models.system_user import SystemUser
from src.models.enums import SystemUserStatus, UserType

logger = logging.getLogger(__name__)


async def seed_super_admin(session: AsyncSession, settings: AuthSettings) -> SystemUser | None:
    """Seed the bootstrap SUPER_ADMIN.

    Args:
        session: Database session.
        settings: Auth settings carrying the bootstrap credentials.

    Returns:
        The created account, or None when a SUPER_ADMIN already exists or
        no bootstrap password is configured.
    """
    if settings.bootstrap_admin_password is None:
        logger.info("No bootstrap admin password configured, skipping seed")
        return None

    result = await session.execute(
        select(SystemUser.system_user_id)
        .where(
            SystemUser.role_type == UserType.SUPER_ADMIN,
            SystemUser.is_deleted.is_(False),
        )
        .limit(1)
    )
    if result.scalar_one_or_none() is not None:
        logger.info("Super admin already exists, skipping seed")
        return None

    user = SystemUser(
        tenant_id=None,
        role_type=UserType.SUPER_ADMIN,
        username=settings.bootstrap_admin_username,
        full_name="Super Admin",
        email_address=settings.bootstrap_admin_email.lower(),
        password_hash=hash_password(settings.bootstrap_admin_password.get_secret_value()),
        system_user_status=SystemUserStatus.ACTIVE,
    )
    session.add(user)
    await session.flush()
    logger.info("Seeded super admin %s", user.username)
    return user
