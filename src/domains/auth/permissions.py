# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Static permission codes granted per role.

Permissions travel in the access token and are informational for clients;
route guards check the role itself.
"""

from src.models.enums import UserType

WILDCARD = "*"

ROLE_PERMISSIONS: dict[UserType, list[str]] = {
    UserType.SUPER_ADMIN: [WILDCARD],
    UserType.TENANT_ADMIN: [
        "tenant.read",
        "clients.manage",
        "programs.manage",
        "specializations.manage",
        "courses.manage",
        "students.manage",
        "teachers.manage",
        "system_users.manage",
        "enrollments.manage",
    ],
    UserType.TEACHER: [
        "courses.read",
        "courses.update",
        "course_content.manage",
        "students.read",
        "enrollments.read",
    ],
    UserType.STUDENT: [
        "catalog.read",
        "profile.read",
        "profile.update",
        "enrollments.read.own",
        "progress.update.own",
    ],
}


def permissions_for(user_type: UserType) -> list[str]:
    """Return a copy of the permission codes of a role."""
    return list(ROLE_PERMISSIONS.get(user_type, []))


def has_permission(permissions: list[str], code: str) -> bool:
    return WILDCARD in permissions or code in permissions
