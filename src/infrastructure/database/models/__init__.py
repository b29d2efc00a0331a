# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models.

Importing this package registers every table on Base.metadata, which is
what the Alembic environment relies on.
"""

from src.infrastructure.database.models.base import (
    AuditMixin,
    Base,
    EntityMixin,
    SoftDeleteMixin,
    TenantMixin,
    TimestampMixin,
)
from src.infrastructure.database.models.course import (
    Course,
    CourseModule,
    CourseTopic,
    CourseVideo,
    TeacherCourse,
)
from src.infrastructure.database.models.enrollment import (
    Enrollment,
    StudentCourseProgress,
    VideoProgress,
)
from src.infrastructure.database.models.person import (
    Student,
    StudentEmailAddress,
    Teacher,
    TeacherEmailAddress,
)
from src.infrastructure.database.models.program import Program, Specialization
from src.infrastructure.database.models.system_user import SystemUser
from src.infrastructure.database.models.tenant import (
    Client,
    ClientTenant,
    Tenant,
    TenantEmailAddress,
    TenantPhoneNumber,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "AuditMixin",
    "SoftDeleteMixin",
    "TenantMixin",
    "EntityMixin",
    # Tenancy
    "Tenant",
    "TenantPhoneNumber",
    "TenantEmailAddress",
    "Client",
    "ClientTenant",
    # Catalog
    "Program",
    "Specialization",
    "Course",
    "CourseModule",
    "CourseTopic",
    "CourseVideo",
    "TeacherCourse",
    # People
    "Student",
    "StudentEmailAddress",
    "Teacher",
    "TeacherEmailAddress",
    "SystemUser",
    # Learning
    "Enrollment",
    "StudentCourseProgress",
    "VideoProgress",
]
