# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enumerations shared by ORM models and API schemas."""

from enum import Enum


class UserType(str, Enum):
    """Role of an authenticated principal."""

    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    TENANT_ADMIN = "TENANT_ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class TenantStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    TRIAL = "TRIAL"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class ClientStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"


class ContactType(str, Enum):
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"
    EMERGENCY = "EMERGENCY"
    BILLING = "BILLING"


class SystemUserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    LOCKED = "LOCKED"


class StudentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ALUMNI = "ALUMNI"
    DROPOUT = "DROPOUT"
    ACCOUNT_FREEZED = "ACCOUNT_FREEZED"
    BLACKLISTED = "BLACKLISTED"
    SUSPENDED = "SUSPENDED"
    DEACTIVATED = "DEACTIVATED"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class CourseStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"
    SUSPENDED = "SUSPENDED"


class CourseType(str, Enum):
    FREE = "FREE"
    PAID = "PAID"


class CourseCatalogFilter(str, Enum):
    """Course type filter of the student catalog, which adds PURCHASED."""

    FREE = "FREE"
    PAID = "PAID"
    PURCHASED = "PURCHASED"


class VideoUploadStatus(str, Enum):
    PENDING = "PENDING"
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"


class EnrollmentStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    DROPPED = "DROPPED"
    SUSPENDED = "SUSPENDED"
    EXPELLED = "EXPELLED"
    TRANSFERRED = "TRANSFERRED"
    DEFERRED = "DEFERRED"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
