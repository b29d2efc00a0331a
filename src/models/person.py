# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student and teacher schemas.

Responses never carry password hashes; the primary email address is
flattened onto the person as ``primary_email``.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, model_validator

from src.models.auth import PolicyPassword
from src.models.common import AuditedResponse, PartialUpdate
from src.models.enums import EnrollmentStatus, Gender, StudentStatus


class PersonCreate(BaseModel):
    """Fields shared by student and teacher creation."""

    first_name: str = Field(..., min_length=1, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    full_name: str | None = Field(default=None, max_length=255)
    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.-]+$")
    email_address: EmailStr
    password: PolicyPassword
    address: str | None = None
    date_of_birth: date | None = None
    profile_picture_url: str | None = Field(default=None, max_length=500)
    zip_code: str | None = Field(default=None, max_length=20)
    age: int | None = Field(default=None, ge=1, le=120)
    gender: Gender | None = None
    tenant_id: int | None = Field(
        default=None, description="Owning tenant; required for SUPER_ADMIN callers"
    )

    @model_validator(mode="after")
    def fill_full_name(self) -> "PersonCreate":
        if not self.full_name:
            parts = [self.first_name, self.middle_name, self.last_name]
            self.full_name = " ".join(p for p in parts if p)
        return self


class PersonUpdate(PartialUpdate):
    """Partial update of a student or teacher."""

    not_nullable = frozenset(
        {
            "first_name",
            "last_name",
            "full_name",
            "username",
            "email_address",
            "password",
            "is_active",
        }
    )

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    full_name: str | None = Field(default=None, max_length=255)
    username: str | None = Field(
        default=None, min_length=3, max_length=100, pattern=r"^[A-Za-z0-9_.-]+$"
    )
    email_address: EmailStr | None = None
    password: PolicyPassword | None = None
    address: str | None = None
    date_of_birth: date | None = None
    profile_picture_url: str | None = Field(default=None, max_length=500)
    zip_code: str | None = Field(default=None, max_length=20)
    age: int | None = Field(default=None, ge=1, le=120)
    gender: Gender | None = None
    is_active: bool | None = None


class PersonResponse(AuditedResponse):
    tenant_id: int
    full_name: str
    first_name: str
    middle_name: str | None = None
    last_name: str
    username: str
    primary_email: str | None = None
    address: str | None = None
    date_of_birth: date | None = None
    profile_picture_url: str | None = None
    zip_code: str | None = None
    age: int | None = None
    gender: Gender | None = None
    last_login_at: datetime | None = None


class StudentCreate(PersonCreate):
    student_status: StudentStatus = StudentStatus.ACTIVE
    referral_type: str | None = Field(default=None, max_length=100)


class StudentUpdate(PersonUpdate):
    not_nullable = PersonUpdate.not_nullable | {"student_status"}

    student_status: StudentStatus | None = None
    referral_type: str | None = Field(default=None, max_length=100)


class StudentResponse(PersonResponse):
    student_id: int
    student_status: StudentStatus
    referral_type: str | None = None


class StudentProfileUpdate(PartialUpdate):
    """Fields a student may change on their own profile."""

    not_nullable = frozenset({"first_name", "last_name"})

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    address: str | None = None
    date_of_birth: date | None = None
    profile_picture_url: str | None = Field(default=None, max_length=500)
    zip_code: str | None = Field(default=None, max_length=20)


class EnrolledCourseItem(BaseModel):
    enrollment_id: int
    course_id: int
    course_name: str
    main_thumbnail_url: str | None = None
    teacher_name: str | None = None
    enrollment_status: EnrollmentStatus
    enrolled_at: datetime
    overall_progress_percentage: Decimal = Decimal("0")
    is_course_completed: bool = False
    last_accessed_at: datetime | None = None


class TeacherCreate(PersonCreate):
    teacher_qualification: str | None = Field(default=None, max_length=255)
    joining_date: date | None = None


class TeacherUpdate(PersonUpdate):
    teacher_qualification: str | None = Field(default=None, max_length=255)
    joining_date: date | None = None


class TeacherResponse(PersonResponse):
    teacher_id: int
    teacher_qualification: str | None = None
    joining_date: date | None = None
