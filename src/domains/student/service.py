# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student service.

Administrators manage students of their tenant; a logged-in student reads
and edits a limited slice of its own profile and lists its enrollments.

Example:
    >>> service = StudentService(db)
    >>> student = await service.create_student(StudentCreate(...), actor)
    >>> courses = await service.get_enrolled_courses(student.student_id, actor)
"""

import logging

from sqlalchemy import and_, select

from src.core.errors import ForbiddenError, NotFoundError
from src.domains.common.listing import ListParams
from src.domains.common.people import PersonService
from src.domains.common.scoping import Actor, stamp_update
from src.infrastructure.database.models import (
    Course,
    Enrollment,
    Student,
    StudentCourseProgress,
    StudentEmailAddress,
    Teacher,
)
from src.models.enums import Gender, StudentStatus, UserType
from src.models.person import (
    EnrolledCourseItem,
    StudentCreate,
    StudentProfileUpdate,
    StudentResponse,
    StudentUpdate,
)

logger = logging.getLogger(__name__)


class StudentNotFoundError(NotFoundError):
    default_code = "STUDENT_NOT_FOUND"
    default_message = "Student not found"


class StudentOnlyError(ForbiddenError):
    default_code = "STUDENT_ONLY"
    default_message = "Only students can access their profile"


class StudentService(PersonService):
    """Service for managing students."""

    model = Student
    email_model = StudentEmailAddress
    id_field = "student_id"
    response_model = StudentResponse
    not_found_error = StudentNotFoundError
    kind = "Student"

    async def create_student(self, data: StudentCreate, actor: Actor) -> StudentResponse:
        """Create a student with its primary email address.

        Raises:
            DuplicateUsernameError: Username taken in the tenant.
            DuplicateEmailError: Email taken in the tenant.
        """
        return await self._create_person(
            data,
            actor,
            {"student_status": data.student_status, "referral_type": data.referral_type},
        )

    async def get_student(self, student_id: int, actor: Actor) -> StudentResponse:
        return await self._get_person(student_id, actor)

    async def list_students(
        self,
        params: ListParams,
        actor: Actor,
        student_status: StudentStatus | None = None,
        gender: Gender | None = None,
        min_age: int | None = None,
        max_age: int | None = None,
    ) -> tuple[list[StudentResponse], int]:
        stmt = self._list_statement(actor)
        if student_status is not None:
            stmt = stmt.where(Student.student_status == student_status)
        return await self._list_people(stmt, params, gender, min_age, max_age)

    async def update_student(
        self, student_id: int, data: StudentUpdate, actor: Actor
    ) -> StudentResponse:
        return await self._update_person(student_id, data, actor)

    async def delete_student(self, student_id: int, actor: Actor) -> None:
        await self._delete_person(student_id, actor)

    # Self-service

    async def get_profile(self, actor: Actor) -> StudentResponse:
        self._require_student(actor)
        return await self._get_person(actor.id, actor)

    async def update_profile(self, data: StudentProfileUpdate, actor: Actor) -> StudentResponse:
        """Update the caller's own profile; the full name follows name edits."""
        self._require_student(actor)
        student = await self._load(actor.id, actor)
        changes = data.model_dump(exclude_unset=True)

        if {"first_name", "middle_name", "last_name"} & changes.keys():
            parts = [
                changes.get("first_name", student.first_name),
                changes.get("middle_name", student.middle_name),
                changes.get("last_name", student.last_name),
            ]
            changes["full_name"] = " ".join(p for p in parts if p)

        stamp_update(student, actor, changes)
        await self._db.commit()
        await self._db.refresh(student)

        logger.info("Student %s updated own profile fields=%s", actor.id, sorted(changes))
        return self._to_response(student, await self._primary_email(actor.id))

    async def get_enrolled_courses(
        self, student_id: int, actor: Actor, search: str | None = None
    ) -> list[EnrolledCourseItem]:
        """Courses the student is enrolled in, with teacher and progress.

        Raises:
            CrossTenantAccessError: Student of another tenant.
        """
        if actor.user_type == UserType.STUDENT and actor.id != student_id:
            raise StudentOnlyError("Students can only list their own courses")
        student = await self._load(student_id, actor)

        stmt = (
            select(Enrollment, Course, Teacher.full_name, StudentCourseProgress)
            .join(Course, Course.course_id == Enrollment.course_id)
            .outerjoin(Teacher, Teacher.teacher_id == Enrollment.teacher_id)
            .outerjoin(
                StudentCourseProgress,
                and_(
                    StudentCourseProgress.student_id == Enrollment.student_id,
                    StudentCourseProgress.course_id == Enrollment.course_id,
                    StudentCourseProgress.is_deleted.is_(False),
                ),
            )
            .where(
                Enrollment.student_id == student.student_id,
                Enrollment.is_deleted.is_(False),
                Course.is_deleted.is_(False),
            )
            .order_by(Enrollment.enrolled_at.desc())
        )
        if search and search.strip():
            stmt = stmt.where(Course.course_name.ilike(f"%{search.strip()}%"))

        items = []
        for enrollment, course, teacher_name, progress in (await self._db.execute(stmt)).all():
            items.append(
                EnrolledCourseItem(
                    enrollment_id=enrollment.enrollment_id,
                    course_id=course.course_id,
                    course_name=course.course_name,
                    main_thumbnail_url=course.main_thumbnail_url,
                    teacher_name=teacher_name,
                    enrollment_status=enrollment.enrollment_status,
                    enrolled_at=enrollment.enrolled_at,
                    overall_progress_percentage=(
                        progress.overall_progress_percentage if progress else 0
                    ),
                    is_course_completed=progress.is_course_completed if progress else False,
                    last_accessed_at=progress.last_accessed_at if progress else None,
                )
            )
        return items

    @staticmethod
    def _require_student(actor: Actor) -> None:
        if actor.user_type != UserType.STUDENT:
            raise StudentOnlyError()
