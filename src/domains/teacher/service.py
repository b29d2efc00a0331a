# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher service.

Teachers follow the same rules as students: per-tenant unique username
and email, created together with their primary email row.
"""

import logging

from sqlalchemy import select

from src.core.errors import ForbiddenError, NotFoundError
from src.domains.common.listing import ListParams
from src.domains.common.people import PersonService
from src.domains.common.scoping import Actor
from src.infrastructure.database.models import (
    Course,
    Teacher,
    TeacherCourse,
    TeacherEmailAddress,
)
from src.models.course import CourseResponse
from src.models.enums import Gender, UserType
from src.models.person import TeacherCreate, TeacherResponse, TeacherUpdate

logger = logging.getLogger(__name__)


class TeacherNotFoundError(NotFoundError):
    default_code = "TEACHER_NOT_FOUND"
    default_message = "Teacher not found"


class TeacherOnlyError(ForbiddenError):
    default_code = "TEACHER_ONLY"
    default_message = "Only teachers can list their assigned courses"


class TeacherService(PersonService):
    """Service for managing teachers."""

    model = Teacher
    email_model = TeacherEmailAddress
    id_field = "teacher_id"
    response_model = TeacherResponse
    not_found_error = TeacherNotFoundError
    kind = "Teacher"

    async def create_teacher(self, data: TeacherCreate, actor: Actor) -> TeacherResponse:
        return await self._create_person(
            data,
            actor,
            {
                "teacher_qualification": data.teacher_qualification,
                "joining_date": data.joining_date,
            },
        )

    async def get_teacher(self, teacher_id: int, actor: Actor) -> TeacherResponse:
        return await self._get_person(teacher_id, actor)

    async def list_teachers(
        self,
        params: ListParams,
        actor: Actor,
        gender: Gender | None = None,
        min_age: int | None = None,
        max_age: int | None = None,
    ) -> tuple[list[TeacherResponse], int]:
        return await self._list_people(
            self._list_statement(actor), params, gender, min_age, max_age
        )

    async def update_teacher(
        self, teacher_id: int, data: TeacherUpdate, actor: Actor
    ) -> TeacherResponse:
        return await self._update_person(teacher_id, data, actor)

    async def delete_teacher(self, teacher_id: int, actor: Actor) -> None:
        await self._delete_person(teacher_id, actor)

    async def get_teacher_courses(self, actor: Actor) -> list[CourseResponse]:
        """Courses assigned to the logged-in teacher, by name."""
        if actor.user_type != UserType.TEACHER:
            raise TeacherOnlyError()

        result = await self._db.execute(
            select(Course)
            .join(TeacherCourse, TeacherCourse.course_id == Course.course_id)
            .where(
                TeacherCourse.teacher_id == actor.id,
                TeacherCourse.is_deleted.is_(False),
                Course.is_deleted.is_(False),
                Course.tenant_id == actor.tenant_id,
            )
            .order_by(Course.course_name.asc())
        )
        return [CourseResponse.model_validate(c) for c in result.scalars().all()]
