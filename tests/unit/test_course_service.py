# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for CourseService."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.common.scoping import Actor
from src.domains.course.service import (
    CourseAccessDeniedError,
    CourseNameExistsError,
    CourseNotFoundError,
    CourseService,
    TeacherAlreadyAssignedError,
    TeacherAssignmentNotFoundError,
)
from src.domains.program.service import SpecializationNotFoundError
from src.domains.teacher.service import TeacherNotFoundError
from src.infrastructure.database.models import (
    Course,
    CourseModule,
    CourseTopic,
    CourseVideo,
    TeacherCourse,
)
from src.models.course import (
    CourseCreate,
    CourseModuleCreate,
    CourseUpdate,
    CourseVideoCreate,
)
from src.models.enums import CourseStatus, CourseType
from tests.helpers import NOW, scalar_result, scalars_result


def make_course(**overrides) -> Course:
    fields = {
        "course_id": 12,
        "tenant_id": 5,
        "course_name": "Calculus",
        "course_status": CourseStatus.DRAFT,
        "course_type": CourseType.PAID,
        "course_price": Decimal("99.00"),
        "is_active": True,
        "is_deleted": False,
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return Course(**fields)


def make_module(**overrides) -> CourseModule:
    fields = {
        "course_module_id": 30,
        "course_id": 12,
        "tenant_id": 5,
        "course_module_name": "Limits",
        "position": 1,
        "is_active": True,
        "is_deleted": False,
    }
    fields.update(overrides)
    return CourseModule(**fields)


def make_topic(**overrides) -> CourseTopic:
    fields = {
        "course_topic_id": 40,
        "module_id": 30,
        "tenant_id": 5,
        "course_topic_name": "Epsilon-delta",
        "position": 1,
        "is_active": True,
        "is_deleted": False,
    }
    fields.update(overrides)
    return CourseTopic(**fields)


@pytest.fixture
def service(mock_db: AsyncMock) -> CourseService:
    return CourseService(mock_db)


class TestCourseCrud:
    """Tests for course create, update and delete."""

    @pytest.mark.asyncio
    async def test_create_course(
        self, service: CourseService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(0)
        mock_db.refresh.side_effect = lambda c: setattr(c, "course_id", 12)

        result = await service.create_course(
            CourseCreate(course_name="Calculus", course_price=Decimal("99.00")), tenant_admin
        )

        assert result.course_id == 12
        assert result.tenant_id == 5
        assert result.course_status == CourseStatus.DRAFT
        assert result.course_type == CourseType.PAID

    @pytest.mark.asyncio
    async def test_create_name_taken(
        self, service: CourseService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(1)

        with pytest.raises(CourseNameExistsError) as exc_info:
            await service.create_course(CourseCreate(course_name="calculus"), tenant_admin)

        assert exc_info.value.status_code == 409
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_with_specialization_of_other_tenant(
        self, service: CourseService, mock_db: AsyncMock, super_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(MagicMock(tenant_id=6))

        with pytest.raises(SpecializationNotFoundError):
            await service.create_course(
                CourseCreate(course_name="Calculus", specialization_id=3, tenant_id=5),
                super_admin,
            )

    @pytest.mark.asyncio
    async def test_update_outside_tenant_is_denied(
        self, service: CourseService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(CourseAccessDeniedError) as exc_info:
            await service.update_course(12, CourseUpdate(course_name="Algebra"), tenant_admin)

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_update_missing_course_for_global_admin(
        self, service: CourseService, mock_db: AsyncMock, super_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(CourseNotFoundError):
            await service.update_course(12, CourseUpdate(course_name="Algebra"), super_admin)

    @pytest.mark.asyncio
    async def test_update_publishes_course(
        self, service: CourseService, mock_db: AsyncMock, teacher_actor: Actor
    ) -> None:
        course = make_course()
        mock_db.execute.return_value = scalar_result(course)

        result = await service.update_course(
            12, CourseUpdate(course_status=CourseStatus.PUBLISHED), teacher_actor
        )

        assert result.course_status == CourseStatus.PUBLISHED
        assert course.updated_by == 21

    @pytest.mark.asyncio
    async def test_delete_cascades_to_content(
        self, service: CourseService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        """Test that deleting a course soft-deletes its tree and teacher links."""
        course = make_course()
        module = make_module()
        topic = make_topic()
        video = CourseVideo(course_video_id=50, course_id=12, course_topic_id=40, is_deleted=False)
        link = TeacherCourse(teacher_course_id=60, course_id=12, teacher_id=21, is_deleted=False)
        mock_db.execute.side_effect = [
            scalar_result(course),
            scalars_result([module]),
            scalars_result([topic]),
            scalars_result([video]),
            scalars_result([link]),
        ]

        await service.delete_course(12, tenant_admin)

        assert all(row.is_deleted for row in (course, module, topic, video, link))
        mock_db.commit.assert_awaited_once()


class TestCourseContent:
    """Tests for modules, topics and videos."""

    @pytest.mark.asyncio
    async def test_list_modules_in_position_order(
        self, service: CourseService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        mock_db.execute.side_effect = [
            scalar_result(make_course()),
            scalars_result([make_module(), make_module(course_module_id=31, position=2)]),
        ]

        modules = await service.list_modules(12, student_actor)

        assert [m.course_module_id for m in modules] == [30, 31]
        sql = str(mock_db.execute.call_args.args[0])
        assert "ORDER BY course_modules.position" in sql

    @pytest.mark.asyncio
    async def test_create_module_inherits_tenant(
        self, service: CourseService, mock_db: AsyncMock, super_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(make_course(tenant_id=9))
        mock_db.refresh.side_effect = lambda m: setattr(m, "course_module_id", 30)

        result = await service.create_module(
            12, CourseModuleCreate(course_module_name="Limits"), super_admin
        )

        assert result.tenant_id == 9
        assert result.course_id == 12
        assert result.position == 1

    @pytest.mark.asyncio
    async def test_create_video_links_course_through_module(
        self, service: CourseService, mock_db: AsyncMock, teacher_actor: Actor
    ) -> None:
        mock_db.execute.side_effect = [scalar_result(make_topic()), scalar_result(make_module())]
        mock_db.refresh.side_effect = lambda v: setattr(v, "course_video_id", 50)

        result = await service.create_video(
            40, CourseVideoCreate(video_name="Intro", duration_seconds=600), teacher_actor
        )

        assert result.course_id == 12
        assert result.course_topic_id == 40
        assert result.duration_seconds == 600

    @pytest.mark.asyncio
    async def test_delete_module_cascades_to_topics_and_videos(
        self, service: CourseService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        module, topic = make_module(), make_topic()
        video = CourseVideo(course_video_id=50, course_topic_id=40, is_deleted=False)
        mock_db.execute.side_effect = [
            scalar_result(module),
            scalars_result([topic]),
            scalars_result([video]),
        ]

        await service.delete_module(30, tenant_admin)

        assert module.is_deleted and topic.is_deleted and video.is_deleted


class TestTeacherAssignment:
    """Tests for assigning teachers to courses."""

    @pytest.mark.asyncio
    async def test_assign_teacher(
        self, service: CourseService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.side_effect = [
            scalar_result(make_course()),
            scalar_result(MagicMock(teacher_id=21, tenant_id=5)),
            scalar_result(None),
        ]
        mock_db.refresh.side_effect = lambda link: setattr(link, "teacher_course_id", 60)

        result = await service.assign_teacher(12, 21, tenant_admin)

        assert result.teacher_course_id == 60
        assert result.teacher_id == 21
        assert result.tenant_id == 5

    @pytest.mark.asyncio
    async def test_assign_teacher_of_other_tenant(
        self, service: CourseService, mock_db: AsyncMock, super_admin: Actor
    ) -> None:
        mock_db.execute.side_effect = [
            scalar_result(make_course()),
            scalar_result(MagicMock(teacher_id=22, tenant_id=6)),
        ]

        with pytest.raises(TeacherNotFoundError):
            await service.assign_teacher(12, 22, super_admin)

    @pytest.mark.asyncio
    async def test_assign_twice(
        self, service: CourseService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.side_effect = [
            scalar_result(make_course()),
            scalar_result(MagicMock(teacher_id=21, tenant_id=5)),
            scalar_result(TeacherCourse(teacher_course_id=60)),
        ]

        with pytest.raises(TeacherAlreadyAssignedError):
            await service.assign_teacher(12, 21, tenant_admin)

    @pytest.mark.asyncio
    async def test_unassign_missing_link(
        self, service: CourseService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.side_effect = [scalar_result(make_course()), scalar_result(None)]

        with pytest.raises(TeacherAssignmentNotFoundError):
            await service.unassign_teacher(12, 21, tenant_admin)

    @pytest.mark.asyncio
    async def test_unassign(
        self, service: CourseService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        link = TeacherCourse(teacher_course_id=60, course_id=12, teacher_id=21, is_deleted=False)
        mock_db.execute.side_effect = [scalar_result(make_course()), scalar_result(link)]

        await service.unassign_teacher(12, 21, tenant_admin)

        assert link.is_deleted is True
