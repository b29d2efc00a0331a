# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for EnrollmentService.

Tests enrollment creation, scoping and progress tracking.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from src.core.errors import ForbiddenError
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.domains.course.service import CourseNotFoundError
from src.domains.enrollment.service import (
    AlreadyEnrolledError,
    EnrollmentNotFoundError,
    EnrollmentService,
    NotEnrolledError,
    ProgressNotFoundError,
)
from src.domains.student.service import StudentNotFoundError
from src.infrastructure.database.models import (
    Enrollment,
    StudentCourseProgress,
    VideoProgress,
)
from src.models.enrollment import (
    CourseProgressUpdate,
    EnrollmentCreate,
    VideoProgressUpdate,
)
from src.models.enums import EnrollmentStatus
from tests.helpers import NOW, scalar_result, scalars_result


@pytest.fixture
def service(mock_db: AsyncMock) -> EnrollmentService:
    """Create EnrollmentService with mock db."""
    return EnrollmentService(mock_db)


def make_enrollment(**overrides) -> Enrollment:
    fields = {
        "enrollment_id": 100,
        "tenant_id": 5,
        "course_id": 8,
        "student_id": 42,
        "enrollment_status": EnrollmentStatus.ACTIVE,
        "enrolled_at": NOW,
        "is_active": True,
        "is_deleted": False,
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return Enrollment(**fields)


def make_progress(**overrides) -> StudentCourseProgress:
    fields = {
        "student_course_progress_id": 200,
        "tenant_id": 5,
        "student_id": 42,
        "course_id": 8,
        "overall_progress_percentage": Decimal("0"),
        "modules_completed": 0,
        "videos_completed": 0,
        "total_time_spent_minutes": 10,
        "is_course_completed": False,
        "is_active": True,
        "is_deleted": False,
    }
    fields.update(overrides)
    return StudentCourseProgress(**fields)


class TestEnrollStudent:
    """Tests for enroll_student."""

    @pytest.mark.asyncio
    async def test_creates_enrollment_and_progress(
        self, service: EnrollmentService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        """Test that enrolling also opens a progress row."""
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(course_id=8, tenant_id=5)),
            scalar_result(MagicMock(student_id=42, tenant_id=5)),
            scalar_result(None),
            scalar_result(None),
        ]
        mock_db.refresh.side_effect = lambda e: setattr(e, "enrollment_id", 100)

        result = await service.enroll_student(
            EnrollmentCreate(course_id=8, student_id=42), tenant_admin
        )

        enrollment, progress = (c.args[0] for c in mock_db.add.call_args_list)
        assert isinstance(enrollment, Enrollment)
        assert isinstance(progress, StudentCourseProgress)
        assert progress.overall_progress_percentage == Decimal("0")
        assert enrollment.tenant_id == 5
        assert result.enrollment_id == 100
        assert result.enrollment_status == EnrollmentStatus.ACTIVE
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_re_enrollment_keeps_existing_progress(
        self, service: EnrollmentService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(course_id=8, tenant_id=5)),
            scalar_result(MagicMock(student_id=42, tenant_id=5)),
            scalar_result(None),
            scalar_result(make_progress()),
        ]
        mock_db.refresh.side_effect = lambda e: setattr(e, "enrollment_id", 101)

        await service.enroll_student(EnrollmentCreate(course_id=8, student_id=42), tenant_admin)

        assert mock_db.add.call_count == 1

    @pytest.mark.asyncio
    async def test_already_enrolled(
        self, service: EnrollmentService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(course_id=8, tenant_id=5)),
            scalar_result(MagicMock(student_id=42, tenant_id=5)),
            scalar_result(make_enrollment()),
        ]

        with pytest.raises(AlreadyEnrolledError) as exc_info:
            await service.enroll_student(EnrollmentCreate(course_id=8, student_id=42), tenant_admin)

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_concurrent_enrollment_is_conflict(
        self, service: EnrollmentService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        """Test that an enrollment rejected by the unique index answers 409."""
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(course_id=8, tenant_id=5)),
            scalar_result(MagicMock(student_id=42, tenant_id=5)),
            scalar_result(None),
            scalar_result(None),
        ]
        mock_db.commit.side_effect = IntegrityError(
            "INSERT INTO enrollments ...",
            {},
            Exception('duplicate key value violates unique constraint "uq_enrollments_live"'),
        )

        with pytest.raises(AlreadyEnrolledError):
            await service.enroll_student(EnrollmentCreate(course_id=8, student_id=42), tenant_admin)

        mock_db.rollback.assert_awaited_once()
        mock_db.refresh.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_course(
        self, service: EnrollmentService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(CourseNotFoundError):
            await service.enroll_student(EnrollmentCreate(course_id=8, student_id=42), tenant_admin)

    @pytest.mark.asyncio
    async def test_student_of_other_tenant(
        self, service: EnrollmentService, mock_db: AsyncMock, super_admin: Actor
    ) -> None:
        """Test that even a super admin cannot pair a course and a student across tenants."""
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(course_id=8, tenant_id=5)),
            scalar_result(MagicMock(student_id=42, tenant_id=6)),
        ]

        with pytest.raises(StudentNotFoundError):
            await service.enroll_student(EnrollmentCreate(course_id=8, student_id=42), super_admin)


class TestEnrollmentAccess:
    @pytest.mark.asyncio
    async def test_student_cannot_read_others_enrollment(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(make_enrollment(student_id=43))

        with pytest.raises(EnrollmentNotFoundError):
            await service.get_enrollment(100, student_actor)

    @pytest.mark.asyncio
    async def test_student_list_is_forced_to_self(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        mock_db.execute.side_effect = [scalar_result(1), scalars_result([make_enrollment()])]

        items, total = await service.list_enrollments(ListParams(), student_actor, student_id=99)

        assert total == 1
        count_stmt = mock_db.execute.call_args_list[0].args[0]
        params = count_stmt.compile().params
        assert 42 in params.values()
        assert 99 not in params.values()

    @pytest.mark.asyncio
    async def test_delete_keeps_progress(
        self, service: EnrollmentService, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        enrollment = make_enrollment()
        mock_db.execute.return_value = scalar_result(enrollment)

        await service.delete_enrollment(100, tenant_admin)

        assert enrollment.is_deleted is True
        assert mock_db.execute.await_count == 1


class TestCourseProgress:
    """Tests for course progress updates."""

    @pytest.mark.asyncio
    async def test_student_cannot_touch_other_progress(
        self, service: EnrollmentService, student_actor: Actor
    ) -> None:
        with pytest.raises(ForbiddenError):
            await service.get_progress(43, 8, student_actor)

    @pytest.mark.asyncio
    async def test_progress_not_found(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(ProgressNotFoundError):
            await service.get_progress(42, 8, student_actor)

    @pytest.mark.asyncio
    async def test_update_requires_enrollment(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(NotEnrolledError):
            await service.update_progress(
                42, 8, CourseProgressUpdate(overall_progress_percentage=Decimal("10")), student_actor
            )

    @pytest.mark.asyncio
    async def test_update_accumulates_time(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        progress = make_progress()
        mock_db.execute.side_effect = [scalar_result(make_enrollment()), scalar_result(progress)]

        result = await service.update_progress(
            42,
            8,
            CourseProgressUpdate(overall_progress_percentage=Decimal("40"), time_spent_minutes=15),
            student_actor,
        )

        assert result.total_time_spent_minutes == 25
        assert result.overall_progress_percentage == Decimal("40")
        assert result.is_course_completed is False

    @pytest.mark.asyncio
    async def test_reaching_hundred_completes_enrollment(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        enrollment, progress = make_enrollment(), make_progress()
        mock_db.execute.side_effect = [scalar_result(enrollment), scalar_result(progress)]

        await service.update_progress(
            42, 8, CourseProgressUpdate(overall_progress_percentage=Decimal("100")), student_actor
        )

        assert progress.is_course_completed is True
        assert progress.completion_date is not None
        assert enrollment.enrollment_status == EnrollmentStatus.COMPLETED


class TestVideoProgress:
    """Tests for record_video_progress."""

    @pytest.mark.asyncio
    async def test_first_watch_creates_row(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(course_video_id=55, course_id=8, tenant_id=5)),
            scalar_result(make_enrollment()),
            scalar_result(None),
        ]
        mock_db.refresh.side_effect = lambda w: setattr(w, "video_progress_id", 300)

        result = await service.record_video_progress(
            42,
            55,
            VideoProgressUpdate(watch_duration_seconds=30, completion_percentage=Decimal("25")),
            student_actor,
        )

        watched = mock_db.add.call_args.args[0]
        assert isinstance(watched, VideoProgress)
        assert result.video_progress_id == 300
        assert result.watch_duration_seconds == 30
        assert result.is_completed is False

    @pytest.mark.asyncio
    async def test_progress_never_goes_backwards(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        watched = VideoProgress(
            video_progress_id=300,
            tenant_id=5,
            student_id=42,
            course_video_id=55,
            watch_duration_seconds=120,
            completion_percentage=Decimal("80"),
            is_completed=False,
        )
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(course_video_id=55, course_id=8, tenant_id=5)),
            scalar_result(make_enrollment()),
            scalar_result(watched),
        ]

        await service.record_video_progress(
            42,
            55,
            VideoProgressUpdate(watch_duration_seconds=10, completion_percentage=Decimal("5")),
            student_actor,
        )

        assert watched.watch_duration_seconds == 120
        assert watched.completion_percentage == Decimal("80")

    @pytest.mark.asyncio
    async def test_completion_recomputes_course_percentage(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        """Test that finishing 1 of 3 videos sets the course to 33.33%."""
        progress = make_progress()
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(course_video_id=55, course_id=8, tenant_id=5)),
            scalar_result(make_enrollment()),
            scalar_result(None),
            scalar_result(progress),
            scalar_result(3),
            scalar_result(1),
        ]
        mock_db.refresh.side_effect = lambda w: setattr(w, "video_progress_id", 301)

        result = await service.record_video_progress(
            42,
            55,
            VideoProgressUpdate(watch_duration_seconds=600, completion_percentage=Decimal("100")),
            student_actor,
        )

        assert result.is_completed is True
        assert progress.videos_completed == 1
        assert progress.overall_progress_percentage == Decimal("33.33")
        assert progress.is_course_completed is False
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_video_requires_enrollment(
        self, service: EnrollmentService, mock_db: AsyncMock, student_actor: Actor
    ) -> None:
        mock_db.execute.side_effect = [
            scalar_result(MagicMock(course_video_id=55, course_id=8, tenant_id=5)),
            scalar_result(None),
        ]

        with pytest.raises(NotEnrolledError):
            await service.record_video_progress(
                42,
                55,
                VideoProgressUpdate(watch_duration_seconds=1, completion_percentage=Decimal("1")),
                student_actor,
            )
