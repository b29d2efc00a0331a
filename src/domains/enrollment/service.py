# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment service for managing student course enrollments.

This module provides the EnrollmentService class for:
- Enrolling students in courses of their tenant
- Enrollment status changes and withdrawal
- Course and video progress tracking

Enrolling creates the student's course progress row in the same
transaction. Completing a video recomputes the course percentage from the
share of completed videos.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ConflictError, ForbiddenError, NotFoundError
from src.domains.common.listing import ListParams, paginate
from src.domains.common.scoping import (
    Actor,
    commit_unique,
    conflict_for,
    create_audit_fields,
    load_owned,
    stamp_delete,
    stamp_update,
    tenant_filters,
)
from src.domains.course.service import CourseNotFoundError, VideoNotFoundError
from src.domains.student.service import StudentNotFoundError
from src.domains.teacher.service import TeacherNotFoundError
from src.infrastructure.database.models import (
    Course,
    CourseVideo,
    Enrollment,
    Student,
    StudentCourseProgress,
    Teacher,
    VideoProgress,
)
from src.models.enrollment import (
    CourseProgressResponse,
    CourseProgressUpdate,
    EnrollmentCreate,
    EnrollmentResponse,
    EnrollmentUpdate,
    VideoProgressResponse,
    VideoProgressUpdate,
)
from src.models.enums import EnrollmentStatus, UserType
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")

ENROLLMENT_SORT_FIELDS = {
    "enrollmentId": Enrollment.enrollment_id,
    "enrolledAt": Enrollment.enrolled_at,
    "enrollmentStatus": Enrollment.enrollment_status,
    "createdAt": Enrollment.created_at,
}


class EnrollmentNotFoundError(NotFoundError):
    default_code = "ENROLLMENT_NOT_FOUND"
    default_message = "Enrollment not found"


class AlreadyEnrolledError(ConflictError):
    default_code = "ALREADY_ENROLLED"
    default_message = "Student is already enrolled in this course"


class NotEnrolledError(ForbiddenError):
    default_code = "NOT_ENROLLED"
    default_message = "Student is not enrolled in this course"


class ProgressNotFoundError(NotFoundError):
    default_code = "PROGRESS_NOT_FOUND"
    default_message = "Course progress not found"


_ENROLLMENT_CONFLICTS = {"uq_enrollments": AlreadyEnrolledError}


class EnrollmentService:
    """Service for enrollments and learning progress.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def enroll_student(self, data: EnrollmentCreate, actor: Actor) -> EnrollmentResponse:
        """Enroll a student in a course of the same tenant.

        Args:
            data: Course, student and optional teacher.
            actor: The caller.

        Returns:
            The new enrollment.

        Raises:
            CourseNotFoundError: Unknown course.
            StudentNotFoundError: Unknown student or student of another tenant.
            AlreadyEnrolledError: A live enrollment already exists.
        """
        course = await load_owned(
            self._db, Course, Course.course_id, data.course_id, actor, CourseNotFoundError
        )
        student = await load_owned(
            self._db, Student, Student.student_id, data.student_id, actor, StudentNotFoundError
        )
        if student.tenant_id != course.tenant_id:
            raise StudentNotFoundError("Student does not belong to the course tenant")
        if data.teacher_id is not None:
            teacher = await load_owned(
                self._db, Teacher, Teacher.teacher_id, data.teacher_id, actor, TeacherNotFoundError
            )
            if teacher.tenant_id != course.tenant_id:
                raise TeacherNotFoundError("Teacher does not belong to the course tenant")

        if await self._get_live_enrollment(data.student_id, data.course_id) is not None:
            raise AlreadyEnrolledError()

        audit = create_audit_fields(actor)
        enrollment = Enrollment(
            tenant_id=course.tenant_id,
            course_id=course.course_id,
            student_id=student.student_id,
            teacher_id=data.teacher_id,
            enrollment_status=data.enrollment_status,
            enrolled_at=utc_now(),
            is_active=True,
            is_deleted=False,
            **audit,
        )

        try:
            self._db.add(enrollment)
            if await self._get_progress(student.student_id, course.course_id) is None:
                self._db.add(
                    StudentCourseProgress(
                        tenant_id=course.tenant_id,
                        student_id=student.student_id,
                        course_id=course.course_id,
                        overall_progress_percentage=Decimal("0"),
                        modules_completed=0,
                        videos_completed=0,
                        total_time_spent_minutes=0,
                        is_course_completed=False,
                        is_active=True,
                        is_deleted=False,
                        **audit,
                    )
                )
            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            conflict = conflict_for(e, _ENROLLMENT_CONFLICTS)
            if conflict is None:
                raise
            raise conflict from e
        except Exception:
            await self._db.rollback()
            raise

        await self._db.refresh(enrollment)
        logger.info(
            "Student %s enrolled in course %s (enrollment %s)",
            student.student_id,
            course.course_id,
            enrollment.enrollment_id,
        )
        return EnrollmentResponse.model_validate(enrollment)

    async def get_enrollment(self, enrollment_id: int, actor: Actor) -> EnrollmentResponse:
        enrollment = await self._get(enrollment_id, actor)
        return EnrollmentResponse.model_validate(enrollment)

    async def list_enrollments(
        self,
        params: ListParams,
        actor: Actor,
        course_id: int | None = None,
        student_id: int | None = None,
        status: EnrollmentStatus | None = None,
    ) -> tuple[list[EnrollmentResponse], int]:
        """List enrollments; a student only ever sees its own."""
        stmt = select(Enrollment).where(*tenant_filters(Enrollment, actor))
        if actor.user_type == UserType.STUDENT:
            student_id = actor.id
        if course_id is not None:
            stmt = stmt.where(Enrollment.course_id == course_id)
        if student_id is not None:
            stmt = stmt.where(Enrollment.student_id == student_id)
        if status is not None:
            stmt = stmt.where(Enrollment.enrollment_status == status)

        enrollments, total = await paginate(
            self._db,
            stmt,
            params,
            sort_fields=ENROLLMENT_SORT_FIELDS,
            default_sort=Enrollment.enrolled_at,
        )
        return [EnrollmentResponse.model_validate(e) for e in enrollments], total

    async def update_enrollment(
        self, enrollment_id: int, data: EnrollmentUpdate, actor: Actor
    ) -> EnrollmentResponse:
        enrollment = await self._get(enrollment_id, actor)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("teacher_id") is not None:
            teacher = await load_owned(
                self._db,
                Teacher,
                Teacher.teacher_id,
                changes["teacher_id"],
                actor,
                TeacherNotFoundError,
            )
            if teacher.tenant_id != enrollment.tenant_id:
                raise TeacherNotFoundError("Teacher does not belong to the course tenant")

        stamp_update(enrollment, actor, changes)
        await self._db.commit()
        await self._db.refresh(enrollment)

        logger.info("Enrollment updated: %s fields=%s", enrollment_id, sorted(changes))
        return EnrollmentResponse.model_validate(enrollment)

    async def delete_enrollment(self, enrollment_id: int, actor: Actor) -> None:
        """Withdraw a student; the progress row is kept for re-enrollment."""
        enrollment = await self._get(enrollment_id, actor)
        stamp_delete([enrollment], actor)
        await self._db.commit()
        logger.info("Enrollment deleted: %s by %s", enrollment_id, actor.id)

    # Progress

    async def get_progress(
        self, student_id: int, course_id: int, actor: Actor
    ) -> CourseProgressResponse:
        self._ensure_self(actor, student_id)
        progress = await self._get_progress(student_id, course_id)
        if progress is None:
            raise ProgressNotFoundError()
        if not actor.is_super_admin and progress.tenant_id != actor.tenant_id:
            raise ProgressNotFoundError()
        return CourseProgressResponse.model_validate(progress)

    async def update_progress(
        self,
        student_id: int,
        course_id: int,
        data: CourseProgressUpdate,
        actor: Actor,
    ) -> CourseProgressResponse:
        """Record course progress reported by the player.

        Reaching 100% marks the course and the enrollment completed.

        Raises:
            NotEnrolledError: Student has no live enrollment in the course.
        """
        self._ensure_self(actor, student_id)
        enrollment = await self._get_live_enrollment(student_id, course_id)
        if enrollment is None or (
            not actor.is_super_admin and enrollment.tenant_id != actor.tenant_id
        ):
            raise NotEnrolledError()

        progress = await self._get_progress(student_id, course_id)
        if progress is None:
            raise ProgressNotFoundError()

        changes = {
            "overall_progress_percentage": data.overall_progress_percentage,
            "total_time_spent_minutes": progress.total_time_spent_minutes
            + data.time_spent_minutes,
            "last_accessed_at": utc_now(),
        }
        if data.modules_completed is not None:
            changes["modules_completed"] = data.modules_completed
        if data.videos_completed is not None:
            changes["videos_completed"] = data.videos_completed

        stamp_update(progress, actor, changes)
        self._mark_completion(progress, enrollment, actor)
        await self._db.commit()
        await self._db.refresh(progress)

        logger.info(
            "Progress of student %s in course %s: %s%%",
            student_id,
            course_id,
            progress.overall_progress_percentage,
        )
        return CourseProgressResponse.model_validate(progress)

    async def record_video_progress(
        self,
        student_id: int,
        course_video_id: int,
        data: VideoProgressUpdate,
        actor: Actor,
    ) -> VideoProgressResponse:
        """Upsert how far a student watched a video.

        Watched seconds and percentage never go backwards. The first time a
        video reaches 100% the course progress is recomputed.
        """
        self._ensure_self(actor, student_id)
        video = await load_owned(
            self._db,
            CourseVideo,
            CourseVideo.course_video_id,
            course_video_id,
            actor,
            VideoNotFoundError,
        )
        enrollment = await self._get_live_enrollment(student_id, video.course_id)
        if enrollment is None:
            raise NotEnrolledError()

        result = await self._db.execute(
            select(VideoProgress).where(
                VideoProgress.student_id == student_id,
                VideoProgress.course_video_id == course_video_id,
                VideoProgress.is_deleted.is_(False),
            )
        )
        watched = result.scalar_one_or_none()
        if watched is None:
            watched = VideoProgress(
                tenant_id=video.tenant_id,
                student_id=student_id,
                course_video_id=course_video_id,
                watch_duration_seconds=0,
                completion_percentage=Decimal("0"),
                is_completed=False,
                is_active=True,
                is_deleted=False,
                **create_audit_fields(actor),
            )
            self._db.add(watched)

        newly_completed = not watched.is_completed and data.completion_percentage >= HUNDRED
        stamp_update(
            watched,
            actor,
            {
                "watch_duration_seconds": max(
                    watched.watch_duration_seconds, data.watch_duration_seconds
                ),
                "completion_percentage": max(
                    watched.completion_percentage, data.completion_percentage
                ),
                "last_watched_at": utc_now(),
                "is_completed": watched.is_completed or newly_completed,
            },
        )

        if newly_completed:
            await self._recompute_course_progress(student_id, video.course_id, enrollment, actor)

        await self._db.commit()
        await self._db.refresh(watched)
        return VideoProgressResponse.model_validate(watched)

    # Helpers

    async def _recompute_course_progress(
        self, student_id: int, course_id: int, enrollment: Enrollment, actor: Actor
    ) -> None:
        progress = await self._get_progress(student_id, course_id)
        if progress is None:
            return

        await self._db.flush()
        total = (
            await self._db.execute(
                select(func.count())
                .select_from(CourseVideo)
                .where(
                    CourseVideo.course_id == course_id,
                    CourseVideo.is_active.is_(True),
                    CourseVideo.is_deleted.is_(False),
                )
            )
        ).scalar() or 0
        completed = (
            await self._db.execute(
                select(func.count())
                .select_from(VideoProgress)
                .join(CourseVideo, CourseVideo.course_video_id == VideoProgress.course_video_id)
                .where(
                    VideoProgress.student_id == student_id,
                    VideoProgress.is_completed.is_(True),
                    VideoProgress.is_deleted.is_(False),
                    CourseVideo.course_id == course_id,
                    CourseVideo.is_deleted.is_(False),
                )
            )
        ).scalar() or 0

        percentage = (
            (Decimal(completed) * HUNDRED / Decimal(total)).quantize(
                Decimal("0.01"), rounding=ROUND_HALF_UP
            )
            if total
            else Decimal("0")
        )
        stamp_update(
            progress,
            actor,
            {
                "videos_completed": completed,
                "overall_progress_percentage": min(percentage, HUNDRED),
                "last_accessed_at": utc_now(),
            },
        )
        self._mark_completion(progress, enrollment, actor)

    def _mark_completion(
        self, progress: StudentCourseProgress, enrollment: Enrollment, actor: Actor
    ) -> None:
        if progress.overall_progress_percentage >= HUNDRED and not progress.is_course_completed:
            stamp_update(
                progress, actor, {"is_course_completed": True, "completion_date": utc_now()}
            )
            stamp_update(enrollment, actor, {"enrollment_status": EnrollmentStatus.COMPLETED})
            logger.info(
                "Student %s completed course %s", progress.student_id, progress.course_id
            )

    @staticmethod
    def _ensure_self(actor: Actor, student_id: int) -> None:
        if actor.user_type == UserType.STUDENT and actor.id != student_id:
            raise ForbiddenError("Students can only access their own progress")

    async def _get(self, enrollment_id: int, actor: Actor) -> Enrollment:
        enrollment = await load_owned(
            self._db,
            Enrollment,
            Enrollment.enrollment_id,
            enrollment_id,
            actor,
            EnrollmentNotFoundError,
        )
        if actor.user_type == UserType.STUDENT and enrollment.student_id != actor.id:
            raise EnrollmentNotFoundError()
        return enrollment

    async def _get_live_enrollment(self, student_id: int, course_id: int) -> Enrollment | None:
        result = await self._db.execute(
            select(Enrollment).where(
                Enrollment.student_id == student_id,
                Enrollment.course_id == course_id,
                Enrollment.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def _get_progress(
        self, student_id: int, course_id: int
    ) -> StudentCourseProgress | None:
        result = await self._db.execute(
            select(StudentCourseProgress).where(
                StudentCourseProgress.student_id == student_id,
                StudentCourseProgress.course_id == course_id,
                StudentCourseProgress.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()
