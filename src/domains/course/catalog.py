# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student-facing course catalog.

Read-only views over published courses: the catalog grid, the course
details page, the module and topic outlines and the video player with
its progress and locking state.

Videos of a topic unlock in order. The first video is always open; each
later video opens once the previous one is completed by the student.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.common.scoping import Actor, load_owned, tenant_filters
from src.domains.course.service import (
    CourseNotFoundError,
    ModuleNotFoundError,
    TopicNotFoundError,
    VideoNotFoundError,
)
from src.infrastructure.database.models import (
    Course,
    CourseModule,
    CourseTopic,
    CourseVideo,
    Enrollment,
    Program,
    Specialization,
    StudentCourseProgress,
    Teacher,
    TeacherCourse,
    VideoProgress,
)
from src.models.course import (
    CatalogCourseItem,
    CourseBasicDetails,
    CourseModuleSummary,
    CourseTopicSummary,
    TeacherBrief,
    TopicVideoItem,
    VideoDetails,
    VideoNavigation,
)
from src.models.enums import CourseCatalogFilter, CourseStatus, CourseType
from src.utils.datetime import format_duration

logger = logging.getLogger(__name__)

ANY = -1

STATUS_COMPLETED = "Completed"
STATUS_IN_PROGRESS = "In Progress"
STATUS_PENDING = "Pending"


def format_price(price: Decimal) -> str:
    """Render a price without trailing zeros: 99.00 → "99", 49.50 → "49.5"."""
    return f"{price.normalize():f}"


def purchase_status(course_type: CourseType, price: Decimal | None, purchased: bool) -> str:
    """Label shown on a catalog card.

    Examples:
        >>> purchase_status(CourseType.PAID, Decimal("99"), False)
        'Buy: $99'
        >>> purchase_status(CourseType.PAID, Decimal("99"), True)
        'Purchased'
    """
    if purchased:
        return "Purchased"
    if course_type == CourseType.FREE or price is None or price <= 0:
        return "Free"
    return f"Buy: ${format_price(price)}"


def completion_status(percentage: Decimal | None) -> str:
    if percentage is None or percentage <= 0:
        return STATUS_PENDING
    if percentage >= 100:
        return STATUS_COMPLETED
    return STATUS_IN_PROGRESS


def lock_states(videos: list[CourseVideo], progress: dict[int, VideoProgress] | None) -> list[bool]:
    """Locked flag of each video, in position order.

    Args:
        videos: Videos of one topic ordered by position.
        progress: Student progress by video id, or None when no student
            is known, in which case everything after the first is locked.
    """
    locked = []
    for index, _ in enumerate(videos):
        if index == 0:
            locked.append(False)
        elif progress is None:
            locked.append(True)
        else:
            previous = progress.get(videos[index - 1].course_video_id)
            locked.append(previous is None or not previous.is_completed)
    return locked


class CourseCatalogService:
    """Read-only catalog queries for students.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_courses_by_programs_and_specialization(
        self,
        actor: Actor,
        program_id: int = ANY,
        specialization_id: int = ANY,
        search: str | None = None,
        course_type: CourseCatalogFilter | None = None,
        student_id: int | None = None,
    ) -> list[CatalogCourseItem]:
        """Published courses reachable through specialization and program.

        Args:
            actor: The caller.
            program_id: Program filter; ``-1`` matches any program.
            specialization_id: Specialization filter; ``-1`` matches any.
            search: Substring of the course name.
            course_type: FREE, PAID or PURCHASED (enrolled courses only).
            student_id: Student whose enrollments decide purchase status.

        Returns:
            Catalog cards ordered by course name.
        """
        stmt = (
            select(Course, Specialization.specialization_name, Program.program_id, Program.program_name)
            .join(Specialization, Specialization.specialization_id == Course.specialization_id)
            .join(Program, Program.program_id == Specialization.program_id)
            .where(
                *tenant_filters(Course, actor),
                Course.is_active.is_(True),
                Course.course_status == CourseStatus.PUBLISHED,
                Specialization.is_active.is_(True),
                Specialization.is_deleted.is_(False),
                Program.is_active.is_(True),
                Program.is_deleted.is_(False),
            )
            .order_by(Course.course_name.asc())
        )
        if program_id is not None and program_id != ANY:
            stmt = stmt.where(Program.program_id == program_id)
        if specialization_id is not None and specialization_id != ANY:
            stmt = stmt.where(Specialization.specialization_id == specialization_id)
        if search and search.strip():
            stmt = stmt.where(Course.course_name.ilike(f"%{search.strip()}%"))
        if course_type == CourseCatalogFilter.FREE:
            stmt = stmt.where(Course.course_type == CourseType.FREE)
        elif course_type == CourseCatalogFilter.PAID:
            stmt = stmt.where(Course.course_type == CourseType.PAID)

        rows = (await self._db.execute(stmt)).all()
        course_ids = [course.course_id for course, *_ in rows]
        enrolled = await self._enrolled_course_ids(student_id, course_ids)
        teachers = await self._first_teachers(course_ids)

        items = []
        for course, specialization_name, prog_id, program_name in rows:
            purchased = course.course_id in enrolled
            if course_type == CourseCatalogFilter.PURCHASED and not purchased:
                continue
            teacher = teachers.get(course.course_id)
            items.append(
                CatalogCourseItem(
                    course_id=course.course_id,
                    course_name=course.course_name,
                    main_thumbnail_url=course.main_thumbnail_url,
                    program_id=prog_id,
                    program_name=program_name,
                    specialization_name=specialization_name,
                    teacher_name=teacher.full_name if teacher else None,
                    profile_picture_url=teacher.profile_picture_url if teacher else None,
                    teacher_qualification=teacher.teacher_qualification if teacher else None,
                    course_total_hours=course.course_total_hours,
                    purchase_status=purchase_status(
                        course.course_type, course.course_price, purchased
                    ),
                )
            )

        logger.debug(
            "Catalog query program=%s specialization=%s returned %d courses",
            program_id,
            specialization_id,
            len(items),
        )
        return items

    async def get_course_basic_details(
        self, course_id: int, actor: Actor, student_id: int | None = None
    ) -> CourseBasicDetails:
        course = await load_owned(
            self._db, Course, Course.course_id, course_id, actor, CourseNotFoundError
        )

        specialization_name = program_name = None
        if course.specialization_id is not None:
            names = (
                await self._db.execute(
                    select(Specialization.specialization_name, Program.program_name)
                    .join(Program, Program.program_id == Specialization.program_id)
                    .where(Specialization.specialization_id == course.specialization_id)
                )
            ).first()
            if names is not None:
                specialization_name, program_name = names

        teacher = (await self._first_teachers([course_id])).get(course_id)
        enrolled = await self._enrolled_course_ids(student_id, [course_id])

        percentage = Decimal("0")
        if student_id is not None:
            progress = (
                await self._db.execute(
                    select(StudentCourseProgress).where(
                        StudentCourseProgress.student_id == student_id,
                        StudentCourseProgress.course_id == course_id,
                        StudentCourseProgress.is_deleted.is_(False),
                    )
                )
            ).scalar_one_or_none()
            if progress is not None:
                percentage = progress.overall_progress_percentage

        return CourseBasicDetails(
            course_id=course.course_id,
            course_name=course.course_name,
            course_description=course.course_description,
            main_thumbnail_url=course.main_thumbnail_url,
            course_total_hours=course.course_total_hours,
            overall_progress_percentage=percentage,
            teacher=_teacher_brief(teacher),
            purchase_status=purchase_status(
                course.course_type, course.course_price, course_id in enrolled
            ),
            program_name=program_name,
            specialization_name=specialization_name,
        )

    async def get_course_modules(self, course_id: int, actor: Actor) -> list[CourseModuleSummary]:
        """Module outline of a course with topic and video counts."""
        await load_owned(self._db, Course, Course.course_id, course_id, actor, CourseNotFoundError)

        modules = await self._active(
            CourseModule, CourseModule.course_id == course_id, order_by=CourseModule.position
        )
        module_ids = [m.course_module_id for m in modules]
        topic_counts = await self._count_by(
            CourseTopic.module_id, CourseTopic, CourseTopic.module_id.in_(module_ids)
        )
        video_counts = await self._count_by(
            CourseTopic.module_id,
            CourseVideo,
            CourseTopic.module_id.in_(module_ids),
            join=(CourseTopic, CourseTopic.course_topic_id == CourseVideo.course_topic_id),
        )

        summaries = []
        for module in modules:
            topics = topic_counts.get(module.course_module_id, 0)
            videos = video_counts.get(module.course_module_id, 0)
            summaries.append(
                CourseModuleSummary(
                    course_module_id=module.course_module_id,
                    course_module_name=module.course_module_name,
                    position=module.position,
                    topics_count=topics,
                    videos_count=videos,
                    module_stats=f"{topics} Topics  |  {videos} Video Lectures",
                )
            )
        return summaries

    async def get_course_topics_by_module_id(
        self, module_id: int, actor: Actor
    ) -> list[CourseTopicSummary]:
        await load_owned(
            self._db,
            CourseModule,
            CourseModule.course_module_id,
            module_id,
            actor,
            ModuleNotFoundError,
        )
        topics = await self._active(
            CourseTopic, CourseTopic.module_id == module_id, order_by=CourseTopic.position
        )
        video_counts = await self._count_by(
            CourseVideo.course_topic_id,
            CourseVideo,
            CourseVideo.course_topic_id.in_([t.course_topic_id for t in topics]),
        )

        return [
            CourseTopicSummary(
                course_topic_id=topic.course_topic_id,
                course_topic_name=topic.course_topic_name,
                position=topic.position,
                videos_count=video_counts.get(topic.course_topic_id, 0),
                overall_video_lectures=f"{video_counts.get(topic.course_topic_id, 0)} Video Lectures",
            )
            for topic in topics
        ]

    async def get_all_course_videos_by_topic_id(
        self, topic_id: int, actor: Actor, student_id: int | None = None
    ) -> list[TopicVideoItem]:
        """Videos of a topic with the student's progress and lock state."""
        await load_owned(
            self._db, CourseTopic, CourseTopic.course_topic_id, topic_id, actor, TopicNotFoundError
        )
        videos = await self._active(
            CourseVideo, CourseVideo.course_topic_id == topic_id, order_by=CourseVideo.position
        )

        progress: dict[int, VideoProgress] | None = None
        if student_id is not None:
            progress = {}
            if videos:
                rows = await self._active(
                    VideoProgress,
                    VideoProgress.student_id == student_id,
                    VideoProgress.course_video_id.in_([v.course_video_id for v in videos]),
                )
                progress = {p.course_video_id: p for p in rows}

        items = []
        for video, locked in zip(videos, lock_states(videos, progress)):
            watched = (progress or {}).get(video.course_video_id)
            percentage = watched.completion_percentage if watched else Decimal("0")
            items.append(
                TopicVideoItem(
                    course_video_id=video.course_video_id,
                    video_name=video.video_name,
                    thumbnail_url=video.thumbnail_url,
                    position=video.position,
                    duration_seconds=video.duration_seconds,
                    duration=format_duration(video.duration_seconds),
                    completion_percentage=percentage,
                    completion_status=completion_status(percentage),
                    is_locked=locked,
                )
            )
        return items

    async def get_video_details_by_id(self, video_id: int, actor: Actor) -> VideoDetails:
        """Player view of one video with previous and next navigation in its topic."""
        video = await load_owned(
            self._db, CourseVideo, CourseVideo.course_video_id, video_id, actor, VideoNotFoundError
        )
        siblings = select(CourseVideo).where(
            CourseVideo.course_topic_id == video.course_topic_id,
            CourseVideo.is_active.is_(True),
            CourseVideo.is_deleted.is_(False),
        )
        previous = (
            await self._db.execute(
                siblings.where(CourseVideo.position < video.position)
                .order_by(CourseVideo.position.desc())
                .limit(1)
            )
        ).scalar_one_or_none()
        following = (
            await self._db.execute(
                siblings.where(CourseVideo.position > video.position)
                .order_by(CourseVideo.position.asc())
                .limit(1)
            )
        ).scalar_one_or_none()
        teacher = (await self._first_teachers([video.course_id])).get(video.course_id)

        return VideoDetails(
            course_video_id=video.course_video_id,
            course_id=video.course_id,
            course_topic_id=video.course_topic_id,
            video_name=f"Lecture:{video.position} {video.video_name}",
            video_url=video.video_url,
            bunny_video_id=video.bunny_video_id,
            thumbnail_url=video.thumbnail_url,
            duration_seconds=video.duration_seconds,
            duration=format_duration(video.duration_seconds),
            teacher=_teacher_brief(teacher),
            previous_video=_navigation(previous),
            next_video=_navigation(following),
        )

    # Helpers

    async def _active(self, model: Any, *criteria: Any, order_by: Any = None) -> list[Any]:
        stmt = select(model).where(
            *criteria, model.is_active.is_(True), model.is_deleted.is_(False)
        )
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list((await self._db.execute(stmt)).scalars().all())

    async def _count_by(
        self,
        key: Any,
        model: Any,
        *criteria: Any,
        join: tuple[Any, Any] | None = None,
    ) -> dict[int, int]:
        stmt = select(key, func.count()).select_from(model)
        if join is not None:
            stmt = stmt.join(*join)
        stmt = stmt.where(
            *criteria, model.is_active.is_(True), model.is_deleted.is_(False)
        ).group_by(key)
        return {row[0]: row[1] for row in (await self._db.execute(stmt)).all()}

    async def _enrolled_course_ids(
        self, student_id: int | None, course_ids: Iterable[int]
    ) -> set[int]:
        course_ids = list(course_ids)
        if student_id is None or not course_ids:
            return set()
        result = await self._db.execute(
            select(Enrollment.course_id).where(
                Enrollment.student_id == student_id,
                Enrollment.course_id.in_(course_ids),
                Enrollment.is_deleted.is_(False),
            )
        )
        return set(result.scalars().all())

    async def _first_teachers(self, course_ids: Iterable[int]) -> dict[int, Teacher]:
        """Earliest assigned live teacher of each course."""
        course_ids = list(course_ids)
        if not course_ids:
            return {}
        result = await self._db.execute(
            select(TeacherCourse.course_id, Teacher)
            .join(Teacher, Teacher.teacher_id == TeacherCourse.teacher_id)
            .where(
                TeacherCourse.course_id.in_(course_ids),
                TeacherCourse.is_deleted.is_(False),
                Teacher.is_deleted.is_(False),
            )
            .order_by(TeacherCourse.created_at.asc())
        )
        teachers: dict[int, Teacher] = {}
        for course_id, teacher in result.all():
            teachers.setdefault(course_id, teacher)
        return teachers


def _teacher_brief(teacher: Teacher | None) -> TeacherBrief | None:
    if teacher is None:
        return None
    return TeacherBrief(
        teacher_id=teacher.teacher_id,
        full_name=teacher.full_name,
        profile_picture_url=teacher.profile_picture_url,
        teacher_qualification=teacher.teacher_qualification,
    )


def _navigation(video: CourseVideo | None) -> VideoNavigation | None:
    if video is None:
        return None
    return VideoNavigation(
        course_video_id=video.course_video_id,
        video_name=video.video_name,
        duration=format_duration(video.duration_seconds),
    )
