# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course authoring service.

Manages courses and their content tree (module → topic → video) and the
assignment of teachers to courses. The read-only student catalog lives in
:mod:`src.domains.course.catalog`.
"""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ConflictError, ForbiddenError, NotFoundError
from src.domains.common.listing import ListParams, paginate
from src.domains.common.scoping import (
    Actor,
    commit_unique,
    create_audit_fields,
    load_owned,
    resolve_tenant_id,
    stamp_delete,
    stamp_update,
    tenant_filters,
)
from src.domains.program.service import SpecializationNotFoundError
from src.domains.teacher.service import TeacherNotFoundError
from src.infrastructure.database.models import (
    Course,
    CourseModule,
    CourseTopic,
    CourseVideo,
    Specialization,
    Teacher,
    TeacherCourse,
)
from src.models.course import (
    CourseCreate,
    CourseModuleCreate,
    CourseModuleResponse,
    CourseModuleUpdate,
    CourseResponse,
    CourseTopicCreate,
    CourseTopicResponse,
    CourseTopicUpdate,
    CourseUpdate,
    CourseVideoCreate,
    CourseVideoResponse,
    CourseVideoUpdate,
    TeacherCourseResponse,
)
from src.models.enums import CourseStatus, CourseType

logger = logging.getLogger(__name__)

COURSE_SORT_FIELDS = {
    "courseId": Course.course_id,
    "courseName": Course.course_name,
    "courseStatus": Course.course_status,
    "coursePrice": Course.course_price,
    "createdAt": Course.created_at,
    "updatedAt": Course.updated_at,
}


class CourseNotFoundError(NotFoundError):
    default_code = "COURSE_NOT_FOUND"
    default_message = "Course not found"


class CourseAccessDeniedError(ForbiddenError):
    default_code = "COURSE_ACCESS_DENIED"
    default_message = "Course not found in your tenant"


class CourseNameExistsError(ConflictError):
    default_code = "COURSE_NAME_EXISTS"
    default_message = "A course with this name already exists"


class ModuleNotFoundError(NotFoundError):
    default_code = "MODULE_NOT_FOUND"
    default_message = "Course module not found"


class TopicNotFoundError(NotFoundError):
    default_code = "TOPIC_NOT_FOUND"
    default_message = "Course topic not found"


class VideoNotFoundError(NotFoundError):
    default_code = "VIDEO_NOT_FOUND"
    default_message = "Video not found"


class TeacherAlreadyAssignedError(ConflictError):
    default_code = "TEACHER_ALREADY_ASSIGNED"
    default_message = "Teacher is already assigned to this course"


class TeacherAssignmentNotFoundError(NotFoundError):
    default_code = "TEACHER_ASSIGNMENT_NOT_FOUND"
    default_message = "Teacher is not assigned to this course"


_COURSE_CONFLICTS = {"uq_courses_name": CourseNameExistsError}
_ASSIGNMENT_CONFLICTS = {"uq_teacher_courses": TeacherAlreadyAssignedError}


class CourseService:
    """Service for course authoring.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    # Courses

    async def create_course(self, data: CourseCreate, actor: Actor) -> CourseResponse:
        """Create a course.

        Args:
            data: Course fields; ``specialization_id`` must belong to the tenant.
            actor: The caller.

        Returns:
            The created course.

        Raises:
            CourseNameExistsError: If the name is taken in the tenant.
            SpecializationNotFoundError: Unknown specialization.
        """
        tenant_id = resolve_tenant_id(actor, data.tenant_id)
        if data.specialization_id is not None:
            await self._ensure_specialization(data.specialization_id, tenant_id, actor)

        if await self._name_taken(tenant_id, data.course_name):
            raise CourseNameExistsError()

        course = Course(
            tenant_id=tenant_id,
            specialization_id=data.specialization_id,
            course_name=data.course_name,
            course_description=data.course_description,
            main_thumbnail_url=data.main_thumbnail_url,
            course_status=data.course_status,
            course_type=data.course_type,
            course_price=data.course_price,
            course_total_hours=data.course_total_hours,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(course)
        await commit_unique(self._db, _COURSE_CONFLICTS)
        await self._db.refresh(course)

        logger.info("Course created: %s (%s)", course.course_id, course.course_name)
        return CourseResponse.model_validate(course)

    async def get_course(self, course_id: int, actor: Actor) -> CourseResponse:
        course = await load_owned(
            self._db, Course, Course.course_id, course_id, actor, CourseNotFoundError
        )
        return CourseResponse.model_validate(course)

    async def list_courses(
        self,
        params: ListParams,
        actor: Actor,
        course_status: CourseStatus | None = None,
        course_type: CourseType | None = None,
        specialization_id: int | None = None,
    ) -> tuple[list[CourseResponse], int]:
        stmt = select(Course).where(*tenant_filters(Course, actor))
        if course_status is not None:
            stmt = stmt.where(Course.course_status == course_status)
        if course_type is not None:
            stmt = stmt.where(Course.course_type == course_type)
        if specialization_id is not None:
            stmt = stmt.where(Course.specialization_id == specialization_id)

        courses, total = await paginate(
            self._db,
            stmt,
            params,
            sort_fields=COURSE_SORT_FIELDS,
            default_sort=Course.created_at,
            search_columns=[Course.course_name, Course.course_description],
        )
        return [CourseResponse.model_validate(c) for c in courses], total

    async def update_course(
        self, course_id: int, data: CourseUpdate, actor: Actor
    ) -> CourseResponse:
        course = await self._get_for_write(course_id, actor)
        changes = data.model_dump(exclude_unset=True)

        new_name = changes.get("course_name")
        if new_name and new_name != course.course_name:
            if await self._name_taken(course.tenant_id, new_name, exclude_id=course_id):
                raise CourseNameExistsError()
        if changes.get("specialization_id") is not None:
            await self._ensure_specialization(
                changes["specialization_id"], course.tenant_id, actor
            )

        stamp_update(course, actor, changes)
        await commit_unique(self._db, _COURSE_CONFLICTS)
        await self._db.refresh(course)

        logger.info("Course updated: %s fields=%s", course_id, sorted(changes))
        return CourseResponse.model_validate(course)

    async def delete_course(self, course_id: int, actor: Actor) -> None:
        """Soft-delete a course with its content tree and teacher links."""
        course = await self._get_for_write(course_id, actor)

        modules = await self._live(CourseModule, CourseModule.course_id == course_id)
        module_ids = [m.course_module_id for m in modules]
        topics = (
            await self._live(CourseTopic, CourseTopic.module_id.in_(module_ids))
            if module_ids
            else []
        )
        videos = await self._live(CourseVideo, CourseVideo.course_id == course_id)
        links = await self._live(TeacherCourse, TeacherCourse.course_id == course_id)

        stamp_delete([course, *modules, *topics, *videos, *links], actor)
        await self._db.commit()
        logger.info("Course deleted: %s by %s", course_id, actor.id)

    # Modules

    async def list_modules(self, course_id: int, actor: Actor) -> list[CourseModuleResponse]:
        await load_owned(self._db, Course, Course.course_id, course_id, actor, CourseNotFoundError)
        modules = await self._live(
            CourseModule, CourseModule.course_id == course_id, order_by=CourseModule.position
        )
        return [CourseModuleResponse.model_validate(m) for m in modules]

    async def create_module(
        self, course_id: int, data: CourseModuleCreate, actor: Actor
    ) -> CourseModuleResponse:
        course = await self._get_for_write(course_id, actor)
        module = CourseModule(
            tenant_id=course.tenant_id,
            course_id=course.course_id,
            course_module_name=data.course_module_name,
            position=data.position,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(module)
        await self._db.commit()
        await self._db.refresh(module)

        logger.info("Module created: %s in course %s", module.course_module_id, course_id)
        return CourseModuleResponse.model_validate(module)

    async def update_module(
        self, module_id: int, data: CourseModuleUpdate, actor: Actor
    ) -> CourseModuleResponse:
        module = await self._get_module(module_id, actor)
        stamp_update(module, actor, data.model_dump(exclude_unset=True))
        await self._db.commit()
        await self._db.refresh(module)
        return CourseModuleResponse.model_validate(module)

    async def delete_module(self, module_id: int, actor: Actor) -> None:
        """Soft-delete a module with its topics and their videos."""
        module = await self._get_module(module_id, actor)
        topics = await self._live(CourseTopic, CourseTopic.module_id == module_id)
        topic_ids = [t.course_topic_id for t in topics]
        videos = (
            await self._live(CourseVideo, CourseVideo.course_topic_id.in_(topic_ids))
            if topic_ids
            else []
        )
        stamp_delete([module, *topics, *videos], actor)
        await self._db.commit()
        logger.info("Module deleted: %s by %s", module_id, actor.id)

    # Topics

    async def list_topics(self, module_id: int, actor: Actor) -> list[CourseTopicResponse]:
        await self._get_module(module_id, actor)
        topics = await self._live(
            CourseTopic, CourseTopic.module_id == module_id, order_by=CourseTopic.position
        )
        return [CourseTopicResponse.model_validate(t) for t in topics]

    async def create_topic(
        self, module_id: int, data: CourseTopicCreate, actor: Actor
    ) -> CourseTopicResponse:
        module = await self._get_module(module_id, actor)
        topic = CourseTopic(
            tenant_id=module.tenant_id,
            module_id=module.course_module_id,
            course_topic_name=data.course_topic_name,
            position=data.position,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(topic)
        await self._db.commit()
        await self._db.refresh(topic)

        logger.info("Topic created: %s in module %s", topic.course_topic_id, module_id)
        return CourseTopicResponse.model_validate(topic)

    async def update_topic(
        self, topic_id: int, data: CourseTopicUpdate, actor: Actor
    ) -> CourseTopicResponse:
        topic = await self._get_topic(topic_id, actor)
        stamp_update(topic, actor, data.model_dump(exclude_unset=True))
        await self._db.commit()
        await self._db.refresh(topic)
        return CourseTopicResponse.model_validate(topic)

    async def delete_topic(self, topic_id: int, actor: Actor) -> None:
        topic = await self._get_topic(topic_id, actor)
        videos = await self._live(CourseVideo, CourseVideo.course_topic_id == topic_id)
        stamp_delete([topic, *videos], actor)
        await self._db.commit()
        logger.info("Topic deleted: %s by %s", topic_id, actor.id)

    # Videos

    async def create_video(
        self, topic_id: int, data: CourseVideoCreate, actor: Actor
    ) -> CourseVideoResponse:
        topic = await self._get_topic(topic_id, actor)
        module = await self._get_module(topic.module_id, actor)
        video = CourseVideo(
            tenant_id=topic.tenant_id,
            course_id=module.course_id,
            course_topic_id=topic.course_topic_id,
            **data.model_dump(),
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(video)
        await self._db.commit()
        await self._db.refresh(video)

        logger.info("Video created: %s in topic %s", video.course_video_id, topic_id)
        return CourseVideoResponse.model_validate(video)

    async def update_video(
        self, video_id: int, data: CourseVideoUpdate, actor: Actor
    ) -> CourseVideoResponse:
        video = await load_owned(
            self._db, CourseVideo, CourseVideo.course_video_id, video_id, actor, VideoNotFoundError
        )
        stamp_update(video, actor, data.model_dump(exclude_unset=True))
        await self._db.commit()
        await self._db.refresh(video)
        return CourseVideoResponse.model_validate(video)

    async def delete_video(self, video_id: int, actor: Actor) -> None:
        video = await load_owned(
            self._db, CourseVideo, CourseVideo.course_video_id, video_id, actor, VideoNotFoundError
        )
        stamp_delete([video], actor)
        await self._db.commit()
        logger.info("Video deleted: %s by %s", video_id, actor.id)

    # Teachers

    async def assign_teacher(
        self, course_id: int, teacher_id: int, actor: Actor
    ) -> TeacherCourseResponse:
        """Assign a teacher of the course's tenant to the course.

        Raises:
            TeacherNotFoundError: Unknown teacher.
            TeacherAlreadyAssignedError: The assignment already exists.
        """
        course = await self._get_for_write(course_id, actor)
        teacher = await load_owned(
            self._db, Teacher, Teacher.teacher_id, teacher_id, actor, TeacherNotFoundError
        )
        if teacher.tenant_id != course.tenant_id:
            raise TeacherNotFoundError("Teacher does not belong to the course tenant")

        if await self._get_assignment(course_id, teacher_id) is not None:
            raise TeacherAlreadyAssignedError()

        link = TeacherCourse(
            tenant_id=course.tenant_id,
            course_id=course_id,
            teacher_id=teacher_id,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(link)
        await commit_unique(self._db, _ASSIGNMENT_CONFLICTS)
        await self._db.refresh(link)

        logger.info("Teacher %s assigned to course %s", teacher_id, course_id)
        return TeacherCourseResponse.model_validate(link)

    async def unassign_teacher(self, course_id: int, teacher_id: int, actor: Actor) -> None:
        await self._get_for_write(course_id, actor)
        link = await self._get_assignment(course_id, teacher_id)
        if link is None:
            raise TeacherAssignmentNotFoundError()
        stamp_delete([link], actor)
        await self._db.commit()
        logger.info("Teacher %s removed from course %s", teacher_id, course_id)

    # Helpers

    async def _get_for_write(self, course_id: int, actor: Actor) -> Course:
        """Load a course for mutation.

        A non-SUPER_ADMIN only ever looks inside its own tenant, so a miss
        is reported as access denied rather than not found.
        """
        stmt = select(Course).where(
            Course.course_id == course_id,
            *tenant_filters(Course, actor),
        )
        course = (await self._db.execute(stmt)).scalar_one_or_none()
        if course is None:
            if actor.is_super_admin:
                raise CourseNotFoundError()
            raise CourseAccessDeniedError()
        return course

    async def _get_module(self, module_id: int, actor: Actor) -> CourseModule:
        return await load_owned(
            self._db,
            CourseModule,
            CourseModule.course_module_id,
            module_id,
            actor,
            ModuleNotFoundError,
        )

    async def _get_topic(self, topic_id: int, actor: Actor) -> CourseTopic:
        return await load_owned(
            self._db, CourseTopic, CourseTopic.course_topic_id, topic_id, actor, TopicNotFoundError
        )

    async def _get_assignment(self, course_id: int, teacher_id: int) -> TeacherCourse | None:
        result = await self._db.execute(
            select(TeacherCourse).where(
                TeacherCourse.course_id == course_id,
                TeacherCourse.teacher_id == teacher_id,
                TeacherCourse.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def _ensure_specialization(
        self, specialization_id: int, tenant_id: int, actor: Actor
    ) -> None:
        specialization = await load_owned(
            self._db,
            Specialization,
            Specialization.specialization_id,
            specialization_id,
            actor,
            SpecializationNotFoundError,
        )
        if specialization.tenant_id != tenant_id:
            raise SpecializationNotFoundError("Specialization does not belong to the tenant")

    async def _live(self, model: Any, *criteria: Any, order_by: Any = None) -> list[Any]:
        stmt = select(model).where(*criteria, model.is_deleted.is_(False))
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        return list((await self._db.execute(stmt)).scalars().all())

    async def _name_taken(self, tenant_id: int, name: str, exclude_id: int | None = None) -> bool:
        stmt = select(func.count()).select_from(Course).where(
            Course.tenant_id == tenant_id,
            func.lower(Course.course_name) == name.lower(),
            Course.is_deleted.is_(False),
        )
        if exclude_id is not None:
            stmt = stmt.where(Course.course_id != exclude_id)
        return ((await self._db.execute(stmt)).scalar() or 0) > 0
