# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course API endpoints.

This module provides three groups of endpoints:
- Catalog (/catalog...) - Published courses as students browse them
- Courses (/, /{course_id}) - Course CRUD and teacher assignment
- Content (/modules, /topics, /videos) - Module, topic and video authoring

Course updates made here are relayed to the course's live update room.

Example:
    GET /api/v1/courses/catalog?program_id=-1&specialization_id=3&course_type=FREE
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_actor,
    get_admin_actor,
    get_catalog_service,
    get_course_service,
    get_list_params,
    get_staff_actor,
)
from src.api.responses import ok, paged
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.domains.course import CourseCatalogService, CourseService, get_course_rooms
from src.domains.course.catalog import ANY
from src.models.common import ApiResponse, PaginatedData
from src.models.course import (
    CatalogCourseItem,
    CourseBasicDetails,
    CourseCreate,
    CourseModuleCreate,
    CourseModuleResponse,
    CourseModuleSummary,
    CourseModuleUpdate,
    CourseResponse,
    CourseTopicCreate,
    CourseTopicResponse,
    CourseTopicSummary,
    CourseTopicUpdate,
    CourseUpdate,
    CourseVideoCreate,
    CourseVideoResponse,
    CourseVideoUpdate,
    TeacherAssignment,
    TeacherCourseResponse,
    TopicVideoItem,
    VideoDetails,
)
from src.models.enums import CourseCatalogFilter, CourseStatus, CourseType, UserType

logger = logging.getLogger(__name__)

router = APIRouter()


def _catalog_student(actor: Actor, student_id: int | None) -> int | None:
    """Students always see their own progress and purchases."""
    if actor.user_type == UserType.STUDENT:
        return actor.id
    return student_id


# Catalog

@router.get(
    "/catalog",
    response_model=ApiResponse[list[CatalogCourseItem]],
    summary="Browse published courses",
    description="Filter by program and specialization; -1 matches any.",
)
async def get_courses_by_programs_and_specialization(
    program_id: int = Query(default=ANY),
    specialization_id: int = Query(default=ANY),
    search: str | None = Query(default=None, max_length=255),
    course_type: CourseCatalogFilter | None = Query(default=None),
    student_id: int | None = Query(default=None, description="Ignored for students"),
    actor: Actor = Depends(get_actor),
    service: CourseCatalogService = Depends(get_catalog_service),
) -> ApiResponse[list[CatalogCourseItem]]:
    courses = await service.get_courses_by_programs_and_specialization(
        actor,
        program_id=program_id,
        specialization_id=specialization_id,
        search=search,
        course_type=course_type,
        student_id=_catalog_student(actor, student_id),
    )
    return ok(courses, "Courses retrieved successfully")


@router.get(
    "/catalog/{course_id}",
    response_model=ApiResponse[CourseBasicDetails],
    summary="Course overview",
)
async def get_course_basic_details(
    course_id: int,
    student_id: int | None = Query(default=None),
    actor: Actor = Depends(get_actor),
    service: CourseCatalogService = Depends(get_catalog_service),
) -> ApiResponse[CourseBasicDetails]:
    details = await service.get_course_basic_details(
        course_id, actor, _catalog_student(actor, student_id)
    )
    return ok(details, "Course details retrieved successfully")


@router.get(
    "/catalog/{course_id}/modules",
    response_model=ApiResponse[list[CourseModuleSummary]],
    summary="Course outline",
)
async def get_course_modules(
    course_id: int,
    actor: Actor = Depends(get_actor),
    service: CourseCatalogService = Depends(get_catalog_service),
) -> ApiResponse[list[CourseModuleSummary]]:
    modules = await service.get_course_modules(course_id, actor)
    return ok(modules, "Course modules retrieved successfully")


@router.get(
    "/catalog/modules/{module_id}/topics",
    response_model=ApiResponse[list[CourseTopicSummary]],
    summary="Topics of a module",
)
async def get_course_topics_by_module_id(
    module_id: int,
    actor: Actor = Depends(get_actor),
    service: CourseCatalogService = Depends(get_catalog_service),
) -> ApiResponse[list[CourseTopicSummary]]:
    topics = await service.get_course_topics_by_module_id(module_id, actor)
    return ok(topics, "Course topics retrieved successfully")


@router.get(
    "/catalog/topics/{topic_id}/videos",
    response_model=ApiResponse[list[TopicVideoItem]],
    summary="Videos of a topic with progress",
    description="Each video after the first stays locked until the previous one is completed.",
)
async def get_all_course_videos_by_topic_id(
    topic_id: int,
    student_id: int | None = Query(default=None),
    actor: Actor = Depends(get_actor),
    service: CourseCatalogService = Depends(get_catalog_service),
) -> ApiResponse[list[TopicVideoItem]]:
    videos = await service.get_all_course_videos_by_topic_id(
        topic_id, actor, _catalog_student(actor, student_id)
    )
    return ok(videos, "Course videos retrieved successfully")


@router.get(
    "/catalog/videos/{video_id}",
    response_model=ApiResponse[VideoDetails],
    summary="Video details with navigation",
)
async def get_video_details_by_id(
    video_id: int,
    actor: Actor = Depends(get_actor),
    service: CourseCatalogService = Depends(get_catalog_service),
) -> ApiResponse[VideoDetails]:
    video = await service.get_video_details_by_id(video_id, actor)
    return ok(video, "Video details retrieved successfully")


# Courses

@router.post(
    "",
    response_model=ApiResponse[CourseResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    data: CourseCreate,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[CourseResponse]:
    course = await service.create_course(data, actor)
    return ok(course, "Course created successfully", 201)


@router.get(
    "",
    response_model=ApiResponse[PaginatedData[CourseResponse]],
    summary="List courses",
)
async def list_courses(
    course_status: CourseStatus | None = Query(default=None),
    course_type: CourseType | None = Query(default=None),
    specialization_id: int | None = Query(default=None),
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[PaginatedData[CourseResponse]]:
    courses, total = await service.list_courses(
        params, actor, course_status, course_type, specialization_id
    )
    return paged(courses, total, params, "Courses retrieved successfully")


@router.get("/{course_id}", response_model=ApiResponse[CourseResponse], summary="Get course")
async def get_course(
    course_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[CourseResponse]:
    return ok(await service.get_course(course_id, actor), "Course retrieved successfully")


@router.put("/{course_id}", response_model=ApiResponse[CourseResponse], summary="Update course")
async def update_course(
    course_id: int,
    data: CourseUpdate,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[CourseResponse]:
    course = await service.update_course(course_id, data, actor)
    await get_course_rooms().broadcast_course_update(
        course.course_id,
        {
            "tenant_id": course.tenant_id,
            "update": data.model_dump(mode="json", exclude_unset=True),
            "updated_by": actor.id,
        },
    )
    return ok(course, "Course updated successfully")


@router.delete("/{course_id}", response_model=ApiResponse[None], summary="Delete course")
async def delete_course(
    course_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[None]:
    await service.delete_course(course_id, actor)
    return ok(None, "Course deleted successfully")


@router.post(
    "/{course_id}/teachers",
    response_model=ApiResponse[TeacherCourseResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Assign teacher to course",
)
async def assign_teacher(
    course_id: int,
    data: TeacherAssignment,
    actor: Actor = Depends(get_admin_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[TeacherCourseResponse]:
    assignment = await service.assign_teacher(course_id, data.teacher_id, actor)
    return ok(assignment, "Teacher assigned successfully", 201)


@router.delete(
    "/{course_id}/teachers/{teacher_id}",
    response_model=ApiResponse[None],
    summary="Unassign teacher from course",
)
async def unassign_teacher(
    course_id: int,
    teacher_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[None]:
    await service.unassign_teacher(course_id, teacher_id, actor)
    return ok(None, "Teacher unassigned successfully")


# Modules

@router.get(
    "/{course_id}/modules",
    response_model=ApiResponse[list[CourseModuleResponse]],
    summary="List course modules",
)
async def list_modules(
    course_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[list[CourseModuleResponse]]:
    return ok(await service.list_modules(course_id, actor), "Modules retrieved successfully")


@router.post(
    "/{course_id}/modules",
    response_model=ApiResponse[CourseModuleResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create module",
)
async def create_module(
    course_id: int,
    data: CourseModuleCreate,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[CourseModuleResponse]:
    module = await service.create_module(course_id, data, actor)
    return ok(module, "Module created successfully", 201)


@router.put(
    "/modules/{module_id}",
    response_model=ApiResponse[CourseModuleResponse],
    summary="Update module",
)
async def update_module(
    module_id: int,
    data: CourseModuleUpdate,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[CourseModuleResponse]:
    module = await service.update_module(module_id, data, actor)
    return ok(module, "Module updated successfully")


@router.delete("/modules/{module_id}", response_model=ApiResponse[None], summary="Delete module")
async def delete_module(
    module_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[None]:
    await service.delete_module(module_id, actor)
    return ok(None, "Module deleted successfully")


# Topics

@router.get(
    "/modules/{module_id}/topics",
    response_model=ApiResponse[list[CourseTopicResponse]],
    summary="List module topics",
)
async def list_topics(
    module_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[list[CourseTopicResponse]]:
    return ok(await service.list_topics(module_id, actor), "Topics retrieved successfully")


@router.post(
    "/modules/{module_id}/topics",
    response_model=ApiResponse[CourseTopicResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create topic",
)
async def create_topic(
    module_id: int,
    data: CourseTopicCreate,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[CourseTopicResponse]:
    topic = await service.create_topic(module_id, data, actor)
    return ok(topic, "Topic created successfully", 201)


@router.put(
    "/topics/{topic_id}",
    response_model=ApiResponse[CourseTopicResponse],
    summary="Update topic",
)
async def update_topic(
    topic_id: int,
    data: CourseTopicUpdate,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[CourseTopicResponse]:
    topic = await service.update_topic(topic_id, data, actor)
    return ok(topic, "Topic updated successfully")


@router.delete("/topics/{topic_id}", response_model=ApiResponse[None], summary="Delete topic")
async def delete_topic(
    topic_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[None]:
    await service.delete_topic(topic_id, actor)
    return ok(None, "Topic deleted successfully")


# Videos

@router.post(
    "/topics/{topic_id}/videos",
    response_model=ApiResponse[CourseVideoResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create video",
)
async def create_video(
    topic_id: int,
    data: CourseVideoCreate,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[CourseVideoResponse]:
    video = await service.create_video(topic_id, data, actor)
    return ok(video, "Video created successfully", 201)


@router.put(
    "/videos/{video_id}",
    response_model=ApiResponse[CourseVideoResponse],
    summary="Update video",
)
async def update_video(
    video_id: int,
    data: CourseVideoUpdate,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[CourseVideoResponse]:
    video = await service.update_video(video_id, data, actor)
    return ok(video, "Video updated successfully")


@router.delete("/videos/{video_id}", response_model=ApiResponse[None], summary="Delete video")
async def delete_video(
    video_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: CourseService = Depends(get_course_service),
) -> ApiResponse[None]:
    await service.delete_video(video_id, actor)
    return ok(None, "Video deleted successfully")
