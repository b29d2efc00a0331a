# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher management API endpoints.

Administrators manage teachers; a logged-in teacher reads its own
courses through GET /me/courses.
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_admin_actor,
    get_list_params,
    get_teacher_actor,
    get_teacher_service,
)
from src.api.responses import ok, paged
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.domains.teacher import TeacherService
from src.models.common import ApiResponse, PaginatedData
from src.models.course import CourseResponse
from src.models.enums import Gender
from src.models.person import TeacherCreate, TeacherResponse, TeacherUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/me/courses",
    response_model=ApiResponse[list[CourseResponse]],
    summary="Courses of the logged-in teacher",
)
async def get_teacher_courses(
    actor: Actor = Depends(get_teacher_actor),
    service: TeacherService = Depends(get_teacher_service),
) -> ApiResponse[list[CourseResponse]]:
    return ok(await service.get_teacher_courses(actor), "Courses retrieved successfully")


@router.post(
    "",
    response_model=ApiResponse[TeacherResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create teacher",
)
async def create_teacher(
    data: TeacherCreate,
    actor: Actor = Depends(get_admin_actor),
    service: TeacherService = Depends(get_teacher_service),
) -> ApiResponse[TeacherResponse]:
    teacher = await service.create_teacher(data, actor)
    return ok(teacher, "Teacher created successfully", 201)


@router.get(
    "",
    response_model=ApiResponse[PaginatedData[TeacherResponse]],
    summary="List teachers",
)
async def list_teachers(
    gender: Gender | None = Query(default=None),
    min_age: int | None = Query(default=None, ge=0, le=150),
    max_age: int | None = Query(default=None, ge=0, le=150),
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_admin_actor),
    service: TeacherService = Depends(get_teacher_service),
) -> ApiResponse[PaginatedData[TeacherResponse]]:
    teachers, total = await service.list_teachers(params, actor, gender, min_age, max_age)
    return paged(teachers, total, params, "Teachers retrieved successfully")


@router.get("/{teacher_id}", response_model=ApiResponse[TeacherResponse], summary="Get teacher")
async def get_teacher(
    teacher_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: TeacherService = Depends(get_teacher_service),
) -> ApiResponse[TeacherResponse]:
    return ok(await service.get_teacher(teacher_id, actor), "Teacher retrieved successfully")


@router.put("/{teacher_id}", response_model=ApiResponse[TeacherResponse], summary="Update teacher")
async def update_teacher(
    teacher_id: int,
    data: TeacherUpdate,
    actor: Actor = Depends(get_admin_actor),
    service: TeacherService = Depends(get_teacher_service),
) -> ApiResponse[TeacherResponse]:
    teacher = await service.update_teacher(teacher_id, data, actor)
    return ok(teacher, "Teacher updated successfully")


@router.delete("/{teacher_id}", response_model=ApiResponse[None], summary="Delete teacher")
async def delete_teacher(
    teacher_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: TeacherService = Depends(get_teacher_service),
) -> ApiResponse[None]:
    await service.delete_teacher(teacher_id, actor)
    return ok(None, "Teacher deleted successfully")
