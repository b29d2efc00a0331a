# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student management API endpoints.

This module provides endpoints for student management:
- POST / - Create a student with a primary email address
- GET / - List students (search, status, gender, age range)
- GET /{student_id} - Get student details
- PUT /{student_id} - Update student
- DELETE /{student_id} - Delete student (soft delete)
- GET /{student_id}/courses - Courses the student is enrolled in

Example:
    POST /api/v1/students
    {
        "username": "jdoe",
        "email_address": "jdoe@example.com",
        "password": "S3cure!pass",
        "first_name": "John",
        "last_name": "Doe"
    }
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_actor,
    get_admin_actor,
    get_list_params,
    get_staff_actor,
    get_student_service,
)
from src.api.responses import ok, paged
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.domains.student import StudentService
from src.models.common import ApiResponse, PaginatedData
from src.models.enums import Gender, StudentStatus
from src.models.person import EnrolledCourseItem, StudentCreate, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create student",
    description="Create a student and its primary email address in one transaction.",
)
async def create_student(
    data: StudentCreate,
    actor: Actor = Depends(get_admin_actor),
    service: StudentService = Depends(get_student_service),
) -> ApiResponse[StudentResponse]:
    student = await service.create_student(data, actor)
    return ok(student, "Student created successfully", 201)


@router.get(
    "",
    response_model=ApiResponse[PaginatedData[StudentResponse]],
    summary="List students",
)
async def list_students(
    student_status: StudentStatus | None = Query(default=None),
    gender: Gender | None = Query(default=None),
    min_age: int | None = Query(default=None, ge=0, le=150),
    max_age: int | None = Query(default=None, ge=0, le=150),
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_staff_actor),
    service: StudentService = Depends(get_student_service),
) -> ApiResponse[PaginatedData[StudentResponse]]:
    students, total = await service.list_students(
        params, actor, student_status, gender, min_age, max_age
    )
    return paged(students, total, params, "Students retrieved successfully")


@router.get("/{student_id}", response_model=ApiResponse[StudentResponse], summary="Get student")
async def get_student(
    student_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: StudentService = Depends(get_student_service),
) -> ApiResponse[StudentResponse]:
    return ok(await service.get_student(student_id, actor), "Student retrieved successfully")


@router.put("/{student_id}", response_model=ApiResponse[StudentResponse], summary="Update student")
async def update_student(
    student_id: int,
    data: StudentUpdate,
    actor: Actor = Depends(get_admin_actor),
    service: StudentService = Depends(get_student_service),
) -> ApiResponse[StudentResponse]:
    student = await service.update_student(student_id, data, actor)
    return ok(student, "Student updated successfully")


@router.delete("/{student_id}", response_model=ApiResponse[None], summary="Delete student")
async def delete_student(
    student_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: StudentService = Depends(get_student_service),
) -> ApiResponse[None]:
    await service.delete_student(student_id, actor)
    return ok(None, "Student deleted successfully")


@router.get(
    "/{student_id}/courses",
    response_model=ApiResponse[list[EnrolledCourseItem]],
    summary="Enrolled courses of a student",
)
async def get_enrolled_courses(
    student_id: int,
    search: str | None = Query(default=None, max_length=255),
    actor: Actor = Depends(get_actor),
    service: StudentService = Depends(get_student_service),
) -> ApiResponse[list[EnrolledCourseItem]]:
    courses = await service.get_enrolled_courses(student_id, actor, search)
    return ok(courses, "Enrolled courses retrieved successfully")
