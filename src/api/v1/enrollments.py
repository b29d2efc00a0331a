# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment and progress API endpoints.

This module provides endpoints for:
- Enrolling students in courses and managing the enrollment status
- Reading and reporting course progress
- Reporting how far a student watched a video

Students may only read and report their own progress.
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_actor,
    get_enrollment_service,
    get_list_params,
    get_staff_actor,
)
from src.api.responses import ok, paged
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.domains.enrollment import EnrollmentService
from src.models.common import ApiResponse, PaginatedData
from src.models.enrollment import (
    CourseProgressResponse,
    CourseProgressUpdate,
    EnrollmentCreate,
    EnrollmentResponse,
    EnrollmentUpdate,
    VideoProgressResponse,
    VideoProgressUpdate,
)
from src.models.enums import EnrollmentStatus

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Progress
# =============================================================================


@router.get(
    "/progress/{student_id}/{course_id}",
    response_model=ApiResponse[CourseProgressResponse],
    summary="Get course progress",
)
async def get_progress(
    student_id: int,
    course_id: int,
    actor: Actor = Depends(get_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ApiResponse[CourseProgressResponse]:
    progress = await service.get_progress(student_id, course_id, actor)
    return ok(progress, "Progress retrieved successfully")


@router.put(
    "/progress/{student_id}/{course_id}",
    response_model=ApiResponse[CourseProgressResponse],
    summary="Report course progress",
)
async def update_progress(
    student_id: int,
    course_id: int,
    data: CourseProgressUpdate,
    actor: Actor = Depends(get_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ApiResponse[CourseProgressResponse]:
    progress = await service.update_progress(student_id, course_id, data, actor)
    return ok(progress, "Progress updated successfully")


@router.post(
    "/progress/{student_id}/videos/{video_id}",
    response_model=ApiResponse[VideoProgressResponse],
    summary="Report video progress",
)
async def record_video_progress(
    student_id: int,
    video_id: int,
    data: VideoProgressUpdate,
    actor: Actor = Depends(get_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ApiResponse[VideoProgressResponse]:
    progress = await service.record_video_progress(student_id, video_id, data, actor)
    return ok(progress, "Video progress recorded successfully")


# =============================================================================
# Enrollments
# =============================================================================


@router.post(
    "",
    response_model=ApiResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Enroll student",
    description="Enroll a student in a course of the same tenant and open its progress record.",
)
async def enroll_student(
    data: EnrollmentCreate,
    actor: Actor = Depends(get_staff_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ApiResponse[EnrollmentResponse]:
    enrollment = await service.enroll_student(data, actor)
    return ok(enrollment, "Student enrolled successfully", 201)


@router.get(
    "",
    response_model=ApiResponse[PaginatedData[EnrollmentResponse]],
    summary="List enrollments",
)
async def list_enrollments(
    course_id: int | None = Query(default=None, ge=1),
    student_id: int | None = Query(default=None, ge=1),
    enrollment_status: EnrollmentStatus | None = Query(default=None),
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ApiResponse[PaginatedData[EnrollmentResponse]]:
    enrollments, total = await service.list_enrollments(
        params, actor, course_id, student_id, enrollment_status
    )
    return paged(enrollments, total, params, "Enrollments retrieved successfully")


@router.get(
    "/{enrollment_id}",
    response_model=ApiResponse[EnrollmentResponse],
    summary="Get enrollment",
)
async def get_enrollment(
    enrollment_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ApiResponse[EnrollmentResponse]:
    enrollment = await service.get_enrollment(enrollment_id, actor)
    return ok(enrollment, "Enrollment retrieved successfully")


@router.put(
    "/{enrollment_id}",
    response_model=ApiResponse[EnrollmentResponse],
    summary="Update enrollment",
)
async def update_enrollment(
    enrollment_id: int,
    data: EnrollmentUpdate,
    actor: Actor = Depends(get_staff_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ApiResponse[EnrollmentResponse]:
    enrollment = await service.update_enrollment(enrollment_id, data, actor)
    return ok(enrollment, "Enrollment updated successfully")


@router.delete(
    "/{enrollment_id}",
    response_model=ApiResponse[None],
    summary="Withdraw enrollment",
)
async def delete_enrollment(
    enrollment_id: int,
    actor: Actor = Depends(get_staff_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ApiResponse[None]:
    await service.delete_enrollment(enrollment_id, actor)
    return ok(None, "Enrollment deleted successfully")
