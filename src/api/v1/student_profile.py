# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Self-service endpoints of the logged-in student."""

import logging

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_student_actor, get_student_service
from src.api.responses import ok
from src.domains.common.scoping import Actor
from src.domains.student import StudentService
from src.models.common import ApiResponse
from src.models.person import EnrolledCourseItem, StudentProfileUpdate, StudentResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ApiResponse[StudentResponse], summary="Own profile")
async def get_profile(
    actor: Actor = Depends(get_student_actor),
    service: StudentService = Depends(get_student_service),
) -> ApiResponse[StudentResponse]:
    return ok(await service.get_profile(actor), "Profile retrieved successfully")


@router.put("", response_model=ApiResponse[StudentResponse], summary="Update own profile")
async def update_profile(
    data: StudentProfileUpdate,
    actor: Actor = Depends(get_student_actor),
    service: StudentService = Depends(get_student_service),
) -> ApiResponse[StudentResponse]:
    return ok(await service.update_profile(data, actor), "Profile updated successfully")


@router.get(
    "/courses",
    response_model=ApiResponse[list[EnrolledCourseItem]],
    summary="Own enrolled courses",
)
async def get_my_courses(
    search: str | None = Query(default=None, max_length=255),
    actor: Actor = Depends(get_student_actor),
    service: StudentService = Depends(get_student_service),
) -> ApiResponse[list[EnrolledCourseItem]]:
    courses = await service.get_enrolled_courses(actor.id, actor, search)
    return ok(courses, "Enrolled courses retrieved successfully")
