# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment and progress schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from src.models.common import AuditedResponse, ORMModel, PartialUpdate
from src.models.enums import EnrollmentStatus


class EnrollmentCreate(BaseModel):
    course_id: int = Field(..., ge=1)
    student_id: int = Field(..., ge=1)
    teacher_id: int | None = Field(default=None, ge=1)
    enrollment_status: EnrollmentStatus = EnrollmentStatus.ACTIVE


class EnrollmentUpdate(PartialUpdate):
    not_nullable = frozenset({"enrollment_status"})

    teacher_id: int | None = Field(default=None, ge=1)
    enrollment_status: EnrollmentStatus | None = None


class EnrollmentResponse(AuditedResponse):
    enrollment_id: int
    tenant_id: int
    course_id: int
    student_id: int
    teacher_id: int | None = None
    enrollment_status: EnrollmentStatus
    enrolled_at: datetime


class CourseProgressUpdate(BaseModel):
    overall_progress_percentage: Decimal = Field(..., ge=0, le=100)
    modules_completed: int | None = Field(default=None, ge=0)
    videos_completed: int | None = Field(default=None, ge=0)
    time_spent_minutes: int = Field(default=0, ge=0, description="Minutes to add")


class CourseProgressResponse(ORMModel):
    student_course_progress_id: int
    student_id: int
    course_id: int
    overall_progress_percentage: Decimal
    modules_completed: int
    videos_completed: int
    total_time_spent_minutes: int
    last_accessed_at: datetime | None = None
    is_course_completed: bool
    completion_date: datetime | None = None


class VideoProgressUpdate(BaseModel):
    watch_duration_seconds: int = Field(..., ge=0)
    completion_percentage: Decimal = Field(..., ge=0, le=100)


class VideoProgressResponse(ORMModel):
    video_progress_id: int
    student_id: int
    course_video_id: int
    watch_duration_seconds: int
    completion_percentage: Decimal
    last_watched_at: datetime | None = None
    is_completed: bool
