# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course, course content and student catalog schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.models.common import AuditedResponse, ORMModel, PartialUpdate
from src.models.enums import CourseStatus, CourseType, VideoUploadStatus


class CourseCreate(BaseModel):
    """Request body for creating a course."""

    course_name: str = Field(..., min_length=2, max_length=255)
    course_description: str | None = None
    main_thumbnail_url: str | None = Field(default=None, max_length=500)
    course_status: CourseStatus = CourseStatus.DRAFT
    course_type: CourseType = CourseType.PAID
    course_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    course_total_hours: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)
    specialization_id: int | None = Field(default=None, ge=1)
    tenant_id: int | None = None


class CourseUpdate(PartialUpdate):
    not_nullable = frozenset({"course_name", "course_status", "course_type", "is_active"})

    course_name: str | None = Field(default=None, min_length=2, max_length=255)
    course_description: str | None = None
    main_thumbnail_url: str | None = Field(default=None, max_length=500)
    course_status: CourseStatus | None = None
    course_type: CourseType | None = None
    course_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    course_total_hours: Decimal | None = Field(default=None, ge=0, max_digits=6, decimal_places=2)
    specialization_id: int | None = Field(default=None, ge=1)
    is_active: bool | None = None


class CourseResponse(AuditedResponse):
    course_id: int
    tenant_id: int
    specialization_id: int | None = None
    course_name: str
    course_description: str | None = None
    main_thumbnail_url: str | None = None
    course_status: CourseStatus
    course_type: CourseType
    course_price: Decimal | None = None
    course_total_hours: Decimal | None = None


class CourseModuleCreate(BaseModel):
    course_module_name: str = Field(..., min_length=1, max_length=255)
    position: int = Field(default=1, ge=1)


class CourseModuleUpdate(PartialUpdate):
    not_nullable = frozenset({"course_module_name", "position"})

    course_module_name: str | None = Field(default=None, min_length=1, max_length=255)
    position: int | None = Field(default=None, ge=1)


class CourseModuleResponse(AuditedResponse):
    course_module_id: int
    course_id: int
    tenant_id: int
    course_module_name: str
    position: int


class CourseTopicCreate(BaseModel):
    course_topic_name: str = Field(..., min_length=1, max_length=255)
    position: int = Field(default=1, ge=1)


class CourseTopicUpdate(PartialUpdate):
    not_nullable = frozenset({"course_topic_name", "position"})

    course_topic_name: str | None = Field(default=None, min_length=1, max_length=255)
    position: int | None = Field(default=None, ge=1)


class CourseTopicResponse(AuditedResponse):
    course_topic_id: int
    module_id: int
    tenant_id: int
    course_topic_name: str
    position: int


class CourseVideoCreate(BaseModel):
    video_name: str = Field(..., min_length=1, max_length=255)
    video_url: str | None = Field(default=None, max_length=500)
    bunny_video_id: str | None = Field(default=None, max_length=100)
    thumbnail_url: str | None = Field(default=None, max_length=500)
    duration_seconds: int = Field(default=0, ge=0)
    position: int = Field(default=1, ge=1)
    upload_status: VideoUploadStatus = VideoUploadStatus.PENDING


class CourseVideoUpdate(PartialUpdate):
    not_nullable = frozenset({"video_name", "duration_seconds", "position", "upload_status"})

    video_name: str | None = Field(default=None, min_length=1, max_length=255)
    video_url: str | None = Field(default=None, max_length=500)
    bunny_video_id: str | None = Field(default=None, max_length=100)
    thumbnail_url: str | None = Field(default=None, max_length=500)
    duration_seconds: int | None = Field(default=None, ge=0)
    position: int | None = Field(default=None, ge=1)
    upload_status: VideoUploadStatus | None = None


class CourseVideoResponse(AuditedResponse):
    course_video_id: int
    course_id: int
    course_topic_id: int
    tenant_id: int
    video_name: str
    video_url: str | None = None
    bunny_video_id: str | None = None
    thumbnail_url: str | None = None
    duration_seconds: int
    position: int
    upload_status: VideoUploadStatus


class TeacherAssignment(BaseModel):
    teacher_id: int = Field(..., ge=1)


class TeacherCourseResponse(ORMModel):
    teacher_course_id: int
    course_id: int
    teacher_id: int
    tenant_id: int


# Student catalog


class CatalogCourseItem(BaseModel):
    """Course card shown in the student catalog."""

    course_id: int
    course_name: str
    main_thumbnail_url: str | None = None
    program_id: int | None = None
    program_name: str | None = None
    specialization_name: str | None = None
    teacher_name: str | None = None
    profile_picture_url: str | None = None
    teacher_qualification: str | None = None
    course_total_hours: Decimal | None = None
    purchase_status: str


class TeacherBrief(BaseModel):
    teacher_id: int
    full_name: str
    profile_picture_url: str | None = None
    teacher_qualification: str | None = None


class CourseBasicDetails(BaseModel):
    course_id: int
    course_name: str
    course_description: str | None = None
    main_thumbnail_url: str | None = None
    course_total_hours: Decimal | None = None
    overall_progress_percentage: Decimal = Decimal("0")
    teacher: TeacherBrief | None = None
    purchase_status: str
    program_name: str | None = None
    specialization_name: str | None = None


class CourseModuleSummary(BaseModel):
    course_module_id: int
    course_module_name: str
    position: int
    topics_count: int
    videos_count: int
    module_stats: str


class CourseTopicSummary(BaseModel):
    course_topic_id: int
    course_topic_name: str
    position: int
    videos_count: int
    overall_video_lectures: str


class TopicVideoItem(BaseModel):
    course_video_id: int
    video_name: str
    thumbnail_url: str | None = None
    position: int
    duration_seconds: int
    duration: str
    completion_percentage: Decimal = Decimal("0")
    completion_status: str
    is_locked: bool


class VideoNavigation(BaseModel):
    course_video_id: int
    video_name: str
    duration: str


class VideoDetails(BaseModel):
    course_video_id: int
    course_id: int
    course_topic_id: int
    video_name: str
    video_url: str | None = None
    bunny_video_id: str | None = None
    thumbnail_url: str | None = None
    duration_seconds: int
    duration: str
    teacher: TeacherBrief | None = None
    previous_video: VideoNavigation | None = None
    next_video: VideoNavigation | None = None
