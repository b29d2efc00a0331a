# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course content models: course, module, topic, video and teacher link."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    EntityMixin,
    TenantMixin,
    enum_column,
    unique_live,
)
from src.models.enums import CourseStatus, CourseType, VideoUploadStatus


class Course(Base, EntityMixin, TenantMixin):
    """Course sold or offered by a tenant."""

    __tablename__ = "courses"
    __table_args__ = (unique_live("uq_courses_name_live", "tenant_id", "course_name"),)

    course_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    specialization_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("specializations.specialization_id"), index=True
    )
    course_name: Mapped[str] = mapped_column(String(255), nullable=False)
    course_description: Mapped[str | None] = mapped_column(Text)
    main_thumbnail_url: Mapped[str | None] = mapped_column(String(500))
    course_status: Mapped[CourseStatus] = mapped_column(
        enum_column(CourseStatus), default=CourseStatus.DRAFT, nullable=False
    )
    course_type: Mapped[CourseType] = mapped_column(
        enum_column(CourseType), default=CourseType.PAID, nullable=False
    )
    course_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    course_total_hours: Mapped[Decimal | None] = mapped_column(Numeric(6, 2))


class CourseModule(Base, EntityMixin, TenantMixin):
    """Ordered chapter of a course."""

    __tablename__ = "course_modules"

    course_module_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), nullable=False, index=True
    )
    course_module_name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class CourseTopic(Base, EntityMixin, TenantMixin):
    """Ordered topic within a module."""

    __tablename__ = "course_topics"

    course_topic_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    module_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("course_modules.course_module_id"), nullable=False, index=True
    )
    course_topic_name: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class CourseVideo(Base, EntityMixin, TenantMixin):
    """Ordered video lecture within a topic."""

    __tablename__ = "course_videos"

    course_video_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), nullable=False, index=True
    )
    course_topic_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("course_topics.course_topic_id"), nullable=False, index=True
    )
    bunny_video_id: Mapped[str | None] = mapped_column(String(100))
    video_name: Mapped[str] = mapped_column(String(255), nullable=False)
    video_url: Mapped[str | None] = mapped_column(String(500))
    thumbnail_url: Mapped[str | None] = mapped_column(String(500))
    duration_seconds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    upload_status: Mapped[VideoUploadStatus] = mapped_column(
        enum_column(VideoUploadStatus), default=VideoUploadStatus.PENDING, nullable=False
    )


class TeacherCourse(Base, EntityMixin, TenantMixin):
    """Assignment of a teacher to a course."""

    __tablename__ = "teacher_courses"
    __table_args__ = (unique_live("uq_teacher_courses_live", "course_id", "teacher_id"),)

    teacher_course_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), nullable=False, index=True
    )
    teacher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teachers.teacher_id"), nullable=False, index=True
    )
