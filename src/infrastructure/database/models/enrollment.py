# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment and learning progress models."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    EntityMixin,
    TenantMixin,
    enum_column,
    unique_live,
)
from src.models.enums import EnrollmentStatus
from src.utils.datetime import utc_now


class Enrollment(Base, EntityMixin, TenantMixin):
    """A student's enrollment in a course."""

    __tablename__ = "enrollments"
    __table_args__ = (unique_live("uq_enrollments_live", "course_id", "student_id"),)

    enrollment_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), nullable=False, index=True
    )
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("students.student_id"), nullable=False, index=True
    )
    teacher_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("teachers.teacher_id"))
    enrollment_status: Mapped[EnrollmentStatus] = mapped_column(
        enum_column(EnrollmentStatus), default=EnrollmentStatus.ACTIVE, nullable=False
    )
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )


class StudentCourseProgress(Base, EntityMixin, TenantMixin):
    """Aggregate progress of a student through a course."""

    __tablename__ = "student_course_progresses"
    __table_args__ = (
        unique_live("uq_student_course_progresses_live", "student_id", "course_id"),
    )

    student_course_progress_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("students.student_id"), nullable=False, index=True
    )
    course_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("courses.course_id"), nullable=False, index=True
    )
    overall_progress_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("0"), nullable=False
    )
    modules_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    videos_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_time_spent_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_accessed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_course_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completion_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class VideoProgress(Base, EntityMixin, TenantMixin):
    """How far a student has watched one video."""

    __tablename__ = "video_progresses"
    __table_args__ = (
        unique_live("uq_video_progresses_live", "student_id", "course_video_id"),
    )

    video_progress_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("students.student_id"), nullable=False, index=True
    )
    course_video_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("course_videos.course_video_id"), nullable=False, index=True
    )
    watch_duration_seconds: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completion_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("0"), nullable=False
    )
    last_watched_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
