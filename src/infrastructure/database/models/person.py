# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student and teacher models with their email address tables.

Students and teachers authenticate with one of their email addresses;
the address with priority 1 is the primary one and is created together
with the person.
"""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    EntityMixin,
    TenantMixin,
    enum_column,
    unique_live,
)
from src.models.enums import Gender, StudentStatus


class PersonMixin:
    """Personal and credential columns shared by students and teachers."""

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(Text)
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    profile_picture_url: Mapped[str | None] = mapped_column(String(500))
    zip_code: Mapped[str | None] = mapped_column(String(20))
    age: Mapped[int | None] = mapped_column(Integer)
    gender: Mapped[Gender | None] = mapped_column(enum_column(Gender, 10))
    username: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    login_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Student(Base, EntityMixin, TenantMixin, PersonMixin):
    __tablename__ = "students"
    __table_args__ = (unique_live("uq_students_username_live", "tenant_id", "username"),)

    student_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_status: Mapped[StudentStatus] = mapped_column(
        enum_column(StudentStatus), default=StudentStatus.ACTIVE, nullable=False
    )
    referral_type: Mapped[str | None] = mapped_column(String(100))


class StudentEmailAddress(Base, EntityMixin, TenantMixin):
    __tablename__ = "student_email_addresses"
    __table_args__ = (
        unique_live("uq_student_email_addresses_live", "tenant_id", "email_address"),
    )

    student_email_address_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    student_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("students.student_id"), nullable=False, index=True
    )
    email_address: Mapped[str] = mapped_column(String(255), nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class Teacher(Base, EntityMixin, TenantMixin, PersonMixin):
    __tablename__ = "teachers"
    __table_args__ = (unique_live("uq_teachers_username_live", "tenant_id", "username"),)

    teacher_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    teacher_qualification: Mapped[str | None] = mapped_column(String(255))
    joining_date: Mapped[date | None] = mapped_column(Date)


class TeacherEmailAddress(Base, EntityMixin, TenantMixin):
    __tablename__ = "teacher_email_addresses"
    __table_args__ = (
        unique_live("uq_teacher_email_addresses_live", "tenant_id", "email_address"),
    )

    teacher_email_address_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    teacher_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teachers.teacher_id"), nullable=False, index=True
    )
    email_address: Mapped[str] = mapped_column(String(255), nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
