# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial LMS schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-01-15

This migration creates every table of the SQLAlchemy models in
src/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIVE = sa.text("is_deleted = false")


def _entity_columns() -> list[sa.Column]:
    """Timestamp, audit and soft-delete columns carried by every table."""
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("created_by", sa.Integer, nullable=True),
        sa.Column("updated_by", sa.Integer, nullable=True),
        sa.Column("created_ip", sa.String(45), nullable=True),
        sa.Column("updated_ip", sa.String(45), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.Integer, nullable=True),
    ]


def _fk(table: str, column: str, target: str, nullable: bool = False) -> sa.Column:
    ref_table = target.split(".")[0]
    return sa.Column(
        column,
        sa.Integer,
        sa.ForeignKey(target, name=f"fk_{table}_{column}_{ref_table}"),
        nullable=nullable,
    )


def _tenant_fk(table: str) -> sa.Column:
    return _fk(table, "tenant_id", "tenants.tenant_id")


def _pk(column: str) -> sa.Column:
    return sa.Column(column, sa.Integer, primary_key=True, autoincrement=True)


def _index(table: str, *columns: str) -> None:
    for column in columns:
        op.create_index(f"ix_{table}_{column}", table, [column])


def _unique_live(name: str, table: str, *columns: str) -> None:
    op.create_index(name, table, list(columns), unique=True, postgresql_where=LIVE)


def upgrade() -> None:
    """Create LMS tables."""
    # ==========================================================================
    # 1. tenants
    # ==========================================================================
    op.create_table(
        "tenants",
        _pk("tenant_id"),
        sa.Column("tenant_name", sa.String(255), nullable=False),
        sa.Column("logo_url_light", sa.String(500), nullable=True),
        sa.Column("logo_url_dark", sa.String(500), nullable=True),
        sa.Column("favicon_url", sa.String(500), nullable=True),
        sa.Column("theme", postgresql.JSONB, nullable=True),
        sa.Column("tenant_status", sa.String(32), nullable=False, server_default="ACTIVE"),
        *_entity_columns(),
    )
    _index("tenants", "is_deleted")
    _unique_live("uq_tenants_name_live", "tenants", "tenant_name")

    # ==========================================================================
    # 2. tenant contacts
    # ==========================================================================
    op.create_table(
        "tenant_phone_numbers",
        _pk("tenant_phone_number_id"),
        _tenant_fk("tenant_phone_numbers"),
        sa.Column("dial_code", sa.String(8), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("iso_country_code", sa.String(2), nullable=True),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("contact_type", sa.String(32), nullable=False, server_default="PRIMARY"),
        *_entity_columns(),
    )
    _index("tenant_phone_numbers", "tenant_id", "is_deleted")

    op.create_table(
        "tenant_email_addresses",
        _pk("tenant_email_address_id"),
        _tenant_fk("tenant_email_addresses"),
        sa.Column("email_address", sa.String(255), nullable=False),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("contact_type", sa.String(32), nullable=False, server_default="PRIMARY"),
        *_entity_columns(),
    )
    _index("tenant_email_addresses", "tenant_id", "is_deleted")
    _unique_live(
        "uq_tenant_email_addresses_live", "tenant_email_addresses", "tenant_id", "email_address"
    )

    # ==========================================================================
    # 3. clients
    # ==========================================================================
    op.create_table(
        "clients",
        _pk("client_id"),
        _tenant_fk("clients"),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email_address", sa.String(255), nullable=False),
        sa.Column("dial_code", sa.String(8), nullable=True),
        sa.Column("phone_number", sa.String(20), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("client_status", sa.String(32), nullable=False, server_default="ACTIVE"),
        *_entity_columns(),
    )
    _index("clients", "tenant_id", "is_deleted")
    _unique_live("uq_clients_email_live", "clients", "tenant_id", "email_address")

    op.create_table(
        "client_tenants",
        _pk("client_tenant_id"),
        _fk("client_tenants", "client_id", "clients.client_id"),
        _tenant_fk("client_tenants"),
        *_entity_columns(),
    )
    _index("client_tenants", "client_id", "tenant_id", "is_deleted")
    _unique_live("uq_client_tenants_live", "client_tenants", "client_id", "tenant_id")

    # ==========================================================================
    # 4. system_users
    # ==========================================================================
    op.create_table(
        "system_users",
        _pk("system_user_id"),
        _fk("system_users", "tenant_id", "tenants.tenant_id", nullable=True),
        sa.Column("role_type", sa.String(32), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email_address", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("login_attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "system_user_status", sa.String(32), nullable=False, server_default="ACTIVE"
        ),
        *_entity_columns(),
    )
    _index("system_users", "tenant_id", "is_deleted")
    _unique_live(
        "uq_system_users_username_live", "system_users", "tenant_id", "username"
    )
    _unique_live(
        "uq_system_users_email_live", "system_users", "tenant_id", "email_address"
    )
    # SUPER_ADMIN rows have no tenant; NULLs never collide in the indexes above
    for column in ("username", "email_address"):
        op.create_index(
            f"uq_system_users_global_{column}_live",
            "system_users",
            [column],
            unique=True,
            postgresql_where=sa.text("tenant_id IS NULL AND is_deleted = false"),
        )

    # ==========================================================================
    # 5. programs and specializations
    # ==========================================================================
    op.create_table(
        "programs",
        _pk("program_id"),
        _tenant_fk("programs"),
        sa.Column("program_name", sa.String(255), nullable=False),
        sa.Column("program_thumbnail_url", sa.String(500), nullable=True),
        *_entity_columns(),
    )
    _index("programs", "tenant_id", "is_deleted")
    _unique_live("uq_programs_name_live", "programs", "tenant_id", "program_name")

    op.create_table(
        "specializations",
        _pk("specialization_id"),
        _tenant_fk("specializations"),
        _fk("specializations", "program_id", "programs.program_id"),
        sa.Column("specialization_name", sa.String(255), nullable=False),
        sa.Column("specialization_thumbnail_url", sa.String(500), nullable=True),
        *_entity_columns(),
    )
    _index("specializations", "tenant_id", "program_id", "is_deleted")
    _unique_live(
        "uq_specializations_name_live",
        "specializations",
        "tenant_id",
        "program_id",
        "specialization_name",
    )

    # ==========================================================================
    # 6. students and teachers
    # ==========================================================================
    for person in ("students", "teachers"):
        singular = person[:-1]
        extra = (
            [
                sa.Column(
                    "student_status", sa.String(32), nullable=False, server_default="ACTIVE"
                ),
                sa.Column("referral_type", sa.String(100), nullable=True),
            ]
            if person == "students"
            else [
                sa.Column("teacher_qualification", sa.String(255), nullable=True),
                sa.Column("joining_date", sa.Date, nullable=True),
            ]
        )
        op.create_table(
            person,
            _pk(f"{singular}_id"),
            _tenant_fk(person),
            sa.Column("full_name", sa.String(255), nullable=False),
            sa.Column("first_name", sa.String(100), nullable=False),
            sa.Column("middle_name", sa.String(100), nullable=True),
            sa.Column("last_name", sa.String(100), nullable=False),
            sa.Column("address", sa.Text, nullable=True),
            sa.Column("date_of_birth", sa.Date, nullable=True),
            sa.Column("profile_picture_url", sa.String(500), nullable=True),
            sa.Column("zip_code", sa.String(20), nullable=True),
            sa.Column("age", sa.Integer, nullable=True),
            sa.Column("gender", sa.String(10), nullable=True),
            sa.Column("username", sa.String(100), nullable=False),
            sa.Column("password_hash", sa.String(255), nullable=False),
            sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("login_attempts", sa.Integer, nullable=False, server_default="0"),
            *extra,
            *_entity_columns(),
        )
        _index(person, "tenant_id", "is_deleted")
        _unique_live(f"uq_{person}_username_live", person, "tenant_id", "username")

        emails = f"{singular}_email_addresses"
        op.create_table(
            emails,
            _pk(f"{singular}_email_address_id"),
            _tenant_fk(emails),
            _fk(emails, f"{singular}_id", f"{person}.{singular}_id"),
            sa.Column("email_address", sa.String(255), nullable=False),
            sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("priority", sa.Integer, nullable=False, server_default="1"),
            *_entity_columns(),
        )
        _index(emails, "tenant_id", f"{singular}_id", "is_deleted")
        _unique_live(f"uq_{emails}_live", emails, "tenant_id", "email_address")

    # ==========================================================================
    # 7. course content
    # ==========================================================================
    op.create_table(
        "courses",
        _pk("course_id"),
        _tenant_fk("courses"),
        _fk("courses", "specialization_id", "specializations.specialization_id", nullable=True),
        sa.Column("course_name", sa.String(255), nullable=False),
        sa.Column("course_description", sa.Text, nullable=True),
        sa.Column("main_thumbnail_url", sa.String(500), nullable=True),
        sa.Column("course_status", sa.String(32), nullable=False, server_default="DRAFT"),
        sa.Column("course_type", sa.String(32), nullable=False, server_default="PAID"),
        sa.Column("course_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("course_total_hours", sa.Numeric(6, 2), nullable=True),
        *_entity_columns(),
    )
    _index("courses", "tenant_id", "specialization_id", "is_deleted")
    _unique_live("uq_courses_name_live", "courses", "tenant_id", "course_name")

    op.create_table(
        "course_modules",
        _pk("course_module_id"),
        _tenant_fk("course_modules"),
        _fk("course_modules", "course_id", "courses.course_id"),
        sa.Column("course_module_name", sa.String(255), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="1"),
        *_entity_columns(),
    )
    _index("course_modules", "tenant_id", "course_id", "is_deleted")

    op.create_table(
        "course_topics",
        _pk("course_topic_id"),
        _tenant_fk("course_topics"),
        _fk("course_topics", "module_id", "course_modules.course_module_id"),
        sa.Column("course_topic_name", sa.String(255), nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="1"),
        *_entity_columns(),
    )
    _index("course_topics", "tenant_id", "module_id", "is_deleted")

    op.create_table(
        "course_videos",
        _pk("course_video_id"),
        _tenant_fk("course_videos"),
        _fk("course_videos", "course_id", "courses.course_id"),
        _fk("course_videos", "course_topic_id", "course_topics.course_topic_id"),
        sa.Column("bunny_video_id", sa.String(100), nullable=True),
        sa.Column("video_name", sa.String(255), nullable=False),
        sa.Column("video_url", sa.String(500), nullable=True),
        sa.Column("thumbnail_url", sa.String(500), nullable=True),
        sa.Column("duration_seconds", sa.Integer, nullable=False, server_default="0"),
        sa.Column("position", sa.Integer, nullable=False, server_default="1"),
        sa.Column("upload_status", sa.String(32), nullable=False, server_default="PENDING"),
        *_entity_columns(),
    )
    _index("course_videos", "tenant_id", "course_id", "course_topic_id", "is_deleted")

    op.create_table(
        "teacher_courses",
        _pk("teacher_course_id"),
        _tenant_fk("teacher_courses"),
        _fk("teacher_courses", "course_id", "courses.course_id"),
        _fk("teacher_courses", "teacher_id", "teachers.teacher_id"),
        *_entity_columns(),
    )
    _index("teacher_courses", "tenant_id", "course_id", "teacher_id", "is_deleted")
    _unique_live("uq_teacher_courses_live", "teacher_courses", "course_id", "teacher_id")

    # ==========================================================================
    # 8. enrollments and progress
    # ==========================================================================
    op.create_table(
        "enrollments",
        _pk("enrollment_id"),
        _tenant_fk("enrollments"),
        _fk("enrollments", "course_id", "courses.course_id"),
        _fk("enrollments", "student_id", "students.student_id"),
        _fk("enrollments", "teacher_id", "teachers.teacher_id", nullable=True),
        sa.Column("enrollment_status", sa.String(32), nullable=False, server_default="ACTIVE"),
        sa.Column(
            "enrolled_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        *_entity_columns(),
    )
    _index("enrollments", "tenant_id", "course_id", "student_id", "is_deleted")
    _unique_live("uq_enrollments_live", "enrollments", "course_id", "student_id")

    op.create_table(
        "student_course_progresses",
        _pk("student_course_progress_id"),
        _tenant_fk("student_course_progresses"),
        _fk("student_course_progresses", "student_id", "students.student_id"),
        _fk("student_course_progresses", "course_id", "courses.course_id"),
        sa.Column(
            "overall_progress_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"
        ),
        sa.Column("modules_completed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("videos_completed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_time_spent_minutes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "is_course_completed", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        *_entity_columns(),
    )
    _index("student_course_progresses", "tenant_id", "student_id", "course_id", "is_deleted")
    _unique_live(
        "uq_student_course_progresses_live",
        "student_course_progresses",
        "student_id",
        "course_id",
    )

    op.create_table(
        "video_progresses",
        _pk("video_progress_id"),
        _tenant_fk("video_progresses"),
        _fk("video_progresses", "student_id", "students.student_id"),
        _fk("video_progresses", "course_video_id", "course_videos.course_video_id"),
        sa.Column("watch_duration_seconds", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "completion_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"
        ),
        sa.Column("last_watched_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_completed", sa.Boolean, nullable=False, server_default=sa.false()),
        *_entity_columns(),
    )
    _index("video_progresses", "tenant_id", "student_id", "course_video_id", "is_deleted")
    _unique_live(
        "uq_video_progresses_live", "video_progresses", "student_id", "course_video_id"
    )


def downgrade() -> None:
    """Drop LMS tables."""
    for table in (
        "video_progresses",
        "student_course_progresses",
        "enrollments",
        "teacher_courses",
        "course_videos",
        "course_topics",
        "course_modules",
        "courses",
        "teacher_email_addresses",
        "teachers",
        "student_email_addresses",
        "students",
        "specializations",
        "programs",
        "system_users",
        "client_tenants",
        "clients",
        "tenant_email_addresses",
        "tenant_phone_numbers",
        "tenants",
    ):
        op.drop_table(table)
