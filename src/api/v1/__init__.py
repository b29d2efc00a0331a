# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    auth: Administrator authentication (login, logout, refresh, reset).
    student_auth: Student authentication.
    teacher_auth: Teacher authentication.
    tenants: Tenant management, contacts and branding.
    clients: Client management and tenant links.
    programs: Program management.
    specializations: Specialization management.
    courses: Course authoring, teacher assignment and catalog.
    students: Student management.
    student_profile: Self-service profile of the logged-in student.
    teachers: Teacher management.
    system_users: Administrator account management.
    enrollments: Enrollments and progress.
    course_updates: Course update WebSocket (mounted under /ws).
"""

from fastapi import APIRouter

from src.api.v1 import (
    auth,
    clients,
    course_updates,
    courses,
    enrollments,
    programs,
    specializations,
    student_auth,
    student_profile,
    students,
    system_users,
    teacher_auth,
    teachers,
    tenants,
)

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Authentication routes
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(student_auth.router, prefix="/student/auth", tags=["Student Authentication"])
router.include_router(teacher_auth.router, prefix="/teacher/auth", tags=["Teacher Authentication"])

# Domain routes
router.include_router(tenants.router, prefix="/tenants", tags=["Tenants"])
router.include_router(clients.router, prefix="/clients", tags=["Clients"])
router.include_router(programs.router, prefix="/programs", tags=["Programs"])
router.include_router(specializations.router, prefix="/specializations", tags=["Specializations"])
router.include_router(courses.router, prefix="/courses", tags=["Courses"])
router.include_router(students.router, prefix="/students", tags=["Students"])
router.include_router(student_profile.router, prefix="/student-profile", tags=["Student Profile"])
router.include_router(teachers.router, prefix="/teachers", tags=["Teachers"])
router.include_router(system_users.router, prefix="/system-users", tags=["System Users"])
router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])

# WebSocket routes live outside the versioned prefix
ws_router = APIRouter(prefix="/ws")
ws_router.include_router(course_updates.router, tags=["Course Updates"])

__all__ = ["router", "ws_router"]
