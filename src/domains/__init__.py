# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the LMS backend.

This package contains domain services that encapsulate business logic.
Each service receives an AsyncSession and the calling Actor, applies
tenant scoping and audit stamping, and raises AppError subclasses.

Domains:
    common: Tenant scoping, audit stamping, listing and person helpers.
    auth: Tokens, password hashing, permissions and the auth services.
    system: Administrator accounts and their authentication.
    tenant: Tenants, contacts and branding.
    client: Clients and their tenant associations.
    program: Programs and specializations.
    course: Course authoring, student catalog and live update rooms.
    student: Students and the student self-service profile.
    teacher: Teachers and their assigned courses.
    enrollment: Enrollments and progress tracking.
"""
