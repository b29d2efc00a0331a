# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain package.

This package provides course enrollment and progress tracking:
- Enrolling students in courses
- Enrollment status changes and withdrawal
- Course and video progress
"""

from src.domains.enrollment.service import (
    AlreadyEnrolledError,
    EnrollmentNotFoundError,
    EnrollmentService,
    NotEnrolledError,
)

__all__ = [
    "AlreadyEnrolledError",
    "EnrollmentNotFoundError",
    "EnrollmentService",
    "NotEnrolledError",
]
