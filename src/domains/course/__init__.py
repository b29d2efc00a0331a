# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course domain: authoring, the student catalog and live update rooms."""

from src.domains.course.catalog import CourseCatalogService
from src.domains.course.rooms import CourseEventHandler, CourseRoomManager, get_course_rooms
from src.domains.course.service import CourseService

__all__ = [
    "CourseCatalogService",
    "CourseEventHandler",
    "CourseRoomManager",
    "CourseService",
    "get_course_rooms",
]
