"""Multi-tenant LMS Backend.

REST API for a multi-tenant learning management system: tenants, clients,
programs, specializations, courses with modules/topics/videos, students,
teachers and administrators, with per-tenant row scoping.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
