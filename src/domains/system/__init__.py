# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""System domain for administrator accounts.

This module provides services for:
- System admin authentication, including super admin tenant context
- System user management
"""

from src.domains.system.auth_service import SystemAuthService
from src.domains.system.user_service import SystemUserService

__all__ = ["SystemAuthService", "SystemUserService"]
