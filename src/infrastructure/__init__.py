# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for external service integrations.

This package contains clients and managers for:
- Database connections, models and migrations (PostgreSQL)
- Cache and token store backend (Redis)
- Local storage of uploaded branding assets
"""
