# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant domain: tenants, their contact details and branding."""

from src.domains.tenant.service import BrandingKind, TenantService

__all__ = ["BrandingKind", "TenantService"]
