# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Client domain."""

from src.domains.client.service import ClientService

__all__ = ["ClientService"]
