# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""File storage for uploaded assets."""

from src.infrastructure.storage.local import BrandingStorage, InvalidUploadError

__all__ = ["BrandingStorage", "InvalidUploadError"]
