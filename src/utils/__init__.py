# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from src.utils.datetime import (
    days_from_now,
    ensure_utc,
    format_duration,
    format_iso,
    is_expired,
    minutes_from_now,
    utc_from_timestamp,
    utc_now,
)
from src.utils.logging import (
    bind_context,
    clear_context,
    get_logger,
    get_request_id,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "get_request_id",
    # Datetime
    "utc_now",
    "utc_from_timestamp",
    "ensure_utc",
    "minutes_from_now",
    "days_from_now",
    "is_expired",
    "format_iso",
    "format_duration",
]
