# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Mock builders for SQLAlchemy results and ORM entities."""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import MagicMock

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def scalar_result(value: Any) -> MagicMock:
    """Mock a Result whose scalar_one_or_none() / scalar() return ``value``."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar.return_value = value
    return result


def scalars_result(values: list[Any]) -> MagicMock:
    """Mock a Result whose scalars().all() returns ``values``."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


def rows_result(rows: list[Any]) -> MagicMock:
    """Mock a Result whose all() returns ``rows``."""
    result = MagicMock()
    result.all.return_value = rows
    return result


def audited(**fields: Any) -> MagicMock:
    """Mock ORM entity carrying the audit columns every response exposes."""
    entity = MagicMock()
    entity.is_active = True
    entity.is_deleted = False
    entity.created_at = NOW
    entity.updated_at = NOW
    entity.created_by = 1
    entity.updated_by = 1
    for name, value in fields.items():
        setattr(entity, name, value)
    return entity
