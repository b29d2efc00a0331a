# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative base and shared column mixins.

Every table combines some of:
- TimestampMixin: created_at / updated_at
- AuditMixin: who changed the row and from which IP
- SoftDeleteMixin: is_active / is_deleted flags plus deletion stamp
- TenantMixin: owning tenant

Rows are never physically deleted; services flip is_deleted and every
read path filters it out.
"""

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, MetaData, String, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.utils.datetime import utc_now

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def enum_column(enum_class: type[enum.Enum], length: int = 32) -> SAEnum:
    """Store a Python enum as a checked VARCHAR holding the member value."""
    return SAEnum(
        enum_class,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)
    type_annotation_map = {
        dict[str, Any]: JSON().with_variant(JSONB(), "postgresql"),
    }


class TimestampMixin:
    """Creation and modification timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class AuditMixin:
    """Actor and client IP of the last create / update."""

    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    updated_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)


class SoftDeleteMixin:
    """Activity flag and soft-delete stamp."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False, index=True
    )
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[int | None] = mapped_column(Integer, nullable=True)


class TenantMixin:
    """Owning tenant of a tenant-scoped row."""

    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.tenant_id"), nullable=False, index=True
    )


class EntityMixin(TimestampMixin, AuditMixin, SoftDeleteMixin):
    """All bookkeeping columns carried by every entity table."""


def unique_live(name: str, *columns: str) -> Index:
    """Unique index that ignores soft-deleted rows."""
    return Index(name, *columns, unique=True, postgresql_where=text("is_deleted = false"))
