# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant scoping and audit stamping shared by every service.

Rules:
- Soft-deleted rows are invisible to every read.
- A SUPER_ADMIN sees every tenant; anyone else sees only rows whose
  tenant_id equals their own.
- Writes record who made them and from which IP.
- A write rejected by a unique index surfaces as a conflict, even when a
  concurrent request slipped past the duplicate check.

Example:
    >>> actor = Actor(id=7, user_type=UserType.TENANT_ADMIN, tenant_id=5)
    >>> stmt = select(Student).where(*tenant_filters(Student, actor))
    >>> student = Student(**data, **create_audit_fields(actor), tenant_id=5)
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from sqlalchemy import ColumnElement, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import (
    ConflictError,
    CrossTenantAccessError,
    MissingTenantError,
    NotFoundError,
)
from src.models.enums import UserType
from src.utils.datetime import utc_now


@dataclass(frozen=True)
class Actor:
    """The authenticated caller as seen by the service layer.

    Attributes:
        id: Primary key of the student, teacher or system user.
        user_type: Role of the caller.
        tenant_id: Tenant the caller acts in. None for a global SUPER_ADMIN.
        ip: Client IP address, recorded on writes.
    """

    id: int
    user_type: UserType
    tenant_id: int | None = None
    ip: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.user_type == UserType.SUPER_ADMIN

    @property
    def is_tenant_admin(self) -> bool:
        return self.user_type == UserType.TENANT_ADMIN


def can_access_all_tenants(actor: Actor) -> bool:
    """Return True if the actor is exempt from tenant isolation."""
    return actor.is_super_admin


def tenant_filters(
    model: Any,
    actor: Actor,
    force_isolation: bool = False,
    force_tenant_id: int | None = None,
) -> list[ColumnElement[bool]]:
    """Build the base WHERE predicates for a scoped read.

    Args:
        model: ORM class carrying is_deleted and tenant_id columns.
        actor: The caller.
        force_isolation: Restrict to the actor's tenant even for a SUPER_ADMIN
            acting in a tenant.
        force_tenant_id: Restrict to this tenant regardless of role.

    Returns:
        Predicates to splat into ``select(...).where(*predicates)``.
    """
    filters: list[ColumnElement[bool]] = [model.is_deleted.is_(False)]

    if force_tenant_id is not None:
        filters.append(model.tenant_id == force_tenant_id)
    elif not can_access_all_tenants(actor) or (force_isolation and actor.tenant_id is not None):
        filters.append(model.tenant_id == actor.tenant_id)

    return filters


def resolve_tenant_id(actor: Actor, requested: int | None = None) -> int:
    """Pick the tenant a new row is created in.

    Args:
        actor: The caller.
        requested: tenant_id supplied in the request body, if any.

    Returns:
        Tenant id the row must be stamped with.

    Raises:
        MissingTenantError: SUPER_ADMIN without a requested or acting tenant.
        CrossTenantAccessError: Non-SUPER_ADMIN requesting another tenant.
    """
    if can_access_all_tenants(actor):
        tenant_id = requested if requested is not None else actor.tenant_id
        if tenant_id is None:
            raise MissingTenantError()
        return tenant_id

    if requested is not None and requested != actor.tenant_id:
        raise CrossTenantAccessError("Cannot create resources in another tenant")
    if actor.tenant_id is None:
        raise MissingTenantError("Caller is not bound to a tenant")
    return actor.tenant_id


def ensure_same_tenant(actor: Actor, tenant_id: int | None, message: str | None = None) -> None:
    """Raise unless the actor may touch a row of ``tenant_id``.

    Raises:
        CrossTenantAccessError: When a non-SUPER_ADMIN crosses tenants.
    """
    if can_access_all_tenants(actor):
        return
    if tenant_id != actor.tenant_id:
        raise CrossTenantAccessError(message)


def create_audit_fields(actor: Actor) -> dict[str, Any]:
    """Audit columns for a new row."""
    now = utc_now()
    return {
        "created_by": actor.id,
        "updated_by": actor.id,
        "created_ip": actor.ip,
        "updated_ip": actor.ip,
        "created_at": now,
        "updated_at": now,
    }


def update_audit_fields(actor: Actor) -> dict[str, Any]:
    """Audit columns for a modified row."""
    return {
        "updated_by": actor.id,
        "updated_ip": actor.ip,
        "updated_at": utc_now(),
    }


def delete_audit_fields(actor: Actor) -> dict[str, Any]:
    """Columns written by a soft delete."""
    now = utc_now()
    return {
        "is_deleted": True,
        "is_active": False,
        "deleted_by": actor.id,
        "deleted_at": now,
        "updated_by": actor.id,
        "updated_ip": actor.ip,
        "updated_at": now,
    }


def apply_changes(entity: Any, changes: dict[str, Any]) -> list[str]:
    """Copy a partial payload onto an entity.

    Only keys present in ``changes`` are written, so fields left out of
    a PATCH body keep their stored value.

    Returns:
        Names of the attributes that were written.
    """
    written = []
    for field, value in changes.items():
        setattr(entity, field, value)
        written.append(field)
    return written


def stamp_update(entity: Any, actor: Actor, changes: dict[str, Any] | None = None) -> None:
    """Apply a partial payload and re-stamp the update audit columns."""
    if changes:
        apply_changes(entity, changes)
    apply_changes(entity, update_audit_fields(actor))


def stamp_delete(entities: Iterable[Any], actor: Actor) -> None:
    """Soft-delete every given entity."""
    fields = delete_audit_fields(actor)
    for entity in entities:
        apply_changes(entity, fields)


async def load_owned(
    db: AsyncSession,
    model: Any,
    id_column: Any,
    entity_id: int,
    actor: Actor,
    not_found: type[NotFoundError],
) -> Any:
    """Load a live row by id and check the actor may touch it.

    Args:
        db: Database session.
        model: ORM class.
        id_column: Primary key column of ``model``.
        entity_id: Requested id.
        actor: The caller.
        not_found: Error raised when the row is missing or soft-deleted.

    Returns:
        The entity.

    Raises:
        NotFoundError: Missing or soft-deleted row (as ``not_found``).
        CrossTenantAccessError: Row of another tenant, non-SUPER_ADMIN caller.
    """
    result = await db.execute(
        select(model).where(id_column == entity_id, model.is_deleted.is_(False))
    )
    entity = result.scalar_one_or_none()
    if entity is None:
        raise not_found()
    ensure_same_tenant(actor, entity.tenant_id)
    return entity


_CONSTRAINT_NAME = re.compile(r'constraint "([^"]+)"')


def violated_constraint(error: IntegrityError) -> str:
    """Name of the constraint that rejected a write, or "" when unknown."""
    # asyncpg raises the driver error as the cause of the DBAPI wrapper
    name = getattr(getattr(error.orig, "__cause__", None), "constraint_name", None)
    if name:
        return name
    match = _CONSTRAINT_NAME.search(str(error.orig))
    return match.group(1) if match else ""


def conflict_for(
    error: IntegrityError, conflicts: Mapping[str, type[ConflictError]]
) -> ConflictError | None:
    """Conflict error for the index named in ``error``, if ``conflicts`` has one."""
    constraint = violated_constraint(error)
    for fragment, conflict in conflicts.items():
        if fragment in constraint:
            return conflict()
    return None


async def commit_unique(
    db: AsyncSession, conflicts: Mapping[str, type[ConflictError]]
) -> None:
    """Commit, mapping unique index violations to conflict errors.

    Args:
        db: Database session.
        conflicts: Index name fragment to the error raised when that index
            rejects the write. Other integrity errors propagate unchanged.

    Raises:
        ConflictError: The matching error from ``conflicts``.
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        conflict = conflict_for(e, conflicts)
        if conflict is None:
            raise
        raise conflict from e
