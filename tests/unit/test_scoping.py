# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for tenant scoping and audit stamping."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from src.core.errors import (
    ConflictError,
    CrossTenantAccessError,
    MissingTenantError,
    NotFoundError,
)
from src.domains.common.scoping import (
    Actor,
    commit_unique,
    conflict_for,
    create_audit_fields,
    delete_audit_fields,
    ensure_same_tenant,
    load_owned,
    resolve_tenant_id,
    stamp_delete,
    stamp_update,
    tenant_filters,
    violated_constraint,
)
from src.infrastructure.database.models import Student
from src.models.enums import UserType
from tests.helpers import audited, scalar_result


def _sql(predicates) -> list[str]:
    return [str(p) for p in predicates]


class TestTenantFilters:
    """Tests for the scoped read predicates."""

    def test_tenant_admin_is_isolated(self, tenant_admin: Actor) -> None:
        """Test that a tenant admin only sees its own tenant."""
        sql = _sql(tenant_filters(Student, tenant_admin))

        assert len(sql) == 2
        assert "students.is_deleted IS" in sql[0]
        assert "students.tenant_id =" in sql[1]

    def test_super_admin_sees_every_tenant(self, super_admin: Actor) -> None:
        """Test that a super admin only gets the soft-delete filter."""
        sql = _sql(tenant_filters(Student, super_admin))

        assert len(sql) == 1
        assert "is_deleted" in sql[0]

    def test_force_isolation_applies_to_super_admin_in_tenant(self) -> None:
        """Test that force_isolation scopes a super admin acting in a tenant."""
        actor = Actor(id=1, user_type=UserType.SUPER_ADMIN, tenant_id=9)

        assert len(tenant_filters(Student, actor, force_isolation=True)) == 2

    def test_force_isolation_without_tenant_is_global(self, super_admin: Actor) -> None:
        assert len(tenant_filters(Student, super_admin, force_isolation=True)) == 1

    def test_force_tenant_id_overrides_role(self, super_admin: Actor) -> None:
        """Test that force_tenant_id restricts even a super admin."""
        predicates = tenant_filters(Student, super_admin, force_tenant_id=3)

        assert len(predicates) == 2
        assert predicates[1].right.value == 3


class TestResolveTenantId:
    """Tests for choosing the tenant of a new row."""

    def test_tenant_admin_uses_own_tenant(self, tenant_admin: Actor) -> None:
        assert resolve_tenant_id(tenant_admin) == 5

    def test_tenant_admin_may_repeat_own_tenant(self, tenant_admin: Actor) -> None:
        assert resolve_tenant_id(tenant_admin, 5) == 5

    def test_tenant_admin_cannot_target_other_tenant(self, tenant_admin: Actor) -> None:
        with pytest.raises(CrossTenantAccessError):
            resolve_tenant_id(tenant_admin, 6)

    def test_super_admin_uses_requested_tenant(self, super_admin: Actor) -> None:
        assert resolve_tenant_id(super_admin, 12) == 12

    def test_super_admin_falls_back_to_acting_tenant(self) -> None:
        actor = Actor(id=1, user_type=UserType.SUPER_ADMIN, tenant_id=4)

        assert resolve_tenant_id(actor) == 4

    def test_super_admin_without_tenant_fails(self, super_admin: Actor) -> None:
        """Test that a global super admin must name the tenant."""
        with pytest.raises(MissingTenantError) as exc_info:
            resolve_tenant_id(super_admin)

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "MISSING_TENANT_ID"


class TestEnsureSameTenant:
    def test_same_tenant_passes(self, tenant_admin: Actor) -> None:
        ensure_same_tenant(tenant_admin, 5)

    def test_other_tenant_is_forbidden(self, teacher_actor: Actor) -> None:
        with pytest.raises(CrossTenantAccessError) as exc_info:
            ensure_same_tenant(teacher_actor, 8)

        assert exc_info.value.status_code == 403

    def test_super_admin_passes_any_tenant(self, super_admin: Actor) -> None:
        ensure_same_tenant(super_admin, 8)


class TestAuditStamps:
    """Tests for audit column stamping."""

    def test_create_fields_record_actor_and_ip(self, tenant_admin: Actor) -> None:
        fields = create_audit_fields(tenant_admin)

        assert fields["created_by"] == 7
        assert fields["updated_by"] == 7
        assert fields["created_ip"] == "10.0.0.7"
        assert fields["created_at"] == fields["updated_at"]

    def test_stamp_update_keeps_untouched_fields(self, tenant_admin: Actor) -> None:
        """Test that a partial update only writes supplied keys."""
        entity = audited(first_name="Ada", last_name="Lovelace", updated_by=1)

        stamp_update(entity, tenant_admin, {"first_name": "Augusta"})

        assert entity.first_name == "Augusta"
        assert entity.last_name == "Lovelace"
        assert entity.updated_by == 7
        assert entity.updated_ip == "10.0.0.7"

    def test_stamp_update_without_changes_restamps(self, tenant_admin: Actor) -> None:
        entity = audited(updated_by=1)

        stamp_update(entity, tenant_admin)

        assert entity.updated_by == 7

    def test_stamp_delete_soft_deletes_all(self, tenant_admin: Actor) -> None:
        """Test that soft delete flips the flags on every entity."""
        first, second = audited(), audited()

        stamp_delete([first, second], tenant_admin)

        for entity in (first, second):
            assert entity.is_deleted is True
            assert entity.is_active is False
            assert entity.deleted_by == 7
            assert entity.deleted_at is not None

    def test_delete_fields_restamp_update(self, tenant_admin: Actor) -> None:
        fields = delete_audit_fields(tenant_admin)

        assert fields["deleted_at"] == fields["updated_at"]


class TestLoadOwned:
    """Tests for loading a row the caller may touch."""

    @pytest.mark.asyncio
    async def test_returns_row_of_own_tenant(self, mock_db, tenant_admin: Actor) -> None:
        student = audited(student_id=3, tenant_id=5)
        mock_db.execute.return_value = scalar_result(student)

        result = await load_owned(
            mock_db, Student, Student.student_id, 3, tenant_admin, NotFoundError
        )

        assert result is student

    @pytest.mark.asyncio
    async def test_missing_row_raises_given_error(self, mock_db, tenant_admin: Actor) -> None:
        class MissingThing(NotFoundError):
            default_code = "THING_NOT_FOUND"

        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(MissingThing):
            await load_owned(mock_db, Student, Student.student_id, 3, tenant_admin, MissingThing)

    @pytest.mark.asyncio
    async def test_cross_tenant_row_is_forbidden(self, mock_db, tenant_admin: Actor) -> None:
        """Test that a row of another tenant yields 403, not 404."""
        mock_db.execute.return_value = scalar_result(MagicMock(tenant_id=6))

        with pytest.raises(CrossTenantAccessError):
            await load_owned(
                mock_db, Student, Student.student_id, 3, tenant_admin, NotFoundError
            )


class DuplicateThingError(ConflictError):
    default_code = "DUPLICATE_THING"


def unique_violation(constraint: str) -> IntegrityError:
    return IntegrityError(
        "INSERT INTO things ...",
        {},
        Exception(f'duplicate key value violates unique constraint "{constraint}"'),
    )


class TestUniqueViolations:
    """Tests for turning unique index violations into conflicts."""

    def test_constraint_name_from_message(self) -> None:
        assert violated_constraint(unique_violation("uq_things_name_live")) == "uq_things_name_live"

    def test_constraint_name_from_driver_error(self) -> None:
        driver_error = Exception("duplicate key")
        driver_error.constraint_name = "uq_things_name_live"
        wrapper = Exception("wrapped")
        wrapper.__cause__ = driver_error

        assert violated_constraint(IntegrityError("INSERT", {}, wrapper)) == "uq_things_name_live"

    def test_other_constraint_has_no_conflict(self) -> None:
        error = unique_violation("fk_things_owner")

        assert conflict_for(error, {"uq_things_name": DuplicateThingError}) is None

    @pytest.mark.asyncio
    async def test_commit_maps_violation_to_conflict(self, mock_db) -> None:
        mock_db.commit.side_effect = unique_violation("uq_things_name_live")

        with pytest.raises(DuplicateThingError) as exc_info:
            await commit_unique(mock_db, {"uq_things_name": DuplicateThingError})

        assert exc_info.value.status_code == 409
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_commit_reraises_unmapped_violation(self, mock_db) -> None:
        mock_db.commit.side_effect = unique_violation("fk_things_owner")

        with pytest.raises(IntegrityError):
            await commit_unique(mock_db, {"uq_things_name": DuplicateThingError})

        mock_db.rollback.assert_awaited_once()
