# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for ProgramService and SpecializationService."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from src.core.errors import MissingTenantError
from src.domains.common.scoping import Actor
from src.domains.program.service import (
    DuplicateProgramNameError,
    DuplicateSpecializationNameError,
    ProgramInUseError,
    ProgramNotFoundError,
    ProgramService,
    SpecializationService,
)
from src.infrastructure.database.models import Program, Specialization
from src.models.program import ProgramCreate, SpecializationCreate, SpecializationUpdate
from tests.helpers import NOW, scalar_result, scalars_result


def make_program(**overrides) -> Program:
    fields = {
        "program_id": 2,
        "tenant_id": 5,
        "program_name": "Science",
        "is_active": True,
        "is_deleted": False,
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return Program(**fields)


def make_specialization(**overrides) -> Specialization:
    fields = {
        "specialization_id": 3,
        "tenant_id": 5,
        "program_id": 2,
        "specialization_name": "Pure Math",
        "is_active": True,
        "is_deleted": False,
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return Specialization(**fields)


class TestProgramService:
    """Tests for ProgramService."""

    @pytest.mark.asyncio
    async def test_create_program_in_callers_tenant(
        self, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(0)
        mock_db.refresh.side_effect = lambda p: setattr(p, "program_id", 2)

        result = await ProgramService(mock_db).create_program(
            ProgramCreate(program_name="Science"), tenant_admin
        )

        assert result.tenant_id == 5
        assert result.program_id == 2
        assert result.created_by == 7

    @pytest.mark.asyncio
    async def test_create_duplicate_name(self, mock_db: AsyncMock, tenant_admin: Actor) -> None:
        mock_db.execute.return_value = scalar_result(1)

        with pytest.raises(DuplicateProgramNameError):
            await ProgramService(mock_db).create_program(
                ProgramCreate(program_name="science"), tenant_admin
            )

    @pytest.mark.asyncio
    async def test_create_racing_duplicate_is_conflict(
        self, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.return_value = scalar_result(0)
        mock_db.commit.side_effect = IntegrityError(
            "INSERT INTO programs ...",
            {},
            Exception('duplicate key value violates unique constraint "uq_programs_name_live"'),
        )

        with pytest.raises(DuplicateProgramNameError) as exc_info:
            await ProgramService(mock_db).create_program(
                ProgramCreate(program_name="Science"), tenant_admin
            )

        assert exc_info.value.status_code == 409
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_refused_while_in_use(
        self, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        program = make_program()
        mock_db.execute.side_effect = [scalar_result(program), scalar_result(2)]

        with pytest.raises(ProgramInUseError) as exc_info:
            await ProgramService(mock_db).delete_program(2, tenant_admin)

        assert exc_info.value.status_code == 422
        assert program.is_deleted is False

    @pytest.mark.asyncio
    async def test_delete_unused(self, mock_db: AsyncMock, tenant_admin: Actor) -> None:
        program = make_program()
        mock_db.execute.side_effect = [scalar_result(program), scalar_result(0)]

        await ProgramService(mock_db).delete_program(2, tenant_admin)

        assert program.is_deleted is True

    @pytest.mark.asyncio
    async def test_programs_by_tenant_needs_tenant_for_global_admin(
        self, mock_db: AsyncMock, super_admin: Actor
    ) -> None:
        with pytest.raises(MissingTenantError):
            await ProgramService(mock_db).get_programs_by_tenant(super_admin)

    @pytest.mark.asyncio
    async def test_programs_by_tenant(self, mock_db: AsyncMock, super_admin: Actor) -> None:
        mock_db.execute.return_value = scalars_result([make_program(tenant_id=9)])

        programs = await ProgramService(mock_db).get_programs_by_tenant(super_admin, tenant_id=9)

        assert [p.tenant_id for p in programs] == [9]
        sql = str(mock_db.execute.call_args.args[0])
        assert "programs.is_active IS" in sql


class TestSpecializationService:
    """Tests for SpecializationService."""

    @pytest.mark.asyncio
    async def test_create_under_program(self, mock_db: AsyncMock, tenant_admin: Actor) -> None:
        mock_db.execute.side_effect = [scalar_result(make_program()), scalar_result(0)]
        mock_db.refresh.side_effect = lambda s: setattr(s, "specialization_id", 3)

        result = await SpecializationService(mock_db).create_specialization(
            SpecializationCreate(program_id=2, specialization_name="Pure Math"), tenant_admin
        )

        assert result.program_id == 2
        assert result.program_name == "Science"
        assert result.tenant_id == 5

    @pytest.mark.asyncio
    async def test_create_unknown_program(self, mock_db: AsyncMock, tenant_admin: Actor) -> None:
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(ProgramNotFoundError):
            await SpecializationService(mock_db).create_specialization(
                SpecializationCreate(program_id=2, specialization_name="Pure Math"), tenant_admin
            )

    @pytest.mark.asyncio
    async def test_create_duplicate_in_program(
        self, mock_db: AsyncMock, tenant_admin: Actor
    ) -> None:
        mock_db.execute.side_effect = [scalar_result(make_program()), scalar_result(1)]

        with pytest.raises(DuplicateSpecializationNameError):
            await SpecializationService(mock_db).create_specialization(
                SpecializationCreate(program_id=2, specialization_name="Pure Math"), tenant_admin
            )

    @pytest.mark.asyncio
    async def test_move_to_program_of_other_tenant(
        self, mock_db: AsyncMock, super_admin: Actor
    ) -> None:
        """Test that a specialization cannot move under another tenant's program."""
        mock_db.execute.side_effect = [
            scalar_result(make_specialization()),
            scalar_result(make_program(program_id=8, tenant_id=6)),
        ]

        with pytest.raises(ProgramNotFoundError):
            await SpecializationService(mock_db).update_specialization(
                3, SpecializationUpdate(program_id=8), super_admin
            )

    @pytest.mark.asyncio
    async def test_active_by_program(self, mock_db: AsyncMock, teacher_actor: Actor) -> None:
        mock_db.execute.side_effect = [
            scalar_result(make_program()),
            scalars_result([make_specialization()]),
        ]

        items = await SpecializationService(mock_db).get_active_specializations_by_program(
            2, teacher_actor
        )

        assert [s.specialization_name for s in items] == ["Pure Math"]
        assert items[0].program_name == "Science"
