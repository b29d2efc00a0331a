# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program and specialization services.

Programs group specializations; courses hang off a specialization. Names
are unique per tenant (programs) and per program (specializations).

Example:
    >>> programs = ProgramService(db)
    >>> program = await programs.create_program(ProgramCreate(program_name="Science"), actor)
    >>> specs = SpecializationService(db)
    >>> await specs.create_specialization(
    ...     SpecializationCreate(program_id=program.program_id, specialization_name="Physics"),
    ...     actor,
    ... )
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ConflictError, NotFoundError, UnprocessableEntityError
from src.domains.common.listing import ListParams, paginate
from src.domains.common.scoping import (
    Actor,
    commit_unique,
    create_audit_fields,
    load_owned,
    resolve_tenant_id,
    stamp_delete,
    stamp_update,
    tenant_filters,
)
from src.infrastructure.database.models import Program, Specialization
from src.models.program import (
    ProgramCreate,
    ProgramResponse,
    ProgramUpdate,
    SpecializationCreate,
    SpecializationResponse,
    SpecializationUpdate,
)

logger = logging.getLogger(__name__)


class ProgramNotFoundError(NotFoundError):
    default_code = "PROGRAM_NOT_FOUND"
    default_message = "Program not found"


class DuplicateProgramNameError(ConflictError):
    default_code = "DUPLICATE_PROGRAM_NAME"
    default_message = "A program with this name already exists"


class ProgramInUseError(UnprocessableEntityError):
    default_code = "PROGRAM_HAS_SPECIALIZATIONS"
    default_message = "Program still has active specializations"


class SpecializationNotFoundError(NotFoundError):
    default_code = "SPECIALIZATION_NOT_FOUND"
    default_message = "Specialization not found"


class DuplicateSpecializationNameError(ConflictError):
    default_code = "DUPLICATE_SPECIALIZATION_NAME"
    default_message = "A specialization with this name already exists in the program"


_PROGRAM_CONFLICTS = {"uq_programs_name": DuplicateProgramNameError}
_SPECIALIZATION_CONFLICTS = {"uq_specializations_name": DuplicateSpecializationNameError}


class ProgramService:
    """Service for managing programs.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_program(self, data: ProgramCreate, actor: Actor) -> ProgramResponse:
        """Create a program.

        Raises:
            DuplicateProgramNameError: If the name is taken in the tenant.
        """
        tenant_id = resolve_tenant_id(actor, data.tenant_id)
        if await self._name_taken(tenant_id, data.program_name):
            raise DuplicateProgramNameError()

        program = Program(
            tenant_id=tenant_id,
            program_name=data.program_name,
            program_thumbnail_url=data.program_thumbnail_url,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(program)
        await commit_unique(self._db, _PROGRAM_CONFLICTS)
        await self._db.refresh(program)

        logger.info("Program created: %s (%s)", program.program_id, program.program_name)
        return ProgramResponse.model_validate(program)

    async def get_program(self, program_id: int, actor: Actor) -> ProgramResponse:
        program = await load_owned(
            self._db, Program, Program.program_id, program_id, actor, ProgramNotFoundError
        )
        return ProgramResponse.model_validate(program)

    async def list_programs(
        self,
        params: ListParams,
        actor: Actor,
        is_active: bool | None = None,
    ) -> tuple[list[ProgramResponse], int]:
        stmt = select(Program).where(*tenant_filters(Program, actor))
        if is_active is not None:
            stmt = stmt.where(Program.is_active == is_active)

        programs, total = await paginate(
            self._db,
            stmt,
            params,
            sort_fields={
                "programId": Program.program_id,
                "programName": Program.program_name,
                "createdAt": Program.created_at,
                "updatedAt": Program.updated_at,
            },
            default_sort=Program.created_at,
            search_columns=[Program.program_name],
        )
        return [ProgramResponse.model_validate(p) for p in programs], total

    async def get_programs_by_tenant(
        self,
        actor: Actor,
        tenant_id: int | None = None,
        include_inactive: bool = False,
    ) -> list[ProgramResponse]:
        """All programs of one tenant, ordered by name, for dropdowns.

        Args:
            actor: The caller.
            tenant_id: Tenant to read; defaults to the caller's tenant.
            include_inactive: Include programs flagged inactive.
        """
        target = resolve_tenant_id(actor, tenant_id)
        stmt = select(Program).where(*tenant_filters(Program, actor, force_tenant_id=target))
        if not include_inactive:
            stmt = stmt.where(Program.is_active.is_(True))

        result = await self._db.execute(stmt.order_by(Program.program_name.asc()))
        return [ProgramResponse.model_validate(p) for p in result.scalars().all()]

    async def update_program(
        self, program_id: int, data: ProgramUpdate, actor: Actor
    ) -> ProgramResponse:
        program = await load_owned(
            self._db, Program, Program.program_id, program_id, actor, ProgramNotFoundError
        )
        changes = data.model_dump(exclude_unset=True)

        new_name = changes.get("program_name")
        if new_name and new_name != program.program_name:
            if await self._name_taken(program.tenant_id, new_name, exclude_id=program_id):
                raise DuplicateProgramNameError()

        stamp_update(program, actor, changes)
        await commit_unique(self._db, _PROGRAM_CONFLICTS)
        await self._db.refresh(program)

        logger.info("Program updated: %s fields=%s", program_id, sorted(changes))
        return ProgramResponse.model_validate(program)

    async def delete_program(self, program_id: int, actor: Actor) -> None:
        """Soft-delete a program.

        Raises:
            ProgramInUseError: While live specializations reference it.
        """
        program = await load_owned(
            self._db, Program, Program.program_id, program_id, actor, ProgramNotFoundError
        )
        in_use = await self._db.execute(
            select(func.count())
            .select_from(Specialization)
            .where(
                Specialization.program_id == program_id,
                Specialization.is_deleted.is_(False),
                Specialization.is_active.is_(True),
            )
        )
        if (in_use.scalar() or 0) > 0:
            raise ProgramInUseError()

        stamp_delete([program], actor)
        await self._db.commit()
        logger.info("Program deleted: %s by %s", program_id, actor.id)

    async def _name_taken(self, tenant_id: int, name: str, exclude_id: int | None = None) -> bool:
        stmt = select(func.count()).select_from(Program).where(
            Program.tenant_id == tenant_id,
            func.lower(Program.program_name) == name.lower(),
            Program.is_deleted.is_(False),
        )
        if exclude_id is not None:
            stmt = stmt.where(Program.program_id != exclude_id)
        return ((await self._db.execute(stmt)).scalar() or 0) > 0


class SpecializationService:
    """Service for managing specializations within programs.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_specialization(
        self, data: SpecializationCreate, actor: Actor
    ) -> SpecializationResponse:
        """Create a specialization under a program of the same tenant."""
        program = await load_owned(
            self._db, Program, Program.program_id, data.program_id, actor, ProgramNotFoundError
        )
        tenant_id = resolve_tenant_id(actor, data.tenant_id or program.tenant_id)
        if tenant_id != program.tenant_id:
            raise ProgramNotFoundError("Program does not belong to the tenant")

        if await self._name_taken(program.program_id, data.specialization_name):
            raise DuplicateSpecializationNameError()

        specialization = Specialization(
            tenant_id=tenant_id,
            program_id=program.program_id,
            specialization_name=data.specialization_name,
            specialization_thumbnail_url=data.specialization_thumbnail_url,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(specialization)
        await commit_unique(self._db, _SPECIALIZATION_CONFLICTS)
        await self._db.refresh(specialization)

        logger.info(
            "Specialization created: %s in program %s",
            specialization.specialization_id,
            program.program_id,
        )
        return self._to_response(specialization, program.program_name)

    async def get_specialization(
        self, specialization_id: int, actor: Actor
    ) -> SpecializationResponse:
        specialization = await self._get(specialization_id, actor)
        return self._to_response(specialization, await self._program_name(specialization))

    async def list_specializations(
        self,
        params: ListParams,
        actor: Actor,
        program_id: int | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[SpecializationResponse], int]:
        stmt = (
            select(Specialization, Program.program_name)
            .join(Program, Program.program_id == Specialization.program_id)
            .where(*tenant_filters(Specialization, actor), Program.is_deleted.is_(False))
        )
        if program_id is not None:
            stmt = stmt.where(Specialization.program_id == program_id)
        if is_active is not None:
            stmt = stmt.where(Specialization.is_active == is_active)

        rows, total = await paginate(
            self._db,
            stmt,
            params,
            sort_fields={
                "specializationId": Specialization.specialization_id,
                "specializationName": Specialization.specialization_name,
                "programName": Program.program_name,
                "createdAt": Specialization.created_at,
            },
            default_sort=Specialization.created_at,
            search_columns=[Specialization.specialization_name, Program.program_name],
        )
        return [self._to_response(s, name) for s, name in rows], total

    async def get_active_specializations_by_program(
        self, program_id: int, actor: Actor
    ) -> list[SpecializationResponse]:
        """Active specializations of a program, ordered by name."""
        program = await load_owned(
            self._db, Program, Program.program_id, program_id, actor, ProgramNotFoundError
        )
        result = await self._db.execute(
            select(Specialization)
            .where(
                Specialization.program_id == program.program_id,
                Specialization.is_deleted.is_(False),
                Specialization.is_active.is_(True),
            )
            .order_by(Specialization.specialization_name.asc())
        )
        return [self._to_response(s, program.program_name) for s in result.scalars().all()]

    async def update_specialization(
        self, specialization_id: int, data: SpecializationUpdate, actor: Actor
    ) -> SpecializationResponse:
        specialization = await self._get(specialization_id, actor)
        changes = data.model_dump(exclude_unset=True)

        program_id = changes.get("program_id") or specialization.program_id
        if program_id != specialization.program_id:
            program = await load_owned(
                self._db, Program, Program.program_id, program_id, actor, ProgramNotFoundError
            )
            if program.tenant_id != specialization.tenant_id:
                raise ProgramNotFoundError("Program does not belong to the tenant")

        new_name = changes.get("specialization_name", specialization.specialization_name)
        if (
            new_name != specialization.specialization_name
            or program_id != specialization.program_id
        ) and await self._name_taken(program_id, new_name, exclude_id=specialization_id):
            raise DuplicateSpecializationNameError()

        stamp_update(specialization, actor, changes)
        await commit_unique(self._db, _SPECIALIZATION_CONFLICTS)
        await self._db.refresh(specialization)

        logger.info("Specialization updated: %s fields=%s", specialization_id, sorted(changes))
        return self._to_response(specialization, await self._program_name(specialization))

    async def delete_specialization(self, specialization_id: int, actor: Actor) -> None:
        specialization = await self._get(specialization_id, actor)
        stamp_delete([specialization], actor)
        await self._db.commit()
        logger.info("Specialization deleted: %s by %s", specialization_id, actor.id)

    async def _get(self, specialization_id: int, actor: Actor) -> Specialization:
        return await load_owned(
            self._db,
            Specialization,
            Specialization.specialization_id,
            specialization_id,
            actor,
            SpecializationNotFoundError,
        )

    async def _program_name(self, specialization: Specialization) -> str | None:
        result = await self._db.execute(
            select(Program.program_name).where(Program.program_id == specialization.program_id)
        )
        return result.scalar_one_or_none()

    async def _name_taken(
        self, program_id: int, name: str, exclude_id: int | None = None
    ) -> bool:
        stmt = select(func.count()).select_from(Specialization).where(
            Specialization.program_id == program_id,
            func.lower(Specialization.specialization_name) == name.lower(),
            Specialization.is_deleted.is_(False),
        )
        if exclude_id is not None:
            stmt = stmt.where(Specialization.specialization_id != exclude_id)
        return ((await self._db.execute(stmt)).scalar() or 0) > 0

    def _to_response(
        self, specialization: Specialization, program_name: str | None
    ) -> SpecializationResponse:
        response = SpecializationResponse.model_validate(specialization)
        response.program_name = program_name
        return response
