# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program API endpoints.

Administrators manage programs; every authenticated caller of the tenant
may read them, since the course catalog is filtered by program.
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_actor,
    get_admin_actor,
    get_list_params,
    get_program_service,
    get_specialization_service,
)
from src.api.responses import ok, paged
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.domains.program import ProgramService, SpecializationService
from src.models.common import ApiResponse, PaginatedData
from src.models.program import (
    ProgramCreate,
    ProgramResponse,
    ProgramUpdate,
    SpecializationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[ProgramResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create program",
)
async def create_program(
    data: ProgramCreate,
    actor: Actor = Depends(get_admin_actor),
    service: ProgramService = Depends(get_program_service),
) -> ApiResponse[ProgramResponse]:
    program = await service.create_program(data, actor)
    return ok(program, "Program created successfully", 201)


@router.get(
    "",
    response_model=ApiResponse[PaginatedData[ProgramResponse]],
    summary="List programs",
)
async def list_programs(
    is_active: bool | None = Query(default=None),
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_actor),
    service: ProgramService = Depends(get_program_service),
) -> ApiResponse[PaginatedData[ProgramResponse]]:
    programs, total = await service.list_programs(params, actor, is_active)
    return paged(programs, total, params, "Programs retrieved successfully")


@router.get(
    "/by-tenant",
    response_model=ApiResponse[list[ProgramResponse]],
    summary="Programs of a tenant",
    description="All programs of one tenant ordered by name, for selection lists.",
)
async def get_programs_by_tenant(
    tenant_id: int | None = Query(default=None, description="Defaults to the caller's tenant"),
    include_inactive: bool = Query(default=False),
    actor: Actor = Depends(get_actor),
    service: ProgramService = Depends(get_program_service),
) -> ApiResponse[list[ProgramResponse]]:
    programs = await service.get_programs_by_tenant(actor, tenant_id, include_inactive)
    return ok(programs, "Programs retrieved successfully")


@router.get("/{program_id}", response_model=ApiResponse[ProgramResponse], summary="Get program")
async def get_program(
    program_id: int,
    actor: Actor = Depends(get_actor),
    service: ProgramService = Depends(get_program_service),
) -> ApiResponse[ProgramResponse]:
    return ok(await service.get_program(program_id, actor), "Program retrieved successfully")


@router.get(
    "/{program_id}/specializations",
    response_model=ApiResponse[list[SpecializationResponse]],
    summary="Active specializations of a program",
)
async def get_program_specializations(
    program_id: int,
    actor: Actor = Depends(get_actor),
    service: SpecializationService = Depends(get_specialization_service),
) -> ApiResponse[list[SpecializationResponse]]:
    specializations = await service.get_active_specializations_by_program(program_id, actor)
    return ok(specializations, "Specializations retrieved successfully")


@router.put("/{program_id}", response_model=ApiResponse[ProgramResponse], summary="Update program")
async def update_program(
    program_id: int,
    data: ProgramUpdate,
    actor: Actor = Depends(get_admin_actor),
    service: ProgramService = Depends(get_program_service),
) -> ApiResponse[ProgramResponse]:
    program = await service.update_program(program_id, data, actor)
    return ok(program, "Program updated successfully")


@router.delete("/{program_id}", response_model=ApiResponse[None], summary="Delete program")
async def delete_program(
    program_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: ProgramService = Depends(get_program_service),
) -> ApiResponse[None]:
    await service.delete_program(program_id, actor)
    return ok(None, "Program deleted successfully")
