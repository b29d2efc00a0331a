# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Specialization API endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import (
    get_actor,
    get_admin_actor,
    get_list_params,
    get_specialization_service,
)
from src.api.responses import ok, paged
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.domains.program import SpecializationService
from src.models.common import ApiResponse, PaginatedData
from src.models.program import (
    SpecializationCreate,
    SpecializationResponse,
    SpecializationUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[SpecializationResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create specialization",
)
async def create_specialization(
    data: SpecializationCreate,
    actor: Actor = Depends(get_admin_actor),
    service: SpecializationService = Depends(get_specialization_service),
) -> ApiResponse[SpecializationResponse]:
    specialization = await service.create_specialization(data, actor)
    return ok(specialization, "Specialization created successfully", 201)


@router.get(
    "",
    response_model=ApiResponse[PaginatedData[SpecializationResponse]],
    summary="List specializations",
)
async def list_specializations(
    program_id: int | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_actor),
    service: SpecializationService = Depends(get_specialization_service),
) -> ApiResponse[PaginatedData[SpecializationResponse]]:
    specializations, total = await service.list_specializations(
        params, actor, program_id, is_active
    )
    return paged(specializations, total, params, "Specializations retrieved successfully")


@router.get(
    "/{specialization_id}",
    response_model=ApiResponse[SpecializationResponse],
    summary="Get specialization",
)
async def get_specialization(
    specialization_id: int,
    actor: Actor = Depends(get_actor),
    service: SpecializationService = Depends(get_specialization_service),
) -> ApiResponse[SpecializationResponse]:
    specialization = await service.get_specialization(specialization_id, actor)
    return ok(specialization, "Specialization retrieved successfully")


@router.put(
    "/{specialization_id}",
    response_model=ApiResponse[SpecializationResponse],
    summary="Update specialization",
)
async def update_specialization(
    specialization_id: int,
    data: SpecializationUpdate,
    actor: Actor = Depends(get_admin_actor),
    service: SpecializationService = Depends(get_specialization_service),
) -> ApiResponse[SpecializationResponse]:
    specialization = await service.update_specialization(specialization_id, data, actor)
    return ok(specialization, "Specialization updated successfully")


@router.delete(
    "/{specialization_id}",
    response_model=ApiResponse[None],
    summary="Delete specialization",
)
async def delete_specialization(
    specialization_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: SpecializationService = Depends(get_specialization_service),
) -> ApiResponse[None]:
    await service.delete_specialization(specialization_id, actor)
    return ok(None, "Specialization deleted successfully")
