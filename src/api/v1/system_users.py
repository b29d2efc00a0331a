# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Administrator account API endpoints.

A SUPER_ADMIN may create SUPER_ADMIN and TENANT_ADMIN accounts; a
TENANT_ADMIN only TENANT_ADMIN accounts of its own tenant.
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_admin_actor, get_list_params, get_system_user_service
from src.api.responses import ok, paged
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.domains.system import SystemUserService
from src.models.common import ApiResponse, PaginatedData
from src.models.enums import SystemUserStatus, UserType
from src.models.system_user import SystemUserCreate, SystemUserResponse, SystemUserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[SystemUserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create system user",
)
async def create_system_user(
    data: SystemUserCreate,
    actor: Actor = Depends(get_admin_actor),
    service: SystemUserService = Depends(get_system_user_service),
) -> ApiResponse[SystemUserResponse]:
    user = await service.create_system_user(data, actor)
    return ok(user, "System user created successfully", 201)


@router.get(
    "",
    response_model=ApiResponse[PaginatedData[SystemUserResponse]],
    summary="List system users",
)
async def list_system_users(
    role_type: UserType | None = Query(default=None),
    system_user_status: SystemUserStatus | None = Query(default=None),
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_admin_actor),
    service: SystemUserService = Depends(get_system_user_service),
) -> ApiResponse[PaginatedData[SystemUserResponse]]:
    users, total = await service.list_system_users(params, actor, role_type, system_user_status)
    return paged(users, total, params, "System users retrieved successfully")


@router.get(
    "/{system_user_id}",
    response_model=ApiResponse[SystemUserResponse],
    summary="Get system user",
)
async def get_system_user(
    system_user_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: SystemUserService = Depends(get_system_user_service),
) -> ApiResponse[SystemUserResponse]:
    user = await service.get_system_user(system_user_id, actor)
    return ok(user, "System user retrieved successfully")


@router.put(
    "/{system_user_id}",
    response_model=ApiResponse[SystemUserResponse],
    summary="Update system user",
)
async def update_system_user(
    system_user_id: int,
    data: SystemUserUpdate,
    actor: Actor = Depends(get_admin_actor),
    service: SystemUserService = Depends(get_system_user_service),
) -> ApiResponse[SystemUserResponse]:
    user = await service.update_system_user(system_user_id, data, actor)
    return ok(user, "System user updated successfully")


@router.delete(
    "/{system_user_id}",
    response_model=ApiResponse[None],
    summary="Delete system user",
)
async def delete_system_user(
    system_user_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: SystemUserService = Depends(get_system_user_service),
) -> ApiResponse[None]:
    await service.delete_system_user(system_user_id, actor)
    return ok(None, "System user deleted successfully")
