# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Client management API endpoints.

A client is an organization or person a tenant serves. Besides its owning
tenant a client may be associated with further tenants.
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_admin_actor, get_client_service, get_list_params
from src.api.responses import ok, paged
from src.domains.client import ClientService
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.models.common import ApiResponse, PaginatedData
from src.models.enums import ClientStatus
from src.models.tenant import (
    ClientCreate,
    ClientResponse,
    ClientTenantCreate,
    ClientTenantResponse,
    ClientUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[ClientResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create client",
)
async def create_client(
    data: ClientCreate,
    actor: Actor = Depends(get_admin_actor),
    service: ClientService = Depends(get_client_service),
) -> ApiResponse[ClientResponse]:
    client = await service.create_client(data, actor)
    return ok(client, "Client created successfully", 201)


@router.get(
    "",
    response_model=ApiResponse[PaginatedData[ClientResponse]],
    summary="List clients",
)
async def list_clients(
    client_status: ClientStatus | None = Query(default=None),
    tenant_id: int | None = Query(default=None, description="SUPER_ADMIN only"),
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_admin_actor),
    service: ClientService = Depends(get_client_service),
) -> ApiResponse[PaginatedData[ClientResponse]]:
    clients, total = await service.list_clients(params, actor, client_status, tenant_id)
    return paged(clients, total, params, "Clients retrieved successfully")


@router.get("/{client_id}", response_model=ApiResponse[ClientResponse], summary="Get client")
async def get_client(
    client_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: ClientService = Depends(get_client_service),
) -> ApiResponse[ClientResponse]:
    return ok(await service.get_client(client_id, actor), "Client retrieved successfully")


@router.put("/{client_id}", response_model=ApiResponse[ClientResponse], summary="Update client")
async def update_client(
    client_id: int,
    data: ClientUpdate,
    actor: Actor = Depends(get_admin_actor),
    service: ClientService = Depends(get_client_service),
) -> ApiResponse[ClientResponse]:
    client = await service.update_client(client_id, data, actor)
    return ok(client, "Client updated successfully")


@router.delete("/{client_id}", response_model=ApiResponse[None], summary="Delete client")
async def delete_client(
    client_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: ClientService = Depends(get_client_service),
) -> ApiResponse[None]:
    await service.delete_client(client_id, actor)
    return ok(None, "Client deleted successfully")


# Tenant associations

@router.get(
    "/{client_id}/tenants",
    response_model=ApiResponse[list[ClientTenantResponse]],
    summary="List tenants associated with a client",
)
async def get_client_tenants(
    client_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: ClientService = Depends(get_client_service),
) -> ApiResponse[list[ClientTenantResponse]]:
    tenants = await service.get_client_tenants(client_id, actor)
    return ok(tenants, "Client tenants retrieved successfully")


@router.post(
    "/{client_id}/tenants",
    response_model=ApiResponse[ClientTenantResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Associate a client with a tenant",
)
async def create_client_tenant_association(
    client_id: int,
    data: ClientTenantCreate,
    actor: Actor = Depends(get_admin_actor),
    service: ClientService = Depends(get_client_service),
) -> ApiResponse[ClientTenantResponse]:
    association = await service.create_client_tenant_association(client_id, data.tenant_id, actor)
    return ok(association, "Client associated with tenant", 201)


@router.delete(
    "/{client_id}/tenants/{tenant_id}",
    response_model=ApiResponse[None],
    summary="Remove a client-tenant association",
)
async def remove_client_tenant_association(
    client_id: int,
    tenant_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: ClientService = Depends(get_client_service),
) -> ApiResponse[None]:
    await service.remove_client_tenant_association(client_id, tenant_id, actor)
    return ok(None, "Client-tenant association removed")
