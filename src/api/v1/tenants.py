# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant management API endpoints.

This module provides endpoints for tenant management:
- POST / - Create a tenant with phone numbers and email addresses
- GET / - List tenants
- GET /{tenant_id} - Get tenant details
- PUT /{tenant_id} - Update tenant
- DELETE /{tenant_id} - Delete tenant (soft delete)
- GET /{tenant_id}/clients - Clients owned by or associated with the tenant
- /{tenant_id}/phone-numbers and /{tenant_id}/email-addresses - Contact CRUD
- POST /{tenant_id}/logo-light, /logo-dark, /favicon - Branding uploads
- POST /bulk/activate, /bulk/deactivate, /bulk/delete - Bulk status changes

Only a SUPER_ADMIN manages tenants; a TENANT_ADMIN may read its own.
"""

import logging

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status

from src.api.dependencies import (
    get_admin_actor,
    get_list_params,
    get_super_admin_actor,
    get_tenant_service,
)
from src.api.middleware.rate_limit import RATE_LIMIT_UPLOAD, limiter
from src.api.responses import ok, paged
from src.domains.common.listing import ListParams
from src.domains.common.scoping import Actor
from src.domains.tenant import BrandingKind, TenantService
from src.models.common import ApiResponse, BulkIdsRequest, BulkResult, PaginatedData
from src.models.enums import TenantStatus
from src.models.tenant import (
    BrandingAsset,
    ClientResponse,
    TenantCreate,
    TenantDetailResponse,
    TenantEmailCreate,
    TenantEmailResponse,
    TenantEmailUpdate,
    TenantPhoneCreate,
    TenantPhoneResponse,
    TenantPhoneUpdate,
    TenantResponse,
    TenantUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# Bulk operations are declared before /{tenant_id} routes

@router.post(
    "/bulk/activate",
    response_model=ApiResponse[BulkResult],
    summary="Activate tenants",
)
async def bulk_activate_tenants(
    data: BulkIdsRequest,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[BulkResult]:
    result = await service.bulk_set_active(data.ids, True, actor)
    return ok(result, f"{result.affected} tenant(s) activated")


@router.post(
    "/bulk/deactivate",
    response_model=ApiResponse[BulkResult],
    summary="Deactivate tenants",
)
async def bulk_deactivate_tenants(
    data: BulkIdsRequest,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[BulkResult]:
    result = await service.bulk_set_active(data.ids, False, actor)
    return ok(result, f"{result.affected} tenant(s) deactivated")


@router.post(
    "/bulk/delete",
    response_model=ApiResponse[BulkResult],
    summary="Delete tenants",
)
async def bulk_delete_tenants(
    data: BulkIdsRequest,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[BulkResult]:
    result = await service.bulk_delete(data.ids, actor)
    return ok(result, f"{result.affected} tenant(s) deleted")


# Tenants

@router.post(
    "",
    response_model=ApiResponse[TenantDetailResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create tenant",
    description="Create a tenant together with optional phone numbers and email addresses.",
)
async def create_tenant(
    data: TenantCreate,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[TenantDetailResponse]:
    tenant = await service.create_tenant(data, actor)
    return ok(tenant, "Tenant created successfully", 201)


@router.get(
    "",
    response_model=ApiResponse[PaginatedData[TenantResponse]],
    summary="List tenants",
)
async def list_tenants(
    tenant_status: TenantStatus | None = Query(default=None, description="Filter by status"),
    is_active: bool | None = Query(default=None, description="Filter by active flag"),
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[PaginatedData[TenantResponse]]:
    tenants, total = await service.list_tenants(params, actor, tenant_status, is_active)
    return paged(tenants, total, params, "Tenants retrieved successfully")


@router.get(
    "/{tenant_id}",
    response_model=ApiResponse[TenantDetailResponse],
    summary="Get tenant",
)
async def get_tenant(
    tenant_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[TenantDetailResponse]:
    return ok(await service.get_tenant(tenant_id, actor), "Tenant retrieved successfully")


@router.put(
    "/{tenant_id}",
    response_model=ApiResponse[TenantResponse],
    summary="Update tenant",
)
async def update_tenant(
    tenant_id: int,
    data: TenantUpdate,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[TenantResponse]:
    tenant = await service.update_tenant(tenant_id, data, actor)
    return ok(tenant, "Tenant updated successfully")


@router.delete(
    "/{tenant_id}",
    response_model=ApiResponse[None],
    summary="Delete tenant",
)
async def delete_tenant(
    tenant_id: int,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[None]:
    await service.delete_tenant(tenant_id, actor)
    return ok(None, "Tenant deleted successfully")


@router.get(
    "/{tenant_id}/clients",
    response_model=ApiResponse[PaginatedData[ClientResponse]],
    summary="List tenant clients",
)
async def get_tenant_clients(
    tenant_id: int,
    params: ListParams = Depends(get_list_params),
    actor: Actor = Depends(get_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[PaginatedData[ClientResponse]]:
    clients, total = await service.get_tenant_clients(tenant_id, params, actor)
    return paged(clients, total, params, "Clients retrieved successfully")


# Phone numbers

@router.get(
    "/{tenant_id}/phone-numbers",
    response_model=ApiResponse[list[TenantPhoneResponse]],
    summary="List tenant phone numbers",
)
async def list_phone_numbers(
    tenant_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[list[TenantPhoneResponse]]:
    phones = await service.list_phone_numbers(tenant_id, actor)
    return ok(phones, "Phone numbers retrieved successfully")


@router.post(
    "/{tenant_id}/phone-numbers",
    response_model=ApiResponse[TenantPhoneResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add tenant phone number",
)
async def add_phone_number(
    tenant_id: int,
    data: TenantPhoneCreate,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[TenantPhoneResponse]:
    phone = await service.add_phone_number(tenant_id, data, actor)
    return ok(phone, "Phone number added successfully", 201)


@router.put(
    "/{tenant_id}/phone-numbers/{phone_id}",
    response_model=ApiResponse[TenantPhoneResponse],
    summary="Update tenant phone number",
)
async def update_phone_number(
    tenant_id: int,
    phone_id: int,
    data: TenantPhoneUpdate,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[TenantPhoneResponse]:
    phone = await service.update_phone_number(tenant_id, phone_id, data, actor)
    return ok(phone, "Phone number updated successfully")


@router.delete(
    "/{tenant_id}/phone-numbers/{phone_id}",
    response_model=ApiResponse[None],
    summary="Delete tenant phone number",
)
async def delete_phone_number(
    tenant_id: int,
    phone_id: int,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[None]:
    await service.delete_phone_number(tenant_id, phone_id, actor)
    return ok(None, "Phone number deleted successfully")


# Email addresses

@router.get(
    "/{tenant_id}/email-addresses",
    response_model=ApiResponse[list[TenantEmailResponse]],
    summary="List tenant email addresses",
)
async def list_email_addresses(
    tenant_id: int,
    actor: Actor = Depends(get_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[list[TenantEmailResponse]]:
    emails = await service.list_email_addresses(tenant_id, actor)
    return ok(emails, "Email addresses retrieved successfully")


@router.post(
    "/{tenant_id}/email-addresses",
    response_model=ApiResponse[TenantEmailResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add tenant email address",
)
async def add_email_address(
    tenant_id: int,
    data: TenantEmailCreate,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[TenantEmailResponse]:
    email = await service.add_email_address(tenant_id, data, actor)
    return ok(email, "Email address added successfully", 201)


@router.put(
    "/{tenant_id}/email-addresses/{email_id}",
    response_model=ApiResponse[TenantEmailResponse],
    summary="Update tenant email address",
)
async def update_email_address(
    tenant_id: int,
    email_id: int,
    data: TenantEmailUpdate,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[TenantEmailResponse]:
    email = await service.update_email_address(tenant_id, email_id, data, actor)
    return ok(email, "Email address updated successfully")


@router.delete(
    "/{tenant_id}/email-addresses/{email_id}",
    response_model=ApiResponse[None],
    summary="Delete tenant email address",
)
async def delete_email_address(
    tenant_id: int,
    email_id: int,
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[None]:
    await service.delete_email_address(tenant_id, email_id, actor)
    return ok(None, "Email address deleted successfully")


# Branding

async def _upload(
    service: TenantService,
    tenant_id: int,
    kind: BrandingKind,
    file: UploadFile,
    actor: Actor,
) -> BrandingAsset:
    data = await file.read()
    return await service.upload_branding(
        tenant_id, kind, file.filename, file.content_type, data, actor
    )


@router.post(
    "/{tenant_id}/logo-light",
    response_model=ApiResponse[BrandingAsset],
    summary="Upload light logo",
)
@limiter.limit(RATE_LIMIT_UPLOAD)
async def upload_logo_light(
    request: Request,
    tenant_id: int,
    file: UploadFile = File(..., description="PNG, JPEG, SVG or WebP image"),
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[BrandingAsset]:
    asset = await _upload(service, tenant_id, BrandingKind.LOGO_LIGHT, file, actor)
    return ok(asset, "Logo uploaded successfully")


@router.post(
    "/{tenant_id}/logo-dark",
    response_model=ApiResponse[BrandingAsset],
    summary="Upload dark logo",
)
@limiter.limit(RATE_LIMIT_UPLOAD)
async def upload_logo_dark(
    request: Request,
    tenant_id: int,
    file: UploadFile = File(..., description="PNG, JPEG, SVG or WebP image"),
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[BrandingAsset]:
    asset = await _upload(service, tenant_id, BrandingKind.LOGO_DARK, file, actor)
    return ok(asset, "Logo uploaded successfully")


@router.post(
    "/{tenant_id}/favicon",
    response_model=ApiResponse[BrandingAsset],
    summary="Upload favicon",
)
@limiter.limit(RATE_LIMIT_UPLOAD)
async def upload_favicon(
    request: Request,
    tenant_id: int,
    file: UploadFile = File(..., description="ICO, PNG or SVG image"),
    actor: Actor = Depends(get_super_admin_actor),
    service: TenantService = Depends(get_tenant_service),
) -> ApiResponse[BrandingAsset]:
    asset = await _upload(service, tenant_id, BrandingKind.FAVICON, file, actor)
    return ok(asset, "Favicon uploaded successfully")
