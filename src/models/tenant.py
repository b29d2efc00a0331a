# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant and client schemas."""

from typing import Any

from pydantic import BaseModel, EmailStr, Field

from src.models.common import AuditedResponse, ORMModel, PartialUpdate
from src.models.enums import ClientStatus, ContactType, TenantStatus


class TenantPhoneCreate(BaseModel):
    dial_code: str = Field(..., min_length=1, max_length=8, examples=["+1"])
    phone_number: str = Field(..., min_length=4, max_length=20)
    iso_country_code: str | None = Field(default=None, min_length=2, max_length=2)
    is_primary: bool = False
    contact_type: ContactType = ContactType.PRIMARY


class TenantPhoneUpdate(PartialUpdate):
    not_nullable = frozenset({"dial_code", "phone_number", "is_primary", "contact_type"})

    dial_code: str | None = Field(default=None, min_length=1, max_length=8)
    phone_number: str | None = Field(default=None, min_length=4, max_length=20)
    iso_country_code: str | None = Field(default=None, min_length=2, max_length=2)
    is_primary: bool | None = None
    contact_type: ContactType | None = None


class TenantPhoneResponse(AuditedResponse):
    tenant_phone_number_id: int
    tenant_id: int
    dial_code: str
    phone_number: str
    iso_country_code: str | None = None
    is_primary: bool
    contact_type: ContactType


class TenantEmailCreate(BaseModel):
    email_address: EmailStr
    is_primary: bool = False
    contact_type: ContactType = ContactType.PRIMARY


class TenantEmailUpdate(PartialUpdate):
    not_nullable = frozenset({"email_address", "is_primary", "contact_type"})

    email_address: EmailStr | None = None
    is_primary: bool | None = None
    contact_type: ContactType | None = None


class TenantEmailResponse(AuditedResponse):
    tenant_email_address_id: int
    tenant_id: int
    email_address: str
    is_primary: bool
    contact_type: ContactType


class TenantCreate(BaseModel):
    """Request body for creating a tenant."""

    tenant_name: str = Field(..., min_length=2, max_length=255)
    logo_url_light: str | None = Field(default=None, max_length=500)
    logo_url_dark: str | None = Field(default=None, max_length=500)
    favicon_url: str | None = Field(default=None, max_length=500)
    theme: dict[str, Any] | None = None
    tenant_status: TenantStatus = TenantStatus.ACTIVE
    phone_numbers: list[TenantPhoneCreate] = Field(default_factory=list)
    email_addresses: list[TenantEmailCreate] = Field(default_factory=list)


class TenantUpdate(PartialUpdate):
    """Partial update of a tenant."""

    not_nullable = frozenset({"tenant_name", "tenant_status", "is_active"})

    tenant_name: str | None = Field(default=None, min_length=2, max_length=255)
    logo_url_light: str | None = Field(default=None, max_length=500)
    logo_url_dark: str | None = Field(default=None, max_length=500)
    favicon_url: str | None = Field(default=None, max_length=500)
    theme: dict[str, Any] | None = None
    tenant_status: TenantStatus | None = None
    is_active: bool | None = None


class TenantResponse(AuditedResponse):
    tenant_id: int
    tenant_name: str
    logo_url_light: str | None = None
    logo_url_dark: str | None = None
    favicon_url: str | None = None
    theme: dict[str, Any] | None = None
    tenant_status: TenantStatus


class TenantDetailResponse(TenantResponse):
    phone_numbers: list[TenantPhoneResponse] = Field(default_factory=list)
    email_addresses: list[TenantEmailResponse] = Field(default_factory=list)


class BrandingAsset(BaseModel):
    """Result of a branding upload."""

    tenant_id: int
    asset: str
    url: str


class ClientCreate(BaseModel):
    """Request body for creating a client."""

    full_name: str = Field(..., min_length=2, max_length=255)
    email_address: EmailStr
    dial_code: str | None = Field(default=None, max_length=8)
    phone_number: str | None = Field(default=None, max_length=20)
    address: str | None = None
    client_status: ClientStatus = ClientStatus.ACTIVE
    tenant_id: int | None = Field(
        default=None, description="Owning tenant; required for SUPER_ADMIN callers"
    )


class ClientUpdate(PartialUpdate):
    not_nullable = frozenset({"full_name", "email_address", "client_status", "is_active"})

    full_name: str | None = Field(default=None, min_length=2, max_length=255)
    email_address: EmailStr | None = None
    dial_code: str | None = Field(default=None, max_length=8)
    phone_number: str | None = Field(default=None, max_length=20)
    address: str | None = None
    client_status: ClientStatus | None = None
    is_active: bool | None = None


class ClientResponse(AuditedResponse):
    client_id: int
    tenant_id: int
    full_name: str
    email_address: str
    dial_code: str | None = None
    phone_number: str | None = None
    address: str | None = None
    client_status: ClientStatus


class ClientTenantCreate(BaseModel):
    tenant_id: int = Field(..., ge=1)


class ClientTenantResponse(ORMModel):
    client_tenant_id: int
    client_id: int
    tenant_id: int
    tenant_name: str | None = None
