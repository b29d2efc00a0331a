# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant, tenant contact and client models."""

from typing import Any

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import (
    Base,
    EntityMixin,
    TenantMixin,
    enum_column,
    unique_live,
)
from src.models.enums import ClientStatus, ContactType, TenantStatus


class Tenant(Base, EntityMixin):
    """Organization owning students, teachers and courses."""

    __tablename__ = "tenants"
    __table_args__ = (unique_live("uq_tenants_name_live", "tenant_name"),)

    tenant_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_name: Mapped[str] = mapped_column(String(255), nullable=False)
    logo_url_light: Mapped[str | None] = mapped_column(String(500))
    logo_url_dark: Mapped[str | None] = mapped_column(String(500))
    favicon_url: Mapped[str | None] = mapped_column(String(500))
    theme: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    tenant_status: Mapped[TenantStatus] = mapped_column(
        enum_column(TenantStatus), default=TenantStatus.ACTIVE, nullable=False
    )


class TenantPhoneNumber(Base, EntityMixin, TenantMixin):
    """Phone number attached to a tenant."""

    __tablename__ = "tenant_phone_numbers"

    tenant_phone_number_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    dial_code: Mapped[str] = mapped_column(String(8), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    iso_country_code: Mapped[str | None] = mapped_column(String(2))
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    contact_type: Mapped[ContactType] = mapped_column(
        enum_column(ContactType), default=ContactType.PRIMARY, nullable=False
    )


class TenantEmailAddress(Base, EntityMixin, TenantMixin):
    """Email address attached to a tenant."""

    __tablename__ = "tenant_email_addresses"
    __table_args__ = (
        unique_live("uq_tenant_email_addresses_live", "tenant_id", "email_address"),
    )

    tenant_email_address_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    email_address: Mapped[str] = mapped_column(String(255), nullable=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    contact_type: Mapped[ContactType] = mapped_column(
        enum_column(ContactType), default=ContactType.PRIMARY, nullable=False
    )


class Client(Base, EntityMixin, TenantMixin):
    """Paying customer of a tenant."""

    __tablename__ = "clients"
    __table_args__ = (unique_live("uq_clients_email_live", "tenant_id", "email_address"),)

    client_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email_address: Mapped[str] = mapped_column(String(255), nullable=False)
    dial_code: Mapped[str | None] = mapped_column(String(8))
    phone_number: Mapped[str | None] = mapped_column(String(20))
    address: Mapped[str | None] = mapped_column(Text)
    client_status: Mapped[ClientStatus] = mapped_column(
        enum_column(ClientStatus), default=ClientStatus.ACTIVE, nullable=False
    )


class ClientTenant(Base, EntityMixin):
    """Association granting a client access to an additional tenant."""

    __tablename__ = "client_tenants"
    __table_args__ = (unique_live("uq_client_tenants_live", "client_id", "tenant_id"),)

    client_tenant_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.client_id"), nullable=False, index=True
    )
    tenant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tenants.tenant_id"), nullable=False, index=True
    )
