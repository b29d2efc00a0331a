# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant service.

This module provides the TenantService that handles:
- Tenant CRUD with optional contact rows created in the same transaction
- Tenant phone number and email address management
- Branding uploads (light logo, dark logo, favicon)
- Bulk activation, deactivation and deletion

Only a SUPER_ADMIN manages tenants; a TENANT_ADMIN may read its own.

Example:
    >>> service = TenantService(db)
    >>> tenant = await service.create_tenant(TenantCreate(tenant_name="Acme"), actor)
    >>> tenants, total = await service.list_tenants(ListParams(), actor)
"""

import logging
from enum import Enum

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ConflictError, NotFoundError, TenantNotFoundError
from src.domains.common.listing import ListParams, paginate
from src.domains.common.scoping import (
    Actor,
    commit_unique,
    conflict_for,
    create_audit_fields,
    ensure_same_tenant,
    stamp_delete,
    stamp_update,
)
from src.infrastructure.database.models import (
    Client,
    ClientTenant,
    Tenant,
    TenantEmailAddress,
    TenantPhoneNumber,
)
from src.infrastructure.storage import BrandingStorage
from src.models.common import BulkResult
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

TENANT_SORT_FIELDS = {
    "tenantId": Tenant.tenant_id,
    "tenantName": Tenant.tenant_name,
    "tenantStatus": Tenant.tenant_status,
    "createdAt": Tenant.created_at,
    "updatedAt": Tenant.updated_at,
}


class DuplicateTenantNameError(ConflictError):
    default_code = "DUPLICATE_TENANT_NAME"
    default_message = "Tenant name already exists"


class DuplicateTenantEmailError(ConflictError):
    default_code = "DUPLICATE_TENANT_EMAIL"
    default_message = "Email address already registered for this tenant"


class TenantPhoneNotFoundError(NotFoundError):
    default_code = "TENANT_PHONE_NOT_FOUND"
    default_message = "Tenant phone number not found"


class TenantEmailNotFoundError(NotFoundError):
    default_code = "TENANT_EMAIL_NOT_FOUND"
    default_message = "Tenant email address not found"


_TENANT_CONFLICTS = {
    "uq_tenants_name": DuplicateTenantNameError,
    "uq_tenant_email_addresses": DuplicateTenantEmailError,
}


class BrandingKind(str, Enum):
    """Branding asset slots and the tenant column each one fills."""

    LOGO_LIGHT = "logo_url_light"
    LOGO_DARK = "logo_url_dark"
    FAVICON = "favicon_url"

    @property
    def file_prefix(self) -> str:
        return self.value.replace("_url", "").replace("_", "-")


class TenantService:
    """Service for managing tenants and their contact details.

    Attributes:
        _db: Async database session.
        _storage: Branding file storage, required only for uploads.
    """

    def __init__(self, db: AsyncSession, storage: BrandingStorage | None = None) -> None:
        self._db = db
        self._storage = storage

    # Tenants

    async def create_tenant(self, data: TenantCreate, actor: Actor) -> TenantDetailResponse:
        """Create a tenant together with its phone numbers and email addresses.

        Raises:
            DuplicateTenantNameError: If another live tenant has the name.
        """
        if await self._name_taken(data.tenant_name):
            raise DuplicateTenantNameError()

        audit = create_audit_fields(actor)
        tenant = Tenant(
            tenant_name=data.tenant_name,
            logo_url_light=data.logo_url_light,
            logo_url_dark=data.logo_url_dark,
            favicon_url=data.favicon_url,
            theme=data.theme,
            tenant_status=data.tenant_status,
            is_active=True,
            is_deleted=False,
            **audit,
        )

        try:
            self._db.add(tenant)
            await self._db.flush()

            phones = [self._new_phone(tenant.tenant_id, p, actor) for p in data.phone_numbers]
            emails = [self._new_email(tenant.tenant_id, e, actor) for e in data.email_addresses]
            self._db.add_all([*phones, *emails])

            await self._db.commit()
        except IntegrityError as e:
            await self._db.rollback()
            conflict = conflict_for(e, _TENANT_CONFLICTS)
            if conflict is None:
                raise
            raise conflict from e
        except Exception:
            await self._db.rollback()
            raise

        await self._db.refresh(tenant)
        logger.info("Tenant created: %s (%s)", tenant.tenant_id, tenant.tenant_name)

        return self._to_detail(tenant, phones, emails)

    async def get_tenant(self, tenant_id: int, actor: Actor) -> TenantDetailResponse:
        """Get a tenant with its contact rows."""
        tenant = await self._get_tenant(tenant_id, actor)
        phones = await self._phones_of(tenant.tenant_id)
        emails = await self._emails_of(tenant.tenant_id)
        return self._to_detail(tenant, phones, emails)

    async def list_tenants(
        self,
        params: ListParams,
        actor: Actor,
        tenant_status: TenantStatus | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[TenantResponse], int]:
        """List tenants visible to the caller.

        A TENANT_ADMIN only ever sees its own tenant.
        """
        stmt = select(Tenant).where(Tenant.is_deleted.is_(False))
        if not actor.is_super_admin:
            stmt = stmt.where(Tenant.tenant_id == actor.tenant_id)
        if tenant_status is not None:
            stmt = stmt.where(Tenant.tenant_status == tenant_status)
        if is_active is not None:
            stmt = stmt.where(Tenant.is_active == is_active)

        tenants, total = await paginate(
            self._db,
            stmt,
            params,
            sort_fields=TENANT_SORT_FIELDS,
            default_sort=Tenant.created_at,
            search_columns=[Tenant.tenant_name],
        )
        return [TenantResponse.model_validate(t) for t in tenants], total

    async def update_tenant(
        self, tenant_id: int, data: TenantUpdate, actor: Actor
    ) -> TenantResponse:
        """Partially update a tenant.

        Raises:
            DuplicateTenantNameError: If the new name is taken.
        """
        tenant = await self._get_tenant(tenant_id, actor)
        changes = data.model_dump(exclude_unset=True)

        new_name = changes.get("tenant_name")
        if new_name and new_name != tenant.tenant_name:
            if await self._name_taken(new_name, exclude_id=tenant.tenant_id):
                raise DuplicateTenantNameError()

        stamp_update(tenant, actor, changes)
        await commit_unique(self._db, _TENANT_CONFLICTS)
        await self._db.refresh(tenant)

        logger.info("Tenant updated: %s fields=%s", tenant.tenant_id, sorted(changes))
        return TenantResponse.model_validate(tenant)

    async def delete_tenant(self, tenant_id: int, actor: Actor) -> None:
        """Soft-delete a tenant."""
        tenant = await self._get_tenant(tenant_id, actor)
        stamp_delete([tenant], actor)
        await self._db.commit()
        logger.info("Tenant deleted: %s by %s", tenant_id, actor.id)

    async def get_tenant_clients(
        self, tenant_id: int, params: ListParams, actor: Actor
    ) -> tuple[list[ClientResponse], int]:
        """List clients owned by a tenant or associated with it."""
        await self._get_tenant(tenant_id, actor)

        associated = select(ClientTenant.client_id).where(
            ClientTenant.tenant_id == tenant_id,
            ClientTenant.is_deleted.is_(False),
        )
        stmt = select(Client).where(
            Client.is_deleted.is_(False),
            or_(Client.tenant_id == tenant_id, Client.client_id.in_(associated)),
        )
        clients, total = await paginate(
            self._db,
            stmt,
            params,
            sort_fields={"fullName": Client.full_name, "createdAt": Client.created_at},
            default_sort=Client.created_at,
            search_columns=[Client.full_name, Client.email_address],
        )
        return [ClientResponse.model_validate(c) for c in clients], total

    # Phone numbers

    async def list_phone_numbers(self, tenant_id: int, actor: Actor) -> list[TenantPhoneResponse]:
        await self._get_tenant(tenant_id, actor)
        return [TenantPhoneResponse.model_validate(p) for p in await self._phones_of(tenant_id)]

    async def add_phone_number(
        self, tenant_id: int, data: TenantPhoneCreate, actor: Actor
    ) -> TenantPhoneResponse:
        await self._get_tenant(tenant_id, actor)
        if data.is_primary:
            await self._clear_primary(TenantPhoneNumber, tenant_id, actor)

        phone = self._new_phone(tenant_id, data, actor)
        self._db.add(phone)
        await self._db.commit()
        await self._db.refresh(phone)

        logger.info("Tenant phone added: tenant=%s phone=%s", tenant_id, phone.tenant_phone_number_id)
        return TenantPhoneResponse.model_validate(phone)

    async def update_phone_number(
        self, tenant_id: int, phone_id: int, data: TenantPhoneUpdate, actor: Actor
    ) -> TenantPhoneResponse:
        await self._get_tenant(tenant_id, actor)
        phone = await self._get_contact(
            TenantPhoneNumber,
            TenantPhoneNumber.tenant_phone_number_id,
            phone_id,
            tenant_id,
            TenantPhoneNotFoundError,
        )
        changes = data.model_dump(exclude_unset=True)
        if changes.get("is_primary"):
            await self._clear_primary(TenantPhoneNumber, tenant_id, actor)

        stamp_update(phone, actor, changes)
        await self._db.commit()
        await self._db.refresh(phone)
        return TenantPhoneResponse.model_validate(phone)

    async def delete_phone_number(self, tenant_id: int, phone_id: int, actor: Actor) -> None:
        await self._get_tenant(tenant_id, actor)
        phone = await self._get_contact(
            TenantPhoneNumber,
            TenantPhoneNumber.tenant_phone_number_id,
            phone_id,
            tenant_id,
            TenantPhoneNotFoundError,
        )
        stamp_delete([phone], actor)
        await self._db.commit()

    # Email addresses

    async def list_email_addresses(
        self, tenant_id: int, actor: Actor
    ) -> list[TenantEmailResponse]:
        await self._get_tenant(tenant_id, actor)
        return [TenantEmailResponse.model_validate(e) for e in await self._emails_of(tenant_id)]

    async def add_email_address(
        self, tenant_id: int, data: TenantEmailCreate, actor: Actor
    ) -> TenantEmailResponse:
        """Attach an email address to a tenant.

        Raises:
            DuplicateTenantEmailError: If the tenant already has the address.
        """
        await self._get_tenant(tenant_id, actor)
        if await self._email_taken(tenant_id, data.email_address):
            raise DuplicateTenantEmailError()
        if data.is_primary:
            await self._clear_primary(TenantEmailAddress, tenant_id, actor)

        email = self._new_email(tenant_id, data, actor)
        self._db.add(email)
        await commit_unique(self._db, _TENANT_CONFLICTS)
        await self._db.refresh(email)
        return TenantEmailResponse.model_validate(email)

    async def update_email_address(
        self, tenant_id: int, email_id: int, data: TenantEmailUpdate, actor: Actor
    ) -> TenantEmailResponse:
        await self._get_tenant(tenant_id, actor)
        email = await self._get_contact(
            TenantEmailAddress,
            TenantEmailAddress.tenant_email_address_id,
            email_id,
            tenant_id,
            TenantEmailNotFoundError,
        )
        changes = data.model_dump(exclude_unset=True)

        new_address = changes.get("email_address")
        if new_address and new_address != email.email_address:
            if await self._email_taken(tenant_id, new_address, exclude_id=email_id):
                raise DuplicateTenantEmailError()
        if changes.get("is_primary"):
            await self._clear_primary(TenantEmailAddress, tenant_id, actor)

        stamp_update(email, actor, changes)
        await commit_unique(self._db, _TENANT_CONFLICTS)
        await self._db.refresh(email)
        return TenantEmailResponse.model_validate(email)

    async def delete_email_address(self, tenant_id: int, email_id: int, actor: Actor) -> None:
        await self._get_tenant(tenant_id, actor)
        email = await self._get_contact(
            TenantEmailAddress,
            TenantEmailAddress.tenant_email_address_id,
            email_id,
            tenant_id,
            TenantEmailNotFoundError,
        )
        stamp_delete([email], actor)
        await self._db.commit()

    # Branding

    async def upload_branding(
        self,
        tenant_id: int,
        kind: BrandingKind,
        filename: str | None,
        content_type: str | None,
        data: bytes,
        actor: Actor,
    ) -> BrandingAsset:
        """Store a branding image and point the tenant at it.

        Raises:
            InvalidUploadError: If the file is empty, too large or not an image.
        """
        if self._storage is None:
            raise RuntimeError("TenantService was created without branding storage")

        tenant = await self._get_tenant(tenant_id, actor)
        url = await self._storage.save(
            tenant.tenant_id, kind.file_prefix, filename, content_type, data
        )

        stamp_update(tenant, actor, {kind.value: url})
        await self._db.commit()

        logger.info("Tenant %s branding updated: %s", tenant_id, kind.value)
        return BrandingAsset(tenant_id=tenant.tenant_id, asset=kind.value, url=url)

    # Bulk operations

    async def bulk_set_active(self, tenant_ids: list[int], active: bool, actor: Actor) -> BulkResult:
        """Activate or deactivate several tenants at once."""
        tenants = await self._live_tenants(tenant_ids)
        status = TenantStatus.ACTIVE if active else TenantStatus.SUSPENDED
        for tenant in tenants:
            stamp_update(tenant, actor, {"is_active": active, "tenant_status": status})
        await self._db.commit()

        ids = [t.tenant_id for t in tenants]
        logger.info("Bulk %s tenants: %s", "activated" if active else "deactivated", ids)
        return BulkResult(requested=len(set(tenant_ids)), affected=len(ids), ids=ids)

    async def bulk_delete(self, tenant_ids: list[int], actor: Actor) -> BulkResult:
        """Soft-delete several tenants at once."""
        tenants = await self._live_tenants(tenant_ids)
        stamp_delete(tenants, actor)
        await self._db.commit()

        ids = [t.tenant_id for t in tenants]
        logger.info("Bulk deleted tenants: %s", ids)
        return BulkResult(requested=len(set(tenant_ids)), affected=len(ids), ids=ids)

    # Helpers

    async def _get_tenant(self, tenant_id: int, actor: Actor) -> Tenant:
        result = await self._db.execute(
            select(Tenant).where(Tenant.tenant_id == tenant_id, Tenant.is_deleted.is_(False))
        )
        tenant = result.scalar_one_or_none()
        if tenant is None:
            raise TenantNotFoundError()
        ensure_same_tenant(actor, tenant.tenant_id)
        return tenant

    async def _live_tenants(self, tenant_ids: list[int]) -> list[Tenant]:
        result = await self._db.execute(
            select(Tenant).where(
                Tenant.tenant_id.in_(set(tenant_ids)), Tenant.is_deleted.is_(False)
            )
        )
        return list(result.scalars().all())

    async def _name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        stmt = select(func.count()).select_from(Tenant).where(
            func.lower(Tenant.tenant_name) == name.lower(),
            Tenant.is_deleted.is_(False),
        )
        if exclude_id is not None:
            stmt = stmt.where(Tenant.tenant_id != exclude_id)
        return ((await self._db.execute(stmt)).scalar() or 0) > 0

    async def _email_taken(
        self, tenant_id: int, address: str, exclude_id: int | None = None
    ) -> bool:
        stmt = select(func.count()).select_from(TenantEmailAddress).where(
            TenantEmailAddress.tenant_id == tenant_id,
            func.lower(TenantEmailAddress.email_address) == address.lower(),
            TenantEmailAddress.is_deleted.is_(False),
        )
        if exclude_id is not None:
            stmt = stmt.where(TenantEmailAddress.tenant_email_address_id != exclude_id)
        return ((await self._db.execute(stmt)).scalar() or 0) > 0

    async def _phones_of(self, tenant_id: int) -> list[TenantPhoneNumber]:
        result = await self._db.execute(
            select(TenantPhoneNumber)
            .where(
                TenantPhoneNumber.tenant_id == tenant_id,
                TenantPhoneNumber.is_deleted.is_(False),
            )
            .order_by(TenantPhoneNumber.is_primary.desc(), TenantPhoneNumber.created_at)
        )
        return list(result.scalars().all())

    async def _emails_of(self, tenant_id: int) -> list[TenantEmailAddress]:
        result = await self._db.execute(
            select(TenantEmailAddress)
            .where(
                TenantEmailAddress.tenant_id == tenant_id,
                TenantEmailAddress.is_deleted.is_(False),
            )
            .order_by(TenantEmailAddress.is_primary.desc(), TenantEmailAddress.created_at)
        )
        return list(result.scalars().all())

    async def _get_contact(self, model, id_column, contact_id, tenant_id, not_found):
        result = await self._db.execute(
            select(model).where(
                id_column == contact_id,
                model.tenant_id == tenant_id,
                model.is_deleted.is_(False),
            )
        )
        contact = result.scalar_one_or_none()
        if contact is None:
            raise not_found()
        return contact

    async def _clear_primary(self, model, tenant_id: int, actor: Actor) -> None:
        result = await self._db.execute(
            select(model).where(
                model.tenant_id == tenant_id,
                model.is_primary.is_(True),
                model.is_deleted.is_(False),
            )
        )
        for contact in result.scalars().all():
            stamp_update(contact, actor, {"is_primary": False})

    def _new_phone(
        self, tenant_id: int, data: TenantPhoneCreate, actor: Actor
    ) -> TenantPhoneNumber:
        return TenantPhoneNumber(
            tenant_id=tenant_id,
            **data.model_dump(),
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )

    def _new_email(
        self, tenant_id: int, data: TenantEmailCreate, actor: Actor
    ) -> TenantEmailAddress:
        return TenantEmailAddress(
            tenant_id=tenant_id,
            email_address=str(data.email_address).lower(),
            is_primary=data.is_primary,
            contact_type=data.contact_type,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )

    def _to_detail(
        self,
        tenant: Tenant,
        phones: list[TenantPhoneNumber],
        emails: list[TenantEmailAddress],
    ) -> TenantDetailResponse:
        base = TenantResponse.model_validate(tenant)
        return TenantDetailResponse(
            **base.model_dump(),
            phone_numbers=[TenantPhoneResponse.model_validate(p) for p in phones],
            email_addresses=[TenantEmailResponse.model_validate(e) for e in emails],
        )
