# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Client service.

Clients are customers of a tenant. A client is owned by one tenant and may
additionally be associated with other tenants through ClientTenant rows.

Example:
    >>> service = ClientService(db)
    >>> client = await service.create_client(ClientCreate(...), actor)
    >>> await service.create_client_tenant_association(client.client_id, 9, actor)
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import ConflictError, NotFoundError, TenantNotFoundError
from src.domains.common.listing import ListParams, paginate
from src.domains.common.scoping import (
    Actor,
    commit_unique,
    create_audit_fields,
    ensure_same_tenant,
    load_owned,
    resolve_tenant_id,
    stamp_delete,
    stamp_update,
    tenant_filters,
)
from src.infrastructure.database.models import Client, ClientTenant, Tenant
from src.models.enums import ClientStatus
from src.models.tenant import (
    ClientCreate,
    ClientResponse,
    ClientTenantResponse,
    ClientUpdate,
)

logger = logging.getLogger(__name__)

CLIENT_SORT_FIELDS = {
    "clientId": Client.client_id,
    "fullName": Client.full_name,
    "emailAddress": Client.email_address,
    "clientStatus": Client.client_status,
    "createdAt": Client.created_at,
    "updatedAt": Client.updated_at,
}


class ClientNotFoundError(NotFoundError):
    default_code = "CLIENT_NOT_FOUND"
    default_message = "Client not found"


class DuplicateClientEmailError(ConflictError):
    default_code = "DUPLICATE_CLIENT_EMAIL"
    default_message = "A client with this email already exists in the tenant"


class DuplicateClientTenantError(ConflictError):
    default_code = "DUPLICATE_CLIENT_TENANT_ASSOCIATION"
    default_message = "Client is already associated with this tenant"


class ClientTenantNotFoundError(NotFoundError):
    default_code = "CLIENT_TENANT_ASSOCIATION_NOT_FOUND"
    default_message = "Client tenant association not found"


_CLIENT_CONFLICTS = {
    "uq_clients_email": DuplicateClientEmailError,
    "uq_client_tenants": DuplicateClientTenantError,
}


class ClientService:
    """Service for managing clients and their tenant associations.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def create_client(self, data: ClientCreate, actor: Actor) -> ClientResponse:
        """Create a client in the caller's (or, for SUPER_ADMIN, the given) tenant.

        Raises:
            MissingTenantError: SUPER_ADMIN without tenant_id.
            TenantNotFoundError: Unknown tenant.
            DuplicateClientEmailError: Email already used in the tenant.
        """
        tenant_id = resolve_tenant_id(actor, data.tenant_id)
        await self._ensure_tenant_exists(tenant_id)

        email = str(data.email_address).lower()
        if await self._email_taken(tenant_id, email):
            raise DuplicateClientEmailError()

        client = Client(
            tenant_id=tenant_id,
            full_name=data.full_name,
            email_address=email,
            dial_code=data.dial_code,
            phone_number=data.phone_number,
            address=data.address,
            client_status=data.client_status,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(client)
        await commit_unique(self._db, _CLIENT_CONFLICTS)
        await self._db.refresh(client)

        logger.info("Client created: %s in tenant %s", client.client_id, tenant_id)
        return ClientResponse.model_validate(client)

    async def get_client(self, client_id: int, actor: Actor) -> ClientResponse:
        client = await load_owned(
            self._db, Client, Client.client_id, client_id, actor, ClientNotFoundError
        )
        return ClientResponse.model_validate(client)

    async def list_clients(
        self,
        params: ListParams,
        actor: Actor,
        client_status: ClientStatus | None = None,
        tenant_id: int | None = None,
    ) -> tuple[list[ClientResponse], int]:
        """List clients visible to the caller.

        Args:
            params: Pagination, sort and search.
            actor: The caller.
            client_status: Optional status filter.
            tenant_id: SUPER_ADMIN-only filter on the owning tenant.
        """
        stmt = select(Client).where(*tenant_filters(Client, actor))
        if client_status is not None:
            stmt = stmt.where(Client.client_status == client_status)
        if tenant_id is not None and actor.is_super_admin:
            stmt = stmt.where(Client.tenant_id == tenant_id)

        clients, total = await paginate(
            self._db,
            stmt,
            params,
            sort_fields=CLIENT_SORT_FIELDS,
            default_sort=Client.created_at,
            search_columns=[Client.full_name, Client.email_address],
        )
        return [ClientResponse.model_validate(c) for c in clients], total

    async def update_client(
        self, client_id: int, data: ClientUpdate, actor: Actor
    ) -> ClientResponse:
        client = await load_owned(
            self._db, Client, Client.client_id, client_id, actor, ClientNotFoundError
        )
        changes = data.model_dump(exclude_unset=True)

        if "email_address" in changes and changes["email_address"] is not None:
            changes["email_address"] = str(changes["email_address"]).lower()
            if changes["email_address"] != client.email_address and await self._email_taken(
                client.tenant_id, changes["email_address"], exclude_id=client.client_id
            ):
                raise DuplicateClientEmailError()

        stamp_update(client, actor, changes)
        await commit_unique(self._db, _CLIENT_CONFLICTS)
        await self._db.refresh(client)

        logger.info("Client updated: %s fields=%s", client_id, sorted(changes))
        return ClientResponse.model_validate(client)

    async def delete_client(self, client_id: int, actor: Actor) -> None:
        """Soft-delete a client and its tenant associations."""
        client = await load_owned(
            self._db, Client, Client.client_id, client_id, actor, ClientNotFoundError
        )
        result = await self._db.execute(
            select(ClientTenant).where(
                ClientTenant.client_id == client_id, ClientTenant.is_deleted.is_(False)
            )
        )
        stamp_delete([client, *result.scalars().all()], actor)
        await self._db.commit()
        logger.info("Client deleted: %s by %s", client_id, actor.id)

    # Tenant associations

    async def create_client_tenant_association(
        self, client_id: int, tenant_id: int, actor: Actor
    ) -> ClientTenantResponse:
        """Associate a client with an additional tenant.

        Raises:
            DuplicateClientTenantError: If the association already exists.
        """
        client = await load_owned(
            self._db, Client, Client.client_id, client_id, actor, ClientNotFoundError
        )
        ensure_same_tenant(actor, tenant_id)
        tenant = await self._ensure_tenant_exists(tenant_id)

        existing = await self._get_association(client.client_id, tenant_id)
        if existing is not None:
            raise DuplicateClientTenantError()

        link = ClientTenant(
            client_id=client.client_id,
            tenant_id=tenant_id,
            is_active=True,
            is_deleted=False,
            **create_audit_fields(actor),
        )
        self._db.add(link)
        await commit_unique(self._db, _CLIENT_CONFLICTS)
        await self._db.refresh(link)

        logger.info("Client %s associated with tenant %s", client_id, tenant_id)
        return ClientTenantResponse(
            client_tenant_id=link.client_tenant_id,
            client_id=link.client_id,
            tenant_id=link.tenant_id,
            tenant_name=tenant.tenant_name,
        )

    async def get_client_tenants(self, client_id: int, actor: Actor) -> list[ClientTenantResponse]:
        """List the tenants a client is associated with."""
        await load_owned(self._db, Client, Client.client_id, client_id, actor, ClientNotFoundError)

        result = await self._db.execute(
            select(ClientTenant, Tenant.tenant_name)
            .join(Tenant, Tenant.tenant_id == ClientTenant.tenant_id)
            .where(
                ClientTenant.client_id == client_id,
                ClientTenant.is_deleted.is_(False),
                Tenant.is_deleted.is_(False),
            )
            .order_by(ClientTenant.created_at)
        )
        return [
            ClientTenantResponse(
                client_tenant_id=link.client_tenant_id,
                client_id=link.client_id,
                tenant_id=link.tenant_id,
                tenant_name=tenant_name,
            )
            for link, tenant_name in result.all()
        ]

    async def remove_client_tenant_association(
        self, client_id: int, tenant_id: int, actor: Actor
    ) -> None:
        await load_owned(self._db, Client, Client.client_id, client_id, actor, ClientNotFoundError)
        ensure_same_tenant(actor, tenant_id)

        link = await self._get_association(client_id, tenant_id)
        if link is None:
            raise ClientTenantNotFoundError()

        stamp_delete([link], actor)
        await self._db.commit()
        logger.info("Client %s removed from tenant %s", client_id, tenant_id)

    # Helpers

    async def _ensure_tenant_exists(self, tenant_id: int) -> Tenant:
        result = await self._db.execute(
            select(Tenant).where(Tenant.tenant_id == tenant_id, Tenant.is_deleted.is_(False))
        )
        tenant = result.scalar_one_or_none()
        if tenant is None:
            raise TenantNotFoundError()
        return tenant

    async def _email_taken(
        self, tenant_id: int, email: str, exclude_id: int | None = None
    ) -> bool:
        stmt = select(func.count()).select_from(Client).where(
            Client.tenant_id == tenant_id,
            func.lower(Client.email_address) == email,
            Client.is_deleted.is_(False),
        )
        if exclude_id is not None:
            stmt = stmt.where(Client.client_id != exclude_id)
        return ((await self._db.execute(stmt)).scalar() or 0) > 0

    async def _get_association(self, client_id: int, tenant_id: int) -> ClientTenant | None:
        result = await self._db.execute(
            select(ClientTenant).where(
                ClientTenant.client_id == client_id,
                ClientTenant.tenant_id == tenant_id,
                ClientTenant.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()
