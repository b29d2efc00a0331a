# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting service helpers: tenant scoping, audit stamping, listing."""

from src.domains.common.listing import ListParams, PaginationMeta, paginate
from src.domains.common.scoping import (
    Actor,
    can_access_all_tenants,
    create_audit_fields,
    delete_audit_fields,
    ensure_same_tenant,
    load_owned,
    resolve_tenant_id,
    stamp_delete,
    stamp_update,
    tenant_filters,
    update_audit_fields,
)

__all__ = [
    "Actor",
    "ListParams",
    "PaginationMeta",
    "can_access_all_tenants",
    "create_audit_fields",
    "delete_audit_fields",
    "ensure_same_tenant",
    "load_owned",
    "paginate",
    "resolve_tenant_id",
    "stamp_delete",
    "stamp_update",
    "tenant_filters",
    "update_audit_fields",
]
