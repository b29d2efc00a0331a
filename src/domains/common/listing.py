# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pagination, sorting and search for list queries.

Every list endpoint accepts ``page``, ``limit``, ``sortBy``, ``order`` and
``search``. Services describe which columns may be sorted on and which are
searched, and :func:`paginate` runs the count query and the page query.

Example:
    >>> stmt = select(Program).where(*tenant_filters(Program, actor))
    >>> rows, total = await paginate(
    ...     db, stmt, params,
    ...     sort_fields={"programName": Program.program_name},
    ...     default_sort=Program.created_at,
    ...     search_columns=[Program.program_name],
    ... )
"""

import math
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import ColumnElement, Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.enums import SortOrder

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class ListParams(BaseModel):
    """Pagination, sort and search parameters of a list request."""

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    sort_by: str | None = Field(default=None, alias="sortBy")
    order: SortOrder = SortOrder.DESC
    search: str | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def search_term(self) -> str | None:
        if self.search is None:
            return None
        term = self.search.strip()
        return term or None


class PaginationMeta(BaseModel):
    """Pagination block returned alongside a page of items."""

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_next: bool = Field(alias="hasNext")
    has_prev: bool = Field(alias="hasPrev")

    @classmethod
    def build(cls, params: ListParams, total: int) -> "PaginationMeta":
        total_pages = math.ceil(total / params.limit) if total else 0
        return cls(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=total_pages,
            has_next=params.page < total_pages,
            has_prev=params.page > 1,
        )


def search_clause(term: str, columns: Sequence[Any]) -> ColumnElement[bool]:
    """Case-insensitive substring match over any of the given columns."""
    pattern = f"%{term}%"
    return or_(*(column.ilike(pattern) for column in columns))


def order_clause(
    params: ListParams,
    sort_fields: dict[str, Any],
    default_sort: Any,
) -> Any:
    """Resolve ``sortBy`` / ``order`` to an ORDER BY expression.

    Unknown sort keys fall back to ``default_sort``.
    """
    column = sort_fields.get(params.sort_by or "", default_sort)
    return column.asc() if params.order == SortOrder.ASC else column.desc()


async def paginate(
    db: AsyncSession,
    stmt: Select,
    params: ListParams,
    sort_fields: dict[str, Any],
    default_sort: Any,
    search_columns: Sequence[Any] = (),
) -> tuple[list[Any], int]:
    """Run a count query and a page query for a scoped SELECT.

    Args:
        db: Database session.
        stmt: SELECT already carrying the tenant and caller filters.
        params: Pagination, sort and search parameters.
        sort_fields: Map of public sort keys to columns.
        default_sort: Column sorted on when sortBy is missing or unknown.
        search_columns: Columns the search term is matched against.

    Returns:
        Tuple of (rows on the requested page, total matching rows). Rows are
        ORM entities for single-entity selects, Row tuples otherwise.
    """
    term = params.search_term
    if term and search_columns:
        stmt = stmt.where(search_clause(term, search_columns))

    count_stmt = select_count(stmt)
    total = (await db.execute(count_stmt)).scalar() or 0

    page_stmt = (
        stmt.order_by(order_clause(params, sort_fields, default_sort))
        .limit(params.limit)
        .offset(params.offset)
    )
    result = await db.execute(page_stmt)
    if len(page_stmt.column_descriptions) == 1:
        return list(result.scalars().all()), total
    return list(result.all()), total


def select_count(stmt: Select) -> Select:
    """Wrap a SELECT into ``SELECT count(*) FROM (...)``."""
    return select(func.count()).select_from(stmt.order_by(None).subquery())
