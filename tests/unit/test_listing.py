# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for pagination, sorting and search helpers."""

import pytest
from pydantic import ValidationError
from sqlalchemy import select

from src.domains.common.listing import (
    ListParams,
    PaginationMeta,
    order_clause,
    paginate,
    select_count,
)
from src.infrastructure.database.models import Program
from src.models.enums import SortOrder
from tests.helpers import scalar_result, scalars_result


class TestListParams:
    def test_defaults(self) -> None:
        params = ListParams()

        assert params.page == 1
        assert params.limit == 10
        assert params.order == SortOrder.DESC
        assert params.offset == 0

    def test_offset_follows_page(self) -> None:
        assert ListParams(page=3, limit=20).offset == 40

    def test_sort_by_alias(self) -> None:
        assert ListParams.model_validate({"sortBy": "programName"}).sort_by == "programName"

    def test_limit_is_capped(self) -> None:
        with pytest.raises(ValidationError):
            ListParams(limit=101)

    @pytest.mark.parametrize("search", [None, "", "   "])
    def test_blank_search_is_ignored(self, search) -> None:
        assert ListParams(search=search).search_term is None

    def test_search_is_trimmed(self) -> None:
        assert ListParams(search="  math ").search_term == "math"


class TestPaginationMeta:
    """Tests for the pagination block."""

    def test_middle_page(self) -> None:
        meta = PaginationMeta.build(ListParams(page=2, limit=10), total=35)

        assert meta.total_pages == 4
        assert meta.has_next is True
        assert meta.has_prev is True

    def test_last_page(self) -> None:
        meta = PaginationMeta.build(ListParams(page=4, limit=10), total=35)

        assert meta.has_next is False

    def test_empty_result(self) -> None:
        meta = PaginationMeta.build(ListParams(), total=0)

        assert meta.total_pages == 0
        assert meta.has_next is False
        assert meta.has_prev is False

    def test_serializes_camel_case(self) -> None:
        dumped = PaginationMeta.build(ListParams(), total=5).model_dump(by_alias=True)

        assert set(dumped) == {"page", "limit", "total", "totalPages", "hasNext", "hasPrev"}


class TestOrderClause:
    SORT_FIELDS = {"programName": Program.program_name}

    def test_known_key_ascending(self) -> None:
        params = ListParams(sortBy="programName", order=SortOrder.ASC)

        clause = order_clause(params, self.SORT_FIELDS, Program.created_at)

        assert str(clause) == "programs.program_name ASC"

    def test_unknown_key_falls_back_to_default(self) -> None:
        """Test that an unknown sortBy sorts on the default column."""
        params = ListParams(sortBy="password_hash")

        clause = order_clause(params, self.SORT_FIELDS, Program.created_at)

        assert str(clause) == "programs.created_at DESC"


class TestPaginate:
    """Tests for the count + page query runner."""

    @pytest.mark.asyncio
    async def test_returns_rows_and_total(self, mock_db) -> None:
        programs = ["a", "b"]
        mock_db.execute.side_effect = [scalar_result(12), scalars_result(programs)]

        rows, total = await paginate(
            mock_db,
            select(Program),
            ListParams(page=2, limit=2),
            sort_fields={},
            default_sort=Program.created_at,
        )

        assert rows == programs
        assert total == 12
        page_stmt = mock_db.execute.call_args_list[1].args[0]
        assert page_stmt._limit_clause.value == 2
        assert page_stmt._offset_clause.value == 2

    @pytest.mark.asyncio
    async def test_search_adds_ilike(self, mock_db) -> None:
        mock_db.execute.side_effect = [scalar_result(0), scalars_result([])]

        await paginate(
            mock_db,
            select(Program),
            ListParams(search="math"),
            sort_fields={},
            default_sort=Program.created_at,
            search_columns=[Program.program_name],
        )

        count_sql = str(mock_db.execute.call_args_list[0].args[0]).lower()
        assert "like" in count_sql

    def test_select_count_wraps_subquery(self) -> None:
        sql = str(select_count(select(Program).order_by(Program.program_name)))

        assert sql.lower().startswith("select count(*)")
        assert "ORDER BY" not in sql
