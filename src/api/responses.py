# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Helpers that wrap service results in the response envelope.

Example:
    >>> @router.post("", response_model=ApiResponse[StudentResponse], status_code=201)
    ... async def create_student(...):
    ...     student = await service.create_student(data, actor)
    ...     return ok(student, "Student created successfully", 201)
"""

from typing import Any, Sequence

from src.domains.common.listing import ListParams, PaginationMeta
from src.models.common import ApiResponse, PaginatedData
from src.utils.logging import get_request_id


def ok(data: Any = None, message: str = "Success", status_code: int = 200) -> ApiResponse:
    """Build a success envelope tagged with the current request id."""
    return ApiResponse(
        status_code=status_code,
        message=message,
        data=data,
        correlation_id=get_request_id(),
    )


def paged(
    items: Sequence[Any],
    total: int,
    params: ListParams,
    message: str = "Success",
) -> ApiResponse:
    """Build a success envelope around one page of a list.

    Args:
        items: Rows of the requested page.
        total: Number of rows matching the filters across all pages.
        params: Pagination parameters of the request.
        message: Human-readable message.
    """
    return ok(
        PaginatedData(items=list(items), pagination=PaginationMeta.build(params, total)),
        message,
    )
