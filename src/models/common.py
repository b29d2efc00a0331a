# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Response envelopes and base schema classes.

Every endpoint answers with the same envelope:

    {"success": true, "statusCode": 200, "message": "...", "data": ...,
     "timestamp": "...", "correlationId": "..."}

Errors use the same outer keys plus ``errorCode``, ``details`` and ``path``.
"""

from datetime import datetime
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from src.domains.common.listing import PaginationMeta
from src.utils.datetime import utc_now

T = TypeVar("T")


class ORMModel(BaseModel):
    """Schema that can be built straight from an ORM entity."""

    model_config = ConfigDict(from_attributes=True)


class PartialUpdate(BaseModel):
    """Request body that changes only the fields it names.

    Fields listed in ``not_nullable`` back NOT NULL columns: they may be
    omitted but an explicit ``null`` is a validation error.
    """

    not_nullable: ClassVar[frozenset[str]] = frozenset({"is_active"})

    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name in cls.not_nullable:
            raise ValueError("Field cannot be null")
        return value


class AuditedResponse(ORMModel):
    """Bookkeeping fields exposed on every entity response."""

    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: int | None = None
    updated_by: int | None = None


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    status_code: int = Field(default=200, alias="statusCode")
    message: str
    data: T | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    correlation_id: str | None = Field(default=None, alias="correlationId")


class PaginatedData(BaseModel, Generic[T]):
    """A page of items plus pagination metadata."""

    items: list[T]
    pagination: PaginationMeta


class FieldError(BaseModel):
    """One field-level validation message."""

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Error envelope."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    status_code: int = Field(alias="statusCode")
    message: str
    error_code: str = Field(alias="errorCode")
    details: Any = None
    timestamp: datetime = Field(default_factory=utc_now)
    correlation_id: str | None = Field(default=None, alias="correlationId")
    path: str | None = None


class BulkIdsRequest(BaseModel):
    """Body of bulk endpoints."""

    ids: list[int] = Field(..., min_length=1, max_length=100, description="Target ids")


class BulkResult(BaseModel):
    """Outcome of a bulk operation."""

    requested: int
    affected: int
    ids: list[int]
