# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program and specialization schemas."""

from pydantic import BaseModel, Field

from src.models.common import AuditedResponse, PartialUpdate


class ProgramCreate(BaseModel):
    program_name: str = Field(..., min_length=2, max_length=255)
    program_thumbnail_url: str | None = Field(default=None, max_length=500)
    tenant_id: int | None = None


class ProgramUpdate(PartialUpdate):
    not_nullable = frozenset({"program_name", "is_active"})

    program_name: str | None = Field(default=None, min_length=2, max_length=255)
    program_thumbnail_url: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


class ProgramResponse(AuditedResponse):
    program_id: int
    tenant_id: int
    program_name: str
    program_thumbnail_url: str | None = None


class SpecializationCreate(BaseModel):
    program_id: int = Field(..., ge=1)
    specialization_name: str = Field(..., min_length=2, max_length=255)
    specialization_thumbnail_url: str | None = Field(default=None, max_length=500)
    tenant_id: int | None = None


class SpecializationUpdate(PartialUpdate):
    not_nullable = frozenset({"program_id", "specialization_name", "is_active"})

    program_id: int | None = Field(default=None, ge=1)
    specialization_name: str | None = Field(default=None, min_length=2, max_length=255)
    specialization_thumbnail_url: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


class SpecializationResponse(AuditedResponse):
    specialization_id: int
    tenant_id: int
    program_id: int
    specialization_name: str
    specialization_thumbnail_url: str | None = None
    program_name: str | None = None
