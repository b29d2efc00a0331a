# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program and specialization models."""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, EntityMixin, TenantMixin, unique_live


class Program(Base, EntityMixin, TenantMixin):
    """Top-level study program of a tenant."""

    __tablename__ = "programs"
    __table_args__ = (unique_live("uq_programs_name_live", "tenant_id", "program_name"),)

    program_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_name: Mapped[str] = mapped_column(String(255), nullable=False)
    program_thumbnail_url: Mapped[str | None] = mapped_column(String(500))


class Specialization(Base, EntityMixin, TenantMixin):
    """Specialization offered within a program."""

    __tablename__ = "specializations"
    __table_args__ = (
        unique_live(
            "uq_specializations_name_live", "tenant_id", "program_id", "specialization_name"
        ),
    )

    specialization_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    program_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("programs.program_id"), nullable=False, index=True
    )
    specialization_name: Mapped[str] = mapped_column(String(255), nullable=False)
    specialization_thumbnail_url: Mapped[str | None] = mapped_column(String(500))
