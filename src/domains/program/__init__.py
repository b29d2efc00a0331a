# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Program domain: programs and their specializations."""

from src.domains.program.service import ProgramService, SpecializationService

__all__ = ["ProgramService", "SpecializationService"]
