# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic request / response schemas and shared enumerations.

Modules:
- enums: Enumerations shared with the ORM models
- common: Response envelopes and base classes
- auth, tenant, program, course, person, system_user, enrollment:
  per-resource schemas
"""
