# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication domain services.

This module provides authentication and authorization services:
- JWT token creation and validation
- Password hashing and policy
- Redis token blacklist and password reset tokens
- Login flows for students and teachers

Exports:
    PasswordHasher: Secure password hashing using bcrypt.
    JWTManager: JWT token creation and validation.
    TokenStore: Blacklist and reset-token storage.
    StudentAuthService: Student login and token flow.
    TeacherAuthService: Teacher login and token flow.
"""

from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher
from src.domains.auth.service import AuthService, StudentAuthService, TeacherAuthService
from src.domains.auth.token_store import TokenStore

__all__ = [
    "PasswordHasher",
    "JWTManager",
    "TokenStore",
    "AuthService",
    "StudentAuthService",
    "TeacherAuthService",
]
