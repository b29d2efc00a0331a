# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication request and response schemas."""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, EmailStr, Field

from src.models.enums import UserType


def check_password_policy(value: str) -> str:
    """Reject passwords that break the password policy."""
    # Imported here: src.domains.auth imports this module at package init.
    from src.domains.auth.password import password_policy_errors

    errors = password_policy_errors(value)
    if errors:
        raise ValueError("Password " + ", ".join(errors))
    return value


PolicyPassword = Annotated[str, AfterValidator(check_password_policy)]


class LoginRequest(BaseModel):
    email_address: EmailStr = Field(..., description="Login email")
    password: str = Field(..., min_length=1, description="Password")
    tenant_context: str | None = Field(
        default=None,
        max_length=255,
        description="Tenant id or name to act in",
    )


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token")


class LogoutRequest(BaseModel):
    refresh_token: str | None = Field(default=None, description="Refresh token to revoke too")


class PasswordResetInitiateRequest(BaseModel):
    email_address: EmailStr
    tenant_context: str | None = Field(
        default=None,
        max_length=255,
        description="Tenant id or name, needed when the email exists in several tenants",
    )


class PasswordResetFinalizeRequest(BaseModel):
    token: str = Field(..., min_length=16, max_length=128)
    new_password: PolicyPassword


class AuthUser(BaseModel):
    """Identity of the logged-in principal."""

    id: int
    username: str
    full_name: str
    email: str | None = None
    role: UserType
    user_type: UserType
    tenant_id: int | None = None


class AuthTokens(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"


class LoginResponse(BaseModel):
    user: AuthUser
    tokens: AuthTokens
    permissions: list[str]
