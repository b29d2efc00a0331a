# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Administrator authentication endpoints.

This module provides endpoints for SUPER_ADMIN and TENANT_ADMIN accounts:
- POST /login - Log in, optionally acting in a tenant
- POST /refresh - Exchange a refresh token for a new pair
- POST /logout - Revoke the current tokens
- POST /password-reset/initiate - Start a password reset
- POST /password-reset/finalize - Set a new password with a reset token
- GET /me - Profile of the logged-in administrator

Example:
    POST /api/v1/auth/login
    {
        "email_address": "admin@example.com",
        "password": "S3cure!pass",
        "tenant_context": "Acme Academy"
    }
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from src.api.dependencies import get_system_auth_service, require_admin
from src.api.middleware.auth import CurrentUser
from src.api.middleware.rate_limit import RATE_LIMIT_AUTH, get_ip_only, limiter
from src.api.responses import ok
from src.api.v1.auth_common import reset_initiated_payload
from src.domains.system import SystemAuthService
from src.models.auth import (
    AuthTokens,
    AuthUser,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    PasswordResetFinalizeRequest,
    PasswordResetInitiateRequest,
    RefreshRequest,
)
from src.models.common import ApiResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    summary="Administrator login",
    description="Authenticate a system user. A SUPER_ADMIN may name a tenant to act in.",
)
@limiter.limit(RATE_LIMIT_AUTH, key_func=get_ip_only)
async def login(
    request: Request,
    data: LoginRequest,
    service: SystemAuthService = Depends(get_system_auth_service),
) -> ApiResponse[LoginResponse]:
    result = await service.login(str(data.email_address), data.password, data.tenant_context)
    return ok(result, "Login successful")


@router.post(
    "/refresh",
    response_model=ApiResponse[AuthTokens],
    summary="Refresh tokens",
)
@limiter.limit(RATE_LIMIT_AUTH, key_func=get_ip_only)
async def refresh(
    request: Request,
    data: RefreshRequest,
    service: SystemAuthService = Depends(get_system_auth_service),
) -> ApiResponse[AuthTokens]:
    tokens = await service.refresh(data.refresh_token)
    return ok(tokens, "Token refreshed successfully")


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    summary="Logout",
    description="Blacklist the current access token and, if given, the refresh token.",
)
async def logout(
    request: Request,
    data: LogoutRequest | None = None,
    user: CurrentUser = Depends(require_admin),
    service: SystemAuthService = Depends(get_system_auth_service),
) -> ApiResponse[None]:
    await service.logout(request.state.access_token, data.refresh_token if data else None)
    return ok(None, "Logout successful")


@router.post(
    "/password-reset/initiate",
    response_model=ApiResponse[dict],
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a password reset",
)
@limiter.limit(RATE_LIMIT_AUTH, key_func=get_ip_only)
async def initiate_password_reset(
    request: Request,
    data: PasswordResetInitiateRequest,
    service: SystemAuthService = Depends(get_system_auth_service),
) -> ApiResponse[dict]:
    token = await service.initiate_password_reset(str(data.email_address), data.tenant_context)
    return ok(reset_initiated_payload(token), "If the email exists, a reset link was sent", 202)


@router.post(
    "/password-reset/finalize",
    response_model=ApiResponse[None],
    summary="Finish a password reset",
)
@limiter.limit(RATE_LIMIT_AUTH, key_func=get_ip_only)
async def finalize_password_reset(
    request: Request,
    data: PasswordResetFinalizeRequest,
    service: SystemAuthService = Depends(get_system_auth_service),
) -> ApiResponse[None]:
    await service.finalize_password_reset(data.token, data.new_password)
    return ok(None, "Password reset successful")


@router.get(
    "/me",
    response_model=ApiResponse[AuthUser],
    summary="Current administrator",
)
async def me(
    user: CurrentUser = Depends(require_admin),
    service: SystemAuthService = Depends(get_system_auth_service),
) -> ApiResponse[AuthUser]:
    return ok(await service.me(user.claims), "Profile retrieved successfully")
