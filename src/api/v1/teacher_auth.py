# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Teacher authentication endpoints."""

import logging

from fastapi import APIRouter, Depends, Request, status

from src.api.dependencies import get_teacher_auth_service, require_teacher
from src.api.middleware.auth import CurrentUser
from src.api.middleware.rate_limit import RATE_LIMIT_AUTH, get_ip_only, limiter
from src.api.responses import ok
from src.api.v1.auth_common import reset_initiated_payload
from src.domains.auth import TeacherAuthService
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


@router.post("/login", response_model=ApiResponse[LoginResponse], summary="Teacher login")
@limiter.limit(RATE_LIMIT_AUTH, key_func=get_ip_only)
async def teacher_login(
    request: Request,
    data: LoginRequest,
    service: TeacherAuthService = Depends(get_teacher_auth_service),
) -> ApiResponse[LoginResponse]:
    result = await service.login(str(data.email_address), data.password, data.tenant_context)
    return ok(result, "Login successful")


@router.post("/refresh", response_model=ApiResponse[AuthTokens], summary="Refresh teacher tokens")
@limiter.limit(RATE_LIMIT_AUTH, key_func=get_ip_only)
async def teacher_refresh(
    request: Request,
    data: RefreshRequest,
    service: TeacherAuthService = Depends(get_teacher_auth_service),
) -> ApiResponse[AuthTokens]:
    return ok(await service.refresh(data.refresh_token), "Token refreshed successfully")


@router.post("/logout", response_model=ApiResponse[None], summary="Teacher logout")
async def teacher_logout(
    request: Request,
    data: LogoutRequest | None = None,
    user: CurrentUser = Depends(require_teacher),
    service: TeacherAuthService = Depends(get_teacher_auth_service),
) -> ApiResponse[None]:
    await service.logout(request.state.access_token, data.refresh_token if data else None)
    return ok(None, "Logout successful")


@router.post(
    "/password-reset/initiate",
    response_model=ApiResponse[dict],
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a teacher password reset",
)
@limiter.limit(RATE_LIMIT_AUTH, key_func=get_ip_only)
async def teacher_initiate_password_reset(
    request: Request,
    data: PasswordResetInitiateRequest,
    service: TeacherAuthService = Depends(get_teacher_auth_service),
) -> ApiResponse[dict]:
    token = await service.initiate_password_reset(str(data.email_address), data.tenant_context)
    return ok(reset_initiated_payload(token), "If the email exists, a reset link was sent", 202)


@router.post(
    "/password-reset/finalize",
    response_model=ApiResponse[None],
    summary="Finish a teacher password reset",
)
@limiter.limit(RATE_LIMIT_AUTH, key_func=get_ip_only)
async def teacher_finalize_password_reset(
    request: Request,
    data: PasswordResetFinalizeRequest,
    service: TeacherAuthService = Depends(get_teacher_auth_service),
) -> ApiResponse[None]:
    await service.finalize_password_reset(data.token, data.new_password)
    return ok(None, "Password reset successful")


@router.get("/me", response_model=ApiResponse[AuthUser], summary="Current teacher")
async def teacher_me(
    user: CurrentUser = Depends(require_teacher),
    service: TeacherAuthService = Depends(get_teacher_auth_service),
) -> ApiResponse[AuthUser]:
    return ok(await service.me(user.claims), "Profile retrieved successfully")
