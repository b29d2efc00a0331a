# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependencies for database sessions, authentication and services.

Example:
    @router.get("/students")
    async def list_students(
        service: StudentService = Depends(get_student_service),
        actor: Actor = Depends(get_actor),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Query, Request
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser
from src.core.config import get_settings
from src.core.errors import ForbiddenError, UnauthorizedError
from src.domains.auth import JWTManager, StudentAuthService, TeacherAuthService, TokenStore
from src.domains.auth.service import TokenRevokedError
from src.domains.client import ClientService
from src.domains.common.listing import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ListParams
from src.domains.common.scoping import Actor
from src.domains.course import CourseCatalogService, CourseService
from src.domains.enrollment import EnrollmentService
from src.domains.program import ProgramService, SpecializationService
from src.domains.student import StudentService
from src.domains.system import SystemAuthService, SystemUserService
from src.domains.teacher import TeacherService
from src.domains.tenant import TenantService
from src.infrastructure.cache import get_redis
from src.infrastructure.database.connection import (
    close_database,
    get_session,
    init_database,
)
from src.infrastructure.storage import BrandingStorage
from src.models.enums import SortOrder, UserType

logger = logging.getLogger(__name__)


# Database lifecycle

async def init_db() -> None:
    """Initialize the database engine and session factory."""
    await init_database(get_settings())


async def close_db() -> None:
    """Dispose the database engine."""
    await close_database()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the duration of a request.

    Yields:
        AsyncSession, committed on success and rolled back on error.
    """
    async with get_session() as session:
        yield session


# Infrastructure

def get_jwt_manager() -> JWTManager:
    return JWTManager(get_settings().jwt)


def get_token_store() -> TokenStore:
    return TokenStore(get_redis())


def get_branding_storage() -> BrandingStorage:
    return BrandingStorage(get_settings().upload)


# Authentication

def get_optional_user(request: Request) -> CurrentUser | None:
    return getattr(request.state, "user", None)


async def require_auth(
    request: Request,
    token_store: TokenStore = Depends(get_token_store),
) -> CurrentUser:
    """Get the authenticated caller, rejecting revoked tokens.

    Raises:
        UnauthorizedError: No valid access token on the request.
        TokenRevokedError: The access token was logged out.
    """
    user = get_optional_user(request)
    if user is None:
        raise UnauthorizedError("Not authenticated")

    token = getattr(request.state, "access_token", None)
    if token and await token_store.is_blacklisted(token):
        raise TokenRevokedError()
    return user


class RequireRole:
    """Dependency to require any of the given roles.

    Example:
        @router.post("/tenants")
        async def create_tenant(
            user: CurrentUser = Depends(RequireRole(UserType.SUPER_ADMIN)),
        ):
            ...
    """

    def __init__(self, *roles: UserType) -> None:
        self._roles = roles

    async def __call__(self, user: CurrentUser = Depends(require_auth)) -> CurrentUser:
        if not user.has_role(*self._roles):
            logger.info(
                "Role check failed: user=%s role=%s required=%s",
                user.id,
                user.user_type.value,
                [r.value for r in self._roles],
            )
            raise ForbiddenError(
                "Insufficient permissions for this operation", "INSUFFICIENT_PERMISSIONS"
            )
        return user


require_super_admin = RequireRole(UserType.SUPER_ADMIN)
require_admin = RequireRole(UserType.SUPER_ADMIN, UserType.TENANT_ADMIN)
require_staff = RequireRole(UserType.SUPER_ADMIN, UserType.TENANT_ADMIN, UserType.TEACHER)
require_student = RequireRole(UserType.STUDENT)
require_teacher = RequireRole(UserType.TEACHER)


def client_ip(request: Request) -> str | None:
    """Client address, honoring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def actor_dependency(guard: RequireRole | None = None):
    """Build a dependency returning the caller as an Actor.

    Args:
        guard: Optional role guard applied before the actor is built.
    """
    dependency = guard or require_auth

    async def _actor(request: Request, user: CurrentUser = Depends(dependency)) -> Actor:
        return user.to_actor(client_ip(request))

    return _actor


get_actor = actor_dependency()
get_admin_actor = actor_dependency(require_admin)
get_super_admin_actor = actor_dependency(require_super_admin)
get_staff_actor = actor_dependency(require_staff)
get_student_actor = actor_dependency(require_student)
get_teacher_actor = actor_dependency(require_teacher)


# Listing

def get_list_params(
    page: int = Query(default=1, ge=1, description="Page number"),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
    sort_by: str | None = Query(default=None, alias="sortBy", description="Sort key"),
    order: SortOrder = Query(default=SortOrder.DESC, description="Sort direction"),
    search: str | None = Query(default=None, max_length=255, description="Search term"),
) -> ListParams:
    return ListParams(page=page, limit=limit, sort_by=sort_by, order=order, search=search)


# Services

def _auth_kwargs() -> dict:
    settings = get_settings()
    return {
        "max_login_attempts": settings.auth.max_login_attempts,
        "reset_expire_minutes": settings.auth.password_reset_expire_minutes,
    }


def get_system_auth_service(
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    token_store: TokenStore = Depends(get_token_store),
) -> SystemAuthService:
    return SystemAuthService(db, jwt_manager, token_store, **_auth_kwargs())


def get_student_auth_service(
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    token_store: TokenStore = Depends(get_token_store),
) -> StudentAuthService:
    return StudentAuthService(db, jwt_manager, token_store, **_auth_kwargs())


def get_teacher_auth_service(
    db: AsyncSession = Depends(get_db),
    jwt_manager: JWTManager = Depends(get_jwt_manager),
    token_store: TokenStore = Depends(get_token_store),
) -> TeacherAuthService:
    return TeacherAuthService(db, jwt_manager, token_store, **_auth_kwargs())


def get_tenant_service(
    db: AsyncSession = Depends(get_db),
    storage: BrandingStorage = Depends(get_branding_storage),
) -> TenantService:
    return TenantService(db, storage)


def get_client_service(db: AsyncSession = Depends(get_db)) -> ClientService:
    return ClientService(db)


def get_program_service(db: AsyncSession = Depends(get_db)) -> ProgramService:
    return ProgramService(db)


def get_specialization_service(db: AsyncSession = Depends(get_db)) -> SpecializationService:
    return SpecializationService(db)


def get_course_service(db: AsyncSession = Depends(get_db)) -> CourseService:
    return CourseService(db)


def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CourseCatalogService:
    return CourseCatalogService(db)


def get_student_service(db: AsyncSession = Depends(get_db)) -> StudentService:
    return StudentService(db)


def get_teacher_service(db: AsyncSession = Depends(get_db)) -> TeacherService:
    return TeacherService(db)


def get_system_user_service(db: AsyncSession = Depends(get_db)) -> SystemUserService:
    return SystemUserService(db)


def get_enrollment_service(db: AsyncSession = Depends(get_db)) -> EnrollmentService:
    return EnrollmentService(db)
