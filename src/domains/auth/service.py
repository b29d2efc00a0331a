# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication services for the three account families.

Students, teachers and administrators log in by email address and share
one flow, implemented by :class:`AuthService`:

- login with lockout after too many failed attempts,
- refresh with rotation (the old refresh token is blacklisted),
- logout (the access token is blacklisted),
- password reset through a one-time token kept in Redis,
- ``me`` for the current principal.

Subclasses only say how accounts are found and which tenant a login acts
in. Administrators live in :mod:`src.domains.system.auth_service`.

Example:
    >>> service = StudentAuthService(db, jwt_manager, token_store)
    >>> result = await service.login("jdoe@example.com", "S3cret!pass")
    >>> tokens = await service.refresh(result.tokens.refresh_token)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import (
    BadRequestError,
    ForbiddenError,
    UnauthorizedError,
)
from src.domains.auth.jwt import InvalidTokenError, JWTManager, TokenExpiredError, TokenPayload
from src.domains.auth.password import PasswordHasher, generate_reset_token
from src.domains.auth.permissions import permissions_for
from src.domains.auth.token_store import TokenStore
from src.infrastructure.database.models import (
    Student,
    StudentEmailAddress,
    Teacher,
    TeacherEmailAddress,
    Tenant,
)
from src.models.auth import AuthTokens, AuthUser, LoginResponse
from src.models.enums import StudentStatus, UserType
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class InvalidCredentialsError(UnauthorizedError):
    default_code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class AccountLockedError(UnauthorizedError):
    default_code = "ACCOUNT_LOCKED"
    default_message = "Account locked due to too many failed login attempts"


class TenantMismatchError(ForbiddenError):
    default_code = "TENANT_MISMATCH"
    default_message = "Account does not belong to the specified tenant"


class TenantContextRequiredError(BadRequestError):
    default_code = "TENANT_CONTEXT_REQUIRED"
    default_message = "Email is registered in several tenants; pass tenant_context"


class TokenRevokedError(UnauthorizedError):
    default_code = "TOKEN_REVOKED"
    default_message = "Token has been revoked"


class InvalidRefreshTokenError(UnauthorizedError):
    default_code = "INVALID_REFRESH_TOKEN"
    default_message = "Invalid refresh token"


class InvalidResetTokenError(BadRequestError):
    default_code = "INVALID_RESET_TOKEN"
    default_message = "Invalid or expired password reset token"


class ExpiredResetTokenError(BadRequestError):
    default_code = "EXPIRED_RESET_TOKEN"
    default_message = "Password reset token has expired"


class AuthService(ABC):
    """Login, token and password-reset flow shared by every account family.

    Attributes:
        _db: Async database session.
        _jwt_manager: JWT token manager.
        _token_store: Redis blacklist and reset-token store.
        _password_hasher: Password hashing utility.
        _max_login_attempts: Failed attempts after which login is refused.
        _reset_expire_minutes: Lifetime of a password reset token.
    """

    principal: ClassVar[str]
    user_types: ClassVar[tuple[UserType, ...]]

    def __init__(
        self,
        db: AsyncSession,
        jwt_manager: JWTManager,
        token_store: TokenStore,
        password_hasher: PasswordHasher | None = None,
        max_login_attempts: int = 5,
        reset_expire_minutes: int = 60,
    ) -> None:
        self._db = db
        self._jwt_manager = jwt_manager
        self._token_store = token_store
        self._password_hasher = password_hasher or PasswordHasher()
        self._max_login_attempts = max_login_attempts
        self._reset_expire_minutes = reset_expire_minutes

    # Account hooks

    @abstractmethod
    async def _find_accounts(self, email: str) -> list[Any]:
        """Live accounts whose login email matches."""

    @abstractmethod
    async def _get_account(self, account_id: int) -> Any | None:
        """Live account by primary key."""

    @abstractmethod
    def _account_id(self, account: Any) -> int: ...

    @abstractmethod
    def _user_type(self, account: Any) -> UserType: ...

    @abstractmethod
    async def _login_email(self, account: Any) -> str | None: ...

    def _is_usable(self, account: Any) -> bool:
        return account.is_active and not account.is_deleted

    def _reactivation_changes(self) -> dict[str, Any]:
        return {"is_active": True}

    async def _pick_account(
        self, accounts: list[Any], tenant_context: str | None
    ) -> tuple[Any, int | None]:
        """Choose the account and the tenant a login acts in.

        Tenant-bound accounts always act in their own tenant. A tenant
        context naming another tenant is refused.
        """
        if tenant_context:
            tenant = await self._find_tenant(tenant_context)
            for account in accounts:
                if tenant is not None and account.tenant_id == tenant.tenant_id:
                    return account, account.tenant_id
            raise TenantMismatchError()

        if len(accounts) > 1:
            raise TenantContextRequiredError()
        return accounts[0], accounts[0].tenant_id

    # Flow

    async def login(
        self, email: str, password: str, tenant_context: str | None = None
    ) -> LoginResponse:
        """Authenticate an account by email and password.

        Args:
            email: Login email address.
            password: Plain text password.
            tenant_context: Tenant id or name to act in.

        Returns:
            User info, token pair and permissions.

        Raises:
            InvalidCredentialsError: Unknown, inactive account or wrong password.
            AccountLockedError: Too many failed attempts.
            TenantMismatchError: Context names a tenant the account is not in.
            TenantNotFoundError: SUPER_ADMIN context names an unknown tenant.
        """
        email = email.strip().lower()
        accounts = [a for a in await self._find_accounts(email) if self._is_usable(a)]
        if not accounts:
            logger.warning("%s login failed: no usable account for %s", self.principal, email)
            raise InvalidCredentialsError()

        account, tenant_id = await self._pick_account(accounts, tenant_context)
        account_id = self._account_id(account)

        if account.login_attempts >= self._max_login_attempts:
            logger.warning("%s login refused: account %s locked", self.principal, account_id)
            raise AccountLockedError()

        if not self._password_hasher.verify(password, account.password_hash):
            account.login_attempts = (account.login_attempts or 0) + 1
            await self._db.commit()
            logger.warning(
                "%s login failed for %s (attempt %d)",
                self.principal,
                account_id,
                account.login_attempts,
            )
            raise InvalidCredentialsError()

        account.login_attempts = 0
        account.last_login_at = utc_now()
        await self._db.commit()

        user_type = self._user_type(account)
        permissions = permissions_for(user_type)
        login_email = await self._login_email(account)
        tokens = self._jwt_manager.create_token_pair(
            principal_id=account_id,
            user_type=user_type.value,
            tenant_id=tenant_id,
            email=login_email,
            username=account.username,
            permissions=permissions,
        )

        logger.info("%s logged in: %s tenant=%s", self.principal, account_id, tenant_id)
        return LoginResponse(
            user=self._auth_user(account, login_email, tenant_id),
            tokens=AuthTokens(
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                expires_in=tokens.expires_in,
            ),
            permissions=permissions,
        )

    async def refresh(self, refresh_token: str) -> AuthTokens:
        """Exchange a refresh token for a new pair and revoke the old one.

        Raises:
            TokenRevokedError: The refresh token was already used or revoked.
            InvalidRefreshTokenError: Bad, expired or foreign token, or the
                account is gone.
        """
        if await self._token_store.is_blacklisted(refresh_token):
            raise TokenRevokedError()

        try:
            claims = self._jwt_manager.decode_token(refresh_token, expected_type="refresh")
        except (TokenExpiredError, InvalidTokenError) as e:
            raise InvalidRefreshTokenError(str(e))

        if claims.user_type not in {t.value for t in self.user_types}:
            raise InvalidRefreshTokenError("Token was not issued for this account type")

        account = await self._get_account(claims.principal_id)
        if account is None or not self._is_usable(account):
            raise InvalidRefreshTokenError("Account not found or inactive")

        await self._token_store.blacklist(
            refresh_token, self._jwt_manager.seconds_until_expiry(claims)
        )

        user_type = self._user_type(account)
        tokens = self._jwt_manager.create_token_pair(
            principal_id=claims.principal_id,
            user_type=user_type.value,
            tenant_id=claims.tenant_id,
            email=claims.email,
            username=account.username,
            permissions=permissions_for(user_type),
        )
        logger.info("%s tokens refreshed: %s", self.principal, claims.principal_id)
        return AuthTokens(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_in=tokens.expires_in,
        )

    async def logout(self, access_token: str, refresh_token: str | None = None) -> None:
        """Blacklist the access token and, when given, the refresh token."""
        for token, kind in ((access_token, "access"), (refresh_token, "refresh")):
            if not token:
                continue
            try:
                claims = self._jwt_manager.decode_token(token, expected_type=kind)
            except (TokenExpiredError, InvalidTokenError):
                continue
            await self._token_store.blacklist(
                token, self._jwt_manager.seconds_until_expiry(claims)
            )
        logger.info("%s logged out", self.principal)

    async def initiate_password_reset(
        self, email: str, tenant_context: str | None = None
    ) -> str | None:
        """Start a password reset.

        Unknown emails are accepted silently so the endpoint does not reveal
        which addresses exist. An email registered in several tenants picks
        its account the same way login does.

        Returns:
            The raw reset token for delivery, or None for unknown emails.

        Raises:
            TenantContextRequiredError: Several accounts match and no tenant was named.
            TenantMismatchError: No matching account belongs to the named tenant.
        """
        accounts = await self._find_accounts(email.strip().lower())
        if not accounts:
            logger.info("%s password reset requested for unknown email", self.principal)
            return None

        account, _ = await self._pick_account(accounts, tenant_context)
        token = generate_reset_token()
        await self._token_store.save_reset_token(
            self.principal,
            token,
            self._account_id(account),
            self._reset_expire_minutes,
        )
        return token

    async def finalize_password_reset(self, token: str, new_password: str) -> None:
        """Set a new password using a reset token.

        Also clears failed attempts and re-activates the account.

        Raises:
            InvalidResetTokenError: Unknown token or account.
            ExpiredResetTokenError: Token past its lifetime.
        """
        record = await self._token_store.get_reset_token(self.principal, token)
        if record is None:
            raise InvalidResetTokenError()
        if record.is_expired:
            await self._token_store.delete_reset_token(self.principal, token)
            raise ExpiredResetTokenError()

        account = await self._get_account(record.principal_id)
        if account is None:
            raise InvalidResetTokenError()

        account.password_hash = self._password_hasher.hash(new_password)
        account.login_attempts = 0
        for field, value in self._reactivation_changes().items():
            setattr(account, field, value)
        account.updated_at = utc_now()
        await self._db.commit()

        await self._token_store.delete_reset_token(self.principal, token)
        logger.info("%s password reset completed: %s", self.principal, record.principal_id)

    async def me(self, claims: TokenPayload) -> AuthUser:
        """Profile of the principal behind an access token.

        Raises:
            UnauthorizedError: The account no longer exists.
        """
        account = await self._get_account(claims.principal_id)
        if account is None or not self._is_usable(account):
            raise UnauthorizedError("Account not found or inactive")
        return self._auth_user(account, await self._login_email(account), claims.tenant_id)

    # Helpers

    def _auth_user(self, account: Any, email: str | None, tenant_id: int | None) -> AuthUser:
        user_type = self._user_type(account)
        return AuthUser(
            id=self._account_id(account),
            username=account.username,
            full_name=account.full_name,
            email=email or account.username,
            role=user_type,
            user_type=user_type,
            tenant_id=tenant_id,
        )

    async def _find_tenant(self, context: str) -> Tenant | None:
        """Resolve a tenant context given as id or name."""
        context = context.strip()
        stmt = select(Tenant).where(Tenant.is_deleted.is_(False))
        if context.isdigit():
            stmt = stmt.where(Tenant.tenant_id == int(context))
        else:
            stmt = stmt.where(func.lower(Tenant.tenant_name) == context.lower())
        result = await self._db.execute(stmt.limit(1))
        return result.scalar_one_or_none()


class _PersonAuthService(AuthService):
    """Accounts stored as a person row plus email address rows."""

    model: ClassVar[Any]
    email_model: ClassVar[Any]
    id_field: ClassVar[str]

    async def _find_accounts(self, email: str) -> list[Any]:
        owner = getattr(self.email_model, self.id_field)
        result = await self._db.execute(
            select(self.model)
            .join(self.email_model, owner == getattr(self.model, self.id_field))
            .where(
                func.lower(self.email_model.email_address) == email,
                self.email_model.is_active.is_(True),
                self.email_model.is_deleted.is_(False),
                self.model.is_deleted.is_(False),
            )
        )
        return list(result.scalars().unique().all())

    async def _get_account(self, account_id: int) -> Any | None:
        result = await self._db.execute(
            select(self.model).where(
                getattr(self.model, self.id_field) == account_id,
                self.model.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    def _account_id(self, account: Any) -> int:
        return getattr(account, self.id_field)

    async def _login_email(self, account: Any) -> str | None:
        owner = getattr(self.email_model, self.id_field)
        result = await self._db.execute(
            select(self.email_model.email_address)
            .where(
                owner == self._account_id(account),
                self.email_model.is_deleted.is_(False),
            )
            .order_by(self.email_model.is_primary.desc(), self.email_model.priority.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()


class StudentAuthService(_PersonAuthService):
    """Authentication for students."""

    principal = "student"
    user_types = (UserType.STUDENT,)
    model = Student
    email_model = StudentEmailAddress
    id_field = "student_id"

    def _user_type(self, account: Any) -> UserType:
        return UserType.STUDENT

    def _is_usable(self, account: Any) -> bool:
        return super()._is_usable(account) and account.student_status not in (
            StudentStatus.BLACKLISTED,
            StudentStatus.SUSPENDED,
            StudentStatus.DEACTIVATED,
        )


class TeacherAuthService(_PersonAuthService):
    """Authentication for teachers."""

    principal = "teacher"
    user_types = (UserType.TEACHER,)
    model = Teacher
    email_model = TeacherEmailAddress
    id_field = "teacher_id"

    def _user_type(self, account: Any) -> UserType:
        return UserType.TEACHER

