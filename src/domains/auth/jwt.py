# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token management utilities.

Access tokens carry everything the scoping layer needs to decide what a
caller may see: principal id, user type and tenant. Refresh tokens carry
only the principal identity and are exchanged for a new pair.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> tokens = jwt_manager.create_token_pair(
    ...     principal_id=7, user_type="TENANT_ADMIN", tenant_id=5
    ... )
    >>> claims = jwt_manager.decode_token(tokens.access_token, "access")
    >>> claims.tenant_id
    5
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal

from jose import ExpiredSignatureError, jwt
from pydantic import BaseModel

from src.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        sub: Subject (principal id as string).
        type: Token type (access or refresh).
        user_type: STUDENT, TEACHER, TENANT_ADMIN or SUPER_ADMIN.
        role: Same as user_type, kept for clients reading "role".
        tenant_id: Tenant the principal acts in. None for a global SUPER_ADMIN.
        email: Login email of the principal.
        username: Username of the principal.
        permissions: Permission codes granted to the principal.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID, unique per token.
    """

    sub: str
    type: Literal["access", "refresh"]
    user_type: str
    role: str | None = None
    tenant_id: int | None = None
    email: str | None = None
    username: str | None = None
    permissions: list[str] = []
    exp: int
    iat: int
    jti: str

    @property
    def principal_id(self) -> int:
        return int(self.sub)


class TokenPair(BaseModel):
    """Access and refresh token pair.

    Attributes:
        access_token: JWT access token string.
        refresh_token: JWT refresh token string.
        token_type: Token type (always "Bearer").
        expires_in: Access token expiration in seconds.
        refresh_expires_in: Refresh token expiration in seconds.
    """

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    refresh_expires_in: int


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT token creation and validation manager.

    Example:
        >>> jwt_manager = JWTManager(settings)
        >>> tokens = jwt_manager.create_token_pair(
        ...     principal_id=42,
        ...     user_type="STUDENT",
        ...     tenant_id=5,
        ...     email="jdoe@example.com",
        ... )
        >>> claims = jwt_manager.decode_token(tokens.access_token)
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    @property
    def refresh_lifetime_seconds(self) -> int:
        return self._settings.refresh_token_expire_days * 24 * 60 * 60

    def _encode(self, payload: dict) -> str:
        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def create_token_pair(
        self,
        principal_id: int,
        user_type: str,
        tenant_id: int | None = None,
        email: str | None = None,
        username: str | None = None,
        permissions: list[str] | None = None,
    ) -> TokenPair:
        """Create an access and refresh token pair.

        Args:
            principal_id: Primary key of the student, teacher or system user.
            user_type: Role of the principal.
            tenant_id: Tenant the principal acts in.
            email: Login email.
            username: Username.
            permissions: Permission codes.

        Returns:
            TokenPair with access and refresh tokens.
        """
        now = datetime.now(timezone.utc)
        refresh_exp = now + timedelta(days=self._settings.refresh_token_expire_days)

        access_token = self.create_access_token(
            principal_id=principal_id,
            user_type=user_type,
            tenant_id=tenant_id,
            email=email,
            username=username,
            permissions=permissions,
        )

        refresh_token = self._encode(
            {
                "sub": str(principal_id),
                "type": "refresh",
                "user_type": user_type,
                "tenant_id": tenant_id,
                "email": email,
                "exp": int(refresh_exp.timestamp()),
                "iat": int(now.timestamp()),
                "jti": secrets.token_urlsafe(16),
            }
        )

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="Bearer",
            expires_in=self._settings.access_token_expire_minutes * 60,
            refresh_expires_in=self.refresh_lifetime_seconds,
        )

    def create_access_token(
        self,
        principal_id: int,
        user_type: str,
        tenant_id: int | None = None,
        email: str | None = None,
        username: str | None = None,
        permissions: list[str] | None = None,
    ) -> str:
        """Create an access token.

        Returns:
            JWT access token string.
        """
        now = datetime.now(timezone.utc)
        exp = now + timedelta(minutes=self._settings.access_token_expire_minutes)

        return self._encode(
            {
                "sub": str(principal_id),
                "type": "access",
                "role": user_type,
                "user_type": user_type,
                "tenant_id": tenant_id,
                "email": email,
                "username": username,
                "permissions": permissions or [],
                "exp": int(exp.timestamp()),
                "iat": int(now.timestamp()),
                "jti": secrets.token_urlsafe(16),
            }
        )

    def decode_token(
        self,
        token: str,
        expected_type: Literal["access", "refresh"] | None = None,
    ) -> TokenPayload:
        """Decode and validate a JWT token.

        Args:
            token: JWT token string.
            expected_type: Expected token type (access or refresh).

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or wrong type.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )

            if expected_type and payload.get("type") != expected_type:
                raise InvalidTokenError(
                    f"Expected {expected_type} token, got {payload.get('type')}"
                )

            return TokenPayload.model_validate(payload)

        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except InvalidTokenError:
            raise
        except Exception as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

    def verify_token(
        self,
        token: str,
        expected_type: Literal["access", "refresh"] | None = None,
    ) -> bool:
        """Verify if a token is valid."""
        try:
            self.decode_token(token, expected_type)
            return True
        except (TokenExpiredError, InvalidTokenError):
            return False

    def seconds_until_expiry(self, claims: TokenPayload) -> int:
        """Remaining lifetime of a decoded token, never negative."""
        remaining = claims.exp - int(datetime.now(timezone.utc).timestamp())
        return max(remaining, 0)

    @staticmethod
    def hash_token(token: str) -> str:
        """Create a SHA-256 hex digest of a token.

        Stores and blacklists reference tokens by digest, never by value.
        """
        return hashlib.sha256(token.encode()).hexdigest()
