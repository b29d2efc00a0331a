# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Rate limiting using slowapi.

Limits are counted in Redis so they hold across API workers. Requests of
authenticated callers are keyed by principal, anonymous ones by IP.

Example:
    # Limit login attempts
    @router.post("/login")
    @limiter.limit(RATE_LIMIT_AUTH)
    async def login(request: Request, ...):
        ...
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.core.config import get_settings

logger = logging.getLogger(__name__)


def get_client_identifier(request: Request) -> str:
    """Get a unique identifier for the client.

    Uses tenant and principal if authenticated, otherwise the IP address.
    """
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"tenant:{user.tenant_id}:{user.user_type.value}:{user.id}"
    return f"ip:{get_remote_address(request)}"


def get_ip_only(request: Request) -> str:
    """Get client IP address only, for endpoints called before login."""
    return get_remote_address(request)


settings = get_settings()
limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.rate_limit.requests_per_minute}/minute"],
    storage_uri=settings.redis.url,
    enabled=settings.rate_limit.enabled,
)

RATE_LIMIT_AUTH = f"{settings.rate_limit.auth_requests_per_minute}/minute"
RATE_LIMIT_UPLOAD = "10/minute"
