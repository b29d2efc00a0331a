# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Request correlation middleware.

Assigns every request a correlation id, taken from the incoming
X-Request-ID header when present, binds it to the structlog context so
every log line of the request carries it, and echoes it back.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.utils.logging import REQUEST_ID_KEY, bind_context, clear_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a correlation id and log request timing."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
        request_id = incoming[:MAX_REQUEST_ID_LENGTH] or str(uuid.uuid4())

        clear_context()
        bind_context(**{REQUEST_ID_KEY: request_id})
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.debug(
                "%s %s handled in %.1fms", request.method, request.url.path, elapsed_ms
            )
            clear_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
