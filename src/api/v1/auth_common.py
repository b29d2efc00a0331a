# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pieces shared by the administrator, student and teacher auth routers."""

from src.core.config import get_settings


def reset_initiated_payload(token: str | None) -> dict:
    """Body returned after a password reset request.

    Reset emails are delivered outside this service, so the raw token is
    echoed only in development to let the flow be exercised end to end.
    """
    payload: dict = {"requested": True}
    if token is not None and get_settings().is_development:
        payload["reset_token"] = token
    return payload
