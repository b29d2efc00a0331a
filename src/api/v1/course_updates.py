# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course update WebSocket API endpoint.

This module provides:
- WebSocket /ws/courses - Real-time course update relay

Usage:
    const ws = new WebSocket("wss://host/ws/courses?token=<access token>");
    ws.send(JSON.stringify({event: "course:join", data: {course_id: 12}}));

Clients join course rooms and receive ``course:update`` events sent by
teachers and administrators of the same tenant.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from src.api.middleware.auth import CurrentUser
from src.core.config import get_settings
from src.domains.auth import JWTManager, TokenStore
from src.domains.auth.jwt import InvalidTokenError, TokenExpiredError
from src.domains.common.scoping import Actor
from src.domains.course import CourseEventHandler, CourseService, get_course_rooms
from src.infrastructure.cache import get_redis
from src.infrastructure.database.connection import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


async def _authenticate_websocket(token: str | None) -> CurrentUser | None:
    """Authenticate a WebSocket connection using an access token.

    Returns:
        CurrentUser if the token is valid and not revoked, None otherwise.
    """
    if not token:
        return None

    try:
        payload = JWTManager(get_settings().jwt).decode_token(token, expected_type="access")
        user = CurrentUser(payload)
    except (TokenExpiredError, InvalidTokenError, ValueError) as e:
        logger.debug("WebSocket auth failed: %s", str(e))
        return None

    if await TokenStore(get_redis()).is_blacklisted(token):
        logger.debug("WebSocket auth failed: token revoked for %s", user.id)
        return None
    return user


async def _lookup_course(course_id: int, actor: Actor) -> Any:
    async with get_session() as db:
        return await CourseService(db).get_course(course_id, actor)


@router.websocket("/courses")
async def course_updates_websocket(websocket: WebSocket) -> None:
    """WebSocket endpoint relaying course updates between room members.

    Args:
        websocket: WebSocket connection.
    """
    user = await _authenticate_websocket(websocket.query_params.get("token"))
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication required")
        return

    await websocket.accept()
    actor = user.to_actor(websocket.client.host if websocket.client else None)
    rooms = get_course_rooms()
    handler = CourseEventHandler(rooms, _lookup_course)
    logger.info("Course socket connected: user=%s tenant=%s", actor.id, actor.tenant_id)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                message = None
            await handler.handle(websocket, actor, message)
    except WebSocketDisconnect:
        logger.info("Course socket disconnected: user=%s", actor.id)
    finally:
        await rooms.disconnect(websocket)
