# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Real-time course update rooms.

Connected clients join the room of a course (``course:<id>``) and receive
every ``course:update`` relayed to it. Each client event is answered with
``<event>:success`` or ``<event>:error``.

Client messages are JSON objects:

    {"event": "course:join", "data": {"course_id": 12}}
    {"event": "course:update", "data": {"course_id": 12, "tenant_id": 5,
                                       "update": {"title": "New module"}}}
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Protocol

from src.core.errors import AppError
from src.domains.common.scoping import Actor
from src.models.enums import UserType
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

EVENT_JOIN = "course:join"
EVENT_LEAVE = "course:leave"
EVENT_UPDATE = "course:update"
EVENTS = frozenset({EVENT_JOIN, EVENT_LEAVE, EVENT_UPDATE})

UPDATE_ROLES = frozenset({UserType.TEACHER, UserType.TENANT_ADMIN, UserType.SUPER_ADMIN})

# Loads a course visible to the actor, raising AppError otherwise
CourseLookup = Callable[[int, Actor], Awaitable[Any]]


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...


def room_name(course_id: int) -> str:
    return f"course:{course_id}"


def _timestamp() -> str:
    return utc_now().isoformat()


class CourseRoomManager:
    """Tracks which connections sit in which course room.

    Attributes:
        _rooms: Room name to the set of member connections.
        _lock: Guards room membership changes.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, set[Connection]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def join(self, course_id: int, connection: Connection) -> None:
        async with self._lock:
            self._rooms[room_name(course_id)].add(connection)

    async def leave(self, course_id: int, connection: Connection) -> None:
        async with self._lock:
            self._discard(room_name(course_id), connection)

    async def disconnect(self, connection: Connection) -> None:
        """Remove a connection from every room it joined."""
        async with self._lock:
            for name in list(self._rooms):
                self._discard(name, connection)

    def members(self, course_id: int) -> int:
        return len(self._rooms.get(room_name(course_id), ()))

    def is_member(self, course_id: int, connection: Connection) -> bool:
        return connection in self._rooms.get(room_name(course_id), ())

    async def broadcast(self, course_id: int, message: dict[str, Any]) -> int:
        """Send a message to every member of a course room.

        Connections that fail to receive are dropped from all rooms.

        Returns:
            Number of connections the message reached.
        """
        members = list(self._rooms.get(room_name(course_id), ()))
        delivered = 0
        stale = []
        for connection in members:
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as e:
                logger.debug("Dropping stale connection from %s: %s", room_name(course_id), e)
                stale.append(connection)

        for connection in stale:
            await self.disconnect(connection)
        return delivered

    async def broadcast_course_update(
        self, course_id: int, update: dict[str, Any], timestamp: str | None = None
    ) -> int:
        """Relay a course update to the course room, stamping the server time."""
        payload = {**update, "course_id": course_id, "timestamp": timestamp or _timestamp()}
        delivered = await self.broadcast(course_id, {"event": EVENT_UPDATE, "data": payload})
        logger.info("Course update broadcast to course %s (%s clients)", course_id, delivered)
        return delivered

    def _discard(self, name: str, connection: Connection) -> None:
        members = self._rooms.get(name)
        if members is None:
            return
        members.discard(connection)
        if not members:
            del self._rooms[name]


class CourseEventHandler:
    """Applies client events of one connection to the rooms.

    Attributes:
        _rooms: Room registry shared by all connections.
        _lookup_course: Loads a course within the actor's tenant.
    """

    def __init__(self, rooms: CourseRoomManager, lookup_course: CourseLookup) -> None:
        self._rooms = rooms
        self._lookup_course = lookup_course

    async def handle(self, connection: Connection, actor: Actor, message: Any) -> None:
        """Process one client message and acknowledge it."""
        event = message.get("event") if isinstance(message, dict) else None
        if event not in EVENTS:
            await connection.send_json(
                {
                    "event": "error",
                    "data": {
                        "code": "UNKNOWN_EVENT",
                        "message": f"Unsupported event: {event}",
                        "timestamp": _timestamp(),
                    },
                }
            )
            return

        data = message.get("data")
        if not isinstance(data, dict):
            data = {"course_id": data}
        try:
            course_id = int(data.get("course_id"))
        except (TypeError, ValueError):
            await self._error(connection, event, "INVALID_COURSE_ID", "course_id must be an integer")
            return

        try:
            if event == EVENT_JOIN:
                await self._join(connection, actor, course_id)
            elif event == EVENT_LEAVE:
                await self._leave(connection, actor, course_id)
            else:
                await self._update(connection, actor, course_id, data)
        except AppError as exc:
            await self._error(connection, event, exc.error_code, exc.message)

    async def _join(self, connection: Connection, actor: Actor, course_id: int) -> None:
        await self._lookup_course(course_id, actor)
        await self._rooms.join(course_id, connection)
        logger.info("User %s joined course room for course %s", actor.id, course_id)
        await self._success(connection, EVENT_JOIN, {"course_id": course_id, "joined": True})

    async def _leave(self, connection: Connection, actor: Actor, course_id: int) -> None:
        await self._rooms.leave(course_id, connection)
        logger.info("User %s left course room for course %s", actor.id, course_id)
        await self._success(connection, EVENT_LEAVE, {"course_id": course_id, "left": True})

    async def _update(
        self, connection: Connection, actor: Actor, course_id: int, data: dict[str, Any]
    ) -> None:
        if actor.user_type not in UPDATE_ROLES:
            logger.warning(
                "User %s with role %s attempted to send a course update",
                actor.id,
                actor.user_type.value,
            )
            await self._error(
                connection, EVENT_UPDATE, "FORBIDDEN", "Only teachers and admins can send updates"
            )
            return

        tenant_id = data.get("tenant_id", actor.tenant_id)
        if not actor.is_super_admin and tenant_id != actor.tenant_id:
            logger.warning(
                "User %s (tenant %s) tried to update a course in tenant %s",
                actor.id,
                actor.tenant_id,
                tenant_id,
            )
            await self._error(
                connection, EVENT_UPDATE, "TENANT_MISMATCH", "Cannot update courses of another tenant"
            )
            return

        course = await self._lookup_course(course_id, actor)
        update = {
            "tenant_id": getattr(course, "tenant_id", tenant_id),
            "update": data.get("update", {}),
            "updated_by": actor.id,
        }
        delivered = await self._rooms.broadcast_course_update(course_id, update)
        await self._success(
            connection, EVENT_UPDATE, {"course_id": course_id, "delivered": delivered}
        )

    async def _success(self, connection: Connection, event: str, data: dict[str, Any]) -> None:
        await connection.send_json(
            {"event": f"{event}:success", "data": {**data, "timestamp": _timestamp()}}
        )

    async def _error(self, connection: Connection, event: str, code: str, message: str) -> None:
        await connection.send_json(
            {
                "event": f"{event}:error",
                "data": {"code": code, "message": message, "timestamp": _timestamp()},
            }
        )


# Singleton room registry shared by the websocket endpoint and REST updates
_course_rooms: CourseRoomManager | None = None


def get_course_rooms() -> CourseRoomManager:
    global _course_rooms
    if _course_rooms is None:
        _course_rooms = CourseRoomManager()
    return _course_rooms
