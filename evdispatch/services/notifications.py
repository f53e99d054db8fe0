"""Staff notification fan-out: persist to the inbox, push to live sockets."""

from __future__ import annotations

import logging
from collections import defaultdict

from fastapi import WebSocket
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from evdispatch.db import crud
from evdispatch.schemas.notification import NotificationPayload, NotificationRead

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Live sockets per staff member; a user may have several devices open."""

    def __init__(self):
        self._sockets: dict[str, list[WebSocket]] = defaultdict(list)

    async def connect(self, user_id: str, websocket: WebSocket):
        await websocket.accept()
        self._sockets[user_id].append(websocket)
        logger.debug("User %s connected (%d socket(s))", user_id, len(self._sockets[user_id]))

    def disconnect(self, user_id: str, websocket: WebSocket):
        sockets = self._sockets.get(user_id)
        if sockets and websocket in sockets:
            sockets.remove(websocket)
        if not sockets:
            self._sockets.pop(user_id, None)

    def is_online(self, user_id: str) -> bool:
        return bool(self._sockets.get(user_id))

    async def send(self, user_id: str, message: dict) -> int:
        """Push ``message`` to every open socket of ``user_id``; returns how many got it."""
        delivered = 0
        for ws in list(self._sockets.get(user_id, [])):
            try:
                await ws.send_json(message)
            except Exception:
                logger.info("Dropping closed socket for user %s", user_id)
                self.disconnect(user_id, ws)
            else:
                delivered += 1
        return delivered


ws_manager = ConnectionManager()


class NotificationDispatcher:
    """Deliver ``(recipient_id, payload)`` pairs emitted by the state machine.

    Delivery is best effort. A failed write is logged and reported through
    the return value; it never undoes the transition that produced it.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], connections: ConnectionManager | None = None):
        self._session_factory = session_factory
        self._connections = connections or ws_manager

    async def notify(self, user_id: str, payload: NotificationPayload) -> bool:
        return await self.dispatch([(user_id, payload)]) == 1

    async def dispatch(self, notifications: list[tuple[str, NotificationPayload]]) -> int:
        """Returns how many notifications were stored."""
        if not notifications:
            return 0
        rows = [
            {
                "user_id": user_id,
                "type": p.type,
                "title": p.title,
                "message": p.message,
                "related_id": p.related_id,
            }
            for user_id, p in notifications
        ]
        try:
            async with self._session_factory() as db:
                stored = await crud.create_notifications(db, rows)
        except SQLAlchemyError:
            logger.exception("Failed to store %d notification(s)", len(rows))
            return 0

        for n in stored:
            message = NotificationRead.model_validate(n).model_dump(mode="json")
            await self._connections.send(n.user_id, {"event": "notification", "data": message})
        logger.info("Dispatched %d notification(s)", len(stored))
        return len(stored)
