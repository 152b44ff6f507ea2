"""
Websocket delivery of domain events.

Every EntityChanged event is broadcast to all connected clients; a
NotificationCreated event goes only to the sockets of its recipient. Pushing
is best-effort: the persisted rows are the source of truth and a client that
misses a push sees the change on its next fetch.
"""

import asyncio
from collections import defaultdict
from typing import Dict, Set
import logging

from fastapi import WebSocket

from utils.events import EntityChanged, NotificationCreated

logger = logging.getLogger("realtime")


class ConnectionManager:
    def __init__(self):
        self._connections: Dict[int, Set[WebSocket]] = defaultdict(set)
        self._loop = None

    def bind_loop(self, loop) -> None:
        """Remember the server loop so worker threads can schedule sends on it."""
        self._loop = loop

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections[user_id].add(websocket)
        logger.info(f"User {user_id} connected to realtime channel")

    def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        sockets = self._connections.get(user_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            self._connections.pop(user_id, None)
        logger.info(f"User {user_id} disconnected from realtime channel")

    def connection_count(self) -> int:
        return sum(len(sockets) for sockets in self._connections.values())

    async def send_to_user(self, user_id: int, message: dict) -> None:
        for websocket in list(self._connections.get(user_id, ())):
            try:
                await websocket.send_json(message)
            except Exception:
                logger.warning(f"Dropping dead socket for user {user_id}", exc_info=True)
                self.disconnect(user_id, websocket)

    async def broadcast(self, message: dict) -> None:
        for user_id in list(self._connections.keys()):
            await self.send_to_user(user_id, message)

    def handle_event(self, event) -> None:
        """Event bus subscriber."""
        if isinstance(event, EntityChanged):
            message = {
                "event": f"{event.entity_type}_change",
                "type": event.operation,
                "id": event.entity_id,
                "data": event.payload,
            }
            self._schedule(self.broadcast(message))
        elif isinstance(event, NotificationCreated):
            message = {"event": "notification", "data": event.notification}
            self._schedule(self.send_to_user(event.user_id, message))

    def _schedule(self, coro) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            coro.close()
            logger.debug("No running server loop; realtime push skipped")
            return
        try:
            future = asyncio.run_coroutine_threadsafe(coro, loop)
        except RuntimeError:
            coro.close()
            logger.warning("Server loop unavailable; realtime push skipped", exc_info=True)
            return
        future.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning(f"Realtime push failed: {exc!r}")


manager = ConnectionManager()
