"""Per-user WebSocket channels for real-time notification delivery."""

import json
import time
from collections import defaultdict
from typing import Any, Dict, Set

from fastapi import WebSocket

from ..logging_config import get_logger

logger = get_logger("realtime")


class ConnectionManager:
    """Tracks open sockets per user and pushes JSON events to them.

    A user may hold several sockets at once (several tabs or devices);
    every one of them receives the user's events.
    """

    def __init__(self) -> None:
        self.user_connections: Dict[int, Set[WebSocket]] = defaultdict(set)
        self.connection_metadata: Dict[WebSocket, Dict[str, Any]] = {}

    async def connect(self, websocket: WebSocket, user_id: int) -> None:
        await websocket.accept()
        self.user_connections[user_id].add(websocket)
        self.connection_metadata[websocket] = {
            "user_id": user_id,
            "connected_at": time.time(),
        }
        logger.info(
            f"User {user_id} joined notification channel",
            extra={"user_id": user_id, "connections": len(self.user_connections[user_id])},
        )

    def disconnect(self, websocket: WebSocket) -> None:
        metadata = self.connection_metadata.pop(websocket, {})
        user_id = metadata.get("user_id")
        if user_id is None:
            return

        sockets = self.user_connections.get(user_id)
        if sockets is not None:
            sockets.discard(websocket)
            if not sockets:
                del self.user_connections[user_id]
        logger.info(f"User {user_id} left notification channel", extra={"user_id": user_id})

    def is_connected(self, user_id: int) -> bool:
        return bool(self.user_connections.get(user_id))

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> int:
        """Send an event to every socket of a user.

        Sockets that fail are dropped from the channel.

        Returns:
            int: Number of sockets the event reached
        """
        if user_id not in self.user_connections:
            logger.debug(f"No connections found for user {user_id}")
            return 0

        message_str = json.dumps(message, default=str)
        delivered = 0
        dead_connections = set()

        for websocket in self.user_connections[user_id].copy():
            try:
                await websocket.send_text(message_str)
                delivered += 1
            except Exception as e:
                logger.warning(
                    f"Failed to send event to user {user_id}: {e}",
                    extra={"user_id": user_id},
                )
                dead_connections.add(websocket)

        for websocket in dead_connections:
            self.disconnect(websocket)

        return delivered

    def get_connection_stats(self) -> dict[str, Any]:
        return {
            "connected_users": len(self.user_connections),
            "total_connections": len(self.connection_metadata),
        }


connection_manager = ConnectionManager()
