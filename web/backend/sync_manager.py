import asyncio
import time
from typing import Any, Callable, Optional

from fastapi import WebSocket
from loguru import logger

from soloist.domain.playback import (
    BroadcastChannel,
    PlayAnnouncement,
    PlaybackSession,
    get_session,
    has_session,
)


class SyncManager:
    """Manages WebSocket connections and broadcasts playback updates.

    Also relays play announcements made by server-side sessions to every
    connected client, so browser players can pause themselves.
    """

    def __init__(self):
        self.connections: list[WebSocket] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._pending: set[asyncio.Task] = set()

    async def connect(self, ws: WebSocket) -> None:
        """Accept and store a new WebSocket connection."""
        await ws.accept()
        self.connections.append(ws)

    def disconnect(self, ws: WebSocket) -> None:
        """Remove a WebSocket connection."""
        if ws in self.connections:
            self.connections.remove(ws)

    def get_current_state(self) -> dict:
        """Get current playback state for new connections."""
        return {
            "playback": get_session().state.to_dict() if has_session() else None,
            "server_time": time.time(),
        }

    async def broadcast_playback_state(self, session: PlaybackSession) -> None:
        await self.broadcast("playback:state", session.state.to_dict())

    def attach_channel(self, channel: BroadcastChannel, loop: asyncio.AbstractEventLoop) -> None:
        """Start relaying server-side announcements on channel to clients."""
        self.detach_channel()
        self._loop = loop
        self._unsubscribe = channel.subscribe(self._on_announcement)

    def detach_channel(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._loop = None

    def _on_announcement(self, announcement: PlayAnnouncement) -> None:
        # Announcements from clients are not echoed back
        if announcement.origin is None or self._loop is None:
            return

        task = self._loop.create_task(
            self.broadcast(
                "playback:announce",
                {"trackId": announcement.track_id, "origin": announcement.origin},
            )
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def broadcast(self, event_type: str, data: Any) -> None:
        """Send a message to all connected clients."""
        message = {
            "type": event_type,
            "data": data,
            "ts": time.time(),
        }
        dead_connections: list[WebSocket] = []

        for conn in self.connections:
            try:
                await conn.send_json(message)
            except Exception:
                dead_connections.append(conn)

        for conn in dead_connections:
            logger.debug("Dropping dead WebSocket connection")
            self.connections.remove(conn)


# Singleton instance
sync_manager = SyncManager()
