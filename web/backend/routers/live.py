import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from soloist.domain.playback import get_session, has_session, playback_channel

from ..sync_manager import sync_manager

router = APIRouter()


@router.websocket("/ws/sync")
async def sync_websocket(websocket: WebSocket):
    """WebSocket endpoint for real-time playback synchronization."""
    await sync_manager.connect(websocket)

    try:
        # Send current state immediately
        await websocket.send_json({
            "type": "sync:full",
            "data": sync_manager.get_current_state(),
        })

        # Handle incoming messages
        while True:
            message = await websocket.receive_text()
            try:
                data = json.loads(message)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON from WebSocket: {message}")
                continue

            if not isinstance(data, dict):
                continue

            if data.get("type") == "playback:announce":
                # A browser player started; server sessions playing something else pause
                track_id = data.get("trackId")
                if track_id is None:
                    continue
                playback_channel.publish(str(track_id), origin=None)
                if has_session():
                    await sync_manager.broadcast_playback_state(get_session())

    except WebSocketDisconnect:
        sync_manager.disconnect(websocket)
