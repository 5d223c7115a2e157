"""Real-time notification channel.

Clients open ``/ws/notifications?token=<jwt>`` and receive a
``newNotification`` event for every notification stored for them. The
channel is push-only; anything the client sends is ignored.
"""

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from ..dependencies import get_auth_service, get_connection_manager
from ..logging_config import get_logger
from ..services.auth_service import AuthenticationError, AuthService
from ..services.realtime import ConnectionManager

router = APIRouter(tags=["realtime"])
logger = get_logger("websockets")


@router.websocket("/ws/notifications")
async def notifications_channel(
    websocket: WebSocket,
    token: str | None = Query(default=None),
    auth_service: AuthService = Depends(get_auth_service),
    connections: ConnectionManager = Depends(get_connection_manager),
) -> None:
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        user_id = auth_service.user_id_from_token(token)
    except AuthenticationError as e:
        logger.info(f"Rejected notification channel: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await connections.connect(websocket, user_id)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        connections.disconnect(websocket)
