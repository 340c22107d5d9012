from fastapi import APIRouter, WebSocket
from fastapi.websockets import WebSocketState

from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(tags=["rooms"])


class WebSocketSender:
    """Send capability handed to the BroadcastRouter for one accepted socket."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str):
        await self.websocket.send_text(data)


@rooms_router.websocket("/")
async def websocket_endpoint(websocket: WebSocket):
    """Relay endpoint: one JSON message per text frame, in both directions."""
    dispatcher = websocket.app.state.dispatcher
    client_host = websocket.client.host if websocket.client else 'unknown'

    await websocket.accept()
    connection_id = dispatcher.connections.connect(WebSocketSender(websocket))
    logger.info(f"WebSocket connection {connection_id} accepted from {client_host}")

    try:
        message_count = 0
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected for connection {connection_id} (code {message.get('code')})")
                break

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection_id}")
            await dispatcher.handle_message(connection_id, raw)
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
    finally:
        await dispatcher.handle_disconnect(connection_id)
        if websocket.application_state == WebSocketState.CONNECTED and websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")
