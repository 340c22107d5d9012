import json
from typing import Dict, Optional, Protocol

from pydantic import BaseModel

from backend import Room
from logging_config import get_logger

logger = get_logger(__name__)


class Sender(Protocol):
    """Send capability for one live connection."""

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...


def serialize(message: BaseModel) -> str:
    return json.dumps(message.model_dump())


class BroadcastRouter:
    """Maps connection ids to their senders and fans messages out to rooms.

    Delivery is best effort: closed connections are skipped and a failed send
    is logged, never retried or queued.
    """

    def __init__(self):
        self._senders: Dict[str, Sender] = {}

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._senders

    def register(self, connection_id: str, sender: Sender):
        self._senders[connection_id] = sender

    def unregister(self, connection_id: str) -> Optional[Sender]:
        return self._senders.pop(connection_id, None)

    async def _deliver(self, connection_id: str, data: str) -> bool:
        sender = self._senders.get(connection_id)
        if sender is None or not sender.is_open:
            logger.debug(f"Skipping connection {connection_id}: not open")
            return False
        try:
            await sender.send_text(data)
            return True
        except Exception as e:
            logger.warning(f"Error sending to connection {connection_id}: {e}")
            return False

    async def send(self, connection_id: str, message: BaseModel) -> bool:
        return await self._deliver(connection_id, serialize(message))

    async def broadcast(self, room: Room, message: BaseModel) -> int:
        data = serialize(message)
        delivered = 0
        for player in list(room.players):
            if await self._deliver(player.id, data):
                delivered += 1
        logger.debug(f"Broadcast {message.type} to {delivered}/{len(room.players)} connections in room {room.code}")
        return delivered
