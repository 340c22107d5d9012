import uuid
from typing import Dict, Optional

from backend import RoomRegistry
from broadcast import BroadcastRouter, Sender
from errors import RoomNotFoundError
from logging_config import get_logger
from schemas.messages import PlayersUpdate, roster

logger = get_logger(__name__)


class ConnectionRouter:
    """Tracks live connections and the one room each is bound to (if any)."""

    def __init__(self, registry: RoomRegistry, broadcaster: BroadcastRouter):
        self.registry = registry
        self.broadcaster = broadcaster
        # connection_id -> room code, None while unbound
        self._bindings: Dict[str, Optional[str]] = {}

    def __len__(self) -> int:
        return len(self._bindings)

    def connect(self, sender: Sender) -> str:
        connection_id = str(uuid.uuid4())
        self._bindings[connection_id] = None
        self.broadcaster.register(connection_id, sender)
        logger.info(f"Connection {connection_id} opened ({len(self._bindings)} live)")
        return connection_id

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self._bindings

    def binding(self, connection_id: str) -> Optional[str]:
        return self._bindings.get(connection_id)

    def bind(self, connection_id: str, code: str) -> Optional[str]:
        """Bind the connection to ``code`` and return the code it was bound to before."""
        previous = self._bindings.get(connection_id)
        self._bindings[connection_id] = code
        logger.debug(f"Connection {connection_id} bound to room {code}")
        return previous

    def unbind(self, connection_id: str) -> Optional[str]:
        previous = self._bindings.get(connection_id)
        if connection_id in self._bindings:
            self._bindings[connection_id] = None
        return previous

    async def leave(self, connection_id: str, code: str) -> bool:
        """Remove the connection's player from ``code``; True if the room was deleted."""
        try:
            async with self.registry.locked(code) as room:
                deleted = self.registry.remove_member(room.code, connection_id)
                if not deleted:
                    await self.broadcaster.broadcast(room, PlayersUpdate(roomCode=room.code, players=roster(room)))
                return deleted
        except RoomNotFoundError:
            logger.debug(f"Room {code} already gone when connection {connection_id} left")
            return False

    async def disconnect(self, connection_id: str):
        self.broadcaster.unregister(connection_id)
        code = self._bindings.pop(connection_id, None)
        logger.info(f"Connection {connection_id} closed ({len(self._bindings)} live)")
        if code:
            await self.leave(connection_id, code)
