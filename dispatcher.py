import enum
import json
from typing import Any, Dict, Union

from pydantic import ValidationError

from backend import RoomRegistry
from broadcast import BroadcastRouter
from connections import ConnectionRouter
from constants import DEFAULT_PLAYER_NAME, MAX_MESSAGE_DEPTH
from errors import MalformedMessageError, RelayError
from logging_config import get_logger
from schemas.messages import (
    CreateRoomRequest,
    ErrorMessage,
    JoinRoomRequest,
    PlayerInfo,
    PlayersUpdate,
    Pong,
    RoomLeft,
    RoomSnapshot,
    StateUpdate,
    UpdateStateRequest,
    roster,
)

logger = get_logger(__name__)


class DispatchOutcome(str, enum.Enum):
    HANDLED = "handled"
    REJECTED = "rejected"  # an error reply was sent
    IGNORED = "ignored"


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _nesting_exceeds(value: Any, limit: int) -> bool:
    stack = [(value, 1)]
    while stack:
        item, depth = stack.pop()
        if isinstance(item, dict):
            children = item.values()
        elif isinstance(item, list):
            children = item
        else:
            continue
        if depth > limit:
            return True
        stack.extend((child, depth + 1) for child in children)
    return False


def parse_message(raw: Union[str, bytes]) -> Dict[str, Any]:
    try:
        message = json.loads(raw, parse_constant=_reject_constant)
    except (TypeError, ValueError, RecursionError) as e:
        raise MalformedMessageError(f"Bad JSON: {e}")
    if not isinstance(message, dict):
        raise MalformedMessageError("Message is not an object")
    if _nesting_exceeds(message, MAX_MESSAGE_DEPTH):
        raise MalformedMessageError(f"Message nested deeper than {MAX_MESSAGE_DEPTH} levels")
    if not isinstance(message.get("type"), str) or not message["type"]:
        raise MalformedMessageError("Message has no type")
    return message


class MessageDispatcher:
    """Entry point for everything a connection sends.

    Malformed and unrecognized messages are dropped without a reply; room
    errors are answered with an ``error`` message. Neither closes the connection.
    """

    def __init__(self, registry: RoomRegistry = None, broadcaster: BroadcastRouter = None, connections: ConnectionRouter = None):
        self.registry = registry or RoomRegistry()
        self.broadcaster = broadcaster or BroadcastRouter()
        self.connections = connections or ConnectionRouter(self.registry, self.broadcaster)
        self._handlers = {
            "createRoom": self.create_room,
            "joinRoom": self.join_room,
            "updateState": self.update_state,
            "leaveRoom": self.leave_room,
            "ping": self.ping,
        }

    async def handle_message(self, connection_id: str, raw: Union[str, bytes]) -> DispatchOutcome:
        if not self.connections.is_connected(connection_id):
            logger.debug(f"Ignoring message from unknown connection {connection_id}")
            return DispatchOutcome.IGNORED

        try:
            message = parse_message(raw)
        except MalformedMessageError as e:
            logger.debug(f"Dropping malformed message from {connection_id}: {e}")
            return DispatchOutcome.IGNORED

        handler = self._handlers.get(message["type"])
        if handler is None:
            logger.debug(f"Ignoring unrecognized message type {message['type']!r} from {connection_id}")
            return DispatchOutcome.IGNORED

        logger.debug(f"Received {message['type']} from connection {connection_id}")
        try:
            return await handler(connection_id, message)
        except ValidationError as e:
            logger.debug(f"Dropping invalid {message['type']} from {connection_id}: {e.error_count()} errors")
            return DispatchOutcome.IGNORED
        except MalformedMessageError as e:
            logger.debug(f"Dropping malformed message from {connection_id}: {e}")
            return DispatchOutcome.IGNORED
        except RelayError as e:
            logger.info(f"{message['type']} from {connection_id} rejected: {e.message}")
            await self.broadcaster.send(connection_id, ErrorMessage(message=e.message))
            return DispatchOutcome.REJECTED

    async def handle_disconnect(self, connection_id: str):
        await self.connections.disconnect(connection_id)

    async def _rebind(self, connection_id: str, code: str):
        # The new membership is committed first; only then is the old one given up
        previous = self.connections.bind(connection_id, code)
        if previous and previous != code:
            logger.info(f"Connection {connection_id} moved from room {previous} to {code}")
            await self.connections.leave(connection_id, previous)

    async def create_room(self, connection_id: str, message: Dict[str, Any]) -> DispatchOutcome:
        request = CreateRoomRequest.model_validate(message)
        name = request.playerName or DEFAULT_PLAYER_NAME

        code, player = self.registry.create_room(connection_id, name)
        async with self.registry.locked(code) as room:
            await self.broadcaster.send(connection_id, RoomSnapshot(
                type="roomCreated",
                roomCode=room.code,
                you=PlayerInfo.from_player(player),
                players=roster(room),
                state=room.state,
            ))
        await self._rebind(connection_id, code)
        return DispatchOutcome.HANDLED

    async def join_room(self, connection_id: str, message: Dict[str, Any]) -> DispatchOutcome:
        request = JoinRoomRequest.model_validate(message)
        code = (request.roomCode or "").upper()
        name = request.playerName or DEFAULT_PLAYER_NAME

        async with self.registry.locked(code) as room:
            player = self.registry.join_room(room.code, connection_id, name)
            await self.broadcaster.send(connection_id, RoomSnapshot(
                type="roomJoined",
                roomCode=room.code,
                you=PlayerInfo.from_player(player),
                players=roster(room),
                state=room.state,
            ))
            await self.broadcaster.broadcast(room, PlayersUpdate(roomCode=room.code, players=roster(room)))
        await self._rebind(connection_id, code)
        return DispatchOutcome.HANDLED

    async def update_state(self, connection_id: str, message: Dict[str, Any]) -> DispatchOutcome:
        request = UpdateStateRequest.model_validate(message)
        code = (request.roomCode or "").upper()

        bound = self.connections.binding(connection_id)
        if bound is None or bound != code:
            logger.debug(f"Ignoring updateState for room {code!r} from {connection_id} (bound to {bound})")
            return DispatchOutcome.IGNORED

        async with self.registry.locked(code) as room:
            self.registry.update_state(room.code, request.state)
            await self.broadcaster.broadcast(room, StateUpdate(roomCode=room.code, state=room.state))
        return DispatchOutcome.HANDLED

    async def leave_room(self, connection_id: str, message: Dict[str, Any]) -> DispatchOutcome:
        code = self.connections.unbind(connection_id)
        if code is None:
            return DispatchOutcome.IGNORED

        await self.connections.leave(connection_id, code)
        await self.broadcaster.send(connection_id, RoomLeft(roomCode=code))
        return DispatchOutcome.HANDLED

    async def ping(self, connection_id: str, message: Dict[str, Any]) -> DispatchOutcome:
        await self.broadcaster.send(connection_id, Pong())
        return DispatchOutcome.HANDLED
