import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from allocators import assign_slot, generate_room_code
from errors import InvalidStateError, RoomFullError, RoomNotFoundError
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Player:
    id: str  # connection id, also the key for the connection's sender
    name: str
    slot: str


@dataclass
class Room:
    code: str
    state: Any = None
    players: List[Player] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def used_slots(self):
        return {player.slot for player in self.players}

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None


def is_empty_state(state: Any) -> bool:
    # 0 and False are real game states; only absent or empty containers/strings are rejected
    if state is None:
        return True
    if isinstance(state, (str, dict, list)) and not state:
        return True
    return False


class RoomRegistry:
    """In-memory owner of every live room.

    All methods are synchronous, so each one runs atomically on the event loop.
    Callers that mutate a room and then broadcast the result wrap both steps in
    ``locked(code)`` so that nothing else touches that room in between.
    """

    def __init__(self, code_generator: Optional[Callable[[], str]] = None):
        self._rooms: Dict[str, Room] = {}
        self.code_generator = code_generator or generate_room_code
        logger.info("Initializing in-memory RoomRegistry")

    def __contains__(self, code) -> bool:
        return isinstance(code, str) and code.upper() in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def codes(self) -> List[str]:
        return list(self._rooms)

    def get_room(self, code: str) -> Room:
        room = self._rooms.get((code or "").upper())
        if room is None:
            logger.debug(f"Room {code!r} not found")
            raise RoomNotFoundError()
        return room

    @asynccontextmanager
    async def locked(self, code: str):
        """Hold the room's lock and yield the room, or raise RoomNotFoundError.

        The room is looked up again once the lock is acquired: it may have been
        deleted while we were waiting.
        """
        room = self.get_room(code)
        async with room.lock:
            if self._rooms.get(room.code) is not room:
                logger.debug(f"Room {room.code} was deleted while waiting for its lock")
                raise RoomNotFoundError()
            yield room

    def _fresh_code(self) -> str:
        while True:
            code = self.code_generator().upper()
            if code not in self._rooms:
                return code
            logger.debug(f"Room code {code} already in use, retrying")

    def create_room(self, player_id: str, player_name: str) -> Tuple[str, Player]:
        code = self._fresh_code()
        room = Room(code=code)
        slot = assign_slot(room.used_slots())
        if slot is None:
            raise RoomFullError()

        player = Player(id=player_id, name=player_name, slot=slot)
        room.players.append(player)
        self._rooms[code] = room
        logger.info(f"Room {code} created by {player_name} ({player_id})")
        return code, player

    def join_room(self, code: str, player_id: str, player_name: str) -> Player:
        room = self.get_room(code)

        existing = room.find_player(player_id)
        if existing is not None:
            logger.debug(f"Player {player_id} is already in room {room.code}")
            return existing

        slot = assign_slot(room.used_slots())
        if slot is None:
            logger.info(f"Join rejected: room {room.code} is full ({len(room.players)} players)")
            raise RoomFullError()

        player = Player(id=player_id, name=player_name, slot=slot)
        room.players.append(player)
        logger.info(f"Player {player_name} ({player_id}) joined room {room.code} as {slot}")
        return player

    def update_state(self, code: str, state: Any) -> Room:
        room = self.get_room(code)
        if is_empty_state(state):
            raise InvalidStateError()
        room.state = state
        logger.debug(f"State of room {room.code} replaced")
        return room

    def remove_member(self, code: str, player_id: str) -> bool:
        """Remove a player; returns True if that emptied and deleted the room."""
        room = self.get_room(code)
        room.players = [player for player in room.players if player.id != player_id]
        if room.players:
            logger.info(f"Player {player_id} left room {room.code} ({len(room.players)} remaining)")
            return False

        del self._rooms[room.code]
        logger.info(f"Room {room.code} deleted (empty)")
        return True
