from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict

# Inbound (client -> server). Unknown extra fields are tolerated.


class InboundMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str


class CreateRoomRequest(InboundMessage):
    playerName: Optional[str] = None


class JoinRoomRequest(InboundMessage):
    roomCode: Optional[str] = None
    playerName: Optional[str] = None


class UpdateStateRequest(InboundMessage):
    roomCode: Optional[str] = None
    state: Any = None


# Outbound (server -> client)


class PlayerInfo(BaseModel):
    id: str
    name: str
    slot: str

    @classmethod
    def from_player(cls, player) -> "PlayerInfo":
        return cls(id=player.id, name=player.name, slot=player.slot)


def roster(room) -> List[PlayerInfo]:
    return [PlayerInfo.from_player(player) for player in room.players]


class RoomSnapshot(BaseModel):
    type: Literal["roomCreated", "roomJoined"]
    roomCode: str
    you: PlayerInfo
    players: List[PlayerInfo]
    state: Any = None


class PlayersUpdate(BaseModel):
    type: Literal["playersUpdate"] = "playersUpdate"
    roomCode: str
    players: List[PlayerInfo]


class StateUpdate(BaseModel):
    type: Literal["stateUpdate"] = "stateUpdate"
    roomCode: str
    state: Any


class RoomLeft(BaseModel):
    type: Literal["roomLeft"] = "roomLeft"
    roomCode: str


class Pong(BaseModel):
    type: Literal["pong"] = "pong"


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    message: str
