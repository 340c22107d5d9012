import asyncio

from backend import RoomRegistry
from broadcast import BroadcastRouter
from schemas.messages import Pong, StateUpdate
from tests.conftest import FakeSender, sequential_codes


def make_room(*player_ids):
    registry = RoomRegistry(code_generator=sequential_codes("ABCD"))
    code, _ = registry.create_room(player_ids[0], "host")
    for player_id in player_ids[1:]:
        registry.join_room(code, player_id, player_id)
    return registry.get_room(code)


def test_broadcast_reaches_every_open_member():
    room = make_room("a", "b", "c")
    broadcaster = BroadcastRouter()
    senders = {player_id: FakeSender() for player_id in ("a", "b", "c")}
    for player_id, sender in senders.items():
        broadcaster.register(player_id, sender)

    delivered = asyncio.run(broadcaster.broadcast(room, StateUpdate(roomCode="ABCD", state={"turn": 1})))

    assert delivered == 3
    frames = {sender.frames[0] for sender in senders.values()}
    assert len(frames) == 1
    assert senders["a"].messages == [{"type": "stateUpdate", "roomCode": "ABCD", "state": {"turn": 1}}]


def test_closed_and_unknown_members_are_skipped():
    room = make_room("a", "b", "c")
    broadcaster = BroadcastRouter()
    open_sender, closed_sender = FakeSender(), FakeSender(is_open=False)
    broadcaster.register("a", open_sender)
    broadcaster.register("b", closed_sender)
    # "c" never registered

    delivered = asyncio.run(broadcaster.broadcast(room, Pong()))

    assert delivered == 1
    assert open_sender.messages == [{"type": "pong"}]
    assert closed_sender.frames == []


def test_failed_send_does_not_stop_fan_out():
    room = make_room("a", "b")
    broadcaster = BroadcastRouter()
    broken, healthy = FakeSender(fail=True), FakeSender()
    broadcaster.register("a", broken)
    broadcaster.register("b", healthy)

    delivered = asyncio.run(broadcaster.broadcast(room, Pong()))

    assert delivered == 1
    assert healthy.messages == [{"type": "pong"}]


def test_send_to_single_connection():
    broadcaster = BroadcastRouter()
    sender = FakeSender()
    broadcaster.register("a", sender)

    assert asyncio.run(broadcaster.send("a", Pong())) is True
    assert asyncio.run(broadcaster.send("missing", Pong())) is False
    assert sender.messages == [{"type": "pong"}]


def test_unregister_stops_delivery():
    broadcaster = BroadcastRouter()
    sender = FakeSender()
    broadcaster.register("a", sender)

    assert broadcaster.unregister("a") is sender
    assert "a" not in broadcaster
    assert asyncio.run(broadcaster.send("a", Pong())) is False
