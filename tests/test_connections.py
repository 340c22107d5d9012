import asyncio

from tests.conftest import names


def test_connection_ids_are_unique_and_unbound(dispatcher, connect):
    ids = {connect()[0] for _ in range(50)}

    assert len(ids) == 50
    assert all(dispatcher.connections.binding(cid) is None for cid in ids)
    assert all(cid in dispatcher.broadcaster for cid in ids)


def test_bind_returns_previous_binding(dispatcher, connect):
    cid, _ = connect()
    router = dispatcher.connections

    assert router.bind(cid, "ABCD") is None
    assert router.bind(cid, "EFGH") == "ABCD"
    assert router.unbind(cid) == "EFGH"
    assert router.binding(cid) is None


def test_disconnect_notifies_remaining_members(dispatcher, registry, connect):
    a, sender_a = connect()
    b, _ = connect()
    code, _ = registry.create_room(a, "Ann")
    registry.join_room(code, b, "Bo")
    dispatcher.connections.bind(a, code)
    dispatcher.connections.bind(b, code)

    asyncio.run(dispatcher.connections.disconnect(b))

    assert not dispatcher.connections.is_connected(b)
    assert b not in dispatcher.broadcaster
    update = sender_a.of_type("playersUpdate")[-1]
    assert update["roomCode"] == code
    assert names(update["players"]) == ["Ann"]


def test_disconnect_of_last_member_deletes_room(dispatcher, registry, connect):
    a, sender_a = connect()
    code, _ = registry.create_room(a, "Ann")
    dispatcher.connections.bind(a, code)

    asyncio.run(dispatcher.connections.disconnect(a))

    assert code not in registry
    assert len(registry) == 0
    assert sender_a.frames == []


def test_disconnect_unbound_connection_touches_nothing(dispatcher, registry, connect):
    a, _ = connect()
    b, _ = connect()
    code, _ = registry.create_room(b, "Bo")

    asyncio.run(dispatcher.connections.disconnect(a))

    assert len(dispatcher.connections) == 1
    assert [p.name for p in registry.get_room(code).players] == ["Bo"]


def test_leave_room_that_is_already_gone(dispatcher, connect):
    a, _ = connect()
    assert asyncio.run(dispatcher.connections.leave(a, "ZZZZ")) is False
