import json

import pytest

from backend import RoomRegistry
from dispatcher import MessageDispatcher


class FakeSender:
    """In-memory stand-in for a WebSocket: records every frame it is asked to send."""

    def __init__(self, is_open=True, fail=False):
        self.is_open = is_open
        self.fail = fail
        self.frames = []

    async def send_text(self, data):
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.frames.append(data)

    @property
    def messages(self):
        return [json.loads(frame) for frame in self.frames]

    def of_type(self, message_type):
        return [message for message in self.messages if message["type"] == message_type]

    def clear(self):
        self.frames.clear()


def sequential_codes(*codes):
    """Code generator that hands out ``codes`` in order."""
    remaining = iter(codes)
    return lambda: next(remaining)


@pytest.fixture
def registry():
    return RoomRegistry(code_generator=sequential_codes("ABCD", "EFGH", "JKMN", "PQRT", "UVWX"))


@pytest.fixture
def dispatcher(registry):
    return MessageDispatcher(registry=registry)


@pytest.fixture
def connect(dispatcher):
    """Open a fake connection on the dispatcher; returns (connection_id, sender)."""

    def _connect(**kwargs):
        sender = FakeSender(**kwargs)
        return dispatcher.connections.connect(sender), sender

    return _connect


def names(players):
    return [player["name"] for player in players]
