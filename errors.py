from constants import MISSING_STATE_MESSAGE, ROOM_FULL_MESSAGE, ROOM_NOT_FOUND_MESSAGE


class RelayError(Exception):
    """Base class for recoverable, per-request relay errors.

    ``message`` is the text sent back to the client in an ``error`` reply.
    """

    default_message = "Request failed."

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RoomNotFoundError(RelayError):
    default_message = ROOM_NOT_FOUND_MESSAGE


class RoomFullError(RelayError):
    default_message = ROOM_FULL_MESSAGE


class InvalidStateError(RelayError):
    default_message = MISSING_STATE_MESSAGE


class MalformedMessageError(RelayError):
    """Inbound frame that can't be parsed or classified. Never reported to the client."""

    default_message = "Malformed message."
