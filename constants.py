import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8080))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Excludes I, L, O, S, 0, 1 and 5
ROOM_CODE_ALPHABET = "ABCDEFGHJKMNPQRTUVWXYZ2346789"
ROOM_CODE_LENGTH = 4

# Priority order: the first free color is handed out
SLOT_PALETTE = ("red", "blue", "yellow", "green")

DEFAULT_PLAYER_NAME = "Player"

ROOM_NOT_FOUND_MESSAGE = "Room not found."
ROOM_FULL_MESSAGE = "Room is full."
MISSING_STATE_MESSAGE = "Missing state."

# Deepest object/array nesting accepted in an inbound frame
MAX_MESSAGE_DEPTH = 100
