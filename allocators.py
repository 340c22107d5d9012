import random
from typing import Iterable, Optional, Sequence

from constants import ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH, SLOT_PALETTE


def generate_room_code(length: int = ROOM_CODE_LENGTH, alphabet: str = ROOM_CODE_ALPHABET) -> str:
    # Not unique on its own; RoomRegistry retries until the code is free
    return ''.join(random.choices(alphabet, k=length))


def assign_slot(used_slots: Iterable[str], palette: Sequence[str] = SLOT_PALETTE) -> Optional[str]:
    """Return the first palette color not in ``used_slots``, or None if the room is full."""
    used = set(used_slots)
    for slot in palette:
        if slot not in used:
            return slot
    return None
