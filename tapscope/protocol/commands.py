"""
Scope command word codec.

Command word layout:
    Bits    Field
    0-2     opcode
    3-10    tap id
    11+     payload value (configuration opcodes only)

    word = (value << 11) | (tap_id << 3) | opcode
"""

from enum import IntEnum
from typing import Tuple


OPCODE_BITS = 3
TAP_ID_BITS = 8
VALUE_SHIFT = OPCODE_BITS + TAP_ID_BITS   # 11

OPCODE_MASK = (1 << OPCODE_BITS) - 1
TAP_ID_MASK = (1 << TAP_ID_BITS) - 1
MAX_TAP_ID = TAP_ID_MASK


class Opcode(IntEnum):
    """Scope command opcodes (must match the scope RTL)."""
    GET_WIDTH = 0
    GET_COUNT = 1
    GET_START = 2
    GET_DATA = 3
    SET_START = 4
    SET_STOP = 5
    SET_DEPTH = 6

    @property
    def is_config(self) -> bool:
        """Configuration opcodes carry a payload value."""
        return self >= Opcode.SET_START


def encode_command(opcode: Opcode, tap_id: int, value: int = 0) -> int:
    """
    Pack a command word.

    Examples:
        encode_command(Opcode.GET_DATA, 2) = 0x13
        encode_command(Opcode.SET_DEPTH, 1, 256) = (256 << 11) | 0x0E
    """
    opcode = Opcode(opcode)
    if not 0 <= tap_id <= MAX_TAP_ID:
        raise ValueError(f"Tap id out of range: {tap_id}")
    if value < 0:
        raise ValueError(f"Negative command value: {value}")
    if value and not opcode.is_config:
        raise ValueError(f"{opcode.name} does not take a value")
    return (value << VALUE_SHIFT) | (tap_id << OPCODE_BITS) | int(opcode)


def decode_command(word: int) -> Tuple[Opcode, int, int]:
    """Unpack a command word into (opcode, tap_id, value)."""
    opcode = Opcode(word & OPCODE_MASK)
    tap_id = (word >> OPCODE_BITS) & TAP_ID_MASK
    value = word >> VALUE_SHIFT
    return opcode, tap_id, value
