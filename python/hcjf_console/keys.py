"""Raw input chunk → logical key classification."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator, Optional

ESC = 0x1B
CHUNK_SIZE = 8


class KeyKind(enum.Enum):
    PRINTABLE = "printable"
    ENTER = "enter"
    DELETE = "delete"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class KeyEvent:
    kind: KeyKind
    char: Optional[str] = None


def chunk_value(chunk: bytes) -> int:
    """Little-endian accumulation: byte ``i`` contributes ``b << (8 * i)``."""
    return int.from_bytes(chunk, "little")


# Integer views of the known key sequences.
KEY_PATTERNS = {
    chunk_value(b"\n"): KeyKind.ENTER,
    chunk_value(b"\r"): KeyKind.ENTER,
    chunk_value(b"\x7f"): KeyKind.DELETE,
    chunk_value(b"\x08"): KeyKind.DELETE,
    chunk_value(b"\x1b[3~"): KeyKind.DELETE,
    chunk_value(b"\x1b[D"): KeyKind.LEFT,
    chunk_value(b"\x1b[C"): KeyKind.RIGHT,
    chunk_value(b"\x1b[A"): KeyKind.UP,
    chunk_value(b"\x1b[B"): KeyKind.DOWN,
    chunk_value(b"\x1bOD"): KeyKind.LEFT,
    chunk_value(b"\x1bOC"): KeyKind.RIGHT,
    chunk_value(b"\x1bOA"): KeyKind.UP,
    chunk_value(b"\x1bOB"): KeyKind.DOWN,
}

UNKNOWN_KEY = KeyEvent(KeyKind.UNKNOWN)


def decode_key(chunk: bytes) -> KeyEvent:
    """Classify one self-contained input chunk.

    Trailing zero padding does not change the integer view, so a fixed-size
    zero-filled read buffer classifies the same as the exact bytes.
    """
    value = chunk_value(chunk)
    kind = KEY_PATTERNS.get(value)
    if kind is not None:
        return KeyEvent(kind)
    if value == value & 0xFF:
        char = chr(value)
        if char.isprintable():
            return KeyEvent(KeyKind.PRINTABLE, char)
    return UNKNOWN_KEY


def split_input(data: bytes) -> Iterator[bytes]:
    """Split one read into per-key chunks.

    Escape sequences (``ESC [ ... final`` and ``ESC O x``) and multi-byte
    UTF-8 characters stay whole; every other byte is its own chunk.  A burst
    of typed or pasted characters thus decodes key by key instead of
    collapsing into one unknown value.  A lone ESC, or ESC followed by any
    other byte, is a chunk of its own.
    """
    index = 0
    size = len(data)
    while index < size:
        byte = data[index]
        if byte >= 0x80:
            end = index + 1
            while end < size and 0x80 <= data[end] <= 0xBF:
                end += 1
            yield data[index:end]
            index = end
            continue
        if byte != ESC or index + 1 >= size:
            yield data[index : index + 1]
            index += 1
            continue
        end = index + 1
        introducer = data[end]
        if introducer == ord("["):
            end += 1
            while end < size and not 0x40 <= data[end] <= 0x7E:
                end += 1
            end = min(end + 1, size)
        elif introducer == ord("O"):
            end = min(end + 2, size)
        yield data[index:end]
        index = end
