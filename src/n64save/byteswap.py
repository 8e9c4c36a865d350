"""Word-level byte order transform applied to controller pak data."""

from __future__ import annotations

import struct

WORD_SIZE = 4


def swap_words(data: bytes | bytearray | memoryview) -> bytes:
    """Return ``data`` with the bytes of every 32-bit word reversed.

    The transform maps the MiSTer transport layout to the canonical layout
    used by PC emulators and back again; applying it twice is a no-op.
    """

    length = len(data)
    if length % WORD_SIZE:
        raise ValueError(
            f"buffer length {length} is not a multiple of {WORD_SIZE} bytes"
        )
    count = length // WORD_SIZE
    words = struct.unpack(f"<{count}I", data)
    return struct.pack(f">{count}I", *words)


__all__ = ["WORD_SIZE", "swap_words"]
