"""Resize raw save buffers to the size an emulator or cart expects."""

from __future__ import annotations


def resize_raw_save(data: bytes, new_size: int) -> bytes:
    """Return ``data`` truncated or zero-padded at the end to ``new_size`` bytes."""

    if new_size < 0:
        raise ValueError(f"new size must be non-negative, received {new_size}")
    kept = bytes(data[:new_size])
    return kept + bytes(new_size - len(kept))


__all__ = ["resize_raw_save"]
