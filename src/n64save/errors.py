"""Error types raised while decoding and encoding N64 save containers."""

from __future__ import annotations

from typing import Any, Iterable


class N64SaveError(ValueError):
    """Base class for every failure reported by :mod:`n64save`."""


class InvalidCartRegion(N64SaveError):
    """Raised when the resolved cart bytes do not match a known save size."""

    def __init__(self, length: int, valid_sizes: Iterable[int] = ()) -> None:
        self.length = length
        self.valid_sizes = tuple(valid_sizes)
        message = f"cart region of {length} bytes is not a known N64 save size"
        if self.valid_sizes:
            listed = ", ".join(str(size) for size in self.valid_sizes)
            message = f"{message} (expected one of: {listed})"
        super().__init__(message)


class MempackStructureError(N64SaveError):
    """Raised when a controller pak slot fails structural parsing."""


class InvalidMempackRegion(N64SaveError):
    """Raised when a mempack slot fails parsing where the region must exist."""

    def __init__(self, slot_index: int, reason: str) -> None:
        self.slot_index = slot_index
        self.reason = reason
        super().__init__(f"mempack slot {slot_index} is invalid: {reason}")


class UnknownRegionIdentifier(N64SaveError, KeyError):
    """Raised when a caller addresses a region outside the fixed enumeration."""

    def __init__(self, identifier: Any) -> None:
        self.identifier = identifier
        super().__init__(f"unknown save region identifier: {identifier!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class CodecConfigError(N64SaveError):
    """Raised when a codec configuration file fails validation."""


__all__ = [
    "CodecConfigError",
    "InvalidCartRegion",
    "InvalidMempackRegion",
    "MempackStructureError",
    "N64SaveError",
    "UnknownRegionIdentifier",
]
