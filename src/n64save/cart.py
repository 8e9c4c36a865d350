"""Cart save size rules for N64 EEPROM, SRAM, and Flash RAM saves."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .errors import InvalidCartRegion


@dataclass(frozen=True)
class CartSaveType:
    """A cartridge save medium identified purely by its byte length."""

    name: str
    size: int
    file_extension: str


EEPROM_4KBIT = CartSaveType("EEPROM 4 Kbit", 512, "eep")
EEPROM_16KBIT = CartSaveType("EEPROM 16 Kbit", 2 * 1024, "eep")
SRAM_256KBIT = CartSaveType("SRAM 256 Kbit", 32 * 1024, "sra")
# Dezaemon 3D only.
SRAM_768KBIT = CartSaveType("SRAM 768 Kbit", 96 * 1024, "sra")
FLASH_RAM_1MBIT = CartSaveType("Flash RAM 1 Mbit", 128 * 1024, "fla")

CART_SAVE_TYPES: Tuple[CartSaveType, ...] = (
    EEPROM_4KBIT,
    EEPROM_16KBIT,
    SRAM_256KBIT,
    SRAM_768KBIT,
    FLASH_RAM_1MBIT,
)

_TYPES_BY_SIZE: Dict[int, CartSaveType] = {
    save_type.size: save_type for save_type in CART_SAVE_TYPES
}

VALID_CART_SIZES: Tuple[int, ...] = tuple(sorted(_TYPES_BY_SIZE))


def is_valid_cart_size(length: int) -> bool:
    return length in _TYPES_BY_SIZE


def cart_save_type(length: int) -> Optional[CartSaveType]:
    """Return the save medium matching ``length`` or ``None``."""

    return _TYPES_BY_SIZE.get(length)


def validate_cart(data: bytes) -> CartSaveType:
    """Return the save medium for ``data`` or raise :class:`InvalidCartRegion`."""

    save_type = cart_save_type(len(data))
    if save_type is None:
        raise InvalidCartRegion(len(data), VALID_CART_SIZES)
    return save_type


def get_file_extension(data: bytes) -> str:
    """Return the raw emulator file extension used for ``data``."""

    return validate_cart(data).file_extension


__all__ = [
    "CART_SAVE_TYPES",
    "CartSaveType",
    "EEPROM_16KBIT",
    "EEPROM_4KBIT",
    "FLASH_RAM_1MBIT",
    "SRAM_256KBIT",
    "SRAM_768KBIT",
    "VALID_CART_SIZES",
    "cart_save_type",
    "get_file_extension",
    "is_valid_cart_size",
    "validate_cart",
]
