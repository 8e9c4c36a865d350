"""Codec for MiSTer N64 save containers.

A MiSTer N64 save holds optional cart data followed by an optional region of
four controller pak slots:

* the cart region comes first and uses the same byte order as PC emulators,
* the mempack region is ``ALL_MEMPACK_SIZE`` bytes appended to the end, stored
  with every 32-bit word byte-swapped relative to emulator ``.mpk`` files,
* a file without cart data is just the mempack region.

The container size tells the layouts apart except when it equals
``ALL_MEMPACK_SIZE``, which is also the size of a Flash RAM save. Those files
are resolved by trial-parsing the four slots. An all-zero file always parses
as four empty paks, and a Flash RAM save that happens to parse as valid paks
is misread the same way; callers that know better pass a cart hint through
:class:`~n64save.config.CodecConfig`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from .byteswap import swap_words
from .cart import get_file_extension, validate_cart
from .config import RESOLVE_AS_CART, CodecConfig
from .errors import InvalidMempackRegion, N64SaveError, UnknownRegionIdentifier
from .mempack import (
    ALL_MEMPACK_SIZE,
    MEMPACK_SLOT_COUNT,
    MEMPACK_SLOT_SIZE,
    SlotParseResult,
    try_parse_slot,
)
from .resize import resize_raw_save

LOGGER = logging.getLogger(__name__)

MempackSlots = Tuple[bytes, bytes, bytes, bytes]


class Region(Enum):
    """Addressable regions of a resolved save."""

    CART = "cart"
    MEMPACK_0 = "mempack0"
    MEMPACK_1 = "mempack1"
    MEMPACK_2 = "mempack2"
    MEMPACK_3 = "mempack3"

    @property
    def slot_index(self) -> Optional[int]:
        if self is Region.CART:
            return None
        return MEMPACK_REGIONS.index(self)

    @classmethod
    def mempack(cls, index: int) -> "Region":
        """Return the region for controller pak slot ``index`` (0-3)."""

        if isinstance(index, bool) or not isinstance(index, int):
            raise UnknownRegionIdentifier(index)
        if not 0 <= index < len(MEMPACK_REGIONS):
            raise UnknownRegionIdentifier(index)
        return MEMPACK_REGIONS[index]


MEMPACK_REGIONS: Tuple[Region, ...] = (
    Region.MEMPACK_0,
    Region.MEMPACK_1,
    Region.MEMPACK_2,
    Region.MEMPACK_3,
)

RegionIdentifier = Union[Region, int]


@dataclass(frozen=True)
class ResolvedSave:
    """Cart bytes and controller pak slots recovered from a container.

    Both regions hold canonical emulator byte order. ``mempack_slots`` is
    either ``None`` or exactly four slot buffers.
    """

    cart: Optional[bytes] = None
    mempack_slots: Optional[MempackSlots] = None

    def __post_init__(self) -> None:
        if self.cart is None and self.mempack_slots is None:
            raise N64SaveError("a resolved save needs cart data or mempack data")
        if self.mempack_slots is not None:
            slots = tuple(bytes(slot) for slot in self.mempack_slots)
            if len(slots) != MEMPACK_SLOT_COUNT:
                raise N64SaveError(
                    f"expected {MEMPACK_SLOT_COUNT} mempack slots, received {len(slots)}"
                )
            for index, slot in enumerate(slots):
                if len(slot) != MEMPACK_SLOT_SIZE:
                    raise N64SaveError(
                        f"mempack slot {index} is {len(slot)} bytes, "
                        f"expected {MEMPACK_SLOT_SIZE}"
                    )
            object.__setattr__(self, "mempack_slots", slots)
        if self.cart is not None:
            object.__setattr__(self, "cart", bytes(self.cart))

    @property
    def has_mempack(self) -> bool:
        return self.mempack_slots is not None

    def get_region(self, identifier: RegionIdentifier) -> Optional[bytes]:
        """Return the bytes for ``identifier`` or ``None`` when the region is absent.

        ``identifier`` is a :class:`Region` member or a controller pak slot
        index; anything else raises :class:`UnknownRegionIdentifier`.
        """

        region = _coerce_region(identifier)
        if region is Region.CART:
            return self.cart
        if self.mempack_slots is None:
            return None
        return self.mempack_slots[MEMPACK_REGIONS.index(region)]


def _coerce_region(identifier: RegionIdentifier) -> Region:
    if isinstance(identifier, Region):
        return identifier
    return Region.mempack(identifier)


def split_slots(region: bytes) -> MempackSlots:
    """Split a canonical mempack region into its four slots in index order."""

    if len(region) != ALL_MEMPACK_SIZE:
        raise N64SaveError(
            f"mempack region is {len(region)} bytes, expected {ALL_MEMPACK_SIZE}"
        )
    return tuple(  # type: ignore[return-value]
        bytes(region[index * MEMPACK_SLOT_SIZE : (index + 1) * MEMPACK_SLOT_SIZE])
        for index in range(MEMPACK_SLOT_COUNT)
    )


def _parse_slots(slots: Sequence[bytes]) -> Tuple[SlotParseResult, ...]:
    return tuple(try_parse_slot(slot) for slot in slots)


def _first_failure(results: Sequence[SlotParseResult]) -> Optional[Tuple[int, str]]:
    for index, result in enumerate(results):
        if not result.ok:
            return index, result.error or "structural parse failed"
    return None


def _require_valid_slots(slots: Sequence[bytes]) -> MempackSlots:
    if len(slots) != MEMPACK_SLOT_COUNT:
        raise N64SaveError(
            f"expected {MEMPACK_SLOT_COUNT} mempack slots, received {len(slots)}"
        )
    canonical = tuple(bytes(slot) for slot in slots)
    failure = _first_failure(_parse_slots(canonical))
    if failure is not None:
        raise InvalidMempackRegion(*failure)
    return canonical  # type: ignore[return-value]


def _resolve_full_size_region(region: bytes, config: CodecConfig) -> Optional[MempackSlots]:
    """Return the slots when ``region`` reads as mempack data, else ``None``."""

    if config.ambiguous_resolution == RESOLVE_AS_CART:
        LOGGER.debug("resolving %d-byte container as cart data by hint", len(region))
        return None

    slots = split_slots(swap_words(region))
    failure = _first_failure(_parse_slots(slots))
    if failure is None:
        LOGGER.debug("%d-byte container parsed as four mempack slots", len(region))
        return slots

    index, reason = failure
    LOGGER.debug(
        "%d-byte container is not mempack data (slot %d: %s); treating as cart",
        len(region),
        index,
        reason,
    )
    return None


def decode(container: bytes, *, config: Optional[CodecConfig] = None) -> ResolvedSave:
    """Resolve a MiSTer container into cart data and/or controller pak slots."""

    config = config or CodecConfig.default()
    data = bytes(container)
    length = len(data)

    if length == 0 and config.allow_empty:
        return ResolvedSave(cart=b"")

    cart: Optional[bytes]
    transport: Optional[bytes]
    if length < ALL_MEMPACK_SIZE:
        cart, transport = data, None
    elif length > ALL_MEMPACK_SIZE:
        split = length - ALL_MEMPACK_SIZE
        cart, transport = data[:split], data[split:]
    else:
        slots = _resolve_full_size_region(data, config)
        if slots is not None:
            return ResolvedSave(mempack_slots=slots)
        cart, transport = data, None

    validate_cart(cart)
    mempack_slots: Optional[MempackSlots] = None
    if transport is not None:
        mempack_slots = _require_valid_slots(split_slots(swap_words(transport)))
    return ResolvedSave(cart=cart, mempack_slots=mempack_slots)


def encode(
    cart: Optional[bytes],
    slots: Optional[Sequence[bytes]] = None,
    *,
    config: Optional[CodecConfig] = None,
) -> bytes:
    """Assemble a MiSTer container from canonical cart data and pak slots.

    An empty cart alongside slots is written as a mempack-only container.
    """

    config = config or CodecConfig.default()
    if cart is not None and not cart and slots is not None:
        cart = None

    chunks = []
    if cart is not None:
        cart = bytes(cart)
        if cart or not config.allow_empty:
            validate_cart(cart)
        chunks.append(cart)
    if slots is not None:
        canonical = _require_valid_slots(slots)
        chunks.append(swap_words(b"".join(canonical)))
    if not chunks and not config.allow_empty:
        raise N64SaveError("nothing to encode: no cart data and no mempack slots")
    return b"".join(chunks)


class MisterN64Save:
    """A MiSTer N64 save alongside its resolved emulator-format regions."""

    MISTER_FILE_EXTENSION = "sav"
    MEMPACK_FILE_EXTENSION = "mpk"
    PLATFORM = "n64"

    def __init__(self, resolved: ResolvedSave, mister_data: bytes) -> None:
        self._resolved = resolved
        self._mister_data = bytes(mister_data)

    @classmethod
    def from_mister_data(
        cls, mister_data: bytes, *, config: Optional[CodecConfig] = None
    ) -> "MisterN64Save":
        return cls(decode(mister_data, config=config), mister_data)

    @classmethod
    def from_raw_data(
        cls,
        cart: Optional[bytes],
        slots: Optional[Sequence[bytes]] = None,
        *,
        config: Optional[CodecConfig] = None,
    ) -> "MisterN64Save":
        mister_data = encode(cart, slots, config=config)
        if slots is None and cart is None:
            cart = b""
        elif slots is not None and not cart:
            cart = None
        resolved = ResolvedSave(
            cart=cart, mempack_slots=tuple(slots) if slots is not None else None
        )
        return cls(resolved, mister_data)

    @property
    def resolved(self) -> ResolvedSave:
        return self._resolved

    @property
    def mister_data(self) -> bytes:
        return self._mister_data

    @property
    def raw_cart(self) -> Optional[bytes]:
        return self._resolved.cart

    @property
    def raw_mempack_slots(self) -> Optional[MempackSlots]:
        return self._resolved.mempack_slots

    @property
    def raw_file_extension(self) -> Optional[str]:
        """Return the emulator extension for the cart data, or ``mpk`` without one."""

        cart = self._resolved.cart
        if cart:
            return get_file_extension(cart)
        if self._resolved.has_mempack:
            return self.MEMPACK_FILE_EXTENSION
        return None

    def get_raw_region(self, identifier: RegionIdentifier) -> Optional[bytes]:
        return self._resolved.get_region(identifier)

    def with_new_size(
        self, new_size: int, *, config: Optional[CodecConfig] = None
    ) -> "MisterN64Save":
        """Return a save whose cart data is resized to ``new_size`` bytes."""

        resized = resize_raw_save(self._resolved.cart or b"", new_size)
        return MisterN64Save.from_raw_data(
            resized, self._resolved.mempack_slots, config=config
        )


__all__ = [
    "MEMPACK_REGIONS",
    "MisterN64Save",
    "Region",
    "RegionIdentifier",
    "ResolvedSave",
    "decode",
    "encode",
    "split_slots",
]
