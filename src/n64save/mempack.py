"""Structural parser for N64 controller pak ("mempack") slots.

A slot is 128 pages of 256 bytes stored in canonical (big-endian) order:

* page 0 carries the ID area with four checksummed copies of the ID block,
* pages 1 and 2 hold the primary and backup index tables linking data pages,
* pages 3 and 4 hold the 16-entry note table,
* pages 5-127 hold note data.

An all-zero slot is an unformatted, empty pak and parses successfully; the
MiSTer core zero-initialises controller pak storage that was never written.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import MempackStructureError

PAGE_SIZE = 256
PAGE_COUNT = 128
MEMPACK_SLOT_SIZE = PAGE_SIZE * PAGE_COUNT
MEMPACK_SLOT_COUNT = 4
ALL_MEMPACK_SIZE = MEMPACK_SLOT_COUNT * MEMPACK_SLOT_SIZE

ID_BLOCK_OFFSETS: Tuple[int, ...] = (0x20, 0x60, 0x80, 0xC0)
ID_BLOCK_SIZE = 32
_ID_CHECKSUM_OFFSET = 28
_ID_CHECKSUM_MAGIC = 0xFFF2

INDEX_TABLE_PAGE = 1
BACKUP_INDEX_TABLE_PAGE = 2
_INDEX_CHECKSUM_START = 10

NOTE_TABLE_OFFSET = 3 * PAGE_SIZE
NOTE_COUNT = 16
NOTE_ENTRY_SIZE = 32

FIRST_DATA_PAGE = 5
INODE_END = 0x0001
INODE_FREE = 0x0003


@dataclass(frozen=True)
class MempackNote:
    """A used entry of the note table."""

    index: int
    vendor_code: bytes
    game_code: bytes
    start_page: int
    status: int
    extension: bytes
    name: bytes
    pages: Tuple[int, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass(frozen=True)
class MempackSlot:
    """A structurally valid controller pak image."""

    data: bytes
    notes: Tuple[MempackNote, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.notes

    def read_note(self, note: MempackNote) -> bytes:
        """Return the concatenated data pages belonging to ``note``."""

        return b"".join(
            self.data[page * PAGE_SIZE : (page + 1) * PAGE_SIZE] for page in note.pages
        )


@dataclass(frozen=True)
class SlotParseResult:
    """Outcome of a structural parse that never raises on bad input."""

    slot: Optional[MempackSlot] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.slot is not None


def id_block_checksum(block: bytes) -> int:
    """Return the 16-bit sum of the first 14 big-endian words of ``block``."""

    words = struct.unpack(">14H", block[:_ID_CHECKSUM_OFFSET])
    return sum(words) & 0xFFFF


def index_table_checksum(table: bytes) -> int:
    """Return the 8-bit checksum stored in byte 1 of an index table page."""

    return sum(table[_INDEX_CHECKSUM_START:PAGE_SIZE]) & 0xFF


def _id_block_is_valid(data: bytes, offset: int) -> bool:
    block = data[offset : offset + ID_BLOCK_SIZE]
    stored, inverse = struct.unpack_from(">HH", block, _ID_CHECKSUM_OFFSET)
    checksum = id_block_checksum(block)
    return stored == checksum and inverse == (_ID_CHECKSUM_MAGIC - checksum) & 0xFFFF


def _read_index_table(data: bytes, page: int) -> Optional[Tuple[int, ...]]:
    table = data[page * PAGE_SIZE : (page + 1) * PAGE_SIZE]
    if table[1] != index_table_checksum(table):
        return None
    entries = struct.unpack(f">{PAGE_COUNT}H", table)
    for value in entries[FIRST_DATA_PAGE:]:
        if value in (INODE_END, INODE_FREE):
            continue
        if not FIRST_DATA_PAGE <= value < PAGE_COUNT:
            return None
    return entries


def _follow_chain(
    entries: Sequence[int], start_page: int, claimed: set[int]
) -> Tuple[int, ...]:
    pages: List[int] = []
    page = start_page
    while True:
        if not FIRST_DATA_PAGE <= page < PAGE_COUNT:
            raise MempackStructureError(f"page {page} is outside the data area")
        if page in claimed:
            raise MempackStructureError(f"page {page} is linked more than once")
        claimed.add(page)
        pages.append(page)
        next_page = entries[page]
        if next_page == INODE_END:
            return tuple(pages)
        if next_page == INODE_FREE:
            raise MempackStructureError(f"page chain reaches free page {page}")
        page = next_page


def _parse_notes(data: bytes, entries: Sequence[int]) -> Tuple[MempackNote, ...]:
    notes: List[MempackNote] = []
    claimed: set[int] = set()
    for index in range(NOTE_COUNT):
        offset = NOTE_TABLE_OFFSET + index * NOTE_ENTRY_SIZE
        entry = data[offset : offset + NOTE_ENTRY_SIZE]
        start_page = struct.unpack_from(">H", entry, 6)[0]
        if start_page == 0:
            continue
        try:
            pages = _follow_chain(entries, start_page, claimed)
        except MempackStructureError as exc:
            raise MempackStructureError(f"note {index}: {exc}") from exc
        notes.append(
            MempackNote(
                index=index,
                vendor_code=bytes(entry[0:4]),
                game_code=bytes(entry[4:6]),
                start_page=start_page,
                status=entry[8],
                extension=bytes(entry[12:16]),
                name=bytes(entry[16:32]),
                pages=pages,
            )
        )
    return tuple(notes)


def parse_slot(data: bytes) -> MempackSlot:
    """Parse ``data`` as a controller pak or raise :class:`MempackStructureError`."""

    data = bytes(data)
    if len(data) != MEMPACK_SLOT_SIZE:
        raise MempackStructureError(
            f"slot is {len(data)} bytes, expected {MEMPACK_SLOT_SIZE}"
        )
    if not any(data):
        return MempackSlot(data=data)

    if not any(_id_block_is_valid(data, offset) for offset in ID_BLOCK_OFFSETS):
        raise MempackStructureError("no ID block copy has a valid checksum")

    entries = _read_index_table(data, INDEX_TABLE_PAGE)
    if entries is None:
        entries = _read_index_table(data, BACKUP_INDEX_TABLE_PAGE)
    if entries is None:
        raise MempackStructureError("primary and backup index tables are corrupt")

    return MempackSlot(data=data, notes=_parse_notes(data, entries))


def try_parse_slot(data: bytes) -> SlotParseResult:
    """Parse ``data`` reporting structural failure through the result."""

    try:
        return SlotParseResult(slot=parse_slot(data))
    except MempackStructureError as exc:
        return SlotParseResult(error=str(exc))


def _build_id_block() -> bytes:
    block = bytearray(ID_BLOCK_SIZE)
    block[25] = 0x01  # device id
    block[26] = 0x01  # bank count
    checksum = id_block_checksum(bytes(block))
    struct.pack_into(
        ">HH", block, _ID_CHECKSUM_OFFSET, checksum, (_ID_CHECKSUM_MAGIC - checksum) & 0xFFFF
    )
    return bytes(block)


def build_index_table(links: Iterable[Tuple[int, int]] = ()) -> bytes:
    """Return an index table page with every data page free except ``links``.

    ``links`` holds ``(page, next_page)`` pairs; use :data:`INODE_END` as
    ``next_page`` to terminate a chain.
    """

    entries = [0] * FIRST_DATA_PAGE + [INODE_FREE] * (PAGE_COUNT - FIRST_DATA_PAGE)
    for page, next_page in links:
        entries[page] = next_page
    table = bytearray(struct.pack(f">{PAGE_COUNT}H", *entries))
    table[1] = index_table_checksum(bytes(table))
    return bytes(table)


def format_slot() -> bytes:
    """Return a freshly formatted controller pak with no notes."""

    slot = bytearray(MEMPACK_SLOT_SIZE)
    id_block = _build_id_block()
    for offset in ID_BLOCK_OFFSETS:
        slot[offset : offset + ID_BLOCK_SIZE] = id_block
    table = build_index_table()
    for page in (INDEX_TABLE_PAGE, BACKUP_INDEX_TABLE_PAGE):
        slot[page * PAGE_SIZE : (page + 1) * PAGE_SIZE] = table
    return bytes(slot)


__all__ = [
    "ALL_MEMPACK_SIZE",
    "FIRST_DATA_PAGE",
    "INODE_END",
    "INODE_FREE",
    "MEMPACK_SLOT_COUNT",
    "MEMPACK_SLOT_SIZE",
    "MempackNote",
    "MempackSlot",
    "NOTE_ENTRY_SIZE",
    "NOTE_TABLE_OFFSET",
    "PAGE_SIZE",
    "SlotParseResult",
    "build_index_table",
    "format_slot",
    "id_block_checksum",
    "index_table_checksum",
    "parse_slot",
    "try_parse_slot",
]
