from __future__ import annotations

import random

import pytest

from mempack_builders import INDEX_TABLE_PAGES, slot_with_note
from n64save.errors import MempackStructureError
from n64save.mempack import (
    FIRST_DATA_PAGE,
    MEMPACK_SLOT_SIZE,
    NOTE_TABLE_OFFSET,
    PAGE_SIZE,
    format_slot,
    parse_slot,
    try_parse_slot,
)

_ID_BLOCK_OFFSETS = (0x20, 0x60, 0x80, 0xC0)


def test_all_zero_slot_parses_as_empty_pak():
    result = try_parse_slot(bytes(MEMPACK_SLOT_SIZE))

    assert result.ok
    assert result.error is None
    assert result.slot is not None
    assert result.slot.is_empty


def test_formatted_slot_parses_without_notes():
    slot = parse_slot(format_slot())

    assert slot.notes == ()
    assert slot.is_empty


def test_note_chain_is_followed():
    data = slot_with_note((5, 7, 6), fill=0x33)

    slot = parse_slot(data)

    assert len(slot.notes) == 1
    note = slot.notes[0]
    assert note.index == 0
    assert note.vendor_code == b"NSME"
    assert note.game_code == b"01"
    assert note.start_page == 5
    assert note.pages == (5, 7, 6)
    assert note.page_count == 3
    assert note.name.startswith(b"\x1d\x1a\x27\x1e")
    assert slot.read_note(note) == b"\x33" * (3 * PAGE_SIZE)


def test_single_valid_id_block_copy_is_enough():
    data = bytearray(format_slot())
    for offset in _ID_BLOCK_OFFSETS[:3]:
        data[offset] ^= 0xFF

    assert try_parse_slot(bytes(data)).ok


def test_corrupt_id_blocks_fail():
    data = bytearray(format_slot())
    for offset in _ID_BLOCK_OFFSETS:
        data[offset] ^= 0xFF

    result = try_parse_slot(bytes(data))

    assert not result.ok
    assert result.slot is None
    assert "ID block" in (result.error or "")


def test_backup_index_table_is_used_when_primary_is_corrupt():
    data = bytearray(slot_with_note())
    primary = INDEX_TABLE_PAGES[0] * PAGE_SIZE
    data[primary + 20] ^= 0x01

    slot = parse_slot(bytes(data))

    assert [note.pages for note in slot.notes] == [(FIRST_DATA_PAGE, FIRST_DATA_PAGE + 1)]


def test_corrupt_primary_and_backup_index_tables_fail():
    data = bytearray(format_slot())
    for page in INDEX_TABLE_PAGES:
        data[page * PAGE_SIZE + 20] ^= 0x01

    with pytest.raises(MempackStructureError, match="index tables"):
        parse_slot(bytes(data))


def test_note_pointing_at_free_page_fails():
    data = bytearray(format_slot())
    entry_offset = NOTE_TABLE_OFFSET
    data[entry_offset : entry_offset + 4] = b"NSME"
    data[entry_offset + 6 : entry_offset + 8] = (FIRST_DATA_PAGE).to_bytes(2, "big")

    result = try_parse_slot(bytes(data))

    assert not result.ok
    assert "note 0" in (result.error or "")
    assert "free page" in (result.error or "")


def test_note_with_start_page_in_reserved_area_fails():
    data = bytearray(slot_with_note())
    data[NOTE_TABLE_OFFSET + 6 : NOTE_TABLE_OFFSET + 8] = (2).to_bytes(2, "big")

    with pytest.raises(MempackStructureError, match="outside the data area"):
        parse_slot(bytes(data))


@pytest.mark.parametrize("length", [0, MEMPACK_SLOT_SIZE - 1, MEMPACK_SLOT_SIZE + 4])
def test_wrong_slot_length_fails(length: int):
    result = try_parse_slot(bytes(length))

    assert not result.ok
    assert str(MEMPACK_SLOT_SIZE) in (result.error or "")


def test_random_bytes_fail_structural_parsing():
    rng = random.Random(1996)
    data = bytes(rng.getrandbits(8) for _ in range(MEMPACK_SLOT_SIZE))

    assert not try_parse_slot(data).ok


def test_note_entry_with_start_page_zero_is_unused():
    data = bytearray(format_slot())
    data[NOTE_TABLE_OFFSET : NOTE_TABLE_OFFSET + 4] = b"NSME"
    data[NOTE_TABLE_OFFSET + 4 : NOTE_TABLE_OFFSET + 6] = b"01"

    result = try_parse_slot(bytes(data))

    assert result.ok
    assert result.slot is not None
    assert result.slot.notes == ()
