from __future__ import annotations

import n64save


def test_package_reexports_codec_surface():
    for name in (
        "ALL_MEMPACK_SIZE",
        "CodecConfig",
        "InvalidCartRegion",
        "InvalidMempackRegion",
        "MisterN64Save",
        "Region",
        "ResolvedSave",
        "UnknownRegionIdentifier",
        "decode",
        "encode",
        "is_valid_cart_size",
        "resize_raw_save",
        "swap_words",
        "try_parse_slot",
    ):
        assert name in n64save.__all__
        assert hasattr(n64save, name)


def test_package_round_trip_through_public_api():
    container = n64save.encode(bytes(512), None)

    assert n64save.decode(container).cart == bytes(512)
    assert n64save.ALL_MEMPACK_SIZE == 4 * n64save.MEMPACK_SLOT_SIZE
