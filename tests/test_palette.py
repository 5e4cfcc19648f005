import pytest

from prdkit.codec.cursor import BinaryCursor
from prdkit.codec.errors import InvalidFormat
from prdkit.codec.palette import (
    ClutLayout,
    Palette,
    PaletteEntry,
    default_palette,
    find_palette_block,
    load_palette,
)

from prd_builders import clu_payload, gradient_colors


def test_default_palette_sentinels():
    pal = default_palette()
    assert len(pal) == 256
    assert pal[0].alpha == 0
    assert pal[1] == PaletteEntry(0, 0, 0, 255)
    assert pal[255] == PaletteEntry(255, 255, 255, 255)
    assert all(e.alpha == 255 for e in list(pal)[1:])


def test_default_palette_is_deterministic():
    assert default_palette() == default_palette()
    # 3-3-2 allocation: index 0b11100000 is pure red
    assert default_palette()[0xE0] == PaletteEntry(255, 0, 0, 255)


def test_load_bgrx_with_magic_header():
    pal = load_palette(BinaryCursor(clu_payload(magic=True)))
    assert pal[5] == PaletteEntry(5, 250, 2, 255)
    assert pal[200] == PaletteEntry(200, 55, 100, 255)
    assert pal[0].alpha == 0


def test_load_bgrx_without_magic_uses_short_header():
    cur = BinaryCursor(clu_payload(magic=False))
    pal = load_palette(cur)
    assert pal[17] == PaletteEntry(17, 238, 8, 255)
    assert cur.position() == 4 + 1024


def test_vga6_layout_scales_components():
    body = bytes(v for i in range(256) for v in (i % 64, 63, 0))
    data = b"\x00\x00\x00\x00" + body
    pal = load_palette(BinaryCursor(data), layout=ClutLayout.VGA6)
    assert pal[10] == PaletteEntry(40, 252, 0, 255)


def test_auto_layout_picks_vga6_for_short_six_bit_block():
    body = bytes(v for i in range(256) for v in (1, 2, 3))
    pal = load_palette(BinaryCursor(b"\x00" * 4 + body), layout="auto")
    assert pal[9] == PaletteEntry(4, 8, 12, 255)


def test_auto_layout_picks_rgb_for_short_eight_bit_block():
    body = bytes(v for i in range(256) for v in (200, 100, 7))
    pal = load_palette(BinaryCursor(b"\x00" * 4 + body))
    assert pal[9] == PaletteEntry(200, 100, 7, 255)


def test_broken_block_falls_back_to_default():
    pal = load_palette(BinaryCursor(b"CLU\x00\x00\x00\x00\x00" + b"\x01" * 40))
    assert pal is default_palette()


def test_unknown_layout_falls_back_to_default():
    pal = load_palette(BinaryCursor(clu_payload()), layout="cmyk")
    assert pal is default_palette()


def test_length_limits_the_block():
    data = clu_payload()
    assert load_palette(BinaryCursor(data), length=100) is default_palette()


def test_find_palette_block():
    blob = b"junk" * 3 + clu_payload()
    index = find_palette_block(blob)
    assert index == 12
    pal = load_palette(BinaryCursor(blob, index))
    assert pal[3] == PaletteEntry(*gradient_colors()[3], 255)
    assert find_palette_block(b"no palette here") is None


def test_palette_requires_256_entries():
    with pytest.raises(InvalidFormat):
        Palette([PaletteEntry(0, 0, 0)] * 10)


def test_rgba_table_shape():
    table = default_palette().rgba_table()
    assert len(table) == 256
    assert table[255] == (255, 255, 255, 255)
