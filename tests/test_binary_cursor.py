import struct

import pytest

from prdkit.codec.cursor import BinaryCursor, codepoint_string
from prdkit.codec.errors import E_TRUNCATED, TruncatedInput


def test_little_endian_reads_advance_position():
    data = struct.pack("<HhIiB", 0xBEEF, -2, 0xDEADBEEF, -70000, 9)
    cur = BinaryCursor(data)
    assert cur.read_u16_le() == 0xBEEF
    assert cur.read_i16_le() == -2
    assert cur.read_u32_le() == 0xDEADBEEF
    assert cur.read_i32_le() == -70000
    assert cur.read_u8() == 9
    assert cur.position() == len(data)
    assert cur.remaining() == 0


def test_short_read_raises_truncated_with_label():
    cur = BinaryCursor(b"\x01\x02\x03")
    cur.skip(2)
    with pytest.raises(TruncatedInput) as exc:
        cur.read_u16_le("record.id")
    assert exc.value.code == E_TRUNCATED
    assert exc.value.context["label"] == "record.id"
    # failed read does not move the cursor
    assert cur.position() == 2


def test_seek_absolute_bounds():
    cur = BinaryCursor(b"abcdef")
    cur.seek_absolute(4)
    assert cur.read_bytes(2) == b"ef"
    cur.seek_absolute(6)
    with pytest.raises(TruncatedInput):
        cur.seek_absolute(7)
    with pytest.raises(TruncatedInput):
        cur.seek_absolute(-1)


def test_window_is_bounded_and_uses_absolute_positions():
    cur = BinaryCursor(b"0123456789")
    cur.skip(3)
    win = cur.window(4)
    assert win.position() == 3
    assert win.limit == 7
    assert win.read_bytes(4) == b"3456"
    with pytest.raises(TruncatedInput):
        win.read_u8()
    # window does not move the parent
    assert cur.position() == 3


def test_read_available_clamps():
    cur = BinaryCursor(b"xyz")
    assert cur.read_available(10) == b"xyz"
    assert cur.read_available(10) == b""


def test_codepoint_string_drops_zero_bytes_anywhere():
    assert codepoint_string(b"AB\x00C\x00\x00") == "ABC"
    assert codepoint_string(b"\x00\x00") == ""


def test_codepoint_string_maps_high_bytes_to_scalars():
    assert codepoint_string(b"caf\xe9") == "café"
    assert codepoint_string(b"\xff") == "ÿ"


def test_fixed_codepoint_string_consumes_exact_width():
    cur = BinaryCursor(b"HI\x00\x00\x00\x00Z")
    assert cur.read_fixed_codepoint_string(6) == "HI"
    assert cur.read_bytes(1) == b"Z"
