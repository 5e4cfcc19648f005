import struct
import wave

from PIL import Image

from prdkit.codec.audio import PcmBuffer
from prdkit.codec.palette import default_palette
from prdkit.codec.sprite import Frame, IndexedImage
from prdkit.export.png import to_rgba_array, write_sprite
from prdkit.export.wav import write_wav


def test_wav_header_is_canonical(tmp_path):
    pcm = PcmBuffer(2, 22050, struct.pack("<4h", 1, 2, 3, 4))
    path = write_wav(tmp_path / "sub" / "x.wav", pcm)
    data = path.read_bytes()
    assert data[:4] == b"RIFF"
    assert data[8:16] == b"WAVEfmt "
    fmt_size, fmt_tag, channels, rate, byte_rate, align, bits = struct.unpack(
        "<IHHIIHH", data[16:36]
    )
    assert (fmt_size, fmt_tag, channels, rate) == (16, 1, 2, 22050)
    assert byte_rate == 22050 * 2 * 2
    assert (align, bits) == (4, 16)
    assert data[36:40] == b"data"
    assert data[44:] == pcm.samples
    with wave.open(str(path), "rb") as w:
        assert w.getnframes() == 2


def test_rgba_lookup_makes_index_zero_transparent():
    image = IndexedImage(2, 1, b"\x00\xff")
    rgba = to_rgba_array(image, default_palette())
    assert rgba.shape == (1, 2, 4)
    assert tuple(rgba[0, 0]) == (0, 0, 0, 0)
    assert tuple(rgba[0, 1]) == (255, 255, 255, 255)


def test_write_sprite_sheet_and_frames(tmp_path):
    image = IndexedImage(
        4, 2, b"\x01" * 8, [Frame(0, 0, 2, 2), Frame(2, 0, 2, 1)]
    )
    paths = write_sprite(tmp_path, "walk", image, default_palette())
    assert [p.relative_to(tmp_path).as_posix() for p in paths] == [
        "walk_sheet.png",
        "walk/frame_0.png",
        "walk/frame_1.png",
    ]
    assert Image.open(paths[2]).size == (2, 1)


def test_write_sprite_without_frames(tmp_path):
    image = IndexedImage(1, 1, b"\x01")
    paths = write_sprite(tmp_path, "dot", image, default_palette())
    assert paths == [tmp_path / "dot_sheet.png"]
    assert not (tmp_path / "dot").exists()
