"""In-memory builders for PRD directories, PRS containers and payloads."""

from __future__ import annotations

import io
import struct
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from PIL import Image


@dataclass
class Rec:
    asset_type: str
    id: int
    name: str
    offset: int
    length: int


def _fixed(text: str, size: int) -> bytes:
    return text.encode("latin-1")[:size].ljust(size, b"\x00")


def prd_bytes(container: str, records: Sequence[Rec]) -> bytes:
    out = bytearray(b"\x01\x00")
    out += _fixed(container, 256)
    out += b"\x00" * 12
    out += struct.pack("<h", len(records))
    for r in records:
        out += b"\x00" * 10
        out += struct.pack("<i", r.offset)
        out += _fixed(r.asset_type, 4)
        out += struct.pack("<h", r.id)
        out += _fixed(r.name, 18)
        out += struct.pack("<i", r.length)
    return bytes(out)


class ContainerBuilder:
    """Append payloads to a PRS image; offset 0 is never handed out."""

    def __init__(self) -> None:
        self.data = bytearray(b"PRS\x00" + b"\x00" * 12)
        self.records: List[Rec] = []

    def add(self, asset_type: str, asset_id: int, name: str, payload: bytes) -> Rec:
        rec = Rec(asset_type, asset_id, name, len(self.data), len(payload))
        self.data += payload
        self.records.append(rec)
        return rec

    def sentinel(self, asset_type: str, asset_id: int, name: str) -> Rec:
        rec = Rec(asset_type, asset_id, name, 0, 0)
        self.records.append(rec)
        return rec

    def write(self, folder: Path, container: str, prd_name: str) -> Path:
        (folder / container).write_bytes(bytes(self.data))
        prd = folder / prd_name
        prd.write_bytes(prd_bytes(container, self.records))
        return prd


# -- audio -------------------------------------------------------------------


def snd_payload(samples: bytes) -> bytes:
    return struct.pack("<HI", 4, len(samples) - 1) + samples


def adpcm_block(
    predictor: int, delta: int, sample1: int, sample2: int, data: bytes
) -> bytes:
    return struct.pack("<Bhhh", predictor, delta, sample1, sample2) + data


def riff_payload(
    format_tag: int,
    channels: int,
    rate: int,
    block_align: int,
    bits: int,
    data: bytes,
    extra_chunks: Iterable[Tuple[bytes, bytes]] = (),
) -> bytes:
    fmt = struct.pack(
        "<HHIIHH",
        format_tag,
        channels,
        rate,
        rate * block_align,
        block_align,
        bits,
    )
    if format_tag == 2:
        fmt += struct.pack("<HH", 2, 0)
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt
    for chunk_id, chunk in extra_chunks:
        body += chunk_id + struct.pack("<I", len(chunk)) + chunk
        if len(chunk) & 1:
            body += b"\x00"
    body += b"data" + struct.pack("<I", len(data)) + data
    return b"RIFF" + struct.pack("<I", len(body)) + body


# -- palettes ----------------------------------------------------------------


def gradient_colors() -> List[Tuple[int, int, int]]:
    return [(i, 255 - i, i // 2) for i in range(256)]


def clu_payload(colors=None, magic: bool = True) -> bytes:
    colors = colors or gradient_colors()
    header = b"CLU\x00" + struct.pack("<I", 1024) if magic else b"\x10\x00\x00\x00"
    body = b"".join(struct.pack("<I", (r << 16) | (g << 8) | b) for r, g, b in colors)
    return header + body


# -- sprites -----------------------------------------------------------------


def raw_sprite(
    width: int, height: int, pixels: bytes, frames: Sequence[Tuple[int, int, int, int]] = ()
) -> bytes:
    body = struct.pack("<HH", width, height) + pixels
    if frames:
        body += struct.pack("<H", len(frames))
        for frame in frames:
            body += struct.pack("<HHHH", *frame)
    # u32 size of the whole payload, header included
    return struct.pack("<I", len(body) + 4) + body


def rle_sprite(width: int, height: int, encoded: bytes) -> bytes:
    return b"\x01" + struct.pack("<HH", width, height) + encoded


def atlas_sprite(entries: Sequence[Tuple[int, int, bytes]]) -> bytes:
    """``entries`` of ``(width, height, rle_data)``; use 0xFFFF for terminators."""
    table_end = 1 + 2 + 4 * len(entries)
    offsets = []
    body = bytearray()
    for width, height, data in entries:
        offsets.append(table_end + len(body))
        body += struct.pack("<HH", width, height) + data
    head = b"\x02" + struct.pack("<H", len(entries))
    head += b"".join(struct.pack("<I", o) for o in offsets)
    return head + bytes(body)


def png_payload(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    crc = zlib.crc32(kind + data) & 0xFFFFFFFF
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", crc)


def broken_png_payload(size: int = 64) -> bytes:
    """A PNG whose image data stops halfway into a chunk with a bogus id."""
    noise = bytes((i * 37 + i // 7) % 256 for i in range(size * size * 3))
    blob = png_payload(Image.frombytes("RGB", (size, size), noise))
    pos = 8
    header = b""
    idat = b""
    while pos < len(blob):
        (length,) = struct.unpack_from(">I", blob, pos)
        kind = blob[pos + 4 : pos + 8]
        data = blob[pos + 8 : pos + 8 + length]
        if kind == b"IHDR":
            header = _png_chunk(kind, data)
        elif kind == b"IDAT" and not idat:
            idat = data
        pos += 12 + length
    return (
        blob[:8]
        + header
        + _png_chunk(b"IDAT", idat[: len(idat) // 2])
        + struct.pack(">I", 16)
        + b"!!!!"
        + bytes(20)
    )
