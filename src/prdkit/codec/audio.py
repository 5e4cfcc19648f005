"""Audio decoding: 8-bit PCM widening and Microsoft ADPCM.

Output is always interleaved signed 16-bit little-endian PCM wrapped in a
:class:`PcmBuffer`. Two payload flavours appear in PRS containers:

- ``SND``: u16 tag (4), u32 ``n``, then ``n + 1`` unsigned 8-bit samples.
- ``PCM``: a complete RIFF/WAVE image, normally MS-ADPCM (format 2, 4 bits).
"""

from __future__ import annotations

import sys
from array import array
from dataclasses import dataclass

from ..logging import get_logger
from .constants import (
    MAX_PCM_BYTES,
    SND_DEFAULT_SAMPLE_RATE,
    SND_HEADER_TAG,
    WAVE_FORMAT_MS_ADPCM,
    WAVE_FORMAT_PCM,
)
from .cursor import BinaryCursor
from .errors import invalid_format, invalid_parameters

__all__ = [
    "PcmBuffer",
    "WaveFormat",
    "pcm8_to_pcm16",
    "decode_ms_adpcm",
    "ms_adpcm_output_size",
    "decode_snd",
    "decode_riff",
]

ADAPTATION_TABLE = (
    230, 230, 230, 230, 307, 409, 512, 614,
    768, 614, 512, 409, 307, 230, 230, 230,
)
ADAPT_COEFF1 = (256, 512, 0, 192, 240, 460, 392)
ADAPT_COEFF2 = (0, -256, 0, 64, 0, -208, -232)

_HEADER_BYTES_PER_CHANNEL = 7


@dataclass(frozen=True, slots=True)
class PcmBuffer:
    channel_count: int
    sample_rate: int
    samples: bytes

    def __post_init__(self) -> None:
        if self.channel_count not in (1, 2):
            raise invalid_parameters(
                f"Unsupported channel count {self.channel_count}"
            )
        if len(self.samples) % (2 * self.channel_count):
            raise invalid_parameters(
                "Sample buffer is not a whole number of frames",
                {"bytes": len(self.samples), "channels": self.channel_count},
            )

    @property
    def frame_count(self) -> int:
        return len(self.samples) // (2 * self.channel_count)


@dataclass(slots=True)
class WaveFormat:
    format_tag: int = 0
    channels: int = 0
    sample_rate: int = 0
    byte_rate: int = 0
    block_align: int = 0
    bits_per_sample: int = 0


def _to_le16(samples: array) -> bytes:
    if sys.byteorder != "little":  # pragma: no cover
        samples.byteswap()
    return samples.tobytes()


def pcm8_to_pcm16(data: bytes) -> bytes:
    return _to_le16(array("h", ((b - 128) << 8 for b in data)))


def _div_trunc(num: int, den: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(num) // den
    return q if num >= 0 else -q


class _ChannelState:
    __slots__ = ("coeff1", "coeff2", "delta", "sample1", "sample2")

    def __init__(self) -> None:
        self.coeff1 = 0
        self.coeff2 = 0
        self.delta = 0
        self.sample1 = 0
        self.sample2 = 0

    def set_predictor(self, index: int) -> None:
        index = min(index, 6)
        self.coeff1 = ADAPT_COEFF1[index]
        self.coeff2 = ADAPT_COEFF2[index]

    def expand_nibble(self, nibble: int) -> int:
        signed = nibble - 0x10 if nibble & 0x08 else nibble
        predictor = (
            _div_trunc(self.sample1 * self.coeff1 + self.sample2 * self.coeff2, 256)
            + signed * self.delta
        )
        predictor = max(-32768, min(32767, predictor))
        self.sample2 = self.sample1
        self.sample1 = predictor
        self.delta = max(16, _div_trunc(ADAPTATION_TABLE[nibble] * self.delta, 256))
        return predictor


def _samples_for_block(block_bytes: int, channels: int) -> int:
    per_channel = block_bytes // channels
    if per_channel < _HEADER_BYTES_PER_CHANNEL:
        return 0
    return (per_channel - _HEADER_BYTES_PER_CHANNEL) * 2 + 2


def ms_adpcm_output_size(
    byte_count: int, channel_count: int, block_alignment: int
) -> int:
    """Number of output bytes :func:`decode_ms_adpcm` will produce.

    Raises :class:`InvalidParameters` for bad channel counts, block sizes that
    cannot hold a header, and sizes beyond the signed 32-bit range.
    """
    if channel_count not in (1, 2):
        raise invalid_parameters(
            f"MS-ADPCM supports 1 or 2 channels, got {channel_count}",
            {"channels": channel_count},
        )
    if block_alignment < _HEADER_BYTES_PER_CHANNEL * channel_count:
        raise invalid_parameters(
            f"Block alignment {block_alignment} too small for header",
            {"block_alignment": block_alignment, "channels": channel_count},
        )
    if byte_count < 0:
        raise invalid_parameters(f"Negative byte count {byte_count}")
    samples_per_block = _samples_for_block(block_alignment, channel_count)
    full_blocks, remainder = divmod(byte_count, block_alignment)
    total = full_blocks * samples_per_block + _samples_for_block(
        remainder, channel_count
    )
    size = total * 2 * channel_count
    if total > MAX_PCM_BYTES or size > MAX_PCM_BYTES:
        raise invalid_parameters(
            "Decoded MS-ADPCM size overflows", {"samples": total, "bytes": size}
        )
    return size


def decode_ms_adpcm(
    buffer: bytes,
    byte_offset: int,
    byte_count: int,
    channel_count: int,
    block_alignment: int,
) -> bytes:
    """Decode ``byte_count`` bytes of MS-ADPCM starting at ``byte_offset``."""
    expected = ms_adpcm_output_size(byte_count, channel_count, block_alignment)
    if byte_offset < 0 or byte_offset + byte_count > len(buffer):
        raise invalid_parameters(
            "MS-ADPCM range exceeds buffer",
            {"offset": byte_offset, "count": byte_count, "buffer": len(buffer)},
        )
    stereo = channel_count == 2
    channels = [_ChannelState() for _ in range(channel_count)]
    view = memoryview(buffer)
    out = array("h")
    offset = byte_offset
    count = byte_count

    while count > 0:
        block_size = min(block_alignment, count)
        count -= block_size
        if block_size < _HEADER_BYTES_PER_CHANNEL * channel_count:
            break
        cursor = BinaryCursor(view, offset, offset + block_size)
        for ch in channels:
            ch.set_predictor(cursor.read_u8("adpcm.predictor"))
        for ch in channels:
            ch.delta = cursor.read_i16_le("adpcm.delta")
        for ch in channels:
            ch.sample1 = cursor.read_i16_le("adpcm.sample1")
        for ch in channels:
            ch.sample2 = cursor.read_i16_le("adpcm.sample2")
        out.extend(ch.sample2 for ch in channels)
        out.extend(ch.sample1 for ch in channels)

        first = channels[0]
        second = channels[1] if stereo else first
        nibble_bytes = (
            (_samples_for_block(block_size, channel_count) - 2)
            * channel_count
            // 2
        )
        for byte in cursor.read_bytes(nibble_bytes, "adpcm.nibbles"):
            out.append(first.expand_nibble(byte >> 4))
            out.append(second.expand_nibble(byte & 0x0F))
        offset += block_size

    pcm = _to_le16(out)
    if len(pcm) != expected:  # pragma: no cover
        raise invalid_parameters(
            "MS-ADPCM output size mismatch",
            {"expected": expected, "actual": len(pcm)},
        )
    return pcm


def decode_snd(
    cursor: BinaryCursor, sample_rate: int = SND_DEFAULT_SAMPLE_RATE
) -> PcmBuffer:
    tag = cursor.read_u16_le("snd.tag")
    if tag != SND_HEADER_TAG:
        raise invalid_format(
            f"Invalid sound header tag {tag}", {"expected": SND_HEADER_TAG}
        )
    length = cursor.read_u32_le("snd.length") + 1
    data = cursor.read_available(length)
    if len(data) < length:
        get_logger().debug(
            "Sound data short: declared %d bytes, read %d", length, len(data)
        )
    return PcmBuffer(1, sample_rate, pcm8_to_pcm16(data))


def _read_fmt(chunk: BinaryCursor) -> WaveFormat:
    fmt = WaveFormat(
        format_tag=chunk.read_u16_le("fmt.format"),
        channels=chunk.read_u16_le("fmt.channels"),
        sample_rate=chunk.read_u32_le("fmt.rate"),
        byte_rate=chunk.read_u32_le("fmt.byte_rate"),
        block_align=chunk.read_u16_le("fmt.block_align"),
        bits_per_sample=chunk.read_u16_le("fmt.bits"),
    )
    # cbSize, samples-per-block and the coefficient table follow for
    # MS-ADPCM; the decoder uses the standard table.
    return fmt


def decode_riff(cursor: BinaryCursor) -> PcmBuffer:
    """Decode a RIFF/WAVE payload bounded by the cursor's limit."""
    if cursor.read_bytes(4, "riff.magic") != b"RIFF":
        raise invalid_format("Missing RIFF header")
    cursor.read_u32_le("riff.size")
    if cursor.read_bytes(4, "riff.form") != b"WAVE":
        raise invalid_format("RIFF form is not WAVE")

    fmt: WaveFormat | None = None
    while cursor.remaining() >= 8:
        chunk_id = cursor.read_bytes(4, "chunk.id")
        size = cursor.read_u32_le("chunk.size")
        body = cursor.window(size)
        if chunk_id == b"fmt ":
            fmt = _read_fmt(body)
            if not (
                (fmt.format_tag == WAVE_FORMAT_MS_ADPCM and fmt.bits_per_sample == 4)
                or (fmt.format_tag == WAVE_FORMAT_PCM and fmt.bits_per_sample == 16)
            ):
                raise invalid_format(
                    "Unsupported wave encoding",
                    {"format": fmt.format_tag, "bits": fmt.bits_per_sample},
                )
        elif chunk_id == b"data":
            if fmt is None:
                raise invalid_format("data chunk before fmt chunk")
            data = body.read_available(size)
            if fmt.format_tag == WAVE_FORMAT_PCM:
                usable = len(data) - len(data) % (2 * fmt.channels or 2)
                return PcmBuffer(fmt.channels, fmt.sample_rate, data[:usable])
            pcm = decode_ms_adpcm(
                data, 0, len(data), fmt.channels, fmt.block_align
            )
            return PcmBuffer(fmt.channels, fmt.sample_rate, pcm)
        skip = min(size + (size & 1), cursor.remaining())
        cursor.skip(skip, "chunk.body")
    raise invalid_format("RIFF payload has no data chunk")
