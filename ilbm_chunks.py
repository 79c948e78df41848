"""
ilbm_chunks.py — IFF container framing and ILBM chunk decoders

Reads:
- FORM container header (magic, declared length, format tag)
- Chunk framing: 4-byte tag, big-endian length, payload, pad byte if odd
- BMHD bitmap header, CMAP colour map, CAMG display mode, CRNG colour range
Each decoder takes a ByteCursor positioned on the chunk payload.
"""

from __future__ import annotations
import logging
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, List, Optional, Tuple

from iff_cursor import ByteCursor
from iff_errors import MalformedChunkError

log = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]

FORM_MAGIC = b"FORM"
FORMAT_TAGS = ("ILBM", "PBM ")
MIN_CONTAINER_SIZE = 12

BMHD_FMT = ">HHhhBBBBHBBhh"
BMHD_SIZE = struct.calcsize(BMHD_FMT)  # 20

# CAMG viewport mode bits
CAMG_HAM = 0x800
CAMG_EHB = 0x80


class Masking(IntEnum):
    NONE = 0
    MASKED = 1
    TRANSPARENT = 2
    LASSO = 3


class Compression(IntEnum):
    NONE = 0
    BYTERUN1 = 1
    VERTICAL_RLE = 2


@dataclass
class ContainerHeader:
    format_tag: str
    length: int


@dataclass
class BMHDChunk:
    width: int
    height: int
    x: int
    y: int
    n_planes: int
    masking: int
    compression: int
    pad1: int
    transparent_color: int
    x_aspect: int
    y_aspect: int
    page_width: int
    page_height: int

    tag = "BMHD"

    @property
    def pitch(self) -> int: return bitmap_pitch(self.width)


@dataclass
class CMAPChunk:
    palette: List[RGBA]
    bits: int

    tag = "CMAP"

    @property
    def num_colors(self) -> int: return len(self.palette)


@dataclass
class CAMGChunk:
    mode: int
    ham: bool
    ehb: bool

    tag = "CAMG"


@dataclass
class ColorRange:
    """DPaint colour cycling range. Decoded for callers, never applied here."""
    rate: int
    active: bool
    reverse: bool
    lower: int
    upper: int

    tag = "CRNG"


@dataclass
class BODYChunk:
    length: int
    chunky: bytes = field(repr=False, default=b"")

    tag = "BODY"


def bitmap_pitch(width: int) -> int:
    """Bytes per row of one bitplane, rounded up to a 16-bit word."""
    return ((width + 15) // 16) * 2


def cmap_bits(num_colors: int) -> int:
    """Smallest number of bits able to address num_colors palette entries."""
    bits = 0
    while 2 ** bits < num_colors:
        bits += 1
    return bits


# ---------------------------------------------------------------------
# Container framing
# ---------------------------------------------------------------------
def read_container_header(cursor: ByteCursor) -> Optional[ContainerHeader]:
    """Read the FORM header, or return None if the buffer is not an IFF image."""
    if cursor.length <= MIN_CONTAINER_SIZE:
        return None
    if cursor.read_bytes(4) != FORM_MAGIC:
        return None
    length = cursor.read_uint32()
    format_tag = cursor.read_ascii(4)
    if format_tag not in FORMAT_TAGS:
        log.debug("FORM type %r is not an image format", format_tag)
        return None
    if length + 8 != cursor.length:
        log.warning("FORM declares %d bytes but buffer holds %d", length + 8, cursor.length)
    return ContainerHeader(format_tag, length)


def iter_chunks(cursor: ByteCursor) -> Iterator[Tuple[str, int, ByteCursor]]:
    """Yield (tag, length, payload cursor) for each chunk until the buffer ends.

    The payload cursor is bounded to the chunk, so a decoder that reads less
    than the declared length still leaves the outer cursor on the next chunk.
    """
    while not cursor.at_end():
        tag = cursor.read_ascii(4)
        length = cursor.read_uint32()
        if length > cursor.remaining():
            raise MalformedChunkError(
                f"Chunk {tag!r} declares {length} bytes but only {cursor.remaining()} remain"
            )
        log.debug("chunk %r, %d bytes at offset %d", tag, length, cursor.offset)
        payload = cursor.sub_cursor(length)
        yield tag, length, payload
        # odd chunks are followed by a pad byte; tolerate it missing at EOF
        if length % 2 and not cursor.at_end():
            cursor.skip(1)


# ---------------------------------------------------------------------
# Chunk decoders
# ---------------------------------------------------------------------
def decode_bmhd(cursor: ByteCursor) -> BMHDChunk:
    fields = struct.unpack(BMHD_FMT, cursor.read_bytes(BMHD_SIZE))
    return BMHDChunk(*fields)


def decode_cmap(cursor: ByteCursor, length: int) -> CMAPChunk:
    # CMAP stores packed RGB triples; alpha is synthesised
    num_colors = length // 3
    palette = []
    for _ in range(num_colors):
        r, g, b = cursor.read_bytes(3)
        palette.append((r, g, b, 255))
    return CMAPChunk(palette, cmap_bits(num_colors))


def decode_camg(cursor: ByteCursor) -> CAMGChunk:
    mode = cursor.read_uint32()
    return CAMGChunk(mode, ham=bool(mode & CAMG_HAM), ehb=bool(mode & CAMG_EHB))


def decode_crng(cursor: ByteCursor) -> ColorRange:
    cursor.skip(2)  # reserved
    rate = cursor.read_uint16()
    flags = cursor.read_uint16()
    lower = cursor.read_uint8()
    upper = cursor.read_uint8()
    return ColorRange(
        rate=rate,
        active=bool(rate and flags & 1),
        reverse=bool(flags & 2),
        lower=lower,
        upper=upper,
    )
