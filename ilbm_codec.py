"""
ilbm_codec.py — BODY decompression, bitplane conversion and colour reconstruction

Pipeline for one image:
    BODY bytes -> unpack_byterun1 (or raw copy) -> planar_to_chunky
    CMAP + CAMG -> fix_palette (EHB doubling / HAM culling)
    chunky indexes + palette -> composite_pixels (direct lookup or HAM)
"""

import logging
from typing import List, Optional

from ilbm_chunks import BMHDChunk, CAMGChunk, CMAPChunk, Compression, Masking, RGBA, cmap_bits
from iff_errors import MalformedChunkError, ReservedOpcodeError, UnsupportedCompressionError

log = logging.getLogger(__name__)

OPAQUE_BLACK: RGBA = (0, 0, 0, 255)

# EHB files authored for newer chipsets may already carry all 64 colours
EHB_MAX_COLORS = 32
HAM_CONTROL_BITS = 2


# ---------------------------------------------------------------------
# BODY decoding
# ---------------------------------------------------------------------
def unpack_byterun1(data: bytes, expected_bytes: int) -> bytes:
    """ByteRun1 (PackBits) decoding into a buffer of exactly expected_bytes.

    Control byte n (signed):
      0..127   copy the next n+1 bytes
      -127..-1 repeat the next byte 1-n times
      -128     reserved, rejected
    Output past expected_bytes is dropped; a short stream is zero filled.
    """
    out = bytearray()
    i = 0
    while i < len(data) and len(out) < expected_bytes:
        n = data[i]
        if n > 127:
            n -= 256
        i += 1
        if n >= 0:
            count = n + 1
            if i + count > len(data):
                raise MalformedChunkError(f"Truncated ByteRun1 literal run at offset {i - 1}")
            out.extend(data[i:i + count])
            i += count
        elif n == -128:
            raise ReservedOpcodeError(i - 1)
        else:
            if i >= len(data):
                raise MalformedChunkError(f"Truncated ByteRun1 replicate run at offset {i - 1}")
            out.extend(data[i:i + 1] * (1 - n))
            i += 1
    if len(out) < expected_bytes:
        log.debug("ByteRun1 stream ended %d bytes short", expected_bytes - len(out))
        out.extend(bytes(expected_bytes - len(out)))
    return bytes(out[:expected_bytes])


def planes_per_row(bmhd: BMHDChunk) -> int:
    """Colour planes plus the interleaved mask plane, if any."""
    return bmhd.n_planes + (1 if bmhd.masking == Masking.MASKED else 0)


def pbm_row_bytes(bmhd: BMHDChunk) -> int:
    return bmhd.width + (bmhd.width & 1)


def body_size(bmhd: BMHDChunk, format_tag: str = "ILBM") -> int:
    if format_tag == "PBM ":
        return pbm_row_bytes(bmhd) * bmhd.height
    return bmhd.pitch * bmhd.height * planes_per_row(bmhd)


def read_body(data: bytes, bmhd: BMHDChunk, format_tag: str = "ILBM") -> bytes:
    expected = body_size(bmhd, format_tag)
    if bmhd.compression == Compression.BYTERUN1:
        return unpack_byterun1(data, expected)
    if bmhd.compression == Compression.NONE:
        if len(data) < expected:
            log.debug("raw BODY is %d bytes short, zero filling", expected - len(data))
        return bytes(data[:expected]).ljust(expected, b"\0")
    raise UnsupportedCompressionError(bmhd.compression)


# ---------------------------------------------------------------------
# Planar -> chunky
# ---------------------------------------------------------------------
def planar_to_chunky(bitplanes: Optional[bytes], bmhd: BMHDChunk) -> Optional[bytearray]:
    """Convert interleaved bitplanes to one palette index (or HAM code) per pixel.

    Each scanline stores plane 0 first, then plane 1, ... each `pitch` bytes
    long. Bit 7 of a plane byte is the leftmost of its 8 pixels.
    """
    if bitplanes is None:
        return None
    width, height, pitch = bmhd.width, bmhd.height, bmhd.pitch
    row_stride = pitch * planes_per_row(bmhd)
    chunky = bytearray(width * height)

    for y in range(height):
        row = y * width
        for p in range(bmhd.n_planes):
            plane_bit = 1 << p
            offset = row_stride * y + p * pitch
            for i in range(pitch):
                byte = bitplanes[offset + i]
                if not byte:
                    continue
                for b in range(8):
                    x = i * 8 + b
                    if x >= width:
                        break
                    if byte & (0x80 >> b):
                        chunky[row + x] |= plane_bit
    return chunky


def unpad_chunky_rows(data: Optional[bytes], bmhd: BMHDChunk) -> Optional[bytearray]:
    """PBM bodies are already chunky; strip the pad byte from odd-width rows."""
    if data is None:
        return None
    stride = pbm_row_bytes(bmhd)
    chunky = bytearray()
    for y in range(bmhd.height):
        chunky.extend(data[y * stride:y * stride + bmhd.width])
    return chunky


# ---------------------------------------------------------------------
# Palette fix-up
# ---------------------------------------------------------------------
def extend_ehb_palette(palette: List[RGBA]) -> List[RGBA]:
    """Append a half-intensity copy of every colour (Extra Half-Brite)."""
    if len(palette) > EHB_MAX_COLORS:
        log.debug("EHB set but palette already has %d colours", len(palette))
        return list(palette)
    return list(palette) + [(r >> 1, g >> 1, b >> 1, 255) for (r, g, b, _) in palette]


def reduce_ham_palette(cmap: CMAPChunk, n_planes: int) -> CMAPChunk:
    """Drop base colours a HAM image cannot address.

    Some painters save an oversized CMAP for HAM (DPaint IV writes 256
    colours for HAM6). With nPlanes = 6 and bits = 8 only 16 base colours
    are reachable, the top two planes being the modify control.
    """
    bits = cmap.bits
    if bits <= n_planes:
        return cmap
    bits -= (bits - n_planes) + HAM_CONTROL_BITS
    bits = max(bits, 0)
    length = cmap.num_colors >> bits
    log.debug("culling HAM palette from %d to %d colours", cmap.num_colors, length)
    return CMAPChunk(cmap.palette[:length], bits)


def fix_palette(cmap: CMAPChunk, camg: Optional[CAMGChunk], bmhd: BMHDChunk) -> CMAPChunk:
    if camg is None:
        return cmap
    if camg.ehb:
        palette = extend_ehb_palette(cmap.palette)
        return CMAPChunk(palette, cmap_bits(len(palette)))
    if camg.ham:
        return reduce_ham_palette(cmap, bmhd.n_planes)
    return cmap


# ---------------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------------
def pad_component(value: int, bits: int) -> int:
    """Left-align a `bits`-wide channel value in 8 bits."""
    if bits <= 8:
        return (value << (8 - bits)) & 0xFF
    return value >> (bits - 8)


def ham_pixel(code: int, previous: RGBA, bits: int) -> RGBA:
    """Apply a HAM modify code to the previous pixel.

    Control (the two bits above the base-colour bits): 1 = blue, 2 = red,
    anything else = green.
    """
    control = (code >> bits) & 0x3
    value = pad_component(code & ((1 << bits) - 1), bits)
    r, g, b, a = previous
    if control == 1:
        b = value
    elif control == 2:
        r = value
    else:
        g = value
    return (r, g, b, a)


def composite_pixels(chunky: bytes, width: int, height: int,
                     cmap: CMAPChunk, ham: bool = False) -> List[RGBA]:
    palette = cmap.palette
    num_colors = len(palette)

    if not ham:
        return [palette[c] if c < num_colors else OPAQUE_BLACK for c in chunky]

    pixels: List[RGBA] = []
    for y in range(height):
        # no border colour off-hardware: black is the reference at row start
        previous = OPAQUE_BLACK
        for code in chunky[y * width:(y + 1) * width]:
            if code < num_colors:
                previous = palette[code]
            else:
                previous = ham_pixel(code, previous, cmap.bits)
            pixels.append(previous)
    return pixels
