#!/usr/bin/env python3
"""
ilbmdecoder.py — IFF ILBM / PBM image decoder (no Pillow)

Reads:
- FORM container and chunk list
- BMHD geometry, CMAP palette, CAMG display mode (HAM / EHB), CRNG ranges
- BODY pixel data (uncompressed or ByteRun1)
Returns:
    ILBMDocument with the decoded chunks and a DecodedImage of RGBA pixels

Decoding is pure: bytes in, document out. Not-an-IFF input yields an empty
document; corrupt or unsupported data raises an ILBMError subclass.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from iff_cursor import ByteCursor
from iff_errors import ILBMError, MissingDependencyError
from ilbm_chunks import (
    RGBA, BMHDChunk, BODYChunk, CAMGChunk, CMAPChunk, ColorRange, Compression,
    ContainerHeader, Masking, decode_bmhd, decode_camg, decode_cmap, decode_crng,
    iter_chunks, read_container_header,
)
from ilbm_codec import composite_pixels, fix_palette, planar_to_chunky, read_body, unpad_chunky_rows

log = logging.getLogger(__name__)

MAX_PLANES = 8


@dataclass
class DecodedImage:
    width: int
    height: int
    pixels: List[RGBA] = field(repr=False)

    def getpixel(self, x: int, y: int) -> RGBA:
        return self.pixels[y * self.width + x]

    def rows(self) -> List[List[RGBA]]:
        return [self.pixels[y * self.width:(y + 1) * self.width] for y in range(self.height)]


@dataclass
class DecodeSession:
    """Mutable state shared by the chunk handlers of one decode."""
    header: ContainerHeader
    chunks: list = field(default_factory=list)
    bmhd: Optional[BMHDChunk] = None
    cmap: Optional[CMAPChunk] = None
    camg: Optional[CAMGChunk] = None
    color_ranges: List[ColorRange] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    chunky: Optional[bytes] = None


@dataclass
class ILBMDocument:
    header: Optional[ContainerHeader] = None
    chunks: list = field(default_factory=list)
    bmhd: Optional[BMHDChunk] = None
    cmap: Optional[CMAPChunk] = None
    camg: Optional[CAMGChunk] = None
    color_ranges: List[ColorRange] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    image: Optional[DecodedImage] = None

    @property
    def is_container(self) -> bool: return self.header is not None


# ---------------------------------------------------------------------
# Chunk handlers
# ---------------------------------------------------------------------
def _handle_bmhd(session: DecodeSession, chunk: ByteCursor, length: int):
    session.bmhd = decode_bmhd(chunk)
    return session.bmhd


def _handle_cmap(session: DecodeSession, chunk: ByteCursor, length: int):
    session.cmap = decode_cmap(chunk, length)
    return session.cmap


def _handle_camg(session: DecodeSession, chunk: ByteCursor, length: int):
    session.camg = decode_camg(chunk)
    return session.camg


def _handle_crng(session: DecodeSession, chunk: ByteCursor, length: int):
    crng = decode_crng(chunk)
    session.color_ranges.append(crng)
    return crng


def _handle_body(session: DecodeSession, chunk: ByteCursor, length: int):
    bmhd = session.bmhd
    if bmhd is None:
        raise MissingDependencyError("BODY chunk found before BMHD")
    format_tag = session.header.format_tag
    if format_tag == "ILBM" and bmhd.n_planes > MAX_PLANES:
        raise ILBMError(f"{bmhd.n_planes}-plane (true colour) ILBM is not supported")

    data = read_body(chunk.read_bytes(length), bmhd, format_tag)
    log.debug("BODY: %d bytes -> %d bytes of %s data", length, len(data), format_tag.strip())
    if format_tag == "PBM ":
        chunky = unpad_chunky_rows(data, bmhd)
    else:
        chunky = planar_to_chunky(data, bmhd)
    session.chunky = bytes(chunky)
    return BODYChunk(length, session.chunky)


CHUNK_HANDLERS: Dict[str, Callable[[DecodeSession, ByteCursor, int], object]] = {
    "BMHD": _handle_bmhd,
    "CMAP": _handle_cmap,
    "CAMG": _handle_camg,
    "CRNG": _handle_crng,
    "BODY": _handle_body,
}


def _finish(session: DecodeSession) -> ILBMDocument:
    doc = ILBMDocument(
        header=session.header,
        chunks=session.chunks,
        bmhd=session.bmhd,
        cmap=session.cmap,
        camg=session.camg,
        color_ranges=session.color_ranges,
        skipped=session.skipped,
    )
    if session.chunky is None:
        return doc
    if session.cmap is None:
        raise MissingDependencyError("BODY chunk found but no CMAP")

    bmhd = session.bmhd
    cmap = fix_palette(session.cmap, session.camg, bmhd)
    ham = bool(session.camg and session.camg.ham and not session.camg.ehb)
    pixels = composite_pixels(session.chunky, bmhd.width, bmhd.height, cmap, ham=ham)
    doc.cmap = cmap
    doc.image = DecodedImage(bmhd.width, bmhd.height, pixels)
    return doc


def decode_ilbm(data: bytes) -> ILBMDocument:
    cursor = ByteCursor(data)
    header = read_container_header(cursor)
    if header is None:
        log.debug("not an IFF image (%d bytes)", len(cursor.data))
        return ILBMDocument()

    session = DecodeSession(header)
    for tag, length, chunk in iter_chunks(cursor):
        handler = CHUNK_HANDLERS.get(tag)
        if handler is None:
            log.warning("chunk not supported: %r", tag)
            session.skipped.append(tag)
            continue
        session.chunks.append(handler(session, chunk, length))
    return _finish(session)


def decode_ilbm_file(path: Union[str, Path]) -> ILBMDocument:
    return decode_ilbm(Path(path).read_bytes())


def _enum_name(enum_cls, value: int) -> str:
    try:
        return enum_cls(value).name.replace("_", " ").title()
    except ValueError:
        return f"Unknown ({value})"


def header_info(doc: ILBMDocument, path: Optional[Path] = None) -> Dict[str, object]:
    """Human readable summary of a decoded document, in display order."""
    info: Dict[str, object] = {}
    if path is not None:
        path = Path(path)
        info["Filename"] = os.path.basename(path)
        info["File Size"] = f"{path.stat().st_size} bytes"
    if not doc.is_container:
        info["Format"] = "Not an IFF image"
        return info

    info["Format"] = f"IFF {doc.header.format_tag.strip()}"
    info["FORM Length"] = doc.header.length
    bmhd = doc.bmhd
    if bmhd:
        info["Image Dimensions"] = f"{bmhd.width}x{bmhd.height}"
        info["Position"] = f"{bmhd.x},{bmhd.y}"
        info["Bitplanes"] = bmhd.n_planes
        info["Masking"] = _enum_name(Masking, bmhd.masking)
        info["Compression"] = _enum_name(Compression, bmhd.compression)
        info["Transparent Color"] = bmhd.transparent_color
        info["Pixel Aspect"] = f"{bmhd.x_aspect}:{bmhd.y_aspect}"
        info["Page Size"] = f"{bmhd.page_width}x{bmhd.page_height}"
        info["Bytes per Row"] = bmhd.pitch
    if doc.cmap:
        info["Colors"] = doc.cmap.num_colors
    if doc.camg:
        mode = "HAM" if doc.camg.ham else "EHB" if doc.camg.ehb else "Normal"
        info["Display Mode"] = f"{mode} (0x{doc.camg.mode:08x})"
    if doc.color_ranges:
        info["Color Ranges"] = len(doc.color_ranges)
    if doc.skipped:
        info["Skipped Chunks"] = ", ".join(t.strip() for t in doc.skipped)
    return info


def main(argv=None) -> int:
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Decode an IFF ILBM/PBM image")
    parser.add_argument("file", type=Path, help="input .iff / .ilbm / .lbm file")
    parser.add_argument("--png", type=Path, help="write the decoded image to this PNG file")
    parser.add_argument("-v", "--verbose", action="store_true", help="log chunk-level details")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    try:
        doc = decode_ilbm_file(args.file)
    except (OSError, ILBMError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for k, v in header_info(doc, args.file).items():
        print(f"{k}: {v}")
    for i, crng in enumerate(doc.color_ranges):
        state = "active" if crng.active else "inactive"
        direction = "reverse" if crng.reverse else "forward"
        print(f"Range {i}: {crng.lower}-{crng.upper} rate {crng.rate} {state} {direction}")
    print(f"Palette entries: {doc.cmap.num_colors if doc.cmap else 'None'}")

    if args.png:
        if doc.image is None:
            print("Error: no image data to export", file=sys.stderr)
            return 1
        from image_export import save_png
        save_png(doc.image, args.png)
        print(f"Wrote {args.png}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
