import pytest

import iff_builders as iff
from iff_errors import (
    ILBMError, MalformedChunkError, MissingDependencyError, ReservedOpcodeError,
    UnsupportedCompressionError,
)
from ilbm_chunks import BMHDChunk, BODYChunk, CMAPChunk, ColorRange
from ilbmdecoder import decode_ilbm, decode_ilbm_file, header_info, main

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


def minimal_ilbm():
    return iff.form(
        iff.bmhd(8, 1, 1),
        iff.cmap((0, 0, 0), (255, 255, 255)),
        iff.body(bytes([0b11000000])),
    )


def test_minimal_image():
    doc = decode_ilbm(minimal_ilbm())
    assert doc.is_container
    assert (doc.image.width, doc.image.height) == (8, 1)
    assert doc.image.pixels == [WHITE, WHITE] + [BLACK] * 6
    assert [type(c) for c in doc.chunks] == [BMHDChunk, CMAPChunk, BODYChunk]
    assert doc.skipped == []


def test_decoding_is_repeatable():
    data = minimal_ilbm()
    assert decode_ilbm(data) == decode_ilbm(data)


def test_accepts_bytearray_and_memoryview():
    data = minimal_ilbm()
    assert decode_ilbm(bytearray(data)).image == decode_ilbm(memoryview(data)).image


@pytest.mark.parametrize("data", [b"", b"GIF89a\x00\x00\x00\x00\x00\x00\x00", b"FORM\x00\x00\x00\x04ILBM"])
def test_non_container_yields_empty_document(data):
    doc = decode_ilbm(data)
    assert not doc.is_container
    assert doc.chunks == []
    assert doc.image is None


def test_unknown_chunks_are_skipped(caplog):
    data = iff.form(
        iff.chunk(b"ANNO", b"made by hand"),
        iff.bmhd(8, 1, 1),
        iff.chunk(b"DPI ", b"\x00\x48\x00"),
        iff.cmap((0, 0, 0), (255, 255, 255)),
        iff.chunk(b"CCRT", b"\x00" * 14),
        iff.body(bytes([0b00000001])),
    )
    with caplog.at_level("WARNING"):
        doc = decode_ilbm(data)
    assert doc.skipped == ["ANNO", "DPI ", "CCRT"]
    assert doc.image.pixels == [BLACK] * 7 + [WHITE]
    assert "ANNO" in caplog.text


def test_color_ranges_are_collected():
    data = iff.form(
        iff.bmhd(8, 1, 1),
        iff.cmap((0, 0, 0), (255, 255, 255)),
        iff.crng(0x2AAA, 1, 0, 1),
        iff.crng(0, 2, 4, 9),
        iff.body(b"\x00\x00"),
    )
    doc = decode_ilbm(data)
    assert doc.color_ranges == [ColorRange(0x2AAA, True, False, 0, 1), ColorRange(0, False, True, 4, 9)]


def test_byterun1_body():
    data = iff.form(
        iff.bmhd(16, 2, 1, compression=1),
        iff.cmap((0, 0, 0), (255, 255, 255)),
        iff.body(bytes([0xFF, 0x80, 0x01, 0x00, 0x01])),
    )
    pixels = decode_ilbm(data).image.rows()
    assert [i for i, p in enumerate(pixels[0]) if p == WHITE] == [0, 8]
    assert [i for i, p in enumerate(pixels[1]) if p == WHITE] == [15]


def test_ham6_image():
    palette = [(0, 0, 0), (10, 20, 30)] + [(99, 99, 99)] * 14
    rows = [[1, 0x1F, 0x25, 0x3A]]
    data = iff.form(
        iff.bmhd(4, 1, 6),
        iff.cmap(*palette),
        iff.camg(0x800),
        iff.body(iff.planar_rows(rows, 6, 4)),
    )
    doc = decode_ilbm(data)
    assert doc.camg.ham
    assert doc.image.pixels == [(10, 20, 30, 255), (10, 20, 240, 255), (80, 20, 240, 255), (80, 160, 240, 255)]


def test_ham6_with_oversized_palette():
    palette = [(0, 0, 0), (10, 20, 30)] + [(99, 99, 99)] * 254
    data = iff.form(
        iff.bmhd(2, 1, 6),
        iff.cmap(*palette),
        iff.camg(0x800),
        iff.body(iff.planar_rows([[0x10 | 0x3, 1]], 6, 2)),
    )
    doc = decode_ilbm(data)
    assert doc.cmap.num_colors == 16
    assert doc.image.pixels == [(0, 0, 0x30, 255), (10, 20, 30, 255)]


def test_camg_after_body_is_honoured():
    data = iff.form(
        iff.bmhd(2, 1, 6),
        iff.cmap(*[(200, 100, 50)] * 32),
        iff.body(iff.planar_rows([[0, 32]], 6, 2)),
        iff.camg(0x80),
    )
    doc = decode_ilbm(data)
    assert doc.cmap.num_colors == 64
    assert doc.image.pixels == [(200, 100, 50, 255), (100, 50, 25, 255)]


def test_masked_ilbm():
    data = iff.form(
        iff.bmhd(8, 1, 1, masking=1),
        iff.cmap((0, 0, 0), (255, 255, 255)),
        iff.body(bytes([0x80, 0x00, 0xFF, 0xFF])),
    )
    assert decode_ilbm(data).image.pixels == [WHITE] + [BLACK] * 7


def test_pbm_image():
    data = iff.form(
        iff.bmhd(3, 2, 8),
        iff.cmap(*iff.gray_ramp(4)),
        iff.body(bytes([1, 2, 3, 0, 3, 2, 1, 0])),
        format_tag=b"PBM ",
    )
    doc = decode_ilbm(data)
    assert [p[0] for p in doc.image.pixels] == [1, 2, 3, 3, 2, 1]


def test_document_without_body_has_no_image():
    doc = decode_ilbm(iff.form(iff.bmhd(8, 1, 1), iff.cmap((0, 0, 0))))
    assert doc.bmhd.width == 8
    assert doc.image is None


def test_body_before_bmhd():
    data = iff.form(iff.cmap((0, 0, 0)), iff.body(b"\x00\x00"), iff.bmhd(8, 1, 1))
    with pytest.raises(MissingDependencyError):
        decode_ilbm(data)


def test_body_without_cmap():
    with pytest.raises(MissingDependencyError):
        decode_ilbm(iff.form(iff.bmhd(8, 1, 1), iff.body(b"\x00\x00")))


def test_vertical_rle_rejected():
    data = iff.form(iff.bmhd(8, 1, 1, compression=2), iff.cmap((0, 0, 0)), iff.body(b"\x00\x00"))
    with pytest.raises(UnsupportedCompressionError):
        decode_ilbm(data)


def test_reserved_opcode_aborts_decode():
    data = iff.form(iff.bmhd(8, 1, 1, compression=1), iff.cmap((0, 0, 0)), iff.body(b"\x80\x00"))
    with pytest.raises(ReservedOpcodeError):
        decode_ilbm(data)


def test_truncated_chunk_aborts_decode():
    data = minimal_ilbm()[:-4]
    with pytest.raises(MalformedChunkError):
        decode_ilbm(data)


def test_short_bmhd_aborts_decode():
    data = iff.form(iff.chunk(b"BMHD", b"\x00\x08\x00\x01"), iff.cmap((0, 0, 0)))
    with pytest.raises(MalformedChunkError):
        decode_ilbm(data)


def test_deep_ilbm_rejected():
    data = iff.form(iff.bmhd(8, 1, 24), iff.body(b"\x00" * 48))
    with pytest.raises(ILBMError):
        decode_ilbm(data)


def test_header_info(tmp_path):
    path = tmp_path / "tiny.iff"
    path.write_bytes(iff.form(
        iff.bmhd(8, 1, 1, compression=0, masking=2),
        iff.cmap((0, 0, 0), (255, 255, 255)),
        iff.camg(0x800),
        iff.crng(1, 1, 0, 1),
        iff.chunk(b"ANNO", b"hi"),
        iff.body(b"\x00\x00"),
    ))
    info = header_info(decode_ilbm_file(path), path)
    assert info["Filename"] == "tiny.iff"
    assert info["Format"] == "IFF ILBM"
    assert info["Image Dimensions"] == "8x1"
    assert info["Masking"] == "Transparent"
    assert info["Compression"] == "None"
    assert info["Colors"] == 2
    assert info["Display Mode"].startswith("HAM")
    assert info["Color Ranges"] == 1
    assert info["Skipped Chunks"] == "ANNO"


def test_header_info_not_a_container():
    assert header_info(decode_ilbm(b"nope")) == {"Format": "Not an IFF image"}


def test_cli_prints_header(tmp_path, capsys):
    path = tmp_path / "tiny.iff"
    path.write_bytes(minimal_ilbm())
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "Image Dimensions: 8x1" in out
    assert "Palette entries: 2" in out


def test_cli_reports_errors(tmp_path, capsys):
    path = tmp_path / "broken.iff"
    path.write_bytes(minimal_ilbm()[:-4])
    assert main([str(path)]) == 1
    assert "Error" in capsys.readouterr().err
