"""Tests for single-page PDF composition."""

import io

import fitz  # PyMuPDF
import pytest
from pypdf import PdfReader

from converter.errors import EncodeError
from converter.fitter import fit


def image_bbox(pdf: bytes) -> tuple[float, float, float, float]:
    doc = fitz.open(stream=pdf, filetype="pdf")
    try:
        (info,) = doc[0].get_image_info()
        return tuple(info["bbox"])
    finally:
        doc.close()


def test_single_page_of_requested_size(composer, jpeg_bytes):
    geometry = fit(100, 200, 595, 842)
    pdf = composer.compose_single_page_document(jpeg_bytes, geometry, 595, 842)

    reader = PdfReader(io.BytesIO(pdf))
    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    assert float(box.width) == pytest.approx(595)
    assert float(box.height) == pytest.approx(842)


def test_image_is_placed_at_geometry(composer, jpeg_bytes):
    geometry = fit(100, 200, 595, 842)
    pdf = composer.compose_single_page_document(jpeg_bytes, geometry, 595, 842)

    x0, y0, x1, y1 = image_bbox(pdf)
    assert x0 == pytest.approx(geometry.margin_x, abs=0.5)
    assert y0 == pytest.approx(geometry.margin_y, abs=0.5)
    assert x1 - x0 == pytest.approx(geometry.draw_width, abs=0.5)
    assert y1 - y0 == pytest.approx(geometry.draw_height, abs=0.5)


def test_png_payload(composer, png_transparent_bytes):
    geometry = fit(40, 20, 300, 300)
    pdf = composer.compose_single_page_document(png_transparent_bytes, geometry, 300, 300)
    assert pdf.startswith(b"%PDF")


def test_creator_metadata(jpeg_bytes):
    from converter.composer import PdfComposer

    pdf = PdfComposer(creator="test-suite").compose_single_page_document(
        jpeg_bytes, fit(100, 200, 595, 842), 595, 842
    )
    assert PdfReader(io.BytesIO(pdf)).metadata.creator == "test-suite"


def test_unsupported_payload(composer, gif_bytes):
    with pytest.raises(EncodeError, match="GIF") as exc_info:
        composer.compose_single_page_document(gif_bytes, fit(8, 8, 100, 100), 100, 100)
    assert exc_info.value.code == "ENCODE_FAILED"


def test_unreadable_payload(composer):
    with pytest.raises(EncodeError):
        composer.compose_single_page_document(b"\x00\x01junk", fit(8, 8, 100, 100), 100, 100)


def test_webp_payload_is_rejected(composer, webp_bytes):
    with pytest.raises(EncodeError, match="WEBP"):
        composer.compose_single_page_document(webp_bytes, fit(64, 48, 100, 100), 100, 100)
