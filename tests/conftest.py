"""Shared fixtures for the converter test suite.

Source files are generated in memory: rasters with Pillow, PDFs with PyMuPDF.
"""

from __future__ import annotations

import io

import fitz  # PyMuPDF
import pytest
from PIL import Image

from converter.composer import PdfComposer
from converter.config import Settings
from converter.dispatcher import ConversionDispatcher
from converter.encoder import ImageEncoder
from converter.models import SourceFile
from converter.pipeline import BatchRunner
from converter.rasterizer import Rasterizer


def encode(img: Image.Image, fmt: str, **kwargs) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **kwargs)
    return buf.getvalue()


def make_pdf(page_sizes: list[tuple[float, float]], **save_options) -> bytes:
    """Build a PDF with one labelled page per (width, height) in points.

    Extra keyword arguments go to ``Document.tobytes`` (e.g. encryption).
    """
    doc = fitz.open()
    for i, (width, height) in enumerate(page_sizes):
        page = doc.new_page(width=width, height=height)
        page.insert_text((10, 20), f"Page {i + 1}", fontsize=12)
    data = doc.tobytes(**save_options)
    doc.close()
    return data


def source(content: bytes, mime_type: str, name: str) -> SourceFile:
    return SourceFile(content=content, mime_type=mime_type, name=name)


@pytest.fixture
def jpeg_bytes() -> bytes:
    """Opaque 100x200 JPEG."""
    return encode(Image.new("RGB", (100, 200), (200, 30, 30)), "JPEG", quality=90)


@pytest.fixture
def png_transparent_bytes() -> bytes:
    """40x20 PNG: left half opaque red, right half fully transparent."""
    img = Image.new("RGBA", (40, 20), (0, 0, 0, 0))
    img.paste((255, 0, 0, 255), (0, 0, 20, 20))
    return encode(img, "PNG")


@pytest.fixture
def webp_bytes() -> bytes:
    return encode(Image.new("RGB", (64, 48), (10, 120, 200)), "WEBP", quality=80)


@pytest.fixture
def gif_bytes() -> bytes:
    return encode(Image.new("RGB", (8, 8), (0, 255, 0)), "GIF")


@pytest.fixture
def pdf_bytes() -> bytes:
    """Two pages; the first is 200x100 points."""
    return make_pdf([(200, 100), (300, 300)])


@pytest.fixture
def settings() -> Settings:
    return Settings(page_width=595, page_height=842, jpeg_quality=0.9, render_scale=1.5)


@pytest.fixture
def rasterizer() -> Rasterizer:
    return Rasterizer()


@pytest.fixture
def encoder() -> ImageEncoder:
    return ImageEncoder()


@pytest.fixture
def composer() -> PdfComposer:
    return PdfComposer()


@pytest.fixture
def dispatcher(rasterizer, encoder, composer, settings) -> ConversionDispatcher:
    return ConversionDispatcher(rasterizer, encoder, composer, settings=settings)


@pytest.fixture
def runner(dispatcher) -> BatchRunner:
    return BatchRunner(dispatcher)
