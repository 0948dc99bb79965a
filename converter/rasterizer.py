"""Decoding of raster images and rasterization of PDF pages into bitmaps."""

import io

import fitz  # PyMuPDF
import structlog
from PIL import Image, ImageOps

from converter.errors import ConversionError, DecodeError, InvalidGeometryError, PageRangeError
from converter.models import Bitmap, SourceKind

logger = structlog.get_logger()

# EXIF tag holding the orientation flag
EXIF_ORIENTATION = 0x0112


class Rasterizer:
    """Turns encoded images and PDF pages into RGBA bitmaps."""

    def decode_image(self, data: bytes, kind: SourceKind) -> Bitmap:
        """
        Decode an encoded raster image.

        Args:
            data: Encoded image bytes
            kind: Declared source kind (JPEG, PNG or WEBP)

        Returns:
            Decoded bitmap, EXIF orientation applied

        Raises:
            DecodeError: If the bytes are not a valid image of the declared kind
        """
        expected = kind.pil_format
        if expected is None:
            raise DecodeError(f"{kind.value} is not a raster image type")

        try:
            with Image.open(io.BytesIO(data)) as img:
                if img.format != expected:
                    raise DecodeError(
                        f"Declared {kind.value} but content is {img.format or 'unknown'}"
                    )
                img.load()
                img = ImageOps.exif_transpose(img)
                bitmap = Bitmap.from_image(img)

        except ConversionError:
            raise
        except Exception as e:
            logger.warning("Image decode failed", kind=kind.value, error=str(e))
            raise DecodeError(f"Failed to decode {kind.value}: {str(e)}")

        logger.debug(
            "Image decoded",
            kind=kind.value,
            width=bitmap.width,
            height=bitmap.height,
        )
        return bitmap

    def _open_pdf(self, data: bytes) -> fitz.Document:
        """
        Open a PDF document for reading.

        Raises:
            DecodeError: If the document cannot be parsed, has no pages or needs
                a password to open
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            logger.warning("PDF parse failed", error=str(e))
            raise DecodeError(f"Failed to parse PDF: {str(e)}")

        if doc.needs_pass:
            doc.close()
            raise DecodeError("PDF is password protected")
        if doc.page_count == 0:
            doc.close()
            raise DecodeError("PDF has no pages", code="EMPTY_PDF")
        return doc

    def page_count(self, data: bytes) -> int:
        """
        Count the pages of a PDF document.

        Raises:
            DecodeError: If the document cannot be parsed
        """
        doc = self._open_pdf(data)
        try:
            return doc.page_count
        finally:
            doc.close()

    def render_pdf_page(self, data: bytes, page_number: int = 1, scale: float = 1.5) -> Bitmap:
        """
        Rasterize one page of a PDF document.

        Args:
            data: PDF document bytes
            page_number: 1-based page number
            scale: Linear magnification applied to the page's point size

        Returns:
            Rendered bitmap of the page on an opaque background

        Raises:
            DecodeError: If the document cannot be parsed or rendered
            PageRangeError: If page_number is outside the document
            InvalidGeometryError: If scale is not positive
        """
        if scale <= 0:
            raise InvalidGeometryError(f"Render scale must be positive, got {scale}")

        doc = self._open_pdf(data)
        try:
            count = doc.page_count
            if page_number < 1 or page_number > count:
                raise PageRangeError(
                    f"Page {page_number} requested but document has {count} page(s)"
                )

            page = doc.load_page(page_number - 1)
            pix = page.get_pixmap(
                matrix=fitz.Matrix(scale, scale),
                colorspace=fitz.csRGB,
                alpha=False,
            )
            img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
            bitmap = Bitmap.from_image(img)
        except ConversionError:
            raise
        except Exception as e:
            logger.warning("PDF render failed", page=page_number, error=str(e))
            raise DecodeError(f"Failed to render page {page_number}: {str(e)}")
        finally:
            doc.close()

        logger.debug(
            "PDF page rendered",
            page=page_number,
            page_count=count,
            scale=scale,
            width=bitmap.width,
            height=bitmap.height,
        )
        return bitmap

    def is_embeddable_jpeg(self, data: bytes) -> bool:
        """
        True when JPEG bytes can be placed in a PDF as they are: RGB or
        grayscale, and no EXIF rotation that decoding would have applied.
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                if img.format != "JPEG" or img.mode not in ("RGB", "L"):
                    return False
                orientation = img.getexif().get(EXIF_ORIENTATION)
                return orientation in (None, 1)
        except Exception:
            return False
