"""Single-page PDF composition around an encoded raster image."""

import io

import fitz  # PyMuPDF
import structlog
from PIL import Image

from converter.errors import EncodeError
from converter.models import PageGeometry

logger = structlog.get_logger()

SUPPORTED_PAYLOADS = ("JPEG", "PNG")


class PdfComposer:
    """Builds PDF documents holding one image on one page."""

    def __init__(self, creator: str = "local-file-converter") -> None:
        self._creator = creator

    def _payload_format(self, image_bytes: bytes) -> str:
        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                fmt = img.format
        except Exception as e:
            raise EncodeError(f"Image payload is not a readable raster: {str(e)}")

        if fmt not in SUPPORTED_PAYLOADS:
            raise EncodeError(
                f"Unsupported image payload {fmt}, expected one of {', '.join(SUPPORTED_PAYLOADS)}"
            )
        return fmt

    def compose_single_page_document(
        self,
        image_bytes: bytes,
        geometry: PageGeometry,
        page_width: float,
        page_height: float,
    ) -> bytes:
        """
        Create a one-page PDF with the image placed per the geometry.

        Args:
            image_bytes: Encoded JPEG or PNG payload
            geometry: Placement from the page fitter, origin at the top-left
            page_width: Page width in points
            page_height: Page height in points

        Returns:
            PDF document bytes

        Raises:
            EncodeError: If the payload is unsupported or the PDF cannot be written
        """
        fmt = self._payload_format(image_bytes)

        doc = fitz.open()
        try:
            doc.set_metadata({"creator": self._creator, "producer": self._creator})
            page = doc.new_page(width=page_width, height=page_height)
            rect = fitz.Rect(
                geometry.margin_x,
                geometry.margin_y,
                geometry.margin_x + geometry.draw_width,
                geometry.margin_y + geometry.draw_height,
            )
            page.insert_image(rect, stream=image_bytes, keep_proportion=False)
            data = doc.tobytes(garbage=3, deflate=True)
        except Exception as e:
            logger.error("PDF composition failed", error=str(e))
            raise EncodeError(f"Failed to compose PDF: {str(e)}")
        finally:
            doc.close()

        logger.debug(
            "PDF composed",
            payload=fmt,
            page_width=page_width,
            page_height=page_height,
            scale=round(geometry.scale, 4),
            size_bytes=len(data),
        )
        return data
