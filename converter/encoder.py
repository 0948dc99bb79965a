"""JPEG encoding of bitmaps."""

import io

import structlog
from PIL import Image

from converter.errors import EncodeError, InvalidQualityError
from converter.models import Bitmap

logger = structlog.get_logger()

BACKGROUND = (255, 255, 255)


def to_pil_quality(quality: float) -> int:
    """Map a quality in (0, 1] onto Pillow's 1-100 JPEG scale."""
    if not 0 < quality <= 1:
        raise InvalidQualityError(f"Quality must be in (0, 1], got {quality}")
    return max(1, min(100, round(quality * 100)))


class ImageEncoder:
    """Encodes bitmaps as baseline JPEG."""

    def flatten(self, bitmap: Bitmap) -> Image.Image:
        """Composite the bitmap onto an opaque white canvas."""
        img = bitmap.to_image()
        canvas = Image.new("RGB", img.size, BACKGROUND)
        canvas.paste(img, (0, 0), img)
        return canvas

    def encode_jpeg(self, bitmap: Bitmap, quality: float = 0.9) -> bytes:
        """
        Encode a bitmap to JPEG.

        Transparent regions come out white since JPEG has no alpha channel.

        Args:
            bitmap: Source pixels
            quality: Encode quality in (0, 1]

        Returns:
            JPEG bytes

        Raises:
            InvalidQualityError: If quality is out of range
            EncodeError: If Pillow fails to write the image
        """
        pil_quality = to_pil_quality(quality)

        try:
            buf = io.BytesIO()
            self.flatten(bitmap).save(buf, format="JPEG", quality=pil_quality, optimize=True)
        except Exception as e:
            logger.error("JPEG encode failed", error=str(e))
            raise EncodeError(f"Failed to encode JPEG: {str(e)}")

        data = buf.getvalue()
        logger.debug(
            "JPEG encoded",
            width=bitmap.width,
            height=bitmap.height,
            quality=pil_quality,
            size_bytes=len(data),
        )
        return data
