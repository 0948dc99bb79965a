"""Routing of a source file and target format to the conversion steps."""

import asyncio
import re
from typing import Awaitable, Callable

import structlog

from converter.composer import PdfComposer
from converter.config import Settings, settings as default_settings
from converter.encoder import ImageEncoder
from converter.errors import FileTooLargeError, UnsupportedConversionError
from converter.fitter import fit
from converter.models import SourceFile, SourceKind, TargetFormat
from converter.rasterizer import Rasterizer

logger = structlog.get_logger()

_EXTENSION = re.compile(r"\.[^/.]+$")

Handler = Callable[[SourceFile], Awaitable[bytes]]


def output_name(original_name: str, target_format: TargetFormat | str) -> str:
    """Suggested filename for a converted file, e.g. 'scan_converted.pdf'."""
    target = TargetFormat.parse(target_format)
    return f"{_EXTENSION.sub('', original_name)}_converted.{target.value}"


class ConversionDispatcher:
    """Selects and runs the conversion for a (source kind, target format) pair."""

    def __init__(
        self,
        rasterizer: Rasterizer,
        encoder: ImageEncoder,
        composer: PdfComposer,
        settings: Settings = default_settings,
    ) -> None:
        self._rasterizer = rasterizer
        self._encoder = encoder
        self._composer = composer
        self._settings = settings

        self._table: dict[tuple[SourceKind, TargetFormat], Handler] = {}
        for kind in SourceKind:
            if kind.is_image:
                self._table[(kind, TargetFormat.PDF)] = self._image_to_pdf
                self._table[(kind, TargetFormat.JPG)] = self._image_to_jpg
        self._table[(SourceKind.PDF, TargetFormat.JPG)] = self._pdf_to_jpg
        self._table[(SourceKind.PDF, TargetFormat.PDF)] = self._pdf_passthrough

    @property
    def routes(self) -> list[tuple[SourceKind, TargetFormat]]:
        return list(self._table)

    async def convert(self, source: SourceFile, target_format: TargetFormat | str) -> bytes:
        """
        Convert a source file to the target format.

        Args:
            source: File accepted by intake
            target_format: Target token or enum member

        Returns:
            Encoded output bytes

        Raises:
            UnsupportedConversionError: If the pair is not in the decision table
            FileTooLargeError: If the source exceeds the configured size limit
            ConversionError: Any error from the rasterizer, encoder or composer
        """
        kind = SourceKind.from_mime(source.mime_type)
        target = TargetFormat.parse(target_format)

        handler = self._table.get((kind, target))
        if handler is None:
            raise UnsupportedConversionError(
                f"Cannot convert {kind.value} to {target.value}")

        size_mb = len(source.content) / (1024 * 1024)
        if size_mb > self._settings.max_input_size_mb:
            raise FileTooLargeError(
                f"Input file is {size_mb:.1f}MB, max is {self._settings.max_input_size_mb}MB"
            )

        logger.debug(
            "Dispatching conversion",
            file=source.name,
            source_kind=kind.value,
            target=target.value,
        )
        return await handler(source)

    async def _image_to_jpg(self, source: SourceFile) -> bytes:
        bitmap = await asyncio.to_thread(
            self._rasterizer.decode_image, source.content, source.kind
        )
        return await asyncio.to_thread(
            self._encoder.encode_jpeg, bitmap, self._settings.jpeg_quality
        )

    async def _image_to_pdf(self, source: SourceFile) -> bytes:
        page_width = self._settings.page_width
        page_height = self._settings.page_height

        bitmap = await asyncio.to_thread(
            self._rasterizer.decode_image, source.content, source.kind
        )
        geometry = fit(bitmap.width, bitmap.height, page_width, page_height)

        # Opaque JPEGs go in as they are; anything else is flattened and re-encoded
        if source.kind is SourceKind.JPEG and self._rasterizer.is_embeddable_jpeg(source.content):
            payload = source.content
        else:
            payload = await asyncio.to_thread(
                self._encoder.encode_jpeg, bitmap, self._settings.jpeg_quality
            )

        return await asyncio.to_thread(
            self._composer.compose_single_page_document,
            payload,
            geometry,
            page_width,
            page_height,
        )

    async def _pdf_to_jpg(self, source: SourceFile) -> bytes:
        bitmap = await asyncio.to_thread(
            self._rasterizer.render_pdf_page,
            source.content,
            1,
            self._settings.render_scale,
        )
        return await asyncio.to_thread(
            self._encoder.encode_jpeg, bitmap, self._settings.jpeg_quality
        )

    async def _pdf_passthrough(self, source: SourceFile) -> bytes:
        return source.content
