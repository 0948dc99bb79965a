"""Engine assembly and logging setup for host applications."""

import logging
import sys
from typing import Iterable

import fitz  # PyMuPDF
import structlog
from PIL import features

from converter.composer import PdfComposer
from converter.config import Settings, settings as default_settings
from converter.dispatcher import ConversionDispatcher
from converter.encoder import ImageEncoder
from converter.errors import EngineInitError
from converter.jobs import JobManager
from converter.models import ConversionResult, TargetFormat
from converter.pipeline import BatchRunner
from converter.rasterizer import Rasterizer

# Pillow codec features the engine cannot work without
REQUIRED_CODECS = ("jpg", "webp", "zlib")


def configure_logging(log_level: str | None = None) -> None:
    """Configure structured logging with structlog."""
    level_name = (log_level or default_settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    # Set up standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(
            ) if level_name == "DEBUG" else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def check_codecs() -> None:
    """
    Verify the codec services are usable.

    Raises:
        EngineInitError: If a Pillow codec or PyMuPDF is unavailable
    """
    missing = [name for name in REQUIRED_CODECS if not features.check(name)]
    if missing:
        raise EngineInitError(
            f"Pillow is missing codec support: {', '.join(missing)}")

    try:
        fitz.open().close()
    except Exception as e:
        raise EngineInitError(f"PyMuPDF is not usable: {str(e)}")


class ConverterEngine:
    """The assembled conversion services, ready for a host to call."""

    def __init__(
        self,
        dispatcher: ConversionDispatcher,
        runner: BatchRunner,
        jobs: JobManager,
        settings: Settings,
    ) -> None:
        self.dispatcher = dispatcher
        self.runner = runner
        self.jobs = jobs
        self.settings = settings

    async def convert_files(
        self,
        files: Iterable[tuple[str, bytes, str]],
        target_format: TargetFormat | str,
    ) -> list[ConversionResult]:
        """
        Intake the files and convert them in one batch.

        The batch runs on copies of the created jobs, so retargeting the
        store while it runs does not change the jobs already queued.
        """
        created = await self.jobs.add_files(files, target_format)
        snapshot = [job.model_copy(deep=True) for job in created]
        return await self.runner.run_batch(snapshot, on_status=self.jobs.update_job_status)


def create_engine(settings: Settings | None = None) -> ConverterEngine:
    """
    Build the engine with initialized codec services.

    Args:
        settings: Engine settings, defaults to the environment-loaded instance

    Returns:
        Ready engine

    Raises:
        EngineInitError: If a required codec is unavailable
    """
    settings = settings or default_settings
    logger = structlog.get_logger()

    check_codecs()

    rasterizer = Rasterizer()
    encoder = ImageEncoder()
    composer = PdfComposer(creator=settings.service_name)
    dispatcher = ConversionDispatcher(rasterizer, encoder, composer, settings=settings)
    engine = ConverterEngine(
        dispatcher=dispatcher,
        runner=BatchRunner(dispatcher),
        jobs=JobManager(settings.accepted_mime_types),
        settings=settings,
    )

    logger.info(
        "Converter engine ready",
        service=settings.service_name,
        routes=len(dispatcher.routes),
        jpeg_quality=settings.jpeg_quality,
        render_scale=settings.render_scale,
        page_size=(settings.page_width, settings.page_height),
    )
    return engine
