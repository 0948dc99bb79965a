"""Pydantic models for conversion inputs, outputs and internal data structures."""

import io
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import ClassVar

from PIL import Image
from pydantic import BaseModel, Field, field_validator, model_validator

from converter.errors import UnsupportedConversionError


class SourceKind(str, Enum):
    """Closed set of source formats the engine can read."""

    JPEG = "image/jpeg"
    PNG = "image/png"
    WEBP = "image/webp"
    PDF = "application/pdf"

    @classmethod
    def from_mime(cls, mime_type: str) -> "SourceKind":
        try:
            return cls(mime_type.strip().lower())
        except ValueError:
            raise UnsupportedConversionError(
                f"Unsupported source type: {mime_type!r}")

    @property
    def is_image(self) -> bool:
        return self is not SourceKind.PDF

    @property
    def pil_format(self) -> str | None:
        """Format name Pillow reports for this kind, None for PDF."""
        return {
            SourceKind.JPEG: "JPEG",
            SourceKind.PNG: "PNG",
            SourceKind.WEBP: "WEBP",
        }.get(self)


class TargetFormat(str, Enum):
    """Closed set of output formats."""

    PDF = "pdf"
    JPG = "jpg"

    @classmethod
    def parse(cls, token: "str | TargetFormat") -> "TargetFormat":
        if isinstance(token, TargetFormat):
            return token
        normalized = token.strip().lower()
        if normalized == "jpeg":
            normalized = "jpg"
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedConversionError(
                f"Unsupported target format: {token!r}")

    @property
    def mime_type(self) -> str:
        if self is TargetFormat.PDF:
            return "application/pdf"
        return "image/jpeg"


def normalize_target(value):
    """Parse a target token, keeping unknown tokens so the dispatcher can reject them per job."""
    try:
        return TargetFormat.parse(value)
    except (UnsupportedConversionError, AttributeError):
        return value


class JobStatus(str, Enum):
    """Possible states of a conversion job."""

    PENDING = "pending"
    CONVERTING = "converting"
    DONE = "done"
    ERROR = "error"


class ResultStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


# ============================================================================
# Source and Output Models
# ============================================================================


class SourceFile(BaseModel):
    """A file accepted by intake. Never mutated."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    content: bytes = Field(..., repr=False)
    mime_type: str
    name: str
    size: int = 0

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _default_size(cls, data):
        if isinstance(data, dict) and not data.get("size") and data.get("content") is not None:
            data = {**data, "size": len(data["content"])}
        return data

    @property
    def kind(self) -> SourceKind:
        return SourceKind.from_mime(self.mime_type)

    @property
    def display_size(self) -> str:
        """Size in megabytes with two decimals, e.g. '1.50 MB'."""
        return f"{self.size / 1024 / 1024:.2f} MB"


class OutputBlob(BaseModel):
    """Owned byte buffer holding an encoded output file."""

    data: bytes = Field(..., repr=False)
    mime_type: str

    model_config = {"frozen": True}

    @property
    def size(self) -> int:
        return len(self.data)

    def open(self) -> io.BytesIO:
        """Return a fresh binary stream over the blob contents."""
        return io.BytesIO(self.data)

    def save(self, path: Path | str) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path


# ============================================================================
# Raster and Geometry Models
# ============================================================================


class Bitmap(BaseModel):
    """Decoded pixels: width x height RGBA, 8 bits per channel, row-major."""

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    pixels: bytes = Field(..., repr=False)

    model_config = {"frozen": True}

    CHANNELS: ClassVar[int] = 4
    MODE: ClassVar[str] = "RGBA"

    @model_validator(mode="after")
    def _check_buffer(self) -> "Bitmap":
        expected = self.width * self.height * self.CHANNELS
        if len(self.pixels) != expected:
            raise ValueError(
                f"pixel buffer is {len(self.pixels)} bytes, expected {expected}")
        return self

    @classmethod
    def from_image(cls, img: Image.Image) -> "Bitmap":
        if img.mode != cls.MODE:
            img = img.convert(cls.MODE)
        return cls(width=img.width, height=img.height, pixels=img.tobytes())

    def to_image(self) -> Image.Image:
        return Image.frombytes(self.MODE, (self.width, self.height), self.pixels)


class PageGeometry(BaseModel):
    """Placement of a raster inside a fixed-size page."""

    scale: float
    draw_width: float
    draw_height: float
    margin_x: float
    margin_y: float

    model_config = {"frozen": True}


# ============================================================================
# Job and Result Models
# ============================================================================


class ConversionJob(BaseModel):
    """Internal representation of a conversion job."""

    job_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    source: SourceFile
    target_format: TargetFormat | str = Field(..., union_mode="left_to_right")
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error_code: str | None = None
    error_message: str | None = None

    @field_validator("target_format", mode="before")
    @classmethod
    def _normalize_target(cls, value):
        return normalize_target(value)


class ConversionResult(BaseModel):
    """Outcome of a single job. Created once at the end of its processing."""

    job_id: str
    original_name: str
    new_name: str | None = None
    blob: OutputBlob | None = None
    status: ResultStatus
    error_code: str | None = None
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.SUCCESS
