"""Error taxonomy for the conversion engine."""


class ConversionError(Exception):
    """Base class for every error raised while converting a file."""

    code = "CONVERSION_FAILED"

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code or self.code
        self.message = message
        super().__init__(message)


class DecodeError(ConversionError):
    """Source bytes are malformed or not an instance of the declared format."""

    code = "DECODE_FAILED"


class PageRangeError(ConversionError):
    """Requested page does not exist in the document."""

    code = "PAGE_OUT_OF_RANGE"


class InvalidGeometryError(ConversionError):
    """Non-positive dimensions or scale were supplied."""

    code = "INVALID_GEOMETRY"


class InvalidQualityError(ConversionError):
    """Encode quality outside (0, 1]."""

    code = "INVALID_QUALITY"


class EncodeError(ConversionError):
    """Output bytes could not be produced."""

    code = "ENCODE_FAILED"


class UnsupportedConversionError(ConversionError):
    """Source kind and target format are not in the decision table."""

    code = "UNSUPPORTED_CONVERSION"


class FileTooLargeError(ConversionError):
    """Input file exceeds the configured size limit."""

    code = "FILE_TOO_LARGE"


class EngineInitError(ConversionError):
    """A codec service the engine depends on is unavailable."""

    code = "ENGINE_INIT_FAILED"


class InvalidTransitionError(ConversionError):
    """Job status change that would move a job backwards or skip a state."""

    code = "INVALID_TRANSITION"
