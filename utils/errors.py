"""Error taxonomy for decode, encode and metric failures."""


class CompressionError(Exception):
    """Base class for all per-image processing errors."""


class DecodeError(CompressionError):
    """Input bytes could not be decoded to a raster."""


class EncodeError(CompressionError):
    """Encoder produced no output."""


class DimensionMismatch(CompressionError, ValueError):
    """Two rasters that must share dimensions do not."""


class PreconditionViolation(CompressionError, ValueError):
    """Invalid dimensions, quality or mode."""
