"""Shared utilities."""

from .errors import (
    CompressionError, DecodeError, EncodeError, DimensionMismatch, PreconditionViolation,
)
from .grading import grade_label, recommendations
from .formatting import format_file_size

__all__ = [
    'CompressionError',
    'DecodeError',
    'EncodeError',
    'DimensionMismatch',
    'PreconditionViolation',
    'grade_label',
    'recommendations',
    'format_file_size',
]
