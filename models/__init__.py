"""Data models for rasters, profiles, results and batch items."""

from .raster_image import RasterImage
from .compression_profile import CompressionProfile
from .compression_result import EncodedResult
from .quality_report import QualityReport, VisualComparison
from .queue_item import QueueItem, BatchProgress

__all__ = [
    'RasterImage',
    'CompressionProfile',
    'EncodedResult',
    'QualityReport',
    'VisualComparison',
    'QueueItem',
    'BatchProgress',
]
