"""Compression engines - pure computation, no GUI dependencies."""

from .geometry import plan_geometry
from .filters import apply_filters, web_optimize, resample, unsharp_mask, reduce_noise
from .quality_encoder import derive_quality, encode
from .pipeline import (
    compress_image,
    compress_and_assess,
    analyze_image_quality,
    compare_visual,
    compare_encoded,
    match_dimensions,
)
from utils.metrics import assess_quality

__all__ = [
    'plan_geometry',
    'apply_filters',
    'web_optimize',
    'resample',
    'unsharp_mask',
    'reduce_noise',
    'derive_quality',
    'encode',
    'compress_image',
    'compress_and_assess',
    'analyze_image_quality',
    'assess_quality',
    'compare_visual',
    'compare_encoded',
    'match_dimensions',
]
