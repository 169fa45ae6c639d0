"""Effective quality derivation and final encode."""

import logging
import time
from typing import Optional, Tuple

from models.compression_profile import CompressionProfile
from models.compression_result import EncodedResult
from models.raster_image import RasterImage
from engines.geometry import plan_geometry
from engines.filters import apply_filters
from utils.constants import (
    MODE_QUALITY_FACTOR, DEFAULT_QUALITY_FACTOR, MIN_QUALITY_FRACTION, MAX_QUALITY_FRACTION,
    HEAVY_RESIZE_RATIO, MINIMAL_RESIZE_RATIO, LARGE_IMAGE_PIXELS, SMALL_IMAGE_PIXELS,
)
from utils.errors import EncodeError, PreconditionViolation
from utils.image_io import encode_image

logger = logging.getLogger(__name__)


def derive_quality(
    profile: CompressionProfile,
    original_dims: Tuple[int, int],
    output_dims: Tuple[int, int]
) -> float:
    """Encoder quality fraction in [0.05, 0.98]."""
    orig_w, orig_h = original_dims
    out_w, out_h = output_dims
    if orig_w <= 0 or orig_h <= 0 or out_w <= 0 or out_h <= 0:
        raise PreconditionViolation(
            f"Dimensions must be positive, got {original_dims} -> {output_dims}"
        )

    quality = profile.quality / 100
    quality *= MODE_QUALITY_FACTOR.get(profile.mode, DEFAULT_QUALITY_FACTOR)
    if profile.mode == 'gentle':
        quality = min(quality, MAX_QUALITY_FRACTION)

    # Heavily downsized images tolerate lower quality
    resize_ratio = (out_w * out_h) / (orig_w * orig_h)
    if resize_ratio < HEAVY_RESIZE_RATIO:
        quality *= 0.95
    elif resize_ratio > MINIMAL_RESIZE_RATIO:
        quality *= 1.05

    pixel_count = out_w * out_h
    if pixel_count > LARGE_IMAGE_PIXELS:
        quality *= 0.95
    elif pixel_count < SMALL_IMAGE_PIXELS:
        quality *= 1.05

    return max(MIN_QUALITY_FRACTION, min(MAX_QUALITY_FRACTION, quality))


def encode(
    raster: RasterImage,
    profile: CompressionProfile,
    original_size: Optional[int] = None
) -> EncodedResult:
    """Resize, filter and JPEG-encode a raster under a profile.

    `original_size` is the byte size the ratio is measured against; it
    defaults to the uncompressed 24-bit size of the raster.
    """
    start = time.perf_counter()
    if original_size is None:
        original_size = raster.nbytes_rgb

    original_dims = raster.size
    output_dims = plan_geometry(profile, raster.width, raster.height)
    filtered = apply_filters(raster, profile, output_dims)
    quality = derive_quality(profile, original_dims, output_dims)

    data = encode_image(filtered, quality, progressive=profile.progressive)
    if not data:
        raise EncodeError("Failed to compress image")

    result = EncodedResult(
        data=data,
        original_size=original_size,
        original_dimensions=original_dims,
        compressed_dimensions=output_dims,
        actual_quality=quality,
        compression_ratio=original_size / len(data),
        encode_time_ms=(time.perf_counter() - start) * 1000.0,
    )
    logger.info(
        "Encoded %dx%d -> %dx%d at q=%.3f: %d -> %d bytes (%.2f:1)",
        *original_dims, *output_dims, quality, original_size, result.size, result.compression_ratio
    )
    return result
