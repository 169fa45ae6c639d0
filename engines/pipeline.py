"""Main compression and assessment pipeline."""

import logging
from typing import Optional, Tuple

import cv2

from models.compression_profile import CompressionProfile
from models.compression_result import EncodedResult
from models.quality_report import QualityReport, VisualComparison
from models.raster_image import RasterImage
from engines.quality_encoder import encode
from utils.image_io import decode_image
from utils.metrics import assess_quality, compute_histogram, compute_difference, texture_metrics

logger = logging.getLogger(__name__)


def compress_image(data: bytes, profile: CompressionProfile) -> EncodedResult:
    """Decode, compress and re-encode one image file's bytes."""
    raster = decode_image(data)
    return encode(raster, profile, original_size=len(data))


def match_dimensions(original: RasterImage, compressed: RasterImage) -> RasterImage:
    """Resample `original` to the size of `compressed` if they differ."""
    if original.size == compressed.size:
        return original
    logger.debug(
        "Resampling original %dx%d to %dx%d for comparison",
        original.width, original.height, compressed.width, compressed.height
    )
    resized = cv2.resize(original.pixels, compressed.size, interpolation=cv2.INTER_AREA)
    return RasterImage(resized)


def analyze_image_quality(
    original_data: bytes,
    compressed_data: bytes,
    ssim_method: str = 'global'
) -> QualityReport:
    """Quality report for two encoded images."""
    original = decode_image(original_data)
    compressed = decode_image(compressed_data)
    original = match_dimensions(original, compressed)
    return assess_quality(
        original, compressed, len(original_data), len(compressed_data), ssim_method=ssim_method
    )


def compress_and_assess(
    data: bytes,
    profile: CompressionProfile,
    ssim_method: str = 'global'
) -> Tuple[EncodedResult, QualityReport]:
    """Compress image bytes and score the result against the source."""
    original = decode_image(data)
    result = encode(original, profile, original_size=len(data))
    compressed = decode_image(result.data)
    report = assess_quality(
        match_dimensions(original, compressed),
        compressed,
        result.original_size,
        result.size,
        ssim_method=ssim_method,
    )
    logger.info("Overall quality %d (%s)", report.overall_quality, report.grade)
    return result, report


def compare_visual(
    original: RasterImage,
    compressed: RasterImage,
    original_size: Optional[int] = None,
    compressed_size: Optional[int] = None
) -> VisualComparison:
    """Histograms, difference map and metrics for two same-size rasters.

    The full quality report is included only when both byte sizes are known.
    """
    diff_map, max_diff, avg_diff = compute_difference(original, compressed)
    report = None
    if original_size is not None and compressed_size is not None:
        report = assess_quality(original, compressed, original_size, compressed_size)

    return VisualComparison(
        original_histogram=compute_histogram(original),
        compressed_histogram=compute_histogram(compressed),
        original_metrics=texture_metrics(original),
        difference_map=diff_map,
        max_difference=max_diff,
        average_difference=avg_diff,
        compressed_metrics=report,
    )


def compare_encoded(original_data: bytes, compressed_data: bytes) -> VisualComparison:
    """compare_visual for two encoded images; the original is resampled to match."""
    original = decode_image(original_data)
    compressed = decode_image(compressed_data)
    return compare_visual(
        match_dimensions(original, compressed),
        compressed,
        len(original_data),
        len(compressed_data),
    )
