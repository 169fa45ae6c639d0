"""Raster filters: web pre-filter, resample, unsharp mask, noise reduction."""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np
from scipy.ndimage import correlate

from models.compression_profile import CompressionProfile
from models.raster_image import RasterImage
from utils.constants import (
    WEB_CONTRAST, WEB_BRIGHTNESS, SHARPEN_AMOUNT, SHARPEN_THRESHOLD, NOISE_REDUCTION_MARGIN,
)
from utils.numeric import round_half_up_array

logger = logging.getLogger(__name__)

INTERPOLATION = {
    'low': cv2.INTER_LINEAR,
    'medium': cv2.INTER_AREA,
    'high': cv2.INTER_CUBIC,
}

# Weight 1 / (1 + |dx| + |dy|) over the 3x3 window
NOISE_WEIGHTS = np.array([
    [1 / 3, 1 / 2, 1 / 3],
    [1 / 2, 1.0, 1 / 2],
    [1 / 3, 1 / 2, 1 / 3],
], dtype=np.float64)


def _with_opaque_alpha(rgb: np.ndarray) -> RasterImage:
    return RasterImage.from_rgb(rgb)


def web_optimize(
    raster: RasterImage,
    contrast: float = WEB_CONTRAST,
    brightness: float = WEB_BRIGHTNESS
) -> RasterImage:
    """CSS-style contrast() then brightness() on R, G, B. Alpha kept."""
    rgb = raster.rgb.astype(np.float64)
    adjusted = ((rgb - 127.5) * contrast + 127.5) * brightness
    out = raster.pixels.copy()
    out[:, :, :3] = np.rint(np.clip(adjusted, 0, 255)).astype(np.uint8)
    return RasterImage(out)


def resample(raster: RasterImage, size: Tuple[int, int], smoothing: str = 'medium') -> RasterImage:
    """Resize to (width, height)."""
    if raster.size == tuple(size):
        return raster.copy()
    interp = INTERPOLATION.get(smoothing, cv2.INTER_AREA)
    resized = cv2.resize(raster.pixels, (int(size[0]), int(size[1])), interpolation=interp)
    return RasterImage(resized)


def unsharp_mask(
    raster: RasterImage,
    amount: float = SHARPEN_AMOUNT,
    threshold: float = SHARPEN_THRESHOLD
) -> RasterImage:
    """
    Sharpen interior pixels along luma edges.

    The 4-neighbour Laplacian of the unweighted R, G, B mean is added
    (scaled by `amount`) to each colour channel wherever its magnitude
    exceeds `threshold`. The 1-pixel border is copied unchanged.
    """
    rgb = raster.rgb.copy()
    h, w = rgb.shape[:2]
    if h < 3 or w < 3:
        return _with_opaque_alpha(rgb)

    src = rgb.astype(np.float64)
    gray = (src[:, :, 0] + src[:, :, 1] + src[:, :, 2]) / 3
    # 4*c - (l + r + t + b); the operand order decides exact .5 ties
    neighbours = gray[1:-1, :-2] + gray[1:-1, 2:] + gray[:-2, 1:-1] + gray[2:, 1:-1]
    laplacian = 4 * gray[1:-1, 1:-1] - neighbours
    mask = np.abs(laplacian) > threshold

    inner = src[1:-1, 1:-1]
    sharpened = np.clip(inner + amount * laplacian[:, :, None], 0, 255)
    inner_out = np.where(mask[:, :, None], np.rint(sharpened), inner)
    rgb[1:-1, 1:-1] = inner_out.astype(np.uint8)

    logger.debug("Unsharp mask touched %d of %d interior pixels", int(mask.sum()), mask.size)
    return _with_opaque_alpha(rgb)


def reduce_noise(raster: RasterImage, margin: int = NOISE_REDUCTION_MARGIN) -> RasterImage:
    """Distance-weighted 3x3 mean; pixels within `margin` of the edge are copied."""
    rgb = raster.rgb.copy()
    h, w = rgb.shape[:2]
    if h <= 2 * margin or w <= 2 * margin:
        return _with_opaque_alpha(rgb)

    src = rgb.astype(np.float64)
    # Summed in kernel order, like the weighted samples
    weight_sum = 0.0
    for weight in NOISE_WEIGHTS.flat:
        weight_sum += weight
    for c in range(3):
        smoothed = correlate(src[:, :, c], NOISE_WEIGHTS, mode='nearest') / weight_sum
        rgb[margin:h - margin, margin:w - margin, c] = np.clip(
            round_half_up_array(smoothed[margin:h - margin, margin:w - margin]), 0, 255
        ).astype(np.uint8)

    return _with_opaque_alpha(rgb)


def apply_filters(
    raster: RasterImage,
    profile: CompressionProfile,
    size: Optional[Tuple[int, int]] = None
) -> RasterImage:
    """Web pre-filter -> resample to `size` -> sharpen -> noise reduction."""
    working = raster
    if profile.is_web_optimized:
        logger.debug("Applying web optimization pre-filter")
        working = web_optimize(working)
    if size is not None:
        working = resample(working, size, profile.smoothing)
    if profile.should_sharpen:
        logger.debug("Applying unsharp mask")
        working = unsharp_mask(working)
    if profile.should_reduce_noise:
        logger.debug("Applying noise reduction")
        working = reduce_noise(working)
    if working is raster:
        working = raster.copy()
    return working
