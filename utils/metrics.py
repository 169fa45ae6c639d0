"""Metrics: MSE, PSNR, global SSIM, texture statistics, overall score."""

import math
from typing import Dict, Tuple

import cv2
import numpy as np
from skimage.metrics import structural_similarity

from models.raster_image import RasterImage
from models.quality_report import QualityReport
from utils.constants import (
    SSIM_C1, SSIM_C2, PSNR_IDENTICAL, OVERALL_WEIGHTS, DIFFERENCE_AMPLIFICATION,
)
from utils.errors import DimensionMismatch, PreconditionViolation
from utils.numeric import round_half_up

SOBEL_KSIZE = 3

# Center 8, all eight neighbours -1
NOISE_KERNEL = np.array([
    [-1, -1, -1],
    [-1,  8, -1],
    [-1, -1, -1],
], dtype=np.float64)


def _check_same_size(original: RasterImage, compressed: RasterImage) -> None:
    if original.size != compressed.size:
        raise DimensionMismatch(
            f"Rasters differ in size: {original.width}x{original.height} "
            f"vs {compressed.width}x{compressed.height}"
        )


def to_gray(raster: RasterImage) -> np.ndarray:
    """Unweighted mean of R, G, B as float64."""
    return raster.rgb.astype(np.float64).mean(axis=2)


def _interior(values: np.ndarray) -> np.ndarray:
    return values[1:-1, 1:-1]


def _has_interior(raster: RasterImage) -> bool:
    return raster.width >= 3 and raster.height >= 3


def compute_mse(original: RasterImage, compressed: RasterImage) -> float:
    """Mean squared error over R, G, B (alpha excluded)."""
    _check_same_size(original, compressed)
    diff = original.rgb.astype(np.float64) - compressed.rgb.astype(np.float64)
    return float(np.mean(diff ** 2))


def compute_psnr(original: RasterImage, compressed: RasterImage) -> float:
    """PSNR in dB; identical images give 100 instead of infinity."""
    mse = compute_mse(original, compressed)
    if mse == 0:
        return PSNR_IDENTICAL
    return float(20.0 * math.log10(255.0 / math.sqrt(mse)))


def compute_ssim(
    original: RasterImage,
    compressed: RasterImage,
    method: str = 'global'
) -> float:
    """
    Structural similarity on the luma plane.

    'global' uses whole-image means, variances and covariance in a single
    SSIM term. This is not the windowed reference SSIM and differs from it
    on non-uniform images. 'windowed' delegates to scikit-image.
    """
    _check_same_size(original, compressed)
    gray1 = to_gray(original)
    gray2 = to_gray(compressed)

    if method == 'windowed':
        win_size = min(7, gray1.shape[0], gray1.shape[1])
        if win_size % 2 == 0:
            win_size -= 1
        if win_size < 3:
            raise PreconditionViolation("Windowed SSIM needs images of at least 3x3 pixels")
        return float(structural_similarity(gray1, gray2, data_range=255, win_size=win_size))
    if method != 'global':
        raise ValueError(f"Unknown SSIM method: {method}")

    mean1 = gray1.mean()
    mean2 = gray2.mean()
    var1 = np.mean((gray1 - mean1) ** 2)
    var2 = np.mean((gray2 - mean2) ** 2)
    covar = np.mean((gray1 - mean1) * (gray2 - mean2))

    numerator = (2 * mean1 * mean2 + SSIM_C1) * (2 * covar + SSIM_C2)
    denominator = (mean1 ** 2 + mean2 ** 2 + SSIM_C1) * (var1 + var2 + SSIM_C2)
    return float(numerator / denominator)


def compute_sharpness(raster: RasterImage) -> float:
    """Mean Sobel gradient magnitude over interior pixels, / 255."""
    if not _has_interior(raster):
        return 0.0
    gray = to_gray(raster)
    gx = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=SOBEL_KSIZE)
    gy = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=SOBEL_KSIZE)
    magnitude = np.sqrt(_interior(gx) ** 2 + _interior(gy) ** 2)
    return float(magnitude.mean() / 255.0)


def compute_contrast(raster: RasterImage) -> float:
    """Standard deviation of luma, / 255."""
    return float(to_gray(raster).std() / 255.0)


def compute_brightness(raster: RasterImage) -> float:
    """Mean luma, / 255."""
    return float(to_gray(raster).mean() / 255.0)


def compute_colorfulness(raster: RasterImage) -> float:
    """sqrt(std(|R-G|)^2 + std(|(R+G)/2 - B|)^2) / 255."""
    rgb = raster.rgb.astype(np.float64)
    r, g, b = rgb[:, :, 0], rgb[:, :, 1], rgb[:, :, 2]
    rg = np.abs(r - g)
    yb = np.abs((r + g) / 2.0 - b)
    return float(math.sqrt(rg.std() ** 2 + yb.std() ** 2) / 255.0)


def compute_noise_level(raster: RasterImage) -> float:
    """Mean |8-neighbour Laplacian| over interior pixels, / 255."""
    if not _has_interior(raster):
        return 0.0
    laplacian = cv2.filter2D(to_gray(raster), cv2.CV_64F, NOISE_KERNEL)
    return float(np.abs(_interior(laplacian)).mean() / 255.0)


def compute_file_efficiency(compression_ratio: float, psnr: float) -> float:
    """Compression ratio weighted by normalised PSNR, scaled down by 10."""
    return (compression_ratio * min(psnr / 40.0, 1.0)) / 10.0


def compute_overall_quality(
    psnr: float,
    ssim: float,
    sharpness: float,
    contrast: float,
    colorfulness: float,
    file_efficiency: float
) -> int:
    """Weighted 0-100 score."""
    normalized = {
        'psnr': min(psnr / 40.0, 1.0),
        'ssim': max(0.0, ssim),
        'sharpness': min(sharpness * 2, 1.0),
        'contrast': min(contrast * 2, 1.0),
        'colorfulness': min(colorfulness * 2, 1.0),
        'file_efficiency': min(file_efficiency / 2.0, 1.0),
    }
    score = sum(normalized[k] * w for k, w in OVERALL_WEIGHTS.items())
    return int(np.clip(round_half_up(score * 100), 0, 100))


def texture_metrics(raster: RasterImage) -> Dict[str, float]:
    """Single-image statistics shown next to the original."""
    return {
        'brightness': compute_brightness(raster),
        'contrast': compute_contrast(raster),
        'sharpness': compute_sharpness(raster),
        'colorfulness': compute_colorfulness(raster),
    }


def assess_quality(
    original: RasterImage,
    compressed: RasterImage,
    original_size: int,
    compressed_size: int,
    ssim_method: str = 'global'
) -> QualityReport:
    """Full report for a compressed raster of the same size as the original."""
    _check_same_size(original, compressed)
    if compressed_size <= 0:
        raise PreconditionViolation("Compressed size must be positive")
    if original_size <= 0:
        raise PreconditionViolation("Original size must be positive")

    psnr = compute_psnr(original, compressed)
    ssim = compute_ssim(original, compressed, method=ssim_method)
    mse = compute_mse(original, compressed)
    sharpness = compute_sharpness(compressed)
    contrast = compute_contrast(compressed)
    colorfulness = compute_colorfulness(compressed)
    compression_ratio = original_size / compressed_size
    file_efficiency = compute_file_efficiency(compression_ratio, psnr)

    return QualityReport(
        psnr=psnr,
        ssim=ssim,
        mse=mse,
        sharpness=sharpness,
        contrast=contrast,
        brightness=compute_brightness(compressed),
        colorfulness=colorfulness,
        noise_level=compute_noise_level(compressed),
        file_efficiency=file_efficiency,
        compression_ratio=compression_ratio,
        overall_quality=compute_overall_quality(
            psnr, ssim, sharpness, contrast, colorfulness, file_efficiency
        ),
    )


def compute_histogram(raster: RasterImage) -> np.ndarray:
    """3 x 256 bucket counts for R, G, B."""
    return np.stack([
        np.bincount(raster.rgb[:, :, c].ravel(), minlength=256)
        for c in range(3)
    ])


def compute_difference(
    original: RasterImage,
    compressed: RasterImage
) -> Tuple[RasterImage, float, float]:
    """
    Per-pixel mean absolute channel difference.

    Returns the visualisation (difference x3, clipped to 255, grey, opaque)
    together with the max and mean of the raw difference.
    """
    _check_same_size(original, compressed)
    diff = np.abs(original.rgb.astype(np.float64) - compressed.rgb.astype(np.float64))
    avg_diff = diff.mean(axis=2)

    amplified = np.rint(np.minimum(avg_diff * DIFFERENCE_AMPLIFICATION, 255)).astype(np.uint8)
    pixels = np.empty((original.height, original.width, 4), dtype=np.uint8)
    pixels[:, :, 0] = amplified
    pixels[:, :, 1] = amplified
    pixels[:, :, 2] = amplified
    pixels[:, :, 3] = 255

    return RasterImage(pixels), float(avg_diff.max()), float(avg_diff.mean())
