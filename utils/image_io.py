"""Image decode/encode using OpenCV."""

import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from models.raster_image import RasterImage
from utils.errors import DecodeError, EncodeError, PreconditionViolation

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> RasterImage:
    """Decode encoded bytes to an RGBA raster."""
    if not data:
        raise DecodeError("Empty image data")
    buf = np.frombuffer(data, dtype=np.uint8)
    img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    if img is None or img.size == 0:
        raise DecodeError("Invalid or corrupted image data")
    
    if img.dtype == np.uint16:
        img = (img // 257).astype(np.uint8)
    elif img.dtype != np.uint8:
        img = cv2.normalize(img, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    
    if img.ndim == 2:
        rgba = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    elif img.shape[2] == 3:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    elif img.shape[2] == 4:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    else:
        raise DecodeError(f"Unsupported channel count: {img.shape[2]}")
    
    logger.debug("Decoded %d bytes to %dx%d", len(data), rgba.shape[1], rgba.shape[0])
    return RasterImage.from_rgba(rgba)


def encode_image(
    raster: RasterImage,
    quality: float,
    progressive: bool = False,
    fmt: str = '.jpg'
) -> bytes:
    """Encode raster at a quality fraction in (0, 1]. Alpha is dropped for JPEG."""
    if not (0.0 < quality <= 1.0):
        raise PreconditionViolation(f"Quality fraction must be in (0, 1], got {quality}")
    
    jpeg_quality = int(np.clip(round(quality * 100), 1, 100))
    bgr = cv2.cvtColor(raster.rgb, cv2.COLOR_RGB2BGR)
    params = [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality]
    if progressive:
        params += [cv2.IMWRITE_JPEG_PROGRESSIVE, 1]
    
    try:
        ok, buf = cv2.imencode(fmt, bgr, params)
    except cv2.error as e:
        raise EncodeError(f"Failed to compress image: {e}") from e
    if not ok or buf is None or buf.size == 0:
        raise EncodeError("Failed to compress image")
    
    logger.debug("Encoded %dx%d at q=%d -> %d bytes", raster.width, raster.height, jpeg_quality, buf.size)
    return buf.tobytes()


def load_image(path: Union[str, Path]) -> RasterImage:
    """Load image file as RGBA raster."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DecodeError(f"Could not load image from {path}: {e}") from e
    return decode_image(data)


def save_image(data: bytes, path: Union[str, Path]) -> None:
    """Write encoded bytes."""
    Path(path).write_bytes(data)
