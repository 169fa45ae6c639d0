"""Output dimension planning: mode caps, web cap, even sizes."""

import logging
from typing import Tuple

from models.compression_profile import CompressionProfile
from utils.constants import MODE_MAX_SIZE, DEFAULT_MAX_SIZE, WEB_MAX_SIZE
from utils.errors import PreconditionViolation
from utils.numeric import round_half_up, round_to_even

logger = logging.getLogger(__name__)


def max_size_for(profile: CompressionProfile) -> int:
    return MODE_MAX_SIZE.get(profile.mode, DEFAULT_MAX_SIZE)


def _even_within(value: float, limit: int) -> int:
    """Even-rounded size that never exceeds the source dimension."""
    if limit < 2:
        return limit
    largest_even = limit - (limit % 2)
    return max(2, min(round_to_even(value), largest_even))


def plan_geometry(profile: CompressionProfile, width: int, height: int) -> Tuple[int, int]:
    """Target (width, height) for a source of the given size. Never upscales."""
    if width <= 0 or height <= 0:
        raise PreconditionViolation(f"Dimensions must be positive, got {width}x{height}")

    max_size = max_size_for(profile)
    aspect_ratio = width / height
    new_w, new_h = float(width), float(height)

    if width > max_size or height > max_size:
        if width > height:
            new_w = max_size
            new_h = round_half_up(max_size / aspect_ratio)
        else:
            new_h = max_size
            new_w = round_half_up(max_size * aspect_ratio)

    new_w = _even_within(new_w, width)
    new_h = _even_within(new_h, height)

    if profile.is_web_optimized:
        web_max = min(max_size, WEB_MAX_SIZE)
        if new_w > web_max or new_h > web_max:
            ratio = min(web_max / new_w, web_max / new_h)
            new_w = _even_within(new_w * ratio, width)
            new_h = _even_within(new_h * ratio, height)

    logger.debug("Planned %dx%d -> %dx%d (%s)", width, height, new_w, new_h, profile.mode)
    return new_w, new_h
