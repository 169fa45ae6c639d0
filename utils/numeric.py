"""Rounding helpers."""

import math

import numpy as np


def round_half_up(value: float) -> int:
    """Round .5 away from -inf, as browsers do for pixel sizes."""
    return int(math.floor(value + 0.5))


def round_half_up_array(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def round_to_even(value: float) -> int:
    """Nearest even integer, ties upward."""
    return round_half_up(value / 2) * 2
