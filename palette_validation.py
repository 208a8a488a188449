#!/usr/bin/env python3
"""
Palette acceptance checks used by the harmony generators.
"""

import math
from dataclasses import dataclass

import numpy as np
from scipy.spatial.distance import pdist

from color_space import brightness, saturation, rgb_to_hsv, rgb_to_lab


# =============================================================================
# Constants
# =============================================================================

DEFAULT_MIN_BRIGHTNESS = 0.15
DEFAULT_MAX_BRIGHTNESS = 0.85
DEFAULT_MIN_SATURATION = 0.2
DEFAULT_MIN_COLOR_DISTANCE = 5.0  # CIE76 delta E

# Earth-tone hue bands in turns (they overlap)
EARTH_HUE_BANDS = (
    (0.0, 0.15),   # browns / oranges / reds
    (0.2, 0.4),    # greens
    (0.05, 0.15),  # yellows / tans
)
EARTHY_MAX_SATURATION = 0.7
EARTHY_MIN_FRACTION = 0.7


@dataclass
class Constraints:
    """Bounds a palette has to satisfy."""
    min_brightness: float = DEFAULT_MIN_BRIGHTNESS
    max_brightness: float = DEFAULT_MAX_BRIGHTNESS
    min_saturation: float = DEFAULT_MIN_SATURATION  # mean over the palette
    min_color_distance: float = DEFAULT_MIN_COLOR_DISTANCE  # every pair


def min_pairwise_distance(colors: np.ndarray) -> float:
    """Smallest LAB distance between any two colors (inf for < 2 colors)."""
    colors = np.asarray(colors, dtype=np.float64)
    if len(colors) < 2:
        return math.inf
    return float(pdist(rgb_to_lab(colors), metric='euclidean').min())


def is_valid(colors: np.ndarray, constraints: Constraints = None) -> bool:
    """
    Check a palette against brightness, saturation and distinctness bounds.

    Checks run in order and stop at the first failure:
    1. every color's brightness lies in [min_brightness, max_brightness]
    2. mean saturation >= min_saturation
    3. every pair of colors is at least min_color_distance apart in LAB
    """
    if constraints is None:
        constraints = Constraints()
    colors = np.asarray(colors, dtype=np.float64)
    if len(colors) == 0:
        return False

    levels = brightness(colors)
    if levels.min() < constraints.min_brightness or levels.max() > constraints.max_brightness:
        return False

    if saturation(colors).mean() < constraints.min_saturation:
        return False

    return min_pairwise_distance(colors) >= constraints.min_color_distance


def is_low_saturation(colors: np.ndarray, max_saturation: float) -> bool:
    """True when no color is more saturated than max_saturation."""
    return bool(np.all(saturation(colors) <= max_saturation))


def in_earth_band(hue) -> np.ndarray:
    """Whether hue (turns) falls inside any earth-tone band."""
    hue = np.asarray(hue, dtype=np.float64)
    hit = np.zeros(hue.shape, dtype=bool)
    for low, high in EARTH_HUE_BANDS:
        hit |= (hue >= low) & (hue <= high)
    return hit


def is_earthy(colors: np.ndarray) -> bool:
    """At least 70% of colors are muted (HSV s <= 0.7) and earth-toned."""
    colors = np.asarray(colors, dtype=np.float64)
    if len(colors) == 0:
        return False

    hsv = rgb_to_hsv(colors)
    earthy = (hsv[:, 1] <= EARTHY_MAX_SATURATION) & in_earth_band(hsv[:, 0])
    return bool(earthy.sum() / len(colors) >= EARTHY_MIN_FRACTION)
