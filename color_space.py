#!/usr/bin/env python3
"""
Color space helpers for cosine palettes.

All functions take RGB in [0, 1] (not 0-255) and operate on the last axis,
so a single color of shape (3,) or (4,) and a stack of shape (n, 3|4) are
both accepted. Alpha, when present, is ignored.
"""

import math
import re
from typing import Union

import numpy as np


# =============================================================================
# Constants
# =============================================================================

# Luma weights (ITU-R BT.601)
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])

# sRGB -> XYZ, D65
RGB_TO_XYZ = np.array([
    [0.4124564, 0.3575761, 0.1804375],
    [0.2126729, 0.7151522, 0.0721750],
    [0.0193339, 0.1191920, 0.9503041],
])
D65_WHITE = np.array([0.95047, 1.0, 1.08883])

LAB_EPSILON = 0.008856
LAB_KAPPA = 903.3

HEX_PATTERN = re.compile(r'^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')


class HexColorError(ValueError):
    """Raised when a string is not a #rgb or #rrggbb color."""


def _rgb(color) -> np.ndarray:
    return np.asarray(color, dtype=np.float64)[..., :3]


# =============================================================================
# Conversions
# =============================================================================

def rgb_to_hsv(color) -> np.ndarray:
    """Convert RGB to HSV with hue in turns [0, 1), not degrees.

    Achromatic colors (max == min) get hue 0.
    """
    rgb = _rgb(color)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    cmax = rgb.max(axis=-1)
    cmin = rgb.min(axis=-1)
    delta = cmax - cmin

    safe_delta = np.where(delta == 0, 1.0, delta)
    hue = np.where(
        cmax == r, ((g - b) / safe_delta) % 6,
        np.where(cmax == g, (b - r) / safe_delta + 2, (r - g) / safe_delta + 4)
    )
    hue = np.where(delta == 0, 0.0, hue) / 6.0

    saturation = np.where(cmax == 0, 0.0, delta / np.where(cmax == 0, 1.0, cmax))

    return np.stack([hue, saturation, cmax], axis=-1)


def rgb_to_lab(color) -> np.ndarray:
    """Convert RGB to CIE LAB (D65 reference white)."""
    rgb = _rgb(color)

    # Gamma decode
    mask = rgb > 0.04045
    rgb_linear = np.where(mask, ((rgb + 0.055) / 1.055) ** 2.4, rgb / 12.92)

    xyz = rgb_linear @ RGB_TO_XYZ.T / D65_WHITE

    f = np.where(xyz > LAB_EPSILON, np.cbrt(xyz), (LAB_KAPPA * xyz + 16) / 116)
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]

    L = 116 * fy - 16
    a = 500 * (fx - fy)
    b = 200 * (fy - fz)

    return np.stack([L, a, b], axis=-1)


def perceptual_distance(lab1, lab2) -> Union[float, np.ndarray]:
    """Euclidean distance in LAB.

    This is the CIE76 delta E, an approximation of perceived difference and
    not CIEDE2000. Palette validation thresholds are tuned against it.

    Returns:
        float for a single pair, an array of distances for stacked inputs
    """
    diff = np.asarray(lab1, dtype=np.float64) - np.asarray(lab2, dtype=np.float64)
    distance = np.sqrt(np.sum(diff ** 2, axis=-1))
    return float(distance) if distance.ndim == 0 else distance


def brightness(color):
    """Weighted luma 0.299R + 0.587G + 0.114B."""
    return _rgb(color) @ LUMA_WEIGHTS


def saturation(color):
    """(max - min) / max over RGB; 0 for black."""
    rgb = _rgb(color)
    cmax = rgb.max(axis=-1)
    cmin = rgb.min(axis=-1)
    return np.where(cmax == 0, 0.0, (cmax - cmin) / np.where(cmax == 0, 1.0, cmax))


# =============================================================================
# Hex strings
# =============================================================================

def hex_to_rgb(hex_color: str) -> np.ndarray:
    """Parse '#rrggbb' (or '#rgb', '#' optional) into RGB in [0, 1].

    Raises:
        HexColorError: If the string is not a valid hex color
    """
    if not isinstance(hex_color, str):
        raise HexColorError(f"Invalid hex color: {hex_color!r}")

    match = HEX_PATTERN.match(hex_color.strip())
    if not match:
        raise HexColorError(f"Invalid hex color: {hex_color!r}")

    digits = match.group(1)
    if len(digits) == 3:
        digits = ''.join(ch * 2 for ch in digits)

    return np.array([int(digits[i:i + 2], 16) for i in (0, 2, 4)], dtype=np.float64) / 255.0


def _to_byte(value: float) -> int:
    # Round half up, matching browser Math.round
    return int(min(255, max(0, math.floor(float(value) * 255 + 0.5))))


def rgb_to_hex(color) -> str:
    """Format RGB in [0, 1] as '#rrggbb'. Out-of-range channels are clipped."""
    r, g, b = (_to_byte(v) for v in _rgb(color))
    return f"#{r:02x}{g:02x}{b:02x}"


def rgb_to_bytes(color) -> tuple:
    """Convert RGB in [0, 1] to a 0-255 int tuple for drawing."""
    return tuple(_to_byte(v) for v in _rgb(color))
