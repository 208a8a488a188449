#!/usr/bin/env python3
"""
Cosine gradient evaluation.

A palette is four vectors a (offset), b (amplitude), c (frequency) and
d (phase), one value per channel:

    color(t) = a + b * cos(2 * pi * (c * t + d)),  t in [0, 1]

Coefficients are stored as a (4, channels) array, rows in a, b, c, d order.
"""

from typing import Optional

import numpy as np

from color_space import rgb_to_hex


# =============================================================================
# Constants
# =============================================================================

TAU = 2 * np.pi

# Global modifiers that leave coefficients untouched:
# (exposure, contrast, frequency scale, phase shift)
IDENTITY_GLOBALS = (0.0, 1.0, 1.0, 0.0)

# Alpha column used by the generators: offset 1, everything else 0
OPAQUE_ALPHA = np.array([1.0, 0.0, 0.0, 0.0])


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Create the random source used by generators and fitters."""
    return np.random.default_rng(seed)


def as_coeffs(coeffs) -> np.ndarray:
    """Validate and convert coefficients to a float (4, 3|4) array."""
    arr = np.array(coeffs, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[0] != 4 or arr.shape[1] not in (3, 4):
        raise ValueError(
            f"Cosine coefficients must have shape (4, 3) or (4, 4), got {arr.shape}"
        )
    return arr


def stop_positions(num_stops: int) -> np.ndarray:
    """Evenly spaced t values over [0, 1]; a single stop sits at t = 0."""
    if num_stops < 1:
        raise ValueError(f"Number of stops must be at least 1, got {num_stops}")
    if num_stops == 1:
        return np.zeros(1)
    return np.arange(num_stops) / (num_stops - 1)


def cosine_colors(t: np.ndarray, coeffs: np.ndarray) -> np.ndarray:
    """Raw (unclamped) formula values at positions t, shape (len(t), channels)."""
    a, b, c, d = coeffs
    t = np.asarray(t, dtype=np.float64)[:, None]
    return a + b * np.cos(TAU * (c * t + d))


def evaluate(num_stops: int, coeffs) -> np.ndarray:
    """
    Evaluate a cosine gradient at evenly spaced stops.

    Args:
        num_stops: Number of colors to produce (>= 1)
        coeffs: (4, 3|4) coefficient array

    Returns:
        Array of shape (num_stops, channels), every value clamped to [0, 1]
    """
    coeffs = as_coeffs(coeffs)
    return np.clip(cosine_colors(stop_positions(num_stops), coeffs), 0.0, 1.0)


def preview_hex(coeffs, steps: int = 10) -> list[str]:
    """Hex strings for an evaluated gradient."""
    return [rgb_to_hex(color) for color in evaluate(steps, coeffs)]


def apply_globals(coeffs, globals_: tuple = IDENTITY_GLOBALS) -> np.ndarray:
    """
    Resolve global modifiers into plain coefficients.

    exposure is added to the offset, contrast scales the amplitude,
    frequency scales the frequency and phase is added to the phase.
    """
    coeffs = as_coeffs(coeffs)
    exposure, contrast, frequency, phase = globals_
    resolved = coeffs.copy()
    resolved[0] += exposure
    resolved[1] *= contrast
    resolved[2] *= frequency
    resolved[3] += phase
    return resolved


def two_color_coeffs(start, end) -> np.ndarray:
    """Coefficients for a half-cosine blend from start (t=0) to end (t=1)."""
    start = np.asarray(start, dtype=np.float64)
    end = np.asarray(end, dtype=np.float64)
    if start.shape != end.shape:
        raise ValueError("Start and end colors must have the same number of channels")

    amplitude = 0.5 * (start - end)
    offset = start - amplitude
    return as_coeffs([
        offset,
        amplitude,
        np.full(start.shape, -0.5),
        np.zeros(start.shape),
    ])
