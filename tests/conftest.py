"""Shared fixtures: seeded random source and small sample palettes."""

import numpy as np
import pytest


@pytest.fixture()
def rng() -> np.random.Generator:
    return np.random.default_rng(12345)


@pytest.fixture()
def rainbow_coeffs() -> np.ndarray:
    return np.array([
        [0.5, 0.5, 0.5],
        [0.5, 0.5, 0.5],
        [1.0, 1.0, 1.0],
        [0.0, 0.333, 0.667],
    ])


@pytest.fixture()
def distinct_palette() -> np.ndarray:
    """Mid-brightness red, green and blue: passes the default constraints."""
    return np.array([
        [0.8, 0.3, 0.3],
        [0.3, 0.7, 0.3],
        [0.3, 0.3, 0.8],
    ])
