#!/usr/bin/env python3
"""
Fit cosine palette coefficients to a list of target colors.

The 12 RGB coefficients (a, b, c, d for three channels) are treated as one
parameter vector and fitted by gradient descent on the sum of squared
channel errors, with targets placed at evenly spaced t over [0, 1].
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from color_space import hex_to_rgb, rgb_to_hex
from cosine_gradient import TAU, cosine_colors, evaluate, make_rng, stop_positions, two_color_coeffs


# =============================================================================
# Constants
# =============================================================================

NUM_PARAMS = 12
DEFAULT_ITERATIONS = 1000
DEFAULT_LEARNING_RATE = 0.01
DEFAULT_ATTEMPTS = 5

FD_EPSILON = 1e-6  # central difference step
LR_DECAY = 0.95
LR_DECAY_EVERY = 100
FIT_TOLERANCE = 1e-6
ROBUST_TOLERANCE = 1e-8

# Starting point for a single fit: the classic rainbow palette
INITIAL_PARAMS = np.array([
    0.5, 0.5, 0.5,   # a
    0.5, 0.5, 0.5,   # b
    1.0, 1.0, 1.0,   # c
    0.0, 0.33, 0.67,  # d
])

# Random restart ranges and clamp ranges for the robust fit
RESTART_RANGES = {
    'a': (0.1, 0.9),
    'b': (0.1, 0.9),
    'c': (0.5, 2.5),
    'd': (0.0, 1.0),
}
CLAMP_OFFSET = (0.0, 1.0)
CLAMP_AMPLITUDE = (0.0, 1.0)
CLAMP_FREQUENCY = (0.1, 5.0)

PHASE_SEARCH_STEP = 0.01


@dataclass
class FitResult:
    """Fitted coefficients and their final sum of squared error."""
    a: np.ndarray  # offset (3,)
    b: np.ndarray  # amplitude (3,)
    c: np.ndarray  # frequency (3,)
    d: np.ndarray  # phase (3,)
    error: float
    iterations: int = 0  # iterations run by the returned attempt
    attempts: int = 1

    @property
    def coeffs(self) -> np.ndarray:
        return np.stack([self.a, self.b, self.c, self.d])

    @classmethod
    def from_params(cls, params: np.ndarray, error: float, **kwargs) -> 'FitResult':
        a, b, c, d = np.asarray(params, dtype=np.float64).reshape(4, 3).copy()
        return cls(a, b, c, d, float(error), **kwargs)


@dataclass
class ColorComparison:
    """One target color next to its fitted reproduction."""
    t: float
    original: str
    fitted: str
    error: float  # mean absolute channel error, 0-255 scale


@dataclass
class FitDiagnostics:
    average_error: float  # 0-255 scale
    max_error: float  # 0-255 scale
    comparisons: list = field(default_factory=list)


# =============================================================================
# Objective and gradients
# =============================================================================

def parse_targets(target_colors) -> np.ndarray:
    """
    Convert hex strings or RGB triples to an (n, 3) array in [0, 1].

    Raises:
        ValueError: If the list is empty
        HexColorError: If a hex string is malformed
    """
    if len(target_colors) == 0:
        raise ValueError("At least one target color is required")

    rows = []
    for color in target_colors:
        if isinstance(color, str):
            rows.append(hex_to_rgb(color))
        else:
            rows.append(np.asarray(color, dtype=np.float64)[:3])
    return np.array(rows)


def sum_squared_error(params: np.ndarray, targets: np.ndarray, t: np.ndarray) -> np.ndarray:
    """
    Objective for one parameter vector (12,) or a batch (k, 12).

    The formula is evaluated without clamping.
    """
    params = np.asarray(params, dtype=np.float64)
    batch = params.reshape(-1, 4, 3)
    a, b, c, d = (batch[:, i, None, :] for i in range(4))
    generated = a + b * np.cos(TAU * (c * t[None, :, None] + d))
    errors = ((generated - targets[None]) ** 2).sum(axis=(1, 2))
    return errors[0] if params.ndim == 1 else errors


def numeric_gradient(params: np.ndarray, targets: np.ndarray, t: np.ndarray,
                     epsilon: float = FD_EPSILON) -> np.ndarray:
    """Central finite differences: 2 objective evaluations per parameter."""
    steps = np.eye(NUM_PARAMS) * epsilon
    probes = np.concatenate([params + steps, params - steps])
    errors = sum_squared_error(probes, targets, t)
    return (errors[:NUM_PARAMS] - errors[NUM_PARAMS:]) / (2 * epsilon)


def analytic_gradient(params: np.ndarray, targets: np.ndarray, t: np.ndarray) -> np.ndarray:
    """Closed-form partial derivatives of the objective."""
    a, b, c, d = params.reshape(4, 3)
    phase = TAU * (c * t[:, None] + d)
    residual = 2 * (a + b * np.cos(phase) - targets)
    slope = -b * np.sin(phase) * TAU

    return np.concatenate([
        residual.sum(axis=0),
        (residual * np.cos(phase)).sum(axis=0),
        (residual * slope * t[:, None]).sum(axis=0),
        (residual * slope).sum(axis=0),
    ])


GRADIENTS = {
    'numeric': numeric_gradient,
    'analytic': analytic_gradient,
}


def _wrap_phase(d: np.ndarray) -> np.ndarray:
    # np.mod(-1e-18, 1.0) rounds to 1.0
    wrapped = np.mod(d, 1.0)
    return np.where(wrapped >= 1.0, 0.0, wrapped)


def clamp_params(params: np.ndarray) -> np.ndarray:
    """Keep offset, amplitude and frequency in range; wrap phase into [0, 1)."""
    a, b, c, d = params.reshape(4, 3).copy()
    return np.concatenate([
        np.clip(a, *CLAMP_OFFSET),
        np.clip(b, *CLAMP_AMPLITUDE),
        np.clip(c, *CLAMP_FREQUENCY),
        _wrap_phase(d),
    ])


def random_params(rng: np.random.Generator) -> np.ndarray:
    return np.concatenate([rng.uniform(*RESTART_RANGES[name], 3) for name in 'abcd'])


def _descend(params: np.ndarray, targets: np.ndarray, t: np.ndarray,
             max_iterations: int, learning_rate: float, tolerance: float,
             gradient_fn: Callable, clamp: bool) -> tuple[np.ndarray, int]:
    """Plain gradient descent with a stepped learning rate decay.

    Returns:
        (params, iterations run)
    """
    params = params.copy()
    iterations = 0

    for iteration in range(max_iterations):
        iterations = iteration + 1
        current_error = sum_squared_error(params, targets, t)

        params = params - learning_rate * gradient_fn(params, targets, t)
        if clamp:
            params = clamp_params(params)

        if iteration > LR_DECAY_EVERY and iteration % LR_DECAY_EVERY == 0:
            learning_rate *= LR_DECAY

        if current_error < tolerance:
            break

    return params, iterations


def _gradient_fn(gradient: str) -> Callable:
    try:
        return GRADIENTS[gradient]
    except KeyError:
        raise ValueError(
            f"Unknown gradient method {gradient!r} (expected one of: {', '.join(GRADIENTS)})"
        ) from None


# =============================================================================
# Fitting
# =============================================================================

def fit_cosine_palette(target_colors, max_iterations: int = DEFAULT_ITERATIONS,
                       learning_rate: float = DEFAULT_LEARNING_RATE,
                       gradient: str = 'numeric') -> FitResult:
    """
    Fit coefficients from the standard rainbow starting point.

    Parameters are not clamped. Stops early once the error drops below 1e-6.

    Args:
        target_colors: Hex strings ('#rrggbb') or RGB triples in [0, 1]
        max_iterations: Iteration ceiling
        learning_rate: Initial step size, decayed by 0.95 every 100 iterations
        gradient: 'numeric' (central differences) or 'analytic'
    """
    targets = parse_targets(target_colors)
    t = stop_positions(len(targets))
    gradient_fn = _gradient_fn(gradient)

    params, iterations = _descend(
        INITIAL_PARAMS, targets, t, max_iterations, learning_rate,
        FIT_TOLERANCE, gradient_fn, clamp=False,
    )
    return FitResult.from_params(
        params, sum_squared_error(params, targets, t), iterations=iterations, attempts=1
    )


def fit_cosine_palette_robust(target_colors, max_iterations: int = DEFAULT_ITERATIONS,
                              learning_rate: float = DEFAULT_LEARNING_RATE,
                              attempts: int = DEFAULT_ATTEMPTS,
                              rng: Optional[np.random.Generator] = None,
                              seed: Optional[int] = None,
                              gradient: str = 'numeric') -> FitResult:
    """
    Fit from several random starting points and keep the lowest error.

    Each restart clamps parameters after every update and stops early once
    its error drops below 1e-8.

    Raises:
        ValueError: If attempts < 1 or the target list is empty
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")

    targets = parse_targets(target_colors)
    t = stop_positions(len(targets))
    gradient_fn = _gradient_fn(gradient)
    if rng is None:
        rng = make_rng(seed)

    best = None
    for _ in range(attempts):
        params, iterations = _descend(
            random_params(rng), targets, t, max_iterations, learning_rate,
            ROBUST_TOLERANCE, gradient_fn, clamp=True,
        )
        error = sum_squared_error(params, targets, t)
        if best is None or error < best[1]:
            best = (params, error, iterations)

    params, error, iterations = best
    return FitResult.from_params(params, error, iterations=iterations, attempts=attempts)


def estimate_coeffs(colors) -> np.ndarray:
    """
    Quick closed-form estimate without gradient descent.

    Per channel: offset is the mean, amplitude half the range, frequency
    (n - 1) / 2, and the phase is picked from a 0.01 grid over [0, 1].
    Two colors use the exact half-cosine blend.

    Raises:
        ValueError: With fewer than two colors
    """
    targets = parse_targets(colors)
    n = len(targets)
    if n < 2:
        raise ValueError("At least 2 colors are required")
    if n == 2:
        return two_color_coeffs(targets[0], targets[1])

    t = stop_positions(n)
    a = targets.mean(axis=0)
    b = (targets.max(axis=0) - targets.min(axis=0)) / 2
    c = np.full(3, (n - 1) / 2)

    grid = np.arange(0.0, 1.0 + PHASE_SEARCH_STEP / 2, PHASE_SEARCH_STEP)
    # (grid, n, channel)
    generated = a + b * np.cos(TAU * (c * t[None, :, None] + grid[:, None, None]))
    errors = ((generated - targets[None]) ** 2).sum(axis=1)
    d = grid[errors.argmin(axis=0)]

    return np.stack([a, b, c, d])


def validate_fit(target_colors, fitted) -> FitDiagnostics:
    """
    Compare the fitted gradient against the targets at the same positions.

    This is a report, not a pass/fail check. Errors are absolute channel
    differences on the 0-255 scale.

    Args:
        target_colors: The colors the fit was run on
        fitted: A FitResult or a (4, 3) coefficient array
    """
    targets = parse_targets(target_colors)
    coeffs = fitted.coeffs if isinstance(fitted, FitResult) else np.asarray(fitted)
    t = stop_positions(len(targets))
    reproduced = np.clip(cosine_colors(t, coeffs[:, :3]), 0.0, 1.0)

    channel_errors = np.abs(reproduced - targets) * 255
    comparisons = [
        ColorComparison(
            t=float(t[i]),
            original=rgb_to_hex(targets[i]),
            fitted=rgb_to_hex(reproduced[i]),
            error=float(channel_errors[i].mean()),
        )
        for i in range(len(targets))
    ]

    return FitDiagnostics(
        average_error=float(channel_errors.mean()),
        max_error=float(channel_errors.max()),
        comparisons=comparisons,
    )


# =============================================================================
# CLI
# =============================================================================

def main():
    import argparse
    import sys
    from pathlib import Path

    parser = argparse.ArgumentParser(
        description='Fit cosine palette coefficients to a list of hex colors.'
    )
    parser.add_argument('colors', nargs='+', help="Target colors, e.g. '#ff5722'")
    parser.add_argument('--iterations', type=int, default=DEFAULT_ITERATIONS)
    parser.add_argument('--learning-rate', type=float, default=DEFAULT_LEARNING_RATE)
    parser.add_argument('--robust', action='store_true',
                        help='Use random restarts with parameter clamping')
    parser.add_argument('--attempts', type=int, default=DEFAULT_ATTEMPTS,
                        help='Restarts for --robust')
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--analytic', action='store_true',
                        help='Use closed-form gradients instead of finite differences')
    parser.add_argument('--output', '-o', default=None,
                        help='Write a target vs fitted swatch PNG to this path')

    args = parser.parse_args()
    gradient = 'analytic' if args.analytic else 'numeric'

    try:
        if args.robust:
            result = fit_cosine_palette_robust(
                args.colors, args.iterations, args.learning_rate,
                attempts=args.attempts, seed=args.seed, gradient=gradient,
            )
        else:
            result = fit_cosine_palette(
                args.colors, args.iterations, args.learning_rate, gradient=gradient
            )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print("Fitted coefficients:")
    for name in 'abcd':
        values = ', '.join(f"{v:.3f}" for v in getattr(result, name))
        print(f"  {name}: [{values}]")
    print(f"Final error: {result.error:.6f} ({result.iterations} iterations)")

    diagnostics = validate_fit(args.colors, result)
    print(f"\n{'t':>6} {'Original':>10} {'Fitted':>10} {'Error':>8}")
    print("-" * 38)
    for row in diagnostics.comparisons:
        print(f"{row.t:>6.2f} {row.original:>10} {row.fitted:>10} {row.error:>8.2f}")
    print(f"\nAverage error: {diagnostics.average_error:.2f}, max: {diagnostics.max_error:.2f}")

    if args.output:
        from swatches import render_fit_comparison

        try:
            render_fit_comparison(args.colors, result.coeffs, Path(args.output))
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == '__main__':
    main()
