#!/usr/bin/env python3
"""
Harmonious cosine palette generation.

Each harmony category proposes random coefficients shaped by a color theory
rule, evaluates them, and keeps the first palette that passes validation.
When the attempt budget runs out, a fixed per-category coefficient set is
returned instead and the result is marked as a fallback.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional

import numpy as np

from color_space import rgb_to_hex
from cosine_gradient import TAU, IDENTITY_GLOBALS, OPAQUE_ALPHA, evaluate, make_rng
from palette_validation import Constraints, is_valid, is_low_saturation, is_earthy


# =============================================================================
# Constants
# =============================================================================

DEFAULT_STEPS = 7
MAX_STEPS = 50
DEFAULT_MAX_ATTEMPTS = 100

# 30 degrees, as a phase offset
HUE_WINDOW = (30 / 360) * TAU
SPLIT_AMOUNT = 30 / 360  # turns

HIGH_CONTRAST_MIN_DISTANCE = 20.0
PASTEL_BRIGHTNESS = (0.7, 0.95)
PASTEL_MAX_SATURATION = 0.4

# Hue sub-ranges (turns) that seed earthy palettes
EARTH_TONE_SEEDS = (
    (0.05, 0.15),  # browns / oranges
    (0.25, 0.4),   # greens
    (0.08, 0.13),  # yellows / tans
    (0.02, 0.05),  # reds / terracotta
)

FALLBACK = 'fallback'


class HarmonyCategory(str, Enum):
    MONOCHROMATIC = 'monochromatic'
    ANALOGOUS = 'analogous'
    COMPLEMENTARY = 'complementary'
    SPLIT_COMPLEMENTARY = 'split-complementary'
    HIGH_CONTRAST = 'high-contrast'
    PASTEL = 'pastel'
    EARTHY = 'earthy'
    RANDOM = 'random'

    @classmethod
    def parse(cls, value) -> 'HarmonyCategory':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            names = ', '.join(c.value for c in cls)
            raise ValueError(f"Unknown harmony category {value!r} (expected one of: {names})") from None


# Default bounds per category; anything not listed uses Constraints() defaults
CATEGORY_CONSTRAINTS = {
    HarmonyCategory.HIGH_CONTRAST: Constraints(
        min_brightness=0.1, max_brightness=0.9, min_saturation=0.3,
        min_color_distance=HIGH_CONTRAST_MIN_DISTANCE,
    ),
    HarmonyCategory.PASTEL: Constraints(
        min_brightness=0.7, max_brightness=0.95, min_saturation=0.1
    ),
    HarmonyCategory.EARTHY: Constraints(
        min_brightness=0.2, max_brightness=0.8, min_saturation=0.2
    ),
}


@dataclass
class GenerationOptions:
    """Generation settings. None means "use the category default"."""
    steps: int = DEFAULT_STEPS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    min_brightness: Optional[float] = None
    max_brightness: Optional[float] = None
    min_saturation: Optional[float] = None
    min_color_distance: Optional[float] = None


@dataclass
class PaletteResult:
    """A generated palette."""
    coeffs: np.ndarray  # (4, 4) a, b, c, d
    colors: np.ndarray  # (steps, 4) clamped RGBA
    category: HarmonyCategory
    steps: int
    attempts: int  # attempts consumed, 0 if max_attempts was 0
    globals: tuple = field(default=IDENTITY_GLOBALS)
    quality: Optional[str] = None  # 'fallback' when no valid palette was found
    also: tuple = ()  # extra categories the palette was validated against

    @property
    def categories(self) -> tuple:
        return (self.category,) + self.also

    @property
    def fallback(self) -> bool:
        return self.quality == FALLBACK

    def hex_colors(self) -> list[str]:
        return [rgb_to_hex(color) for color in self.colors]


def resolve_constraints(category, options: GenerationOptions = None) -> Constraints:
    """Merge caller overrides over the category's default bounds."""
    category = HarmonyCategory.parse(category)
    if options is None:
        options = GenerationOptions()

    base = CATEGORY_CONSTRAINTS.get(category, Constraints())
    overrides = {
        name: getattr(options, name)
        for name in ('min_brightness', 'max_brightness', 'min_saturation', 'min_color_distance')
        if getattr(options, name) is not None
    }
    return replace(base, **overrides)


# =============================================================================
# Coefficient construction
# =============================================================================

def _coeffs(offset, amplitude, frequency, phase) -> np.ndarray:
    rgb = np.array([offset, amplitude, frequency, phase], dtype=np.float64)
    return np.column_stack([rgb, OPAQUE_ALPHA])


def _split_phases(primary_hue: float) -> tuple:
    complement = (primary_hue + 0.5) % 1.0
    split1 = (complement - SPLIT_AMOUNT + 1.0) % 1.0
    split2 = (complement + SPLIT_AMOUNT) % 1.0
    return primary_hue * TAU, split1 * TAU, split2 * TAU


def monochromatic_coeffs(rng: np.random.Generator) -> np.ndarray:
    """One hue; phases within +-0.1 of it and low frequency to limit hue drift."""
    base_phase = rng.random() * TAU
    return _coeffs(
        rng.uniform(0.4, 0.6, 3),
        rng.uniform(0.15, 0.45, 3),
        rng.uniform(0.2, 0.4, 3),
        base_phase + rng.uniform(-0.1, 0.1, 3),
    )


def analogous_coeffs(rng: np.random.Generator) -> np.ndarray:
    """Green and blue phases trail red by part of a 30 degree window."""
    base_phase = rng.random() * TAU
    return _coeffs(
        rng.uniform(0.4, 0.6, 3),
        rng.uniform(0.2, 0.5, 3),
        rng.uniform(0.5, 1.0, 3),
        [
            base_phase,
            base_phase + HUE_WINDOW * rng.uniform(0.0, 0.5),
            base_phase + HUE_WINDOW * rng.uniform(0.0, 1.0),
        ],
    )


def complementary_coeffs(rng: np.random.Generator) -> np.ndarray:
    """Primary hue against its opposite; green follows either one at random."""
    primary_hue = rng.random()
    base_phase = primary_hue * TAU
    comp_phase = ((primary_hue + 0.5) % 1.0) * TAU
    green_phase = base_phase if rng.random() > 0.5 else base_phase + np.pi
    return _coeffs(
        np.full(3, 0.5),
        rng.uniform(0.2, 0.5, 3),
        rng.uniform(0.5, 1.0, 3),
        [base_phase, green_phase, comp_phase],
    )


def split_complementary_coeffs(rng: np.random.Generator) -> np.ndarray:
    """Primary hue plus the two hues 30 degrees either side of its complement."""
    return _coeffs(
        np.full(3, 0.5),
        rng.uniform(0.2, 0.5, 3),
        rng.uniform(0.6, 1.0, 3),
        _split_phases(rng.random()),
    )


def high_contrast_coeffs(rng: np.random.Generator) -> np.ndarray:
    """Near-maximal amplitude, phases a quarter and a half turn apart."""
    phase = rng.random() * TAU
    return _coeffs(
        np.full(3, 0.5),
        rng.uniform(0.35, 0.5, 3),
        rng.uniform(0.8, 1.2, 3),
        [phase, (phase + np.pi / 2) % TAU, (phase + np.pi) % TAU],
    )


def pastel_coeffs(rng: np.random.Generator) -> np.ndarray:
    """High offset, very low amplitude."""
    return _coeffs(
        rng.uniform(0.7, 0.95, 3),
        rng.uniform(0.05, 0.2, 3),
        rng.uniform(0.5, 1.0, 3),
        rng.uniform(0.0, TAU, 3),
    )


def earthy_coeffs(rng: np.random.Generator) -> np.ndarray:
    """Hue drawn from an earth-tone range; low amplitude and frequency."""
    low, high = EARTH_TONE_SEEDS[rng.integers(len(EARTH_TONE_SEEDS))]
    base_phase = rng.uniform(low, high) * TAU
    return _coeffs(
        rng.uniform(0.4, 0.7, 3),
        rng.uniform(0.1, 0.3, 3),
        rng.uniform(0.3, 0.6, 3),
        base_phase + rng.uniform(-0.05, 0.05, 3),
    )


def random_coeffs(rng: np.random.Generator) -> np.ndarray:
    """Wide ranges, with amplitude kept low enough to limit clipping."""
    return _coeffs(
        rng.uniform(0.3, 0.7, 3),
        rng.uniform(0.1, 0.5, 3),
        rng.uniform(0.5, 2.0, 3),
        rng.uniform(0.0, TAU, 3),
    )


def fallback_coeffs(category) -> np.ndarray:
    """Fixed coefficients returned when generation runs out of attempts."""
    category = HarmonyCategory.parse(category)

    if category is HarmonyCategory.MONOCHROMATIC:
        phase = 0.6 * TAU
        return _coeffs([0.5] * 3, [0.25] * 3, [0.2] * 3, [phase] * 3)
    if category is HarmonyCategory.ANALOGOUS:
        phase = 0.3 * TAU
        return _coeffs([0.5] * 3, [0.25] * 3, [0.5] * 3,
                       [phase, phase + HUE_WINDOW * 0.3, phase + HUE_WINDOW * 0.6])
    if category is HarmonyCategory.COMPLEMENTARY:
        return _coeffs([0.5] * 3, [0.3] * 3, [0.6] * 3, [0.0, 0.0, 0.5 * TAU])
    if category is HarmonyCategory.SPLIT_COMPLEMENTARY:
        return _coeffs([0.5] * 3, [0.3] * 3, [0.7] * 3, _split_phases(0.0))
    if category is HarmonyCategory.HIGH_CONTRAST:
        return _coeffs([0.5] * 3, [0.4] * 3, [1.0] * 3, [0.0, TAU / 3, 2 * TAU / 3])
    if category is HarmonyCategory.PASTEL:
        return _coeffs([0.8] * 3, [0.1] * 3, [0.5] * 3, [0.0, TAU / 4, TAU / 2])
    if category is HarmonyCategory.EARTHY:
        phase = 0.08 * TAU
        return _coeffs([0.45] * 3, [0.15] * 3, [0.3] * 3, [phase, phase + 0.1, phase - 0.1])
    return _coeffs([0.5] * 3, [0.25] * 3, [1.0] * 3, [0.0, 0.33, 0.67])


# =============================================================================
# Acceptance
# =============================================================================

def _acceptance(category: HarmonyCategory, constraints: Constraints) -> Callable[[np.ndarray], bool]:
    if category is HarmonyCategory.HIGH_CONTRAST:
        strict = replace(
            constraints,
            min_color_distance=max(constraints.min_color_distance, HIGH_CONTRAST_MIN_DISTANCE),
        )
        return lambda colors: is_valid(colors, strict)

    if category is HarmonyCategory.PASTEL:
        bright = replace(
            constraints,
            min_brightness=PASTEL_BRIGHTNESS[0],
            max_brightness=PASTEL_BRIGHTNESS[1],
        )
        return lambda colors: (
            is_valid(colors, bright) and is_low_saturation(colors, PASTEL_MAX_SATURATION)
        )

    if category is HarmonyCategory.EARTHY:
        return lambda colors: is_valid(colors, constraints) and is_earthy(colors)

    return lambda colors: is_valid(colors, constraints)


def category_predicate(category, options: GenerationOptions = None) -> Callable[[np.ndarray], bool]:
    """Acceptance test for one category, with caller overrides applied."""
    category = HarmonyCategory.parse(category)
    return _acceptance(category, resolve_constraints(category, options))


def analyze_palette(colors) -> tuple[list, dict]:
    """
    Check an arbitrary palette against every category's acceptance test.

    random accepts anything, so it is not reported.

    Returns:
        (matching categories, {category: 1.0 or 0.0})
    """
    colors = np.asarray(colors, dtype=np.float64)
    matches = []
    scores = {}
    for category in HarmonyCategory:
        if category is HarmonyCategory.RANDOM:
            continue
        matched = bool(category_predicate(category)(colors))
        scores[category] = 1.0 if matched else 0.0
        if matched:
            matches.append(category)
    return matches, scores


BUILDERS = {
    HarmonyCategory.MONOCHROMATIC: monochromatic_coeffs,
    HarmonyCategory.ANALOGOUS: analogous_coeffs,
    HarmonyCategory.COMPLEMENTARY: complementary_coeffs,
    HarmonyCategory.SPLIT_COMPLEMENTARY: split_complementary_coeffs,
    HarmonyCategory.HIGH_CONTRAST: high_contrast_coeffs,
    HarmonyCategory.PASTEL: pastel_coeffs,
    HarmonyCategory.EARTHY: earthy_coeffs,
    HarmonyCategory.RANDOM: random_coeffs,
}


# =============================================================================
# Generation
# =============================================================================

def generate_harmonious_palette(
    category='random',
    options: GenerationOptions = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    also=None,
) -> PaletteResult:
    """
    Generate a palette for a harmony category by bounded rejection sampling.

    Args:
        category: HarmonyCategory or its name
        options: Step count, attempt budget and constraint overrides
        rng: Random source; built from seed when omitted
        seed: Seed for a fresh random source (ignored when rng is given)
        also: Extra categories the palette must also satisfy. Coefficients
            still come from category's builder.

    Returns:
        PaletteResult. quality is 'fallback' when max_attempts proposals all
        failed validation; the fallback palette is not re-validated.

    Raises:
        ValueError: For an unknown category, steps < 2 or max_attempts < 0
    """
    category = HarmonyCategory.parse(category)
    if options is None:
        options = GenerationOptions()
    if options.steps < 2:
        raise ValueError(f"steps must be at least 2, got {options.steps}")
    if options.max_attempts < 0:
        raise ValueError(f"max_attempts must be non-negative, got {options.max_attempts}")
    if rng is None:
        rng = make_rng(seed)

    if isinstance(also, str):
        also = [also]
    extra = []
    for name in also or ():
        other = HarmonyCategory.parse(name)
        if other is not category and other not in extra:
            extra.append(other)
    extra = tuple(extra)

    build = BUILDERS[category]
    checks = [category_predicate(c, options) for c in (category,) + extra]

    def accept(colors):
        return all(check(colors) for check in checks)

    attempt = 0
    while attempt < options.max_attempts:
        attempt += 1
        coeffs = build(rng)
        colors = evaluate(options.steps, coeffs)
        if accept(colors):
            return PaletteResult(coeffs, colors, category, options.steps, attempt, also=extra)

    coeffs = fallback_coeffs(category)
    return PaletteResult(
        coeffs, evaluate(options.steps, coeffs), category, options.steps, attempt,
        quality=FALLBACK, also=extra,
    )


# =============================================================================
# CLI
# =============================================================================

def format_coeffs(coeffs: np.ndarray) -> str:
    rows = []
    for name, row in zip('abcd', coeffs):
        values = ', '.join(f"{v:.3f}" for v in row[:3])
        rows.append(f"  {name}: [{values}]")
    return '\n'.join(rows)


def main():
    import argparse
    import sys
    from pathlib import Path

    parser = argparse.ArgumentParser(
        description='Generate a harmonious cosine gradient palette.'
    )
    parser.add_argument(
        '--category', '-c',
        default='random',
        choices=[c.value for c in HarmonyCategory],
        help='Harmony category (default: random)'
    )
    parser.add_argument('--also', nargs='+', default=None,
                        choices=[c.value for c in HarmonyCategory],
                        help='Extra categories the palette must also satisfy')
    parser.add_argument('--steps', '-n', type=int, default=DEFAULT_STEPS,
                        help=f'Number of colors (2-{MAX_STEPS})')
    parser.add_argument('--max-attempts', type=int, default=DEFAULT_MAX_ATTEMPTS)
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--min-brightness', type=float, default=None)
    parser.add_argument('--max-brightness', type=float, default=None)
    parser.add_argument('--min-saturation', type=float, default=None)
    parser.add_argument('--min-distance', type=float, default=None,
                        help='Minimum LAB distance between any two colors')
    parser.add_argument(
        '--output', '-o',
        default=None,
        help='Write a swatch PNG to this path'
    )

    args = parser.parse_args()

    if not 2 <= args.steps <= MAX_STEPS:
        print(f"Error: --steps must be between 2 and {MAX_STEPS}", file=sys.stderr)
        sys.exit(1)

    options = GenerationOptions(
        steps=args.steps,
        max_attempts=args.max_attempts,
        min_brightness=args.min_brightness,
        max_brightness=args.max_brightness,
        min_saturation=args.min_saturation,
        min_color_distance=args.min_distance,
    )

    try:
        result = generate_harmonious_palette(
            args.category, options, seed=args.seed, also=args.also
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    status = 'fallback' if result.fallback else 'ok'
    print(f"Category: {result.category.value} ({status}, {result.attempts} attempts)")
    if result.also:
        print("Also: " + ', '.join(c.value for c in result.also))
    print(format_coeffs(result.coeffs))
    print("Colors: " + ' '.join(result.hex_colors()))

    if args.output:
        from swatches import render_palette_strip

        try:
            render_palette_strip(result.colors, Path(args.output))
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == '__main__':
    main()
