import colorsys
import sys

import numpy as np
import pytest

import harmony
from color_space import brightness, saturation
from cosine_gradient import TAU, evaluate
from harmony import (
    CATEGORY_CONSTRAINTS,
    GenerationOptions,
    HarmonyCategory,
    PaletteResult,
    analyze_palette,
    fallback_coeffs,
    generate_harmonious_palette,
    resolve_constraints,
)
from palette_validation import Constraints, is_earthy, is_valid, min_pairwise_distance


ALL_CATEGORIES = list(HarmonyCategory)


@pytest.mark.parametrize("category", ALL_CATEGORIES)
def test_zero_attempts_returns_flagged_fallback(category):
    result = generate_harmonious_palette(category, GenerationOptions(steps=6, max_attempts=0), seed=1)

    assert isinstance(result, PaletteResult)
    assert result.fallback
    assert result.quality == 'fallback'
    assert result.attempts == 0
    assert result.category is category
    assert result.colors.shape == (6, 4)
    np.testing.assert_array_equal(result.coeffs, fallback_coeffs(category))
    np.testing.assert_array_equal(result.colors, evaluate(6, result.coeffs))


@pytest.mark.parametrize("category", ALL_CATEGORIES)
def test_unsatisfiable_constraints_exhaust_budget(category):
    options = GenerationOptions(steps=5, max_attempts=7, min_color_distance=1000.0)
    result = generate_harmonious_palette(category, options, seed=2)

    assert result.fallback
    assert result.attempts == 7


@pytest.mark.parametrize("category", ALL_CATEGORIES)
def test_fallbacks_are_deterministic(category):
    first = generate_harmonious_palette(category, GenerationOptions(max_attempts=0), seed=1)
    second = generate_harmonious_palette(category, GenerationOptions(max_attempts=0), seed=99)
    np.testing.assert_array_equal(first.coeffs, second.coeffs)


@pytest.mark.parametrize("category", ALL_CATEGORIES)
def test_successful_palettes_satisfy_their_constraints(category):
    options = GenerationOptions(steps=5, max_attempts=300)
    result = generate_harmonious_palette(category, options, seed=11)
    if result.fallback:
        pytest.skip(f"{category.value} did not converge for this seed")

    assert 1 <= result.attempts <= 300
    constraints = resolve_constraints(category, options)

    if category is HarmonyCategory.PASTEL:
        assert brightness(result.colors).min() >= 0.7
        assert brightness(result.colors).max() <= 0.95
        assert saturation(result.colors).max() <= 0.4
    else:
        assert is_valid(result.colors, constraints)

    if category is HarmonyCategory.HIGH_CONTRAST:
        assert min_pairwise_distance(result.colors) >= 20
    if category is HarmonyCategory.EARTHY:
        assert is_earthy(result.colors)


def test_pastel_palette_on_first_success():
    result = generate_harmonious_palette(
        'pastel', GenerationOptions(steps=5, max_attempts=1000), seed=7
    )
    assert not result.fallback
    levels = brightness(result.colors)
    assert levels.min() >= 0.7
    assert levels.max() <= 0.95
    assert saturation(result.colors).max() <= 0.4


def test_same_seed_same_palette():
    first = generate_harmonious_palette('analogous', seed=5)
    second = generate_harmonious_palette('analogous', seed=5)
    np.testing.assert_array_equal(first.coeffs, second.coeffs)
    assert first.attempts == second.attempts


def test_injected_rng_is_consumed(rng):
    first = generate_harmonious_palette('random', GenerationOptions(max_attempts=1), rng=rng)
    second = generate_harmonious_palette('random', GenerationOptions(max_attempts=1), rng=rng)
    if not (first.fallback or second.fallback):
        assert not np.array_equal(first.coeffs, second.coeffs)


def test_alpha_is_opaque():
    result = generate_harmonious_palette('random', seed=3)
    np.testing.assert_array_equal(result.colors[:, 3], 1.0)
    assert len(result.hex_colors()) == result.steps
    assert result.globals == (0.0, 1.0, 1.0, 0.0)


def test_category_names_are_accepted():
    assert HarmonyCategory.parse('Split-Complementary') is HarmonyCategory.SPLIT_COMPLEMENTARY
    result = generate_harmonious_palette('high-contrast', GenerationOptions(max_attempts=0))
    assert result.category is HarmonyCategory.HIGH_CONTRAST

    with pytest.raises(ValueError):
        generate_harmonious_palette('neon')


def test_invalid_options_raise():
    with pytest.raises(ValueError):
        generate_harmonious_palette('random', GenerationOptions(steps=1))
    with pytest.raises(ValueError):
        generate_harmonious_palette('random', GenerationOptions(max_attempts=-1))


def test_resolve_constraints_uses_category_defaults_and_overrides():
    assert resolve_constraints('random') == Constraints()
    assert resolve_constraints('pastel') == CATEGORY_CONSTRAINTS[HarmonyCategory.PASTEL]

    earthy = resolve_constraints('earthy', GenerationOptions(min_saturation=0.05))
    assert earthy.min_saturation == 0.05
    assert earthy.min_brightness == 0.2

    contrast = resolve_constraints('high-contrast')
    assert contrast.min_color_distance == harmony.HIGH_CONTRAST_MIN_DISTANCE
    assert contrast.min_saturation == 0.3


def test_monochromatic_construction(rng):
    for _ in range(20):
        a, b, c, d = harmony.monochromatic_coeffs(rng)
        assert np.all((c[:3] >= 0.2) & (c[:3] <= 0.4))
        assert np.ptp(d[:3]) <= 0.2
        assert np.all((a[:3] >= 0.4) & (a[:3] <= 0.6))


def test_analogous_phases_stay_inside_window(rng):
    for _ in range(20):
        d = harmony.analogous_coeffs(rng)[3]
        assert 0 <= d[1] - d[0] <= harmony.HUE_WINDOW * 0.5
        assert 0 <= d[2] - d[0] <= harmony.HUE_WINDOW


def test_complementary_blue_opposes_red(rng):
    for _ in range(20):
        coeffs = harmony.complementary_coeffs(rng)
        d = coeffs[3]
        assert ((d[2] - d[0]) % TAU) == pytest.approx(np.pi)
        assert ((d[1] - d[0]) % TAU) in (pytest.approx(0.0), pytest.approx(np.pi))
        np.testing.assert_array_equal(coeffs[0, :3], 0.5)


def test_split_complementary_phases(rng):
    for _ in range(20):
        d = harmony.split_complementary_coeffs(rng)[3]
        comp = (d[0] + np.pi) % TAU
        offsets = sorted(((d[1] - comp) % TAU, (d[2] - comp) % TAU))
        assert offsets[0] == pytest.approx(harmony.HUE_WINDOW)
        assert offsets[1] == pytest.approx(TAU - harmony.HUE_WINDOW)


def test_high_contrast_construction(rng):
    for _ in range(20):
        a, b, c, d = harmony.high_contrast_coeffs(rng)
        assert np.all((b[:3] >= 0.35) & (b[:3] <= 0.5))
        assert ((d[1] - d[0]) % TAU) == pytest.approx(np.pi / 2)
        assert ((d[2] - d[0]) % TAU) == pytest.approx(np.pi)


def test_pastel_construction(rng):
    for _ in range(20):
        a, b, c, d = harmony.pastel_coeffs(rng)
        assert np.all((a[:3] >= 0.7) & (a[:3] <= 0.95))
        assert np.all((b[:3] >= 0.05) & (b[:3] <= 0.2))


def test_earthy_construction(rng):
    low = min(lo for lo, _ in harmony.EARTH_TONE_SEEDS) * TAU - 0.05
    high = max(hi for _, hi in harmony.EARTH_TONE_SEEDS) * TAU + 0.05
    for _ in range(20):
        a, b, c, d = harmony.earthy_coeffs(rng)
        assert np.ptp(d[:3]) <= 0.1
        assert np.all((d[:3] >= low) & (d[:3] <= high))
        assert np.all((b[:3] >= 0.1) & (b[:3] <= 0.3))


def test_cli_prints_palette(monkeypatch, capsys, tmp_path):
    output = tmp_path / 'swatch.png'
    monkeypatch.setattr(sys, 'argv', [
        'harmony.py', '--category', 'earthy', '--steps', '5', '--seed', '4',
        '--output', str(output),
    ])
    harmony.main()

    out = capsys.readouterr().out
    assert 'Category: earthy' in out
    assert 'Colors: #' in out
    assert output.exists()


def test_cli_rejects_bad_steps(monkeypatch, capsys):
    monkeypatch.setattr(sys, 'argv', ['harmony.py', '--steps', '1'])
    with pytest.raises(SystemExit) as exc:
        harmony.main()
    assert exc.value.code == 1
    assert 'Error' in capsys.readouterr().err


def test_high_contrast_distance_cannot_be_lowered():
    close = np.array([[0.8, 0.3, 0.3], [0.8, 0.4, 0.3]])
    assert 1.0 < min_pairwise_distance(close) < harmony.HIGH_CONTRAST_MIN_DISTANCE

    loose = GenerationOptions(min_color_distance=1.0)
    assert is_valid(close, resolve_constraints('high-contrast', loose))
    assert not harmony.category_predicate('high-contrast', loose)(close)


def test_analyze_palette_reports_every_category_but_random(distinct_palette):
    categories, scores = analyze_palette(distinct_palette)

    assert set(scores) == set(HarmonyCategory) - {HarmonyCategory.RANDOM}
    assert set(scores.values()) <= {0.0, 1.0}
    assert categories == [c for c, score in scores.items() if score == 1.0]

    assert HarmonyCategory.HIGH_CONTRAST in categories
    assert HarmonyCategory.MONOCHROMATIC in categories
    assert HarmonyCategory.PASTEL not in categories


def test_analyze_palette_finds_pastels():
    soft = np.array([colorsys.hsv_to_rgb(h, 0.2, 0.9) for h in (0.0, 1 / 3, 2 / 3)])
    categories, scores = analyze_palette(soft)
    assert HarmonyCategory.PASTEL in categories
    assert scores[HarmonyCategory.PASTEL] == 1.0
    assert scores[HarmonyCategory.HIGH_CONTRAST] == 0.0


def test_extra_categories_are_normalised():
    result = generate_harmonious_palette(
        'pastel', GenerationOptions(max_attempts=0), also=['pastel', 'earthy', 'Earthy']
    )
    assert result.also == (HarmonyCategory.EARTHY,)
    assert result.categories == (HarmonyCategory.PASTEL, HarmonyCategory.EARTHY)

    single = generate_harmonious_palette('random', GenerationOptions(max_attempts=0), also='pastel')
    assert single.also == (HarmonyCategory.PASTEL,)

    with pytest.raises(ValueError):
        generate_harmonious_palette('random', also=['neon'])


def test_extra_categories_must_all_pass(monkeypatch):
    requested = []
    real_predicate = harmony.category_predicate

    def predicate(category, options=None):
        requested.append(HarmonyCategory.parse(category))
        if HarmonyCategory.parse(category) is HarmonyCategory.EARTHY:
            return lambda colors: False
        return real_predicate(category, options)

    monkeypatch.setattr(harmony, 'category_predicate', predicate)
    result = generate_harmonious_palette(
        'random', GenerationOptions(max_attempts=25, min_saturation=0.0), seed=4, also=['earthy']
    )

    assert requested == [HarmonyCategory.RANDOM, HarmonyCategory.EARTHY]
    assert result.fallback
    assert result.attempts == 25
    assert result.also == (HarmonyCategory.EARTHY,)


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_extra_categories_only_narrow_acceptance(seed):
    options = GenerationOptions(steps=5, max_attempts=300)
    alone = generate_harmonious_palette('random', options, seed=seed)
    combined = generate_harmonious_palette('random', options, seed=seed, also=['earthy'])

    # same proposals in the same order, so the combined search can only stop later
    assert combined.attempts >= alone.attempts
    if not combined.fallback:
        assert is_valid(combined.colors, resolve_constraints('random', options))
        assert is_earthy(combined.colors)
        assert set(analyze_palette(combined.colors)[0]) >= {HarmonyCategory.EARTHY}


def test_cli_also(monkeypatch, capsys):
    monkeypatch.setattr(sys, 'argv', [
        'harmony.py', '--category', 'analogous', '--also', 'earthy', '--max-attempts', '0',
    ])
    harmony.main()

    out = capsys.readouterr().out
    assert 'Category: analogous (fallback, 0 attempts)' in out
    assert 'Also: earthy' in out
