#!/usr/bin/env python3
"""
Batch runner for harmonious palette generation.

Generates palettes for every harmony category, saves a swatch sheet per
category to output/<timestamp>/, and writes a summary report so success
rates can be compared across runs.
"""

import argparse
import sys
import time
from datetime import datetime
from pathlib import Path

from cosine_gradient import make_rng
from harmony import (
    DEFAULT_STEPS, DEFAULT_MAX_ATTEMPTS,
    GenerationOptions, HarmonyCategory,
    generate_harmonious_palette,
)
from swatches import render_palette_sheet


def run_category(category: HarmonyCategory, count: int, options: GenerationOptions,
                 rng, output_dir: Path) -> dict:
    """
    Generate count palettes for one category.

    Returns:
        dict with summary statistics
    """
    start = time.perf_counter()
    results = [generate_harmonious_palette(category, options, rng=rng) for _ in range(count)]
    elapsed = time.perf_counter() - start

    rows = [
        (f"{i + 1:>2} {'fallback' if r.fallback else f'{r.attempts} tries'}", r.coeffs)
        for i, r in enumerate(results)
    ]
    render_palette_sheet(rows, output_dir / f"{category.value}.png")

    fallbacks = sum(1 for r in results if r.fallback)
    successes = [r.attempts for r in results if not r.fallback]
    return {
        'category': category.value,
        'count': count,
        'fallbacks': fallbacks,
        'mean_attempts': sum(successes) / len(successes) if successes else 0.0,
        'elapsed': elapsed,
        'palettes': [r.hex_colors() for r in results],
    }


def run_batch(output_base: Path, count: int, options: GenerationOptions,
              seed: int = None) -> list[dict]:
    """Run every category and write summary.txt to a timestamped directory."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = output_base / timestamp
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"Output directory: {output_dir}")
    rng = make_rng(seed)

    summaries = []
    categories = list(HarmonyCategory)
    for i, category in enumerate(categories, 1):
        print(f"\n[{i}/{len(categories)}] {category.value}")
        summary = run_category(category, count, options, rng, output_dir)
        print(f"  {summary['count'] - summary['fallbacks']}/{summary['count']} valid, "
              f"{summary['mean_attempts']:.1f} mean attempts ({summary['elapsed']:.2f}s)")
        summaries.append(summary)

    report_path = output_dir / "summary.txt"
    with open(report_path, 'w') as f:
        f.write("Batch Generation Report\n")
        f.write(f"Generated: {datetime.now().isoformat()}\n")
        f.write(f"Seed: {seed}\n")
        f.write(f"Steps: {options.steps}, max attempts: {options.max_attempts}\n")
        f.write("=" * 60 + "\n\n")

        for s in summaries:
            f.write(f"{s['category']}\n")
            f.write(f"  Valid: {s['count'] - s['fallbacks']}/{s['count']}\n")
            f.write(f"  Mean attempts: {s['mean_attempts']:.1f}\n")
            for palette in s['palettes']:
                f.write(f"    {' '.join(palette)}\n")
            f.write("\n")

    print(f"\nSummary report: {report_path}")
    return summaries


def main():
    parser = argparse.ArgumentParser(
        description='Generate palettes for every harmony category and report success rates.'
    )
    parser.add_argument('--output', '-o', default='output', help='Base output directory')
    parser.add_argument('--count', '-n', type=int, default=10, help='Palettes per category')
    parser.add_argument('--steps', type=int, default=DEFAULT_STEPS)
    parser.add_argument('--max-attempts', type=int, default=DEFAULT_MAX_ATTEMPTS)
    parser.add_argument('--seed', type=int, default=None)

    args = parser.parse_args()

    if args.count < 1:
        print("Error: --count must be at least 1", file=sys.stderr)
        sys.exit(2)

    options = GenerationOptions(steps=args.steps, max_attempts=args.max_attempts)

    try:
        summaries = run_batch(Path(args.output), args.count, options, seed=args.seed)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\n{'=' * 50}")
    print("SUMMARY")
    print("=" * 50)
    print(f"{'Category':<22} {'Valid':>8} {'Attempts':>10}")
    print("-" * 50)
    for s in summaries:
        valid = f"{s['count'] - s['fallbacks']}/{s['count']}"
        print(f"{s['category']:<22} {valid:>8} {s['mean_attempts']:>10.1f}")


if __name__ == '__main__':
    main()
