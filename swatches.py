#!/usr/bin/env python3
"""
Swatch images for generated and fitted palettes.
"""

from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw

from color_space import hex_to_rgb, rgb_to_bytes, rgb_to_hex
from cosine_gradient import evaluate


SWATCH_SIZE = 60
PADDING = 10
TEXT_HEIGHT = 20
LABEL_WIDTH = 140
BACKGROUND = (240, 240, 240)
STRIP_RESOLUTION = 256


def _hex_list(colors) -> list[str]:
    return [c if isinstance(c, str) else rgb_to_hex(c) for c in colors]


def render_palette_strip(colors: np.ndarray, output_path: Path) -> Image.Image:
    """Draw one swatch per color with its hex code underneath."""
    hexes = _hex_list(colors)
    width = len(hexes) * (SWATCH_SIZE + PADDING) + PADDING
    height = SWATCH_SIZE + TEXT_HEIGHT + PADDING * 2

    img = Image.new('RGB', (width, height), BACKGROUND)
    draw = ImageDraw.Draw(img)

    for i, hex_color in enumerate(hexes):
        x = PADDING + i * (SWATCH_SIZE + PADDING)
        draw.rectangle([x, PADDING, x + SWATCH_SIZE, PADDING + SWATCH_SIZE],
                       fill=rgb_to_bytes(hex_to_rgb(hex_color)))

        bbox = draw.textbbox((0, 0), hex_color)
        text_x = x + (SWATCH_SIZE - (bbox[2] - bbox[0])) // 2
        draw.text((text_x, PADDING + SWATCH_SIZE + 4), hex_color, fill=(0, 0, 0))

    img.save(output_path)
    print(f"Saved swatches to {output_path}")
    return img


def _draw_gradient_row(draw: ImageDraw.ImageDraw, coeffs: np.ndarray, x: int, y: int,
                       width: int, height: int) -> None:
    """Continuous gradient sampled at STRIP_RESOLUTION stops."""
    colors = evaluate(STRIP_RESOLUTION, coeffs)
    step = width / STRIP_RESOLUTION
    for i, color in enumerate(colors):
        x0 = x + int(i * step)
        x1 = x + int((i + 1) * step)
        draw.rectangle([x0, y, x1, y + height], fill=rgb_to_bytes(color))


def render_palette_sheet(rows: list[tuple], output_path: Path,
                         strip_width: int = 420) -> Image.Image:
    """
    One row per palette: a label, then the continuous gradient.

    Args:
        rows: (label, coeffs) pairs
        output_path: Where to save the PNG
    """
    row_height = SWATCH_SIZE + PADDING
    width = LABEL_WIDTH + strip_width + PADDING * 2
    height = max(len(rows), 1) * row_height + PADDING

    img = Image.new('RGB', (width, height), BACKGROUND)
    draw = ImageDraw.Draw(img)

    for row, (label, coeffs) in enumerate(rows):
        y = PADDING + row * row_height
        draw.text((PADDING, y + SWATCH_SIZE // 2 - 5), label, fill=(0, 0, 0))
        _draw_gradient_row(draw, np.asarray(coeffs), LABEL_WIDTH, y, strip_width, SWATCH_SIZE)

    img.save(output_path)
    print(f"Saved {len(rows)} palettes to {output_path}")
    return img


def render_fit_comparison(target_colors, coeffs: np.ndarray, output_path: Path) -> Image.Image:
    """Targets on the top row, fitted colors below, fitted gradient at the bottom."""
    targets = _hex_list(target_colors)
    fitted = _hex_list(evaluate(len(targets), coeffs))

    width = max(len(targets) * (SWATCH_SIZE + PADDING) + PADDING, 200)
    strip_height = SWATCH_SIZE // 2
    height = 2 * (SWATCH_SIZE + TEXT_HEIGHT) + strip_height + PADDING * 4

    img = Image.new('RGB', (width, height), BACKGROUND)
    draw = ImageDraw.Draw(img)

    for row, hexes in enumerate((targets, fitted)):
        y = PADDING + row * (SWATCH_SIZE + TEXT_HEIGHT + PADDING)
        for i, hex_color in enumerate(hexes):
            x = PADDING + i * (SWATCH_SIZE + PADDING)
            draw.rectangle([x, y, x + SWATCH_SIZE, y + SWATCH_SIZE],
                           fill=rgb_to_bytes(hex_to_rgb(hex_color)))
            draw.text((x + 2, y + SWATCH_SIZE + 4), hex_color, fill=(0, 0, 0))

    strip_y = height - PADDING - strip_height
    _draw_gradient_row(draw, np.asarray(coeffs), PADDING, strip_y, width - PADDING * 2, strip_height)

    img.save(output_path)
    print(f"Saved fit comparison to {output_path}")
    return img
