"""Image loading, palette-indexed surfaces, saving and comparison grids."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont


def compute_target_size(
    original_width: int,
    original_height: int,
    max_side: int,
) -> tuple[int, int]:
    """Compute downscaled (w, h) preserving aspect ratio.

    The longest side becomes *max_side*; the other is scaled
    proportionally (rounded to the nearest integer, minimum 1).
    """
    if original_width >= original_height:
        w = max_side
        h = max(1, round(original_height * max_side / original_width))
    else:
        h = max_side
        w = max(1, round(original_width * max_side / original_height))
    return w, h


def load_image(path: str | Path, max_side: int | None = None) -> Image.Image:
    """Open an image as RGB, optionally shrinking its longest side to *max_side*."""
    img = Image.open(path).convert("RGB")
    if max_side and max(img.size) > max_side:
        w, h = compute_target_size(img.width, img.height, max_side)
        img = img.resize((w, h), Image.LANCZOS)
    return img


def new_paletted(size: tuple[int, int], palette: np.ndarray) -> Image.Image:
    """Blank ``"P"`` image whose colour table is exactly *palette*.

    Pixels start at index 0.
    """
    colors = np.asarray(palette, dtype=np.uint8).reshape(-1, 3)
    if len(colors) == 0:
        msg = "Palette is empty"
        raise ValueError(msg)
    if len(colors) > 256:
        msg = f"A 'P' image holds at most 256 colours, got {len(colors)}"
        raise ValueError(msg)
    img = Image.new("P", size, 0)
    img.putpalette(colors.flatten().tolist())
    return img


def save_upscaled(
    image: Image.Image,
    path: str | Path,
    pixel_upscale: int = 1,
) -> None:
    """Save an image, nearest-neighbour upscaled when *pixel_upscale* > 1."""
    if pixel_upscale > 1:
        image = image.resize(
            (image.width * pixel_upscale, image.height * pixel_upscale),
            Image.NEAREST,
        )
    image.save(path)


def make_comparison_grid(
    original: Image.Image,
    dithered: Image.Image,
    output_path: str | Path,
    pixel_upscale: int = 1,
    labels: tuple[str, str] = ("Original", "Dithered"),
) -> None:
    """Create a 2-panel comparison: Original | Dithered."""
    panel_w = dithered.width * pixel_upscale
    panel_h = dithered.height * pixel_upscale
    label_height = 36

    panels = [
        original.convert("RGB").resize((panel_w, panel_h), Image.NEAREST),
        dithered.convert("RGB").resize((panel_w, panel_h), Image.NEAREST),
    ]

    gap = 8
    total_w = len(panels) * panel_w + (len(panels) - 1) * gap
    total_h = panel_h + label_height

    canvas = Image.new("RGB", (total_w, total_h), (30, 30, 30))
    draw = ImageDraw.Draw(canvas)

    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 18,
        )
    except OSError:
        font = ImageFont.load_default()

    for i, (panel, label) in enumerate(zip(panels, labels, strict=False)):
        x = i * (panel_w + gap)
        canvas.paste(panel, (x, label_height))

        bbox = draw.textbbox((0, 0), label, font=font)
        text_w = bbox[2] - bbox[0]
        tx = x + (panel_w - text_w) // 2
        draw.text((tx, 6), label, fill=(220, 220, 220), font=font)

    canvas.save(output_path)
