"""Palette handling and nearest-colour resolution."""

from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple

import numpy as np
from PIL import Image

from palette_dither.pixel_error import PixelError

# Low-pass filter applied to the incoming error before it is added to the pixel.
DAMPING = 0.75


class Resolution(NamedTuple):
    index: int
    color: tuple[int, int, int, int]
    residual: PixelError
    distance: int


def palette_to_array(palette: Sequence[Sequence[int]] | np.ndarray) -> np.ndarray:
    """Normalise RGB(A) colours to an (N, 3) int64 array (alpha dropped)."""
    arr = np.asarray(palette, dtype=np.int64)
    if arr.size == 0:
        msg = "Palette is empty"
        raise ValueError(msg)
    if arr.ndim != 2 or arr.shape[1] not in (3, 4):
        msg = f"Palette must be (N, 3) or (N, 4), got shape {arr.shape}"
        raise ValueError(msg)
    return arr[:, :3]


def manhattan_distance(working: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """L1 distance from one signed colour to every palette entry, unclamped."""
    return np.abs(palette - working).sum(axis=1)


def resolve(
    error: PixelError,
    source: Sequence[int] | np.ndarray,
    palette: np.ndarray,
    damping: float = DAMPING,
) -> Resolution:
    """Pick the palette colour closest to *source* shifted by the damped *error*.

    Args:
        error:   Error accumulated at this pixel so far.
        source:  RGB(A) source pixel, 8-bit channels.
        palette: (N, 3) integer array, see :func:`palette_to_array`.
        damping: Factor applied to *error*; truncated toward zero afterwards.

    Returns:
        The winning index, its opaque RGBA colour, the signed residual
        ``working - chosen`` and the winning distance. Ties go to the
        earliest palette entry.
    """
    if len(palette) == 0:
        msg = "Palette is empty"
        raise ValueError(msg)

    damped = np.trunc(error.as_array() * damping).astype(np.int64)
    working = np.asarray(source[:3], dtype=np.int64) + damped

    distances = manhattan_distance(working, palette)
    index = int(np.argmin(distances))  # first minimum wins
    chosen = palette[index]

    r, g, b = (int(c) for c in chosen)
    return Resolution(
        index=index,
        color=(r, g, b, 255),
        residual=PixelError.from_array(working - chosen),
        distance=int(distances[index]),
    )


def palette_from_image(image: Image.Image) -> np.ndarray:
    """Read the colour table of a palette-indexed ("P") image."""
    if image.mode != "P":
        msg = f"Destination must be a palette-indexed ('P') image, got mode '{image.mode}'"
        raise TypeError(msg)
    flat = image.getpalette()
    if not flat:
        msg = "Destination image has an empty palette"
        raise ValueError(msg)
    return palette_to_array(np.asarray(flat, dtype=np.int64).reshape(-1, 3))
