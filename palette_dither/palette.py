"""Fixed palettes and hex parsing.

The ditherer never builds a palette itself; callers pick one of these or
pass their own colours.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from types import MappingProxyType

import numpy as np

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")

_NAMED: dict[str, list[str]] = {
    "bw": ["#000000", "#FFFFFF"],
    "grayscale4": ["#000000", "#555555", "#AAAAAA", "#FFFFFF"],
    "cga": ["#000000", "#55FFFF", "#FF55FF", "#FFFFFF"],
    "gameboy": ["#0F380F", "#306230", "#8BAC0F", "#9BBC0F"],
    "pico8": [
        "#000000", "#1D2B53", "#7E2553", "#008751",
        "#AB5236", "#5F574F", "#C2C3C7", "#FFF1E8",
        "#FF004D", "#FFA300", "#FFEC27", "#00E436",
        "#29ADFF", "#83769C", "#FF77A8", "#FFCCAA",
    ],
    "ega": [
        "#000000", "#0000AA", "#00AA00", "#00AAAA",
        "#AA0000", "#AA00AA", "#AA5500", "#AAAAAA",
        "#555555", "#5555FF", "#55FF55", "#55FFFF",
        "#FF5555", "#FF55FF", "#FFFF55", "#FFFFFF",
    ],
}


def _hex_to_rgb(hex_str: str) -> np.ndarray:
    """Parse '#RRGGBB' to (3,) uint8 array."""
    m = _HEX_RE.match(hex_str.strip())
    if m is None:
        msg = f"Invalid hex colour '{hex_str}' (expected #RRGGBB)"
        raise ValueError(msg)
    h = m.group(1)
    return np.array([int(h[i : i + 2], 16) for i in (0, 2, 4)], dtype=np.uint8)


def parse_hex_palette(hex_colors: list[str]) -> np.ndarray:
    """Parse hex strings to an (N, 3) uint8 palette, order preserved."""
    if not hex_colors:
        msg = "Palette is empty"
        raise ValueError(msg)
    return np.stack([_hex_to_rgb(h) for h in hex_colors])


NAMED_PALETTES: Mapping[str, np.ndarray] = MappingProxyType(
    {name: parse_hex_palette(colors) for name, colors in _NAMED.items()}
)


def get_palette(name: str) -> np.ndarray:
    palette = NAMED_PALETTES.get(name.strip().lower())
    if palette is None:
        available = ", ".join(sorted(NAMED_PALETTES))
        msg = f"Unknown palette '{name}'. Available: {available}"
        raise ValueError(msg)
    return palette.copy()
