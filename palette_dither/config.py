"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from palette_dither.animation import FRAME_POLICIES


@dataclass(frozen=True)
class DitherConfig:
    """All tuneable parameters for a dithering run.

    One config can drive any number of draws; error buffers are per draw.

    Attributes:
        kernel:         Registered diffusion kernel name (see kernels.KERNELS).
        frame_count:    Frames in the animation; 1 disables frame emission.
        frame_capacity: Frame buffer size, 0 = synchronous handoff.
        frame_policy:   "block" or "drop-oldest" when the buffer is full.
        damping:        Low-pass factor applied to incoming error.
        palette:        Named palette (see palette.NAMED_PALETTES).
        max_side:       Shrink the source so its longest side fits (None = keep).
        pixel_upscale:  Each pixel becomes n x n in saved images.
        gif_duration:   Milliseconds per animation frame.
        output_format:  Image format for saved files.
        save_comparison: Generate a side-by-side comparison grid.
        input_dir:      Folder to scan for source images.
        output_dir:     Folder for results.
    """

    # Diffusion
    kernel: str = "floyd-steinberg"
    damping: float = 0.75

    # Animation
    frame_count: int = 1
    frame_capacity: int = 0
    frame_policy: str = "block"

    # Palette / scaling
    palette: str = "bw"
    max_side: int | None = None

    # Output
    pixel_upscale: int = 1
    gif_duration: int = 120
    output_format: str = "png"
    save_comparison: bool = False

    # Paths
    input_dir: Path = field(default_factory=lambda: Path("images"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".jfif"}
    )

    def __post_init__(self) -> None:
        if self.frame_count < 1:
            msg = f"frame_count must be >= 1, got {self.frame_count}"
            raise ValueError(msg)
        if self.frame_capacity < 0:
            msg = f"frame_capacity must be >= 0, got {self.frame_capacity}"
            raise ValueError(msg)
        if self.frame_policy not in FRAME_POLICIES:
            msg = f"Unknown frame policy '{self.frame_policy}'"
            raise ValueError(msg)
