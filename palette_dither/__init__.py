"""
Palette Dither
==============

Error-diffusion dithering of full-colour images onto a caller-supplied
palette. Ships the classic diffusion kernels:

- **Floyd-Steinberg**, **Jarvis-Judice-Ninke**, **Stucki**, **Atkinson**
- **Burkes**, **Sierra**, **Two-Row Sierra**, **Sierra Lite**

and can hand out intermediate frames while a draw is running, to animate
the process.
"""

__version__ = "1.0.0"

from palette_dither.animation import (
    FrameChannel,
    FrameReceiver,
    FrameTimeoutError,
    animate,
    save_gif,
)
from palette_dither.color_utils import Resolution, palette_to_array, resolve
from palette_dither.config import DitherConfig
from palette_dither.dithering import (
    Ditherer,
    count_frame_points,
    dither_image,
    new_dither,
    new_dither_animation,
)
from palette_dither.image_io import load_image, new_paletted, save_upscaled
from palette_dither.kernels import (
    KERNELS,
    DiffusionKernel,
    derive_alignment,
    get_kernel,
    kernel_from_matrix,
)
from palette_dither.palette import NAMED_PALETTES, get_palette, parse_hex_palette
from palette_dither.pixel_error import ErrorBuffer, PixelError

__all__ = [
    "KERNELS",
    "NAMED_PALETTES",
    "DiffusionKernel",
    "DitherConfig",
    "Ditherer",
    "ErrorBuffer",
    "FrameChannel",
    "FrameReceiver",
    "FrameTimeoutError",
    "PixelError",
    "Resolution",
    "animate",
    "count_frame_points",
    "derive_alignment",
    "dither_image",
    "get_kernel",
    "get_palette",
    "kernel_from_matrix",
    "load_image",
    "new_dither",
    "new_dither_animation",
    "new_paletted",
    "palette_to_array",
    "parse_hex_palette",
    "resolve",
    "save_gif",
    "save_upscaled",
]
