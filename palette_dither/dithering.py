"""Error-diffusion dithering onto a palette-indexed image.

Pixels are visited in row-major order. Each one is snapped to the nearest
palette colour (after adding the damped error it has collected so far), and
the leftover error is spread forward through the diffusion kernel to pixels
that have not been visited yet. Error pushed past the edge of the box is
lost, as in every classic error-diffusion ditherer.

The scan is inherently sequential: a pixel cannot be resolved before all
earlier pixels have diffused into it.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

from palette_dither.animation import FrameChannel, FrameReceiver
from palette_dither.color_utils import (
    DAMPING,
    palette_from_image,
    palette_to_array,
    resolve,
)
from palette_dither.image_io import new_paletted
from palette_dither.kernels import DiffusionKernel, get_kernel
from palette_dither.pixel_error import ErrorBuffer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from palette_dither.config import DitherConfig

logger = logging.getLogger(__name__)

Box = tuple[int, int, int, int]


def _as_kernel(kernel: DiffusionKernel | str) -> DiffusionKernel:
    return get_kernel(kernel) if isinstance(kernel, str) else kernel


def _frame_stride(box: Box, frame_count: int) -> int:
    """Pixels between two emitted frames, 0 when nothing is emitted."""
    width, height = box[2] - box[0], box[3] - box[1]
    total = width * height
    if frame_count <= 1 or frame_count >= total:
        return 0
    return total // frame_count


def count_frame_points(box: Box, frame_count: int) -> int:
    """How many intermediate frames a draw over *box* emits.

    A frame is emitted at every non-zero multiple of the stride along the
    scan, i.e. ``frame_count - 1`` frames whenever the stride divides the
    pixel count evenly.
    """
    stride = _frame_stride(box, frame_count)
    if stride == 0:
        return 0
    total = (box[2] - box[0]) * (box[3] - box[1])
    return (total - 1) // stride


def _source_array(src: Image.Image | np.ndarray) -> np.ndarray:
    if isinstance(src, Image.Image):
        return np.asarray(src.convert("RGB"), dtype=np.int64)
    arr = np.asarray(src)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        msg = f"Source array must be (H, W, 3) or (H, W, 4), got shape {arr.shape}"
        raise ValueError(msg)
    return arr[:, :, :3].astype(np.int64)


def _check_box(box: Box, dst_size: tuple[int, int], src_size: tuple[int, int]) -> None:
    min_x, min_y, max_x, max_y = box
    if min_x >= max_x or min_y >= max_y:
        msg = f"Empty dithering box {box}"
        raise ValueError(msg)
    for label, (w, h) in (("destination", dst_size), ("source", src_size)):
        if min_x < 0 or min_y < 0 or max_x > w or max_y > h:
            msg = f"Box {box} is outside the {label} bounds {w}x{h}"
            raise ValueError(msg)


class Ditherer:
    """A configured error-diffusion ditherer.

    Instances hold no per-image state, so one ditherer can serve any number
    of :meth:`draw` calls (sequentially when animation is enabled, since
    all draws share the frame channel).
    """

    def __init__(
        self,
        kernel: DiffusionKernel | str,
        frame_count: int = 1,
        frames: FrameChannel | None = None,
        damping: float = DAMPING,
    ) -> None:
        if frame_count < 1:
            msg = f"frame_count must be >= 1, got {frame_count}"
            raise ValueError(msg)
        if frame_count > 1 and frames is None:
            msg = "An animated ditherer needs a frame channel"
            raise ValueError(msg)
        self.kernel = _as_kernel(kernel)
        self.frame_count = frame_count
        self.damping = damping
        self._frames = frames

    def __repr__(self) -> str:
        return (
            f"Ditherer(kernel={self.kernel.name!r}, "
            f"frame_count={self.frame_count}, damping={self.damping})"
        )

    @classmethod
    def from_config(cls, cfg: DitherConfig) -> tuple[Ditherer, FrameReceiver | None]:
        if cfg.frame_count > 1:
            return new_dither_animation(
                cfg.kernel, cfg.frame_count,
                capacity=cfg.frame_capacity,
                policy=cfg.frame_policy,
                damping=cfg.damping,
            )
        return cls(cfg.kernel, damping=cfg.damping), None

    def draw(
        self,
        dst: Image.Image,
        box: Box | None,
        src: Image.Image | np.ndarray,
    ) -> Image.Image:
        """Dither *src* into the palette-indexed *dst* over *box*.

        Args:
            dst: ``"P"`` mode image, modified in place. Its palette is the
                 set of colours the result may use.
            box: ``(min_x, min_y, max_x, max_y)``; ``None`` means all of *dst*.
                 Must lie inside both images.
            src: Pillow image or (H, W, 3|4) array of 8-bit RGB(A).

        Returns:
            *dst*, for chaining.

        Raises:
            TypeError:  *dst* is not palette-indexed.
            ValueError: empty palette, or *box* empty / out of bounds.
        """
        if not isinstance(dst, Image.Image):
            msg = f"Destination must be a PIL image, got {type(dst).__name__}"
            raise TypeError(msg)
        palette = palette_from_image(dst)
        pixels = _source_array(src)

        if box is None:
            box = (0, 0, dst.width, dst.height)
        box = tuple(int(v) for v in box)  # type: ignore[assignment]
        _check_box(box, dst.size, (pixels.shape[1], pixels.shape[0]))

        min_x, min_y, max_x, max_y = box
        width = max_x - min_x
        errors = ErrorBuffer(box)
        offsets = list(self.kernel.offsets())  # alignment derived once here
        stride = _frame_stride(box, self.frame_count)
        access = dst.load()

        logger.info(
            "Dithering %dx%d with %s (%d colours, %d frames)",
            width, max_y - min_y, self.kernel.name, len(palette), self.frame_count,
        )
        t0 = time.perf_counter()
        emitted = 0

        for y in range(min_y, max_y):
            for x in range(min_x, max_x):
                found = resolve(errors.error_at(x, y), pixels[y, x], palette, self.damping)
                access[x, y] = found.index

                if stride:
                    k = (y - min_y) * width + (x - min_x)
                    if k and k % stride == 0:
                        logger.debug("Emitting frame at (%d, %d)", x, y)
                        self._frames.send(dst.copy())  # type: ignore[union-attr]
                        emitted += 1

                residual = found.residual.as_array()
                for dx, dy, weight in offsets:
                    errors.add_error(x + dx, y + dy, residual, weight)

        logger.info(
            "Dithering done (%.2f s, %d frames emitted)",
            time.perf_counter() - t0, emitted,
        )
        return dst


def new_dither(kernel: DiffusionKernel | str, damping: float = DAMPING) -> Ditherer:
    """Ditherer without animation."""
    return Ditherer(kernel, damping=damping)


def new_dither_animation(
    kernel: DiffusionKernel | str,
    frame_count: int,
    capacity: int = 0,
    policy: str = "block",
    damping: float = DAMPING,
) -> tuple[Ditherer, FrameReceiver]:
    """Ditherer that hands out ``frame_count - 1`` intermediate frames.

    With the default ``capacity=0`` every frame is a blocking handoff: a
    consumer must call :meth:`FrameReceiver.receive` concurrently (see
    :func:`palette_dither.animation.animate`) or ``draw`` never returns.
    """
    if frame_count < 1:
        msg = f"frame_count must be >= 1, got {frame_count}"
        raise ValueError(msg)
    channel = FrameChannel(capacity, policy)
    return Ditherer(kernel, frame_count, channel, damping), FrameReceiver(channel)


def dither_image(
    src: Image.Image | np.ndarray,
    palette: Sequence[Sequence[int]] | np.ndarray,
    kernel: DiffusionKernel | str = "floyd-steinberg",
) -> Image.Image:
    """Dither a whole image onto a new ``"P"`` image holding *palette*."""
    pixels = _source_array(src)
    dst = new_paletted((pixels.shape[1], pixels.shape[0]), palette_to_array(palette))
    return new_dither(kernel).draw(dst, None, pixels)
