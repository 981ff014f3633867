"""Per-pixel quantisation error and the buffer it accumulates in."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Marker stored in ``PixelError.a`` once a cell has received error.
ERROR_SET = 0xFFFF

Box = tuple[int, int, int, int]


@dataclass(frozen=True)
class PixelError:
    """Signed RGB error plus a validity marker.

    ``a == 0`` means "never written"; such a value is the additive identity.
    """

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: int = 0

    def __add__(self, other: PixelError) -> PixelError:
        if not isinstance(other, PixelError):
            return NotImplemented
        return PixelError(
            self.r + other.r,
            self.g + other.g,
            self.b + other.b,
            ERROR_SET if (self.a or other.a) else 0,
        )

    def __mul__(self, weight: float) -> PixelError:
        return PixelError(self.r * weight, self.g * weight, self.b * weight, self.a)

    __rmul__ = __mul__

    @property
    def is_set(self) -> bool:
        return self.a != 0

    def as_array(self) -> np.ndarray:
        """(3,) float64 view of the channels."""
        return np.array([self.r, self.g, self.b], dtype=np.float64)

    @classmethod
    def from_array(cls, values: np.ndarray) -> PixelError:
        r, g, b = (float(v) for v in values)
        return cls(r, g, b, ERROR_SET)


ZERO_ERROR = PixelError()


class ErrorBuffer:
    """Error accumulation surface covering one dithering box.

    Coordinates are absolute image coordinates. Anything outside
    ``[min_x, max_x) x [min_y, max_y)`` reads as zero and swallows writes,
    which is how diffusion past the image edges gets clipped.
    """

    def __init__(self, box: Box) -> None:
        min_x, min_y, max_x, max_y = box
        self.bounds: Box = (min_x, min_y, max_x, max_y)
        self.width = max(0, max_x - min_x)
        self.height = max(0, max_y - min_y)
        self._error = np.zeros((self.height, self.width, 3), dtype=np.float64)
        self._written = np.zeros((self.height, self.width), dtype=bool)

    def contains(self, x: int, y: int) -> bool:
        min_x, min_y, max_x, max_y = self.bounds
        return min_x <= x < max_x and min_y <= y < max_y

    def error_at(self, x: int, y: int) -> PixelError:
        if not self.contains(x, y):
            return ZERO_ERROR
        row, col = y - self.bounds[1], x - self.bounds[0]
        if not self._written[row, col]:
            return ZERO_ERROR
        return PixelError.from_array(self._error[row, col])

    def set_error(self, x: int, y: int, value: PixelError) -> None:
        if not self.contains(x, y):
            return
        row, col = y - self.bounds[1], x - self.bounds[0]
        self._error[row, col] = (value.r, value.g, value.b)
        self._written[row, col] = value.is_set

    def add_error(self, x: int, y: int, residual: np.ndarray, weight: float) -> None:
        """``set_error(x, y, error_at(x, y) + residual * weight)`` without the boxing."""
        if not self.contains(x, y):
            return
        row, col = y - self.bounds[1], x - self.bounds[0]
        self._error[row, col] += residual * weight
        self._written[row, col] = True
