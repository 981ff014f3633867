"""Error-diffusion kernels and the registry of the classic ones.

A kernel is a small weight matrix. Row 0 is the row being scanned; the
weights at and before the current pixel in that row are zero, so error only
ever flows to pixels that have not been visited yet.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType


def derive_alignment(weights: Sequence[Sequence[float]]) -> int:
    """Horizontal offset placing the first positive weight right after the pixel.

    Rows are scanned top to bottom and left to right. Returns ``-col + 1``
    for the first weight > 0, or ``0`` when there is none.
    """
    for row in weights:
        for col, weight in enumerate(row):
            if weight > 0.0:
                return -col + 1
    return 0


@dataclass(frozen=True)
class DiffusionKernel:
    """Immutable diffusion matrix.

    Weights should sum to at most 1. Larger sums are accepted but make the
    accumulated error grow without bound.
    """

    name: str
    weights: tuple[tuple[float, ...], ...] = field(repr=False)

    def __post_init__(self) -> None:
        rows = tuple(tuple(float(w) for w in row) for row in self.weights)
        if rows and len({len(r) for r in rows}) != 1:
            msg = f"Kernel '{self.name}' is not rectangular"
            raise ValueError(msg)
        object.__setattr__(self, "weights", rows)

    @property
    def rows(self) -> int:
        return len(self.weights)

    @property
    def columns(self) -> int:
        return len(self.weights[0]) if self.weights else 0

    @property
    def total(self) -> float:
        return sum(sum(row) for row in self.weights)

    @cached_property
    def alignment(self) -> int:
        return derive_alignment(self.weights)

    def offsets(self) -> Iterator[tuple[int, int, float]]:
        """Yield ``(dx, dy, weight)`` for every non-zero cell."""
        shift = self.alignment
        for dy, row in enumerate(self.weights):
            for col, weight in enumerate(row):
                if weight != 0.0:
                    yield col + shift, dy, weight


def kernel_from_matrix(
    matrix: Sequence[Sequence[float]], name: str = "custom",
) -> DiffusionKernel:
    return DiffusionKernel(name, tuple(tuple(row) for row in matrix))


# -- Classic kernels ---------------------------------------------------

_TABLE: dict[str, list[list[float]]] = {
    "floyd-steinberg": [
        [0, 0, 7 / 16],
        [3 / 16, 5 / 16, 1 / 16],
    ],
    "jarvis-judice-ninke": [
        [0, 0, 0, 7 / 48, 5 / 48],
        [3 / 48, 5 / 48, 7 / 48, 5 / 48, 3 / 48],
        [1 / 48, 3 / 48, 5 / 48, 3 / 48, 1 / 48],
    ],
    "stucki": [
        [0, 0, 0, 8 / 42, 4 / 42],
        [2 / 42, 4 / 42, 8 / 42, 4 / 42, 2 / 42],
        [1 / 42, 2 / 42, 4 / 42, 2 / 42, 1 / 42],
    ],
    "atkinson": [
        [0, 0, 1 / 8, 1 / 8],
        [1 / 8, 1 / 8, 1 / 8, 0],
        [0, 1 / 8, 0, 0],
    ],
    "burkes": [
        [0, 0, 0, 8 / 32, 4 / 32],
        [2 / 32, 4 / 32, 8 / 32, 4 / 32, 2 / 32],
    ],
    "sierra": [
        [0, 0, 0, 5 / 32, 3 / 32],
        [2 / 32, 4 / 32, 5 / 32, 4 / 32, 2 / 32],
        [0, 2 / 32, 3 / 32, 2 / 32, 0],
    ],
    # first row in sixteenths, second in thirty-seconds
    "two-row-sierra": [
        [0, 0, 0, 4 / 16, 3 / 16],
        [1 / 32, 2 / 32, 3 / 32, 2 / 32, 1 / 32],
    ],
    "sierra-lite": [
        [0, 0, 2 / 4],
        [1 / 4, 1 / 4, 0],
    ],
}

KERNELS: Mapping[str, DiffusionKernel] = MappingProxyType(
    {name: kernel_from_matrix(m, name) for name, m in _TABLE.items()}
)


def get_kernel(name: str) -> DiffusionKernel:
    """Look up a registered kernel (case-insensitive, ``_`` or ``-``)."""
    key = name.strip().lower().replace("_", "-").replace(" ", "-")
    kernel = KERNELS.get(key)
    if kernel is None:
        available = ", ".join(sorted(KERNELS))
        msg = f"Unknown kernel '{name}'. Available: {available}"
        raise ValueError(msg)
    return kernel
