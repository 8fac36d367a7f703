"""
Decoded Samples & Render Buffers
================================
Data structures passed between the pipeline stages.

Classes:
    RawSample: One decoded pixel (read-only view).
    PhotoDataset: All decoded pixels of the current photo set.
    RenderGeometry: The flat vertex/color buffers handed to the viewer.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class RawSample:
    """One decoded pixel in normalized image-plane coordinates."""
    x: float  # [-0.5, 0.5)
    y: float  # [-0.5, 0.5)
    luminance: float  # [0, 1]
    color: tuple[float, float, float]  # each [0, 1]


def _readonly(arr: npt.NDArray) -> npt.NDArray:
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class PhotoDataset:
    """
    Ordered samples of all photographs, stored column-wise.

    `source_count` is the number of photographs the dataset was built from
    (including photographs that were skipped because they could not be
    decoded). The arrays are read-only once the dataset exists.
    """
    xy: npt.NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 2), dtype=np.float64))
    luminance: npt.NDArray[np.float64] = field(default_factory=lambda: np.empty(0, dtype=np.float64))
    colors: npt.NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 3), dtype=np.float64))
    source_count: int = 0

    def __post_init__(self) -> None:
        n = len(self.luminance)
        if self.xy.shape != (n, 2) or self.colors.shape != (n, 3):
            raise ValueError(
                f"Inconsistent sample arrays: xy {self.xy.shape}, "
                f"luminance {self.luminance.shape}, colors {self.colors.shape}."
            )
        for arr in (self.xy, self.luminance, self.colors):
            _readonly(arr)

    @classmethod
    def concatenate(cls, parts: Sequence[PhotoDataset], source_count: int) -> PhotoDataset:
        """Join per-photo fragments in the given order."""
        if not parts:
            return cls(source_count=source_count)
        return cls(
            xy=np.concatenate([p.xy for p in parts]),
            luminance=np.concatenate([p.luminance for p in parts]),
            colors=np.concatenate([p.colors for p in parts]),
            source_count=source_count,
        )

    def __len__(self) -> int:
        return len(self.luminance)

    def __iter__(self) -> Iterator[RawSample]:
        for i in range(len(self)):
            yield self.sample(i)

    def sample(self, index: int) -> RawSample:
        x, y = self.xy[index]
        r, g, b = self.colors[index]
        return RawSample(
            x=float(x),
            y=float(y),
            luminance=float(self.luminance[index]),
            color=(float(r), float(g), float(b)),
        )

    def is_stale(self, photo_count: int) -> bool:
        return self.source_count != photo_count


@dataclass(frozen=True, eq=False)
class RenderGeometry:
    """Flat (N, 3) float32 vertex and color buffers. Colors are not clamped."""
    vertices: npt.NDArray[np.float32] = field(default_factory=lambda: np.empty((0, 3), dtype=np.float32))
    colors: npt.NDArray[np.float32] = field(default_factory=lambda: np.empty((0, 3), dtype=np.float32))

    def __post_init__(self) -> None:
        if self.vertices.shape != self.colors.shape or self.vertices.ndim != 2 or self.vertices.shape[1] != 3:
            raise ValueError(
                f"Expected matching (N, 3) buffers, got {self.vertices.shape} and {self.colors.shape}."
            )

    def __len__(self) -> int:
        return len(self.vertices)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0
