"""
Density Resampler
=================
Turns the cached full-resolution samples into the reduced point set that is
actually drawn, applying the user's density, depth and color settings.

Stride sampling: with N samples and target = floor(N * density) points, every
stride = max(1, floor(N / target))-th sample is kept, starting at index 0.
"""
from __future__ import annotations

import logging

import numpy as np

from photocloud.config import WORLD_SCALE
from photocloud.model.dataset import PhotoDataset, RenderGeometry
from photocloud.model.state import ScanSettings

logger = logging.getLogger(__name__)


def compute_stride(n_samples: int, point_density: float) -> int:
    """Return the sampling stride, or 0 if nothing should be drawn."""
    target = int(np.floor(n_samples * point_density))
    if target <= 0:
        return 0
    return max(1, n_samples // target)


class DensityResampler:
    def __init__(self, world_scale: float = WORLD_SCALE) -> None:
        self.world_scale = world_scale

    def resample(self, dataset: PhotoDataset, settings: ScanSettings) -> RenderGeometry:
        n = len(dataset)
        stride = compute_stride(n, settings.point_density)
        if stride == 0:
            logger.debug(f"Density {settings.point_density} selects no points out of {n}.")
            return RenderGeometry()

        xy = dataset.xy[::stride]
        luminance = dataset.luminance[::stride]

        depth = settings.depth_effect
        vertices = np.empty((len(luminance), 3), dtype=np.float32)
        vertices[:, :2] = xy * self.world_scale
        # brightness [0, 1] -> depth [-depth_effect, +depth_effect]
        vertices[:, 2] = luminance * 2 * depth - depth

        # Not clamped: values above 1 are left to the renderer's color model
        colors = (dataset.colors[::stride] * settings.color_intensity).astype(np.float32)

        logger.debug(f"Resampled {n} samples with stride {stride} -> {len(vertices)} points.")
        return RenderGeometry(vertices=vertices, colors=colors)
