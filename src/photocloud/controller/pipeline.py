"""
Point Cloud Pipeline
====================
Single entry point used by the workers: photographs + settings -> geometry.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from photocloud.controller.cache import PointCloudCache
from photocloud.controller.resampler import DensityResampler
from photocloud.model.dataset import RenderGeometry
from photocloud.model.errors import EmptyInputError
from photocloud.model.photos import SourceImage
from photocloud.model.state import ScanSettings

logger = logging.getLogger(__name__)


class PointCloudPipeline:
    def __init__(
        self,
        cache: Optional[PointCloudCache] = None,
        resampler: Optional[DensityResampler] = None,
    ) -> None:
        self.cache = cache or PointCloudCache()
        self.resampler = resampler or DensityResampler()

    def generate(self, photos: Sequence[SourceImage], settings: ScanSettings) -> Optional[RenderGeometry]:
        """
        Build (or reuse) the dataset and resample it.

        Returns None when there are no photographs; this is a no-op, not an error.
        """
        try:
            dataset = self.cache.build_or_reuse(photos)
        except EmptyInputError:
            logger.debug("Generation requested without photographs, nothing to do.")
            return None
        return self.resampler.resample(dataset, settings)
