"""
Point Cloud Cache
=================
Holds the full-resolution samples of the active photo set, so slider tweaks
only re-run the cheap resampling step.

The cache is keyed on the NUMBER of photographs, not their identity. Swapping
one photo for another (same count) keeps serving the old samples. This is a
known limitation kept on purpose; call `invalidate()` to force a rebuild.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
import threading
import time
from typing import Optional, Sequence

from photocloud.config import DECODE_WORKERS
from photocloud.controller.sampler import PixelSampler
from photocloud.model.dataset import PhotoDataset
from photocloud.model.errors import DecodeFailure, EmptyInputError, UnsupportedMediaError
from photocloud.model.photos import SourceImage

logger = logging.getLogger(__name__)


class PointCloudCache:
    def __init__(self, sampler: Optional[PixelSampler] = None, max_workers: int = DECODE_WORKERS) -> None:
        self.sampler = sampler or PixelSampler()
        self.max_workers = max(1, max_workers)
        self._dataset: Optional[PhotoDataset] = None
        # Bumped by invalidate(); a build that started before the bump is not stored
        self._generation = 0
        # Guards _dataset and _generation only, never held while decoding
        self._lock = threading.Lock()

    @property
    def dataset(self) -> Optional[PhotoDataset]:
        return self._dataset

    def invalidate(self) -> None:
        with self._lock:
            self._dataset = None
            self._generation += 1
        logger.debug("Point cloud cache invalidated.")

    def build_or_reuse(self, photos: Sequence[SourceImage]) -> PhotoDataset:
        """
        Return the cached dataset if it was built from len(photos) photographs,
        otherwise decode every photo (in input order) and cache the result.

        Raises:
            EmptyInputError: If photos is empty.
        """
        if not photos:
            raise EmptyInputError("No photographs to sample.")

        with self._lock:
            cached, generation = self._dataset, self._generation
        if cached is not None and not cached.is_stale(len(photos)):
            return cached

        # Decoding runs unlocked so invalidate() on the GUI thread returns at once
        dataset = self._build(photos)
        with self._lock:
            if self._generation == generation:
                self._dataset = dataset
            else:
                logger.debug("Cache invalidated during the build, result not stored.")
        return dataset

    def _build(self, photos: Sequence[SourceImage]) -> PhotoDataset:
        logger.info(f"Building point cloud dataset from {len(photos)} photograph(s)...")
        start = time.perf_counter()

        workers = min(self.max_workers, len(photos))
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="decode") as pool:
                # map() keeps input order; the dataset only exists once every decode returned
                parts = list(pool.map(self._sample_or_skip, photos))
        else:
            parts = [self._sample_or_skip(photo) for photo in photos]

        dataset = PhotoDataset.concatenate([p for p in parts if p is not None], source_count=len(photos))
        logger.info(f"Dataset ready: {len(dataset)} samples in {time.perf_counter() - start:.2f} s.")
        return dataset

    def _sample_or_skip(self, photo: SourceImage) -> Optional[PhotoDataset]:
        try:
            return self.sampler.sample(photo)
        except UnsupportedMediaError as e:
            logger.warning(f"Skipping photo: {e}")
        except DecodeFailure as e:
            logger.warning(f"Skipping photo: {e}")
        return None
