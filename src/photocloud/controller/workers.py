"""
Background Workers (Threading)
==============================
This module contains the QThread that runs the point cloud pipeline and the
controller that makes sure only one of them is in flight.

Why is this file needed?
------------------------
1. Responsiveness: Decoding photographs and resampling millions of pixels on
   the main thread would freeze the sliders and the render loop.
2. Signals: Results travel back to the GUI thread through Qt Signals; the
   worker never touches the viewer directly.

Classes:
    GenerationWorker: Runs PointCloudPipeline.generate() once.
    ScanController: Starts workers, coalescing overlapping requests.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from PySide6.QtCore import QObject, QThread, Signal

from photocloud.controller.pipeline import PointCloudPipeline
from photocloud.model.photos import SourceImage
from photocloud.model.state import ScanSettings

logger = logging.getLogger(__name__)


class GenerationWorker(QThread):
    # Signals to update the UI from the background
    geometry_ready = Signal(object, object)  # (RenderGeometry, ScanSettings)
    error_occurred = Signal(str)

    def __init__(
        self,
        pipeline: PointCloudPipeline,
        photos: Sequence[SourceImage],
        settings: ScanSettings,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.pipeline = pipeline
        # Own copy of the list, the GUI may edit the collection meanwhile
        self.photos = list(photos)
        self.settings = settings

    def run(self) -> None:
        try:
            logger.debug(f"Generating point cloud from {len(self.photos)} photo(s) in background thread...")
            geometry = self.pipeline.generate(self.photos, self.settings)
            if geometry is not None:
                self.geometry_ready.emit(geometry, self.settings)
        except Exception as e:
            logger.exception("Point cloud generation failed")
            self.error_occurred.emit(str(e))


class ScanController(QObject):
    """
    Owns the pipeline and at most one running GenerationWorker.

    A request arriving while a worker runs replaces any earlier pending
    request; the latest one is started as soon as the current worker ends.
    """
    geometry_ready = Signal(object, float)  # (RenderGeometry, point_size)
    error_occurred = Signal(str)
    busy_changed = Signal(bool)

    def __init__(self, pipeline: Optional[PointCloudPipeline] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.pipeline = pipeline or PointCloudPipeline()
        self._worker: Optional[GenerationWorker] = None
        self._pending: Optional[tuple[list[SourceImage], ScanSettings]] = None

    @property
    def is_busy(self) -> bool:
        return self._worker is not None

    def generate(self, photos: Sequence[SourceImage], settings: ScanSettings) -> None:
        if not photos:
            logger.debug("No photographs loaded, skipping generation.")
            return

        if self._worker is not None:
            if self._pending is not None:
                logger.debug("Replacing pending generation request.")
            self._pending = (list(photos), settings)
            return

        self._start(list(photos), settings)

    def invalidate_cache(self) -> None:
        self.pipeline.cache.invalidate()

    def shutdown(self) -> None:
        """Drop pending work and wait for the running worker (called on close)."""
        self._pending = None
        if self._worker is not None:
            self._worker.wait()

    def _start(self, photos: list[SourceImage], settings: ScanSettings) -> None:
        worker = GenerationWorker(self.pipeline, photos, settings, parent=self)
        worker.geometry_ready.connect(self._on_geometry_ready)
        worker.error_occurred.connect(self.error_occurred)
        worker.finished.connect(self._on_worker_finished)
        self._worker = worker
        self.busy_changed.emit(True)
        worker.start()

    def _on_geometry_ready(self, geometry: object, settings: ScanSettings) -> None:
        # A newer request supersedes this result; skip the redundant upload
        if self._pending is not None:
            logger.debug("Discarding superseded point cloud.")
            return
        self.geometry_ready.emit(geometry, settings.point_size)

    def _on_worker_finished(self) -> None:
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.deleteLater()

        if self._pending is not None:
            photos, settings = self._pending
            self._pending = None
            self._start(photos, settings)
        else:
            self.busy_changed.emit(False)
