"""
3D Point Cloud Widget (Display Surface)
=======================================
Hosts a ViewerSession and translates Qt widget events into session calls:
show -> mount, resize -> handle_resize, close -> unmount.
"""
from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QFrame, QStyle
from PySide6.QtGui import QCloseEvent, QResizeEvent, QShowEvent

from photocloud.model.dataset import RenderGeometry
from photocloud.view.widgets.backend import RenderBackend
from photocloud.view.widgets.viewer import ViewerSession

logger = logging.getLogger(__name__)


class PointCloudView(QWidget):
    def __init__(
        self,
        background_color: str = "#ffffff",
        backend: Optional[RenderBackend] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        # The renderer is embedded into this frame, the overlay floats above it
        self.surface = QFrame(self)
        self.surface.setMinimumSize(200, 200)
        self.layout_box.addWidget(self.surface)

        self.session = ViewerSession(backend=backend, background_color=background_color)

        self._setup_overlay_controls()

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def show_geometry(self, geometry: RenderGeometry, point_size: float) -> None:
        if not self.session.is_mounted:
            self.session.mount(self.surface)
        self.session.replace_geometry(geometry, point_size)
        self.overlay_widget.raise_()

    def set_background(self, color: str) -> None:
        self.session.set_background(color)
        self.overlay_widget.raise_()

    @property
    def point_count(self) -> int:
        return self.session.point_count

    # ------------------------------------------------------------------------------
    # Qt events
    # ------------------------------------------------------------------------------

    def showEvent(self, event: QShowEvent) -> None:
        super().showEvent(event)
        if not self.session.is_mounted:
            self.session.mount(self.surface)
            self.overlay_widget.raise_()

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        self._place_overlay()
        # Query the surface itself; the layout has resized it by now
        self.session.handle_resize(self.surface.width(), self.surface.height())

    def closeEvent(self, event: QCloseEvent) -> None:
        self.session.unmount()
        event.accept()

    # ------------------------------------------------------------------------------
    # Overlay
    # ------------------------------------------------------------------------------

    def _setup_overlay_controls(self) -> None:
        """Floating camera button."""
        self.overlay_widget = QFrame(self)
        self.overlay_widget.setStyleSheet("""
            QFrame { background-color: rgba(255, 255, 255, 200); border-radius: 6px; border: 1px solid #ccc; }
            QPushButton { background-color: transparent; border: none; padding: 4px; }
            QPushButton:hover { background-color: rgba(0, 0, 0, 10); }
        """)

        layout = QHBoxLayout(self.overlay_widget)
        layout.setContentsMargins(4, 4, 4, 4)

        self.btn_reset_view = QPushButton()
        self.btn_reset_view.setIcon(self.style().standardIcon(QStyle.SP_BrowserReload))
        self.btn_reset_view.setToolTip("Reset view")
        self.btn_reset_view.clicked.connect(self.session.reset_camera)
        layout.addWidget(self.btn_reset_view)

        self.overlay_widget.adjustSize()
        self._place_overlay()

    def _place_overlay(self) -> None:
        margin = 8
        self.overlay_widget.move(self.width() - self.overlay_widget.width() - margin, margin)
