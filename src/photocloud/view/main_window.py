"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, the control panels and the
3D viewer.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects the panels to the controllers, and the controllers'
   results back to the viewer.
"""
from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QSplitter, QTabBar, QStackedWidget, QLabel,
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QCloseEvent

from photocloud.controller.settings import SettingsController
from photocloud.controller.workers import ScanController
from photocloud.model.dataset import RenderGeometry
from photocloud.model.photos import PhotoCollection
from photocloud.model.state import ScanSettings
from photocloud.view.tabs.tab_photos import PhotosControlPanel, release_preview
from photocloud.view.tabs.tab_settings import SettingsControlPanel
from photocloud.view.widgets.backend import RenderBackend
from photocloud.view.widgets.point_cloud_view import PointCloudView

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "3D Point Cloud"


class MainWindow(QMainWindow):
    def __init__(
        self,
        settings: Optional[ScanSettings] = None,
        backend: Optional[RenderBackend] = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1400, 900)

        # --- CONTROLLERS ---
        self.photos = PhotoCollection(release_preview=release_preview)
        self.settings_ctrl = SettingsController(settings, parent=self)
        self.scan_ctrl = ScanController(parent=self)
        self._has_cloud = False

        # --- MAIN CONTAINER ---
        main_widget = QWidget()
        self.setCentralWidget(main_widget)

        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # --- 1. TOP TAB BAR ---
        self.tab_bar = QTabBar()
        self.tab_bar.setDrawBase(True)
        self.tab_bar.setExpanding(True)
        self.tab_bar.addTab("1. Photos")
        self.tab_bar.addTab("2. Settings")
        self.tab_bar.setStyleSheet("""
                    QTabBar::tab { height: 35px; min-width: 100px; }
                    QTabBar::tab:selected { font-weight: bold; }
                """)
        main_layout.addWidget(self.tab_bar)

        # --- 2. SPLITTER (CONTENT AREA) ---
        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)

        # --- LEFT SIDE: Control Panels (Stacked) ---
        self.controls_stack = QStackedWidget()
        self.photos_panel = PhotosControlPanel(self.photos)
        self.settings_panel = SettingsControlPanel(self.settings_ctrl)
        # Order must match Tab Bar order
        self.controls_stack.addWidget(self.photos_panel)
        self.controls_stack.addWidget(self.settings_panel)
        splitter.addWidget(self.controls_stack)

        # --- RIGHT SIDE: 3D Viewer ---
        self.visualizer = PointCloudView(
            background_color=self.settings_ctrl.settings.background_color,
            backend=backend,
        )
        splitter.addWidget(self.visualizer)
        splitter.setSizes([350, 1050])

        # --- STATUS BAR ---
        self.lbl_points = QLabel("No point cloud")
        self.statusBar().addPermanentWidget(self.lbl_points)

        # --- SIGNAL CONNECTIONS ---
        self.tab_bar.currentChanged.connect(self.controls_stack.setCurrentIndex)

        self.photos_panel.photos_changed.connect(self.on_photos_changed)
        self.photos_panel.generate_requested.connect(self.settings_ctrl.request_now)

        self.settings_ctrl.regenerate_requested.connect(self.on_regenerate_requested)
        self.settings_ctrl.background_changed.connect(self.visualizer.set_background)

        self.scan_ctrl.geometry_ready.connect(self.on_geometry_ready)
        self.scan_ctrl.error_occurred.connect(self.on_generation_error)
        self.scan_ctrl.busy_changed.connect(self.on_busy_changed)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

    def _create_actions(self) -> None:
        self.act_add = QAction("Add Photos...", self)
        self.act_add.setShortcut("Ctrl+O")
        self.act_add.triggered.connect(self.photos_panel.on_add_clicked)

        self.act_clear = QAction("Clear Photos", self)
        self.act_clear.triggered.connect(self.on_clear_photos)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

        self.act_reset_view = QAction("Reset View", self)
        self.act_reset_view.setShortcut("R")
        self.act_reset_view.triggered.connect(self.visualizer.session.reset_camera)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_add)
        file_menu.addAction(self.act_clear)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

        view_menu = menu_bar.addMenu("&View")
        view_menu.addAction(self.act_reset_view)

    # --- SLOTS ---

    def on_photos_changed(self) -> None:
        if not self.photos:
            self.scan_ctrl.invalidate_cache()
            return
        # Once a cloud is shown, keep it in sync with the photo list
        if self._has_cloud:
            self.settings_ctrl.schedule()

    def on_clear_photos(self) -> None:
        self.photos.clear()
        self.photos_panel.list_photos.clear()
        self.photos_panel.btn_generate.setEnabled(False)
        self.on_photos_changed()

    def on_regenerate_requested(self, settings: ScanSettings) -> None:
        self.scan_ctrl.generate(self.photos.snapshot(), settings)

    def on_geometry_ready(self, geometry: RenderGeometry, point_size: float) -> None:
        self.visualizer.show_geometry(geometry, point_size)
        self._has_cloud = True
        self.lbl_points.setText(f"{self.visualizer.point_count:,} points")

    def on_generation_error(self, message: str) -> None:
        self.statusBar().showMessage(f"Point cloud generation failed: {message}", 10000)

    def on_busy_changed(self, busy: bool) -> None:
        if busy:
            self.statusBar().showMessage("Generating point cloud...")
        else:
            self.statusBar().clearMessage()

    def closeEvent(self, event: QCloseEvent, /) -> None:
        self.settings_ctrl.cancel()
        self.scan_ctrl.shutdown()
        # Stop the render loop and release the renderer safely
        self.visualizer.session.unmount()
        event.accept()
