"""
Photo Intake Control Panel
"""
from __future__ import annotations

import logging

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QListWidget, QListWidgetItem, QFileDialog,
    QAbstractItemView,
)
from PySide6.QtCore import Signal, Qt, QSize
from PySide6.QtGui import QDragEnterEvent, QDropEvent, QIcon, QPixmap

from photocloud.config import ACCEPTED_EXTENSIONS
from photocloud.model.photos import PhotoCollection, SourceImage

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = 96


def release_preview(photo: SourceImage) -> None:
    """Drop the thumbnail pixmap of a removed photo."""
    pixmap = photo.preview
    if isinstance(pixmap, QPixmap):
        pixmap.swap(QPixmap())


class PhotosControlPanel(QWidget):
    photos_changed = Signal()
    generate_requested = Signal()

    def __init__(self, photos: PhotoCollection) -> None:
        super().__init__()
        self.photos = photos
        self.setAcceptDrops(True)

        layout = QVBoxLayout(self)

        # --- Drop zone hint ---
        self.lbl_hint = QLabel("Drag and drop images here, or click 'Add Photos...'")
        self.lbl_hint.setAlignment(Qt.AlignCenter)
        self.lbl_hint.setWordWrap(True)
        self.lbl_hint.setStyleSheet(
            "QLabel { border: 2px dashed #ccc; border-radius: 4px; padding: 20px; color: #666; "
            "background-color: #f8f9fa; }"
        )
        layout.addWidget(self.lbl_hint)

        # --- Thumbnails ---
        self.list_photos = QListWidget()
        self.list_photos.setViewMode(QListWidget.IconMode)
        self.list_photos.setIconSize(QSize(THUMBNAIL_SIZE, THUMBNAIL_SIZE))
        self.list_photos.setResizeMode(QListWidget.Adjust)
        self.list_photos.setMovement(QListWidget.Static)
        self.list_photos.setSelectionMode(QAbstractItemView.ExtendedSelection)
        self.list_photos.itemSelectionChanged.connect(self._update_buttons)
        layout.addWidget(self.list_photos, 1)

        # --- Buttons ---
        hbox = QHBoxLayout()
        self.btn_add = QPushButton("Add Photos...")
        self.btn_add.clicked.connect(self.on_add_clicked)
        hbox.addWidget(self.btn_add)

        self.btn_remove = QPushButton("Remove")
        self.btn_remove.clicked.connect(self.on_remove_clicked)
        hbox.addWidget(self.btn_remove)
        layout.addLayout(hbox)

        self.btn_generate = QPushButton("Generate Point Cloud")
        self.btn_generate.setMinimumHeight(40)
        self.btn_generate.setStyleSheet("QPushButton:enabled { background-color: #28a745; color: white; }")
        self.btn_generate.clicked.connect(self.generate_requested)
        layout.addWidget(self.btn_generate)

        self.lbl_status = QLabel("")
        self.lbl_status.setAlignment(Qt.AlignCenter)
        self.lbl_status.setStyleSheet("color: gray;")
        layout.addWidget(self.lbl_status)

        self._update_buttons()

    # --- SLOTS ---

    def on_add_clicked(self) -> None:
        patterns = " ".join(f"*{ext}" for ext in ACCEPTED_EXTENSIONS)
        paths, _ = QFileDialog.getOpenFileNames(self, "Add Photos", "", f"Images ({patterns})")
        if paths:
            self.add_paths(paths)

    def on_remove_clicked(self) -> None:
        rows = sorted((self.list_photos.row(item) for item in self.list_photos.selectedItems()), reverse=True)
        if not rows:
            return
        for row in rows:
            self.photos.remove(row)
            self.list_photos.takeItem(row)
        logger.info(f"Removed {len(rows)} photo(s), {len(self.photos)} left.")
        self._update_buttons()
        self.photos_changed.emit()

    def add_paths(self, paths: list[str]) -> None:
        added = self.photos.add_paths(paths)
        rejected = len(paths) - len(added)
        for photo in added:
            self._add_item(photo)

        if rejected:
            self.lbl_status.setText(f"{rejected} file(s) skipped (only JPEG and PNG are supported).")
        else:
            self.lbl_status.setText("")
        self._update_buttons()
        if added:
            logger.info(f"Added {len(added)} photo(s), {len(self.photos)} total.")
            self.photos_changed.emit()

    # --- DRAG & DROP ---

    def dragEnterEvent(self, event: QDragEnterEvent) -> None:
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
            self.lbl_hint.setStyleSheet(self.lbl_hint.styleSheet().replace("#ccc", "#007bff"))
        else:
            event.ignore()

    def dragLeaveEvent(self, event) -> None:
        self.lbl_hint.setStyleSheet(self.lbl_hint.styleSheet().replace("#007bff", "#ccc"))
        super().dragLeaveEvent(event)

    def dropEvent(self, event: QDropEvent) -> None:
        self.lbl_hint.setStyleSheet(self.lbl_hint.styleSheet().replace("#007bff", "#ccc"))
        paths = [url.toLocalFile() for url in event.mimeData().urls() if url.isLocalFile()]
        if paths:
            self.add_paths(paths)
        event.acceptProposedAction()

    # --- HELPERS ---

    def _add_item(self, photo: SourceImage) -> None:
        pixmap = QPixmap()
        if pixmap.loadFromData(photo.data):
            pixmap = pixmap.scaled(THUMBNAIL_SIZE, THUMBNAIL_SIZE, Qt.KeepAspectRatio, Qt.SmoothTransformation)
        photo.preview = pixmap

        item = QListWidgetItem(QIcon(pixmap), photo.name)
        item.setToolTip(photo.name)
        self.list_photos.addItem(item)

    def _update_buttons(self) -> None:
        self.btn_remove.setEnabled(bool(self.list_photos.selectedItems()))
        self.btn_generate.setEnabled(len(self.photos) > 0)
