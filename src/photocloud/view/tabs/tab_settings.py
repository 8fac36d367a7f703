"""
Scan Settings Control Panel
===========================
Sliders for the point cloud settings. QSlider only knows integers, so every
slider runs over integer steps of its setting's step size.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QSlider, QGroupBox, QColorDialog,
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QColor

from photocloud.controller.settings import SettingsController
from photocloud.model.state import SETTINGS_RANGES, ScanSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SliderSpec:
    field: str
    label: str
    description: str
    step: float

    @property
    def range(self) -> tuple[float, float]:
        return SETTINGS_RANGES[self.field]

    def to_ticks(self, value: float) -> int:
        return round((value - self.range[0]) / self.step)

    def from_ticks(self, ticks: int) -> float:
        return round(self.range[0] + ticks * self.step, 6)

    @property
    def max_ticks(self) -> int:
        return self.to_ticks(self.range[1])


SLIDERS: tuple[SliderSpec, ...] = (
    SliderSpec(
        "point_size", "Point Size",
        "Adjusts the size of individual points in the 3D point cloud. "
        "Larger values create more visible points.",
        0.01,
    ),
    SliderSpec(
        "point_density", "Point Density",
        "Controls how many points are generated from the source images. "
        "Higher density creates more detailed but potentially slower rendering.",
        0.01,
    ),
    SliderSpec(
        "color_intensity", "Color Intensity",
        "Adjusts the vibrancy of colors in the point cloud. Higher values create more saturated colors.",
        0.1,
    ),
    SliderSpec(
        "depth_effect", "Depth Effect",
        "Controls the 3D depth perception of the point cloud. "
        "Higher values create more pronounced depth effects.",
        0.1,
    ),
)


class SettingsControlPanel(QWidget):
    def __init__(self, controller: SettingsController) -> None:
        super().__init__()
        self.controller = controller
        self._sliders: dict[str, QSlider] = {}
        self._value_labels: dict[str, QLabel] = {}

        layout = QVBoxLayout(self)

        # --- Point cloud ---
        grp = QGroupBox("Point Cloud")
        l_grp = QVBoxLayout(grp)
        for spec in SLIDERS:
            self._add_slider(l_grp, spec)
        layout.addWidget(grp)

        # --- Viewer ---
        grp_view = QGroupBox("Viewer")
        l_view = QVBoxLayout(grp_view)
        desc = QLabel(
            "Choose the background color for the 3D viewer. "
            "Select a color that provides good contrast with your point cloud."
        )
        desc.setWordWrap(True)
        desc.setStyleSheet("color: #666; font-size: 12px;")
        l_view.addWidget(desc)

        self.btn_background = QPushButton()
        self.btn_background.clicked.connect(self.on_background_clicked)
        l_view.addWidget(self.btn_background)
        layout.addWidget(grp_view)

        self.btn_reset = QPushButton("Reset to Defaults")
        self.btn_reset.clicked.connect(self.on_reset_clicked)
        layout.addWidget(self.btn_reset)

        layout.addStretch()

        self.controller.settings_changed.connect(self.load_from_settings)
        self.load_from_settings(self.controller.settings)

    # --- SLOTS ---

    def on_slider_changed(self, spec: SliderSpec, ticks: int) -> None:
        value = spec.from_ticks(ticks)
        self._value_labels[spec.field].setText(f"{value:g}")
        self.controller.update(**{spec.field: value})

    def on_background_clicked(self) -> None:
        current = QColor(self.controller.settings.background_color)
        color = QColorDialog.getColor(current, self, "Background Color")
        if color.isValid():
            self.controller.update(background_color=color.name())

    def on_reset_clicked(self) -> None:
        self.controller.reset()

    def load_from_settings(self, settings: ScanSettings) -> None:
        """Syncs the sliders from a settings value without echoing signals back."""
        for spec in SLIDERS:
            value = getattr(settings, spec.field)
            slider = self._sliders[spec.field]
            slider.blockSignals(True)
            slider.setValue(spec.to_ticks(value))
            slider.blockSignals(False)
            self._value_labels[spec.field].setText(f"{value:g}")

        self.btn_background.setText(f"Background: {settings.background_color}")
        self.btn_background.setStyleSheet(
            f"QPushButton {{ border: 1px solid #888; border-left: 24px solid {settings.background_color}; "
            f"padding: 6px; }}"
        )

    # --- HELPERS ---

    def _add_slider(self, layout: QVBoxLayout, spec: SliderSpec) -> None:
        hbox = QHBoxLayout()
        hbox.addWidget(QLabel(f"{spec.label}:"))
        hbox.addStretch()
        lbl_value = QLabel("")
        hbox.addWidget(lbl_value)
        layout.addLayout(hbox)

        desc = QLabel(spec.description)
        desc.setWordWrap(True)
        desc.setStyleSheet("color: #666; font-size: 12px;")
        layout.addWidget(desc)

        slider = QSlider(Qt.Horizontal)
        slider.setRange(0, spec.max_ticks)
        slider.setSingleStep(1)
        slider.valueChanged.connect(lambda ticks, s=spec: self.on_slider_changed(s, ticks))
        layout.addWidget(slider)

        self._sliders[spec.field] = slider
        self._value_labels[spec.field] = lbl_value
