"""
PyVista Render Backend
======================
Implements the render capabilities on top of pyvista/pyvistaqt (VTK) and a
Qt timer driven frame loop.

Notes on the mapping:
- Point size: the viewer settings give it in world units. VTK points are
  sized in pixels, so the size is converted at the default viewing distance.
- Colors: the resampler does not clamp intensity-scaled colors; the color
  model here clips them into [0, 1] before upload.
- Lights: VTK has no ambient light type, a headlight of the ambient
  intensity stands in for it.
- Orientation: image row 0 has the lowest y, so the actor is mirrored in Y
  (DISPLAY_FLIP_Y) to show photos upright. The buffers are left as they are.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional

import numpy as np
import pyvista as pv
from pyvistaqt import QtInteractor
from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QVBoxLayout, QWidget

from photocloud import config
from photocloud.model.dataset import RenderGeometry
from photocloud.model.state import hex_to_rgb
from photocloud.view.widgets.backend import (
    Camera, CameraSpec, Controls, ControlsSpec, Drawable, FrameLoop, LightKind, LightSpec,
    RenderBackend, Renderer, Vec3,
)

logger = logging.getLogger(__name__)


def world_to_pixels(
    size: float,
    viewport_height: int,
    fov: float = config.CAMERA_FOV,
    distance: float = config.CAMERA_DEFAULT_POSITION[2],
) -> float:
    """Pixel size of a `size` world-unit object seen from `distance`."""
    visible_height = 2.0 * distance * math.tan(math.radians(fov) / 2.0)
    return max(1.0, size * viewport_height / visible_height)


# ------------------------------------------------------------------------------
# Camera
# ------------------------------------------------------------------------------

class PyVistaCamera(Camera):
    def __init__(self, spec: CameraSpec) -> None:
        self.vtk_camera = pv.Camera()
        self.vtk_camera.view_angle = spec.fov
        self.vtk_camera.clipping_range = (spec.near, spec.far)
        self.vtk_camera.up = (0.0, 1.0, 0.0)
        self.fov = spec.fov
        self._aspect = spec.aspect

    @property
    def aspect(self) -> float:
        return self._aspect

    @property
    def position(self) -> Vec3:
        return tuple(self.vtk_camera.position)

    def set_aspect(self, aspect: float) -> None:
        # VTK derives the projection aspect from the viewport on every render
        self._aspect = aspect
        self.vtk_camera.Modified()

    def set_position(self, position: Vec3) -> None:
        self.vtk_camera.position = position

    def look_at(self, target: Vec3) -> None:
        self.vtk_camera.focal_point = target
        self.vtk_camera.up = (0.0, 1.0, 0.0)


# ------------------------------------------------------------------------------
# Renderer
# ------------------------------------------------------------------------------

class PyVistaPoints(Drawable):
    def __init__(self, actor: Optional[pv.Actor], point_count: int) -> None:
        self.actor = actor
        self._point_count = point_count

    @property
    def point_count(self) -> int:
        return self._point_count


class PyVistaRenderer(Renderer):
    """A QtInteractor embedded into the surface widget."""

    def __init__(self, surface: QWidget, camera: PyVistaCamera, background_color: str) -> None:
        self.surface = surface
        self.camera = camera
        self._height = max(1, surface.height())

        layout = surface.layout()
        if layout is None:
            layout = QVBoxLayout(surface)
            layout.setContentsMargins(0, 0, 0, 0)
        self._layout = layout

        self.plotter: QtInteractor = QtInteractor(surface, auto_update=False)
        self._layout.addWidget(self.plotter)

        self.plotter.camera = camera.vtk_camera
        self.plotter.set_background(hex_to_rgb(background_color))
        self.plotter.enable_anti_aliasing()
        self.plotter.remove_all_lights()

    def render(self) -> None:
        self.plotter.render()

    def set_size(self, width: int, height: int) -> None:
        # The layout already resized the interactor widget; VTK picks the
        # new window size up on the next render.
        self._height = max(1, height)

    def add_light(self, light: LightSpec) -> None:
        color = hex_to_rgb(light.color)
        if light.kind == LightKind.AMBIENT:
            vtk_light = pv.Light(light_type="headlight", intensity=light.intensity, color=color)
        else:
            vtk_light = pv.Light(
                position=light.position,
                focal_point=(0.0, 0.0, 0.0),
                light_type="scene light",
                intensity=light.intensity,
                color=color,
            )
        self.plotter.add_light(vtk_light)

    def add_points(self, geometry: RenderGeometry, point_size: float) -> PyVistaPoints:
        if geometry.is_empty:
            # VTK refuses empty meshes; an empty cloud simply has no actor
            return PyVistaPoints(None, 0)

        cloud = pv.PolyData(np.asarray(geometry.vertices, dtype=np.float32))
        cloud["rgb"] = (np.clip(geometry.colors, 0.0, 1.0) * 255).astype(np.uint8)

        actor = self.plotter.add_points(
            cloud,
            scalars="rgb",
            rgb=True,
            point_size=world_to_pixels(point_size, self._height, fov=self.camera.fov),
            render_points_as_spheres=True,
            lighting=False,
            reset_camera=False,
            render=False,
        )
        if config.DISPLAY_FLIP_Y:
            # Image row 0 is y = -0.5; mirror on screen so photos read upright
            actor.SetScale(1.0, -1.0, 1.0)
        return PyVistaPoints(actor, len(geometry))

    def remove(self, drawable: Drawable) -> None:
        actor = getattr(drawable, "actor", None)
        if actor is None:
            return
        mapper = actor.GetMapper()
        self.plotter.remove_actor(actor, render=False)
        if mapper is not None:
            mapper.ReleaseGraphicsResources(self.plotter.render_window)
        drawable.actor = None

    def dispose(self) -> None:
        self.plotter.close()  # safely destroys VTK render window + interactor
        self._layout.removeWidget(self.plotter)
        self.plotter.deleteLater()


# ------------------------------------------------------------------------------
# Controls
# ------------------------------------------------------------------------------

class DampedOrbitControls(Controls):
    """
    VTK trackball-camera interaction (left: rotate, middle: pan, right/wheel:
    zoom) with three.js-like inertia: after the mouse is released the last
    per-frame motion of the camera and of its target keeps going and decays
    by `damping_factor`.

    VTK moves the camera itself while the mouse is down; `update()` reads the
    result every frame and applies the ControlsSpec on top of it: a disabled
    rotate/zoom/pan motion is undone, the polar angle (measured from +Y) is
    capped at `max_polar_angle` and the distance to the target is clamped.
    """

    def __init__(self, renderer: PyVistaRenderer, spec: ControlsSpec) -> None:
        self.plotter = renderer.plotter
        self.camera = renderer.camera.vtk_camera
        self.spec = spec

        self._target = np.asarray(self.camera.focal_point, dtype=float)
        self._last_position = np.asarray(self.camera.position, dtype=float)
        self._velocity = np.zeros(3)
        self._target_velocity = np.zeros(3)
        self._interacting = False

        self.plotter.enable_trackball_style()
        self._style = self.plotter.iren.interactor.GetInteractorStyle()
        self._observer_tags = [
            self._style.AddObserver("StartInteractionEvent", self._on_start_interaction),
            self._style.AddObserver("EndInteractionEvent", self._on_end_interaction),
        ]

    @property
    def target(self) -> Vec3:
        return tuple(float(v) for v in self._target)

    @property
    def velocity(self) -> Vec3:
        return tuple(float(v) for v in self._velocity)

    def set_target(self, target: Vec3) -> None:
        self._target = np.asarray(target, dtype=float)
        self.camera.focal_point = tuple(self._target)
        self._last_position = np.asarray(self.camera.position, dtype=float)
        self._velocity[:] = 0.0
        self._target_velocity[:] = 0.0

    def update(self) -> None:
        position = np.asarray(self.camera.position, dtype=float)
        target = np.asarray(self.camera.focal_point, dtype=float)

        if self._interacting:
            position, target = self._constrain(position, target)
            self._velocity = position - self._last_position
            self._target_velocity = target - self._target
        elif np.any(self._velocity) or np.any(self._target_velocity):
            decay = 1.0 - self.spec.damping_factor
            self._velocity *= decay
            self._target_velocity *= decay
            if max(np.linalg.norm(self._velocity), np.linalg.norm(self._target_velocity)) < 1e-5:
                self._velocity[:] = 0.0
                self._target_velocity[:] = 0.0
            # A pan moves camera and target together, a rotation only the camera
            target = self._target + self._target_velocity
            position, target = self._constrain(position + self._velocity, target)

        position = self._clamp_distance(position, target)
        if not np.array_equal(position, self.camera.position) or not np.array_equal(target, self.camera.focal_point):
            self.camera.position = tuple(position)
            self.camera.focal_point = tuple(target)
        self._target = target
        self._last_position = position

    def dispose(self) -> None:
        for tag in self._observer_tags:
            self._style.RemoveObserver(tag)
        self._observer_tags.clear()

    def _constrain(self, position: np.ndarray, target: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Undo disabled motions relative to the previous frame, cap the polar angle, clamp the distance."""
        if not self.spec.enable_pan:
            position = position - (target - self._target)
            target = self._target.copy()

        offset = position - target
        distance = np.linalg.norm(offset)
        if distance == 0.0:
            return position, target

        previous = self._last_position - self._target
        previous_distance = np.linalg.norm(previous)
        if not self.spec.enable_zoom and previous_distance > 0.0:
            distance = previous_distance
        if not self.spec.enable_rotate and previous_distance > 0.0:
            offset = previous
        offset = offset * (distance / np.linalg.norm(offset))

        return self._clamp_distance(target + self._cap_polar_angle(offset), target), target

    def _cap_polar_angle(self, offset: np.ndarray) -> np.ndarray:
        distance = np.linalg.norm(offset)
        polar = np.arccos(np.clip(offset[1] / distance, -1.0, 1.0))
        if polar <= self.spec.max_polar_angle:
            return offset
        horizontal = np.array([offset[0], 0.0, offset[2]])
        h_norm = np.linalg.norm(horizontal)
        if h_norm == 0.0:
            horizontal, h_norm = np.array([0.0, 0.0, 1.0]), 1.0
        angle = self.spec.max_polar_angle
        return distance * (np.cos(angle) * np.array([0.0, 1.0, 0.0]) + np.sin(angle) * horizontal / h_norm)

    def _clamp_distance(self, position: np.ndarray, target: np.ndarray) -> np.ndarray:
        offset = position - target
        distance = np.linalg.norm(offset)
        if distance == 0.0:
            return position
        clamped = min(max(distance, self.spec.min_distance), self.spec.max_distance)
        if clamped == distance:
            return position
        return target + offset * (clamped / distance)

    def _on_start_interaction(self, _obj: Any, _event: str) -> None:
        self._interacting = True
        self._velocity[:] = 0.0
        self._target_velocity[:] = 0.0

    def _on_end_interaction(self, _obj: Any, _event: str) -> None:
        self._interacting = False


# ------------------------------------------------------------------------------
# Frame loop
# ------------------------------------------------------------------------------

class QtFrameLoop(FrameLoop):
    def __init__(self, interval_ms: int = config.FRAME_INTERVAL_MS) -> None:
        self._timer = QTimer()
        self._timer.setInterval(interval_ms)
        self._callback: Optional[Callable[[], None]] = None

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    def start(self, callback: Callable[[], None]) -> None:
        self.cancel()
        self._callback = callback
        self._timer.timeout.connect(callback)
        self._timer.start()

    def cancel(self) -> None:
        self._timer.stop()
        if self._callback is not None:
            self._timer.timeout.disconnect(self._callback)
            self._callback = None


class PyVistaBackend(RenderBackend):
    def create_camera(self, spec: CameraSpec) -> PyVistaCamera:
        return PyVistaCamera(spec)

    def create_renderer(self, surface: Any, camera: Camera, background_color: str) -> PyVistaRenderer:
        return PyVistaRenderer(surface, camera, background_color)

    def create_controls(self, camera: Camera, renderer: Renderer, spec: ControlsSpec) -> DampedOrbitControls:
        return DampedOrbitControls(renderer, spec)

    def create_loop(self, interval_ms: int) -> QtFrameLoop:
        return QtFrameLoop(interval_ms)
