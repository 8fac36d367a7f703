"""
Render Backend Capabilities
===========================
The ViewerSession only talks to these interfaces. Every object here can be
constructed, updated and disposed; nothing else is assumed about the 3D
library behind it.

Why is this file needed?
------------------------
1. Decoupling: The session lifecycle (mount, swap geometry, rebuild, tear
   down) is independent of VTK, so it can be exercised without a GPU.
2. Scoped resources: Each interface has a `dispose`/`remove` so the session
   can release exactly what it acquired.

The default implementation is PyVistaBackend (pyvista_backend.py).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
import math
from typing import Any, Callable, Optional

from photocloud import config
from photocloud.model.dataset import RenderGeometry

Vec3 = tuple[float, float, float]


# ------------------------------------------------------------------------------
# Specs (plain values)
# ------------------------------------------------------------------------------

@dataclass(frozen=True)
class CameraSpec:
    fov: float = config.CAMERA_FOV  # vertical, degrees
    aspect: float = 1.0
    near: float = config.CAMERA_NEAR
    far: float = config.CAMERA_FAR


@dataclass(frozen=True)
class ControlsSpec:
    damping_factor: float = config.CONTROLS_DAMPING
    enable_rotate: bool = True
    enable_zoom: bool = True
    enable_pan: bool = True
    min_distance: float = config.CONTROLS_MIN_DISTANCE
    max_distance: float = config.CONTROLS_MAX_DISTANCE
    max_polar_angle: float = math.pi


class LightKind(StrEnum):
    AMBIENT = "ambient"
    DIRECTIONAL = "directional"


@dataclass(frozen=True)
class LightSpec:
    kind: LightKind
    intensity: float
    position: Optional[Vec3] = None
    color: str = "#ffffff"


DEFAULT_LIGHTS: tuple[LightSpec, ...] = (
    LightSpec(LightKind.AMBIENT, config.AMBIENT_INTENSITY),
    # key
    LightSpec(LightKind.DIRECTIONAL, config.KEY_LIGHT_INTENSITY, config.KEY_LIGHT_POSITION),
    # fill
    LightSpec(LightKind.DIRECTIONAL, config.FILL_LIGHT_INTENSITY, config.FILL_LIGHT_POSITION),
)


# ------------------------------------------------------------------------------
# Capabilities
# ------------------------------------------------------------------------------

class Camera(ABC):
    @property
    @abstractmethod
    def aspect(self) -> float: ...

    @property
    @abstractmethod
    def position(self) -> Vec3: ...

    @abstractmethod
    def set_aspect(self, aspect: float) -> None:
        """Update the aspect ratio and the projection matrix."""

    @abstractmethod
    def set_position(self, position: Vec3) -> None: ...

    @abstractmethod
    def look_at(self, target: Vec3) -> None: ...


class Drawable(ABC):
    """A point cloud that has been uploaded to the renderer."""

    @property
    @abstractmethod
    def point_count(self) -> int: ...


class Renderer(ABC):
    """A renderer bound to one display surface."""

    @abstractmethod
    def render(self) -> None: ...

    @abstractmethod
    def set_size(self, width: int, height: int) -> None: ...

    @abstractmethod
    def add_light(self, light: LightSpec) -> None: ...

    @abstractmethod
    def add_points(self, geometry: RenderGeometry, point_size: float) -> Drawable:
        """Upload the buffers and add them to the scene."""

    @abstractmethod
    def remove(self, drawable: Drawable) -> None:
        """Remove from the scene and release the GPU buffers/materials."""

    @abstractmethod
    def dispose(self) -> None:
        """Release all renderer resources and clear the surface."""


class Controls(ABC):
    """Orbit-style camera controls with inertial damping."""

    @property
    @abstractmethod
    def target(self) -> Vec3: ...

    @abstractmethod
    def set_target(self, target: Vec3) -> None: ...

    @abstractmethod
    def update(self) -> None:
        """Advance the damping state by one frame."""

    @abstractmethod
    def dispose(self) -> None: ...


class FrameLoop(ABC):
    """Recurring per-frame task that yields to the host scheduler between frames."""

    @property
    @abstractmethod
    def is_running(self) -> bool: ...

    @abstractmethod
    def start(self, callback: Callable[[], None]) -> None: ...

    @abstractmethod
    def cancel(self) -> None: ...


class RenderBackend(ABC):
    @abstractmethod
    def create_camera(self, spec: CameraSpec) -> Camera: ...

    @abstractmethod
    def create_renderer(self, surface: Any, camera: Camera, background_color: str) -> Renderer: ...

    @abstractmethod
    def create_controls(self, camera: Camera, renderer: Renderer, spec: ControlsSpec) -> Controls: ...

    @abstractmethod
    def create_loop(self, interval_ms: int) -> FrameLoop: ...
