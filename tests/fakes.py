"""Test doubles: in-memory images and a recording render backend (no GPU)."""

import io
from typing import Callable, Optional

import numpy as np
from PIL import Image

from photocloud.model.dataset import RenderGeometry
from photocloud.model.photos import SourceImage
from photocloud.view.widgets.backend import (
    Camera, CameraSpec, Controls, ControlsSpec, Drawable, FrameLoop, LightSpec, RenderBackend, Renderer,
)


def make_photo(pixels, fmt="PNG", name="photo.png"):
    """Encode an (H, W, C) uint8 array into a SourceImage."""
    arr = np.asarray(pixels, dtype=np.uint8)
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format=fmt)
    mime = "image/png" if fmt == "PNG" else "image/jpeg"
    return SourceImage(data=buf.getvalue(), mime_type=mime, name=name)


def solid_photo(width, height, rgb, name="solid.png"):
    return make_photo(np.full((height, width, 3), rgb, dtype=np.uint8), name=name)


class FakeSurface:
    def __init__(self, width=800, height=600):
        self.w = width
        self.h = height

    def width(self):
        return self.w

    def height(self):
        return self.h


class FakeCamera(Camera):
    def __init__(self, spec: CameraSpec):
        self.spec = spec
        self._aspect = spec.aspect
        self._position = (0.0, 0.0, 0.0)
        self.looking_at = None
        self.aspect_updates = 0

    @property
    def aspect(self):
        return self._aspect

    @property
    def position(self):
        return self._position

    def set_aspect(self, aspect):
        self._aspect = aspect
        self.aspect_updates += 1

    def set_position(self, position):
        self._position = tuple(position)

    def look_at(self, target):
        self.looking_at = tuple(target)


class FakeDrawable(Drawable):
    def __init__(self, geometry: RenderGeometry, point_size: float):
        self.geometry = geometry
        self.point_size = point_size
        self.removed = False

    @property
    def point_count(self):
        return len(self.geometry)


class FakeRenderer(Renderer):
    def __init__(self, surface, camera, background_color):
        self.surface = surface
        self.camera = camera
        self.background_color = background_color
        self.scene: list = []
        self.lights: list[LightSpec] = []
        self.sizes: list[tuple[int, int]] = []
        self.render_count = 0
        self.disposed = False
        self.fail_add = False
        self.fail_remove = False
        self.fail_render = False

    def render(self):
        if self.fail_render:
            raise RuntimeError("render failed")
        self.render_count += 1

    def set_size(self, width, height):
        self.sizes.append((width, height))

    def add_light(self, light):
        self.lights.append(light)

    def add_points(self, geometry, point_size):
        if self.fail_add:
            raise RuntimeError("upload failed")
        drawable = FakeDrawable(geometry, point_size)
        self.scene.append(drawable)
        return drawable

    def remove(self, drawable):
        if self.fail_remove:
            raise RuntimeError("dispose failed")
        self.scene.remove(drawable)
        drawable.removed = True

    def dispose(self):
        self.disposed = True


class FakeControls(Controls):
    def __init__(self, camera, spec: ControlsSpec):
        self.camera = camera
        self.spec = spec
        self._target = None
        self.update_count = 0
        self.disposed = False

    @property
    def target(self):
        return self._target

    def set_target(self, target):
        self._target = tuple(target)

    def update(self):
        self.update_count += 1

    def dispose(self):
        self.disposed = True


class FakeLoop(FrameLoop):
    def __init__(self, interval_ms):
        self.interval_ms = interval_ms
        self.callback: Optional[Callable[[], None]] = None
        self.cancelled = 0

    @property
    def is_running(self):
        return self.callback is not None

    def start(self, callback):
        self.callback = callback

    def cancel(self):
        self.callback = None
        self.cancelled += 1

    def tick(self, frames=1):
        for _ in range(frames):
            if self.callback is not None:
                self.callback()


class FakeBackend(RenderBackend):
    """Records every object it creates. `fail_on` names a factory that raises."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.cameras: list[FakeCamera] = []
        self.renderers: list[FakeRenderer] = []
        self.controls: list[FakeControls] = []
        self.loops: list[FakeLoop] = []

    def _check(self, what):
        if self.fail_on == what:
            raise RuntimeError(f"cannot create {what}")

    def create_camera(self, spec):
        self._check("camera")
        self.cameras.append(FakeCamera(spec))
        return self.cameras[-1]

    def create_renderer(self, surface, camera, background_color):
        self._check("renderer")
        self.renderers.append(FakeRenderer(surface, camera, background_color))
        return self.renderers[-1]

    def create_controls(self, camera, renderer, spec):
        self._check("controls")
        self.controls.append(FakeControls(camera, spec))
        return self.controls[-1]

    def create_loop(self, interval_ms):
        self._check("loop")
        self.loops.append(FakeLoop(interval_ms))
        return self.loops[-1]
