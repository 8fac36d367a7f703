"""
Viewer Session (Render Lifecycle)
=================================
Owns the renderer, camera, orbit controls, lights, the continuous frame loop
and the single point cloud drawable.

Why is this file needed?
------------------------
1. Lifecycle: UNMOUNTED -> MOUNTED -> UNMOUNTED. A background change is an
   internal rebuild (unmount + mount) that the caller never sees.
2. Scoped resources: Every geometry swap and every unmount releases what the
   session acquired before, on every exit path.
3. Robustness: No public method raises into the caller. A missing surface is
   a no-op, and failures are logged while the frame loop keeps going.
"""
from __future__ import annotations

from enum import StrEnum
import logging
from typing import Any, Callable, Optional

from photocloud import config
from photocloud.model.dataset import RenderGeometry
from photocloud.model.errors import RenderSurfaceUnavailable
from photocloud.view.widgets.backend import (
    DEFAULT_LIGHTS, Camera, CameraSpec, Controls, ControlsSpec, Drawable, FrameLoop, RenderBackend, Renderer,
)

logger = logging.getLogger(__name__)


class SessionState(StrEnum):
    UNMOUNTED = "unmounted"
    MOUNTED = "mounted"


def _surface_size(surface: Any) -> tuple[int, int]:
    if surface is None:
        raise RenderSurfaceUnavailable("No display surface.")
    try:
        width, height = int(surface.width()), int(surface.height())
    except (AttributeError, RuntimeError, TypeError) as e:
        # RuntimeError: the Qt object behind the surface was already deleted
        raise RenderSurfaceUnavailable(f"Display surface is not usable: {e}") from e
    return width, height


class ViewerSession:
    def __init__(
        self,
        backend: Optional[RenderBackend] = None,
        background_color: str = "#ffffff",
    ) -> None:
        if backend is None:
            # Deferred: importing VTK/Qt is only needed for the real viewer
            from photocloud.view.widgets.pyvista_backend import PyVistaBackend
            backend = PyVistaBackend()
        self._backend = backend
        self._background_color = background_color

        self._state = SessionState.UNMOUNTED
        self._surface: Any = None
        self._size: Optional[tuple[int, int]] = None
        self._camera: Optional[Camera] = None
        self._renderer: Optional[Renderer] = None
        self._controls: Optional[Controls] = None
        self._loop: Optional[FrameLoop] = None
        self._drawable: Optional[Drawable] = None
        self._geometry: Optional[tuple[RenderGeometry, float]] = None
        self._frame_errors = 0

    # ------------------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_mounted(self) -> bool:
        return self._state is SessionState.MOUNTED

    @property
    def background_color(self) -> str:
        return self._background_color

    @property
    def surface(self) -> Any:
        return self._surface

    @property
    def size(self) -> Optional[tuple[int, int]]:
        return self._size

    @property
    def camera(self) -> Optional[Camera]:
        return self._camera

    @property
    def controls(self) -> Optional[Controls]:
        return self._controls

    @property
    def renderer(self) -> Optional[Renderer]:
        return self._renderer

    @property
    def drawable(self) -> Optional[Drawable]:
        return self._drawable

    @property
    def point_count(self) -> int:
        return self._drawable.point_count if self._drawable is not None else 0

    @property
    def is_looping(self) -> bool:
        return self._loop is not None and self._loop.is_running

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def mount(self, surface: Any) -> bool:
        """
        Create camera, renderer, controls and lights on `surface` and start
        the frame loop. Returns False (and holds no resources) on failure.
        """
        if self.is_mounted:
            if surface is self._surface:
                return True
            self.unmount()

        try:
            width, height = _surface_size(surface)
        except RenderSurfaceUnavailable as e:
            logger.debug(f"Mount skipped: {e}")
            return False

        self._surface = surface
        try:
            self._camera = self._backend.create_camera(
                CameraSpec(aspect=width / height if height > 0 else 1.0)
            )
            self._camera.set_position(config.CAMERA_DEFAULT_POSITION)
            self._camera.look_at(config.CAMERA_DEFAULT_TARGET)

            self._renderer = self._backend.create_renderer(surface, self._camera, self._background_color)
            self._renderer.set_size(width, height)

            self._controls = self._backend.create_controls(self._camera, self._renderer, ControlsSpec())
            self._controls.set_target(config.CAMERA_DEFAULT_TARGET)
            self._controls.update()

            for light in DEFAULT_LIGHTS:
                self._renderer.add_light(light)

            self._loop = self._backend.create_loop(config.FRAME_INTERVAL_MS)
            self._size = (width, height)
            self._state = SessionState.MOUNTED
            self._frame_errors = 0
            self._loop.start(self._on_frame)
        except Exception:
            logger.exception("Failed to mount the viewer, releasing partial state")
            self.unmount()
            return False

        logger.info(f"Viewer mounted ({width}x{height}, background {self._background_color}).")
        return True

    def replace_geometry(self, geometry: RenderGeometry, point_size: float) -> bool:
        """
        Swap the point cloud for `geometry` and reset the camera framing.

        If the new drawable cannot be built the previous one stays. If the
        previous one cannot be released the scene is left empty.
        """
        if not self.is_mounted:
            logger.debug("replace_geometry ignored: viewer is not mounted.")
            return False

        try:
            new = self._renderer.add_points(geometry, point_size)
        except Exception:
            logger.exception("Failed to build the point cloud, keeping the previous one")
            return False

        previous, self._drawable = self._drawable, None
        if previous is not None:
            try:
                self._renderer.remove(previous)
            except Exception:
                logger.exception("Failed to release the previous point cloud, clearing the scene")
                self._release(lambda: self._renderer.remove(new), "new point cloud")
                self._geometry = None
                return False

        self._drawable = new
        self._geometry = (geometry, point_size)
        self.reset_camera()
        logger.debug(f"Point cloud replaced: {new.point_count} points.")
        return True

    def reset_camera(self) -> None:
        """Default framing: camera at (0, 0, 5) looking at the origin."""
        if not self.is_mounted:
            return
        try:
            self._camera.set_position(config.CAMERA_DEFAULT_POSITION)
            self._camera.look_at(config.CAMERA_DEFAULT_TARGET)
            self._controls.set_target(config.CAMERA_DEFAULT_TARGET)
            self._controls.update()
            self._renderer.render()
        except Exception:
            logger.exception("Failed to reset the camera")

    def set_background(self, color: str) -> None:
        """
        Background is fixed when the scene is created, so a change rebuilds
        the whole session on the same surface. The current point cloud is
        re-installed afterwards.
        """
        if color == self._background_color:
            return
        self._background_color = color
        if not self.is_mounted:
            return

        logger.info(f"Background changed to {color}, rebuilding viewer.")
        surface, geometry = self._surface, self._geometry
        self.unmount()
        if self.mount(surface) and geometry is not None:
            self.replace_geometry(*geometry)

    def handle_resize(self, width: Optional[int] = None, height: Optional[int] = None) -> None:
        """Apply a new viewport size; without arguments the surface is queried."""
        if not self.is_mounted:
            return
        if width is None or height is None:
            try:
                width, height = _surface_size(self._surface)
            except RenderSurfaceUnavailable as e:
                logger.debug(f"Resize skipped: {e}")
                return
        if width <= 0 or height <= 0 or (width, height) == self._size:
            return

        try:
            self._camera.set_aspect(width / height)
            self._renderer.set_size(width, height)
        except Exception:
            logger.exception("Failed to resize the viewer")
            return
        self._size = (width, height)

    def unmount(self) -> None:
        """Stop the loop and release everything. Idempotent."""
        was_mounted = self.is_mounted
        loop, self._loop = self._loop, None
        drawable, self._drawable = self._drawable, None
        controls, self._controls = self._controls, None
        renderer, self._renderer = self._renderer, None

        if loop is not None:
            self._release(loop.cancel, "frame loop")
        if drawable is not None and renderer is not None:
            self._release(lambda: renderer.remove(drawable), "point cloud")
        if controls is not None:
            self._release(controls.dispose, "controls")
        if renderer is not None:
            self._release(renderer.dispose, "renderer")

        self._camera = None
        self._surface = None
        self._size = None
        self._geometry = None
        self._state = SessionState.UNMOUNTED
        if was_mounted:
            logger.info("Viewer unmounted.")

    # ------------------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------------------

    def _on_frame(self) -> None:
        if not self.is_mounted:
            return
        try:
            self._controls.update()
            self._renderer.render()
        except Exception:
            self._frame_errors += 1
            if self._frame_errors == 1:
                logger.exception("Frame failed, the render loop keeps running")
            else:
                logger.debug(f"Frame failed ({self._frame_errors} so far).")

    @staticmethod
    def _release(step: Callable[[], None], what: str) -> None:
        try:
            step()
        except Exception:
            logger.exception(f"Failed to release {what}")
