"""Tests for the VTK backend pieces that run without a render window.

The orbit controls work on a real pv.Camera; the plotter and its interactor
style are replaced by small recording fakes. QtFrameLoop needs a Qt event
loop (QCoreApplication is enough).
"""

import math
import unittest
from types import SimpleNamespace

import numpy as np
import pytest

pv = pytest.importorskip("pyvista")
pytest.importorskip("pyvistaqt")
pytest.importorskip("PySide6")

from PySide6.QtCore import QCoreApplication  # noqa: E402
from PySide6.QtTest import QTest  # noqa: E402

from photocloud.model.dataset import RenderGeometry  # noqa: E402
from photocloud.view.widgets.backend import CameraSpec, ControlsSpec, LightKind, LightSpec  # noqa: E402
from photocloud.view.widgets.pyvista_backend import (  # noqa: E402
    DampedOrbitControls, PyVistaCamera, PyVistaPoints, PyVistaRenderer, QtFrameLoop, world_to_pixels,
)

_app = QCoreApplication.instance() or QCoreApplication([])


class FakeStyle:
    """vtkInteractorStyle stand-in: keeps observers and fires them on demand."""

    def __init__(self):
        self.observers = {}
        self._next_tag = 0

    def AddObserver(self, event, callback):
        self._next_tag += 1
        self.observers[self._next_tag] = (event, callback)
        return self._next_tag

    def RemoveObserver(self, tag):
        del self.observers[tag]

    def fire(self, event):
        for name, callback in list(self.observers.values()):
            if name == event:
                callback(self, event)


class FakeActor:
    def __init__(self):
        self.scale = (1.0, 1.0, 1.0)
        self.mapper = SimpleNamespace(released_with=[])
        self.mapper.ReleaseGraphicsResources = self.mapper.released_with.append

    def SetScale(self, x, y, z):
        self.scale = (x, y, z)

    def GetMapper(self):
        return self.mapper


class FakePlotter:
    def __init__(self):
        self.style = FakeStyle()
        self.iren = SimpleNamespace(interactor=SimpleNamespace(GetInteractorStyle=lambda: self.style))
        self.render_window = object()
        self.trackball = False
        self.points = []
        self.removed = []
        self.lights = []

    def enable_trackball_style(self):
        self.trackball = True

    def add_points(self, cloud, **kwargs):
        actor = FakeActor()
        self.points.append((cloud, kwargs, actor))
        return actor

    def remove_actor(self, actor, render=True):
        self.removed.append((actor, render))

    def add_light(self, light):
        self.lights.append(light)


def make_renderer(height=600):
    renderer = PyVistaRenderer.__new__(PyVistaRenderer)
    renderer.plotter = FakePlotter()
    renderer.camera = PyVistaCamera(CameraSpec())
    renderer._height = height
    return renderer


def make_controls(**spec_changes):
    renderer = make_renderer()
    renderer.camera.set_position((0.0, 0.0, 5.0))
    renderer.camera.look_at((0.0, 0.0, 0.0))
    controls = DampedOrbitControls(renderer, ControlsSpec(**spec_changes))
    controls.set_target((0.0, 0.0, 0.0))
    return controls, renderer.camera.vtk_camera, renderer.plotter.style


class TestWorldToPixels(unittest.TestCase):

    def test_size_at_default_distance(self):
        visible = 2 * 5.0 * math.tan(math.radians(75) / 2)
        self.assertAlmostEqual(world_to_pixels(0.1, 600), 0.1 * 600 / visible)

    def test_scales_with_viewport(self):
        self.assertAlmostEqual(world_to_pixels(0.1, 1200), 2 * world_to_pixels(0.1, 600))

    def test_never_below_one_pixel(self):
        self.assertEqual(world_to_pixels(0.0001, 100), 1.0)


class TestPyVistaCamera(unittest.TestCase):

    def test_spec_is_applied(self):
        camera = PyVistaCamera(CameraSpec(aspect=2.0))
        self.assertAlmostEqual(camera.vtk_camera.view_angle, 75.0)
        np.testing.assert_allclose(camera.vtk_camera.clipping_range, (0.1, 1000.0))
        self.assertEqual(camera.aspect, 2.0)

    def test_position_and_look_at(self):
        camera = PyVistaCamera(CameraSpec())
        camera.set_position((0.0, 0.0, 5.0))
        camera.look_at((0.0, 0.0, 0.0))
        np.testing.assert_allclose(camera.position, (0, 0, 5))
        np.testing.assert_allclose(camera.vtk_camera.focal_point, (0, 0, 0))


class TestDampedOrbitControls(unittest.TestCase):

    def test_uses_trackball_style(self):
        controls, _, style = make_controls()
        self.assertTrue(controls.plotter.trackball)
        self.assertEqual(len(style.observers), 2)

    def test_pan_is_kept_after_release(self):
        controls, camera, style = make_controls()
        style.fire("StartInteractionEvent")
        camera.position = (1.0, 0.0, 5.0)
        camera.focal_point = (1.0, 0.0, 0.0)
        controls.update()
        style.fire("EndInteractionEvent")
        controls.update()

        self.assertGreater(camera.focal_point[0], 0.9)
        # Inertia carries camera and target by the same amount
        self.assertAlmostEqual(camera.position[0], camera.focal_point[0])
        np.testing.assert_allclose(controls.target, camera.focal_point)
        np.testing.assert_allclose(np.subtract(camera.position, camera.focal_point), (0, 0, 5), atol=1e-9)

    def test_target_follows_pan_while_interacting(self):
        controls, camera, style = make_controls()
        style.fire("StartInteractionEvent")
        camera.position = (0.0, 2.0, 5.0)
        camera.focal_point = (0.0, 2.0, 0.0)
        controls.update()
        np.testing.assert_allclose(controls.target, (0, 2, 0))

    def test_rotation_inertia_keeps_target(self):
        controls, camera, style = make_controls()
        style.fire("StartInteractionEvent")
        camera.position = (0.5, 0.0, 5.0)
        controls.update()
        style.fire("EndInteractionEvent")
        controls.update()

        np.testing.assert_allclose(camera.focal_point, (0, 0, 0), atol=1e-12)
        self.assertAlmostEqual(camera.position[0], 0.5 + 0.5 * 0.95)

    def test_inertia_decays_to_rest(self):
        controls, camera, style = make_controls()
        style.fire("StartInteractionEvent")
        camera.position = (0.2, 0.0, 5.0)
        controls.update()
        style.fire("EndInteractionEvent")

        speeds = []
        for _ in range(3):
            controls.update()
            speeds.append(np.linalg.norm(controls.velocity))
        self.assertAlmostEqual(speeds[1] / speeds[0], 0.95)
        self.assertAlmostEqual(speeds[2] / speeds[1], 0.95)

        for _ in range(500):
            controls.update()
        self.assertEqual(controls.velocity, (0.0, 0.0, 0.0))
        resting = camera.position
        controls.update()
        self.assertEqual(camera.position, resting)

    def test_idle_frames_do_not_move_camera(self):
        controls, camera, _ = make_controls()
        for _ in range(5):
            controls.update()
        np.testing.assert_allclose(camera.position, (0, 0, 5))
        np.testing.assert_allclose(camera.focal_point, (0, 0, 0))

    def test_distance_is_clamped(self):
        controls, camera, style = make_controls()
        style.fire("StartInteractionEvent")
        camera.position = (0.0, 0.0, 100.0)
        controls.update()
        np.testing.assert_allclose(camera.position, (0, 0, 50))

        camera.position = (0.0, 0.0, 0.2)
        controls.update()
        np.testing.assert_allclose(camera.position, (0, 0, 1))

    def test_disabled_pan_is_undone(self):
        controls, camera, style = make_controls(enable_pan=False)
        style.fire("StartInteractionEvent")
        camera.position = (1.0, 0.0, 5.0)
        camera.focal_point = (1.0, 0.0, 0.0)
        controls.update()
        np.testing.assert_allclose(camera.focal_point, (0, 0, 0), atol=1e-12)
        np.testing.assert_allclose(camera.position, (0, 0, 5), atol=1e-12)

    def test_disabled_zoom_is_undone(self):
        controls, camera, style = make_controls(enable_zoom=False)
        style.fire("StartInteractionEvent")
        camera.position = (0.0, 0.0, 8.0)
        controls.update()
        np.testing.assert_allclose(camera.position, (0, 0, 5))

    def test_disabled_rotate_is_undone(self):
        controls, camera, style = make_controls(enable_rotate=False)
        style.fire("StartInteractionEvent")
        camera.position = (3.0, 0.0, 4.0)
        controls.update()
        np.testing.assert_allclose(camera.position, (0, 0, 5), atol=1e-12)

    def test_polar_angle_is_capped(self):
        controls, camera, style = make_controls(max_polar_angle=math.pi / 2)
        style.fire("StartInteractionEvent")
        camera.position = (0.0, -4.0, 3.0)
        controls.update()
        np.testing.assert_allclose(camera.position, (0, 0, 5), atol=1e-9)

    def test_set_target_stops_inertia(self):
        controls, camera, style = make_controls()
        style.fire("StartInteractionEvent")
        camera.position = (1.0, 0.0, 5.0)
        camera.focal_point = (1.0, 0.0, 0.0)
        controls.update()
        style.fire("EndInteractionEvent")

        camera.position = (0.0, 0.0, 5.0)
        controls.set_target((0.0, 0.0, 0.0))
        controls.update()
        np.testing.assert_allclose(camera.position, (0, 0, 5))
        np.testing.assert_allclose(camera.focal_point, (0, 0, 0))
        self.assertEqual(controls.velocity, (0.0, 0.0, 0.0))

    def test_dispose_removes_observers(self):
        controls, _, style = make_controls()
        controls.dispose()
        self.assertEqual(style.observers, {})
        controls.dispose()


class TestPyVistaRenderer(unittest.TestCase):

    def setUp(self):
        self.renderer = make_renderer(height=600)
        self.plotter = self.renderer.plotter

    def test_empty_geometry_gets_no_actor(self):
        drawable = self.renderer.add_points(RenderGeometry(), 0.02)
        self.assertIsNone(drawable.actor)
        self.assertEqual(drawable.point_count, 0)
        self.assertEqual(self.plotter.points, [])

    def test_points_are_uploaded_as_clipped_rgb(self):
        geometry = RenderGeometry(
            vertices=np.array([[0, 0, 1], [1, 1, -1]], dtype=np.float32),
            colors=np.array([[2.0, 0.5, -1.0], [1.0, 1.0, 1.0]], dtype=np.float32),
        )
        drawable = self.renderer.add_points(geometry, 0.02)

        cloud, kwargs, actor = self.plotter.points[0]
        self.assertEqual(drawable.point_count, 2)
        self.assertEqual(cloud.n_points, 2)
        np.testing.assert_array_equal(cloud["rgb"], [[255, 127, 0], [255, 255, 255]])
        self.assertTrue(kwargs["rgb"])
        self.assertFalse(kwargs["lighting"])
        self.assertFalse(kwargs["reset_camera"])
        self.assertAlmostEqual(kwargs["point_size"], world_to_pixels(0.02, 600))

    def test_actor_is_mirrored_upright(self):
        geometry = RenderGeometry(vertices=np.zeros((1, 3), np.float32), colors=np.ones((1, 3), np.float32))
        drawable = self.renderer.add_points(geometry, 0.02)
        self.assertEqual(drawable.actor.scale, (1.0, -1.0, 1.0))

    def test_remove_releases_mapper(self):
        geometry = RenderGeometry(vertices=np.zeros((3, 3), np.float32), colors=np.ones((3, 3), np.float32))
        drawable = self.renderer.add_points(geometry, 0.02)
        actor = drawable.actor

        self.renderer.remove(drawable)
        self.assertEqual(self.plotter.removed, [(actor, False)])
        self.assertEqual(actor.mapper.released_with, [self.plotter.render_window])
        self.assertIsNone(drawable.actor)

        self.renderer.remove(drawable)
        self.assertEqual(len(self.plotter.removed), 1)

    def test_remove_empty_drawable(self):
        self.renderer.remove(PyVistaPoints(None, 0))
        self.assertEqual(self.plotter.removed, [])

    def test_lights(self):
        self.renderer.add_light(LightSpec(LightKind.AMBIENT, 0.6))
        self.renderer.add_light(LightSpec(LightKind.DIRECTIONAL, 0.8, (1.0, 1.0, 1.0)))
        ambient, key = self.plotter.lights
        self.assertTrue(ambient.is_headlight)
        self.assertAlmostEqual(ambient.intensity, 0.6)
        self.assertTrue(key.is_scene_light)
        self.assertAlmostEqual(key.intensity, 0.8)
        np.testing.assert_allclose(key.position, (1, 1, 1))


class TestQtFrameLoop(unittest.TestCase):

    def setUp(self):
        self.loop = QtFrameLoop(10)

    def tearDown(self):
        self.loop.cancel()

    def test_start_and_cancel(self):
        frames = []
        self.assertFalse(self.loop.is_running)
        self.loop.start(lambda: frames.append(1))
        self.assertTrue(self.loop.is_running)
        QTest.qWait(100)
        self.assertGreater(len(frames), 0)

        self.loop.cancel()
        self.assertFalse(self.loop.is_running)
        count = len(frames)
        QTest.qWait(60)
        self.assertEqual(len(frames), count)

    def test_cancel_twice(self):
        self.loop.start(lambda: None)
        self.loop.cancel()
        self.loop.cancel()
        self.assertFalse(self.loop.is_running)

    def test_restart_replaces_callback(self):
        first, second = [], []
        self.loop.start(lambda: first.append(1))
        self.loop.start(lambda: second.append(1))
        QTest.qWait(100)
        self.assertEqual(first, [])
        self.assertGreater(len(second), 0)


if __name__ == "__main__":
    unittest.main()
