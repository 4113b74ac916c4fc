"""Tests for the swarm frame renderer."""

import numpy as np
import pytest

from swarmscope.experiment.config import SwarmConfig
from swarmscope.experiment.phases import Phase
from swarmscope.experiment.renderer import PerspectiveCamera, RenderConfig, SwarmRenderer


def _renderer(square_bitmap, w=160, h=90, **kwargs) -> SwarmRenderer:
    config = RenderConfig(width=w, height=h, fps=30, glow_enabled=False, vignette_strength=0.0, **kwargs)
    swarm = SwarmConfig(sample_stride=2, jitter=0.0)
    renderer = SwarmRenderer(config, swarm, seed=3)
    renderer.load_bitmap(square_bitmap)
    return renderer


class TestPerspectiveCamera:
    def test_origin_projects_to_center(self):
        cam = PerspectiveCamera(aspect=2.0)
        x, y, depth, visible = cam.project(np.zeros((1, 3)), 200, 100)
        assert x[0] == pytest.approx(100.0)
        assert y[0] == pytest.approx(50.0)
        assert depth[0] == pytest.approx(18.0)
        assert visible[0]

    def test_up_is_up(self):
        cam = PerspectiveCamera(aspect=1.0)
        _, y, _, _ = cam.project(np.array([[0.0, 2.0, 0.0], [0.0, -2.0, 0.0]]), 100, 100)
        assert y[0] < 50 < y[1]

    def test_frustum_edge(self):
        # At distance 18 with a 60 degree fov the half-height is 18 * tan(30)
        cam = PerspectiveCamera(fov=60.0, distance=18.0, aspect=1.0)
        half = 18.0 * np.tan(np.radians(30.0))
        _, y, _, _ = cam.project(np.array([[0.0, half * 0.999, 0.0]]), 100, 100)
        assert y[0] == pytest.approx(0.0, abs=0.1)

    def test_behind_camera_hidden(self):
        cam = PerspectiveCamera()
        _, _, _, visible = cam.project(np.array([[0.0, 0.0, 30.0]]), 100, 100)
        assert not visible[0]

    def test_resize_changes_aspect_only(self):
        cam = PerspectiveCamera(fov=45.0)
        cam.resize(300, 100)
        assert cam.aspect == pytest.approx(3.0)
        assert cam.fov == 45.0

    def test_pixel_size_shrinks_with_depth(self):
        cam = PerspectiveCamera()
        sizes = cam.pixel_size(0.1, np.array([10.0, 20.0]), 100)
        assert sizes[0] == pytest.approx(2 * sizes[1])


class TestSwarmRenderer:
    def test_single_frame(self, square_bitmap):
        renderer = _renderer(square_bitmap)
        frame = renderer.render_frame(0)
        assert frame.shape == (90, 160, 3)
        assert frame.dtype == np.uint8

    def test_frame_not_black(self, square_bitmap):
        renderer = _renderer(square_bitmap)
        renderer.set_phase(Phase.HOLD)
        frame = renderer.render_frame(0)
        assert frame.sum() > 0

    def test_assembled_shape_lands_in_center(self, square_bitmap):
        renderer = _renderer(square_bitmap, w=120, h=120)
        renderer.engine.store.positions[:] = renderer.engine.targets
        renderer.engine.store.velocities[:] = 0.0
        field = renderer.get_raw_field()
        ys, xs = np.nonzero(field > 0.05)
        assert abs(xs.mean() - 60) < 3
        assert abs(ys.mean() - 60) < 3

    def test_field_range(self, square_bitmap):
        renderer = _renderer(square_bitmap)
        renderer.update(1 / 30)
        field = renderer.get_raw_field()
        assert field.dtype == np.float32
        assert field.min() >= 0.0
        assert field.max() <= 1.0

    def test_render_frames_progress(self, square_bitmap):
        renderer = _renderer(square_bitmap, w=64, h=36)
        progress = []
        frames = list(renderer.render_frames(4, progress_callback=lambda c, t: progress.append((c, t))))
        assert len(frames) == 4
        assert progress[-1] == (4, 4)
        assert renderer.engine.ticks == 4
        assert renderer.time == pytest.approx(4 / 30)

    def test_frames_animate(self, square_bitmap):
        renderer = _renderer(square_bitmap, w=64, h=36)
        renderer.set_phase(Phase.DISPERSE)
        frames = list(renderer.render_frames(3))
        assert not np.array_equal(frames[0], frames[2])

    def test_resize(self, square_bitmap):
        renderer = _renderer(square_bitmap)
        before = renderer.engine.positions.copy()
        renderer.resize(80, 80)
        frame = renderer.render_frame(0)
        assert frame.shape == (80, 80, 3)
        assert renderer.camera.aspect == pytest.approx(1.0)
        assert renderer.engine.view_size == (80, 80)
        assert renderer.engine.count == len(before)

    def test_empty_swarm_renders_black(self):
        config = RenderConfig(width=32, height=18, glow_enabled=False, vignette_strength=0.0)
        renderer = SwarmRenderer(config, seed=0)
        field = renderer.get_raw_field()
        assert field.shape == (18, 32)
        assert field.max() == 0.0

    def test_store_release_hook(self, square_bitmap):
        renderer = _renderer(square_bitmap)
        renderer.load_bitmap(square_bitmap)
        assert renderer.released_stores == 1
        renderer.dispose()
        assert renderer.released_stores == 2
        assert renderer.engine.disposed
