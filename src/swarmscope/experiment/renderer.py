"""
Software point-cloud renderer for the particle swarm.

Projects the swarm through a perspective camera and splats every visible
particle onto a float accumulation buffer, blurred to the particle's
on-screen size. The engine does the simulation; this module only reads
``engine.positions`` after each tick.
"""

import asyncio
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy.ndimage import gaussian_filter

from swarmscope.experiment.base import BaseConfig, BaseVisualizer
from swarmscope.experiment.bitmap import Bitmap, BitmapSource
from swarmscope.experiment.config import SwarmConfig
from swarmscope.experiment.phases import Phase
from swarmscope.experiment.store import ParticleStore
from swarmscope.experiment.swarm import SwarmEngine


@dataclass
class RenderConfig(BaseConfig):
    """Configuration for the swarm renderer."""
    fov: float = 60.0              # vertical field of view, degrees
    camera_distance: float = 18.0  # camera sits on +z looking at the origin
    near: float = 0.1
    far: float = 200.0

    particle_brightness: float = 0.9
    depth_fade: float = 0.5        # 0 = flat, 1 = far particles fully dark
    min_splat_sigma: float = 0.6   # pixels


class PerspectiveCamera:
    """Pinhole camera on the +z axis looking at the origin."""

    def __init__(
        self,
        fov: float = 60.0,
        distance: float = 18.0,
        aspect: float = 16 / 9,
        near: float = 0.1,
        far: float = 200.0,
    ):
        self.fov = fov
        self.distance = distance
        self.aspect = aspect
        self.near = near
        self.far = far

    @property
    def focal(self) -> float:
        """Projection scale: 1 / tan(fov / 2)."""
        return 1.0 / math.tan(math.radians(self.fov) / 2.0)

    def resize(self, width: int, height: int):
        self.aspect = max(1, width) / max(1, height)

    def project(
        self, points: np.ndarray, width: int, height: int
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Project world points to pixel coordinates.

        Returns:
            x_px, y_px: float pixel coordinates
            depth: distance from the camera along the view axis
            visible: bool mask, inside the frustum and the frame
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        depth = self.distance - pts[:, 2]
        safe = np.where(depth > 1e-6, depth, 1e-6)

        f = self.focal
        ndc_x = pts[:, 0] * f / (self.aspect * safe)
        ndc_y = pts[:, 1] * f / safe
        x_px = (ndc_x + 1.0) * 0.5 * width
        y_px = (1.0 - ndc_y) * 0.5 * height

        visible = (
            (depth > self.near) & (depth < self.far)
            & (x_px >= 0) & (x_px < width) & (y_px >= 0) & (y_px < height)
        )
        return x_px, y_px, depth, visible

    def pixel_size(self, world_size: float, depth: np.ndarray, height: int) -> np.ndarray:
        """On-screen size in pixels of an object ``world_size`` wide at ``depth``."""
        return world_size * self.focal * (height / 2.0) / np.maximum(depth, 1e-6)


class SwarmRenderer(BaseVisualizer):
    """
    Renders a SwarmEngine to RGB frames.

    Owns the engine; each frame ticks it by one frame period and splats the
    resulting positions.
    """

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        swarm_config: Optional[SwarmConfig] = None,
        seed: Optional[int] = None,
        source: Optional[BitmapSource] = None,
    ):
        super().__init__(config or RenderConfig(), seed)
        self.cfg: RenderConfig = self.cfg  # Type hint

        self.engine = SwarmEngine(
            swarm_config,
            rng=self.rng,
            source=source,
            on_store_disposed=self._release_store,
        )
        self.camera = PerspectiveCamera(
            fov=self.cfg.fov,
            distance=self.cfg.camera_distance,
            aspect=self.cfg.width / self.cfg.height,
            near=self.cfg.near,
            far=self.cfg.far,
        )
        self.engine.resize(self.cfg.width, self.cfg.height)
        self._accum: np.ndarray | None = None
        self.released_stores = 0

    # ------------------------------------------------------------------

    def load_text(self, text: str) -> bool:
        """Blocking wrapper around ``engine.rebuild`` for scripts and the CLI."""
        return asyncio.run(self.engine.rebuild(text))

    def load_bitmap(self, bitmap: Bitmap):
        self.engine.apply_bitmap(bitmap)

    def set_phase(self, phase: Phase | str):
        self.engine.set_phase(phase)

    def resize(self, width: int, height: int):
        """New output size. Changes the projection only, never the simulation."""
        self.cfg.width = max(1, int(width))
        self.cfg.height = max(1, int(height))
        self.camera.resize(self.cfg.width, self.cfg.height)
        self.engine.resize(self.cfg.width, self.cfg.height)
        self._accum = None

    def dispose(self):
        self.engine.dispose()
        self._accum = None

    def _release_store(self, store: ParticleStore):
        self._accum = None
        self.released_stores += 1

    # ------------------------------------------------------------------
    # BaseVisualizer interface
    # ------------------------------------------------------------------

    def update(self, dt: float):
        self.time += dt
        self.engine.tick(dt)

    def get_raw_field(self) -> np.ndarray:
        h, w = self.cfg.height, self.cfg.width
        if self._accum is None or self._accum.shape != (h, w):
            self._accum = np.zeros((h, w), dtype=np.float32)
        accum = self._accum
        accum.fill(0.0)

        if self.engine.count == 0:
            return accum

        x_px, y_px, depth, visible = self.camera.project(self.engine.positions, w, h)
        if not np.any(visible):
            return accum
        x_px, y_px, depth = x_px[visible], y_px[visible], depth[visible]

        fade = self.cfg.depth_fade
        near_d = self.cfg.camera_distance
        weights = self.cfg.particle_brightness * np.clip(
            1.0 - fade * (depth - near_d) / near_d, 1.0 - fade, 1.0 + fade
        )

        xi = np.clip(np.round(x_px).astype(np.int64), 0, w - 1)
        yi = np.clip(np.round(y_px).astype(np.int64), 0, h - 1)
        np.add.at(accum, (yi, xi), weights.astype(np.float32))

        size_px = self.camera.pixel_size(self.engine.cfg.particle_size, depth, h)
        sigma = max(self.cfg.min_splat_sigma, float(np.median(size_px)) / 2.5)
        blurred = gaussian_filter(accum, sigma=sigma)
        # Peak of a unit gaussian disc is 1 / (2 pi sigma^2); rescale to 1
        blurred *= 2.0 * math.pi * sigma * sigma
        return np.clip(blurred, 0.0, 1.0).astype(np.float32)
