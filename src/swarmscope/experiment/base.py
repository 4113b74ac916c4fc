"""
Base classes and shared frame styling for swarmscope visualizers.
"""

import abc
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Tuple

import numpy as np

from swarmscope.experiment.colorgrade import (
    add_glow,
    chromatic_aberration,
    colorize,
    tone_map_soft,
    vignette,
)


@dataclass
class BaseConfig:
    """Frame output settings shared by all visualizers."""
    width: int = 1920
    height: int = 1080
    fps: int = 60

    # Colour
    tint: Tuple[float, float, float] = (0.85, 0.95, 1.0)
    background: Tuple[int, int, int] = (0, 0, 0)

    # Post-processing
    glow_enabled: bool = True
    glow_intensity: float = 0.45
    glow_radius: int = 6
    aberration_enabled: bool = False
    aberration_offset: int = 2
    vignette_strength: float = 0.25


class BaseVisualizer(abc.ABC):
    """
    Abstract base for frame-producing visualizers.

    Subclasses advance their simulation in ``update`` and expose a float
    luminance field; this class turns that into finished RGB frames.
    """

    def __init__(self, config: Optional[BaseConfig] = None, seed: Optional[int] = None):
        self.cfg = config or BaseConfig()
        self.rng = np.random.default_rng(seed)
        self.time = 0.0
        self.polisher = VisualPolisher(self.cfg)

    @abc.abstractmethod
    def update(self, dt: float):
        """Advance the simulation state by ``dt`` seconds."""

    @abc.abstractmethod
    def get_raw_field(self) -> np.ndarray:
        """Returns the raw float32 luminance field, (H, W), 1.0 = full."""

    def render_frame(self, frame_index: int) -> np.ndarray:
        """Advance one frame period and return an (H, W, 3) uint8 frame."""
        self.update(1.0 / self.cfg.fps)
        return self.polisher.apply(self.get_raw_field())

    def render_frames(
        self,
        n_frames: int,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Iterator[np.ndarray]:
        """Yield ``n_frames`` consecutive frames."""
        for i in range(n_frames):
            yield self.render_frame(i)
            if progress_callback:
                progress_callback(i + 1, n_frames)


class VisualPolisher:
    """Turns raw luminance fields into finished frames."""

    def __init__(self, config: BaseConfig):
        self.cfg = config

    def apply(self, field: np.ndarray) -> np.ndarray:
        cfg = self.cfg
        frame = colorize(field, tint=cfg.tint, background=cfg.background)

        if cfg.glow_enabled:
            frame = add_glow(frame, intensity=cfg.glow_intensity, radius=cfg.glow_radius)
        if cfg.aberration_enabled:
            frame = chromatic_aberration(frame, offset=cfg.aberration_offset)
        if cfg.vignette_strength > 0:
            frame = vignette(frame, strength=cfg.vignette_strength)

        return tone_map_soft(frame)
