"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from swarmscope.experiment.bitmap import Bitmap
from swarmscope.experiment.config import SwarmConfig


def _make_rgba(mask: np.ndarray, on: int = 255, off: int = 0) -> np.ndarray:
    """RGBA buffer that is ``on`` where ``mask`` is True and ``off`` elsewhere."""
    h, w = mask.shape
    rgba = np.full((h, w, 4), off, dtype=np.uint8)
    rgba[mask, :3] = on
    rgba[..., 3] = 255
    return rgba


@pytest.fixture
def make_rgba():
    return _make_rgba


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def square_bitmap() -> Bitmap:
    """
    40x40 black card with a bright 20x20 square in the middle.

    At stride 2 this yields exactly 10 x 10 = 100 samples.
    """
    mask = np.zeros((40, 40), dtype=bool)
    mask[10:30, 10:30] = True
    return Bitmap.from_array(_make_rgba(mask))


@pytest.fixture
def fast_config() -> SwarmConfig:
    """Short phases and a coarse grid so tests stay quick."""
    return SwarmConfig(
        sample_stride=2,
        jitter=0.0,
        wander_range=(0.5, 1.0),
        assemble_range=(0.5, 1.0),
        hold_seconds=0.5,
        disperse_range=(0.5, 1.0),
    )
