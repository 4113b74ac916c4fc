"""
Deterministic wander source.

A cheap sine hash that turns an integer into a repeatable vector in
[0, 1)^3. Used for spawn placement and for the per-tick wander nudge so
neither consumes the general random generator.
"""

import numpy as np

# (offset, frequency, amplitude) per axis
_HASH_AXES = (
    (0.0, 12.9898, 43758.5453),
    (1.234, 78.233, 12345.678),
    (4.567, 0.12345, 98765.4321),
)


def _fract(a: np.ndarray) -> np.ndarray:
    return a - np.floor(a)


def hash3(i) -> np.ndarray:
    """
    Hash integer(s) to pseudo-random vectors in [0, 1)^3.

    Args:
        i: Scalar or array of integers (floats are accepted too).

    Returns:
        (3,) float64 array for a scalar input, (N, 3) for an array input.
    """
    i = np.asarray(i, dtype=np.float64)
    cols = [
        _fract(np.sin((i + offset) * freq) * amp)
        for offset, freq, amp in _HASH_AXES
    ]
    return np.stack(cols, axis=-1)


def wander_keys(n: int, clock: float) -> np.ndarray:
    """
    Hash inputs for the wander nudge of particles 0..n-1 at time ``clock``.

    The coarse time term (one step per simulated second, offset per particle)
    keeps the nudge changing over time while staying reproducible.
    """
    idx = np.arange(n, dtype=np.float64)
    return idx * 17.0 + np.floor(np.mod(clock + idx, 1000.0))
