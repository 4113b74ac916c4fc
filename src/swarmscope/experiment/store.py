"""
Particle store.

Parallel position / velocity / target-index arrays for N particles, where N
is the number of sampled target points. A store is never resized: a new
target shape allocates a fresh store that replaces the old one wholesale.
"""

from dataclasses import dataclass

import numpy as np

from swarmscope.experiment.config import SwarmConfig
from swarmscope.experiment.wander import hash3

# Per-axis bound of the initial "alive" velocity
INITIAL_SPEED = 0.075


@dataclass
class ParticleStore:
    """Particle state. ``target_index[i] == i`` for the life of the store."""

    targets: np.ndarray       # (N, 3) float32, read-only
    positions: np.ndarray     # (N, 3) float32
    velocities: np.ndarray    # (N, 3) float32
    target_index: np.ndarray  # (N,) uint32

    @property
    def count(self) -> int:
        return len(self.positions)

    def target_of(self) -> np.ndarray:
        """Target coordinate of every particle, in particle order."""
        return self.targets[self.target_index]

    @classmethod
    def empty(cls) -> "ParticleStore":
        return cls.allocate(np.zeros((0, 3), dtype=np.float32), SwarmConfig())

    @classmethod
    def allocate(
        cls,
        targets: np.ndarray,
        cfg: SwarmConfig,
        rng: np.random.Generator | None = None,
    ) -> "ParticleStore":
        """
        Build a fresh store for ``targets``.

        Spawn positions come from the deterministic hash (particle i always
        lands in the same spot for the same config); the small starting
        velocities come from ``rng``.
        """
        rng = rng or np.random.default_rng()
        targets = np.array(targets, dtype=np.float32).reshape(-1, 3)
        targets.setflags(write=False)
        n = len(targets)

        half_xy = cfg.world_width * cfg.spawn_spread_xy * 0.5
        half_z = cfg.z_half_range * cfg.spawn_spread_z
        half = np.array([half_xy, half_xy, half_z], dtype=np.float64)

        r = hash3(np.arange(n)).reshape(n, 3)
        positions = ((r - 0.5) * 2.0 * half).astype(np.float32)
        velocities = rng.uniform(-INITIAL_SPEED, INITIAL_SPEED, (n, 3)).astype(np.float32)

        return cls(
            targets=targets,
            positions=positions,
            velocities=velocities,
            target_index=np.arange(n, dtype=np.uint32),
        )
