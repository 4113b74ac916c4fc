"""
Particle choreography engine.

Turns a bitmap into a target point cloud and drives a particle swarm
through the wander -> assemble -> hold -> disperse loop.

Usage:
    engine = SwarmEngine(SwarmConfig(), seed=7)
    await engine.rebuild("hello")      # or engine.apply_bitmap(bitmap)
    for _ in range(600):
        engine.tick(1 / 60)
        draw(engine.positions)
"""

from dataclasses import dataclass
from typing import Callable

import numpy as np

from swarmscope.experiment.bitmap import (
    Bitmap,
    BitmapSource,
    QrBitmapSource,
)
from swarmscope.experiment.config import SwarmConfig
from swarmscope.experiment.integrator import blast_velocities, clamp_dt, integrate
from swarmscope.experiment.phases import Phase, PhaseState, advance_phase, enter_phase
from swarmscope.experiment.sampler import sample_targets
from swarmscope.experiment.store import ParticleStore


@dataclass
class DisposalToken:
    """Shared flag a pending rebuild checks before committing its result."""
    disposed: bool = False


class SwarmEngine:
    """
    Owns the particle store and the phase state and advances both per tick.

    Randomness is split in two: spawn layout and wander nudges come from the
    deterministic hash, while phase durations, jitter, starting velocities
    and blast directions come from ``self.rng`` (seedable, or injected).
    """

    def __init__(
        self,
        config: SwarmConfig | None = None,
        seed: int | None = None,
        source: BitmapSource | None = None,
        rng: np.random.Generator | None = None,
        on_store_disposed: Callable[[ParticleStore], None] | None = None,
    ):
        self.cfg = config or SwarmConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.source = source or QrBitmapSource()
        self.on_store_disposed = on_store_disposed

        self.token = DisposalToken()
        self.store = ParticleStore.empty()
        self.phase: PhaseState = enter_phase(Phase.WANDER, self.cfg, self.rng)
        self.clock = 0.0
        self.ticks = 0
        self.view_size = (1, 1)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def disposed(self) -> bool:
        return self.token.disposed

    @property
    def count(self) -> int:
        return self.store.count

    @property
    def positions(self) -> np.ndarray:
        """(N, 3) float32 positions, updated in place every tick."""
        return self.store.positions

    @property
    def targets(self) -> np.ndarray:
        return self.store.targets

    def flat_positions(self) -> np.ndarray:
        """Positions as a flat (3N,) view, xyz interleaved."""
        return self.store.positions.reshape(-1)

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    async def rebuild(self, text: str) -> bool:
        """
        Produce a bitmap for ``text`` and reinitialize the swarm from it.

        Nothing is touched until the bitmap arrives. A producer failure
        propagates and leaves the current swarm as it was. Returns False if
        the engine was disposed while waiting; whatever the producer returned
        or raised is then dropped.
        """
        token = self.token
        if token.disposed:
            return False
        try:
            bitmap = await self.source(text)
        except Exception:
            if token.disposed:
                return False
            raise
        if token.disposed:
            return False
        self.apply_bitmap(bitmap)
        return True

    def apply_bitmap(self, bitmap: Bitmap):
        """Sample ``bitmap`` and replace the store, resetting to wander."""
        if self.token.disposed:
            return
        cfg = self.cfg
        targets = sample_targets(
            bitmap.rgba,
            threshold=cfg.threshold,
            stride=cfg.sample_stride,
            world_width=cfg.world_width,
            jitter=cfg.jitter,
            rng=self.rng,
        )
        self._replace_store(ParticleStore.allocate(targets, cfg, self.rng))
        self.set_phase(Phase.WANDER)

    def set_phase(self, phase: Phase | str):
        """Jump straight to ``phase``, running its entry effects."""
        if self.token.disposed:
            return
        self._enter(Phase(phase))

    def tick(self, dt: float):
        """Advance the phase clock, then move every particle, by clamped ``dt``."""
        if self.token.disposed:
            return
        dt = clamp_dt(dt)
        state = advance_phase(self.phase, dt, self.cfg, self.rng)
        if state.current is not self.phase.current:
            self._on_enter(state)
        else:
            self.phase = state

        integrate(self.store, self.phase.current, dt, self.cfg, self.clock)
        self.clock += dt
        self.ticks += 1

    def resize(self, view_width: int, view_height: int):
        """Record the viewport size. The simulation itself is unaffected."""
        self.view_size = (max(1, int(view_width)), max(1, int(view_height)))

    def dispose(self):
        """Release the store. Idempotent; later ticks and rebuilds are no-ops."""
        if self.token.disposed:
            return
        self.token.disposed = True
        self._replace_store(ParticleStore.empty())

    # ------------------------------------------------------------------

    def _enter(self, phase: Phase):
        self._on_enter(enter_phase(phase, self.cfg, self.rng))

    def _on_enter(self, state: PhaseState):
        self.phase = state
        if state.current is Phase.DISPERSE and self.store.count:
            self.store.velocities[:] = blast_velocities(self.store.count, self.cfg, self.rng)

    def _replace_store(self, store: ParticleStore):
        old = self.store
        self.store = store
        if old.count and self.on_store_disposed is not None:
            self.on_store_disposed(old)
