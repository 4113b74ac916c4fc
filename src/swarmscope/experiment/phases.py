"""
Four-phase lifecycle: wander -> assemble -> hold -> disperse -> wander.

The phase state is a small immutable value. ``advance_phase`` takes the
current value and returns the next one, so transitions can be tested
without any particles.
"""

from dataclasses import dataclass, replace
from enum import Enum

import numpy as np

from swarmscope.experiment.config import SwarmConfig


class Phase(str, Enum):
    WANDER = "wander"
    ASSEMBLE = "assemble"
    HOLD = "hold"
    DISPERSE = "disperse"

    @property
    def next(self) -> "Phase":
        order = list(Phase)
        return order[(order.index(self) + 1) % len(order)]


@dataclass(frozen=True)
class PhaseState:
    current: Phase
    elapsed: float
    duration: float

    @property
    def remaining(self) -> float:
        return max(0.0, self.duration - self.elapsed)


def max_duration(phase: Phase, cfg: SwarmConfig) -> float:
    """Longest time ``phase`` can last under ``cfg``."""
    if phase is Phase.HOLD:
        return cfg.hold_seconds
    return _duration_range(phase, cfg)[1]


def _duration_range(phase: Phase, cfg: SwarmConfig) -> tuple[float, float]:
    if phase is Phase.WANDER:
        return cfg.wander_range
    if phase is Phase.ASSEMBLE:
        return cfg.assemble_range
    if phase is Phase.DISPERSE:
        return cfg.disperse_range
    return (cfg.hold_seconds, cfg.hold_seconds)


def enter_phase(phase: Phase, cfg: SwarmConfig, rng: np.random.Generator) -> PhaseState:
    """Fresh state for ``phase``: elapsed 0, duration sampled (fixed for hold)."""
    phase = Phase(phase)
    if phase is Phase.HOLD:
        duration = cfg.hold_seconds
    else:
        lo, hi = _duration_range(phase, cfg)
        duration = float(rng.uniform(lo, hi))
    return PhaseState(current=phase, elapsed=0.0, duration=duration)


def advance_phase(
    state: PhaseState,
    dt: float,
    cfg: SwarmConfig,
    rng: np.random.Generator,
) -> PhaseState:
    """
    Advance the phase clock by ``dt``.

    Moves to the next phase once the elapsed time reaches the duration.
    Overshoot is dropped (the new phase starts at 0) and at most one
    transition happens per call.
    """
    elapsed = state.elapsed + dt
    if elapsed < state.duration:
        return replace(state, elapsed=elapsed)
    return enter_phase(state.current.next, cfg, rng)
