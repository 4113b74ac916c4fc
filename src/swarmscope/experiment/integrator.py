"""
Per-tick particle integration.

One force model per phase, each a semi-implicit Euler step applied in
place to the whole store at once:

- assemble / hold: damped spring towards the particle's target
- disperse: ballistic flight with frame-rate normalised drag
- wander: hashed random nudge, softly confined to a z slab
"""

import math

import numpy as np

from swarmscope.experiment.config import SwarmConfig
from swarmscope.experiment.phases import Phase
from swarmscope.experiment.store import ParticleStore
from swarmscope.experiment.wander import hash3, wander_keys

DT_MIN = 0.0005
DT_MAX = 0.05

WANDER_RETAIN = 0.98
WANDER_Z_SCALE = 0.6
SLAB_PUSHBACK = 0.5


def clamp_dt(dt: float) -> float:
    """Clamp a frame delta to [DT_MIN, DT_MAX]; NaN maps to DT_MIN."""
    if dt is None or math.isnan(dt):
        return DT_MIN
    return min(DT_MAX, max(DT_MIN, float(dt)))


def step_spring(store: ParticleStore, dt: float, cfg: SwarmConfig):
    """Damped spring to target. Damping is a per-tick decay, not a drag term."""
    accel = (store.target_of() - store.positions) * cfg.spring
    store.velocities *= cfg.damping
    store.velocities += accel * dt
    store.positions += store.velocities * dt


def step_ballistic(store: ParticleStore, dt: float, cfg: SwarmConfig):
    """Free flight with drag; no target pull, no slab."""
    drag = cfg.blast_drag ** max(1.0, dt * cfg.reference_rate)
    store.velocities *= drag
    store.positions += store.velocities * dt


def step_wander(store: ParticleStore, dt: float, cfg: SwarmConfig, clock: float):
    """Hashed random nudge per particle, z pushed back into the slab."""
    n = store.count
    r = hash3(wander_keys(n, clock)).reshape(n, 3)
    strength = np.array(
        [cfg.wander_strength, cfg.wander_strength, cfg.wander_strength * WANDER_Z_SCALE]
    )
    store.velocities *= WANDER_RETAIN
    store.velocities += ((r - 0.5) * strength * dt).astype(np.float32)

    zr = cfg.z_half_range
    z = store.positions[:, 2]
    above = z > zr
    below = z < -zr
    store.velocities[above, 2] -= (z[above] - zr) * SLAB_PUSHBACK * dt
    store.velocities[below, 2] += (-zr - z[below]) * SLAB_PUSHBACK * dt

    store.positions += store.velocities * dt


def integrate(
    store: ParticleStore,
    phase: Phase,
    dt: float,
    cfg: SwarmConfig,
    clock: float = 0.0,
):
    """Apply the force model for ``phase`` to every particle."""
    if store.count == 0:
        return
    if phase in (Phase.ASSEMBLE, Phase.HOLD):
        step_spring(store, dt, cfg)
    elif phase is Phase.DISPERSE:
        step_ballistic(store, dt, cfg)
    else:
        step_wander(store, dt, cfg, clock)


def blast_velocities(n: int, cfg: SwarmConfig, rng: np.random.Generator) -> np.ndarray:
    """
    Random blast velocity per particle: a uniform direction on the sphere
    (inverse CDF over theta and z) times a uniform speed.

    Returns:
        (n, 3) float32 array.
    """
    u = rng.random(n)
    v = rng.random(n)
    theta = 2.0 * np.pi * u
    z = 2.0 * v - 1.0
    r = np.sqrt(np.clip(1.0 - z * z, 0.0, 1.0))
    dirs = np.stack([r * np.cos(theta), r * np.sin(theta), z], axis=1)
    speed = rng.uniform(cfg.blast_speed_min, cfg.blast_speed_max, n)
    return (dirs * speed[:, None]).astype(np.float32)
