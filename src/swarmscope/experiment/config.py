"""
Simulation configuration for the particle swarm.

Defaults reproduce the original signature scene: a 16-unit wide card,
~10 s of wandering, a 4-8 s assembly, a 10 s hold and a 4-8 s blast.
"""

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Tuple, Union


@dataclass(frozen=True)
class SwarmConfig:
    """Every knob of the particle choreography. Never mutated during a run."""

    # Target shape
    world_width: float = 16.0
    particle_size: float = 0.09

    # Sampling
    sample_stride: int = 3
    threshold: float = 180.0
    jitter: float = 0.12

    # Motion
    spring: float = 9.0
    damping: float = 0.85
    wander_strength: float = 1.5
    z_half_range: float = 3.0

    # Phase timing (seconds)
    wander_range: Tuple[float, float] = (10.0, 12.0)
    assemble_range: Tuple[float, float] = (4.0, 8.0)
    hold_seconds: float = 10.0
    disperse_range: Tuple[float, float] = (4.0, 8.0)

    # Blast
    blast_speed_min: float = 10.0
    blast_speed_max: float = 22.0
    blast_drag: float = 0.995  # per reference frame, closer to 1 = less drag
    reference_rate: float = 60.0

    # Spawn volume
    spawn_spread_xy: float = 2.2
    spawn_spread_z: float = 3.0

    def validate(self) -> "SwarmConfig":
        """Raise ValueError on out-of-range values, return self otherwise."""
        for name in ("wander_range", "assemble_range", "disperse_range"):
            lo, hi = getattr(self, name)
            if lo <= 0 or hi < lo:
                raise ValueError(f"{name} must satisfy 0 < min <= max, got {(lo, hi)}")
        if self.hold_seconds <= 0:
            raise ValueError(f"hold_seconds must be positive, got {self.hold_seconds}")
        if self.blast_speed_min < 0 or self.blast_speed_max < self.blast_speed_min:
            raise ValueError(
                f"blast speed range must satisfy 0 <= min <= max, "
                f"got {(self.blast_speed_min, self.blast_speed_max)}"
            )
        if self.sample_stride < 1:
            raise ValueError(f"sample_stride must be >= 1, got {self.sample_stride}")
        if not 0 <= self.threshold <= 255:
            raise ValueError(f"threshold must be in [0, 255], got {self.threshold}")
        for name in (
            "world_width", "particle_size", "spring", "reference_rate",
            "spawn_spread_xy", "spawn_spread_z", "z_half_range",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("jitter", "wander_strength"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if not 0 < self.damping < 1:
            raise ValueError(f"damping must be in (0, 1), got {self.damping}")
        if not 0 < self.blast_drag <= 1:
            raise ValueError(f"blast_drag must be in (0, 1], got {self.blast_drag}")
        return self


_RANGE_FIELDS = {"wander_range", "assemble_range", "disperse_range"}


def _coerce(key: str, value: Any) -> Any:
    if key in _RANGE_FIELDS:
        if isinstance(value, (str, bytes)) or len(value) != 2:
            raise ValueError(f"expected a [min, max] pair, got {value!r}")
        return (float(value[0]), float(value[1]))
    if key == "sample_stride":
        return int(value)
    return float(value)


def config_from_dict(overrides: dict[str, Any], base: SwarmConfig | None = None) -> SwarmConfig:
    """Apply a dict of overrides (e.g. parsed JSON) onto ``base`` and validate."""
    base = base or SwarmConfig()
    known = {f.name for f in fields(SwarmConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

    values = {}
    for key, value in overrides.items():
        try:
            values[key] = _coerce(key, value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"{key}: {e}") from e

    return replace(base, **values).validate()


def load_config(path: Union[str, Path]) -> SwarmConfig:
    """
    Load a SwarmConfig from a JSON file of overrides.

    Keys may be a subset of the SwarmConfig fields. A top-level "swarm"
    object is also accepted so one file can hold renderer settings too.
    """
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")
    if "swarm" in data:
        data = data["swarm"]
        if not isinstance(data, dict):
            raise ValueError(f"\"swarm\" section must be a JSON object: {path}")
    return config_from_dict(data)
