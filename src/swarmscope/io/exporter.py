"""
Trajectory serialization module.

Records particle positions tick by tick and exports them to a JSON
document for use in external renderers (e.g. a WebGL point cloud player).
"""

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterator, Union

import numpy as np

from swarmscope.experiment.swarm import SwarmEngine


@dataclass
class TrajectoryMetadata:
    """Metadata header for a trajectory document."""

    fps: int
    n_frames: int
    n_particles: int
    world_width: float
    schema_version: str = "1.0"


@dataclass
class Snapshot:
    """One captured tick. ``positions`` is an (N, 3) float32 copy."""

    frame_index: int
    time: float
    phase: str
    positions: np.ndarray


class TrajectoryExporter:
    """
    Collects engine snapshots and writes them as JSON.

    Snapshots are held as compact float32 arrays; they only become nested
    lists when a frame is serialized. Each frame holds the phase name, the
    simulated time, and a list of [x, y, z] positions in particle order.
    """

    def __init__(self, precision: int = 4):
        """
        Initialize the exporter.

        Args:
            precision: Decimal places for position values.
        """
        self.precision = precision
        self.snapshots: list[Snapshot] = []
        self._n_particles = 0
        self._world_width = 0.0

    def __len__(self) -> int:
        return len(self.snapshots)

    def capture(self, engine: SwarmEngine) -> Snapshot:
        """Snapshot the engine's current state as the next frame."""
        snap = Snapshot(
            frame_index=len(self.snapshots),
            time=float(engine.clock),
            phase=engine.phase.current.value,
            positions=np.array(engine.positions, dtype=np.float32),
        )
        self.snapshots.append(snap)
        self._n_particles = engine.count
        self._world_width = engine.cfg.world_width
        return snap

    def frame_dict(self, snap: Snapshot) -> dict[str, Any]:
        """Serializable form of one snapshot."""
        positions = np.round(snap.positions.astype(np.float64), self.precision)
        return {
            "frame_index": snap.frame_index,
            "time": round(snap.time, self.precision),
            "phase": snap.phase,
            "positions": positions.tolist(),
        }

    def iter_frames(self) -> Iterator[dict[str, Any]]:
        for snap in self.snapshots:
            yield self.frame_dict(snap)

    def metadata(self, fps: int) -> TrajectoryMetadata:
        return TrajectoryMetadata(
            fps=fps,
            n_frames=len(self.snapshots),
            n_particles=self._n_particles,
            world_width=self._world_width,
        )

    def build(self, fps: int) -> dict[str, Any]:
        """Assemble the complete document in memory."""
        return {"metadata": asdict(self.metadata(fps)), "frames": list(self.iter_frames())}

    def export(self, output_path: Union[str, Path], fps: int) -> Path:
        """
        Write the document to ``output_path``.

        Frames are serialized one at a time, so only a single frame is ever
        held as Python lists.

        Returns:
            Path to the written file.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        sep = (",", ":")
        with open(output_path, "w") as f:
            f.write('{"metadata":')
            json.dump(asdict(self.metadata(fps)), f, separators=sep)
            f.write(',"frames":[')
            for i, frame in enumerate(self.iter_frames()):
                if i:
                    f.write(",")
                json.dump(frame, f, separators=sep)
            f.write("]}")
        return output_path
