"""Particle swarm choreography for generative point-cloud scenes."""

from swarmscope.experiment.config import SwarmConfig
from swarmscope.experiment.phases import Phase
from swarmscope.experiment.swarm import SwarmEngine
from swarmscope.io.exporter import TrajectoryExporter

__version__ = "0.1.0"
__all__ = [
    "SwarmConfig",
    "Phase",
    "SwarmEngine",
    "TrajectoryExporter",
]
