"""
Particle choreography engine and its frame renderer.
"""

from swarmscope.experiment.base import BaseConfig, BaseVisualizer, VisualPolisher
from swarmscope.experiment.bitmap import (
    Bitmap,
    BitmapError,
    ImageBitmapSource,
    QrBitmapSource,
    TextBitmapSource,
    make_source,
)
from swarmscope.experiment.config import SwarmConfig, load_config
from swarmscope.experiment.phases import Phase, PhaseState
from swarmscope.experiment.renderer import PerspectiveCamera, RenderConfig, SwarmRenderer
from swarmscope.experiment.swarm import SwarmEngine
