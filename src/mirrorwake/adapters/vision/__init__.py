"""视觉采集适配器。"""

from .base import FrameSource, StreamConstraints
from .camera_adapter import CameraDifferenceAdapter
from .capture import OpenCVFrameSource
from .simulated import SimulatedFrameSource

__all__ = [
    "CameraDifferenceAdapter",
    "FrameSource",
    "OpenCVFrameSource",
    "SimulatedFrameSource",
    "StreamConstraints",
]
