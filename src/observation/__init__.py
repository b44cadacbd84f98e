"""
Observation layer for pluggable frame sources.

Sources are used by the command-line runner to feed recordings or
capture devices into the push-based pipeline.
"""

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
]
