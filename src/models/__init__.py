"""
Typed models for the screen guard pipeline.

Value types are immutable so snapshots can be shared with a renderer
running on another thread.
"""

from .frame import FrameData
from .detection import Detection, BoundingBox
from .track import Track
from .result import FrameResult
from .exceptions import (
    ScreenGuardError,
    ConfigurationError,
    TransientInferenceError,
    MalformedFrameError,
)
from .config import (
    Config,
    ModelConfig,
    DecoderConfig,
    SuppressionConfig,
    TrackingConfig,
    PipelineConfig,
    SourceConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    # Tracking
    "Track",
    # Results
    "FrameResult",
    # Errors
    "ScreenGuardError",
    "ConfigurationError",
    "TransientInferenceError",
    "MalformedFrameError",
    # Config
    "Config",
    "ModelConfig",
    "DecoderConfig",
    "SuppressionConfig",
    "TrackingConfig",
    "PipelineConfig",
    "SourceConfig",
]
