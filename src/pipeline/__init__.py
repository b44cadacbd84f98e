"""
Pipeline module for the screen guard.

The pipeline orchestrates the full processing flow:
- Frame admission (rate cap, single in-flight inference)
- Detection (inference, decoding, suppression)
- Temporal smoothing
- Show/hide hysteresis and renderer notification
"""

from .engine import FramePipeline, create_pipeline_from_config
from .stats import PipelineStats
from .stages.detect import DetectStage, DetectOutput
from .stages.visibility import VisibilityStateMachine

__all__ = [
    "FramePipeline",
    "create_pipeline_from_config",
    "PipelineStats",
    "DetectStage",
    "DetectOutput",
    "VisibilityStateMachine",
]
