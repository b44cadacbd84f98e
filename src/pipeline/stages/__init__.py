"""
Pipeline stages for the screen guard.

Each stage handles a specific part of the processing pipeline:
- detect: Preprocessing, inference, decoding and suppression
- visibility: Show/hide hysteresis
"""

from .detect import DetectStage, DetectOutput
from .visibility import VisibilityStateMachine

__all__ = ["DetectStage", "DetectOutput", "VisibilityStateMachine"]
