"""
Inference layer.

The neural network is an opaque collaborator: engines take a normalized
pixel batch and return the raw output tensor.
"""

from .backend import InferenceEngine, CallableEngine
from .preprocess import frame_to_rgb, scale_for_detection, to_model_input

__all__ = [
    "InferenceEngine",
    "CallableEngine",
    "frame_to_rgb",
    "scale_for_detection",
    "to_model_input",
]
