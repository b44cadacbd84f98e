"""
Screen Guard - Detection Module

This module turns raw model output into candidate detections.
"""

from .decoder import DetectionDecoder

__all__ = ['DetectionDecoder']
