"""
Tracking module.

The canonical smoother implementation is in tracking.tracker.
"""

from .tracker import DetectionSmoother

__all__ = ["DetectionSmoother"]
