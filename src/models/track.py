"""
Track models for cross-frame detection state.
"""

from __future__ import annotations

from dataclasses import dataclass

from .detection import Detection


@dataclass(frozen=True)
class Track:
    """
    A detection persisted across frames by the smoother.

    Tracks are immutable; the smoother replaces its whole collection
    every frame, so a snapshot handed to a renderer never changes under it.

    Attributes:
        track_id: Identifier assigned by the smoother (diagnostics only).
        detection: Current (smoothed or frozen) detection.
        missed_frames: Consecutive frames without a matching detection.
    """
    track_id: int
    detection: Detection
    missed_frames: int = 0

    def __post_init__(self):
        if self.missed_frames < 0:
            raise ValueError("missed_frames must be >= 0")

    def matched(self, detection: Detection) -> "Track":
        """Return this track updated with a matched detection."""
        return Track(track_id=self.track_id, detection=detection, missed_frames=0)

    def missed(self) -> "Track":
        """Return this track with one more missed frame and frozen geometry."""
        return Track(
            track_id=self.track_id,
            detection=self.detection,
            missed_frames=self.missed_frames + 1,
        )

    @property
    def is_active(self) -> bool:
        """Whether this track was matched on the most recent frame."""
        return self.missed_frames == 0
