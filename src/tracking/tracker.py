"""
Temporal smoothing of detections across frames.

This module implements a simple IoU-based tracker that stabilizes boxes
for rendering: matched boxes are eased towards the new detection, and
boxes that briefly disappear are held for a few frames so the cover does
not flicker when the model misses a single frame.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from algorithms.geometry import iou
from models.config import TrackingConfig
from models.detection import Detection
from models.exceptions import ConfigurationError
from models.track import Track


class DetectionSmoother:
    """
    Smooths detections across frames using greedy IoU matching.

    The track collection is replaced wholesale on every update, never
    mutated in place, so any tuple returned earlier stays valid.

    Matching rule, applied to tracks in their current order:
    - a track takes the remaining detection with the highest IoU that is
      strictly above ``iou_threshold`` (ties go to the earlier detection)
    - a taken detection is removed before the next track is considered
    - detections left over become new tracks, in input order
    """

    def __init__(
        self,
        iou_threshold: float = 0.4,
        smoothing_factor: float = 0.6,
        max_missed_frames: int = 4,
    ):
        """
        Initialize the smoother.

        Args:
            iou_threshold: Minimum IoU (exclusive) to treat two boxes as the same object
            smoothing_factor: Interpolation factor in (0, 1]; 1 follows the
                              new box instantly, values near 0 barely move
            max_missed_frames: Frames a track survives without a match
        """
        if not 0.0 <= iou_threshold <= 1.0:
            raise ConfigurationError(f"tracking.iou_threshold must be within [0, 1], got {iou_threshold}")
        if not 0.0 < smoothing_factor <= 1.0:
            raise ConfigurationError(
                f"tracking.smoothing_factor must be within (0, 1], got {smoothing_factor}"
            )
        if max_missed_frames < 0:
            raise ConfigurationError("tracking.max_missed_frames must be >= 0")

        self.iou_threshold = iou_threshold
        self.smoothing_factor = smoothing_factor
        self.max_missed_frames = max_missed_frames

        self._tracks: Tuple[Track, ...] = ()
        self.next_track_id = 0

        logging.info(
            f"Detection smoother initialized: iou={iou_threshold}, "
            f"alpha={smoothing_factor}, max_missed={max_missed_frames}"
        )

    @classmethod
    def from_config(cls, config: TrackingConfig) -> "DetectionSmoother":
        return cls(
            iou_threshold=config.iou_threshold,
            smoothing_factor=config.smoothing_factor,
            max_missed_frames=config.max_missed_frames,
        )

    @property
    def tracks(self) -> Tuple[Track, ...]:
        """Current tracks (immutable snapshot)."""
        return self._tracks

    def update(self, detections: Sequence[Detection]) -> List[Detection]:
        """
        Update tracks with one frame's detections.

        Args:
            detections: Suppressed detections for the current frame

        Returns:
            Geometry of all surviving tracks: previous tracks in their prior
            order, then new tracks in input order
        """
        candidates = list(detections)
        next_tracks: List[Track] = []

        for track in self._tracks:
            best_idx = self._find_best_match(track.detection, candidates)

            if best_idx is not None:
                new_det = candidates.pop(best_idx)
                smoothed = track.detection.lerp_towards(new_det, self.smoothing_factor)
                next_tracks.append(track.matched(smoothed))
            else:
                missed = track.missed()
                if missed.missed_frames <= self.max_missed_frames:
                    next_tracks.append(missed)

        for det in candidates:
            next_tracks.append(Track(track_id=self.next_track_id, detection=det))
            self.next_track_id += 1

        self._tracks = tuple(next_tracks)
        return [t.detection for t in self._tracks]

    def _find_best_match(self, target: Detection, candidates: List[Detection]) -> Optional[int]:
        """Index of the best-overlapping candidate, or None if none clears the threshold."""
        best_idx = None
        best_iou = 0.0
        target_box = target.bbox

        for idx, candidate in enumerate(candidates):
            overlap = iou(target_box, candidate.bbox)
            if overlap > self.iou_threshold and overlap > best_iou:
                best_iou = overlap
                best_idx = idx

        return best_idx

    def reset(self) -> None:
        """Drop all tracks."""
        self._tracks = ()

    def get_active_tracks(self) -> List[Track]:
        """Tracks matched on the most recent frame."""
        return [t for t in self._tracks if t.is_active]

    def get_all_tracks(self) -> List[Track]:
        """All surviving tracks, including persisted ones."""
        return list(self._tracks)
