"""
Visibility stage: hysteresis between "show cover" and "hide cover".

Showing is immediate on the first frame with a qualifying detection.
Hiding waits for a run of consecutive clean frames, so a single missed
frame from the model does not flash the content back on screen.
"""

from __future__ import annotations

import logging
from typing import Optional

from models.exceptions import ConfigurationError


class VisibilityStateMachine:
    """
    Two-state (hidden/visible) hysteresis.

    - hidden -> visible on any frame with detections; clean counter resets
    - visible + detections: clean counter resets
    - visible + clean frame: clean counter increments; at
      ``clean_frames_threshold`` the state becomes hidden
    - hidden + clean frame: counter keeps counting, state unchanged

    The clean counter is never reset while hidden; it only feeds logs
    and stats there.

    Example:
        machine = VisibilityStateMachine(clean_frames_threshold=3)
        changed = machine.update(has_detections=True)   # -> True
        changed = machine.update(has_detections=False)  # -> None
    """

    def __init__(self, clean_frames_threshold: int = 3):
        if clean_frames_threshold < 1:
            raise ConfigurationError(
                f"clean_frames_threshold must be >= 1, got {clean_frames_threshold}"
            )
        self.clean_frames_threshold = clean_frames_threshold
        self._visible = False
        self._consecutive_clean = 0

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def consecutive_clean_frames(self) -> int:
        return self._consecutive_clean

    def update(self, has_detections: bool) -> Optional[bool]:
        """
        Feed one processed frame.

        Returns:
            The new visibility if this frame caused a transition, else None.
        """
        if has_detections:
            self._consecutive_clean = 0
            if not self._visible:
                self._visible = True
                return True
            return None

        self._consecutive_clean += 1
        if self._visible:
            if self._consecutive_clean >= self.clean_frames_threshold:
                self._visible = False
                return False
            if self._consecutive_clean == 1:
                logging.debug(
                    f"Content cleared, waiting for "
                    f"{self.clean_frames_threshold - self._consecutive_clean} more clean frames"
                )
        return None

    def reset(self) -> None:
        self._visible = False
        self._consecutive_clean = 0
