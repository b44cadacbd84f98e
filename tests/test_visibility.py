"""
Tests for the show/hide hysteresis.
"""

import pytest

from models.exceptions import ConfigurationError
from pipeline.stages.visibility import VisibilityStateMachine


def _feed(machine, frames):
    return [machine.update(has) for has in frames]


class TestVisibilityStateMachine:
    def test_starts_hidden(self):
        machine = VisibilityStateMachine()
        assert machine.visible is False
        assert machine.consecutive_clean_frames == 0

    def test_shows_on_first_detection(self):
        machine = VisibilityStateMachine()
        assert machine.update(True) is True
        assert machine.visible is True

    def test_short_gap_keeps_cover(self):
        """Fewer clean frames than the threshold never hides the cover."""
        machine = VisibilityStateMachine(clean_frames_threshold=3)

        transitions = _feed(machine, [True, False, False])

        assert transitions == [True, None, None]
        assert machine.visible is True

    def test_hides_exactly_at_threshold(self):
        machine = VisibilityStateMachine(clean_frames_threshold=3)

        transitions = _feed(machine, [True, False, False, False])

        assert transitions == [True, None, None, False]
        assert machine.visible is False

    def test_detection_resets_clean_counter(self):
        machine = VisibilityStateMachine(clean_frames_threshold=3)

        transitions = _feed(machine, [True, False, False, True, False, False])

        assert transitions == [True, None, None, None, None, None]
        assert machine.visible is True
        assert machine.consecutive_clean_frames == 2

    def test_clean_while_hidden_is_not_a_transition(self):
        machine = VisibilityStateMachine()

        transitions = _feed(machine, [False] * 5)

        assert transitions == [None] * 5
        assert machine.visible is False
        assert machine.consecutive_clean_frames == 5

    def test_repeated_detections_fire_once(self):
        machine = VisibilityStateMachine()

        transitions = _feed(machine, [True, True, True])

        assert transitions == [True, None, None]

    def test_reactivation_after_hide(self):
        machine = VisibilityStateMachine(clean_frames_threshold=1)

        transitions = _feed(machine, [True, False, True])

        assert transitions == [True, False, True]

    def test_reset(self):
        machine = VisibilityStateMachine()
        _feed(machine, [True, False])

        machine.reset()

        assert machine.visible is False
        assert machine.consecutive_clean_frames == 0

    def test_invalid_threshold(self):
        with pytest.raises(ConfigurationError):
            VisibilityStateMachine(clean_frames_threshold=0)
