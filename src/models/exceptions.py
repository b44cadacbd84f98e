"""Exceptions raised by the detection pipeline."""


class ScreenGuardError(Exception):
    """Base exception for the pipeline."""


class ConfigurationError(ScreenGuardError):
    """Raised at construction time for a bad model, tensor shape or setting."""


class TransientInferenceError(ScreenGuardError):
    """Raised when a single inference call fails; the frame counts as clean."""


class MalformedFrameError(ScreenGuardError):
    """Raised when a frame buffer cannot be interpreted; the frame is dropped."""
