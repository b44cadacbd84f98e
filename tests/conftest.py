"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
model:
  path: "models/detector.onnx"
  input_size: 512

decoder:
  conf_threshold: 0.7

tracking:
  smoothing_factor: 0.6
  max_missed_frames: 4

pipeline:
  confidence_threshold: 0.6
  clean_frames_threshold: 3

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "model": {
            "path": "models/detector.onnx",
            "input_size": 512,
            "num_threads": 2,
        },
        "decoder": {
            "conf_threshold": 0.7,
            "min_box_px": 10,
            "max_box_fraction": 0.95,
            "bounds_tolerance_px": 50,
            "class_names": ["restricted"],
            "full_frame_class_ids": [],
        },
        "suppression": {"iou_threshold": 0.45},
        "tracking": {
            "iou_threshold": 0.4,
            "smoothing_factor": 0.6,
            "max_missed_frames": 4,
        },
        "pipeline": {
            "confidence_threshold": 0.6,
            "clean_frames_threshold": 3,
            "min_interval_ms": 50,
            "max_inference_ms": 300,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
