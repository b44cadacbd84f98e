"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, validate_config
from models.config import Config
from models.exceptions import ConfigurationError


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    def test_minimal_config_passes(self):
        """Only model path and logging are required; the rest defaults."""
        config = {"model": {"path": "m.onnx"}, "log_path": "x.log", "log_level": "DEBUG"}

        is_valid, error = validate_config(config)

        assert is_valid is True
        assert error is None

    def test_missing_model_section(self, valid_config):
        """Missing model section fails validation."""
        del valid_config["model"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model" in error.lower()

    def test_empty_model_path(self, valid_config):
        """An empty model path fails validation."""
        valid_config["model"]["path"] = ""

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model.path" in error

    def test_missing_log_level(self, valid_config):
        """Missing log_level fails validation."""
        del valid_config["log_level"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()

    def test_missing_log_path(self, valid_config):
        """Missing log_path fails validation."""
        del valid_config["log_path"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_path" in error.lower()

    def test_invalid_log_level(self, valid_config):
        """Unknown log level fails."""
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error

    @pytest.mark.parametrize("value", [-0.1, 1.5, "high"])
    def test_invalid_confidence_threshold(self, valid_config, value):
        """Runtime confidence threshold must be a number in [0, 1]."""
        valid_config["pipeline"]["confidence_threshold"] = value

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "confidence_threshold" in error

    def test_invalid_decoder_threshold(self, valid_config):
        """Decoder threshold above 1 fails."""
        valid_config["decoder"]["conf_threshold"] = 1.2

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "decoder.conf_threshold" in error

    def test_zero_max_box_fraction(self, valid_config):
        """max_box_fraction must be strictly positive."""
        valid_config["decoder"]["max_box_fraction"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "max_box_fraction" in error

    def test_invalid_full_frame_class_ids(self, valid_config):
        """full_frame_class_ids must hold class ids."""
        valid_config["decoder"]["full_frame_class_ids"] = ["all"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "full_frame_class_ids" in error

    def test_invalid_tracking_iou(self, valid_config):
        """Tracking IoU threshold above 1 fails."""
        valid_config["tracking"]["iou_threshold"] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "tracking.iou_threshold" in error

    def test_zero_smoothing_factor(self, valid_config):
        """A smoothing factor of 0 would freeze tracks and fails."""
        valid_config["tracking"]["smoothing_factor"] = 0.0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "smoothing_factor" in error

    def test_zero_max_missed_frames_valid(self, valid_config):
        """Disabling persistence is allowed."""
        valid_config["tracking"]["max_missed_frames"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    def test_negative_max_missed_frames(self, valid_config):
        """Negative persistence fails."""
        valid_config["tracking"]["max_missed_frames"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "max_missed_frames" in error

    def test_zero_clean_frames_threshold(self, valid_config):
        """The cover needs at least one clean frame to hide."""
        valid_config["pipeline"]["clean_frames_threshold"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "clean_frames_threshold" in error

    def test_zero_min_interval_valid(self, valid_config):
        """Throttling can be disabled."""
        valid_config["pipeline"]["min_interval_ms"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is True

    @pytest.mark.parametrize("device_id", [-1, True, 1.5])
    def test_invalid_source_device(self, valid_config, device_id):
        """Capture index must be a non-negative int, or a path."""
        valid_config["source"] = {"device_id": device_id}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "source.device_id" in error

    def test_zero_max_frames_invalid(self, valid_config):
        valid_config["source"] = {"device_id": "clip.mp4", "max_frames": 0}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "max_frames" in error

    def test_null_source_fps_valid(self, valid_config):
        """Explicit null keeps the native rate."""
        valid_config["source"] = {"device_id": 0, "fps": None, "max_frames": None}

        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    def test_valid_config_builds_typed_config(self, valid_config):
        """A config that validates also converts to the typed Config."""
        is_valid, _ = validate_config(valid_config)
        config = Config.from_dict(valid_config)

        assert is_valid is True
        assert config.model.path == "models/detector.onnx"
        assert config.tracking.max_missed_frames == 4


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config_path = str(temp_config_dir / "config.yaml")

        # Don't create config.yaml, only default.yaml exists
        config = load_config(config_path)

        assert config["model"]["path"] == "models/detector.onnx"
        assert config["decoder"]["conf_threshold"] == 0.7
        assert config["pipeline"]["clean_frames_threshold"] == 3

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
pipeline:
  confidence_threshold: 0.8
""")

        config = load_config(str(config_yaml))

        # Overridden values
        assert config["pipeline"]["confidence_threshold"] == 0.8

        # Original values preserved
        assert config["pipeline"]["clean_frames_threshold"] == 3
        assert config["model"]["input_size"] == 512

    def test_explicit_path_applied_last(self, temp_config_dir):
        """An explicit config file overrides both default.yaml and config.yaml."""
        (temp_config_dir / "config.yaml").write_text("""
tracking:
  max_missed_frames: 2
""")
        explicit = temp_config_dir / "device.yaml"
        explicit.write_text("""
tracking:
  max_missed_frames: 1
log_level: "DEBUG"
""")

        config = load_config(str(explicit))

        assert config["tracking"]["max_missed_frames"] == 1
        assert config["tracking"]["smoothing_factor"] == 0.6
        assert config["log_level"] == "DEBUG"

    def test_missing_directory_returns_empty(self, tmp_path):
        """No config files at all yields an empty dict."""
        config = load_config(str(tmp_path / "nowhere" / "config.yaml"))

        assert config == {}

    def test_invalid_yaml_raises(self, temp_config_dir):
        """Unparseable YAML is a configuration error."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("pipeline: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_config(str(config_yaml))
