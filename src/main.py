"""
Command-line runner for the screen guard pipeline.

Replays a screen recording (or reads a capture device) through the
detection pipeline and logs every show/hide decision. This is the
development harness; on-device the platform layer pushes frames into
FramePipeline directly and renders the cover itself.

Usage:
    python src/main.py --config config/config.yaml --model models/detector.onnx \
        --source recording.mp4 --display

Arguments:
    --config: Path to configuration file
    --model: Path to the ONNX detection model (overrides model.path)
    --source: Video file or capture index (overrides source.device_id)
    --threshold: Runtime confidence threshold (overrides pipeline.confidence_threshold)
    --max-frames: Stop after this many frames (overrides source.max_frames)
    --display: Show a preview window with the cover applied
"""

import os
import sys
import argparse
import logging
import threading
from typing import Any, Dict, Optional, Tuple

import cv2
import numpy as np
import yaml

from inference.onnx_backend import OnnxEngineConfig, OnnxRuntimeEngine
from models.config import Config
from models.exceptions import ConfigurationError
from models.result import FrameResult
from observation.opencv_source import OpenCVSource, OpenCVSourceConfig
from ops.logging import setup_logging, VALID_LOG_LEVELS
from pipeline.engine import create_pipeline_from_config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)

    Raises:
        ConfigurationError: If a config file exists but cannot be parsed.
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load configuration: {e}") from e


def _check_unit(section: Dict[str, Any], key: str, name: str, allow_zero: bool = True) -> Optional[str]:
    if key not in section:
        return None
    value = section[key]
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return f"{name}.{key} must be a number"
    low_ok = value >= 0 if allow_zero else value > 0
    if not (low_ok and value <= 1):
        bound = "[0, 1]" if allow_zero else "(0, 1]"
        return f"{name}.{key} must be within {bound}"
    return None


def _check_positive(section: Dict[str, Any], key: str, name: str, integer: bool = False, allow_zero: bool = False) -> Optional[str]:
    if key not in section:
        return None
    value = section[key]
    kinds = (int,) if integer else (int, float)
    if not isinstance(value, kinds) or isinstance(value, bool):
        return f"{name}.{key} must be {'an integer' if integer else 'a number'}"
    if value < 0 or (value == 0 and not allow_zero):
        return f"{name}.{key} must be {'non-negative' if allow_zero else 'positive'}"
    return None


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['model', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    model = config.get('model') or {}
    if not isinstance(model.get('path'), str) or not model.get('path'):
        return False, "model.path is required"
    error = _check_positive(model, 'input_size', 'model', integer=True)
    error = error or _check_positive(model, 'num_threads', 'model', integer=True)
    if error:
        return False, error

    decoder = config.get('decoder') or {}
    error = (
        _check_unit(decoder, 'conf_threshold', 'decoder')
        or _check_unit(decoder, 'max_box_fraction', 'decoder', allow_zero=False)
        or _check_positive(decoder, 'min_box_px', 'decoder', allow_zero=True)
        or _check_positive(decoder, 'bounds_tolerance_px', 'decoder', allow_zero=True)
    )
    if error:
        return False, error
    if 'class_names' in decoder and not isinstance(decoder['class_names'], list):
        return False, "decoder.class_names must be a list"
    if 'full_frame_class_ids' in decoder:
        ids = decoder['full_frame_class_ids']
        if not isinstance(ids, list) or not all(isinstance(i, int) and i >= 0 for i in ids):
            return False, "decoder.full_frame_class_ids must be a list of class ids"

    suppression = config.get('suppression') or {}
    error = _check_unit(suppression, 'iou_threshold', 'suppression')
    if error:
        return False, error

    tracking = config.get('tracking') or {}
    error = (
        _check_unit(tracking, 'iou_threshold', 'tracking')
        or _check_unit(tracking, 'smoothing_factor', 'tracking', allow_zero=False)
        or _check_positive(tracking, 'max_missed_frames', 'tracking', integer=True, allow_zero=True)
    )
    if error:
        return False, error

    pipeline = config.get('pipeline') or {}
    error = (
        _check_unit(pipeline, 'confidence_threshold', 'pipeline')
        or _check_unit(pipeline, 'detection_scale', 'pipeline', allow_zero=False)
        or _check_positive(pipeline, 'clean_frames_threshold', 'pipeline', integer=True)
        or _check_positive(pipeline, 'min_interval_ms', 'pipeline', allow_zero=True)
        or _check_positive(pipeline, 'max_inference_ms', 'pipeline')
        or _check_positive(pipeline, 'inference_window', 'pipeline', integer=True)
        or _check_positive(pipeline, 'stats_log_interval', 'pipeline')
    )
    if error:
        return False, error

    source = config.get('source') or {}
    if 'device_id' in source:
        device_id = source['device_id']
        if isinstance(device_id, bool) or not isinstance(device_id, (int, str)):
            return False, "source.device_id must be a capture index or a file path"
        if isinstance(device_id, int) and device_id < 0:
            return False, "source.device_id must be non-negative"
    # fps and max_frames may be explicitly null
    optional = {k: v for k, v in source.items() if v is not None}
    error = (
        _check_positive(optional, 'fps', 'source')
        or _check_positive(optional, 'max_frames', 'source', integer=True)
    )
    if error:
        return False, error

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def _draw_preview(frame: np.ndarray, result: Optional[FrameResult]) -> np.ndarray:
    """Blur detected regions while the cover is visible."""
    if result is None or not result.visible:
        return frame

    h, w = frame.shape[:2]
    sx = w / result.image_width
    sy = h / result.image_height
    for det in result.detections:
        x1, y1, x2, y2 = det.bbox.as_tuple()
        left, top = max(0, int(x1 * sx)), max(0, int(y1 * sy))
        right, bottom = min(w, int(x2 * sx)), min(h, int(y2 * sy))
        if right > left and bottom > top:
            frame[top:bottom, left:right] = cv2.GaussianBlur(frame[top:bottom, left:right], (51, 51), 0)
    if not result.detections:
        frame = cv2.GaussianBlur(frame, (51, 51), 0)
    return frame


def _parse_source(value: str):
    return int(value) if value.isdigit() else value


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Screen Guard - restricted content detection runner')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--model', type=str, default=None,
                        help='Path to ONNX detection model')
    parser.add_argument('--source', type=str, default=None,
                        help='Video file path or capture device index')
    parser.add_argument('--threshold', type=float, default=None,
                        help='Runtime confidence threshold (0-1)')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Override log level')
    parser.add_argument('--max-frames', type=int, default=None,
                        help='Stop after this many frames')
    parser.add_argument('--display', action='store_true',
                        help='Show a preview window with the cover applied')
    args = parser.parse_args()

    try:
        raw_config = load_config(args.config)
    except ConfigurationError as e:
        logging.error(str(e))
        sys.exit(1)

    if args.model:
        raw_config.setdefault('model', {})['path'] = args.model
    if args.source is not None:
        raw_config.setdefault('source', {})['device_id'] = _parse_source(args.source)
    if args.max_frames is not None:
        raw_config.setdefault('source', {})['max_frames'] = args.max_frames
    if args.threshold is not None:
        raw_config.setdefault('pipeline', {})['confidence_threshold'] = args.threshold
    if args.log_level:
        raw_config['log_level'] = args.log_level.upper()

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw_config)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting Screen Guard")

    try:
        engine = OnnxRuntimeEngine(
            OnnxEngineConfig(model=config.model.path, num_threads=config.model.num_threads)
        )
        pipeline = create_pipeline_from_config(config, engine)
    except ConfigurationError as e:
        logging.error(f"Pipeline setup failed: {e}")
        sys.exit(1)

    # The preview is drawn on the main thread; listeners only hand over snapshots
    latest: Dict[str, Optional[FrameResult]] = {"result": None}
    latest_lock = threading.Lock()

    def on_result(result: FrameResult) -> None:
        with latest_lock:
            latest["result"] = result

    def on_visibility(visible: bool) -> None:
        logging.info(f"Cover {'shown' if visible else 'hidden'}")

    pipeline.add_result_listener(on_result)
    pipeline.add_visibility_listener(on_visibility)

    source = OpenCVSource(OpenCVSourceConfig.from_source_config(config.source))
    try:
        source.open()
        pipeline.start()
        for frame_data in source:
            pipeline.submit(frame_data)

            if args.display:
                with latest_lock:
                    result = latest["result"]
                preview = _draw_preview(frame_data.pixels.copy(), result)
                cv2.imshow("Screen Guard", preview)
                if cv2.waitKey(1) & 0xFF == ord('q'):
                    break
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except RuntimeError as e:
        logging.error(f"Source error: {e}")
    finally:
        pipeline.stop()
        source.close()
        engine.close()
        if args.display:
            cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
