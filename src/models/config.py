"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class ModelConfig:
    """Detection model configuration."""
    path: str = ""
    input_size: int = 512
    num_threads: int = 4

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            path=d.get("path", ""),
            input_size=d.get("input_size", 512),
            num_threads=d.get("num_threads", 4),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "input_size": self.input_size,
            "num_threads": self.num_threads,
        }


@dataclass
class DecoderConfig:
    """
    Raw model output decoding configuration.

    Attributes:
        conf_threshold: Internal score threshold; anchors below it are dropped.
        min_box_px: Boxes narrower or shorter than this are noise.
        max_box_fraction: Boxes wider/taller than this fraction of the image
            are treated as degenerate whole-frame boxes.
        bounds_tolerance_px: How far a box may extend past the image edge.
        class_names: Names indexed by class id.
        full_frame_class_ids: Class ids allowed to bypass max_box_fraction.
    """
    conf_threshold: float = 0.70
    min_box_px: float = 10.0
    max_box_fraction: float = 0.95
    bounds_tolerance_px: float = 50.0
    class_names: List[str] = field(default_factory=lambda: ["restricted"])
    full_frame_class_ids: List[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DecoderConfig":
        return cls(
            conf_threshold=d.get("conf_threshold", 0.70),
            min_box_px=d.get("min_box_px", 10.0),
            max_box_fraction=d.get("max_box_fraction", 0.95),
            bounds_tolerance_px=d.get("bounds_tolerance_px", 50.0),
            class_names=list(d.get("class_names", ["restricted"])),
            full_frame_class_ids=list(d.get("full_frame_class_ids", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conf_threshold": self.conf_threshold,
            "min_box_px": self.min_box_px,
            "max_box_fraction": self.max_box_fraction,
            "bounds_tolerance_px": self.bounds_tolerance_px,
            "class_names": list(self.class_names),
            "full_frame_class_ids": list(self.full_frame_class_ids),
        }


@dataclass
class SuppressionConfig:
    """Non-max suppression configuration."""
    iou_threshold: float = 0.45
    per_class: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SuppressionConfig":
        return cls(
            iou_threshold=d.get("iou_threshold", 0.45),
            per_class=d.get("per_class", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iou_threshold": self.iou_threshold,
            "per_class": self.per_class,
        }


@dataclass
class TrackingConfig:
    """Temporal smoothing configuration."""
    iou_threshold: float = 0.4
    smoothing_factor: float = 0.6
    max_missed_frames: int = 4

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrackingConfig":
        return cls(
            iou_threshold=d.get("iou_threshold", 0.4),
            smoothing_factor=d.get("smoothing_factor", 0.6),
            max_missed_frames=d.get("max_missed_frames", 4),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iou_threshold": self.iou_threshold,
            "smoothing_factor": self.smoothing_factor,
            "max_missed_frames": self.max_missed_frames,
        }


@dataclass
class PipelineConfig:
    """
    Frame pipeline configuration.

    Attributes:
        confidence_threshold: Runtime threshold for qualifying detections.
        clean_frames_threshold: Consecutive clean frames before hiding.
        min_interval_ms: Minimum time between accepted frames.
        max_inference_ms: Inference slower than this counts as a slow frame.
        inference_window: Number of recent inference durations kept.
        stats_log_interval: Seconds between statistics log messages.
        detection_scale: Downscale factor applied before inference.
    """
    confidence_threshold: float = 0.6
    clean_frames_threshold: int = 3
    min_interval_ms: float = 50.0
    max_inference_ms: float = 300.0
    inference_window: int = 10
    stats_log_interval: float = 30.0
    detection_scale: float = 1.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PipelineConfig":
        return cls(
            confidence_threshold=d.get("confidence_threshold", 0.6),
            clean_frames_threshold=d.get("clean_frames_threshold", 3),
            min_interval_ms=d.get("min_interval_ms", 50.0),
            max_inference_ms=d.get("max_inference_ms", 300.0),
            inference_window=d.get("inference_window", 10),
            stats_log_interval=d.get("stats_log_interval", 30.0),
            detection_scale=d.get("detection_scale", 1.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence_threshold": self.confidence_threshold,
            "clean_frames_threshold": self.clean_frames_threshold,
            "min_interval_ms": self.min_interval_ms,
            "max_inference_ms": self.max_inference_ms,
            "inference_window": self.inference_window,
            "stats_log_interval": self.stats_log_interval,
            "detection_scale": self.detection_scale,
        }


@dataclass
class SourceConfig:
    """
    Frame source configuration for the command-line runner.

    Attributes:
        device_id: Capture index or video file path.
        fps: Delivery rate override. None = native rate for files.
        max_frames: Stop after this many frames. None = run to the end.
        realtime: Pace file playback at the file's frame rate.
    """
    device_id: Union[int, str] = 0
    fps: Optional[float] = None
    max_frames: Optional[int] = None
    realtime: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceConfig":
        return cls(
            device_id=d.get("device_id", 0),
            fps=d.get("fps"),
            max_frames=d.get("max_frames"),
            realtime=d.get("realtime", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"device_id": self.device_id, "realtime": self.realtime}
        if self.fps is not None:
            d["fps"] = self.fps
        if self.max_frames is not None:
            d["max_frames"] = self.max_frames
        return d


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    model: ModelConfig = field(default_factory=ModelConfig)
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    suppression: SuppressionConfig = field(default_factory=SuppressionConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    log_path: str = "logs/screenguard.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            decoder=DecoderConfig.from_dict(d.get("decoder", {}) or {}),
            suppression=SuppressionConfig.from_dict(d.get("suppression", {}) or {}),
            tracking=TrackingConfig.from_dict(d.get("tracking", {}) or {}),
            pipeline=PipelineConfig.from_dict(d.get("pipeline", {}) or {}),
            source=SourceConfig.from_dict(d.get("source", {}) or {}),
            log_path=d.get("log_path", "logs/screenguard.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "model": self.model.to_dict(),
            "decoder": self.decoder.to_dict(),
            "suppression": self.suppression.to_dict(),
            "tracking": self.tracking.to_dict(),
            "pipeline": self.pipeline.to_dict(),
            "source": self.source.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
