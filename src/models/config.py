"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MODE_DEMO = "demo"
MODE_LIVE = "live"
MODES = (MODE_DEMO, MODE_LIVE)

INTERACTIVE = "interactive"
SINGLE_SHOT = "single-shot"
EXECUTION_MODELS = (INTERACTIVE, SINGLE_SHOT)

# COCO class ids: car, motorcycle, bus, truck
VEHICLE_CLASS_IDS = (2, 3, 5, 7)


class ConfigError(ValueError):
    """Raised for invalid startup configuration (fatal to the process)."""


@dataclass(frozen=True)
class RunConfig:
    """
    Run loop configuration. Constructed once at startup and read-only afterwards.

    Attributes:
        mode: "demo" (fixture images) or "live" (camera feed).
        execution_model: "interactive" (long-running loop) or "single-shot"
            (one traversal, e.g. a serverless trigger).
        capture_interval_s: Delay between live cycles.
        report_throttle_s: Minimum time between analyses/notifications per site (live).
        density_threshold: Density above which the condition is Heavy.
        demo_interval_s: Delay between demo cycles.
        skip_sleep_s: Delay after a cycle that obtained no frame.
        sleep_slice_s: Granularity of cancellation checks while sleeping.
    """
    mode: str = MODE_DEMO
    execution_model: str = INTERACTIVE
    capture_interval_s: float = 36.0
    report_throttle_s: float = 300.0
    density_threshold: float = 0.02
    demo_interval_s: float = 5.0
    skip_sleep_s: float = 5.0
    sleep_slice_s: float = 0.1

    @property
    def is_interactive(self) -> bool:
        return self.execution_model == INTERACTIVE

    @property
    def is_demo(self) -> bool:
        return self.mode == MODE_DEMO

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RunConfig":
        mode = str(d.get("mode", MODE_DEMO)).lower()
        if mode not in MODES:
            raise ConfigError(f"Invalid mode: {mode!r} (expected one of: {', '.join(MODES)})")
        execution_model = str(d.get("execution_model", INTERACTIVE)).lower()
        if execution_model not in EXECUTION_MODELS:
            raise ConfigError(
                f"Invalid execution model: {execution_model!r} "
                f"(expected one of: {', '.join(EXECUTION_MODELS)})"
            )
        return cls(
            mode=mode,
            execution_model=execution_model,
            capture_interval_s=float(d.get("capture_interval_s", 36.0)),
            report_throttle_s=float(d.get("report_throttle_s", 300.0)),
            density_threshold=float(d.get("density_threshold", 0.02)),
            demo_interval_s=float(d.get("demo_interval_s", 5.0)),
            skip_sleep_s=float(d.get("skip_sleep_s", 5.0)),
            sleep_slice_s=float(d.get("sleep_slice_s", 0.1)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "execution_model": self.execution_model,
            "capture_interval_s": self.capture_interval_s,
            "report_throttle_s": self.report_throttle_s,
            "density_threshold": self.density_threshold,
            "demo_interval_s": self.demo_interval_s,
            "skip_sleep_s": self.skip_sleep_s,
            "sleep_slice_s": self.sleep_slice_s,
        }


@dataclass
class FixtureConfig:
    """Replayable fixture source configuration."""
    directory: str = "resources/images/samples"
    site_name: str = "Avenida dos Estados"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FixtureConfig":
        return cls(
            directory=d.get("directory", "resources/images/samples"),
            site_name=d.get("site_name", "Avenida dos Estados"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"directory": self.directory, "site_name": self.site_name}


@dataclass
class LiveConfig:
    """Live camera feed configuration."""
    stream_url: str = ""
    camera_id: str = "655"
    site_name: str = "Avenida dos Estados"
    secrets_file: Optional[str] = None
    probe_timeout_s: float = 3.0
    open_retries: int = 3
    retry_backoff_s: float = 1.0
    read_retries: int = 3
    preview: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LiveConfig":
        return cls(
            stream_url=d.get("stream_url", ""),
            camera_id=str(d.get("camera_id", "655")),
            site_name=d.get("site_name", "Avenida dos Estados"),
            secrets_file=d.get("secrets_file"),
            probe_timeout_s=float(d.get("probe_timeout_s", 3.0)),
            open_retries=int(d.get("open_retries", 3)),
            retry_backoff_s=float(d.get("retry_backoff_s", 1.0)),
            read_retries=int(d.get("read_retries", 3)),
            preview=bool(d.get("preview", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stream_url": self.stream_url,
            "camera_id": self.camera_id,
            "site_name": self.site_name,
            "secrets_file": self.secrets_file,
            "probe_timeout_s": self.probe_timeout_s,
            "open_retries": self.open_retries,
            "retry_backoff_s": self.retry_backoff_s,
            "read_retries": self.read_retries,
            "preview": self.preview,
        }


@dataclass
class DetectionConfig:
    """Detector configuration."""
    backend: str = "darknet"
    config_path: str = "resources/models/yolov3.cfg"
    weights_path: str = "resources/models/yolov3.weights"
    model: str = "yolov8n.pt"
    input_size: int = 416
    conf_threshold: float = 0.5
    nms_threshold: float = 0.4
    vehicle_classes: List[int] = field(default_factory=lambda: list(VEHICLE_CLASS_IDS))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            backend=d.get("backend", "darknet"),
            config_path=d.get("config_path", "resources/models/yolov3.cfg"),
            weights_path=d.get("weights_path", "resources/models/yolov3.weights"),
            model=d.get("model", "yolov8n.pt"),
            input_size=int(d.get("input_size", 416)),
            conf_threshold=float(d.get("conf_threshold", 0.5)),
            nms_threshold=float(d.get("nms_threshold", 0.4)),
            vehicle_classes=[int(c) for c in d.get("vehicle_classes", VEHICLE_CLASS_IDS)],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "config_path": self.config_path,
            "weights_path": self.weights_path,
            "model": self.model,
            "input_size": self.input_size,
            "conf_threshold": self.conf_threshold,
            "nms_threshold": self.nms_threshold,
            "vehicle_classes": list(self.vehicle_classes),
        }


@dataclass
class NotificationConfig:
    """Notifier configuration. Cloud transport settings live in cloud_config.yaml."""
    audit_log_path: str = "logs/notifications.log"
    group_key: str = "traffic-alerts"
    publish_timeout_s: float = 10.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NotificationConfig":
        return cls(
            audit_log_path=d.get("audit_log_path", "logs/notifications.log"),
            group_key=d.get("group_key", "traffic-alerts"),
            publish_timeout_s=float(d.get("publish_timeout_s", 10.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "audit_log_path": self.audit_log_path,
            "group_key": self.group_key,
            "publish_timeout_s": self.publish_timeout_s,
        }


@dataclass
class StorageConfig:
    """Storage configuration."""
    scratch_dir: str = "resources/images"
    ephemeral_dir: Optional[str] = None
    keep_artifacts: bool = False
    database_enabled: bool = True
    local_database_path: str = "data/reports.sqlite"
    retention_days: int = 60
    cleanup_interval_s: float = 3600.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StorageConfig":
        return cls(
            scratch_dir=d.get("scratch_dir", "resources/images"),
            ephemeral_dir=d.get("ephemeral_dir"),
            keep_artifacts=bool(d.get("keep_artifacts", False)),
            database_enabled=bool(d.get("database_enabled", True)),
            local_database_path=d.get("local_database_path", "data/reports.sqlite"),
            retention_days=int(d.get("retention_days", 60)),
            cleanup_interval_s=float(d.get("cleanup_interval_s", 3600.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scratch_dir": self.scratch_dir,
            "ephemeral_dir": self.ephemeral_dir,
            "keep_artifacts": self.keep_artifacts,
            "database_enabled": self.database_enabled,
            "local_database_path": self.local_database_path,
            "retention_days": self.retention_days,
            "cleanup_interval_s": self.cleanup_interval_s,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    run: RunConfig = field(default_factory=RunConfig)
    fixture: FixtureConfig = field(default_factory=FixtureConfig)
    live: LiveConfig = field(default_factory=LiveConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    notification: NotificationConfig = field(default_factory=NotificationConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_path: str = "logs/traffic_density.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            run=RunConfig.from_dict(d.get("run", {}) or {}),
            fixture=FixtureConfig.from_dict(d.get("fixture", {}) or {}),
            live=LiveConfig.from_dict(d.get("live", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            notification=NotificationConfig.from_dict(d.get("notification", {}) or {}),
            storage=StorageConfig.from_dict(d.get("storage", {}) or {}),
            log_path=d.get("log_path", "logs/traffic_density.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": self.run.to_dict(),
            "fixture": self.fixture.to_dict(),
            "live": self.live.to_dict(),
            "detection": self.detection.to_dict(),
            "notification": self.notification.to_dict(),
            "storage": self.storage.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
