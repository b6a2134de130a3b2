"""
Typed models for the traffic density application.
"""

from .frame import Frame
from .detection import BoundingBox, Detection, DetectionResult
from .report import DensityReport, ErrorReport, HEAVY_TRAFFIC, LIGHT_TRAFFIC, iso_utc
from .config import (
    Config,
    ConfigError,
    DetectionConfig,
    FixtureConfig,
    LiveConfig,
    NotificationConfig,
    RunConfig,
    StorageConfig,
)

__all__ = [
    # Frame
    "Frame",
    # Detection
    "BoundingBox",
    "Detection",
    "DetectionResult",
    # Reports
    "DensityReport",
    "ErrorReport",
    "HEAVY_TRAFFIC",
    "LIGHT_TRAFFIC",
    "iso_utc",
    # Config
    "Config",
    "ConfigError",
    "DetectionConfig",
    "FixtureConfig",
    "LiveConfig",
    "NotificationConfig",
    "RunConfig",
    "StorageConfig",
]
