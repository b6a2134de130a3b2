"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import cv2
import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import Frame  # noqa: E402
from models.report import DensityReport, iso_utc  # noqa: E402


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text(f"""
run:
  execution_model: interactive
  capture_interval_s: 36
  report_throttle_s: 300
  density_threshold: 0.02

fixture:
  directory: "{(tmp_path / 'samples').as_posix()}"
  site_name: "Avenida dos Estados"

live:
  stream_url: "https://cameras.example.com/coi04/ID_655"
  camera_id: "655"
  site_name: "Avenida dos Estados"

detection:
  backend: "darknet"
  conf_threshold: 0.5
  nms_threshold: 0.4

storage:
  scratch_dir: "{(tmp_path / 'scratch').as_posix()}"
  local_database_path: "{(tmp_path / 'data' / 'test.sqlite').as_posix()}"

log_path: "{(tmp_path / 'logs' / 'test.log').as_posix()}"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "run": {
            "mode": "demo",
            "execution_model": "interactive",
            "capture_interval_s": 36,
            "report_throttle_s": 300,
            "density_threshold": 0.02,
        },
        "fixture": {
            "directory": "resources/images/samples",
            "site_name": "Avenida dos Estados",
        },
        "live": {
            "stream_url": "https://cameras.example.com/coi04/ID_655",
            "camera_id": "655",
        },
        "detection": {
            "backend": "darknet",
            "conf_threshold": 0.5,
            "nms_threshold": 0.4,
            "vehicle_classes": [2, 3, 5, 7],
        },
        "storage": {
            "local_database_path": "data/test.sqlite",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def sample_image():
    """A small synthetic BGR road-like image."""
    image = np.full((120, 160, 3), 90, dtype=np.uint8)
    cv2.rectangle(image, (20, 40), (60, 70), (0, 0, 200), -1)
    cv2.rectangle(image, (90, 50), (140, 90), (200, 200, 0), -1)
    return image


@pytest.fixture
def fixture_dir(tmp_path, sample_image):
    """Directory with three fixture images (written out of order)."""
    directory = tmp_path / "samples"
    directory.mkdir()
    for name in ("c.jpg", "a.jpg", "b.png"):
        cv2.imwrite(str(directory / name), sample_image)
    (directory / "notes.txt").write_text("not an image")
    return directory


@pytest.fixture
def image_frame(tmp_path, sample_image):
    """A transient frame persisted on disk."""
    path = tmp_path / "screenshot_655_1700000000.jpg"
    cv2.imwrite(str(path), sample_image)
    return Frame(site_name="Avenida dos Estados", captured_at=1700000000.0, path=str(path), transient=True)


@pytest.fixture
def heavy_report():
    return DensityReport(
        site_name="Avenida dos Estados",
        vehicle_count=12,
        density=0.0834,
        condition="Heavy traffic",
        timestamp=1700000000,
        timestamp_iso=iso_utc(1700000000),
    )


@pytest.fixture
def light_report():
    return DensityReport(
        site_name="Avenida dos Estados",
        vehicle_count=3,
        density=0.004883,
        condition="Light traffic",
        timestamp=1700000036,
        timestamp_iso=iso_utc(1700000036),
    )
