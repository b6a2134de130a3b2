"""
Tests for the typed value models.
"""

import dataclasses

import pytest

from models import (
    BoundingBox,
    Config,
    ConfigError,
    Detection,
    DetectionResult,
    ErrorReport,
    Frame,
    RunConfig,
    iso_utc,
)


class TestFrame:
    def test_empty_frame_keeps_site_label(self):
        frame = Frame.empty("Avenida dos Estados", captured_at=123.0)

        assert frame.is_empty
        assert frame.site_name == "Avenida dos Estados"
        assert frame.captured_at == 123.0
        assert frame.transient is False

    def test_frame_with_path_is_not_empty(self):
        frame = Frame(site_name="x", captured_at=1.0, path="/tmp/a.jpg", transient=True)

        assert not frame.is_empty

    def test_frame_is_frozen(self):
        frame = Frame(site_name="x", captured_at=1.0)

        with pytest.raises(dataclasses.FrozenInstanceError):
            frame.path = "/tmp/b.jpg"


class TestBoundingBox:
    def test_from_center_truncates_like_network_decode(self):
        box = BoundingBox.from_center(100.7, 50.2, 41.9, 20.4)

        assert box.as_int_xywh() == [80, 40, 41, 20]

    def test_area_and_corners(self):
        box = BoundingBox(10, 20, 30, 40)

        assert box.area == 1200
        assert box.x2 == 40
        assert box.y2 == 60

    def test_from_xyxy(self):
        box = BoundingBox.from_xyxy(10, 10, 50, 30)

        assert box.as_xywh() == (10, 10, 40, 20)

    def test_iou_identical_and_disjoint(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(100, 100, 10, 10)

        assert a.iou(a) == pytest.approx(1.0)
        assert a.iou(b) == 0.0

    def test_iou_partial_overlap(self):
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(5, 0, 10, 10)

        # intersection 50, union 150
        assert a.iou(b) == pytest.approx(1 / 3)


class TestDetectionResult:
    def test_count_and_boxes(self):
        dets = [
            Detection(BoundingBox(0, 0, 10, 10), 0.9, 2),
            Detection(BoundingBox(20, 20, 5, 5), 0.7, 7),
        ]
        result = DetectionResult(detections=dets, frame_width=100, frame_height=50)

        assert result.count == 2
        assert [b.area for b in result.boxes] == [100, 25]

    def test_empty_result(self):
        result = DetectionResult()

        assert result.count == 0
        assert result.boxes == []


class TestReports:
    def test_iso_utc_format(self):
        assert iso_utc(0) == "1970-01-01T00:00:00Z"
        assert iso_utc(1700000000) == "2023-11-14T22:13:20Z"

    def test_density_report_text(self, light_report):
        assert light_report.text == (
            "3 vehicles detected with density 0.004883. Condition: Light traffic"
        )
        assert not light_report.is_error
        assert not light_report.is_heavy

    def test_record_fields(self, heavy_report):
        record = heavy_report.to_record()

        assert record == {
            "site_name": "Avenida dos Estados",
            "vehicles_detected": 12,
            "density": 0.0834,
            "condition_traffic": "Heavy traffic",
            "timestamp": 1700000000,
            "timestamp_iso": "2023-11-14T22:13:20Z",
        }

    def test_error_report_text_prefix(self):
        report = ErrorReport(site_name="x", timestamp=1, message="model missing")

        assert report.is_error
        assert report.text.startswith("Error:")


class TestConfigModels:
    def test_defaults(self):
        cfg = Config()

        assert cfg.run.mode == "demo"
        assert cfg.run.execution_model == "interactive"
        assert cfg.run.density_threshold == 0.02
        assert cfg.detection.vehicle_classes == [2, 3, 5, 7]
        assert cfg.notification.group_key == "traffic-alerts"

    def test_from_dict_and_back(self, valid_config):
        cfg = Config.from_dict(valid_config)

        assert cfg.run.report_throttle_s == 300
        assert cfg.live.camera_id == "655"
        assert Config.from_dict(cfg.to_dict()) == cfg

    def test_invalid_mode_raises(self):
        with pytest.raises(ConfigError):
            RunConfig.from_dict({"mode": "replay"})

    def test_invalid_execution_model_raises(self):
        with pytest.raises(ConfigError):
            RunConfig.from_dict({"execution_model": "batch"})

    def test_run_config_flags(self):
        run = RunConfig.from_dict({"mode": "LIVE", "execution_model": "single-shot"})

        assert not run.is_demo
        assert not run.is_interactive
