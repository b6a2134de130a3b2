"""
Tests for the process entry points (CLI main and serverless handler).
"""

import json
from unittest.mock import MagicMock, patch

import pytest

import main
from models.detection import BoundingBox, Detection, DetectionResult
from detection import DetectorError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("EXECUTION_MODEL", "ENVIRONMENT", "TRAFFIC_MODE", "TRAFFIC_CONFIG"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def runnable_config(temp_config_dir, fixture_dir, tmp_path):
    """Local overrides keeping every output under tmp_path."""
    (temp_config_dir / "config.yaml").write_text(f"""
run:
  demo_interval_s: 0
storage:
  ephemeral_dir: "{(tmp_path / 'ephemeral').as_posix()}"
notification:
  audit_log_path: "{(tmp_path / 'logs' / 'notifications.log').as_posix()}"
""")
    return temp_config_dir / "config.yaml"


def _detector(count=12):
    detector = MagicMock()
    dets = [Detection(BoundingBox(0, 0, 100, 100), 0.9, 2) for _ in range(count)]
    detector.detect.return_value = DetectionResult(detections=dets, frame_width=1280, frame_height=720)
    return detector


class TestHandler:
    def test_demo_single_shot_reports(self, clean_env, runnable_config, tmp_path):
        clean_env.setenv("TRAFFIC_CONFIG", str(runnable_config))

        with patch("main.create_detector", return_value=_detector()):
            response = main.handler({"mode": "demo"}, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["exit_code"] == 0
        assert body["notified"] is True
        assert body["report"]["vehicles_detected"] == 12
        assert body["report"]["condition_traffic"] == "Heavy traffic"
        assert body["message"].startswith("12 vehicles detected")

        audit = (tmp_path / "logs" / "notifications.log").read_text()
        assert "Avenida dos Estados" in audit

    def test_detector_error_maps_to_500(self, clean_env, runnable_config):
        clean_env.setenv("TRAFFIC_CONFIG", str(runnable_config))
        detector = MagicMock()
        detector.detect.side_effect = DetectorError("Inference failed: boom")

        with patch("main.create_detector", return_value=detector):
            response = main.handler({"mode": "demo"}, None)

        assert response["statusCode"] == 500
        body = json.loads(response["body"])
        assert body["error"].startswith("Error:")
        assert body["notified"] is False

    def test_empty_fixtures_map_to_503(self, clean_env, temp_config_dir, tmp_path):
        (tmp_path / "samples").mkdir()
        clean_env.setenv("TRAFFIC_CONFIG", str(temp_config_dir / "config.yaml"))
        (temp_config_dir / "config.yaml").write_text(
            f"storage:\n  ephemeral_dir: \"{(tmp_path / 'ephemeral').as_posix()}\"\n"
        )

        with patch("main.create_detector", return_value=_detector()):
            response = main.handler({"mode": "demo"}, None)

        assert response["statusCode"] == 503

    def test_bad_mode_is_client_error(self, clean_env, runnable_config):
        clean_env.setenv("TRAFFIC_CONFIG", str(runnable_config))

        response = main.handler({"mode": "replay"}, None)

        assert response["statusCode"] == 400
        assert "replay" in json.loads(response["body"])["error"]


class TestMain:
    def test_single_shot_demo_exit_code(self, clean_env, runnable_config):
        with patch("main.create_detector", return_value=_detector(count=2)):
            code = main.main(["demo", "--config", str(runnable_config), "--execution-model", "single-shot"])

        assert code == 0

    def test_unrecognised_env_mode_exits_non_zero(self, clean_env, runnable_config):
        clean_env.setenv("TRAFFIC_MODE", "replay")

        code = main.main(["--config", str(runnable_config), "--execution-model", "single-shot"])

        assert code == main.EXIT_CONFIG_ERROR

    def test_invalid_cli_mode_rejected_by_parser(self, clean_env, runnable_config):
        with pytest.raises(SystemExit):
            main.main(["replay", "--config", str(runnable_config)])
