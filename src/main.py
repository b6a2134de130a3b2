"""
Traffic density alerting.

Acquires a roadway image (fixture directory in demo mode, camera feed in live
mode), detects vehicles, estimates occupancy density and dispatches a
rate-limited alert.

Usage:
    python src/main.py demo
    python src/main.py live --config config/config.yaml
    python src/main.py live --execution-model single-shot

Arguments:
    mode: demo | live (falls back to $TRAFFIC_MODE, config run.mode, or a prompt)
    --config: Path to configuration file
    --execution-model: interactive | single-shot (falls back to
        $EXECUTION_MODEL, ENVIRONMENT=local -> interactive, then config)

Serverless platforms call handler(event, context), which runs one
single-shot traversal.
"""

import argparse
import json
import logging
import os
import sqlite3
import sys
from typing import Any, Callable, Dict, Optional, Tuple

import yaml

from analytics.density import DensityEstimator
from analytics.report import ReportFormatter
from cloud.publisher import create_publisher
from detection.detector import create_detector
from models.config import (
    Config,
    ConfigError,
    EXECUTION_MODELS,
    INTERACTIVE,
    MODES,
    SINGLE_SHOT,
)
from notification.notifier import Notifier
from observation.factory import create_source_from_config
from observation.stream_utils import inject_stream_credentials, is_http_url
from ops.logging import setup_logging
from pipeline.engine import EXIT_ERROR, EXIT_NO_FRAME, EXIT_OK, RunLoop
from preprocessing.filters import Preprocessor
from runtime.cancellation import CancellationToken, StdinCancelProbe, install_signal_handlers
from runtime.context import RuntimeContext
from runtime.scratch import resolve_scratch_root
from storage.database import Database

DEFAULT_CONFIG_PATH = "config/config.yaml"
EXIT_CONFIG_ERROR = 1
VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


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
        ConfigError: If a config file exists but cannot be parsed.
    """
    config_dir = os.path.dirname(config_path)
    base_path = os.path.join(config_dir, "default.yaml")
    local_overrides_path = os.path.join(config_dir, "config.yaml")
    try:
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load configuration: {e}") from e


def load_cloud_config(config_path: str) -> Optional[Dict[str, Any]]:
    """Load `cloud_config.yaml` next to the config file, if present."""
    cloud_config_path = os.path.join(os.path.dirname(config_path), 'cloud_config.yaml')
    if not os.path.exists(cloud_config_path):
        logging.info("Cloud configuration not found, running in local-only mode")
        return None
    try:
        return _read_yaml(cloud_config_path)
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Error loading cloud configuration: {e}")
        return None


def resolve_execution_model(cli_value: Optional[str], env: Dict[str, str], config_value: Optional[str]) -> str:
    """CLI > $EXECUTION_MODEL > ENVIRONMENT=local (interactive) > config > interactive."""
    if cli_value:
        return cli_value
    if env.get("EXECUTION_MODEL"):
        return env["EXECUTION_MODEL"].strip().lower()
    if env.get("ENVIRONMENT", "").strip().lower() == "local":
        return INTERACTIVE
    return (config_value or INTERACTIVE).lower()


def resolve_mode(
    cli_value: Optional[str],
    env: Dict[str, str],
    config_value: Optional[str],
    prompt: Optional[Callable[[str], str]] = None,
) -> str:
    """
    CLI > $TRAFFIC_MODE > config run.mode > interactive prompt > demo.

    Raises:
        ConfigError: If the resolved mode is not recognised.
    """
    value = cli_value or env.get("TRAFFIC_MODE") or config_value
    if not value and prompt is not None:
        value = prompt("Enter mode (demo/live): ")
    mode = (value or MODES[0]).strip().lower()
    if mode not in MODES:
        raise ConfigError(f"Unrecognised mode {mode!r}; use one of: {', '.join(MODES)}")
    return mode


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['run', 'detection', 'storage', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    run = config.get('run', {}) or {}
    if run.get('mode') not in MODES:
        return False, f"run.mode must be one of: {', '.join(MODES)}"
    if run.get('execution_model') not in EXECUTION_MODELS:
        return False, f"run.execution_model must be one of: {', '.join(EXECUTION_MODELS)}"
    for key in ('capture_interval_s', 'report_throttle_s', 'demo_interval_s', 'skip_sleep_s'):
        if key in run and (not isinstance(run[key], (int, float)) or run[key] < 0):
            return False, f"run.{key} must be a non-negative number"
    if 'sleep_slice_s' in run and (not isinstance(run['sleep_slice_s'], (int, float)) or run['sleep_slice_s'] <= 0):
        return False, "run.sleep_slice_s must be a positive number"
    if 'density_threshold' in run and not isinstance(run['density_threshold'], (int, float)):
        return False, "run.density_threshold must be a number"

    if run['mode'] == 'live':
        live = config.get('live', {}) or {}
        if not live.get('stream_url'):
            return False, "live.stream_url is required in live mode"
        if not isinstance(live['stream_url'], str):
            return False, "live.stream_url must be a string (URL)"
    else:
        fixture = config.get('fixture', {}) or {}
        if not fixture.get('directory'):
            return False, "fixture.directory is required in demo mode"

    detection = config.get('detection', {}) or {}
    backend = detection.get('backend', 'darknet')
    if backend not in ('darknet', 'ultralytics'):
        return False, "detection.backend must be one of: darknet, ultralytics"
    for key in ('conf_threshold', 'nms_threshold'):
        if key in detection:
            value = detection[key]
            if not isinstance(value, (int, float)) or not (0 < value <= 1):
                return False, f"detection.{key} must be between 0 and 1"
    if 'vehicle_classes' in detection:
        classes = detection['vehicle_classes']
        if not isinstance(classes, list) or not all(isinstance(c, int) and c >= 0 for c in classes):
            return False, "detection.vehicle_classes must be a list of non-negative integers"

    storage = config.get('storage', {}) or {}
    if 'local_database_path' in storage and not isinstance(storage['local_database_path'], str):
        return False, "storage.local_database_path must be a string"
    for key in ('retention_days', 'cleanup_interval_s'):
        if key in storage and (not isinstance(storage[key], (int, float)) or storage[key] < 0):
            return False, f"storage.{key} must be a non-negative number"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def prepare_config(
    config_path: str,
    mode: Optional[str] = None,
    execution_model: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    prompt: Optional[Callable[[str], str]] = None,
) -> Dict[str, Any]:
    """
    Load, override and validate the raw configuration.

    Raises:
        ConfigError: If the configuration is unusable.
    """
    env = dict(os.environ) if env is None else env
    raw = load_config(config_path)
    run = raw.setdefault('run', {}) or {}
    raw['run'] = run

    run['execution_model'] = resolve_execution_model(execution_model, env, run.get('execution_model'))
    interactive_prompt = prompt if run['execution_model'] == INTERACTIVE else None
    run['mode'] = resolve_mode(mode, env, run.get('mode'), prompt=interactive_prompt)

    # Handle stream credentials if secrets_file is provided
    if run['mode'] == 'live':
        inject_stream_credentials(raw.setdefault('live', {}))

    is_valid, error_msg = validate_config(raw)
    if not is_valid:
        raise ConfigError(f"Configuration validation failed: {error_msg}")
    return raw


def _open_database(config: Config) -> Optional[Database]:
    if not config.storage.database_enabled:
        return None
    try:
        db = Database(config.storage.local_database_path)
        db.initialize()
        return db
    except (sqlite3.Error, OSError) as e:
        logging.warning(f"Report store unavailable, continuing without it: {e}")
        return None


def build_context(config: Config, cloud_config: Optional[Dict[str, Any]] = None,
                  cancel: Optional[CancellationToken] = None) -> RuntimeContext:
    """Resolve scratch storage and shared services for one run."""
    scratch_root = resolve_scratch_root(config.run.execution_model, config.storage)
    logging.info(f"Scratch directory: {scratch_root}")
    return RuntimeContext(
        config=config,
        scratch_root=scratch_root,
        cancel=cancel or CancellationToken(),
        db=_open_database(config),
        publisher=create_publisher(cloud_config, timeout_s=config.notification.publish_timeout_s),
        cloud_config=cloud_config,
    )


def build_loop(ctx: RuntimeContext) -> RunLoop:
    """Wire the run loop components from the runtime context."""
    config = ctx.config
    source = create_source_from_config(config, ctx.scratch_root, cancel=ctx.cancel)
    return RunLoop(
        source=source,
        preprocessor=Preprocessor(ctx.scratch_root),
        detector=create_detector(config.detection),
        estimator=DensityEstimator(config.run.density_threshold),
        formatter=ReportFormatter(),
        notifier=Notifier(config.notification, transport=ctx.publisher),
        run_config=config.run,
        cancel=ctx.cancel,
        store=ctx.db,
        keep_artifacts=config.storage.keep_artifacts,
        retention_days=config.storage.retention_days,
        cleanup_interval_s=config.storage.cleanup_interval_s,
    )


def main(argv=None) -> int:
    """Main application function."""
    parser = argparse.ArgumentParser(description='Traffic Density Alerting')
    parser.add_argument('mode', nargs='?', choices=MODES,
                        help='demo (fixture images) or live (camera feed)')
    parser.add_argument('--config', type=str, default=DEFAULT_CONFIG_PATH,
                        help='Path to configuration file')
    parser.add_argument('--execution-model', choices=EXECUTION_MODELS, default=None,
                        help='interactive (loop until stopped) or single-shot (one cycle)')
    args = parser.parse_args(argv)

    prompt = input if sys.stdin is not None and sys.stdin.isatty() else None
    try:
        raw = prepare_config(args.config, args.mode, args.execution_model, prompt=prompt)
        config = Config.from_dict(raw)
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        logging.error(str(e))
        return EXIT_CONFIG_ERROR

    setup_logging(config.log_path, config.log_level)
    logging.info(
        f"Starting Traffic Density Alerting: mode={config.run.mode}, "
        f"execution_model={config.run.execution_model}"
    )
    if config.run.mode == 'live' and not is_http_url(config.live.stream_url):
        logging.info("Non-HTTP stream URL, reachability probe disabled")

    cancel = CancellationToken()
    if config.run.is_interactive:
        install_signal_handlers(cancel)
        cancel.add_probe(StdinCancelProbe())
        logging.info("Press Enter (or Ctrl+C) to stop")

    ctx = build_context(config, load_cloud_config(args.config), cancel=cancel)
    try:
        return build_loop(ctx).run()
    finally:
        ctx.close()


def _status_code(exit_code: int) -> int:
    return {EXIT_OK: 200, EXIT_NO_FRAME: 503, EXIT_ERROR: 500}.get(exit_code, 500)


def handler(event, context):
    """
    Serverless entry point: one single-shot traversal.

    The event may carry "mode" (demo|live); otherwise $TRAFFIC_MODE and the
    config decide. The config path comes from $TRAFFIC_CONFIG.
    """
    event = event or {}
    config_path = os.environ.get("TRAFFIC_CONFIG", DEFAULT_CONFIG_PATH)
    try:
        raw = prepare_config(config_path, event.get("mode"), SINGLE_SHOT)
        config = Config.from_dict(raw)
    except ConfigError as e:
        logging.error(str(e))
        return {"statusCode": 400, "body": json.dumps({"error": str(e)})}

    setup_logging(None, config.log_level)
    ctx = build_context(config, load_cloud_config(config_path))
    try:
        loop = build_loop(ctx)
        exit_code = loop.run()
    finally:
        ctx.close()

    body: Dict[str, Any] = {"exit_code": exit_code}
    outcome = loop.last_outcome
    if outcome is not None and outcome.report is not None:
        report = outcome.report
        if report.is_error:
            body["error"] = report.text
        else:
            body["report"] = report.to_record()
            body["message"] = report.text
        body["notified"] = outcome.notified
    return {"statusCode": _status_code(exit_code), "body": json.dumps(body)}


if __name__ == "__main__":
    sys.exit(main())
