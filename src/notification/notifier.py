"""
Alert delivery.

Every report is first rendered to a local audit log. When a transport is
configured the report is also published as a JSON message with a fixed group
key and a per-report deduplication key.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Optional, Protocol

from cloud.utils import build_dedup_key
from models.config import NotificationConfig
from models.report import DensityReport

HEAVY_SUBJECT = "Heavy Traffic Alert"
UPDATE_SUBJECT = "Traffic Update"


class Transport(Protocol):
    def publish(self, subject: str, body: str, group_key: str, dedup_key: str) -> bool:
        ...


def render_report(report: DensityReport) -> str:
    """Human-readable one-line rendering used for the audit log."""
    return f"[{report.timestamp_iso}] {report.site_name}: {report.text}"


def build_message(report: DensityReport) -> str:
    """JSON message body: the external record plus the human-readable text."""
    payload = dict(report.to_record())
    payload["text"] = report.text
    return json.dumps(payload, sort_keys=True)


def subject_for(report: DensityReport) -> str:
    return HEAVY_SUBJECT if report.is_heavy else UPDATE_SUBJECT


class Notifier:
    """Delivers density reports to the audit log and the optional transport."""

    def __init__(self, config: NotificationConfig, transport: Optional[Transport] = None):
        self.config = config
        self.transport = transport

    @property
    def is_local_only(self) -> bool:
        return self.transport is None

    def _append_audit(self, line: str) -> bool:
        path = self.config.audit_log_path
        if not path:
            return True
        try:
            log_dir = os.path.dirname(path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
            return True
        except OSError as e:
            logging.error(f"Failed to write notification audit log {path}: {e}")
            return False

    def deliver(self, report: DensityReport) -> bool:
        """
        Deliver one report.

        Returns:
            True if the report was delivered (locally when no transport is
            configured), False otherwise. Never raises.
        """
        if getattr(report, "is_error", False):
            logging.warning(f"Refusing to notify an error report: {report.text}")
            return False

        line = render_report(report)
        logging.info(f"Notification: {line}")
        audited = self._append_audit(line)

        if self.transport is None:
            return audited

        dedup_key = build_dedup_key(report.site_name, report.timestamp)
        try:
            ok = bool(self.transport.publish(
                subject_for(report),
                build_message(report),
                self.config.group_key,
                dedup_key,
            ))
        except Exception as e:
            logging.error(f"Notification transport failed for {dedup_key}: {e}")
            return False

        if not ok:
            logging.warning(f"Notification {dedup_key} was not delivered")
        return ok
