"""
Interactive framing preview for the first live acquisition.
"""

from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

CONFIRM_KEYS = {10, 13, 32, ord("c")}  # Enter, Space, c
CANCEL_KEYS = {27, ord("q")}  # Esc, q


class PreviewUnavailable(RuntimeError):
    """Raised when no GUI backend is available (e.g. headless OpenCV build)."""


class PreviewWindow:
    """OpenCV window showing live frames until the operator confirms or cancels."""

    def __init__(self, window_name: str = "Live preview (Enter: confirm, q: cancel)", wait_ms: int = 30):
        self.window_name = window_name
        self.wait_ms = wait_ms

    def show(self, frame: np.ndarray) -> int:
        """Display frame and return the pressed key code (-1 / 255 if none)."""
        try:
            cv2.imshow(self.window_name, frame)
            return cv2.waitKey(self.wait_ms) & 0xFF
        except cv2.error as e:
            raise PreviewUnavailable(str(e)) from e

    def close(self) -> None:
        try:
            cv2.destroyWindow(self.window_name)
        except cv2.error as e:
            logging.debug(f"Preview window already gone: {e}")


def run_preview(cap, window, max_read_failures: int = 3, cancel=None) -> Optional[np.ndarray]:
    """
    Show frames from cap until the operator confirms or cancels.

    Returns:
        The frame on screen when the operator confirmed, or None if the
        preview was cancelled (or the stream stopped producing frames).

    Raises:
        PreviewUnavailable: If frames cannot be displayed at all.
    """
    failures = 0
    try:
        while True:
            if cancel is not None and cancel.is_cancelled():
                return None
            ok, frame = cap.read()
            if not ok or frame is None:
                failures += 1
                if failures > max_read_failures:
                    logging.warning("Preview: stream stopped producing frames")
                    return None
                continue
            failures = 0
            key = window.show(frame)
            if key in CONFIRM_KEYS:
                logging.info("Preview confirmed by operator")
                return frame
            if key in CANCEL_KEYS:
                logging.info("Preview cancelled by operator, skipping this acquisition")
                return None
    finally:
        window.close()
