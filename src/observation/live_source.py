"""
Live camera feed source.

Pulls one frame per acquire() from a remote feed using cv2.VideoCapture:
- cheap reachability probe (HEAD with a bounded timeout) for HTTP feeds
- bounded open retries with a fixed backoff
- one-time interactive preview on the first successful open
- bounded read retries on transient empty frames

The captured frame is written to the scratch root and marked transient so the
run loop deletes it once the cycle is done.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Callable, Optional

import cv2
import numpy as np
import requests

from models.config import LiveConfig
from models.frame import Frame
from .base import FrameSource
from .preview import PreviewUnavailable, run_preview
from .stream_utils import is_http_url, sanitize_url


class LiveSource(FrameSource):
    """
    Remote camera feed source.

    Example:
        source = LiveSource(LiveConfig(stream_url="https://..."), scratch_root="/tmp/traffic_density")
        frame = source.acquire()
        if frame.is_empty:
            ...  # skip this cycle
    """

    def __init__(
        self,
        config: LiveConfig,
        scratch_root: str,
        interactive: bool = False,
        preview_window: Any = None,
        capture_factory: Callable[[str], Any] = cv2.VideoCapture,
        http_head: Callable[..., Any] = requests.head,
        sleep: Callable[[float], None] = time.sleep,
        cancel: Any = None,
    ):
        super().__init__(config.site_name)
        self._config = config
        self._scratch_root = scratch_root
        self._interactive = interactive
        self._preview_window = preview_window
        self._capture_factory = capture_factory
        self._http_head = http_head
        self._sleep = sleep
        self._cancel = cancel
        self._preview_done = False

    @property
    def stream_url(self) -> str:
        return self._config.stream_url

    @property
    def preview_pending(self) -> bool:
        """Whether the next successful open will show the preview."""
        return (
            self._interactive
            and self._config.preview
            and self._preview_window is not None
            and not self._preview_done
        )

    def probe(self) -> bool:
        """
        Cheap reachability check before opening the stream.

        Non-HTTP feeds (e.g. RTSP) cannot be probed this way and are assumed
        reachable; the open retries handle them.
        """
        if not is_http_url(self.stream_url):
            return True
        try:
            resp = self._http_head(
                self.stream_url,
                timeout=self._config.probe_timeout_s,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logging.warning(f"Camera unreachable ({sanitize_url(self.stream_url)}): {e}")
            return False
        # 405: feed does not support HEAD but the host answered
        if resp.status_code < 400 or resp.status_code == 405:
            return True
        logging.warning(
            f"Camera probe returned HTTP {resp.status_code} for {sanitize_url(self.stream_url)}"
        )
        return False

    def acquire(self) -> Frame:
        if not self.stream_url:
            logging.error("No live stream URL configured")
            return Frame.empty(self.site_name)

        logging.info(f"[LIVE] Capturing image from {sanitize_url(self.stream_url)}")
        if not self.probe():
            return Frame.empty(self.site_name)

        cap = self._open()
        if cap is None:
            return Frame.empty(self.site_name)

        try:
            if self.preview_pending:
                image = self._preview(cap)
                if image is None:
                    return Frame.empty(self.site_name)
            else:
                image = self._read(cap)
            if image is None:
                logging.error("Unable to retrieve frame")
                return Frame.empty(self.site_name)
            return self._persist(image)
        finally:
            cap.release()

    def _open(self) -> Optional[Any]:
        """Open the stream with a bounded number of attempts and a fixed backoff."""
        attempts = max(1, self._config.open_retries)
        for attempt in range(1, attempts + 1):
            cap = self._capture_factory(self.stream_url)
            if cap is not None and cap.isOpened():
                try:
                    cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
                except cv2.error as e:
                    logging.debug(f"Could not set capture buffer size: {e}")
                return cap
            if cap is not None:
                cap.release()
            if attempt < attempts:
                logging.warning(
                    f"Failed to open stream {sanitize_url(self.stream_url)} "
                    f"(attempt {attempt}/{attempts}), retrying in {self._config.retry_backoff_s}s"
                )
                self._sleep(self._config.retry_backoff_s)
        logging.error(
            f"Unable to open video stream {sanitize_url(self.stream_url)} after {attempts} attempts"
        )
        return None

    def _read(self, cap: Any) -> Optional[np.ndarray]:
        """Read one frame, retrying a bounded number of times on empty frames."""
        attempts = 1 + max(0, self._config.read_retries)
        for attempt in range(1, attempts + 1):
            ok, frame = cap.read()
            if ok and frame is not None and frame.size > 0:
                return frame
            logging.warning(f"Empty frame from stream (attempt {attempt}/{attempts})")
        return None

    def _preview(self, cap: Any) -> Optional[np.ndarray]:
        self._preview_done = True
        try:
            return run_preview(
                cap,
                self._preview_window,
                max_read_failures=self._config.read_retries,
                cancel=self._cancel,
            )
        except PreviewUnavailable as e:
            logging.warning(f"Preview unavailable ({e}), continuing without it")
            return self._read(cap)

    def _persist(self, image: np.ndarray) -> Frame:
        captured_at = time.time()
        os.makedirs(self._scratch_root, exist_ok=True)
        filename = f"screenshot_{self._config.camera_id}_{int(captured_at)}.jpg"
        path = os.path.join(self._scratch_root, filename)
        if not cv2.imwrite(path, image):
            logging.error(f"Failed to write captured frame to {path}")
            return Frame.empty(self.site_name, captured_at)
        logging.info(f"Saved: {path}")
        return Frame(
            site_name=self.site_name,
            captured_at=captured_at,
            path=path,
            transient=True,
        )
