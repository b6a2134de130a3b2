"""
Cooperative cancellation for the run loop.

Cancellation is polled, never preemptive. The loop checks a token at the top
of every cycle and between short sleep slices. Front ends attach probes to the
token (console input, OS signals); the loop itself never knows the mechanism.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading
import time
from typing import Callable, List, Optional

CancelProbe = Callable[[], bool]


class CancellationToken:
    """
    A cancel flag plus optional probes that are polled on every check.

    Once any probe reports True, or cancel() is called, the token stays
    cancelled.
    """

    def __init__(self, probes: Optional[List[CancelProbe]] = None):
        self._event = threading.Event()
        self._probes: List[CancelProbe] = list(probes or [])

    def add_probe(self, probe: CancelProbe) -> None:
        self._probes.append(probe)

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        for probe in self._probes:
            try:
                if probe():
                    self._event.set()
                    return True
            except Exception as e:
                logging.warning(f"Cancel probe failed: {e}")
        return False


def sleep_with_cancel(
    token: CancellationToken,
    duration_s: float,
    slice_s: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Sleep for duration_s in slices of at most slice_s, checking the token
    before each slice.

    Returns:
        True if cancellation was observed (the sleep was cut short).
    """
    slice_s = max(0.001, slice_s)
    deadline = clock() + max(0.0, duration_s)
    while True:
        if token.is_cancelled():
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            return False
        sleep(min(slice_s, remaining))


class StdinCancelProbe:
    """
    Non-blocking console peek: cancels when the operator types a line
    (typically "q" + Enter) on an interactive terminal.
    """

    def __init__(self, stream=None):
        self._stream = stream or sys.stdin

    def __call__(self) -> bool:
        if self._stream is None or self._stream.closed or not self._stream.isatty():
            return False

        if sys.platform == "win32":
            import msvcrt
            if msvcrt.kbhit():
                msvcrt.getwch()
                return True
            return False

        import select
        readable, _, _ = select.select([self._stream], [], [], 0)
        if not readable:
            return False
        line = self._stream.readline()
        logging.info(f"Console input received ({line.strip()!r}), stopping")
        return True


def install_signal_handlers(token: CancellationToken) -> None:
    """Translate SIGINT/SIGTERM into token cancellation (main thread only)."""

    def _handler(signum, frame):
        logging.info(f"Received signal {signum}, stopping after current step")
        token.cancel()

    if threading.current_thread() is not threading.main_thread():
        return
    signal.signal(signal.SIGINT, _handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handler)
