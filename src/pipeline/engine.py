"""
Run loop for the traffic density system.

One cycle walks:

    IDLE -> ACQUIRING -> (SKIPPED | PREPROCESSING) -> DETECTING -> REPORTING
         -> (NOTIFYING | THROTTLED) -> CLEANUP -> IDLE

Under the interactive execution model cycles repeat until the cancellation
token is set; under single-shot exactly one traversal runs. Live interactive
runs gate the expensive analysis path by a per-site throttle. Demo runs have no
throttle and analyse every fixture frame.

No single bad frame, unreachable camera or rejected notification ends the
loop. The only fatal in-loop condition is an empty fixture directory on the
first demo cycle.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Union

from analytics.density import DensityEstimator
from analytics.report import ReportFormatter
from detection.detector import Detector, DetectorError
from models.config import RunConfig
from models.frame import Frame
from models.report import DensityReport, ErrorReport
from notification.notifier import Notifier
from observation.base import FrameSource
from preprocessing.filters import Preprocessor
from runtime.cancellation import CancellationToken, sleep_with_cancel
from runtime.scratch import remove_quietly
from .state import NEVER, NotificationState

EXIT_OK = 0
EXIT_NO_FRAME = 1
EXIT_ERROR = 2


class CycleState(str, Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    SKIPPED = "skipped"
    PREPROCESSING = "preprocessing"
    DETECTING = "detecting"
    REPORTING = "reporting"
    NOTIFYING = "notifying"
    THROTTLED = "throttled"
    CLEANUP = "cleanup"


@dataclass
class CycleOutcome:
    """
    What one cycle did.

    Attributes:
        states: States visited, in order (IDLE excluded).
        frame: The acquired frame (possibly Empty).
        report: The DensityReport or ErrorReport, if one was produced.
        notified: True if the report was delivered.
        exit_code: EXIT_OK, EXIT_NO_FRAME or EXIT_ERROR.
        fatal: True if the loop must stop (empty fixtures on the first demo cycle).
    """
    states: List[CycleState] = field(default_factory=list)
    frame: Optional[Frame] = None
    report: Optional[Union[DensityReport, ErrorReport]] = None
    notified: bool = False
    exit_code: int = EXIT_OK
    fatal: bool = False

    @property
    def skipped(self) -> bool:
        return CycleState.SKIPPED in self.states

    @property
    def throttled(self) -> bool:
        return CycleState.THROTTLED in self.states


class RunLoop:
    """
    Drives the sensing-and-alerting cycle.

    Example:
        loop = RunLoop(source, preprocessor, detector, DensityEstimator(),
                       ReportFormatter(), notifier, config.run, token)
        sys.exit(loop.run())
    """

    def __init__(
        self,
        source: FrameSource,
        preprocessor: Preprocessor,
        detector: Detector,
        estimator: DensityEstimator,
        formatter: ReportFormatter,
        notifier: Notifier,
        run_config: RunConfig,
        cancel: Optional[CancellationToken] = None,
        state: Optional[NotificationState] = None,
        store=None,
        keep_artifacts: bool = False,
        retention_days: Optional[int] = None,
        cleanup_interval_s: float = 3600.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.source = source
        self.preprocessor = preprocessor
        self.detector = detector
        self.estimator = estimator
        self.formatter = formatter
        self.notifier = notifier
        self.config = run_config
        self.cancel = cancel or CancellationToken()
        self.state = state or NotificationState()
        self.store = store
        self.keep_artifacts = keep_artifacts
        self.retention_days = retention_days
        self.cleanup_interval_s = cleanup_interval_s
        self._clock = clock
        self._sleep = sleep
        self._cycles = 0
        self._last_cleanup = NEVER
        self.last_outcome: Optional[CycleOutcome] = None

    @property
    def cycles(self) -> int:
        return self._cycles

    def _throttle_applies(self) -> bool:
        return self.config.is_interactive and not self.config.is_demo

    def _cycle_delay(self, outcome: CycleOutcome) -> float:
        if outcome.skipped:
            return self.config.skip_sleep_s
        if self.config.is_demo:
            return self.config.demo_interval_s
        return self.config.capture_interval_s

    def run(self) -> int:
        """
        Run until cancelled (interactive) or for one cycle (single-shot).

        Returns:
            Process exit code.
        """
        logging.info(
            f"Run loop started: mode={self.config.mode}, "
            f"execution_model={self.config.execution_model}"
        )
        exit_code = EXIT_OK
        try:
            if not self.config.is_interactive:
                return self.run_cycle().exit_code

            while True:
                if self.cancel.is_cancelled():
                    logging.info("Cancellation requested, stopping run loop")
                    break

                outcome = self.run_cycle()
                if outcome.fatal:
                    logging.error("No fixture images available, stopping run loop")
                    exit_code = EXIT_NO_FRAME
                    break

                if sleep_with_cancel(
                    self.cancel,
                    self._cycle_delay(outcome),
                    slice_s=self.config.sleep_slice_s,
                    sleep=self._sleep,
                ):
                    logging.info("Cancellation requested, stopping run loop")
                    break
            return exit_code
        finally:
            try:
                self.source.close()
            except Exception as e:
                logging.warning(f"Error closing source: {e}")
            logging.info(f"Run loop stopped after {self._cycles} cycle(s)")

    def run_cycle(self) -> CycleOutcome:
        """Execute one full traversal of the cycle state machine."""
        first_cycle = self._cycles == 0
        self._cycles += 1
        outcome = CycleOutcome()
        self.last_outcome = outcome
        artifact_path: Optional[str] = None

        outcome.states.append(CycleState.ACQUIRING)
        now = self._clock()
        self._maintain_store(now)
        frame = self.source.acquire()
        outcome.frame = frame
        site = frame.site_name

        if frame.is_empty:
            outcome.states.append(CycleState.SKIPPED)
            outcome.exit_code = EXIT_NO_FRAME
            outcome.fatal = first_cycle and self.config.is_demo and self.source.is_replayable
            logging.warning(f"No frame acquired for {site}, skipping cycle")
            return outcome

        try:
            if self._throttle_applies() and not self.state.should_report(
                site, now, self.config.report_throttle_s
            ):
                outcome.states.append(CycleState.THROTTLED)
                wait = self.state.last_report(site) + self.config.report_throttle_s - now
                logging.info(f"Analysis throttled for {site} ({wait:.0f}s remaining)")
                return outcome

            outcome.states.append(CycleState.PREPROCESSING)
            artifact_path = self.preprocessor.normalize(frame)
            if artifact_path is None:
                logging.error(f"Preprocessing failed for {frame.path}, no report this cycle")
                outcome.exit_code = EXIT_ERROR
                return outcome

            outcome.states.append(CycleState.DETECTING)
            report = self._analyse(artifact_path, site, now)

            outcome.states.append(CycleState.REPORTING)
            outcome.report = report
            logging.info(f"{site}: {report.text}")
            if report.is_error:
                outcome.exit_code = EXIT_ERROR
                return outcome

            report_id = self.store.add_report(report) if self.store is not None else None

            outcome.states.append(CycleState.NOTIFYING)
            if self.notifier.deliver(report):
                self.state.mark_delivered(site, now)
                outcome.notified = True
                if report_id is not None:
                    self.store.mark_notified(report_id)
            else:
                logging.warning(f"Notification for {site} failed, will retry next eligible cycle")
            return outcome
        finally:
            outcome.states.append(CycleState.CLEANUP)
            self._cleanup(frame, artifact_path)

    def _analyse(self, artifact_path: str, site: str, now: float) -> Union[DensityReport, ErrorReport]:
        try:
            result = self.detector.detect(artifact_path)
            estimate = self.estimator.estimate(result, result.frame_width, result.frame_height)
        except (DetectorError, ValueError) as e:
            logging.error(f"Detection failed for {artifact_path}: {e}")
            return self.formatter.format_error(site, now, str(e))
        return self.formatter.format(estimate.count, estimate.ratio, estimate.label, site, now)

    def _maintain_store(self, now: float) -> None:
        """Drop stored reports past the retention period, at most once per cleanup interval."""
        if self.store is None or not self.retention_days:
            return
        if now - self._last_cleanup < self.cleanup_interval_s:
            return
        self.store.cleanup_old_data(retention_days=self.retention_days, now=now)
        self._last_cleanup = now
        logging.info(f"Report store cleanup completed (retention: {self.retention_days} days)")

    def _cleanup(self, frame: Frame, artifact_path: Optional[str]) -> None:
        if frame.transient:
            remove_quietly(frame.path)
        if artifact_path and not self.keep_artifacts:
            remove_quietly(artifact_path)
