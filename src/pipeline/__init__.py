"""
Pipeline module for the traffic density system.

The run loop orchestrates the full processing flow:
- Frame acquisition from a frame source
- Preprocessing and vehicle detection
- Density estimation and report formatting
- Report storage and throttled notification
"""

from .engine import EXIT_ERROR, EXIT_NO_FRAME, EXIT_OK, CycleOutcome, CycleState, RunLoop
from .state import NotificationState

__all__ = [
    "CycleOutcome",
    "CycleState",
    "EXIT_ERROR",
    "EXIT_NO_FRAME",
    "EXIT_OK",
    "NotificationState",
    "RunLoop",
]
