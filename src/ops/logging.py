"""
Logging setup.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_path: Optional[str], log_level: str) -> None:
    """
    Configure the root logger with a console handler and, when log_path is
    given and writable, a file handler. A no-op if logging is already set up.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_path:
        try:
            log_dir = os.path.dirname(log_path)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir)
            handlers.insert(0, logging.FileHandler(log_path))
        except OSError as e:
            # Read-only filesystems (serverless) only get console output.
            print(f"File logging disabled ({log_path}): {e}")

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
