from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.config import Config
from runtime.cancellation import CancellationToken


@dataclass
class RuntimeContext:
    """Holds startup-resolved settings and shared services; avoids global singletons."""

    config: Config
    scratch_root: str
    cancel: CancellationToken = field(default_factory=CancellationToken)
    db: Any = None
    publisher: Any = None
    cloud_config: Optional[Dict[str, Any]] = None

    @property
    def is_interactive(self) -> bool:
        return self.config.run.is_interactive

    def close(self) -> None:
        if self.db is not None:
            try:
                self.db.close()
            except Exception as e:
                logging.warning(f"Error closing database: {e}")
            self.db = None
