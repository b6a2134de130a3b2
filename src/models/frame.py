"""
Frame model for acquired roadway images.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Frame:
    """
    An acquired image labelled with the site it was taken at.

    Attributes:
        site_name: Logical location name (e.g., "Avenida dos Estados").
        captured_at: Unix timestamp when the frame was acquired.
        path: Local path of the persisted image. None when no frame was obtained.
        transient: True when the image was captured by this process and must be
            deleted after the cycle. Fixture images are never transient.
    """
    site_name: str
    captured_at: float
    path: Optional[str] = None
    transient: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.path

    @classmethod
    def empty(cls, site_name: str, captured_at: Optional[float] = None) -> "Frame":
        """An Empty acquisition result that still carries the site label."""
        return cls(
            site_name=site_name,
            captured_at=time.time() if captured_at is None else captured_at,
        )
