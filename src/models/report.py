"""
Report models produced once per analysed frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

HEAVY_TRAFFIC = "Heavy traffic"
LIGHT_TRAFFIC = "Light traffic"

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def iso_utc(epoch_seconds: int) -> str:
    """Format epoch seconds as a UTC ISO-8601 string (YYYY-MM-DDTHH:MM:SSZ)."""
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).strftime(ISO_FORMAT)


@dataclass(frozen=True)
class DensityReport:
    """
    Immutable traffic density report for one site at one instant.

    Attributes:
        site_name: Logical location name.
        vehicle_count: Number of vehicles retained after suppression.
        density: Vehicle box area over frame area. Not clipped to [0, 1].
        condition: HEAVY_TRAFFIC or LIGHT_TRAFFIC.
        timestamp: Epoch seconds.
        timestamp_iso: UTC timestamp, "YYYY-MM-DDTHH:MM:SSZ".
    """
    site_name: str
    vehicle_count: int
    density: float
    condition: str
    timestamp: int
    timestamp_iso: str

    is_error = False

    @property
    def is_heavy(self) -> bool:
        return self.condition == HEAVY_TRAFFIC

    @property
    def text(self) -> str:
        return (
            f"{self.vehicle_count} vehicles detected with density "
            f"{self.density:.6f}. Condition: {self.condition}"
        )

    def to_record(self) -> Dict[str, Any]:
        """The persisted, consumer-facing record."""
        return {
            "site_name": self.site_name,
            "vehicles_detected": self.vehicle_count,
            "density": self.density,
            "condition_traffic": self.condition,
            "timestamp": self.timestamp,
            "timestamp_iso": self.timestamp_iso,
        }


@dataclass(frozen=True)
class ErrorReport:
    """A degenerate report carried through the loop instead of an exception."""
    site_name: str
    timestamp: int
    message: str

    is_error = True

    @property
    def text(self) -> str:
        return f"Error: {self.message}"
