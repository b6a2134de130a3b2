"""
Report formatting.
"""

from __future__ import annotations

from typing import Union

from models.report import DensityReport, ErrorReport, iso_utc


class ReportFormatter:
    """Build the immutable report for one analysed frame."""

    def format(
        self,
        count: int,
        ratio: float,
        label: str,
        site_name: str,
        timestamp: Union[int, float],
    ) -> DensityReport:
        ts = int(timestamp)
        return DensityReport(
            site_name=site_name,
            vehicle_count=int(count),
            density=float(ratio),
            condition=label,
            timestamp=ts,
            timestamp_iso=iso_utc(ts),
        )

    def format_error(self, site_name: str, timestamp: Union[int, float], message: str) -> ErrorReport:
        return ErrorReport(site_name=site_name, timestamp=int(timestamp), message=message)
