"""
Traffic density estimation.

Density is the summed area of the retained vehicle boxes divided by the frame
area. Boxes are neither clipped to the frame nor merged where they overlap,
so the ratio can exceed 1.0 on a packed scene.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from models.detection import BoundingBox, DetectionResult
from models.report import HEAVY_TRAFFIC, LIGHT_TRAFFIC

DEFAULT_DENSITY_THRESHOLD = 0.02


@dataclass(frozen=True)
class DensityEstimate:
    count: int
    ratio: float
    label: str

    @property
    def is_heavy(self) -> bool:
        return self.label == HEAVY_TRAFFIC


class DensityEstimator:
    """Map a set of vehicle boxes to (count, ratio, label)."""

    def __init__(self, threshold: float = DEFAULT_DENSITY_THRESHOLD):
        self.threshold = float(threshold)

    def classify(self, ratio: float) -> str:
        return HEAVY_TRAFFIC if ratio > self.threshold else LIGHT_TRAFFIC

    def estimate(
        self,
        result: Union[DetectionResult, Iterable[BoundingBox]],
        width: int,
        height: int,
    ) -> DensityEstimate:
        """
        Args:
            result: A DetectionResult or an iterable of boxes.
            width: Frame width in pixels.
            height: Frame height in pixels.

        Raises:
            ValueError: If width or height is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame dimensions must be positive, got {width}x{height}")

        boxes = result.boxes if isinstance(result, DetectionResult) else list(result)
        total_area = sum(float(b.w) * float(b.h) for b in boxes)
        ratio = total_area / float(width * height)
        return DensityEstimate(count=len(boxes), ratio=ratio, label=self.classify(ratio))
