"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates, stored as top-left corner plus size.

    Boxes are not clipped to the frame; a decoded box may start at a negative
    coordinate or extend past the frame edge.
    """
    x: float
    y: float
    w: float
    h: float

    @property
    def x2(self) -> float:
        return self.x + self.w

    @property
    def y2(self) -> float:
        return self.y + self.h

    @property
    def area(self) -> float:
        return self.w * self.h

    def as_xywh(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.w, self.h)

    def as_int_xywh(self) -> List[int]:
        """Return as an integer [x, y, w, h] list (the layout cv2.dnn.NMSBoxes expects)."""
        return [int(self.x), int(self.y), int(self.w), int(self.h)]

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        return cls(x=x1, y=y1, w=x2 - x1, h=y2 - y1)

    @classmethod
    def from_center(cls, cx: float, cy: float, w: float, h: float) -> "BoundingBox":
        """Create from a center point and size, truncating to integers like the network decode."""
        w_i = int(w)
        h_i = int(h)
        return cls(x=int(cx) - w_i // 2, y=int(cy) - h_i // 2, w=w_i, h=h_i)

    def iou(self, other: "BoundingBox") -> float:
        ix1 = max(self.x, other.x)
        iy1 = max(self.y, other.y)
        ix2 = min(self.x2, other.x2)
        iy2 = min(self.y2, other.y2)
        inter = max(0.0, ix2 - ix1) * max(0.0, iy2 - iy1)
        union = self.area + other.area - inter
        if union <= 0:
            return 0.0
        return inter / union


@dataclass(frozen=True)
class Detection:
    """
    A single detection from an object detector.

    Attributes:
        bbox: Bounding box in pixel coordinates of the analysed image.
        confidence: Detection confidence score (0-1).
        class_id: Class index from the detector (COCO ids).
        class_name: Optional human-readable class name.
    """
    bbox: BoundingBox
    confidence: float
    class_id: int
    class_name: Optional[str] = None

    @property
    def area(self) -> float:
        return self.bbox.area


@dataclass(frozen=True)
class DetectionResult:
    """
    Vehicle detections for one image, after overlap suppression.

    Attributes:
        detections: Retained detections, ordered by suppression output.
        frame_width: Width of the analysed image in pixels.
        frame_height: Height of the analysed image in pixels.
    """
    detections: List[Detection] = field(default_factory=list)
    frame_width: int = 0
    frame_height: int = 0

    @property
    def count(self) -> int:
        return len(self.detections)

    @property
    def boxes(self) -> List[BoundingBox]:
        return [d.bbox for d in self.detections]
