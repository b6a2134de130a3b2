"""
Ultralytics backend (alternative development path).

Uses Ultralytics if installed. Ultralytics runs its own suppression inside
predict(); the Detector still applies its policy on top so results are
consistent with the Darknet backend.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from models.detection import BoundingBox, Detection
from .backend import InferenceBackend, ModelLoadError


class UltralyticsCpuBackend(InferenceBackend):
    def __init__(self, model: str, iou_threshold: float = 0.4, classes: Optional[Sequence[int]] = None):
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ModelLoadError(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or switch detection.backend to 'darknet'."
            ) from e

        self.iou_threshold = iou_threshold
        self.classes = list(classes) if classes is not None else None
        try:
            self._model = YOLO(model)
        except Exception as e:
            raise ModelLoadError(f"Failed to load Ultralytics model {model}: {e}") from e

    def candidates(self, image: np.ndarray, min_confidence: float) -> List[Detection]:
        results = self._model.predict(
            source=image,
            conf=min_confidence,
            iou=self.iou_threshold,
            classes=self.classes,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

        out: List[Detection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            out.append(
                Detection(
                    bbox=BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2)),
                    confidence=float(c),
                    class_id=class_id,
                    class_name=names.get(class_id),
                )
            )
        return out
