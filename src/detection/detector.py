"""
Vehicle detector.

The Detector owns the detection policy (confidence threshold, vehicle class
set, overlap suppression); the inference backend only runs the network.

The network is loaded at most once per process through a ModelHandle: the
first detect() call constructs it under a lock and later calls reuse it. This
amortizes the multi-second load across cycles. The loaded network is not
meant for concurrent inference; callers run detect() from a single thread.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Iterable, List, Optional

import cv2
import numpy as np

from inference.backend import InferenceBackend, ModelLoadError
from models.config import ConfigError, DetectionConfig, VEHICLE_CLASS_IDS
from models.detection import Detection, DetectionResult

DEFAULT_CONF_THRESHOLD = 0.5
DEFAULT_NMS_THRESHOLD = 0.4


class DetectorError(RuntimeError):
    """Detection failed for this image (missing model, unreadable image, inference error)."""


class ModelHandle:
    """
    Construct-once, read-many handle to an inference backend.

    get() runs the factory on first use under a lock (double-checked), so the
    backend is built exactly once even if called from several threads. A
    factory failure is not cached: the next get() tries again.
    """

    def __init__(self, factory: Callable[[], InferenceBackend]):
        self._factory = factory
        self._backend: Optional[InferenceBackend] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._backend is not None

    def get(self) -> InferenceBackend:
        """
        Raises:
            ModelLoadError: If the backend could not be constructed.
        """
        if self._backend is None:
            with self._lock:
                if self._backend is None:
                    self._backend = self._factory()
        return self._backend


def suppress_overlaps(
    detections: List[Detection],
    score_threshold: float = DEFAULT_CONF_THRESHOLD,
    nms_threshold: float = DEFAULT_NMS_THRESHOLD,
) -> List[Detection]:
    """
    Non-maximum suppression: among boxes overlapping with IoU >= nms_threshold
    only the highest-confidence one survives.
    """
    if not detections:
        return []
    boxes = [d.bbox.as_int_xywh() for d in detections]
    scores = [float(d.confidence) for d in detections]
    indexes = cv2.dnn.NMSBoxes(boxes, scores, score_threshold, nms_threshold)
    survivors = [detections[int(i)] for i in np.array(indexes).flatten()]

    # NMSBoxes only drops boxes strictly above the threshold; pairs at exactly
    # nms_threshold still collapse.
    kept: List[Detection] = []
    for det in sorted(survivors, key=lambda d: d.confidence, reverse=True):
        if all(det.bbox.iou(k.bbox) < nms_threshold for k in kept):
            kept.append(det)
    return kept


class Detector:
    """
    Example:
        detector = create_detector(DetectionConfig())
        result = detector.detect("resources/images/filtered_image_x_1700000000000.png")
        print(result.count)
    """

    def __init__(
        self,
        handle: ModelHandle,
        conf_threshold: float = DEFAULT_CONF_THRESHOLD,
        nms_threshold: float = DEFAULT_NMS_THRESHOLD,
        vehicle_classes: Iterable[int] = VEHICLE_CLASS_IDS,
        image_loader: Callable[[str], Optional[np.ndarray]] = cv2.imread,
    ):
        self._handle = handle
        self.conf_threshold = conf_threshold
        self.nms_threshold = nms_threshold
        self.vehicle_classes = frozenset(int(c) for c in vehicle_classes)
        self._image_loader = image_loader

    @property
    def handle(self) -> ModelHandle:
        return self._handle

    def filter_candidates(self, candidates: List[Detection]) -> List[Detection]:
        return [
            d for d in candidates
            if d.confidence >= self.conf_threshold and d.class_id in self.vehicle_classes
        ]

    def detect(self, artifact_path: str) -> DetectionResult:
        """
        Raises:
            DetectorError: If the image cannot be loaded, the model cannot be
                loaded, or inference fails.
        """
        if not artifact_path or not os.path.exists(artifact_path):
            raise DetectorError(f"Image not found: {artifact_path}")
        try:
            image = self._image_loader(artifact_path)
        except cv2.error as e:
            raise DetectorError(f"Failed to decode image {artifact_path}: {e}") from e
        if image is None or getattr(image, "size", 0) == 0:
            raise DetectorError(f"Image not found: {artifact_path}")

        try:
            backend = self._handle.get()
        except ModelLoadError as e:
            raise DetectorError(str(e)) from e

        height, width = image.shape[:2]
        try:
            candidates = backend.candidates(image, self.conf_threshold)
        except Exception as e:
            raise DetectorError(f"Inference failed: {e}") from e

        kept = suppress_overlaps(
            self.filter_candidates(candidates),
            score_threshold=self.conf_threshold,
            nms_threshold=self.nms_threshold,
        )
        logging.debug(f"Detected {len(kept)} vehicle(s) in {artifact_path}")
        return DetectionResult(detections=kept, frame_width=width, frame_height=height)


def create_detector(cfg: DetectionConfig) -> Detector:
    """Build a Detector whose backend is loaded lazily on the first detect()."""
    if cfg.backend == "darknet":
        def factory() -> InferenceBackend:
            from inference.darknet_backend import DarknetBackend
            return DarknetBackend(cfg.config_path, cfg.weights_path, input_size=cfg.input_size)
    elif cfg.backend == "ultralytics":
        def factory() -> InferenceBackend:
            from inference.cpu_backend import UltralyticsCpuBackend
            return UltralyticsCpuBackend(
                cfg.model,
                iou_threshold=cfg.nms_threshold,
                classes=cfg.vehicle_classes,
            )
    else:
        raise ConfigError(f"Unknown detection backend: {cfg.backend}")

    return Detector(
        ModelHandle(factory),
        conf_threshold=cfg.conf_threshold,
        nms_threshold=cfg.nms_threshold,
        vehicle_classes=cfg.vehicle_classes,
    )
