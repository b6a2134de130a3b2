"""
Darknet YOLO backend on OpenCV's DNN module (default path).

Loads a pretrained YOLOv3 cfg/weights pair with cv2.dnn and decodes the raw
output layers into candidate detections.
"""

from __future__ import annotations

import logging
import os
from typing import List, Sequence

import cv2
import numpy as np

from models.detection import BoundingBox, Detection
from .backend import InferenceBackend, ModelLoadError

BLOB_SCALE = 0.00392  # 1/255


def output_layer_names(net) -> List[str]:
    """Names of the unconnected output layers (getUnconnectedOutLayers is 1-based)."""
    layer_names = net.getLayerNames()
    indexes = np.array(net.getUnconnectedOutLayers()).flatten()
    return [layer_names[int(i) - 1] for i in indexes]


def decode_darknet_outputs(
    outputs: Sequence[np.ndarray],
    width: int,
    height: int,
    min_confidence: float,
) -> List[Detection]:
    """
    Decode YOLO output rows [cx, cy, w, h, objectness, class scores...].

    Coordinates are relative to the image; boxes are scaled to pixels and
    truncated to integers. Rows whose best class score is below
    min_confidence are dropped.
    """
    detections: List[Detection] = []
    for out in outputs:
        rows = np.asarray(out)
        if rows.ndim != 2 or rows.shape[1] <= 5:
            continue
        for row in rows:
            scores = row[5:]
            class_id = int(np.argmax(scores))
            confidence = float(scores[class_id])
            if confidence < min_confidence:
                continue
            bbox = BoundingBox.from_center(
                row[0] * width,
                row[1] * height,
                row[2] * width,
                row[3] * height,
            )
            detections.append(Detection(bbox=bbox, confidence=confidence, class_id=class_id))
    return detections


class DarknetBackend(InferenceBackend):
    def __init__(self, config_path: str, weights_path: str, input_size: int = 416):
        config_path = os.path.abspath(config_path)
        weights_path = os.path.abspath(weights_path)
        if not os.path.exists(weights_path) or not os.path.exists(config_path):
            raise ModelLoadError(
                f"YOLO model files not found (looking for {weights_path} and {config_path})"
            )

        logging.info(f"Loading YOLO model from: {weights_path} and {config_path}")
        try:
            net = cv2.dnn.readNetFromDarknet(config_path, weights_path)
        except cv2.error as e:
            raise ModelLoadError(f"OpenCV exception during model loading: {e}") from e
        if net.empty():
            raise ModelLoadError("Failed to load YOLO network")

        self._net = net
        self._output_layers = output_layer_names(net)
        self._input_size = input_size
        logging.info("Model loaded successfully.")

    @property
    def output_layers(self) -> List[str]:
        return list(self._output_layers)

    def candidates(self, image: np.ndarray, min_confidence: float) -> List[Detection]:
        height, width = image.shape[:2]
        blob = cv2.dnn.blobFromImage(
            image,
            BLOB_SCALE,
            (self._input_size, self._input_size),
            (0, 0, 0),
            swapRB=True,
            crop=False,
        )
        self._net.setInput(blob)
        outputs = self._net.forward(self._output_layers)
        return decode_darknet_outputs(outputs, width, height, min_confidence)
