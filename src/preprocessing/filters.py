"""
Frame normalization before detection.

Contrast equalization (CLAHE on the HSV value channel) followed by an
edge-preserving bilateral filter. The normalized image is written next to the
other scratch files; the source frame is left in place.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import cv2
import numpy as np

from models.frame import Frame
from runtime.scratch import site_slug

CLAHE_CLIP_LIMIT = 2.0
CLAHE_TILE_GRID = (8, 8)
BILATERAL_DIAMETER = 9
BILATERAL_SIGMA_COLOR = 75
BILATERAL_SIGMA_SPACE = 75


def apply_clahe_hsv(frame: np.ndarray) -> np.ndarray:
    """Equalize contrast on the V channel only, keeping hue and saturation."""
    hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)
    h, s, v = cv2.split(hsv)
    clahe = cv2.createCLAHE(clipLimit=CLAHE_CLIP_LIMIT, tileGridSize=CLAHE_TILE_GRID)
    v = clahe.apply(v)
    return cv2.cvtColor(cv2.merge((h, s, v)), cv2.COLOR_HSV2BGR)


def apply_bilateral_filter(frame: np.ndarray) -> np.ndarray:
    return cv2.bilateralFilter(frame, BILATERAL_DIAMETER, BILATERAL_SIGMA_COLOR, BILATERAL_SIGMA_SPACE)


class Preprocessor:
    """
    Deterministic frame normalizer.

    Example:
        pre = Preprocessor(scratch_root="resources/images")
        artifact = pre.normalize(frame)  # path, or None if the frame is unreadable
    """

    def __init__(self, scratch_root: str):
        self.scratch_root = scratch_root

    def artifact_path(self, frame: Frame) -> str:
        """Output path keyed by site label and capture time (ms) to avoid collisions."""
        stamp = int(frame.captured_at * 1000)
        return os.path.join(
            self.scratch_root,
            f"filtered_image_{site_slug(frame.site_name)}_{stamp}.png",
        )

    def normalize(self, frame: Frame) -> Optional[str]:
        if frame.is_empty:
            logging.warning(f"No frame to preprocess for {frame.site_name}")
            return None
        if not os.path.exists(frame.path):
            logging.error(f"Image not found: {frame.path}")
            return None

        image = cv2.imread(frame.path)
        if image is None or image.size == 0:
            logging.error(f"Failed to load image: {frame.path}")
            return None

        result = apply_bilateral_filter(apply_clahe_hsv(image))

        os.makedirs(self.scratch_root, exist_ok=True)
        path = self.artifact_path(frame)
        if not cv2.imwrite(path, result):
            logging.error(f"Failed to write preprocessed image: {path}")
            return None
        logging.debug(f"Preprocessed {frame.path} -> {path}")
        return path
