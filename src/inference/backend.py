"""
Inference backend interface.

Backends run the network and return candidate detections in the pixel space of
the input image. Thresholding by class and overlap suppression are done by the
Detector, not here, so every backend is held to the same policy.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from models.detection import Detection


class ModelLoadError(RuntimeError):
    """Model artifacts are missing or the network could not be constructed."""


class InferenceBackend(Protocol):
    def candidates(self, image: np.ndarray, min_confidence: float) -> List[Detection]:
        ...
