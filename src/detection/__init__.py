"""
Vehicle detection.

The Detector applies a fixed policy (confidence, vehicle classes, overlap
suppression) on top of a lazily loaded inference backend.
"""

from .detector import Detector, DetectorError, ModelHandle, create_detector, suppress_overlaps

__all__ = ["Detector", "DetectorError", "ModelHandle", "create_detector", "suppress_overlaps"]
