"""
Tests for frame normalization.
"""

import os

import cv2
import numpy as np

from models.frame import Frame
from preprocessing import Preprocessor, apply_bilateral_filter, apply_clahe_hsv


class TestFilters:
    def test_clahe_preserves_shape_and_dtype(self, sample_image):
        out = apply_clahe_hsv(sample_image)

        assert out.shape == sample_image.shape
        assert out.dtype == np.uint8

    def test_clahe_is_deterministic(self, sample_image):
        np.testing.assert_array_equal(apply_clahe_hsv(sample_image), apply_clahe_hsv(sample_image))

    def test_bilateral_preserves_shape(self, sample_image):
        assert apply_bilateral_filter(sample_image).shape == sample_image.shape


class TestPreprocessor:
    def test_writes_artifact_named_by_site_and_time(self, tmp_path, image_frame):
        scratch = tmp_path / "scratch"
        pre = Preprocessor(str(scratch))

        path = pre.normalize(image_frame)

        assert path == os.path.join(str(scratch), "filtered_image_avenida_dos_estados_1700000000000.png")
        assert os.path.exists(path)
        assert cv2.imread(path).shape == (120, 160, 3)

    def test_source_frame_is_left_in_place(self, tmp_path, image_frame):
        Preprocessor(str(tmp_path / "scratch")).normalize(image_frame)

        assert os.path.exists(image_frame.path)

    def test_empty_frame_returns_none(self, tmp_path):
        pre = Preprocessor(str(tmp_path))

        assert pre.normalize(Frame.empty("x")) is None

    def test_missing_file_returns_none(self, tmp_path):
        frame = Frame(site_name="x", captured_at=1.0, path=str(tmp_path / "gone.jpg"))

        assert Preprocessor(str(tmp_path)).normalize(frame) is None

    def test_unreadable_file_returns_none(self, tmp_path):
        bad = tmp_path / "corrupt.jpg"
        bad.write_bytes(b"not a jpeg")
        frame = Frame(site_name="x", captured_at=1.0, path=str(bad))

        assert Preprocessor(str(tmp_path)).normalize(frame) is None
