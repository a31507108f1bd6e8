"""Pytest configuration and shared fixtures for target_acquisition tests."""

import numpy as np
import pytest

from target_acquisition.config import LoggingConfig, VisionConfig


def _rect_contour(x, y, w, h):
    """Contour whose cv2.boundingRect is exactly (x, y, w, h)."""
    x2, y2 = x + w - 1, y + h - 1
    return np.array([[[x, y]], [[x2, y]], [[x2, y2]], [[x, y2]]], dtype=np.int32)


@pytest.fixture
def rect_contour():
    return _rect_contour


@pytest.fixture
def frame():
    """Blank 640x480 BGR frame."""
    return np.zeros((480, 640, 3), dtype=np.uint8)


@pytest.fixture
def log_dir(tmp_path):
    d = tmp_path / "img"
    d.mkdir()
    return d


@pytest.fixture
def make_config():
    def _make(log_dir, every_n=90):
        return VisionConfig(logging=LoggingConfig(log_dir=str(log_dir), every_n=every_n))
    return _make
