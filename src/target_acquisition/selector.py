# selector.py
"""Reduce a contour list to one target and its offset from frame center."""
from typing import List, Sequence, Tuple

import cv2
import numpy as np

from .common import BoundingBox, TargetMetrics

SMOOTHING_EPSILON = 3.0  # px


def smooth_contours(contours: Sequence[np.ndarray]) -> List[np.ndarray]:
    """Closed-polygon approximation of every contour; keeps order and count."""
    return [cv2.approxPolyDP(c, SMOOTHING_EPSILON, True) for c in contours]


def bounding_box(contour: np.ndarray) -> BoundingBox:
    x, y, w, h = cv2.boundingRect(contour)
    return BoundingBox(int(x), int(y), int(w), int(h))


def largest_box(boxes: Sequence[BoundingBox]) -> BoundingBox:
    """First box with the strictly greatest area, in scan order."""
    best = boxes[0]
    for box in boxes[1:]:
        if box.area > best.area:
            best = box
    return best


def select_target(
    contours: Sequence[np.ndarray], frame_size: Tuple[int, int]
) -> TargetMetrics:
    """
    Pick the contour whose bounding box has the greatest area and report
    the box center relative to the frame center.

    ``frame_size`` is ``(width, height)``. Returns ``count=0, x=0, y=0`` when
    nothing was found.
    """
    smooth = smooth_contours(contours)
    count = len(smooth)
    if count == 0:
        return TargetMetrics(count=0, x=0, y=0)

    width, height = frame_size
    half_w, half_h = width // 2, height // 2

    cx, cy = largest_box([bounding_box(c) for c in smooth]).center
    return TargetMetrics(count=count, x=cx - half_w, y=half_h - cy)
