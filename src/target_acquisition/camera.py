# camera.py
"""A thin wrapper around cv2.VideoCapture with reconnection logic."""
import sys
import time
from typing import Optional

import cv2
import numpy as np

from .config import CameraConfig


class Camera:
    """Frame source for the vision runner.

    ``grab_frame`` blocks until the driver hands back a frame. A failed read
    returns ``None`` so the caller can skip that iteration. A lost device is
    reopened right away ``max_reopens`` times; after that every further
    attempt first waits ``reopen_backoff_s``, so a dead camera stalls the
    caller instead of spinning it.
    """

    def __init__(self, config: CameraConfig):
        self.config = config
        self.cap: Optional[cv2.VideoCapture] = None
        self.reopens = 0

        # Exposed runtime values
        self.actual_width = 0
        self.actual_height = 0
        self.actual_fps = 0.0
        self.actual_fourcc_str = ""

    # --------------- Internal helpers ---------------
    @staticmethod
    def _get_fourcc_str(fourcc_val: int) -> str:
        if fourcc_val == 0:
            return ""
        return "".join(chr((fourcc_val >> (8 * i)) & 0xFF) for i in range(4))

    def _connect(self) -> Optional[cv2.VideoCapture]:
        cfg = self.config
        cap = (
            cv2.VideoCapture(cfg.device_index, cv2.CAP_V4L2)
            if cfg.use_v4l2
            else cv2.VideoCapture(cfg.device_index)
        )
        if not cap or not cap.isOpened():
            return None

        requested = [
            (cv2.CAP_PROP_FRAME_WIDTH, cfg.width),
            (cv2.CAP_PROP_FRAME_HEIGHT, cfg.height),
        ]
        if cfg.fourcc_str:
            requested.insert(0, (cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*cfg.fourcc_str)))
        if cfg.fps_request > 0:
            requested.append((cv2.CAP_PROP_FPS, cfg.fps_request))
        for prop, value in requested:
            cap.set(prop, value)
        return cap

    def _negotiated(self) -> None:
        """Read back the mode the driver actually granted."""
        self.actual_fourcc_str = self._get_fourcc_str(int(self.cap.get(cv2.CAP_PROP_FOURCC)))
        self.actual_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.actual_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.actual_fps = self.cap.get(cv2.CAP_PROP_FPS)

    def _recover(self) -> None:
        if self.reopens < self.config.max_reopens:
            self.reopens += 1
            print(
                f"[Camera] '{self.config.name}' lost, reopen attempt "
                f"{self.reopens}/{self.config.max_reopens}",
                file=sys.stderr,
            )
        else:
            time.sleep(self.config.reopen_backoff_s)
        if self.open():
            self.reopens = 0

    # --------------- Public API ---------------------
    def open(self) -> bool:
        print(f"[Camera] Starting camera '{self.config.name}' on device {self.config.device_index}")
        self.cap = self._connect()
        if self.cap is None:
            print(f"[Camera] Could not open device {self.config.device_index}", file=sys.stderr)
            return False

        time.sleep(0.1)  # Let driver settle
        self._negotiated()
        print(
            f"[Camera] {self.actual_width}x{self.actual_height}@{self.actual_fps:.1f} FPS "
            f"(FOURCC='{self.actual_fourcc_str}')"
        )
        if self.actual_width == 0 or self.actual_height == 0:
            print("[Camera] Error: camera returned zero resolution", file=sys.stderr)
            self.release()
            return False
        return True

    def grab_frame(self) -> Optional[np.ndarray]:
        if not self.is_opened():
            self._recover()
            return None
        ret, frame = self.cap.read()
        if not ret or frame is None:
            if not self.is_opened():
                self._recover()
            return None
        return frame

    def is_opened(self) -> bool:
        return bool(self.cap and self.cap.isOpened())

    def release(self) -> None:
        if self.cap:
            print("[Camera] Releasing capture device")
            self.cap.release()
            self.cap = None
