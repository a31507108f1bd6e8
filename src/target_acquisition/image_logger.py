# image_logger.py
"""Background writer that persists sampled frames with restart-safe numbering."""
from __future__ import annotations

import re
import sys
import threading
from pathlib import Path
from typing import Callable, Optional

import cv2
import numpy as np

from .common import LogEntry
from .frame_log import FrameLogQueue

INDEX_WIDTH = 5

ImageWriter = Callable[[str, np.ndarray], bool]


class ImageLogger:
    """
    Drains a :class:`FrameLogQueue` to ``log_dir`` on its own thread.

    Logging is enabled only when ``log_dir`` exists at construction time.
    On start the logger skips every index already present on disk, so a
    restart continues the sequence instead of overwriting earlier images.
    """

    def __init__(
        self,
        log_dir: str | Path,
        log_queue: FrameLogQueue,
        prefix: str = "image",
        suffix: str = ".jpg",
        writer: ImageWriter = cv2.imwrite,
    ):
        self.log_dir = Path(log_dir)
        self.queue = log_queue
        self.prefix = prefix
        self.suffix = suffix
        self.writer = writer
        self.enabled = self.log_dir.is_dir()

        self.index = 1
        self.written = 0
        self.failed = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._name_re = re.compile(
            rf"^{re.escape(prefix)}-?(?:\d+-)?(\d+){re.escape(suffix)}$"
        )

    # --------------- Naming ---------------------
    def image_name(self, index: int, contour_count: int) -> str:
        return f"{self.prefix}-{contour_count}-{index:0{INDEX_WIDTH}d}{self.suffix}"

    def first_free_index(self) -> int:
        """
        One past the highest index on disk (1 for an empty directory).

        Failed writes leave holes in the sequence, so the lowest unused index
        may sit below images from an earlier run. Accepts
        ``image-<count>-<index>``, ``image-<index>`` and ``image<index>``.
        """
        used = [
            int(m.group(1))
            for m in map(self._name_re.match, (p.name for p in self.log_dir.iterdir()))
            if m
        ]
        return max(used, default=0) + 1

    # --------------- Writing --------------------
    def write_one(self, entry: LogEntry) -> bool:
        """Write one entry; the index advances even when the write fails."""
        path = self.log_dir / self.image_name(self.index, entry.contour_count)
        self.index += 1
        try:
            ok = bool(self.writer(str(path), entry.frame))
        except (cv2.error, OSError) as exc:
            print(f"[ImageLogger] Write error for {path.name}: {exc}", file=sys.stderr)
            ok = False
        else:
            if not ok:
                print(f"[ImageLogger] Could not write {path.name}", file=sys.stderr)

        if ok:
            self.written += 1
        else:
            self.failed += 1
        return ok

    def run_forever(self) -> None:
        if not self.enabled:
            return
        self.index = self.first_free_index()
        print(f"[ImageLogger] Logging images to {self.log_dir}, starting at {self.index}")
        while not self._stop.is_set():
            entry = self.queue.shift()
            self.write_one(entry)

    # --------------- Thread control -------------
    def start(self) -> Optional[threading.Thread]:
        print("[ImageLogger] Image logger started")
        if not self.enabled:
            print(f"[ImageLogger] {self.log_dir} not found – image logging disabled")
            return None
        self._thread = threading.Thread(
            target=self.run_forever, name="image-logger", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """Ask the loop to exit after the entry it is currently waiting for."""
        self._stop.set()
