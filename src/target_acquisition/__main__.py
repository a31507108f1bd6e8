# __main__.py
"""
Entry-point for the onboard target-acquisition service.

Usage::

    python -m target_acquisition [config.json]

Without an argument ``/boot/vision.json`` is read if present, otherwise the
built-in defaults are used. Images are logged only if the configured log
directory (``/mnt/log/img`` by default) exists when the service starts.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_CONFIG_PATH, ConfigError, load_config
from .processor import TargetingProcessor


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv if argv is None else argv

    if len(argv) >= 2:
        config_path: Optional[str] = argv[1]
    elif Path(DEFAULT_CONFIG_PATH).exists():
        config_path = DEFAULT_CONFIG_PATH
    else:
        print(f"[Config] {DEFAULT_CONFIG_PATH} not found – using defaults")
        config_path = None

    try:
        cfg = load_config(config_path)
    except ConfigError as exc:
        print(f"[Config] {exc}", file=sys.stderr)
        return 1

    # ------------------------ Banner ----------------------
    cam, log, pub = cfg.camera, cfg.logging, cfg.publisher
    print(
        f"Camera: '{cam.name}' idx={cam.device_index}, "
        f"{cam.width}x{cam.height}@{cam.fps_request} FPS"
    )
    print(f"Logging: dir={log.log_dir}, every {log.every_n} frames")
    if pub.serial_port:
        print(f"Publisher: serial {pub.serial_port} @ {pub.baudrate}")
    else:
        print("Publisher: in-memory table")

    # ------------------------ Run -------------------------
    if not TargetingProcessor(cfg).run():
        print("[Processor] Setup failed", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
