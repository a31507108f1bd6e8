# publisher.py
"""Key/value tables the control loop reads target metrics from."""
from __future__ import annotations

import sys
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol

import serial

from .common import TargetMetrics

KEY_FOUND = "Found"
KEY_X = "X"
KEY_Y = "Y"


class MetricsTable(Protocol):
    def put_number(self, key: str, value: float) -> None:
        ...


def publish_metrics(table: MetricsTable, metrics: TargetMetrics) -> None:
    table.put_number(KEY_FOUND, metrics.count)
    table.put_number(KEY_X, metrics.x)
    table.put_number(KEY_Y, metrics.y)


class MemoryTable:
    """In-process table; readers on other threads see the latest values."""

    def __init__(self, name: str = "Vision"):
        self.name = name
        self._values: Dict[str, float] = {}
        self._lock = threading.Lock()

    def put_number(self, key: str, value: float) -> None:
        with self._lock:
            self._values[key] = value

    def get_number(self, key: str, default: Optional[float] = None) -> Optional[float]:
        with self._lock:
            return self._values.get(key, default)

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._values)


# ------------------ Internal dataclass -------------------
@dataclass(slots=True)
class _SerialCfg:
    port: str
    baudrate: int = 115_200
    timeout: float = 0.1


class SerialTable:
    """
    Streams ``<table>/<key>=<value>`` ASCII lines to the robot controller.

    A serial error drops that single update; the next frame publishes fresh
    values anyway, so there is nothing to retry.
    """

    def __init__(
        self,
        port: str | Path,
        baudrate: int = 115_200,
        timeout: float = 0.1,
        *,
        table: str = "Vision",
        eol: str = "\n",
    ):
        self._cfg = _SerialCfg(str(port), baudrate, timeout)
        self.table = table
        self._eol = eol
        self._ser: Optional[serial.Serial] = None
        self._lock = threading.Lock()

    # ---------------- Serial plumbing ----------------
    def open(self) -> None:
        if self._ser and self._ser.is_open:
            return
        self._ser = serial.Serial(
            port=self._cfg.port,
            baudrate=self._cfg.baudrate,
            timeout=self._cfg.timeout,
            write_timeout=self._cfg.timeout,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
        )
        time.sleep(0.2)
        print(f"[Serial] Publishing '{self.table}' on {self._cfg.port} @ {self._cfg.baudrate}")

    def close(self) -> None:
        if self._ser and self._ser.is_open:
            self._ser.close()

    def is_open(self) -> bool:
        return bool(self._ser and self._ser.is_open)

    def __enter__(self) -> "SerialTable":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- Table API ----------------------
    def format_line(self, key: str, value: float) -> bytes:
        if float(value).is_integer():
            value = int(value)
        return f"{self.table}/{key}={value}{self._eol}".encode("ascii")

    def put_number(self, key: str, value: float) -> None:
        if not self.is_open():
            return
        line = self.format_line(key, value)
        with self._lock:
            try:
                self._ser.write(line)
            except serial.SerialException as exc:
                print(f"[Serial] Write error ({key}): {exc}", file=sys.stderr)
