from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import hid


REPORT_SIZE = 64


@dataclass(frozen=True)
class HidDeviceInfo:
    path: bytes
    vendor_id: int
    product_id: int
    product_name: str
    serial_number: str


class MustangHid:
    """Raw hidapi access to a Fender Mustang amplifier.

    - Lists attached devices matching `vendor_id` (and `product_id` if given).
    - Opens the first match.
    - Writes and reads fixed 64-byte reports.

    Notes on hidapi:
    - `write()` expects the report id as the first byte; the Mustang uses
      unnumbered reports, so a 0x00 is prepended here.
    - `read()` returns an empty list when `timeout_ms` expires.
    """

    def __init__(self, vendor_id: int, product_id: int | None = None) -> None:
        self.vendor_id = vendor_id
        self.product_id = product_id
        self._dev: Any = None
        self._info: HidDeviceInfo | None = None

    @property
    def is_open(self) -> bool:
        return self._dev is not None

    @property
    def info(self) -> HidDeviceInfo | None:
        return self._info

    def list_devices(self) -> list[HidDeviceInfo]:
        devices: list[HidDeviceInfo] = []
        for d in hid.enumerate(self.vendor_id, self.product_id or 0):
            if d.get("vendor_id") != self.vendor_id:
                continue
            if self.product_id is not None and d.get("product_id") != self.product_id:
                continue
            devices.append(
                HidDeviceInfo(
                    path=d.get("path", b""),
                    vendor_id=d.get("vendor_id", 0),
                    product_id=d.get("product_id", 0),
                    product_name=d.get("product_string") or "",
                    serial_number=d.get("serial_number") or "",
                )
            )
        return devices

    def open(self) -> HidDeviceInfo:
        """Open the first matching device and return its info."""

        devices = self.list_devices()
        if not devices:
            raise RuntimeError(f"No HID device with vendor id 0x{self.vendor_id:04X} found")

        info = devices[0]
        dev = hid.device()
        dev.open_path(info.path)
        self._dev = dev
        self._info = info
        return info

    def close(self) -> None:
        if self._dev is not None:
            self._dev.close()
            self._dev = None
            self._info = None

    def write(self, report: Sequence[int] | bytes | bytearray) -> int:
        if self._dev is None:
            raise RuntimeError("HID device not open. Call open() first.")

        data = bytes(report)
        if len(data) != REPORT_SIZE:
            raise ValueError(f"report must be {REPORT_SIZE} bytes; got {len(data)}")

        written = self._dev.write(b"\x00" + data)
        if written < 0:
            raise OSError(f"HID write failed: {self._dev.error()}")
        return written

    def read(self, timeout_ms: int) -> bytes | None:
        """Read one report; return None when nothing arrived within `timeout_ms`."""

        if self._dev is None:
            raise RuntimeError("HID device not open. Call open() first.")

        data = self._dev.read(REPORT_SIZE, timeout_ms)
        if not data:
            return None
        return bytes(data)
