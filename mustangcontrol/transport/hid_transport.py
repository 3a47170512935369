from __future__ import annotations

import logging
import threading

import hid

from hid_device import MustangHid
from mustangcontrol.errors import NotConnectedError, TransportError
from mustangcontrol.protocol.codes import FENDER_VENDOR_ID, REPORT_SIZE
from mustangcontrol.protocol.packets import format_report_bytes
from mustangcontrol.transport.base import ReportListener


logger = logging.getLogger(__name__)


class HidTransport:
    """`Transport` over hidapi with a background RX thread.

    Inbound reports are read on the RX thread and handed to each listener in
    subscription order. A listener raising is logged and does not stop the loop.
    """

    def __init__(
        self,
        *,
        vendor_id: int = FENDER_VENDOR_ID,
        product_id: int | None = None,
        read_timeout_ms: int = 50,
        device: MustangHid | None = None,
    ) -> None:
        self._device = device if device is not None else MustangHid(vendor_id, product_id)
        self._read_timeout_ms = read_timeout_ms

        self._listeners_lock = threading.Lock()
        self._listeners: list[ReportListener] = []
        self._write_lock = threading.Lock()

        self._rx_thread: threading.Thread | None = None
        self._rx_stop = threading.Event()

    @property
    def connected(self) -> bool:
        return self._device.is_open

    def is_supported(self) -> bool:
        try:
            hid.enumerate()
        except Exception:
            logger.exception("hidapi enumeration failed")
            return False
        return True

    def connect(self) -> bool:
        if self._device.is_open:
            return True

        try:
            info = self._device.open()
        except Exception as exc:
            logger.error("Failed to open amplifier: %s", exc)
            return False

        logger.info("Connected HID: %s (0x%04X:0x%04X)", info.product_name, info.vendor_id, info.product_id)
        self._start_rx_thread()
        return True

    def disconnect(self) -> None:
        self._rx_stop.set()
        if self._rx_thread is not None and self._rx_thread.is_alive():
            self._rx_thread.join(timeout=1.0)
        self._rx_thread = None

        if self._device.is_open:
            logger.info("Closing HID transport")
            try:
                self._device.close()
            except Exception as exc:
                raise TransportError(f"Failed to close device: {exc}") from exc

    def send(self, report: bytes) -> None:
        if not self._device.is_open:
            raise NotConnectedError("Not connected")
        if len(report) != REPORT_SIZE:
            raise ValueError(f"report must be {REPORT_SIZE} bytes; got {len(report)}")

        logger.debug("TX report: %s", format_report_bytes(report))
        try:
            with self._write_lock:
                self._device.write(report)
        except Exception as exc:
            raise TransportError(f"HID send failed: {exc}") from exc

    def subscribe(self, listener: ReportListener) -> None:
        with self._listeners_lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: ReportListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _start_rx_thread(self) -> None:
        if self._rx_thread is not None and self._rx_thread.is_alive():
            return

        self._rx_stop.clear()
        self._rx_thread = threading.Thread(target=self._rx_loop, name="mustang-rx", daemon=True)
        self._rx_thread.start()

    def _rx_loop(self) -> None:
        logger.info("RX loop started")
        while not self._rx_stop.is_set():
            try:
                report = self._device.read(self._read_timeout_ms)
            except Exception:
                if self._rx_stop.is_set():
                    break
                logger.exception("HID read failed; stopping RX loop")
                self._close_after_read_failure()
                break

            if report is None:
                continue

            logger.debug("RX report: %s", format_report_bytes(report))
            self.dispatch(report)
        logger.info("RX loop stopped")

    def _close_after_read_failure(self) -> None:
        # A dead read side means the device is gone; later sends must fail fast.
        with self._write_lock:
            try:
                self._device.close()
            except Exception:
                logger.exception("Failed to close device after read failure")

    def dispatch(self, report: bytes) -> None:
        """Hand one inbound report to every listener."""

        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(report)
            except Exception:
                logger.exception("Report listener failed")
