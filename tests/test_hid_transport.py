from __future__ import annotations

import threading

import pytest

from hid_device import HidDeviceInfo, MustangHid
from mustangcontrol.errors import NotConnectedError, TransportError
from mustangcontrol.transport.hid_transport import HidTransport


class FakeHid:
    """Stands in for `MustangHid`; `read` hands out queued reports."""

    def __init__(self, *, fail_open: bool = False, fail_write: bool = False, fail_read: bool = False) -> None:
        self.fail_open = fail_open
        self.fail_write = fail_write
        self.fail_read = fail_read
        self.is_open = False
        self.written: list[bytes] = []
        self.inbound: list[bytes] = []
        self.drained = threading.Event()
        self._lock = threading.Lock()

    def open(self) -> HidDeviceInfo:
        if self.fail_open:
            raise RuntimeError("no device")
        self.is_open = True
        return HidDeviceInfo(path=b"1-1", vendor_id=0x1ED8, product_id=0x0014, product_name="Mustang", serial_number="")

    def close(self) -> None:
        self.is_open = False

    def write(self, report: bytes) -> int:
        if self.fail_write:
            raise OSError("pipe error")
        self.written.append(bytes(report))
        return len(report) + 1

    def read(self, timeout_ms: int) -> bytes | None:
        if self.fail_read:
            raise OSError("device unplugged")
        with self._lock:
            if self.inbound:
                return self.inbound.pop(0)
        self.drained.set()
        threading.Event().wait(timeout_ms / 1000.0)
        return None


class TestHidTransport:
    """HidTransport driven by an in-memory device."""

    def test_open_failure_returns_false(self):
        transport = HidTransport(device=FakeHid(fail_open=True))
        assert transport.connect() is False
        assert transport.connected is False

    def test_send_requires_connection(self):
        transport = HidTransport(device=FakeHid())
        with pytest.raises(NotConnectedError):
            transport.send(bytes(64))

    def test_send_checks_length_and_wraps_errors(self):
        device = FakeHid(fail_write=True)
        transport = HidTransport(device=device, read_timeout_ms=1)
        transport.connect()
        try:
            with pytest.raises(ValueError):
                transport.send(bytes(10))
            with pytest.raises(TransportError):
                transport.send(bytes(64))
        finally:
            transport.disconnect()

    def test_rx_thread_dispatches_in_order(self):
        device = FakeHid()
        device.inbound = [bytes([1]) + bytes(63), bytes([2]) + bytes(63)]
        transport = HidTransport(device=device, read_timeout_ms=1)

        seen: list[int] = []
        transport.subscribe(lambda r: seen.append(r[0]))
        transport.connect()
        try:
            assert device.drained.wait(2.0)
        finally:
            transport.disconnect()

        assert seen == [1, 2]
        assert device.is_open is False

    def test_read_failure_closes_device(self):
        device = FakeHid(fail_read=True)
        transport = HidTransport(device=device, read_timeout_ms=1)
        assert transport.connect() is True

        transport._rx_thread.join(timeout=2.0)

        assert transport.connected is False
        with pytest.raises(NotConnectedError):
            transport.send(bytes(64))
        transport.disconnect()

    def test_listener_errors_do_not_stop_dispatch(self):
        transport = HidTransport(device=FakeHid())
        seen: list[bytes] = []

        def broken(_report: bytes) -> None:
            raise RuntimeError("boom")

        transport.subscribe(broken)
        transport.subscribe(seen.append)
        transport.dispatch(bytes(64))
        assert seen == [bytes(64)]

    def test_unsubscribe(self):
        transport = HidTransport(device=FakeHid())
        seen: list[bytes] = []
        transport.subscribe(seen.append)
        transport.unsubscribe(seen.append)
        transport.unsubscribe(seen.append)
        transport.dispatch(bytes(64))
        assert seen == []


class TestMustangHid:
    def test_write_prepends_report_id(self):
        class Dev:
            def __init__(self) -> None:
                self.data = b""

            def write(self, data: bytes) -> int:
                self.data = data
                return len(data)

        device = MustangHid(0x1ED8)
        device._dev = Dev()
        device.write(bytes([0xC3]) + bytes(63))
        assert device._dev.data[:2] == b"\x00\xc3"
        assert len(device._dev.data) == 65

    def test_write_rejects_wrong_size(self):
        device = MustangHid(0x1ED8)
        device._dev = object()
        with pytest.raises(ValueError):
            device.write(b"\x01\x02")

    def test_list_devices_filters_product(self, monkeypatch):
        entries = [
            {"vendor_id": 0x1ED8, "product_id": 0x0014, "path": b"a", "product_string": "Mustang I/II"},
            {"vendor_id": 0x1ED8, "product_id": 0x0016, "path": b"b", "product_string": "Mustang III"},
        ]
        monkeypatch.setattr("hid_device.hid.enumerate", lambda vid=0, pid=0: entries)
        devices = MustangHid(0x1ED8, 0x0016).list_devices()
        assert [d.path for d in devices] == [b"b"]
        assert devices[0].product_name == "Mustang III"
