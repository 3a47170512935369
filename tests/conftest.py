from __future__ import annotations

from collections.abc import Callable

import pytest

from mustangcontrol.app.store import Store
from mustangcontrol.protocol.packets import SequenceCounter
from mustangcontrol.transport.base import ReportListener


class FakeTransport:
    """In-memory transport. `responder` may return reports to feed back synchronously."""

    def __init__(self, *, connect_ok: bool = True) -> None:
        self.connect_ok = connect_ok
        self.sent: list[bytes] = []
        self.listeners: list[ReportListener] = []
        self.responder: Callable[[bytes], list[bytes]] | None = None
        self.fail_sends = False
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def is_supported(self) -> bool:
        return True

    def connect(self) -> bool:
        self._connected = self.connect_ok
        return self._connected

    def disconnect(self) -> None:
        self._connected = False

    def send(self, report: bytes) -> None:
        if self.fail_sends:
            raise OSError("device gone")
        self.sent.append(bytes(report))
        if self.responder is not None:
            for reply in self.responder(report):
                self.feed(reply)

    def subscribe(self, listener: ReportListener) -> None:
        self.listeners.append(listener)

    def unsubscribe(self, listener: ReportListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def feed(self, report: bytes) -> None:
        for listener in list(self.listeners):
            listener(report)


@pytest.fixture
def transport() -> FakeTransport:
    fake = FakeTransport()
    fake.connect()
    return fake


@pytest.fixture
def store() -> Store:
    return Store()


@pytest.fixture
def sequence() -> SequenceCounter:
    return SequenceCounter()


def report(*head: int, **at: int) -> bytes:
    """64-byte report starting with `head`; keyword `b<N>=value` sets byte N."""

    buf = bytearray(64)
    buf[: len(head)] = bytes(head)
    for key, value in at.items():
        buf[int(key[1:])] = value
    return bytes(buf)
