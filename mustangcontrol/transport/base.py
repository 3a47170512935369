from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

ReportListener = Callable[[bytes], None]


class Transport(Protocol):
    """What the sync engine and controllers need from the link to the amplifier.

    `send` takes a full 64-byte report and blocks until it was written; I/O
    failures raise `TransportError`, sending while closed raises
    `NotConnectedError`. Inbound reports are delivered to every subscribed
    listener, in subscription order.
    """

    @property
    def connected(self) -> bool: ...

    def is_supported(self) -> bool: ...

    def connect(self) -> bool: ...

    def disconnect(self) -> None: ...

    def send(self, report: bytes) -> None: ...

    def subscribe(self, listener: ReportListener) -> None: ...

    def unsubscribe(self, listener: ReportListener) -> None: ...
