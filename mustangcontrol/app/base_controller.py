from __future__ import annotations

import logging

from mustangcontrol.app.store import Store
from mustangcontrol.domain.models import DspType
from mustangcontrol.errors import NotConnectedError
from mustangcontrol.protocol.packets import SequenceCounter, build_apply
from mustangcontrol.transport.base import Transport


class BaseController:
    """Shared plumbing: the store, the transport, and the write sequence."""

    def __init__(self, store: Store, transport: Transport, sequence: SequenceCounter) -> None:
        self._store = store
        self._transport = transport
        self._sequence = sequence
        self._logger = logging.getLogger(self.__class__.__name__)

    def _require_connected(self) -> None:
        if not self._transport.connected:
            raise NotConnectedError("Amplifier not connected")

    def _send(self, report: bytes) -> None:
        self._transport.send(report)

    def _send_with_apply(self, write_report: bytes, dsp_type: DspType) -> None:
        """Send a DSP write, then the apply packet that makes the amp render it."""

        self._send(write_report)
        self._send(build_apply(dsp_type, self._sequence.next()))
