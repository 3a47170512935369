from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum

from mustangcontrol.app.amp_controller import AmpController
from mustangcontrol.app.config import SyncConfig
from mustangcontrol.app.effect_controller import EffectController
from mustangcontrol.app.preset_controller import PresetController
from mustangcontrol.app.store import Store
from mustangcontrol.domain.models import DspType
from mustangcontrol.errors import NotConnectedError
from mustangcontrol.protocol.codes import EFFECT_SLOT_COUNT
from mustangcontrol.protocol.decoder import (
    AmpUpdate,
    BypassState,
    Command,
    EffectUpdate,
    KnobChange,
    PresetChange,
    PresetInfo,
    Unknown,
    decode_report,
    is_echo,
)
from mustangcontrol.protocol.packets import (
    SequenceCounter,
    build_handshake_reports,
    build_request_bypass_states,
    build_request_state,
    format_report_bytes,
)
from mustangcontrol.transport.base import ReportListener, Transport


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    SYNCING = "syncing"
    READY = "ready"
    REFRESHING = "refreshing"


class _BypassWaiter:
    """Collects bypass reports until every slot answered.

    Detaching is idempotent so the timeout path and the completion path can
    both call it.
    """

    def __init__(self, slots: range) -> None:
        self.pending = set(slots)
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._detached = False

    def on_report(self, data: bytes) -> None:
        command = decode_report(data)
        if not isinstance(command, BypassState):
            return
        with self._lock:
            self.pending.discard(command.slot)
            if not self.pending:
                self._event.set()

    def wait(self, timeout_s: float) -> bool:
        return self._event.wait(timeout_s)

    def detach(self, transport: Transport) -> bool:
        with self._lock:
            if self._detached:
                return False
            self._detached = True
        transport.unsubscribe(self.on_report)
        return True


class SyncEngine:
    """Connection lifecycle and inbound routing for one amplifier.

    This class deals with:
    - the handshake, full-state dump and bypass poll on connect
    - decoding every inbound report and handing it to the owning controller
    - refreshing after a preset is selected on the amp itself, one refresh at a time
    """

    def __init__(
        self,
        transport: Transport,
        *,
        store: Store | None = None,
        config: SyncConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._config = config or SyncConfig()
        self._sleep = sleep
        self._logger = logging.getLogger(self.__class__.__name__)

        self.store = store or Store()
        self.sequence = SequenceCounter()
        self.amp = AmpController(self.store, transport, self.sequence)
        self.effects = EffectController(self.store, transport, self.sequence)
        self.presets = PresetController(
            self.store,
            transport,
            self.sequence,
            preset_slot_count=self._config.preset_slot_count,
        )

        self._state = ConnectionState.DISCONNECTED
        self._state_changed = threading.Condition()

        self._installed_lock = threading.Lock()
        self._installed: list[ReportListener] = []

        self._refresh_lock = threading.Lock()
        self._refresh_in_progress = False
        self._refresh_thread: threading.Thread | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_supported(self) -> bool:
        return self._transport.is_supported()

    def wait_until(self, wanted: ConnectionState, *, timeout_s: float) -> bool:
        with self._state_changed:
            return self._state_changed.wait_for(lambda: self._state == wanted, timeout=timeout_s)

    def connect(self) -> bool:
        if self._state != ConnectionState.DISCONNECTED:
            self._logger.info("Already %s", self._state.value)
            return True

        self._set_state(ConnectionState.CONNECTING)
        if not self._transport.connect():
            self._logger.info("Connection failed")
            self._set_state(ConnectionState.DISCONNECTED)
            return False

        try:
            self._set_state(ConnectionState.HANDSHAKING)
            for report in build_handshake_reports():
                self._transport.send(report)
            self.store.set_connected(True)
            self._install(self._on_report)

            self._set_state(ConnectionState.SYNCING)
            self.store.set_refreshing(True)
            try:
                self._logger.info("Requesting state dump")
                self._transport.send(build_request_state())
                self._poll_bypass_states()
                # Let trailing dump packets and echoes drain before accepting re-triggers.
                self._sleep(self._config.quiet_period_s)
            finally:
                self.store.set_refreshing(False)
        except Exception:
            self._logger.exception("Initial sync failed")
            self.disconnect()
            raise

        self._set_state(ConnectionState.READY)
        return True

    def disconnect(self) -> None:
        with self._installed_lock:
            installed = list(self._installed)
            self._installed.clear()
        for listener in installed:
            self._transport.unsubscribe(listener)

        refresh_thread = self._refresh_thread
        if (
            refresh_thread is not None
            and refresh_thread is not threading.current_thread()
            and refresh_thread.is_alive()
        ):
            refresh_thread.join(timeout=self._config.bypass_timeout_s + self._config.quiet_period_s + 1.0)
        self._refresh_thread = None

        try:
            self._transport.disconnect()
        finally:
            self.store.reset()
            self._set_state(ConnectionState.DISCONNECTED)

    def refresh(self, *, request_dump: bool = True) -> bool:
        """Re-read bypass states (and the full dump unless `request_dump` is False).

        Returns False without doing anything if a refresh is already running.
        """

        if not self._transport.connected:
            raise NotConnectedError("Amplifier not connected")
        if not self._claim_refresh():
            return False
        self._run_refresh(request_dump=request_dump)
        return True

    # --- Routing ---

    def route(self, command: Command) -> None:
        """Hand one decoded command to the controller that owns it."""

        if isinstance(command, KnobChange):
            if command.dsp_type == DspType.AMP:
                self.amp.handle_knob_change(command)
            else:
                self.effects.handle_knob_change(command)
        elif isinstance(command, AmpUpdate):
            self.amp.handle_amp_update(command)
        elif isinstance(command, EffectUpdate):
            self.effects.handle_effect_update(command)
        elif isinstance(command, BypassState):
            self.effects.handle_bypass_state(command)
        elif isinstance(command, PresetInfo):
            self.presets.handle_preset_info(command)
        elif isinstance(command, PresetChange):
            self.presets.handle_preset_change(command)
            self._on_hardware_preset_change()
        elif isinstance(command, Unknown):
            if is_echo(command.raw):
                self._logger.debug("Ignoring echo of our own write")
            else:
                self._logger.debug("Ignoring unknown report: %s", format_report_bytes(command.raw, max_len=24))

    def _on_report(self, data: bytes) -> None:
        self.route(decode_report(data))

    # --- Internals ---

    def _set_state(self, state: ConnectionState) -> None:
        with self._state_changed:
            if self._state == state:
                return
            self._logger.info("Connection state: %s -> %s", self._state.value, state.value)
            self._state = state
            self._state_changed.notify_all()

    def _install(self, listener: ReportListener) -> None:
        with self._installed_lock:
            self._installed.append(listener)
        self._transport.subscribe(listener)

    def _uninstall(self, listener: ReportListener) -> None:
        with self._installed_lock:
            if listener in self._installed:
                self._installed.remove(listener)

    def _poll_bypass_states(self) -> bool:
        waiter = _BypassWaiter(range(EFFECT_SLOT_COUNT))
        self._install(waiter.on_report)
        try:
            self._transport.send(build_request_bypass_states())
            complete = waiter.wait(self._config.bypass_timeout_s)
        finally:
            if waiter.detach(self._transport):
                self._uninstall(waiter.on_report)

        if complete:
            self._logger.info("Bypass states received for all slots")
        else:
            self._logger.info("Bypass poll timed out; no answer for slots %s", sorted(waiter.pending))
        return complete

    def _claim_refresh(self) -> bool:
        with self._refresh_lock:
            if self._refresh_in_progress:
                return False
            self._refresh_in_progress = True
            return True

    def _run_refresh(self, *, request_dump: bool) -> None:
        self._set_state(ConnectionState.REFRESHING)
        self.store.set_refreshing(True)
        try:
            self._logger.info("Refreshing state")
            if request_dump:
                self._transport.send(build_request_state())
            self._poll_bypass_states()
            self._sleep(self._config.quiet_period_s)
        finally:
            self.store.set_refreshing(False)
            with self._refresh_lock:
                self._refresh_in_progress = False
            if self._state == ConnectionState.REFRESHING:
                self._set_state(ConnectionState.READY)
            self._logger.info("Refresh finished")

    def _on_hardware_preset_change(self) -> None:
        # Selections seen while connecting belong to the initial dump.
        if self._state != ConnectionState.READY:
            return
        if not self._claim_refresh():
            self._logger.debug("Refresh already in flight; ignoring preset change")
            return

        # The amp streams its own dump after a selection; asking for one would
        # make it announce the preset again.
        self._refresh_thread = threading.Thread(
            target=self._refresh_in_background,
            name="mustang-refresh",
            daemon=True,
        )
        self._refresh_thread.start()

    def _refresh_in_background(self) -> None:
        try:
            self._run_refresh(request_dump=False)
        except Exception:
            self._logger.exception("Refresh after preset change failed")
