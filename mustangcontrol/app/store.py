from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from mustangcontrol.domain.dsp_state import AmpState, EffectState, PresetMetadata
from mustangcontrol.protocol.codes import EFFECT_SLOT_COUNT


logger = logging.getLogger(__name__)


def _empty_slots() -> tuple[EffectState | None, ...]:
    return (None,) * EFFECT_SLOT_COUNT


@dataclass(frozen=True)
class StoreState:
    amp: AmpState = field(default_factory=AmpState)
    slots: tuple[EffectState | None, ...] = field(default_factory=_empty_slots)
    presets: dict[int, PresetMetadata] = field(default_factory=dict)
    current_preset_slot: int | None = None
    connected: bool = False
    refreshing: bool = False


StoreListener = Callable[[StoreState], None]


def _valid_slot(slot: int) -> bool:
    return 0 <= slot < EFFECT_SLOT_COUNT


class Store:
    """The single canonical copy of the amplifier state for this session.

    Every mutation replaces the immutable `StoreState` snapshot and then
    notifies listeners synchronously, in subscription order.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state = StoreState()
        self._listeners: list[StoreListener] = []

    @property
    def state(self) -> StoreState:
        return self._state

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register `listener`, call it once with the current snapshot, return an unsubscribe handle."""

        with self._lock:
            self._listeners.append(listener)
            listener(self._state)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _commit(self, new_state: StoreState) -> None:
        with self._lock:
            self._state = new_state
            listeners = list(self._listeners)
            for listener in listeners:
                listener(new_state)

    def reset(self) -> None:
        with self._lock:
            self._commit(StoreState())

    def set_connected(self, connected: bool) -> None:
        with self._lock:
            if self._state.connected != connected:
                self._commit(replace(self._state, connected=connected))

    def set_refreshing(self, refreshing: bool) -> None:
        with self._lock:
            if self._state.refreshing != refreshing:
                self._commit(replace(self._state, refreshing=refreshing))

    def set_preset_active(self, slot: int, name: str) -> None:
        with self._lock:
            presets = dict(self._state.presets)
            presets[slot] = PresetMetadata(slot=slot, name=name)

            # During a bulk dump only the first selection (if none is known) may move the pointer.
            update_selection = not self._state.refreshing or self._state.current_preset_slot is None
            current = slot if update_selection else self._state.current_preset_slot
            if not update_selection:
                logger.debug("Keeping active preset %s during refresh (saw %d)", current, slot)

            self._commit(replace(self._state, presets=presets, current_preset_slot=current))

    def set_preset_metadata(self, slot: int, name: str) -> None:
        if not name:
            return
        with self._lock:
            presets = dict(self._state.presets)
            presets[slot] = PresetMetadata(slot=slot, name=name)
            self._commit(replace(self._state, presets=presets))

    def update_amp_state(self, amp: AmpState) -> None:
        with self._lock:
            self._commit(replace(self._state, amp=amp))

    def update_slot_state(self, slot: int, effect: EffectState | None) -> None:
        if not _valid_slot(slot):
            return
        with self._lock:
            slots = list(self._state.slots)
            slots[slot] = effect
            self._commit(replace(self._state, slots=tuple(slots)))

    def set_effect_bypass(self, slot: int, enabled: bool) -> None:
        if not _valid_slot(slot):
            return
        with self._lock:
            effect = self._state.slots[slot]
            slots = list(self._state.slots)
            if effect is not None:
                slots[slot] = replace(effect, enabled=enabled)
            self._commit(replace(self._state, slots=tuple(slots)))

    def clear_slot(self, slot: int) -> None:
        if not _valid_slot(slot):
            return
        with self._lock:
            slots = list(self._state.slots)
            slots[slot] = None
            self._commit(replace(self._state, slots=tuple(slots)))
