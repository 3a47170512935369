from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from mustangcontrol.app.base_controller import BaseController
from mustangcontrol.domain.defaults import default_knobs
from mustangcontrol.domain.dsp_state import EffectSettings, EffectState, KnobInfo, labelled_knobs
from mustangcontrol.domain.models import DspType, ModelDef, MustangModelData
from mustangcontrol.errors import DuplicateEffectTypeError, InvalidSlotError, UnknownModelError
from mustangcontrol.protocol.codes import EFFECT_SLOT_COUNT, KNOB_COUNT
from mustangcontrol.protocol.decoder import BypassState, EffectUpdate, KnobChange
from mustangcontrol.protocol.packets import build_bypass_toggle, build_effect_clear, build_effect_write


# Slots 0-3 sit before the amp, 4-7 after it.
GROUP_SIZE = 4

Layout = list[EffectState | None]


def _check_slot(slot: int) -> None:
    if not 0 <= slot < EFFECT_SLOT_COUNT:
        raise InvalidSlotError(f"Invalid slot: {slot}")


def _same_effect(a: EffectState | None, b: EffectState | None) -> bool:
    if a is None or b is None:
        return a is b
    return replace(a, slot=0) == replace(b, slot=0)


def moved_layout(slots: Sequence[EffectState | None], from_slot: int, to_slot: int) -> Layout:
    """Chain layout after moving the effect at `from_slot` to `to_slot`.

    Within a group the group is reordered (remove, then insert). Across groups
    the effect leaves its slot empty and is inserted at `to_slot`; later
    effects of the target group shift toward its tail, filling the first hole,
    and the tail effect is dropped when the group is full.
    """

    layout: Layout = list(slots)
    effect = layout[from_slot]
    if effect is None or from_slot == to_slot:
        return layout

    from_group = from_slot // GROUP_SIZE
    to_group = to_slot // GROUP_SIZE
    base = to_group * GROUP_SIZE
    group = layout[base : base + GROUP_SIZE]

    if from_group == to_group:
        group.pop(from_slot - base)
        group.insert(to_slot - base, effect)
    else:
        layout[from_slot] = None
        position = to_slot - base
        group.insert(position, effect)
        hole = next((i for i in range(position + 1, len(group)) if group[i] is None), None)
        group.pop(hole if hole is not None else len(group) - 1)

    layout[base : base + GROUP_SIZE] = group
    return layout


class EffectController(BaseController):
    # --- Inbound ---

    def handle_knob_change(self, command: KnobChange) -> bool:
        slot = command.slot
        if command.dsp_type == DspType.AMP or not 0 <= slot < EFFECT_SLOT_COUNT:
            return False
        if not 0 <= command.knob_index < KNOB_COUNT:
            return False

        effect = self._store.state.slots[slot]
        if effect is None or effect.type != command.dsp_type:
            self._logger.debug("Ignoring %s knob change for slot %d (%r)", command.dsp_type.name, slot, effect)
            return False

        knobs = list(effect.knobs)
        knobs[command.knob_index] = command.value
        self._store.update_slot_state(slot, replace(effect, knobs=tuple(knobs)))
        return True

    def handle_effect_update(self, command: EffectUpdate) -> None:
        slot = command.slot
        if not 0 <= slot < EFFECT_SLOT_COUNT:
            self._logger.debug("Ignoring effect update for slot %d", slot)
            return

        # The amp enforces one module per family: whatever it reports for this
        # family at `slot` (including an empty module) replaces any other copy.
        for other, effect in enumerate(self._store.state.slots):
            if other != slot and effect is not None and effect.type == command.dsp_type:
                self._logger.info(
                    "Singleton migration: clearing slot %d because %s moved to %d",
                    other,
                    command.dsp_type.name,
                    slot,
                )
                self._store.clear_slot(other)

        if command.model_id == 0:
            self._store.clear_slot(slot)
            return

        self._store.update_slot_state(
            slot,
            EffectState(
                slot=slot,
                type=command.dsp_type,
                model_id=command.model_id,
                enabled=command.enabled,
                knobs=command.knobs,
            ),
        )

    def handle_bypass_state(self, command: BypassState) -> None:
        self._store.set_effect_bypass(command.slot, command.enabled)

    # --- User operations ---

    def set_effect_by_id(self, slot: int, model_id: int) -> None:
        self._logger.debug("set_effect_by_id(slot=%d, model_id=0x%04X)", slot, model_id)
        _check_slot(slot)
        model = MustangModelData.find_effect(model_id)
        if model is None:
            raise UnknownModelError("effect model", model_id)

        for other, effect in enumerate(self._store.state.slots):
            if other != slot and effect is not None and effect.type == model.type:
                raise DuplicateEffectTypeError(model.type.name, other)
        self._require_connected()

        state = EffectState(
            slot=slot,
            type=model.type,
            model_id=model_id,
            enabled=True,
            knobs=tuple(default_knobs(model_id)),
        )
        self._store.update_slot_state(slot, state)
        self._logger.info("Slot %d -> %s", slot, model.name)
        self._send_effect_state(state)

    def set_effect_knob(self, slot: int, index: int, value: int) -> None:
        _check_slot(slot)
        if not 0 <= index < KNOB_COUNT:
            raise ValueError(f"knob index must be 0..{KNOB_COUNT - 1}; got {index}")
        if not 0 <= value <= 0xFF:
            raise ValueError(f"knob value must be 0..255; got {value}")
        effect = self._store.state.slots[slot]
        if effect is None:
            raise InvalidSlotError(f"No effect in slot {slot}")
        self._require_connected()

        knobs = list(effect.knobs)
        knobs[index] = value
        state = replace(effect, knobs=tuple(knobs))
        self._store.update_slot_state(slot, state)
        self._send_effect_state(state)

    def set_effect_enabled(self, slot: int, enabled: bool) -> None:
        self._logger.debug("set_effect_enabled(slot=%d, enabled=%s)", slot, enabled)
        _check_slot(slot)
        effect = self._store.state.slots[slot]
        if effect is None:
            self._logger.warning("Slot %d is empty; nothing to %s", slot, "enable" if enabled else "bypass")
            return
        self._require_connected()

        self._store.set_effect_bypass(slot, enabled)
        self._send(build_bypass_toggle(slot, enabled, effect.type))

    def clear_effect(self, slot: int) -> None:
        _check_slot(slot)
        self._require_connected()

        effect = self._store.state.slots[slot]
        dsp_type = effect.type if effect is not None else DspType.STOMP
        self._send_clear(slot, dsp_type)
        self._store.clear_slot(slot)

    def move_effect(self, from_slot: int, to_slot: int) -> None:
        self._logger.debug("move_effect(from=%d, to=%d)", from_slot, to_slot)
        _check_slot(from_slot)
        _check_slot(to_slot)
        self._require_connected()

        self._apply_layout(moved_layout(self._store.state.slots, from_slot, to_slot))

    def swap_effects(self, slot_a: int, slot_b: int) -> None:
        self._logger.debug("swap_effects(a=%d, b=%d)", slot_a, slot_b)
        _check_slot(slot_a)
        _check_slot(slot_b)
        if slot_a == slot_b:
            return
        self._require_connected()

        layout: Layout = list(self._store.state.slots)
        layout[slot_a], layout[slot_b] = layout[slot_b], layout[slot_a]
        self._apply_layout(layout)

    # --- Queries ---

    def get_effect_model(self, slot: int) -> ModelDef | None:
        if not 0 <= slot < EFFECT_SLOT_COUNT:
            return None
        effect = self._store.state.slots[slot]
        if effect is None:
            return None
        return MustangModelData.find_effect(effect.model_id)

    def get_effect_knobs(self, slot: int) -> tuple[KnobInfo, ...]:
        model = self.get_effect_model(slot)
        effect = self._store.state.slots[slot] if model is not None else None
        if model is None or effect is None:
            return ()
        return labelled_knobs(model.knobs, effect.knobs)

    def get_settings(self, slot: int) -> EffectSettings | None:
        model = self.get_effect_model(slot)
        effect = self._store.state.slots[slot] if model is not None else None
        if model is None or effect is None:
            return None
        return EffectSettings(
            slot=slot,
            type=model.type,
            model=model.name,
            model_id=model.id,
            enabled=effect.enabled,
            knobs=labelled_knobs(model.knobs, effect.knobs),
        )

    # --- Internals ---

    def _apply_layout(self, layout: Layout) -> None:
        """Move the chain to `layout`: clear every changed slot, then rewrite.

        Clearing first means the amp never sees two modules of one family.
        """

        current = self._store.state.slots
        changed = [i for i in range(EFFECT_SLOT_COUNT) if not _same_effect(current[i], layout[i])]

        for slot in changed:
            old = current[slot]
            if old is not None:
                self._send_clear(slot, old.type)
                self._store.clear_slot(slot)

        for slot in changed:
            new = layout[slot]
            if new is not None:
                state = replace(new, slot=slot)
                self._store.update_slot_state(slot, state)
                self._send_effect_state(state)

    def _send_clear(self, slot: int, dsp_type: DspType) -> None:
        self._send_with_apply(build_effect_clear(dsp_type, slot, self._sequence.next()), dsp_type)

    def _send_effect_state(self, state: EffectState) -> None:
        self._send_with_apply(build_effect_write(state, self._sequence.next()), state.type)
