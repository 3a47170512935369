from __future__ import annotations

from mustangcontrol.app.base_controller import BaseController
from mustangcontrol.app.store import Store
from mustangcontrol.domain.defaults import AMP_CABINET_INDEX
from mustangcontrol.domain.dsp_state import AmpState, EffectState, PresetMetadata
from mustangcontrol.domain.legacy_preset import LegacyPreset, module_knobs, resolve_legacy_id
from mustangcontrol.domain.models import DspType
from mustangcontrol.errors import InvalidSlotError
from mustangcontrol.protocol.codes import EFFECT_SLOT_COUNT
from mustangcontrol.protocol.decoder import PresetChange, PresetInfo, decode_preset_name
from mustangcontrol.protocol.packets import (
    SequenceCounter,
    build_dsp_write,
    build_effect_clear,
    build_preset_load,
    build_preset_save,
)
from mustangcontrol.transport.base import Transport


class PresetController(BaseController):
    def __init__(
        self,
        store: Store,
        transport: Transport,
        sequence: SequenceCounter,
        *,
        preset_slot_count: int = 24,
    ) -> None:
        super().__init__(store, transport, sequence)
        self.preset_slot_count = preset_slot_count

    # --- Inbound ---

    def handle_preset_change(self, command: PresetChange) -> None:
        """Authoritative selection. Only touches the store; never talks to the amp."""

        self._logger.info("Preset selected: %d %r", command.slot, command.name)
        self._store.set_preset_active(command.slot, command.name)

    def handle_preset_info(self, command: PresetInfo) -> None:
        self._store.set_preset_metadata(command.slot, command.name)

    # --- User operations ---

    def load_preset(self, slot: int) -> None:
        self._logger.debug("load_preset(slot=%d)", slot)
        self._check_preset_slot(slot)
        self._require_connected()
        # The amp answers with a PresetChange followed by its module dump.
        self._send(build_preset_load(slot))

    def save_preset(self, slot: int, name: str) -> None:
        self._logger.debug("save_preset(slot=%d, name=%r)", slot, name)
        self._check_preset_slot(slot)
        self._require_connected()

        report = build_preset_save(slot, name)
        self._send(report)
        # Record the name as the amp will report it back: latin-1, at most 32 bytes.
        self._store.set_preset_active(slot, decode_preset_name(report))

    def import_legacy_preset(self, preset: LegacyPreset) -> int:
        """Replay a parsed legacy preset as DSP write + apply pairs.

        Effects currently in the chain are cleared first so nothing from the
        previous sound lingers. Modules whose legacy id cannot be resolved are
        skipped. Returns the number of modules written.
        """

        self._require_connected()
        modules = preset.iter_modules()
        self._logger.info("Importing legacy preset %r (%d modules)", preset.name, len(modules))

        for slot, effect in enumerate(self._store.state.slots):
            if effect is not None:
                self._send_with_apply(build_effect_clear(effect.type, slot, self._sequence.next()), effect.type)
                self._store.clear_slot(slot)

        written = 0
        for dsp_type, module in modules:
            if module.legacy_id == 0 and dsp_type != DspType.AMP:
                model_id = 0
            else:
                resolved = resolve_legacy_id(module.legacy_id, dsp_type)
                if resolved is None:
                    self._logger.warning("Skipping unknown legacy %s id %d", dsp_type.name, module.legacy_id)
                    continue
                model_id = resolved

            knobs = module_knobs(module)
            report = build_dsp_write(
                dsp_type,
                self._sequence.next(),
                model_id=model_id,
                slot=module.slot & 0xFF,
                bypassed=module.bypassed,
                knobs=knobs,
            )
            self._send_with_apply(report, dsp_type)
            written += 1

            if dsp_type == DspType.AMP:
                self._store.update_amp_state(AmpState(model_id=model_id, cabinet_id=knobs[AMP_CABINET_INDEX], knobs=tuple(knobs)))
            elif model_id != 0 and 0 <= module.slot < EFFECT_SLOT_COUNT:
                self._store.update_slot_state(
                    module.slot,
                    EffectState(
                        slot=module.slot,
                        type=dsp_type,
                        model_id=model_id,
                        enabled=not module.bypassed,
                        knobs=tuple(knobs),
                    ),
                )

        return written

    # --- Queries ---

    def get_presets(self) -> list[PresetMetadata]:
        return sorted(self._store.state.presets.values(), key=lambda p: p.slot)

    def get_preset(self, slot: int) -> PresetMetadata | None:
        return self._store.state.presets.get(slot)

    def _check_preset_slot(self, slot: int) -> None:
        if not 0 <= slot < self.preset_slot_count:
            raise InvalidSlotError(f"Invalid preset slot: {slot} (expected 0..{self.preset_slot_count - 1})")
