from __future__ import annotations

from dataclasses import replace

from mustangcontrol.app.base_controller import BaseController
from mustangcontrol.domain.defaults import AMP_CABINET_INDEX, default_knobs
from mustangcontrol.domain.dsp_state import AmpSettings, AmpState, KnobInfo, labelled_knobs
from mustangcontrol.domain.models import CabinetDef, DspType, ModelDef, MustangModelData
from mustangcontrol.errors import UnknownModelError
from mustangcontrol.protocol.codes import KNOB_COUNT
from mustangcontrol.protocol.decoder import AmpUpdate, KnobChange
from mustangcontrol.protocol.packets import build_amp_write


def _check_knob(index: int, value: int) -> None:
    if not 0 <= index < KNOB_COUNT:
        raise ValueError(f"knob index must be 0..{KNOB_COUNT - 1}; got {index}")
    if not 0 <= value <= 0xFF:
        raise ValueError(f"knob value must be 0..255; got {value}")


class AmpController(BaseController):
    # --- Inbound ---

    def handle_knob_change(self, command: KnobChange) -> bool:
        if command.dsp_type != DspType.AMP:
            return False
        if not 0 <= command.knob_index < KNOB_COUNT:
            self._logger.debug("Ignoring amp knob change with index %d", command.knob_index)
            return False

        amp = self._store.state.amp
        knobs = list(amp.knobs)
        knobs[command.knob_index] = command.value
        self._store.update_amp_state(replace(amp, knobs=tuple(knobs)))
        return True

    def handle_amp_update(self, command: AmpUpdate) -> None:
        self._store.update_amp_state(
            AmpState(model_id=command.model_id, cabinet_id=command.cabinet_id, knobs=command.knobs)
        )

    # --- User operations ---

    def set_amp_model_by_id(self, model_id: int) -> None:
        self._logger.debug("set_amp_model_by_id(model_id=0x%04X)", model_id)
        model = MustangModelData.find_amp(model_id)
        if model is None:
            raise UnknownModelError("amp model", model_id)
        self._require_connected()

        knobs = default_knobs(model_id)
        state = AmpState(model_id=model_id, cabinet_id=knobs[AMP_CABINET_INDEX], knobs=tuple(knobs))
        self._store.update_amp_state(state)
        self._logger.info("Amp model -> %s", model.name)
        self._send_amp_state(state)

    def set_amp_knob(self, index: int, value: int) -> None:
        self._logger.debug("set_amp_knob(index=%d, value=%d)", index, value)
        _check_knob(index, value)
        self._require_connected()

        amp = self._store.state.amp
        knobs = list(amp.knobs)
        knobs[index] = value
        state = replace(amp, knobs=tuple(knobs))
        self._store.update_amp_state(state)
        self._send_amp_state(state)

    def set_cabinet_by_id(self, cabinet_id: int) -> None:
        self._logger.debug("set_cabinet_by_id(id=0x%02X)", cabinet_id)
        cabinet = MustangModelData.find_cabinet(cabinet_id)
        if cabinet is None:
            raise UnknownModelError("cabinet", cabinet_id)
        self._require_connected()

        # The cabinet rides in the amp packet (byte 49, knob index 17).
        amp = self._store.state.amp
        knobs = list(amp.knobs)
        knobs[AMP_CABINET_INDEX] = cabinet_id
        state = replace(amp, cabinet_id=cabinet_id, knobs=tuple(knobs))
        self._store.update_amp_state(state)
        self._send_amp_state(state)

    # --- Queries ---

    def get_amp_model(self) -> ModelDef | None:
        return MustangModelData.find_amp(self._store.state.amp.model_id)

    def get_cabinet(self) -> CabinetDef | None:
        return MustangModelData.find_cabinet(self._store.state.amp.cabinet_id)

    def get_amp_knobs(self) -> tuple[KnobInfo, ...]:
        model = self.get_amp_model()
        if model is None:
            return ()
        return labelled_knobs(model.knobs, self._store.state.amp.knobs)

    def get_settings(self) -> AmpSettings | None:
        model = self.get_amp_model()
        if model is None:
            return None

        amp = self._store.state.amp
        k = amp.knobs
        return AmpSettings(
            model=model.name,
            model_id=model.id,
            volume=k[0],
            gain=k[1],
            gain2=k[2],
            master=k[3],
            treble=k[4],
            mid=k[5],
            bass=k[6],
            presence=k[7],
            depth=k[9],
            bias=k[10],
            noise_gate=k[15],
            threshold=k[16],
            cabinet=amp.cabinet_id,
            sag=k[19],
            brightness=k[20],
            knobs=labelled_knobs(model.knobs, k),
        )

    def _send_amp_state(self, state: AmpState) -> None:
        self._send_with_apply(build_amp_write(state, self._sequence.next()), DspType.AMP)
