from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence

from mustangcontrol.domain.dsp_state import AmpState, EffectState
from mustangcontrol.domain.models import DspType
from mustangcontrol.protocol.codes import (
    BYPASS_FAMILY_OFFSET,
    KNOB_COUNT,
    PRESET_NAME_SIZE,
    REPORT_SIZE,
    MustangOffsets,
    MustangOpcodes,
    MustangValues,
)


class SequenceCounter:
    """Modulo-256 sequence id shared by every write-type packet."""

    def __init__(self, start: int = 0) -> None:
        self._value = start & 0xFF
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._value = (self._value + 1) & 0xFF
            return self._value

    @property
    def current(self) -> int:
        return self._value


def format_report_bytes(data: bytes | bytearray | Sequence[int], *, max_len: int = 64) -> str:
    """Format report bytes as hex, truncated for logs."""

    raw = bytes(data)
    truncated = raw[:max_len]
    hex_part = " ".join(f"{b:02X}" for b in truncated)
    if len(raw) > max_len:
        return f"{hex_part} …(+{len(raw) - max_len} bytes)"
    return hex_part


def pad_report(data: bytes | bytearray | Sequence[int]) -> bytes:
    """Zero-pad a short command to a full 64-byte report."""

    raw = bytes(data)
    if len(raw) > REPORT_SIZE:
        raise ValueError(f"report must be at most {REPORT_SIZE} bytes; got {len(raw)}")
    return raw + bytes(REPORT_SIZE - len(raw))


def _check_byte(name: str, value: int) -> int:
    if value < 0 or value > 0xFF:
        raise ValueError(f"{name} must be 0..255; got {value}")
    return value


def _put_knobs(buf: bytearray, knobs: Iterable[int]) -> None:
    values = list(knobs)
    if len(values) > KNOB_COUNT:
        raise ValueError(f"at most {KNOB_COUNT} knob values; got {len(values)}")
    for index, value in enumerate(values):
        buf[MustangOffsets.KNOB_START + index] = _check_byte("knob value", value)


def _put_model_id(buf: bytearray, model_id: int) -> None:
    if model_id < 0 or model_id > 0xFFFF:
        raise ValueError(f"model id must be 0..0xFFFF; got {model_id}")
    buf[MustangOffsets.MODEL_ID_MSB] = (model_id >> 8) & 0xFF
    buf[MustangOffsets.MODEL_ID_LSB] = model_id & 0xFF


def _sequenced_header(command: int, sub_command: int, packet_type: int, sequence_id: int) -> bytearray:
    buf = bytearray(REPORT_SIZE)
    buf[MustangOffsets.COMMAND] = command
    buf[MustangOffsets.SUB_COMMAND] = sub_command
    buf[MustangOffsets.TYPE] = packet_type
    buf[MustangOffsets.SEQUENCE_ID] = _check_byte("sequence id", sequence_id)
    buf[MustangOffsets.SEQUENCE_MARKER] = MustangOpcodes.SEQUENCE_MARKER
    return buf


def build_handshake_reports() -> list[bytes]:
    """The fixed two-step handshake sent right after opening the device."""

    return [
        pad_report([MustangOpcodes.HANDSHAKE_1]),
        pad_report([MustangOpcodes.HANDSHAKE_2_BYTE1, MustangOpcodes.HANDSHAKE_2_BYTE2]),
    ]


def build_request_state() -> bytes:
    return pad_report([MustangOpcodes.REQUEST_STATE, MustangOpcodes.REQUEST_STATE_BYTE2])


def build_request_bypass_states() -> bytes:
    return pad_report([MustangOpcodes.REQUEST_BYPASS, MustangOpcodes.REQUEST_BYPASS_BYTE2])


def build_dsp_write(
    dsp_type: DspType,
    sequence_id: int,
    *,
    model_id: int = 0,
    slot: int = 0,
    bypassed: bool = False,
    knobs: Iterable[int] = (),
) -> bytes:
    """Build a DSP write (0x1C/0x03) carrying a full module state."""

    buf = _sequenced_header(MustangOpcodes.DATA_PACKET, MustangOpcodes.DATA_WRITE, int(dsp_type), sequence_id)
    _put_model_id(buf, model_id)
    buf[MustangOffsets.SLOT_INDEX] = _check_byte("slot", slot)
    buf[MustangOffsets.BYPASS] = MustangValues.BYPASSED if bypassed else MustangValues.ENABLED
    _put_knobs(buf, knobs)
    return bytes(buf)


def build_amp_write(state: AmpState, sequence_id: int) -> bytes:
    buf = bytearray(build_dsp_write(DspType.AMP, sequence_id, model_id=state.model_id, knobs=state.knobs))
    # Written after the knobs: the explicit cabinet id wins over knob index 17.
    buf[MustangOffsets.CABINET_ID] = _check_byte("cabinet id", state.cabinet_id)
    return bytes(buf)


def build_effect_write(state: EffectState, sequence_id: int) -> bytes:
    return build_dsp_write(
        state.type,
        sequence_id,
        model_id=state.model_id,
        slot=state.slot,
        bypassed=not state.enabled,
        knobs=state.knobs,
    )


def build_effect_clear(dsp_type: DspType, slot: int, sequence_id: int) -> bytes:
    """A zeroed, bypassed module write that empties `slot` on the amplifier."""

    return build_dsp_write(dsp_type, sequence_id, model_id=0, slot=slot, bypassed=True)


def build_apply(dsp_type: DspType, sequence_id: int) -> bytes:
    """The commit packet that must follow every DSP write."""

    buf = _sequenced_header(
        MustangOpcodes.DATA_PACKET,
        MustangOpcodes.DATA_WRITE,
        MustangOpcodes.TYPE_PRESET_SELECT,
        sequence_id,
    )
    buf[MustangOffsets.PRESET_SLOT] = (
        MustangOpcodes.APPLY_FAMILY_MOD if dsp_type == DspType.MOD else MustangOpcodes.APPLY_FAMILY_OTHER
    )
    return bytes(buf)


def build_bypass_toggle(slot: int, enabled: bool, dsp_type: DspType) -> bytes:
    if dsp_type == DspType.AMP:
        raise ValueError("the amplifier module cannot be bypassed")

    buf = bytearray(REPORT_SIZE)
    buf[MustangOffsets.COMMAND] = MustangOpcodes.BYPASS_PACKET
    buf[MustangOffsets.SUB_COMMAND] = MustangOpcodes.BYPASS_SET
    buf[MustangOffsets.TYPE] = int(dsp_type) - BYPASS_FAMILY_OFFSET
    buf[MustangOffsets.INSTANCE] = MustangValues.ENABLED if enabled else MustangValues.BYPASSED
    buf[MustangOffsets.PRESET_SLOT] = _check_byte("slot", slot)
    return bytes(buf)


def build_preset_load(slot: int) -> bytes:
    buf = bytearray(REPORT_SIZE)
    buf[MustangOffsets.COMMAND] = MustangOpcodes.DATA_PACKET
    buf[MustangOffsets.SUB_COMMAND] = MustangOpcodes.DATA_READ
    buf[MustangOffsets.TYPE] = MustangOpcodes.TYPE_PRESET_LOAD
    buf[MustangOffsets.PRESET_SLOT] = _check_byte("preset slot", slot)
    buf[MustangOffsets.SEQUENCE_ID] = 0x01
    return bytes(buf)


def encode_preset_name(name: str) -> bytes:
    return name.encode("latin-1", errors="replace")[:PRESET_NAME_SIZE]


def build_preset_save(slot: int, name: str) -> bytes:
    buf = bytearray(REPORT_SIZE)
    buf[MustangOffsets.COMMAND] = MustangOpcodes.DATA_PACKET
    buf[MustangOffsets.SUB_COMMAND] = MustangOpcodes.DATA_READ
    buf[MustangOffsets.TYPE] = MustangOpcodes.TYPE_PRESET_SAVE
    buf[MustangOffsets.PRESET_SLOT] = _check_byte("preset slot", slot)
    buf[MustangOffsets.SEQUENCE_ID] = 0x01
    buf[MustangOffsets.SEQUENCE_MARKER] = MustangOpcodes.SEQUENCE_MARKER

    name_bytes = encode_preset_name(name)
    start = MustangOffsets.PRESET_NAME
    buf[start : start + len(name_bytes)] = name_bytes
    return bytes(buf)


def build_amp_report(state: AmpState) -> bytes:
    """Render `state` as the amplifier would report it (0x1C/0x01).

    Used by diagnostics and tests to produce inbound-shaped packets.
    """

    buf = bytearray(build_amp_write(state, 0))
    buf[MustangOffsets.SUB_COMMAND] = MustangOpcodes.DATA_READ
    buf[MustangOffsets.SEQUENCE_ID] = 0
    buf[MustangOffsets.SEQUENCE_MARKER] = 0
    return bytes(buf)


def build_effect_report(state: EffectState) -> bytes:
    buf = bytearray(build_effect_write(state, 0))
    buf[MustangOffsets.SUB_COMMAND] = MustangOpcodes.DATA_READ
    buf[MustangOffsets.SEQUENCE_ID] = 0
    buf[MustangOffsets.SEQUENCE_MARKER] = 0
    return bytes(buf)
