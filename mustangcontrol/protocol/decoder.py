from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from mustangcontrol.domain.models import DspType
from mustangcontrol.protocol.codes import PRESET_NAME_SIZE, MustangOffsets, MustangOpcodes, MustangValues


@dataclass(frozen=True)
class KnobChange:
    """A physical knob was turned on the amplifier."""

    dsp_type: DspType
    slot: int
    knob_index: int
    value: int


@dataclass(frozen=True)
class AmpUpdate:
    model_id: int
    cabinet_id: int
    knobs: tuple[int, ...]


@dataclass(frozen=True)
class EffectUpdate:
    slot: int
    dsp_type: DspType
    model_id: int
    enabled: bool
    knobs: tuple[int, ...]


@dataclass(frozen=True)
class PresetInfo:
    """Preset listing entry; metadata only."""

    slot: int
    name: str


@dataclass(frozen=True)
class PresetChange:
    """The amplifier selected a preset."""

    slot: int
    name: str


@dataclass(frozen=True)
class BypassState:
    slot: int
    enabled: bool


@dataclass(frozen=True)
class Unknown:
    raw: bytes


Command = Union[KnobChange, AmpUpdate, EffectUpdate, PresetInfo, PresetChange, BypassState, Unknown]


def _byte(data: bytes, index: int) -> int:
    return data[index] if index < len(data) else 0


def _model_id(data: bytes) -> int:
    return (_byte(data, MustangOffsets.MODEL_ID_MSB) << 8) | _byte(data, MustangOffsets.MODEL_ID_LSB)


def _knobs(data: bytes) -> tuple[int, ...]:
    knobs = data[MustangOffsets.KNOB_START : MustangOffsets.KNOB_END]
    return tuple(knobs) + (0,) * (MustangOffsets.KNOB_END - MustangOffsets.KNOB_START - len(knobs))


def decode_preset_name(data: bytes) -> str:
    start = MustangOffsets.PRESET_NAME
    raw = data[start : start + PRESET_NAME_SIZE]
    end = raw.find(0)
    if end >= 0:
        raw = raw[:end]
    return raw.decode("latin-1")


def _decode_report_packet(data: bytes) -> Command:
    packet_type = _byte(data, MustangOffsets.TYPE)
    instance = _byte(data, MustangOffsets.INSTANCE)

    if packet_type in (MustangOpcodes.TYPE_PRESET_INFO, MustangOpcodes.TYPE_PRESET_SELECT):
        # Non-zero instance = per-family or amp-model name broadcasts.
        if instance != MustangValues.ACTIVE_INSTANCE:
            return Unknown(raw=data)
        slot = _byte(data, MustangOffsets.PRESET_SLOT)
        name = decode_preset_name(data)
        if packet_type == MustangOpcodes.TYPE_PRESET_SELECT:
            return PresetChange(slot=slot, name=name)
        return PresetInfo(slot=slot, name=name)

    if packet_type == DspType.AMP:
        if instance != MustangValues.ACTIVE_INSTANCE:
            return Unknown(raw=data)
        return AmpUpdate(
            model_id=_model_id(data),
            cabinet_id=_byte(data, MustangOffsets.CABINET_ID),
            knobs=_knobs(data),
        )

    if DspType.STOMP <= packet_type <= DspType.REVERB:
        # Instance 0x01+ is library/component discovery, not the active chain.
        if instance != MustangValues.ACTIVE_INSTANCE:
            return Unknown(raw=data)
        return EffectUpdate(
            slot=_byte(data, MustangOffsets.SLOT_INDEX),
            dsp_type=DspType(packet_type),
            model_id=_model_id(data),
            enabled=_byte(data, MustangOffsets.BYPASS) != MustangValues.BYPASSED,
            knobs=_knobs(data),
        )

    return Unknown(raw=data)


def decode_report(data: bytes | bytearray) -> Command:
    """Decode one inbound 64-byte report into a `Command`.

    Never raises: short, malformed or not-yet-understood reports become `Unknown`.
    """

    raw = bytes(data)
    if len(raw) < 2:
        return Unknown(raw=raw)

    command = raw[MustangOffsets.COMMAND]
    sub_command = raw[MustangOffsets.SUB_COMMAND]

    if DspType.AMP <= command <= DspType.REVERB and sub_command == MustangOpcodes.LIVE_CHANGE:
        return KnobChange(
            dsp_type=DspType(command),
            slot=_byte(raw, MustangOffsets.LIVE_SLOT_INDEX),
            knob_index=_byte(raw, MustangOffsets.LIVE_KNOB_INDEX),
            value=_byte(raw, MustangOffsets.LIVE_KNOB_VALUE),
        )

    if command == MustangOpcodes.DATA_PACKET:
        if sub_command == MustangOpcodes.DATA_READ:
            return _decode_report_packet(raw)
        # 0x03 is the amplifier echoing our own writes back; never state.
        return Unknown(raw=raw)

    if command == MustangOpcodes.BYPASS_PACKET and sub_command == MustangOpcodes.BYPASS_SET:
        return BypassState(
            slot=_byte(raw, MustangOffsets.PRESET_SLOT),
            enabled=_byte(raw, MustangOffsets.INSTANCE) == MustangValues.ENABLED,
        )

    return Unknown(raw=raw)


def is_echo(data: bytes | bytearray) -> bool:
    return (
        len(data) >= 2
        and data[MustangOffsets.COMMAND] == MustangOpcodes.DATA_PACKET
        and data[MustangOffsets.SUB_COMMAND] == MustangOpcodes.DATA_WRITE
    )
