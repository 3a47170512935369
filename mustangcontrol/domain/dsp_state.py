from __future__ import annotations

from dataclasses import dataclass, field

from mustangcontrol.domain.models import DspType
from mustangcontrol.protocol.codes import KNOB_COUNT


def _zero_knobs() -> tuple[int, ...]:
    return (0,) * KNOB_COUNT


@dataclass(frozen=True)
class AmpState:
    model_id: int = 0
    cabinet_id: int = 0
    # Raw knob bytes (offsets 32..63); meaning depends on the model's knob labels.
    knobs: tuple[int, ...] = field(default_factory=_zero_knobs)


@dataclass(frozen=True)
class EffectState:
    slot: int
    type: DspType
    model_id: int
    enabled: bool = True
    knobs: tuple[int, ...] = field(default_factory=_zero_knobs)


@dataclass(frozen=True)
class PresetMetadata:
    slot: int
    name: str


@dataclass(frozen=True)
class KnobInfo:
    name: str
    value: int
    index: int


@dataclass(frozen=True)
class AmpSettings:
    model: str
    model_id: int
    volume: int
    gain: int
    gain2: int
    master: int
    treble: int
    mid: int
    bass: int
    presence: int
    depth: int
    bias: int
    noise_gate: int
    threshold: int
    cabinet: int
    sag: int
    brightness: int
    knobs: tuple[KnobInfo, ...] = ()


@dataclass(frozen=True)
class EffectSettings:
    slot: int
    type: DspType
    model: str
    model_id: int
    enabled: bool
    knobs: tuple[KnobInfo, ...] = ()


def labelled_knobs(labels: tuple[str, ...], values: tuple[int, ...]) -> tuple[KnobInfo, ...]:
    """Project raw knob bytes through a model's label schema, skipping unused positions."""

    return tuple(
        KnobInfo(name=name, value=values[index], index=index)
        for index, name in enumerate(labels)
        if name and index < len(values)
    )
