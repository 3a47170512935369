from __future__ import annotations

from dataclasses import dataclass

from mustangcontrol.app.store import StoreState
from mustangcontrol.domain.dsp_state import labelled_knobs
from mustangcontrol.domain.models import MustangModelData


@dataclass(frozen=True)
class KnobReading:
    name: str
    percent: int
    raw_value: int


@dataclass(frozen=True)
class SlotSummary:
    slot: int
    family: str | None = None
    model_name: str | None = None
    enabled: bool = False
    knobs: tuple[KnobReading, ...] = ()


@dataclass(frozen=True)
class RigSummary:
    connected: bool
    status_text: str

    preset_slot: int | None = None
    preset_name: str | None = None
    amp_name: str | None = None
    cabinet_name: str | None = None

    amp_knobs: tuple[KnobReading, ...] = ()
    slots: tuple[SlotSummary, ...] = ()


def _percent(raw_value: int) -> int:
    return int(round((raw_value / 255.0) * 100))


def _readings(labels: tuple[str, ...], values: tuple[int, ...]) -> tuple[KnobReading, ...]:
    return tuple(
        KnobReading(name=knob.name, percent=_percent(knob.value), raw_value=knob.value)
        for knob in labelled_knobs(labels, values)
    )


def _model_name(model_id: int, known: str | None) -> str:
    return known if known is not None else f"Unknown (0x{model_id:04X})"


def summarize(state: StoreState) -> RigSummary:
    """Flatten a store snapshot into display-ready records."""

    if not state.connected:
        status = "Disconnected"
    elif state.refreshing:
        status = "Syncing"
    else:
        status = "Ready"

    preset_name = None
    if state.current_preset_slot is not None:
        preset = state.presets.get(state.current_preset_slot)
        preset_name = preset.name if preset is not None else None

    amp_name = None
    amp_knobs: tuple[KnobReading, ...] = ()
    cabinet_name = None
    if state.amp.model_id:
        amp_model = MustangModelData.find_amp(state.amp.model_id)
        amp_name = _model_name(state.amp.model_id, amp_model.name if amp_model else None)
        if amp_model is not None:
            amp_knobs = _readings(amp_model.knobs, state.amp.knobs)
        cabinet = MustangModelData.find_cabinet(state.amp.cabinet_id)
        cabinet_name = cabinet.name if cabinet is not None else None

    slots = []
    for index, effect in enumerate(state.slots):
        if effect is None:
            slots.append(SlotSummary(slot=index))
            continue
        model = MustangModelData.find_model(effect.model_id, effect.type)
        slots.append(
            SlotSummary(
                slot=index,
                family=effect.type.name.title(),
                model_name=_model_name(effect.model_id, model.name if model else None),
                enabled=effect.enabled,
                knobs=_readings(model.knobs, effect.knobs) if model is not None else (),
            )
        )

    return RigSummary(
        connected=state.connected,
        status_text=status,
        preset_slot=state.current_preset_slot,
        preset_name=preset_name,
        amp_name=amp_name,
        cabinet_name=cabinet_name,
        amp_knobs=amp_knobs,
        slots=tuple(slots),
    )


def ascii_bar(percent: int, *, width: int = 12) -> str:
    pct = max(0, min(100, percent))
    filled = int(round((pct / 100.0) * width))
    filled = max(0, min(width, filled))
    empty = width - filled
    return "[" + ("X" * filled) + ("-" * empty) + "]"


def summary_lines(summary: RigSummary) -> list[str]:
    lines = [f"Status: {summary.status_text}"]
    if summary.preset_slot is not None:
        lines.append(f"Preset: {summary.preset_slot:02d} {summary.preset_name or ''}".rstrip())
    if summary.amp_name is not None:
        amp_line = f"Amp: {summary.amp_name}"
        if summary.cabinet_name is not None:
            amp_line += f" / {summary.cabinet_name}"
        lines.append(amp_line)
        for knob in summary.amp_knobs:
            lines.append(f"  {knob.name:<12} {ascii_bar(knob.percent)} {knob.raw_value:3d}")
    for slot in summary.slots:
        if slot.model_name is None:
            lines.append(f"Slot {slot.slot}: empty")
            continue
        state = "on" if slot.enabled else "off"
        lines.append(f"Slot {slot.slot}: {slot.family} {slot.model_name} ({state})")
        for knob in slot.knobs:
            lines.append(f"  {knob.name:<12} {ascii_bar(knob.percent)} {knob.raw_value:3d}")
    return lines
