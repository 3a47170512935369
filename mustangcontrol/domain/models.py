from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class DspType(IntEnum):
    """DSP family; the value is also the byte used on the wire."""

    AMP = 0x05
    STOMP = 0x06
    MOD = 0x07
    DELAY = 0x08
    REVERB = 0x09

    @classmethod
    def effect_types(cls) -> tuple[DspType, ...]:
        return (cls.STOMP, cls.MOD, cls.DELAY, cls.REVERB)


@dataclass(frozen=True)
class ModelDef:
    id: int
    name: str
    type: DspType
    # Label per knob byte (offset 32 + index). Empty string = unused position.
    knobs: tuple[str, ...]


@dataclass(frozen=True)
class CabinetDef:
    id: int
    name: str


_AMP_FULL = ("Volume", "Gain", "Gain 2", "Master", "Treble", "Middle", "Bass", "Presence")
_AMP_SINGLE = ("Volume", "Gain", "", "", "Treble", "Middle", "Bass", "Presence")
_REVERB = ("Level", "Decay", "Dwell", "Diffusion", "Tone")
_CHORUS = ("Level", "Rate", "Depth", "Avg Delay", "LR Phase")
_FLANGER = ("Level", "Rate", "Depth", "Feedback", "LR Phase")
_ECHO_FILTER = ("Level", "Delay Time", "Feedback", "Frequency", "Resonance", "In Level")


def _amp(model_id: int, name: str, knobs: tuple[str, ...] = _AMP_FULL) -> ModelDef:
    return ModelDef(id=model_id, name=name, type=DspType.AMP, knobs=knobs)


def _fx(model_id: int, name: str, dsp_type: DspType, knobs: tuple[str, ...]) -> ModelDef:
    return ModelDef(id=model_id, name=name, type=dsp_type, knobs=knobs)


class MustangModelData:
    """Read-only registry of amplifier, effect and cabinet models.

    Model ids are the 16-bit values found at bytes 16/17 of a DSP packet.
    Keys are stable identifiers usable from code and tests.
    """

    AMP_MODELS: dict[str, ModelDef] = {
        "F57_DELUXE": _amp(0x6700, "'57 Deluxe", _AMP_SINGLE),
        "F59_BASSMAN": _amp(0x6400, "'59 Bassman", _AMP_SINGLE),
        "F57_CHAMP": _amp(0x7C00, "'57 Champ", _AMP_SINGLE),
        "F65_DELUXE_REVERB": _amp(0x5300, "'65 Deluxe Reverb", _AMP_SINGLE),
        "F65_PRINCETON": _amp(0x6A00, "'65 Princeton", _AMP_SINGLE),
        "F65_TWIN_REVERB": _amp(0x7500, "'65 Twin Reverb", _AMP_SINGLE),
        "SUPER_SONIC": _amp(0x7200, "Super-Sonic"),
        "BRITISH_60S": _amp(0x6100, "British '60s"),
        "BRITISH_70S": _amp(0x7900, "British '70s"),
        "BRITISH_80S": _amp(0x5E00, "British '80s"),
        "AMERICAN_90S": _amp(0x5D00, "American '90s"),
        "METAL_2000": _amp(0x6D00, "Metal 2000"),
        "STUDIO_PREAMP": _amp(0xF100, "Studio Preamp", ("Volume", "Gain", "", "", "Treble", "Middle", "Bass", "")),
        "F57_TWIN": _amp(0xF600, "'57 Twin", _AMP_SINGLE),
        "F60S_THRIFT": _amp(0xF900, "'60s Thrift", _AMP_SINGLE),
        "BRITISH_WATTS": _amp(0xFF00, "British Watts"),
        "BRITISH_COLOUR": _amp(0xFC00, "British Colour"),
    }

    EFFECT_MODELS: dict[str, ModelDef] = {
        # --- Stompbox ---
        "OVERDRIVE": _fx(0x3C00, "Overdrive", DspType.STOMP, ("Level", "Gain", "Low", "Mid", "High")),
        "WAH": _fx(0x4900, "Wah", DspType.STOMP, ("Mix", "Freq", "Heel Freq", "Toe Freq", "High Q")),
        "TOUCH_WAH": _fx(0x4A00, "Touch Wah", DspType.STOMP, ("Mix", "Sensitivity", "Heel Freq", "Toe Freq", "High Q")),
        "FUZZ": _fx(0x1A00, "Fuzz", DspType.STOMP, ("Level", "Gain", "Octave", "Low", "High")),
        "FUZZ_TOUCH_WAH": _fx(0x1C00, "Fuzz Touch Wah", DspType.STOMP, ("Level", "Gain", "Sensitivity", "Octave", "Peak")),
        "SIMPLE_COMP": _fx(0x8800, "Simple Comp", DspType.STOMP, ("Type",)),
        "COMPRESSOR": _fx(0x0700, "Compressor", DspType.STOMP, ("Level", "Threshold", "Ratio", "Attack", "Release")),
        "RANGER_BOOST": _fx(0x0301, "Ranger Boost", DspType.STOMP, ("Level", "Gain", "Lo-Cut", "Bright")),
        "GREEN_BOX": _fx(0xBA00, "Green Box", DspType.STOMP, ("Level", "Gain", "Tone", "Bright")),
        "ORANGE_BOX": _fx(0x1001, "Orange Box", DspType.STOMP, ("Level", "Dist", "Tone")),
        "BLACK_BOX": _fx(0x1101, "Black Box", DspType.STOMP, ("Level", "Dist", "Tone")),
        "BIG_FUZZ": _fx(0x0F01, "Big Fuzz", DspType.STOMP, ("Level", "Tone", "Sustain")),
        # --- Modulation ---
        "SINE_CHORUS": _fx(0x1200, "Sine Chorus", DspType.MOD, _CHORUS),
        "TRIANGLE_CHORUS": _fx(0x1300, "Triangle Chorus", DspType.MOD, _CHORUS),
        "SINE_FLANGER": _fx(0x1800, "Sine Flanger", DspType.MOD, _FLANGER),
        "TRIANGLE_FLANGER": _fx(0x1900, "Triangle Flanger", DspType.MOD, _FLANGER),
        "VIBRATONE": _fx(0x2D00, "Vibratone", DspType.MOD, ("Level", "Rotor Speed", "Depth", "Feedback", "LR Phase")),
        "VINTAGE_TREMOLO": _fx(0x4000, "Vintage Tremolo", DspType.MOD, ("Level", "Rate", "Duty Cycle", "Attack", "Release")),
        "SINE_TREMOLO": _fx(0x4100, "Sine Tremolo", DspType.MOD, ("Level", "Rate", "Duty Cycle", "LFO Clipping", "Tri Shaping")),
        "RING_MODULATOR": _fx(0x2200, "Ring Modulator", DspType.MOD, ("Level", "Freq", "Depth", "LFO Shape", "LFO Phase")),
        "STEP_FILTER": _fx(0x2900, "Step Filter", DspType.MOD, ("Level", "Rate", "Resonance", "Min Freq", "Max Freq")),
        "PHASER": _fx(0x4F00, "Phaser", DspType.MOD, ("Level", "Rate", "Depth", "Feedback", "LFO Shape")),
        "PITCH_SHIFTER": _fx(0x1F00, "Pitch Shifter", DspType.MOD, ("Level", "Pitch", "Detune", "Feedback", "Predelay")),
        # --- Delay ---
        "MONO_DELAY": _fx(0x1600, "Mono Delay", DspType.DELAY, ("Level", "Delay Time", "", "Feedback", "Brightness", "Attenuation")),
        "MONO_ECHO_FILTER": _fx(0x4300, "Mono Echo Filter", DspType.DELAY, _ECHO_FILTER),
        "STEREO_ECHO_FILTER": _fx(0x4800, "Stereo Echo Filter", DspType.DELAY, _ECHO_FILTER),
        "MULTITAP_DELAY": _fx(0x4400, "Multitap Delay", DspType.DELAY, ("Level", "Delay Time", "", "Feedback", "Brightness", "Mode")),
        "PING_PONG_DELAY": _fx(0x4500, "Ping Pong Delay", DspType.DELAY, ("Level", "Delay Time", "", "Feedback", "Brightness", "Stereo")),
        "DUCKING_DELAY": _fx(0x1500, "Ducking Delay", DspType.DELAY, ("Level", "Delay Time", "", "Feedback", "Release", "Threshold")),
        "REVERSE_DELAY": _fx(0x4600, "Reverse Delay", DspType.DELAY, ("Level", "Delay Time", "", "FFdbk", "RFdbk", "Tone")),
        "TAPE_DELAY": _fx(0x2B00, "Tape Delay", DspType.DELAY, ("Level", "Delay Time", "", "Feedback", "Flutter", "Brightness", "Stereo")),
        "STEREO_TAPE_DELAY": _fx(0x2A00, "Stereo Tape Delay", DspType.DELAY, ("Level", "Delay Time", "", "Feedback", "Flutter", "Separation", "Brightness")),
        # --- Reverb ---
        "SMALL_HALL": _fx(0x2400, "Small Hall", DspType.REVERB, _REVERB),
        "LARGE_HALL": _fx(0x3A00, "Large Hall", DspType.REVERB, _REVERB),
        "SMALL_ROOM": _fx(0x2600, "Small Room", DspType.REVERB, _REVERB),
        "LARGE_ROOM": _fx(0x3B00, "Large Room", DspType.REVERB, _REVERB),
        "SMALL_PLATE": _fx(0x4E00, "Small Plate", DspType.REVERB, _REVERB),
        "LARGE_PLATE": _fx(0x4B00, "Large Plate", DspType.REVERB, _REVERB),
        "AMBIENT": _fx(0x4C00, "Ambient", DspType.REVERB, _REVERB),
        "ARENA": _fx(0x4D00, "Arena", DspType.REVERB, _REVERB),
        "FENDER_63_SPRING": _fx(0x2100, "'63 Fender Spring", DspType.REVERB, _REVERB),
        "FENDER_65_SPRING": _fx(0x0B00, "'65 Fender Spring", DspType.REVERB, _REVERB),
    }

    CABINET_MODELS: tuple[CabinetDef, ...] = (
        CabinetDef(id=0x00, name="Off"),
        CabinetDef(id=0x01, name="'57 Deluxe 1x12"),
        CabinetDef(id=0x02, name="'59 Bassman 4x10"),
        CabinetDef(id=0x03, name="'65 Deluxe 1x12"),
        CabinetDef(id=0x04, name="'65 Princeton 1x10"),
        CabinetDef(id=0x05, name="'57 Champ 1x8"),
        CabinetDef(id=0x06, name="4x12 Modern"),
        CabinetDef(id=0x07, name="2x12 Celestion"),
        CabinetDef(id=0x08, name="4x12 Greenback"),
        CabinetDef(id=0x09, name="'65 Twin 2x12"),
        CabinetDef(id=0x0A, name="4x12 Vintage"),
        CabinetDef(id=0x0B, name="Super-Sonic 2x12"),
        CabinetDef(id=0x0C, name="Super-Sonic 1x12"),
    )

    @classmethod
    def find_amp(cls, model_id: int) -> ModelDef | None:
        return next((m for m in cls.AMP_MODELS.values() if m.id == model_id), None)

    @classmethod
    def find_effect(cls, model_id: int) -> ModelDef | None:
        return next((m for m in cls.EFFECT_MODELS.values() if m.id == model_id), None)

    @classmethod
    def find_model(cls, model_id: int, dsp_type: DspType) -> ModelDef | None:
        """Look up a model in the registry that owns `dsp_type`.

        Effects are matched on id only, then filtered to the requested family.
        """

        if dsp_type == DspType.AMP:
            return cls.find_amp(model_id)
        model = cls.find_effect(model_id)
        if model is None or model.type != dsp_type:
            return None
        return model

    @classmethod
    def has_model_id(cls, model_id: int, *, amp: bool) -> bool:
        repo = cls.AMP_MODELS if amp else cls.EFFECT_MODELS
        return any(m.id == model_id for m in repo.values())

    @classmethod
    def find_cabinet(cls, cabinet_id: int) -> CabinetDef | None:
        return next((c for c in cls.CABINET_MODELS if c.id == cabinet_id), None)

    @classmethod
    def resolve_amp_by_name(cls, name: str) -> ModelDef | None:
        return cls._resolve(cls.AMP_MODELS, name)

    @classmethod
    def resolve_effect_by_name(cls, name: str) -> ModelDef | None:
        return cls._resolve(cls.EFFECT_MODELS, name)

    @staticmethod
    def _resolve(repo: dict[str, ModelDef], name: str) -> ModelDef | None:
        """Match a registry key (``MONO_DELAY``) or display name (``Mono Delay``), case-insensitively."""

        wanted = name.strip().upper()
        if wanted.replace(" ", "_") in repo:
            return repo[wanted.replace(" ", "_")]
        return next((m for m in repo.values() if m.name.upper() == wanted), None)
