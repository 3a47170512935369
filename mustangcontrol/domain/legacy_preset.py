from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from mustangcontrol.domain.models import DspType, MustangModelData
from mustangcontrol.protocol.codes import KNOB_COUNT


logger = logging.getLogger(__name__)


# Fuse (legacy editor) module id -> firmware model id.
# Empirical: several legacy ids don't follow either heuristic below.
LEGACY_ID_MAP: dict[int, int] = {
    # Standard amps
    0: 0x6700, 1: 0x6400, 2: 0x7C00, 3: 0x5300, 4: 0x6A00, 5: 0x7500,
    6: 0x7200, 7: 0x6100, 8: 0x7900, 9: 0x5E00, 10: 0x5D00, 11: 0x6D00,
    # V2 amps
    100: 0xF100, 101: 0xF600, 102: 0xF900, 103: 0xFF00, 104: 0xFC00,
    105: 0x5300, 106: 0x6A00, 107: 0x7500, 108: 0x7200,
    # Stompbox
    19: 0x3C00, 20: 0x4900, 21: 0x4A00, 22: 0x1A00, 23: 0x1C00, 24: 0x0700, 25: 0x8800,
    # V2 stompbox
    109: 0x0301, 110: 0xBA00, 111: 0x1001, 112: 0x1101, 113: 0x0F01,
    # Modulation, delay, reverb
    26: 0x1200, 27: 0x1300, 28: 0x1800, 29: 0x1900, 30: 0x2D00, 31: 0x4000,
    32: 0x4100, 33: 0x2200, 34: 0x2900, 35: 0x4F00, 36: 0x1F00,
    37: 0x1600, 38: 0x2B00, 39: 0x1500, 40: 0x4600, 41: 0x4800,
    42: 0x2400, 43: 0x3A00, 44: 0x2600, 45: 0x3B00, 46: 0x4E00, 47: 0x4B00,
    48: 0x4C00, 49: 0x4D00, 50: 0x2100, 51: 0x0B00,
}


# Container path inside a Fuse preset file, in the order modules are replayed.
FUSE_CONTAINERS: tuple[tuple[DspType, str], ...] = (
    (DspType.AMP, "Amplifier"),
    (DspType.STOMP, "FX/Stompbox"),
    (DspType.MOD, "FX/Modulation"),
    (DspType.DELAY, "FX/Delay"),
    (DspType.REVERB, "FX/Reverb"),
)


@dataclass(frozen=True)
class LegacyParam:
    control_index: int
    value: int  # 16-bit


@dataclass(frozen=True)
class LegacyModule:
    legacy_id: int
    slot: int
    bypassed: bool
    params: tuple[LegacyParam, ...] = ()


@dataclass(frozen=True)
class LegacyPreset:
    name: str | None = None
    modules: dict[DspType, tuple[LegacyModule, ...]] = field(default_factory=dict)

    def iter_modules(self) -> list[tuple[DspType, LegacyModule]]:
        """Modules in replay order: amp first, then each effect family."""

        ordered: list[tuple[DspType, LegacyModule]] = []
        for dsp_type, _ in FUSE_CONTAINERS:
            for module in self.modules.get(dsp_type, ()):
                ordered.append((dsp_type, module))
        return ordered


def resolve_legacy_id(legacy_id: int, dsp_type: DspType) -> int | None:
    """Resolve a legacy module id to a firmware model id.

    Order matters and is kept exactly as observed:
    1) explicit map
    2) legacy id shifted into the high byte
    3) legacy id with its two bytes swapped
    """

    mapped = LEGACY_ID_MAP.get(legacy_id)
    if mapped:
        return mapped

    is_amp = dsp_type == DspType.AMP

    high = legacy_id << 8
    if MustangModelData.has_model_id(high, amp=is_amp):
        return high

    low_byte = legacy_id & 0xFF
    high_byte = (legacy_id >> 8) & 0xFF
    swapped = (low_byte << 8) | high_byte
    if MustangModelData.has_model_id(swapped, amp=is_amp):
        return swapped

    return None


def module_knobs(module: LegacyModule) -> list[int]:
    """Scale 16-bit parameter values to knob bytes by taking the high byte."""

    knobs = [0x00] * KNOB_COUNT
    for param in module.params:
        if 0 <= param.control_index < KNOB_COUNT:
            knobs[param.control_index] = (param.value >> 8) & 0xFF
    return knobs


def _int_attr(element: ET.Element, name: str, default: int = 0) -> int:
    raw = element.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def parse_fuse_preset_xml(text: str) -> LegacyPreset:
    """Parse a Fuse `.fuse` preset document into a `LegacyPreset`.

    Tolerant: unknown elements are ignored and malformed numbers default to 0.
    Raises `ValueError` if the text is not XML at all.
    """

    try:
        root = ET.fromstring(text.strip())
    except ET.ParseError as exc:
        raise ValueError(f"Not a Fuse preset document: {exc}") from exc

    modules: dict[DspType, tuple[LegacyModule, ...]] = {}
    for dsp_type, path in FUSE_CONTAINERS:
        container = root.find(path)
        if container is None:
            continue

        parsed: list[LegacyModule] = []
        for element in container.iter("Module"):
            params = []
            for param in element.iter("Param"):
                try:
                    value = int((param.text or "0").strip())
                except ValueError:
                    value = 0
                params.append(LegacyParam(control_index=_int_attr(param, "ControlIndex"), value=value))

            parsed.append(
                LegacyModule(
                    legacy_id=_int_attr(element, "ID"),
                    slot=_int_attr(element, "POS"),
                    bypassed=_int_attr(element, "BypassState") == 1,
                    params=tuple(params),
                )
            )
        modules[dsp_type] = tuple(parsed)
        logger.debug("Parsed %d %s module(s)", len(parsed), dsp_type.name)

    return LegacyPreset(name=root.get("name"), modules=modules)
