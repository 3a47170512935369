from __future__ import annotations

import pytest

from mustangcontrol.domain.legacy_preset import (
    LegacyModule,
    LegacyParam,
    module_knobs,
    parse_fuse_preset_xml,
    resolve_legacy_id,
)
from mustangcontrol.domain.models import DspType

FUSE_XML = """
<FenderPreset name="Test Preset" version="1.0">
  <Amplifier>
    <Module ID="0" POS="0" BypassState="0">
      <Param ControlIndex="0">32768</Param>
      <Param ControlIndex="1">51200</Param>
    </Module>
  </Amplifier>
  <FX>
    <Stompbox>
      <Module ID="19" POS="0" BypassState="0">
        <Param ControlIndex="0">12800</Param>
      </Module>
    </Stompbox>
    <Delay>
      <Module ID="37" POS="5" BypassState="1">
        <Param ControlIndex="3">oops</Param>
      </Module>
    </Delay>
  </FX>
  <UnknownTag><Module ID="99" POS="0"/></UnknownTag>
</FenderPreset>
"""


class TestResolveLegacyId:
    def test_explicit_map_first(self):
        assert resolve_legacy_id(9, DspType.AMP) == 0x5E00
        assert resolve_legacy_id(37, DspType.DELAY) == 0x1600

    def test_high_byte_shift(self):
        # 0x5E is not in the map; 0x5E00 is a known amp.
        assert resolve_legacy_id(0x5E, DspType.AMP) == 0x5E00

    def test_byte_swap(self):
        # Ranger Boost is 0x0301 on the wire.
        assert resolve_legacy_id(0x0103, DspType.STOMP) == 0x0301

    def test_unresolvable(self):
        assert resolve_legacy_id(0x7777, DspType.REVERB) is None


class TestParse:
    def test_name_and_modules(self):
        preset = parse_fuse_preset_xml(FUSE_XML)
        assert preset.name == "Test Preset"
        assert [(t, m.legacy_id) for t, m in preset.iter_modules()] == [
            (DspType.AMP, 0),
            (DspType.STOMP, 19),
            (DspType.DELAY, 37),
        ]

    def test_module_fields(self):
        preset = parse_fuse_preset_xml(FUSE_XML)
        delay = preset.modules[DspType.DELAY][0]
        assert delay.slot == 5
        assert delay.bypassed is True
        assert delay.params == (LegacyParam(control_index=3, value=0),)

    def test_not_xml(self):
        with pytest.raises(ValueError):
            parse_fuse_preset_xml("definitely not xml <")


def test_module_knobs_take_high_byte():
    module = LegacyModule(
        legacy_id=0,
        slot=0,
        bypassed=False,
        params=(LegacyParam(0, 32768), LegacyParam(1, 51200), LegacyParam(40, 65535)),
    )
    knobs = module_knobs(module)
    assert knobs[:2] == [0x80, 0xC8]
    assert len(knobs) == 32
