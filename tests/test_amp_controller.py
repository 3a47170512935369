from __future__ import annotations

import pytest

from mustangcontrol.app.amp_controller import AmpController
from mustangcontrol.domain.dsp_state import AmpState
from mustangcontrol.domain.models import DspType
from mustangcontrol.errors import NotConnectedError, UnknownModelError
from mustangcontrol.protocol.decoder import AmpUpdate, KnobChange


@pytest.fixture
def amp(store, transport, sequence) -> AmpController:
    return AmpController(store, transport, sequence)


class TestInbound:
    def test_amp_update_replaces_state(self, amp, store):
        knobs = tuple(range(32))
        amp.handle_amp_update(AmpUpdate(model_id=0x5E00, cabinet_id=0x08, knobs=knobs))
        assert store.state.amp == AmpState(model_id=0x5E00, cabinet_id=0x08, knobs=knobs)

    def test_live_knob_change(self, amp, store):
        assert amp.handle_knob_change(KnobChange(dsp_type=DspType.AMP, slot=0, knob_index=1, value=0x40))
        assert store.state.amp.knobs[1] == 0x40

    def test_effect_knob_change_is_not_ours(self, amp, store):
        before = store.state
        assert not amp.handle_knob_change(KnobChange(dsp_type=DspType.DELAY, slot=0, knob_index=1, value=0x40))
        assert store.state == before


class TestSetModel:
    def test_writes_template_then_apply(self, amp, store, transport):
        amp.set_amp_model_by_id(0x7900)

        assert store.state.amp.model_id == 0x7900
        assert store.state.amp.cabinet_id == 0x0A
        assert store.state.amp.knobs[1] == 0xFF

        write, apply = transport.sent
        assert write[:3] == b"\x1c\x03\x05"
        assert write[16:18] == b"\x79\x00"
        assert write[49] == 0x0A
        assert apply[:5] == b"\x1c\x03\x00\x00\x02"
        assert apply[6] == write[6] + 1

    def test_model_without_template_gets_zero_knobs(self, amp, store):
        amp.set_amp_model_by_id(0xF100)
        assert store.state.amp.knobs == (0,) * 32

    def test_unknown_model_leaves_store_untouched(self, amp, store, transport):
        before = store.state
        with pytest.raises(UnknownModelError):
            amp.set_amp_model_by_id(0x1234)
        assert store.state == before
        assert transport.sent == []

    def test_not_connected(self, amp, store, transport):
        transport.disconnect()
        with pytest.raises(NotConnectedError):
            amp.set_amp_model_by_id(0x6700)
        assert store.state.amp == AmpState()


class TestKnobsAndCabinet:
    def test_set_knob(self, amp, store, transport):
        amp.set_amp_model_by_id(0x6700)
        transport.sent.clear()

        amp.set_amp_knob(4, 0x10)
        assert store.state.amp.knobs[4] == 0x10
        assert transport.sent[0][36] == 0x10

    def test_set_knob_bounds(self, amp):
        with pytest.raises(ValueError):
            amp.set_amp_knob(32, 0)
        with pytest.raises(ValueError):
            amp.set_amp_knob(0, 256)

    def test_cabinet_updates_id_and_knob(self, amp, store, transport):
        amp.set_amp_model_by_id(0x6700)
        amp.set_cabinet_by_id(0x0C)
        assert store.state.amp.cabinet_id == 0x0C
        assert store.state.amp.knobs[17] == 0x0C
        assert transport.sent[-2][49] == 0x0C

    def test_unknown_cabinet(self, amp):
        with pytest.raises(UnknownModelError):
            amp.set_cabinet_by_id(0x40)


class TestQueries:
    def test_nothing_known_yet(self, amp):
        assert amp.get_amp_model() is None
        assert amp.get_amp_knobs() == ()
        assert amp.get_settings() is None

    def test_settings(self, amp):
        amp.set_amp_model_by_id(0x5E00)
        settings = amp.get_settings()
        assert settings.model_id == 0x5E00
        assert settings.gain == 0xFF
        assert settings.master == 0x7D
        assert settings.depth == 0x80
        assert settings.cabinet == 0x08
        assert [k.name for k in settings.knobs][:2] == ["Volume", "Gain"]
        assert amp.get_cabinet().id == 0x08
