from __future__ import annotations

import random

import pytest

from mustangcontrol.app.effect_controller import EffectController, moved_layout
from mustangcontrol.domain.dsp_state import EffectState
from mustangcontrol.domain.models import DspType, MustangModelData
from mustangcontrol.errors import DuplicateEffectTypeError, InvalidSlotError, NotConnectedError, UnknownModelError
from mustangcontrol.protocol.decoder import BypassState, EffectUpdate, KnobChange

OVERDRIVE = MustangModelData.EFFECT_MODELS["OVERDRIVE"].id
SINE_FLANGER = MustangModelData.EFFECT_MODELS["SINE_FLANGER"].id
MONO_DELAY = MustangModelData.EFFECT_MODELS["MONO_DELAY"].id
SMALL_HALL = MustangModelData.EFFECT_MODELS["SMALL_HALL"].id
LARGE_HALL = MustangModelData.EFFECT_MODELS["LARGE_HALL"].id
FUZZ = MustangModelData.EFFECT_MODELS["FUZZ"].id


@pytest.fixture
def effects(store, transport, sequence) -> EffectController:
    return EffectController(store, transport, sequence)


def _effect(slot: int, model_id: int, dsp_type: DspType) -> EffectState:
    return EffectState(slot=slot, type=dsp_type, model_id=model_id)


def _model_ids(store) -> list[int | None]:
    return [e.model_id if e is not None else None for e in store.state.slots]


class TestInbound:
    """Reports coming from the amplifier."""

    def test_knob_change_for_matching_slot(self, effects, store):
        store.update_slot_state(1, _effect(1, SINE_FLANGER, DspType.MOD))
        assert effects.handle_knob_change(KnobChange(dsp_type=DspType.MOD, slot=1, knob_index=2, value=200))
        assert store.state.slots[1].knobs[2] == 200

    def test_knob_change_for_other_family_is_ignored(self, effects, store):
        store.update_slot_state(1, _effect(1, SINE_FLANGER, DspType.MOD))
        assert not effects.handle_knob_change(KnobChange(dsp_type=DspType.DELAY, slot=1, knob_index=2, value=200))
        assert store.state.slots[1].knobs[2] == 0

    def test_effect_update(self, effects, store):
        effects.handle_effect_update(
            EffectUpdate(slot=3, dsp_type=DspType.DELAY, model_id=MONO_DELAY, enabled=False, knobs=(50,) + (0,) * 31)
        )
        effect = store.state.slots[3]
        assert effect.type == DspType.DELAY
        assert effect.enabled is False
        assert effect.knobs[0] == 50

    def test_singleton_migration(self, effects, store):
        store.update_slot_state(0, _effect(0, OVERDRIVE, DspType.STOMP))
        effects.handle_effect_update(
            EffectUpdate(slot=1, dsp_type=DspType.STOMP, model_id=FUZZ, enabled=True, knobs=(0,) * 32)
        )
        assert store.state.slots[0] is None
        assert store.state.slots[1].model_id == FUZZ

    def test_zero_model_clears_slot(self, effects, store):
        store.update_slot_state(5, _effect(5, SMALL_HALL, DspType.REVERB))
        effects.handle_effect_update(
            EffectUpdate(slot=5, dsp_type=DspType.REVERB, model_id=0, enabled=False, knobs=(0,) * 32)
        )
        assert store.state.slots[5] is None

    def test_empty_module_also_clears_family_elsewhere(self, effects, store):
        store.update_slot_state(3, _effect(3, OVERDRIVE, DspType.STOMP))
        store.update_slot_state(5, _effect(5, SMALL_HALL, DspType.REVERB))
        effects.handle_effect_update(
            EffectUpdate(slot=0, dsp_type=DspType.STOMP, model_id=0, enabled=False, knobs=(0,) * 32)
        )
        assert store.state.slots[0] is None
        assert store.state.slots[3] is None
        assert store.state.slots[5].model_id == SMALL_HALL

    def test_bypass_state(self, effects, store):
        store.update_slot_state(2, _effect(2, OVERDRIVE, DspType.STOMP))
        effects.handle_bypass_state(BypassState(slot=2, enabled=False))
        assert store.state.slots[2].enabled is False

    def test_at_most_one_slot_per_family(self, effects, store):
        rng = random.Random(1234)
        families = list(DspType.effect_types())
        for _ in range(500):
            family = rng.choice(families)
            effects.handle_effect_update(
                EffectUpdate(
                    slot=rng.randrange(8),
                    dsp_type=family,
                    model_id=rng.choice([0, rng.randrange(1, 0x10000)]),
                    enabled=rng.random() < 0.5,
                    knobs=(0,) * 32,
                )
            )
            present = [e.type for e in store.state.slots if e is not None]
            assert len(present) == len(set(present))


class TestSetEffect:
    def test_places_effect_with_template(self, effects, store, transport):
        effects.set_effect_by_id(0, OVERDRIVE)
        effect = store.state.slots[0]
        assert effect.model_id == OVERDRIVE
        assert effect.enabled is True
        assert effect.knobs[:5] == (0x80,) * 5

        write, apply = transport.sent
        assert write[:3] == b"\x1c\x03\x06"
        assert write[18] == 0
        assert apply[4] == 0x02

    def test_modulation_apply_uses_family_one(self, effects, transport):
        effects.set_effect_by_id(2, SINE_FLANGER)
        assert transport.sent[1][4] == 0x01

    def test_duplicate_family_is_rejected_without_side_effects(self, effects, store, transport):
        effects.set_effect_by_id(0, OVERDRIVE)
        before = store.state
        sent = list(transport.sent)

        with pytest.raises(DuplicateEffectTypeError) as excinfo:
            effects.set_effect_by_id(1, FUZZ)

        assert "already exists" in str(excinfo.value)
        assert excinfo.value.occupied_slot == 0
        assert store.state == before
        assert transport.sent == sent

    def test_replacing_in_same_slot_is_allowed(self, effects, store):
        effects.set_effect_by_id(0, OVERDRIVE)
        effects.set_effect_by_id(0, FUZZ)
        assert store.state.slots[0].model_id == FUZZ

    def test_validation_errors(self, effects):
        with pytest.raises(InvalidSlotError):
            effects.set_effect_by_id(8, OVERDRIVE)
        with pytest.raises(UnknownModelError):
            effects.set_effect_by_id(0, 0x9999)

    def test_not_connected(self, effects, store, transport):
        transport.disconnect()
        with pytest.raises(NotConnectedError):
            effects.set_effect_by_id(0, OVERDRIVE)
        assert store.state.slots[0] is None


class TestKnobsAndBypass:
    def test_set_effect_knob(self, effects, store, transport):
        effects.set_effect_by_id(4, MONO_DELAY)
        transport.sent.clear()
        effects.set_effect_knob(4, 1, 0x22)
        assert store.state.slots[4].knobs[1] == 0x22
        assert transport.sent[0][33] == 0x22

    def test_set_effect_knob_on_empty_slot(self, effects):
        with pytest.raises(InvalidSlotError):
            effects.set_effect_knob(4, 1, 0x22)

    def test_set_enabled(self, effects, store, transport):
        effects.set_effect_by_id(3, SMALL_HALL)
        transport.sent.clear()
        effects.set_effect_enabled(3, False)
        assert store.state.slots[3].enabled is False
        assert transport.sent == [bytes([0x19, 0xC3, 0x06, 0x01, 0x03]) + bytes(59)]

    def test_set_enabled_on_empty_slot_is_a_no_op(self, effects, store, transport):
        before = store.state
        effects.set_effect_enabled(3, False)
        assert store.state == before
        assert transport.sent == []


class TestLayout:
    """Clearing, swapping and moving effects between the pre and post groups."""

    def test_clear_effect(self, effects, store, transport):
        effects.set_effect_by_id(0, OVERDRIVE)
        transport.sent.clear()
        effects.clear_effect(0)
        assert store.state.slots[0] is None
        clear, apply = transport.sent
        assert clear[16:18] == b"\x00\x00" and clear[22] == 0x01
        assert apply[2] == 0x00

    def test_swap(self, effects, store):
        effects.set_effect_by_id(0, OVERDRIVE)
        effects.set_effect_by_id(1, SINE_FLANGER)
        effects.swap_effects(0, 1)
        assert _model_ids(store)[:2] == [SINE_FLANGER, OVERDRIVE]
        assert store.state.slots[0].slot == 0

    def test_swap_with_empty_slot(self, effects, store):
        effects.set_effect_by_id(0, OVERDRIVE)
        effects.swap_effects(0, 5)
        assert store.state.slots[0] is None
        assert store.state.slots[5].model_id == OVERDRIVE

    def test_layout_changes_clear_before_writing(self, effects, store, transport):
        effects.set_effect_by_id(0, OVERDRIVE)
        effects.set_effect_by_id(1, SINE_FLANGER)
        transport.sent.clear()
        effects.swap_effects(0, 1)
        writes = transport.sent[0::2]
        # Two clears, then the two rewrites.
        assert [w[16:18] == b"\x00\x00" for w in writes] == [True, True, False, False]

    def test_move_within_group(self, effects, store):
        store.update_slot_state(0, _effect(0, OVERDRIVE, DspType.STOMP))
        store.update_slot_state(1, _effect(1, SINE_FLANGER, DspType.MOD))
        store.update_slot_state(2, _effect(2, MONO_DELAY, DspType.DELAY))
        store.update_slot_state(3, _effect(3, SMALL_HALL, DspType.REVERB))
        store.update_slot_state(4, _effect(4, LARGE_HALL, DspType.REVERB))

        effects.move_effect(0, 2)

        assert _model_ids(store)[:5] == [SINE_FLANGER, MONO_DELAY, OVERDRIVE, SMALL_HALL, LARGE_HALL]

    def test_move_across_groups_evicts_tail(self, effects, store):
        store.update_slot_state(0, _effect(0, OVERDRIVE, DspType.STOMP))
        store.update_slot_state(4, _effect(4, SINE_FLANGER, DspType.MOD))
        store.update_slot_state(5, _effect(5, MONO_DELAY, DspType.DELAY))
        store.update_slot_state(6, _effect(6, SMALL_HALL, DspType.REVERB))
        store.update_slot_state(7, _effect(7, LARGE_HALL, DspType.REVERB))

        effects.move_effect(0, 4)

        assert _model_ids(store) == [None, None, None, None, OVERDRIVE, SINE_FLANGER, MONO_DELAY, SMALL_HALL]

    def test_move_across_groups_fills_first_hole(self):
        slots = [_effect(1, OVERDRIVE, DspType.STOMP) if i == 1 else None for i in range(8)]
        slots[4] = _effect(4, SINE_FLANGER, DspType.MOD)
        slots[6] = _effect(6, MONO_DELAY, DspType.DELAY)

        layout = moved_layout(slots, 1, 4)

        assert [e.model_id if e else None for e in layout] == [
            None, None, None, None, OVERDRIVE, SINE_FLANGER, MONO_DELAY, None,
        ]

    def test_move_empty_slot_changes_nothing(self, effects, store, transport):
        before = store.state
        effects.move_effect(2, 6)
        assert store.state == before
        assert transport.sent == []


class TestQueries:
    def test_settings(self, effects):
        effects.set_effect_by_id(4, MONO_DELAY)
        settings = effects.get_settings(4)
        assert settings.model == "Mono Delay"
        assert settings.type == DspType.DELAY
        # The unlabelled third knob is skipped.
        assert [k.index for k in settings.knobs] == [0, 1, 3, 4, 5]
        assert effects.get_effect_knobs(4) == settings.knobs

    def test_empty_slot(self, effects):
        assert effects.get_effect_model(0) is None
        assert effects.get_settings(0) is None
        assert effects.get_effect_knobs(9) == ()
