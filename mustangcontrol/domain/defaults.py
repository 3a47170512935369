from __future__ import annotations

from mustangcontrol.protocol.codes import KNOB_COUNT


# Index 17 of an amp template is the cabinet byte (offset 49 on the wire).
AMP_CABINET_INDEX = 17


def _amp_template(
    *,
    volume: int,
    gain: int,
    gain2: int,
    master: int,
    treble: int,
    mid: int,
    bass: int,
    presence: int,
    cabinet: int,
    sag: int = 0x01,
    bright: int = 0x00,
) -> tuple[int, ...]:
    knobs = [0x00] * KNOB_COUNT
    knobs[0:8] = [volume, gain, gain2, master, treble, mid, bass, presence]
    knobs[9] = 0x80  # depth
    knobs[10] = 0x80  # bias
    knobs[AMP_CABINET_INDEX] = cabinet
    knobs[19] = sag
    knobs[20] = bright
    return tuple(knobs)


def _fx_template(*values: int) -> tuple[int, ...]:
    knobs = [0x00] * KNOB_COUNT
    knobs[: len(values)] = values
    return tuple(knobs)


# Factory "new model" knob values, keyed by model id.
# Captured from the amplifier right after selecting each model from the front panel.
FACTORY_TEMPLATES: dict[int, tuple[int, ...]] = {
    # Amps
    0x6700: _amp_template(volume=0xAA, gain=0x99, gain2=0x80, master=0x80, treble=0x80, mid=0x80, bass=0x80, presence=0x80, cabinet=0x01),
    0x6400: _amp_template(volume=0xAA, gain=0x80, gain2=0x80, master=0x80, treble=0x80, mid=0x80, bass=0x80, presence=0x7A, cabinet=0x02),
    0x7C00: _amp_template(volume=0xAA, gain=0xB3, gain2=0x80, master=0x80, treble=0x80, mid=0x80, bass=0x80, presence=0x80, cabinet=0x05),
    0x5300: _amp_template(volume=0xAA, gain=0x80, gain2=0x80, master=0x80, treble=0x80, mid=0x80, bass=0x80, presence=0x80, cabinet=0x03),
    0x6A00: _amp_template(volume=0xAA, gain=0x80, gain2=0x80, master=0x80, treble=0x80, mid=0x80, bass=0x80, presence=0x80, cabinet=0x04),
    0x7500: _amp_template(volume=0xAA, gain=0x55, gain2=0x80, master=0x80, treble=0x80, mid=0x80, bass=0x80, presence=0x80, cabinet=0x09),
    0x7200: _amp_template(volume=0xAA, gain=0xBB, gain2=0x82, master=0x55, treble=0x99, mid=0x80, bass=0x80, presence=0x80, cabinet=0x0B),
    0x6100: _amp_template(volume=0xAA, gain=0xA2, gain2=0x80, master=0x80, treble=0x80, mid=0x80, bass=0x80, presence=0x80, cabinet=0x07),
    0x7900: _amp_template(volume=0xAA, gain=0xFF, gain2=0x80, master=0x7D, treble=0x80, mid=0x80, bass=0x80, presence=0x80, cabinet=0x0A),
    0x5E00: _amp_template(volume=0xAA, gain=0xFF, gain2=0x80, master=0x7D, treble=0x80, mid=0x80, bass=0x80, presence=0x80, cabinet=0x08),
    0x5D00: _amp_template(volume=0xAA, gain=0x8E, gain2=0x80, master=0x80, treble=0x80, mid=0x80, bass=0x80, presence=0x80, cabinet=0x06),
    0x6D00: _amp_template(volume=0xAA, gain=0xA4, gain2=0x80, master=0x80, treble=0x80, mid=0x6E, bass=0x80, presence=0x80, cabinet=0x06),
    # Stompbox
    0x3C00: _fx_template(0x80, 0x80, 0x80, 0x80, 0x80),
    0x4900: _fx_template(0xFF, 0x80, 0x00, 0xFF, 0x00),
    0x1A00: _fx_template(0x80, 0x80, 0x00, 0x80, 0x80),
    0x0700: _fx_template(0x8D, 0x0F, 0x4F, 0x7F, 0x7F),
    # Modulation
    0x1200: _fx_template(0xFF, 0x0E, 0x19, 0x19, 0x80),
    0x1800: _fx_template(0xFF, 0x0E, 0x80, 0x80, 0x80),
    0x4000: _fx_template(0xFF, 0x80, 0x80, 0x80, 0x80),
    0x4F00: _fx_template(0xFF, 0x80, 0xFD, 0x80, 0x00),
    # Delay
    0x1600: _fx_template(0xFF, 0x80, 0x00, 0x80, 0x80, 0x80),
    0x2B00: _fx_template(0x7D, 0x1C, 0x00, 0x63, 0x80, 0x05, 0x00),
    # Reverb
    0x2400: _fx_template(0x6E, 0x5D, 0x6E, 0x80, 0x91),
    0x3A00: _fx_template(0x4F, 0x3E, 0x80, 0x05, 0xB0),
    0x2100: _fx_template(0x80, 0x8B, 0x49, 0xFF, 0x80),
}


def default_knobs(model_id: int) -> list[int]:
    """Return a fresh copy of the factory knob template for `model_id`.

    Models without a captured template get an all-zero buffer.
    """

    template = FACTORY_TEMPLATES.get(model_id)
    if template is None:
        return [0x00] * KNOB_COUNT
    return list(template)
