from __future__ import annotations

"""Fender Mustang USB HID constants.

These values were reverse-engineered from captured traffic.
Keep protocol constants here so the rest of the codebase doesn't duplicate them.
"""


FENDER_VENDOR_ID = 0x1ED8

REPORT_SIZE = 64
KNOB_COUNT = 32
EFFECT_SLOT_COUNT = 8
PRESET_NAME_SIZE = 32


class MustangOpcodes:
    # Connection handshake
    HANDSHAKE_1 = 0xC3
    HANDSHAKE_2_BYTE1 = 0x1A
    HANDSHAKE_2_BYTE2 = 0x03

    # State requests
    REQUEST_STATE = 0xFF
    REQUEST_STATE_BYTE2 = 0xC1
    REQUEST_BYPASS = 0x19
    REQUEST_BYPASS_BYTE2 = 0x00

    # Data packets
    DATA_PACKET = 0x1C
    DATA_READ = 0x01
    DATA_WRITE = 0x03

    # Data packet types (byte 2) outside the DSP range
    TYPE_PRESET_SELECT = 0x00
    TYPE_PRESET_LOAD = 0x01
    TYPE_PRESET_SAVE = 0x03
    TYPE_PRESET_INFO = 0x04

    # Bypass control
    BYPASS_PACKET = 0x19
    BYPASS_SET = 0xC3

    # Sub-command of a live (physical) knob change
    LIVE_CHANGE = 0x00

    # Byte 7 of every sequenced packet
    SEQUENCE_MARKER = 0x01

    # Apply family discriminator (byte 4)
    APPLY_FAMILY_MOD = 0x01
    APPLY_FAMILY_OTHER = 0x02


class MustangOffsets:
    COMMAND = 0
    SUB_COMMAND = 1
    TYPE = 2
    INSTANCE = 3
    PRESET_SLOT = 4
    LIVE_KNOB_INDEX = 5
    SEQUENCE_ID = 6
    SEQUENCE_MARKER = 7
    LIVE_KNOB_VALUE = 10
    LIVE_SLOT_INDEX = 13
    PRESET_NAME = 16
    MODEL_ID_MSB = 16
    MODEL_ID_LSB = 17
    SLOT_INDEX = 18
    BYPASS = 22
    KNOB_START = 32
    KNOB_END = 64
    CABINET_ID = 49


class MustangValues:
    ENABLED = 0x00
    BYPASSED = 0x01
    ACTIVE_INSTANCE = 0x00


# Byte 2 of a bypass toggle is the DSP type minus this offset (Stomp -> 3).
BYPASS_FAMILY_OFFSET = 3
