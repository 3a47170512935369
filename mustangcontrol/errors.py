from __future__ import annotations


class MustangError(Exception):
    """Base class for errors raised by mustangcontrol."""


class UnknownModelError(MustangError, ValueError):
    def __init__(self, kind: str, model_id: int) -> None:
        super().__init__(f"Unknown {kind} ID: 0x{model_id:04X}")
        self.kind = kind
        self.model_id = model_id


class InvalidSlotError(MustangError, ValueError):
    pass


class DuplicateEffectTypeError(MustangError, ValueError):
    def __init__(self, family: str, occupied_slot: int) -> None:
        super().__init__(f"Effect of type {family} already exists in slot {occupied_slot}")
        self.family = family
        self.occupied_slot = occupied_slot


class NotConnectedError(MustangError, RuntimeError):
    pass


class TransportError(MustangError, IOError):
    pass
