# models.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Union


SLOT_KEYS = ("slot1", "slot2")


@dataclass(frozen=True)
class Device:
    id: str       # sink name, e.g. "alsa_output.pci-0000_00_1f.3.analog-stereo"
    label: str    # description; not unique
    is_default: bool = False


@dataclass(frozen=True)
class DeviceSlot:
    key: str          # "slot1" | "slot2"
    reference: str    # sink id, or a legacy label / id suffix
    nickname: str = ""
    icon: str = ""


@dataclass(frozen=True)
class SlotConfig:
    """
    Snapshot of the persisted settings taken once per user action.
    """
    slot1: DeviceSlot
    slot2: DeviceSlot
    show_notifications: bool = True
    remember_volume: bool = False
    keybinding: str = ""
    backend: str = "pactl"
    settle_delay_ms: int = 200

    def slot(self, key: str) -> DeviceSlot:
        if key == "slot1":
            return self.slot1
        if key == "slot2":
            return self.slot2
        raise KeyError(key)

    @property
    def is_configured(self) -> bool:
        return bool(self.slot1.reference) and bool(self.slot2.reference)


@dataclass(frozen=True)
class SwitchSuccess:
    target_id: str
    display_name: str


@dataclass(frozen=True)
class SwitchRejected:
    reason: str


@dataclass(frozen=True)
class SwitchFailed:
    error_detail: str


SwitchResult = Union[SwitchSuccess, SwitchRejected, SwitchFailed]


@dataclass(frozen=True)
class NotConfigured:
    pass


@dataclass(frozen=True)
class Unresolvable:
    slot1_id: str | None
    slot2_id: str | None


@dataclass(frozen=True)
class VisualOnly:
    device_id: str


@dataclass(frozen=True)
class Switch:
    target_id: str


TargetDecision = Union[NotConfigured, Unresolvable, VisualOnly, Switch]
