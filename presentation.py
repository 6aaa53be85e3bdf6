# presentation.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from inventory import short_name
from models import DeviceSlot, SlotConfig
from resolver import resolve

ICON_UNKNOWN = "audio-card-symbolic"
ICON_SLOT1 = "video-display-symbolic"
ICON_SLOT2 = "audio-headphones-symbolic"

UNSET_LABEL = "Unset"
SHORT_ID_LEN = 24


@dataclass(frozen=True)
class DisplayState:
    icon: str
    tooltip: str


def slot_icon(slot: DeviceSlot) -> str:
    if slot.icon:
        return slot.icon
    return ICON_SLOT1 if slot.key == "slot1" else ICON_SLOT2


def slot_name(slot: DeviceSlot, sink_id: Optional[str], inventory: Mapping[str, str]) -> str:
    if slot.nickname:
        return slot.nickname
    if sink_id:
        return inventory.get(sink_id) or short_name(sink_id)
    return slot.reference or "Unknown"


def display_state(
    config: SlotConfig,
    current_id: Optional[str],
    inventory: Mapping[str, str],
    visual_toggle: bool,
) -> DisplayState:
    if not config.is_configured:
        return DisplayState(ICON_UNKNOWN, "Audio Toggle: Please configure devices in settings")

    dev1 = resolve(config.slot1.reference, inventory)
    dev2 = resolve(config.slot2.reference, inventory)

    if dev1 and dev1 == dev2:
        slot = config.slot2 if visual_toggle else config.slot1
        name = slot_name(slot, dev1, inventory)
        return DisplayState(slot_icon(slot), f"Audio: {name} (visual toggle) - click to switch icon")

    for slot, sid in ((config.slot1, dev1), (config.slot2, dev2)):
        if sid and current_id == sid:
            return DisplayState(slot_icon(slot), f"Audio: {slot_name(slot, sid, inventory)} (click to switch)")

    return DisplayState(ICON_UNKNOWN, "Audio: Unknown device (click to switch)")


def device_options(inventory: Mapping[str, str], *configured: str) -> Dict[str, str]:
    """
    Choice list for the device pickers: {shown label: stored value}.

    A configured reference that is not currently present keeps an
    "(Unavailable)" entry so the selection is not lost.
    """
    options: Dict[str, str] = {UNSET_LABEL: ""}
    for sid, label in inventory.items():
        short_id = sid[-SHORT_ID_LEN:]
        options[f"{label or sid} ({short_id})"] = sid

    values = set(options.values())
    for ref in configured:
        if ref and ref not in values:
            options[f"(Unavailable) {ref}"] = ref
            values.add(ref)
    return options
