# migration.py
from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Tuple

from models import SLOT_KEYS
from store_config import SettingsPort

log = logging.getLogger(__name__)


def migrate(slot_ref: str, inventory: Mapping[str, str]) -> Optional[str]:
    """
    Older settings stored device labels. Return the sink id a label now
    belongs to, or None when there is nothing to rewrite.
    """
    if not slot_ref or slot_ref in inventory:
        return None
    for sid, label in inventory.items():
        if label == slot_ref:
            return sid
    return None


def migrate_slots(settings: SettingsPort, inventory: Mapping[str, str]) -> List[str]:
    """
    Rewrite legacy slot references in place. Returns the slot keys that changed.

    Safe to run repeatedly: a label that did not match earlier may match once
    the device shows up.
    """
    if not inventory:
        return []

    config = settings.snapshot()
    changed: List[str] = []
    for key in SLOT_KEYS:
        ref = config.slot(key).reference
        fixed = migrate(ref, inventory)
        if fixed is None:
            continue
        settings.set_slot_device(key, fixed)
        changed.append(key)
        log.info("Settings %s: %r -> %s", key, ref, fixed)
    return changed


def auto_detect(inventory: Mapping[str, str]) -> Tuple[str, str]:
    """
    Initial slot choice for an unconfigured install: HDMI + USB, then
    HDMI + analog, else the first two devices listed.
    """
    ids = list(inventory)
    if not ids:
        return "", ""
    if len(ids) == 1:
        return ids[0], ""

    def first(hint: str) -> str:
        return next((s for s in ids if hint in s), "")

    hdmi = first("hdmi")
    usb = first("usb")
    analog = first("analog")
    if hdmi and usb:
        return hdmi, usb
    if hdmi and analog:
        return hdmi, analog
    return ids[0], ids[1]


def auto_detect_slots(settings: SettingsPort, inventory: Mapping[str, str]) -> bool:
    config = settings.snapshot()
    if config.slot1.reference or config.slot2.reference:
        return False

    dev1, dev2 = auto_detect(inventory)
    if not dev1:
        return False
    settings.set_slot_device("slot1", dev1)
    if dev2:
        settings.set_slot_device("slot2", dev2)
    log.info("Auto-detected devices: slot1=%s slot2=%s", dev1, dev2 or "-")
    return True
