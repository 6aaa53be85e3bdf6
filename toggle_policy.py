# toggle_policy.py
from __future__ import annotations

from typing import Mapping, Optional

from models import NotConfigured, Switch, TargetDecision, Unresolvable, VisualOnly
from resolver import resolve


def decide_target(
    slot1_ref: str,
    slot2_ref: str,
    current_id: Optional[str],
    inventory: Mapping[str, str],
) -> TargetDecision:
    """
    Pick the device a toggle should move to. Call it on every user action;
    the result depends on the live inventory and default.
    """
    if not slot1_ref or not slot2_ref:
        return NotConfigured()

    dev1 = resolve(slot1_ref, inventory)
    dev2 = resolve(slot2_ref, inventory)
    if dev1 is None or dev2 is None:
        return Unresolvable(slot1_id=dev1, slot2_id=dev2)

    # Both slots on one device: nothing to switch, only the icon alternates.
    if dev1 == dev2:
        return VisualOnly(device_id=dev1)

    if current_id == dev1:
        return Switch(target_id=dev2)
    return Switch(target_id=dev1)
