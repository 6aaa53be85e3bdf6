# resolver.py
from __future__ import annotations

from typing import Mapping, Optional


def resolve(reference: str, inventory: Mapping[str, str]) -> Optional[str]:
    """
    Map a stored device reference onto a sink id present in `inventory`.

    Order matters: exact id, then exact label, then id suffix. With duplicate
    labels or several matching suffixes the first device in listing order wins.
    """
    if not reference:
        return None

    if reference in inventory:
        return reference

    for sid, label in inventory.items():
        if label == reference:
            return sid

    for sid in inventory:
        if sid.endswith(reference):
            return sid

    return None
