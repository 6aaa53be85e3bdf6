# volume_memory.py
from __future__ import annotations

from typing import Dict, Optional


class VolumeMemory:
    """
    Last volume seen on each device we switched away from. Process lifetime only.
    """

    def __init__(self) -> None:
        self._levels: Dict[str, int] = {}

    def save(self, device_id: str, percent: int) -> None:
        self._levels[device_id] = max(0, min(100, int(percent)))

    def restore(self, device_id: str) -> Optional[int]:
        return self._levels.get(device_id)

    def forget(self, device_id: str) -> None:
        self._levels.pop(device_id, None)

    def clear(self) -> None:
        self._levels.clear()

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._levels

    def __len__(self) -> int:
        return len(self._levels)
