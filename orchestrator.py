# orchestrator.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from audio_server import AudioServer, AudioServerError, CommandFailure
from inventory import DeviceInventory, short_name
from models import SwitchFailed, SwitchRejected, SwitchResult, SwitchSuccess
from scheduler import ScheduledTask, Scheduler
from volume_memory import VolumeMemory

log = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY_MS = 200

REASON_NOT_FOUND = "device not found"
REASON_BUSY = "switch in progress"


class SwitchOrchestrator:
    """
    Moves the default output to a target sink.

    validate -> save volume -> set default -> settle -> move streams ->
    restore volume. Only "set default" can fail the switch. Everything after
    it runs in a scheduled continuation and is best-effort.
    """

    def __init__(
        self,
        server: AudioServer,
        inventory: DeviceInventory,
        scheduler: Scheduler,
        volumes: Optional[VolumeMemory] = None,
        remember_volume: bool = False,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS,
    ) -> None:
        self.server = server
        self.inventory = inventory
        self.scheduler = scheduler
        self.volumes = volumes if volumes is not None else VolumeMemory()
        self.remember_volume = remember_volume
        self.settle_delay_ms = settle_delay_ms
        self._pending: Optional[ScheduledTask] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and self._pending.active

    def cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = None

    def switch_to(
        self,
        target_id: str,
        on_complete: Optional[Callable[[SwitchResult], None]] = None,
    ) -> SwitchResult:
        if self.pending:
            return SwitchRejected(REASON_BUSY)

        listing = self.inventory.list_devices()
        if target_id not in listing:
            return SwitchRejected(REASON_NOT_FOUND)
        display_name = listing.get(target_id) or short_name(target_id)

        if self.remember_volume:
            self._save_current_volume(target_id, listing)

        try:
            self.server.set_default_sink(target_id)
        except CommandFailure as e:
            log.error("set-default-sink %s failed: %s", target_id, e.stderr or e)
            return SwitchFailed(e.stderr or "Unknown error")
        except AudioServerError as e:
            log.error("set-default-sink %s failed: %s", target_id, e)
            return SwitchFailed(str(e))

        result = SwitchSuccess(target_id=target_id, display_name=display_name)
        log.info("Default output set to %s (%s)", display_name, target_id)

        def finish() -> None:
            self._pending = None
            self._move_streams(target_id)
            if self.remember_volume:
                self._restore_volume(target_id)
            if on_complete is not None:
                on_complete(result)

        self._pending = self.scheduler.call_later(self.settle_delay_ms, finish)
        return result

    def _save_current_volume(self, target_id: str, listing) -> None:
        current = self.inventory.default_device()
        if not current or current == target_id or current not in listing:
            return
        try:
            pct = self.server.get_sink_volume(current)
        except AudioServerError as e:
            log.debug("Volume of %s not read: %s", current, e)
            return
        if pct is None:
            return
        self.volumes.save(current, pct)
        log.debug("Remembered volume %d%% for %s", pct, current)

    def _move_streams(self, target_id: str) -> None:
        try:
            streams = self.server.list_sink_inputs()
        except AudioServerError as e:
            log.warning("Active streams not listed, none moved: %s", e)
            return
        for stream in streams:
            # Fire and forget; one stream failing must not hold back the rest.
            self.server.move_sink_input(stream, target_id)
        if streams:
            log.debug("Moved %d stream(s) to %s", len(streams), target_id)

    def _restore_volume(self, target_id: str) -> None:
        pct = self.volumes.restore(target_id)
        if pct is None:
            return
        try:
            self.server.set_sink_volume(target_id, pct)
        except AudioServerError as e:
            log.debug("Volume for %s not restored: %s", target_id, e)
            return
        log.debug("Restored volume %d%% on %s", pct, target_id)
