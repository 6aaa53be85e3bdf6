# controller.py
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from inventory import DeviceInventory, short_name
from migration import auto_detect_slots, migrate_slots
from models import (
    SLOT_KEYS,
    NotConfigured,
    SlotConfig,
    Switch,
    SwitchFailed,
    SwitchRejected,
    SwitchResult,
    SwitchSuccess,
    TargetDecision,
    Unresolvable,
    VisualOnly,
)
from orchestrator import REASON_BUSY, REASON_NOT_FOUND, SwitchOrchestrator
from presentation import DisplayState, device_options, display_state, slot_name
from resolver import resolve
from store_config import SettingsPort
from toggle_policy import decide_target

log = logging.getLogger(__name__)

NOTIFY_TITLE = "Audio Toggle"

Notifier = Callable[[str, str], None]


class ToggleController:
    """
    Handles one user action at a time: click, menu pick, hotkey or a settings
    change. Every action starts from a fresh settings snapshot and a fresh
    device listing.

    An action arriving while a switch is still settling is held (latest one
    wins) and replayed when that switch completes.
    """

    def __init__(
        self,
        settings: SettingsPort,
        inventory: DeviceInventory,
        orchestrator: SwitchOrchestrator,
        notify: Optional[Notifier] = None,
        on_display: Optional[Callable[[DisplayState], None]] = None,
    ) -> None:
        self.settings = settings
        self.inventory = inventory
        self.orchestrator = orchestrator
        self._notify = notify
        self._on_display = on_display
        self.visual_toggle = False
        self._queued: Optional[Callable[[], object]] = None
        # Outcome of the most recent switch attempt, for callers of toggle().
        self.last_result: Optional[SwitchResult] = None

    @property
    def has_queued_action(self) -> bool:
        return self._queued is not None

    # ---- lifecycle -------------------------------------------------------

    def startup(self) -> None:
        listing = self.inventory.list_devices()
        config = self.settings.snapshot()

        if migrate_slots(self.settings, listing) and config.show_notifications:
            self.notify("Updated device settings to match current system sink IDs.")

        if auto_detect_slots(self.settings, listing) and config.show_notifications:
            self.notify("Auto-detected audio devices. Check settings to customize.")

        self.publish_options(listing)
        self.refresh_display()

    def on_settings_changed(self, _config: Optional[SlotConfig] = None) -> None:
        listing = self.inventory.list_devices()
        if migrate_slots(self.settings, listing) and self.settings.snapshot().show_notifications:
            self.notify("Updated device settings to match current system sink IDs.")
        self.publish_options(listing)
        self.refresh_display()

    def refresh_devices(self) -> Dict[str, str]:
        listing = self.inventory.list_devices()
        self.publish_options(listing)
        if self.settings.snapshot().show_notifications:
            self.notify(f"Found {len(listing)} audio devices.")
        self.refresh_display()
        return listing

    def shutdown(self) -> None:
        self._queued = None
        self.orchestrator.cancel_pending()

    # ---- actions ---------------------------------------------------------

    def toggle(self) -> Optional[TargetDecision]:
        if self.orchestrator.pending:
            self._queued = self.toggle
            log.debug("Toggle held until the pending switch settles")
            return None

        self.last_result = None
        config = self.settings.snapshot()
        listing = self.inventory.list_devices()
        current = self.inventory.default_device() if listing else None

        decision = decide_target(config.slot1.reference, config.slot2.reference, current, listing)

        if isinstance(decision, NotConfigured):
            self.notify("Please configure audio devices in applet settings")
        elif isinstance(decision, Unresolvable):
            log.warning(
                "Configured devices not available (slot1=%s, slot2=%s)",
                decision.slot1_id or config.slot1.reference or "-",
                decision.slot2_id or config.slot2.reference or "-",
            )
            if config.show_notifications:
                self.notify("Please configure two audio devices in settings.")
        elif isinstance(decision, VisualOnly):
            # Same sink in both slots: only the icon alternates.
            self.visual_toggle = not self.visual_toggle
            self.refresh_display()
        elif isinstance(decision, Switch):
            self._switch(config, decision.target_id, listing)

        return decision

    def switch_to_slot(self, key: str) -> Optional[SwitchResult]:
        if key not in SLOT_KEYS:
            raise KeyError(key)
        if self.orchestrator.pending:
            self._queued = lambda: self.switch_to_slot(key)
            log.debug("Switch to %s held until the pending switch settles", key)
            return None

        config = self.settings.snapshot()
        listing = self.inventory.list_devices()
        slot = config.slot(key)
        target = resolve(slot.reference, listing)
        if target is None:
            if config.show_notifications:
                name = slot.nickname or slot.reference or key
                self.notify(f"Device {name} not found. Please refresh device list in settings.")
            return SwitchRejected(REASON_NOT_FOUND)
        return self._switch(config, target, listing)

    def refresh_display(self) -> DisplayState:
        config = self.settings.snapshot()
        listing = self.inventory.list_devices()
        current = self.inventory.default_device() if listing else None
        state = display_state(config, current, listing, self.visual_toggle)
        if self._on_display is not None:
            self._on_display(state)
        return state

    def publish_options(self, listing: Dict[str, str]) -> None:
        if not self.settings.supports_options:
            return
        config = self.settings.snapshot()
        options = device_options(listing, config.slot1.reference, config.slot2.reference)
        for key in SLOT_KEYS:
            self.settings.set_options(key, options)

    def notify(self, message: str) -> None:
        log.info("%s", message)
        if self._notify is not None:
            self._notify(NOTIFY_TITLE, message)

    # ---- internals -------------------------------------------------------

    def _target_name(self, config: SlotConfig, target_id: str, listing: Dict[str, str]) -> str:
        for key in SLOT_KEYS:
            slot = config.slot(key)
            if resolve(slot.reference, listing) == target_id:
                return slot_name(slot, target_id, listing)
        return listing.get(target_id) or short_name(target_id)

    def _switch(self, config: SlotConfig, target_id: str, listing: Dict[str, str]) -> SwitchResult:
        self.orchestrator.remember_volume = config.remember_volume
        self.orchestrator.settle_delay_ms = config.settle_delay_ms
        name = self._target_name(config, target_id, listing)

        def done(_result: SwitchResult) -> None:
            self.refresh_display()
            if config.show_notifications:
                self.notify(f"Switched to {name}")
            queued, self._queued = self._queued, None
            if queued is not None:
                queued()

        result = self.orchestrator.switch_to(target_id, on_complete=done)
        self.last_result = result

        if isinstance(result, SwitchRejected):
            if result.reason == REASON_BUSY:
                log.debug("Switch to %s rejected, another switch is settling", target_id)
            elif config.show_notifications:
                self.notify(f"Device {name} not found. Please refresh device list in settings.")
        elif isinstance(result, SwitchFailed):
            if config.show_notifications:
                self.notify(f"Failed to switch to {name}: {result.error_detail}")
        elif isinstance(result, SwitchSuccess):
            log.debug("Switch to %s committed", target_id)
        return result
