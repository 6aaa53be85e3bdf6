# tray.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QTimer
from PySide6.QtGui import QAction, QIcon
from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

from app_meta import APP_NAME
from audio_server import AudioServer
from controller import ToggleController
from inventory import DeviceInventory
from models import SLOT_KEYS
from orchestrator import SwitchOrchestrator
from presentation import DisplayState, ICON_UNKNOWN, slot_name
from resolver import resolve
from scheduler import ScheduledTask, Scheduler
from settings_dialog import SettingsDialog
from store_config import ConfigStore
from volume_memory import VolumeMemory

log = logging.getLogger(__name__)


class QtScheduledTask(ScheduledTask):
    def __init__(self, timer: QTimer) -> None:
        super().__init__()
        self._timer = timer

    def _on_cancel(self) -> None:
        self._timer.stop()
        self._timer.deleteLater()


class QtScheduler(Scheduler):
    """
    Runs continuations from the Qt event loop; the UI stays live meanwhile.
    """

    def __init__(self, parent=None) -> None:
        self._parent = parent

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> ScheduledTask:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(delay_ms)))
        task = QtScheduledTask(timer)

        def fire() -> None:
            timer.deleteLater()
            task._fire(fn)

        timer.timeout.connect(fire)
        timer.start()
        return task


class TrayApplet(QSystemTrayIcon):
    def __init__(self, app: QApplication, store: ConfigStore, server: AudioServer) -> None:
        super().__init__(QIcon.fromTheme(ICON_UNKNOWN), app)
        self.app = app
        self.store = store
        self.server = server

        config = store.snapshot()
        inventory = DeviceInventory(server)
        orchestrator = SwitchOrchestrator(
            server,
            inventory,
            QtScheduler(self),
            volumes=VolumeMemory(),
            remember_volume=config.remember_volume,
            settle_delay_ms=config.settle_delay_ms,
        )
        self.controller = ToggleController(
            store,
            inventory,
            orchestrator,
            notify=self._show_message,
            on_display=self._apply_display,
        )
        store.add_listener(self.controller.on_settings_changed)

        self.menu = QMenu()
        self.menu.aboutToShow.connect(self._rebuild_menu)
        self.setContextMenu(self.menu)
        self.activated.connect(self._on_activated)

        self._dialog: Optional[SettingsDialog] = None

        self.controller.startup()

    def _on_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        if reason in (QSystemTrayIcon.Trigger, QSystemTrayIcon.MiddleClick):
            self.controller.toggle()

    def _show_message(self, title: str, message: str) -> None:
        self.showMessage(title, message, QSystemTrayIcon.Information, 3000)

    def _apply_display(self, state: DisplayState) -> None:
        icon = QIcon.fromTheme(state.icon)
        if icon.isNull():
            icon = QIcon.fromTheme(ICON_UNKNOWN)
        self.setIcon(icon)
        self.setToolTip(state.tooltip)

    def _rebuild_menu(self) -> None:
        self.menu.clear()

        config = self.store.snapshot()
        listing = self.controller.inventory.list_devices()
        current = self.controller.inventory.default_device() if listing else None

        for key in SLOT_KEYS:
            slot = config.slot(key)
            sid = resolve(slot.reference, listing)
            if not slot.reference:
                text = f"{key[-1]}: (unset)"
            elif sid is None:
                text = f"{key[-1]}: (Unavailable) {slot.nickname or slot.reference}"
            else:
                text = f"{key[-1]}: {slot_name(slot, sid, listing)}"
            act = QAction(text, self.menu)
            act.setCheckable(True)
            act.setChecked(sid is not None and sid == current)
            act.setEnabled(sid is not None)
            act.triggered.connect(lambda _checked=False, k=key: self.controller.switch_to_slot(k))
            self.menu.addAction(act)

        self.menu.addSeparator()

        refresh = QAction("Refresh devices", self.menu)
        refresh.triggered.connect(self.controller.refresh_devices)
        self.menu.addAction(refresh)

        settings = QAction("Settings…", self.menu)
        settings.triggered.connect(self.open_settings)
        self.menu.addAction(settings)

        self.menu.addSeparator()

        quit_act = QAction(f"Quit {APP_NAME}", self.menu)
        quit_act.triggered.connect(self.quit)
        self.menu.addAction(quit_act)

    def open_settings(self) -> None:
        if self._dialog is not None and self._dialog.isVisible():
            self._dialog.raise_()
            self._dialog.activateWindow()
            return
        self._dialog = SettingsDialog(self.store, self.controller)
        self._dialog.show()

    def quit(self) -> None:
        self.controller.shutdown()
        try:
            self.server.close()
        finally:
            self.hide()
            self.app.quit()
