# settings_dialog.py
from __future__ import annotations

from typing import Dict

from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QFormLayout,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
)

from controller import ToggleController
from models import SLOT_KEYS, SlotConfig
from presentation import ICON_SLOT1, ICON_SLOT2, device_options
from resolver import resolve
from store_config import ConfigStore
from widgets import DeviceComboBox, StatusPill, ToggleSwitch


class SettingsDialog(QDialog):
    """
    Edits the two device slots and the app options.

    Saving goes through ConfigStore.update(), which notifies the controller so
    slot references are migrated and re-resolved right away.
    """

    def __init__(self, store: ConfigStore, controller: ToggleController, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Audio Toggle Settings")
        self.setMinimumSize(620, 420)

        self.store = store
        self.controller = controller
        self.config = store.snapshot()

        self._listing: Dict[str, str] = {}
        self._current: str | None = None
        self.combos: Dict[str, DeviceComboBox] = {}
        self.pills: Dict[str, StatusPill] = {}
        self.nicknames: Dict[str, QLineEdit] = {}
        self.icons: Dict[str, QLineEdit] = {}

        outer = QVBoxLayout(self)
        outer.setContentsMargins(12, 12, 12, 12)
        outer.setSpacing(10)

        title = QLabel("Output devices")
        title.setObjectName("Title")
        outer.addWidget(title)

        for key, label, icon_hint in (("slot1", "Device 1", ICON_SLOT1), ("slot2", "Device 2", ICON_SLOT2)):
            outer.addWidget(self._make_slot_card(key, label, icon_hint))

        form = QFormLayout()
        form.setSpacing(10)
        outer.addLayout(form)

        self.notify_switch = ToggleSwitch()
        self.notify_switch.setChecked(self.config.show_notifications)
        form.addRow("Show notifications:", self.notify_switch)

        self.volume_switch = ToggleSwitch()
        self.volume_switch.setChecked(self.config.remember_volume)
        self.volume_switch.setToolTip("Restore each device's last volume when switching back to it.")
        form.addRow("Remember volume:", self.volume_switch)

        self.keybinding_edit = QLineEdit(self.config.keybinding)
        self.keybinding_edit.setPlaceholderText("<Super>F10")
        self.keybinding_edit.setToolTip("Bind this shortcut to `sinkswap toggle` in your desktop settings.")
        form.addRow("Hotkey:", self.keybinding_edit)

        self.backend_combo = QComboBox()
        self.backend_combo.addItem("pactl (command line)", "pactl")
        self.backend_combo.addItem("pulsectl (libpulse)", "pulsectl")
        idx = self.backend_combo.findData(self.config.backend)
        self.backend_combo.setCurrentIndex(idx if idx >= 0 else 0)
        self.backend_combo.setToolTip("Takes effect the next time the applet starts.")
        form.addRow("Backend:", self.backend_combo)

        self.delay_spin = QSpinBox()
        self.delay_spin.setRange(0, 5000)
        self.delay_spin.setSingleStep(50)
        self.delay_spin.setSuffix(" ms")
        self.delay_spin.setValue(self.config.settle_delay_ms)
        self.delay_spin.setToolTip("Wait before moving playing streams to the new device.")
        form.addRow("Settle delay:", self.delay_spin)

        btns = QHBoxLayout()
        btns.setSpacing(8)

        refresh_btn = QPushButton("Refresh devices")
        refresh_btn.clicked.connect(self._refresh)

        save_btn = QPushButton("Save")
        save_btn.setObjectName("Primary")
        save_btn.clicked.connect(self._save)

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)

        btns.addWidget(refresh_btn)
        btns.addStretch(1)
        btns.addWidget(save_btn)
        btns.addWidget(cancel_btn)
        outer.addLayout(btns)

        self._populate(self.controller.inventory.list_devices())

    def _make_slot_card(self, key: str, label: str, icon_hint: str) -> QFrame:
        frame = QFrame()
        frame.setObjectName("SlotCard")

        form = QFormLayout(frame)
        form.setContentsMargins(12, 12, 12, 12)
        form.setSpacing(8)

        slot = self.config.slot(key)

        pill = StatusPill()
        combo = DeviceComboBox()
        combo.currentIndexChanged.connect(lambda _i, k=key: self._update_pill(k))

        top = QHBoxLayout()
        top.setSpacing(8)
        top.addWidget(combo, 1)
        top.addWidget(pill, 0)
        form.addRow(f"{label}:", top)

        nick = QLineEdit(slot.nickname)
        nick.setPlaceholderText("Shown in tooltips and notifications")
        form.addRow("Nickname:", nick)

        icon = QLineEdit(slot.icon)
        icon.setPlaceholderText(icon_hint)
        form.addRow("Icon:", icon)

        self.combos[key] = combo
        self.pills[key] = pill
        self.nicknames[key] = nick
        self.icons[key] = icon
        return frame

    def _populate(self, listing: Dict[str, str]) -> None:
        self._listing = listing
        self._current = self.controller.inventory.default_device() if listing else None

        refs = {k: self.combos[k].selected_reference() or self.config.slot(k).reference for k in SLOT_KEYS}
        published = self.store.options.get("slot1")
        options = published if published else device_options(listing, *refs.values())
        for key in SLOT_KEYS:
            self.combos[key].set_options(options, refs[key])
            self._update_pill(key)

    def _update_pill(self, key: str) -> None:
        ref = self.combos[key].selected_reference()
        pill = self.pills[key]
        if not ref:
            pill.set_state("unset")
            pill.setToolTip("No device selected.")
            return
        sid = resolve(ref, self._listing)
        if sid is None:
            pill.set_state("unavailable")
            pill.setToolTip(f"{ref} is not currently available.")
        elif sid == self._current:
            pill.set_state("active")
            pill.setToolTip(f"{sid} is the current output.")
        else:
            pill.set_state("ready")
            pill.setToolTip(sid)

    def _refresh(self) -> None:
        self._populate(self.controller.refresh_devices())

    def _save(self) -> None:
        if self.inventory_failed():
            answer = QMessageBox.question(
                self,
                "Sound server unavailable",
                "Devices could not be listed. Save the selection anyway?",
            )
            if answer != QMessageBox.Yes:
                return

        changes = {
            key: {
                "device": self.combos[key].selected_reference(),
                "nickname": self.nicknames[key].text(),
                "icon": self.icons[key].text(),
            }
            for key in SLOT_KEYS
        }
        changes["App"] = {
            "show_notifications": self.notify_switch.isChecked(),
            "remember_volume": self.volume_switch.isChecked(),
            "keybinding": self.keybinding_edit.text(),
            "backend": self.backend_combo.currentData() or "pactl",
            "settle_delay_ms": self.delay_spin.value(),
        }
        self.saved_config: SlotConfig = self.store.update(changes)
        self.accept()

    def inventory_failed(self) -> bool:
        return not self._listing and self.controller.inventory.last_error is not None
