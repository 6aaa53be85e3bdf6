# store_config.py
from __future__ import annotations

import configparser
import logging
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping

from app_meta import APP_NAME
from models import SLOT_KEYS, DeviceSlot, SlotConfig

log = logging.getLogger(__name__)

DEFAULT_CONFIG_TEXT = """\
[slot1]
device =
nickname =
icon =

[slot2]
device =
nickname =
icon =

[App]
show_notifications = true
remember_volume = false
keybinding = <Super>F10
backend = pactl
settle_delay_ms = 200
"""

_APP_KEYS = ("show_notifications", "remember_volume", "keybinding", "backend", "settle_delay_ms")


def _linux_xdg_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def user_config_dir(app_name: str) -> Path:
    sysname = (platform.system() or "").lower()
    if sysname.startswith("linux"):
        return _linux_xdg_config_dir() / app_name
    return Path.home() / ".config" / app_name


class SettingsPort:
    """
    What the toggle logic needs from settings storage.

    `supports_options` says whether set_options() does anything useful, i.e.
    whether some settings UI wants device choice lists pushed to it.
    """

    supports_options = False

    def snapshot(self) -> SlotConfig:
        raise NotImplementedError

    def set_slot_device(self, key: str, reference: str) -> None:
        raise NotImplementedError

    def set_options(self, key: str, options: Mapping[str, str]) -> None:
        raise NotImplementedError


def snapshot_from_cfg(cfg: configparser.ConfigParser) -> SlotConfig:
    def slot(key: str) -> DeviceSlot:
        return DeviceSlot(
            key=key,
            reference=cfg.get(key, "device", fallback="").strip(),
            nickname=cfg.get(key, "nickname", fallback="").strip(),
            icon=cfg.get(key, "icon", fallback="").strip(),
        )

    try:
        delay = cfg.getint("App", "settle_delay_ms", fallback=200)
    except ValueError:
        delay = 200

    try:
        notify = cfg.getboolean("App", "show_notifications", fallback=True)
    except ValueError:
        notify = True

    try:
        remember = cfg.getboolean("App", "remember_volume", fallback=False)
    except ValueError:
        remember = False

    return SlotConfig(
        slot1=slot("slot1"),
        slot2=slot("slot2"),
        show_notifications=notify,
        remember_volume=remember,
        keybinding=cfg.get("App", "keybinding", fallback="").strip(),
        backend=cfg.get("App", "backend", fallback="pactl").strip() or "pactl",
        settle_delay_ms=max(0, delay),
    )


@dataclass
class ConfigStore(SettingsPort):
    app_name: str = APP_NAME
    filename: str = "sinkswap.cfg"
    base_dir: Path | None = None
    options: Dict[str, Dict[str, str]] = field(default_factory=dict)
    _listeners: List[Callable[[SlotConfig], None]] = field(default_factory=list, repr=False)

    supports_options = True

    @property
    def dir_path(self) -> Path:
        if self.base_dir is not None:
            return self.base_dir
        return user_config_dir(self.app_name)

    @property
    def file_path(self) -> Path:
        return self.dir_path / self.filename

    def ensure_exists(self) -> None:
        self.dir_path.mkdir(parents=True, exist_ok=True)
        if not self.file_path.exists():
            self.file_path.write_text(DEFAULT_CONFIG_TEXT, encoding="utf-8")
            log.info("Wrote default settings to %s", self.file_path)

    def load(self) -> configparser.ConfigParser:
        self.ensure_exists()
        cfg = configparser.ConfigParser(interpolation=None)
        cfg.read(self.file_path, encoding="utf-8")

        for key in SLOT_KEYS:
            if not cfg.has_section(key):
                cfg.add_section(key)
            for opt in ("device", "nickname", "icon"):
                cfg.set(key, opt, cfg.get(key, opt, fallback=""))

        defaults = configparser.ConfigParser(interpolation=None)
        defaults.read_string(DEFAULT_CONFIG_TEXT)
        if not cfg.has_section("App"):
            cfg.add_section("App")
        for opt in _APP_KEYS:
            cfg.set("App", opt, cfg.get("App", opt, fallback=defaults.get("App", opt)))

        return cfg

    def save(self, cfg: configparser.ConfigParser) -> None:
        self.ensure_exists()
        with self.file_path.open("w", encoding="utf-8") as f:
            cfg.write(f)

    def snapshot(self) -> SlotConfig:
        return snapshot_from_cfg(self.load())

    def add_listener(self, fn: Callable[[SlotConfig], None]) -> None:
        self._listeners.append(fn)

    def update(self, changes: Mapping[str, Mapping[str, object]], notify: bool = True) -> SlotConfig:
        """
        Write {section: {option: value}} and tell listeners about the new snapshot.

        Values are stored as strings; booleans as "true"/"false".
        """
        cfg = self.load()
        changed = False
        for section, values in changes.items():
            if section not in SLOT_KEYS and section != "App":
                raise KeyError(f"Unknown settings section: {section}")
            for opt, value in values.items():
                text = _to_text(value)
                if cfg.get(section, opt, fallback=None) != text:
                    cfg.set(section, opt, text)
                    changed = True

        if changed:
            self.save(cfg)
        snap = snapshot_from_cfg(cfg)
        if changed and notify:
            for fn in list(self._listeners):
                fn(snap)
        return snap

    def set_slot_device(self, key: str, reference: str) -> None:
        if key not in SLOT_KEYS:
            raise KeyError(key)
        # Written silently: callers run inside the change handler already.
        self.update({key: {"device": reference}}, notify=False)

    def set_options(self, key: str, options: Mapping[str, str]) -> None:
        self.options[key] = dict(options)


def _to_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value).strip()
