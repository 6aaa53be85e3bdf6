# main.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from app_meta import APP_NAME, detect_version
from audio_server import DeviceNotFound, make_server
from controller import ToggleController
from inventory import DeviceInventory
from log_setup import setup_logging
from migration import migrate_slots
from models import NotConfigured, Switch, SwitchFailed, SwitchRejected, SwitchSuccess, Unresolvable
from orchestrator import SwitchOrchestrator
from resolver import resolve
from scheduler import BlockingScheduler
from store_config import ConfigStore

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sinkswap",
        description="Toggle the default audio output between two devices.",
    )
    p.add_argument("--version", action="version", version=f"{APP_NAME} {detect_version()}")
    p.add_argument("-v", "--verbose", action="store_true", help="log debug output to the console")
    p.add_argument("--backend", choices=("pactl", "pulsectl"), help="override the configured backend")

    sub = p.add_subparsers(dest="command")
    sub.add_parser("tray", help="run the tray applet (default)")
    sub.add_parser("toggle", help="switch to the other configured device (bind this to a hotkey)")
    sw = sub.add_parser("switch", help="switch to a device by id, label, id suffix, or slot1/slot2")
    sw.add_argument("device")
    sub.add_parser("list", help="list output devices")
    sub.add_parser("status", help="show slots and the current output")
    sub.add_parser("migrate", help="rewrite label-style slot settings to device ids")
    return p


def _cli_controller(store: ConfigStore, backend: Optional[str]) -> ToggleController:
    config = store.snapshot()
    server = make_server(backend or config.backend)
    inventory = DeviceInventory(server)
    orchestrator = SwitchOrchestrator(
        server,
        inventory,
        BlockingScheduler(),
        remember_volume=config.remember_volume,
        settle_delay_ms=config.settle_delay_ms,
    )
    return ToggleController(store, inventory, orchestrator, notify=_print_notice)


def _print_notice(_title: str, message: str) -> None:
    print(message)


def _cmd_list(ctl: ToggleController) -> int:
    devices = ctl.inventory.devices()
    if not devices:
        if ctl.inventory.last_error is not None:
            print(f"Sound server unavailable: {ctl.inventory.last_error}", file=sys.stderr)
            return 1
        print("No output devices found.")
        return 0
    for d in devices:
        mark = "*" if d.is_default else " "
        print(f"{mark} {d.id}\t{d.label}")
    return 0


def _cmd_status(ctl: ToggleController) -> int:
    config = ctl.settings.snapshot()
    listing = ctl.inventory.list_devices()
    current = ctl.inventory.default_device() if listing else None
    print(f"current: {current or 'unknown'}")
    for key in ("slot1", "slot2"):
        slot = config.slot(key)
        sid = resolve(slot.reference, listing)
        state = "unset" if not slot.reference else (sid or "unavailable")
        nick = f" ({slot.nickname})" if slot.nickname else ""
        print(f"{key}: {slot.reference or '-'}{nick} -> {state}")
    state = ctl.refresh_display()
    print(state.tooltip)
    return 0


def _cmd_switch(ctl: ToggleController, device: str) -> int:
    if device in ("slot1", "slot2"):
        result = ctl.switch_to_slot(device)
    else:
        listing = ctl.inventory.list_devices()
        target = resolve(device, listing)
        if target is None:
            raise DeviceNotFound(f"No output device matches {device!r}")
        result = ctl.orchestrator.switch_to(target)
    return _report(result)


def _report(result) -> int:
    if isinstance(result, SwitchSuccess):
        print(f"Switched to {result.display_name}")
        return 0
    if isinstance(result, SwitchRejected):
        print(f"Not switched: {result.reason}", file=sys.stderr)
        return 2
    if isinstance(result, SwitchFailed):
        print(f"Switch failed: {result.error_detail}", file=sys.stderr)
        return 1
    return 0


def _toggle_exit_code(decision, result) -> int:
    if isinstance(decision, (NotConfigured, Unresolvable)):
        return 2
    if isinstance(decision, Switch):
        if isinstance(result, SwitchFailed):
            return 1
        if isinstance(result, SwitchRejected):
            return 2
    return 0


def _run_tray(store: ConfigStore, backend: Optional[str]) -> int:
    from PySide6.QtWidgets import QApplication, QSystemTrayIcon

    from theme import apply_dark_theme
    from tray import TrayApplet

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setQuitOnLastWindowClosed(False)
    apply_dark_theme(app)

    if not QSystemTrayIcon.isSystemTrayAvailable():
        log.error("No system tray available")
        print("No system tray available; use `sinkswap toggle` instead.", file=sys.stderr)
        return 1

    server = make_server(backend or store.snapshot().backend)
    tray = TrayApplet(app, store, server)
    tray.show()
    return app.exec()


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    log_file = setup_logging(verbose=args.verbose)
    log.debug("Logging to %s", log_file)

    store = ConfigStore()
    command = args.command or "tray"

    if command == "tray":
        return _run_tray(store, args.backend)

    ctl = _cli_controller(store, args.backend)
    try:
        if command == "list":
            return _cmd_list(ctl)
        if command == "status":
            return _cmd_status(ctl)
        if command == "migrate":
            changed = migrate_slots(store, ctl.inventory.list_devices())
            print(f"Updated: {', '.join(changed)}" if changed else "Nothing to migrate.")
            return 0
        if command == "toggle":
            # Controller notifications are printed; only the exit code is left.
            return _toggle_exit_code(ctl.toggle(), ctl.last_result)
        if command == "switch":
            return _cmd_switch(ctl, args.device)
    except DeviceNotFound as e:
        print(str(e), file=sys.stderr)
        return 2
    finally:
        ctl.orchestrator.server.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
