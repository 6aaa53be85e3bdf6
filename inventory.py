# inventory.py
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from audio_server import AudioServer, AudioServerError
from models import Device

log = logging.getLogger(__name__)

_NAME_HINTS = (
    ("hdmi", "HDMI Output"),
    ("usb", "USB Audio Device"),
    ("analog", "Analog Output"),
    ("bluetooth", "Bluetooth Device"),
    ("bluez", "Bluetooth Device"),
    ("pipewire", "PipeWire Device"),
)

_PREFIXED_RE = re.compile(r"(?:alsa_output|pipewire)\.(.+?)(?:\.|$)")


def friendly_name(sink_id: str) -> str:
    low = (sink_id or "").lower()
    for hint, label in _NAME_HINTS:
        if hint in low:
            return label

    m = _PREFIXED_RE.search(sink_id or "")
    if m:
        words = re.sub(r"[_-]", " ", m.group(1)).split()
        if words:
            return " ".join(w[:1].upper() + w[1:] for w in words)
    return sink_id


def short_name(sink_id: str) -> str:
    return sink_id.split(".")[-1] if sink_id else "Unknown"


class DeviceInventory:
    """
    Live view of the server's output devices.

    Nothing is cached between calls; each method queries the server again.
    Failures never escape: they degrade to {} / None and are kept on
    `last_error` for whoever wants to report them.
    """

    def __init__(self, server: AudioServer) -> None:
        self.server = server
        self.last_error: Optional[AudioServerError] = None

    def list_devices(self) -> Dict[str, str]:
        try:
            ids = self.server.list_sinks()
        except AudioServerError as e:
            self._failed("list sinks", e)
            return {}

        try:
            descriptions = self.server.sink_descriptions()
        except AudioServerError as e:
            log.info("Sink descriptions unavailable, using derived names: %s", e)
            descriptions = {}

        self.last_error = None
        out: Dict[str, str] = {}
        for sid in ids:
            if sid in out:
                continue
            out[sid] = descriptions.get(sid) or friendly_name(sid)
        return out

    def default_device(self) -> Optional[str]:
        try:
            name = self.server.get_default_sink()
        except AudioServerError as e:
            self._failed("get default sink", e)
            return None
        return (name or "").strip() or None

    def devices(self) -> List[Device]:
        listing = self.list_devices()
        current = self.default_device() if listing else None
        return [Device(id=sid, label=label, is_default=(sid == current)) for sid, label in listing.items()]

    def _failed(self, what: str, e: AudioServerError) -> None:
        self.last_error = e
        log.warning("Could not %s: %s", what, e)
