# audio_server.py
from __future__ import annotations

import logging
import os
import re
import subprocess
from typing import Dict, List, Optional, Sequence, Tuple

log = logging.getLogger(__name__)

PACTL = "pactl"
COMMAND_TIMEOUT_S = 5.0

_PERCENT_RE = re.compile(r"(\d+)%")


class AudioServerError(RuntimeError):
    pass


class TransportError(AudioServerError):
    """The control command could not be run at all."""


class CommandFailure(AudioServerError):
    def __init__(self, cmd: Sequence[str], returncode: int, stderr: str) -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{' '.join(self.cmd)} failed ({returncode}): {stderr or 'Unknown error'}")


class DeviceNotFound(AudioServerError):
    pass


class AudioServer:
    """
    Control surface of the sound server.

    Queries raise TransportError or CommandFailure; callers decide how to
    degrade. move_sink_input is best-effort and never raises.
    """

    name = "abstract"

    def list_sinks(self) -> List[str]:
        raise NotImplementedError

    def sink_descriptions(self) -> Dict[str, str]:
        raise NotImplementedError

    def get_default_sink(self) -> Optional[str]:
        raise NotImplementedError

    def list_sink_inputs(self) -> List[str]:
        raise NotImplementedError

    def get_sink_volume(self, sink: str) -> Optional[int]:
        raise NotImplementedError

    def set_default_sink(self, sink: str) -> None:
        raise NotImplementedError

    def set_sink_volume(self, sink: str, percent: int) -> None:
        raise NotImplementedError

    def move_sink_input(self, stream: str, sink: str) -> None:
        raise NotImplementedError

    def close(self) -> None:
        return


def _c_locale_env() -> Dict[str, str]:
    # pactl translates its field labels; the parsers expect the English ones.
    return {**os.environ, "LC_ALL": "C"}


def _run(cmd: Sequence[str]) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            timeout=COMMAND_TIMEOUT_S,
            env=_c_locale_env(),
        )
    except subprocess.TimeoutExpired as e:
        raise TransportError(f"{cmd[0]} timed out after {COMMAND_TIMEOUT_S:g}s") from e
    except OSError as e:
        raise TransportError(f"{cmd[0]} could not be started: {e}") from e


def _checked(cmd: Sequence[str]) -> str:
    p = _run(cmd)
    if p.returncode != 0:
        raise CommandFailure(cmd, p.returncode, (p.stderr or p.stdout).strip())
    return p.stdout


def _spawn(cmd: Sequence[str]) -> None:
    # Not awaited. The child is left to finish on its own.
    try:
        subprocess.Popen(
            list(cmd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        log.debug("Best-effort command %s not started: %s", " ".join(cmd), e)


def parse_short_listing(text: str) -> List[Tuple[str, str]]:
    """
    `pactl list short <kind>` lines -> [(index, name)].

    Sink-input lines have no name column; name is then "".
    """
    out: List[Tuple[str, str]] = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split()
        out.append((parts[0], parts[1] if len(parts) >= 2 else ""))
    return out


def parse_sink_descriptions(text: str) -> Dict[str, str]:
    """
    `pactl list sinks` -> {sink name: description}.
    """
    out: Dict[str, str] = {}
    name = ""
    for raw in (text or "").splitlines():
        line = raw.strip()
        if line.startswith("Sink #"):
            name = ""
        elif line.startswith("Name:") and not name:
            name = line.split(":", 1)[1].strip()
        elif line.startswith("Description:") and name and name not in out:
            desc = line.split(":", 1)[1].strip()
            if desc and desc != "(null)":
                out[name] = desc
    return out


def parse_volume_percent(text: str) -> Optional[int]:
    """
    First channel percentage of a `pactl get-sink-volume` report.
    """
    m = _PERCENT_RE.search(text or "")
    if not m:
        return None
    return int(m.group(1))


class PactlServer(AudioServer):
    name = "pactl"

    def __init__(self, pactl: str = PACTL) -> None:
        self.pactl = pactl

    def list_sinks(self) -> List[str]:
        out = _checked([self.pactl, "list", "short", "sinks"])
        return [name for _idx, name in parse_short_listing(out) if name]

    def sink_descriptions(self) -> Dict[str, str]:
        return parse_sink_descriptions(_checked([self.pactl, "list", "sinks"]))

    def get_default_sink(self) -> Optional[str]:
        name = _checked([self.pactl, "get-default-sink"]).strip()
        return name or None

    def list_sink_inputs(self) -> List[str]:
        out = _checked([self.pactl, "list", "short", "sink-inputs"])
        return [idx for idx, _name in parse_short_listing(out)]

    def get_sink_volume(self, sink: str) -> Optional[int]:
        return parse_volume_percent(_checked([self.pactl, "get-sink-volume", sink]))

    def set_default_sink(self, sink: str) -> None:
        _checked([self.pactl, "set-default-sink", sink])

    def set_sink_volume(self, sink: str, percent: int) -> None:
        _checked([self.pactl, "set-sink-volume", sink, f"{int(percent)}%"])

    def move_sink_input(self, stream: str, sink: str) -> None:
        _spawn([self.pactl, "move-sink-input", str(stream), sink])


def make_server(kind: str) -> AudioServer:
    k = (kind or "").strip().lower()
    if k in ("", "pactl"):
        return PactlServer()
    if k in ("pulsectl", "pulse"):
        # libpulse is only loaded when this backend is chosen.
        from pulse_server import PulseServer

        return PulseServer()
    raise ValueError(f"Unknown audio backend: {kind}")
