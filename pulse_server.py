# pulse_server.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional

import pulsectl

from audio_server import AudioServer, AudioServerError, CommandFailure, TransportError

log = logging.getLogger(__name__)


class PulseServer(AudioServer):
    """
    Same surface as PactlServer, over a native libpulse connection.
    """

    name = "pulsectl"

    def __init__(self, client_name: str = "sinkswap") -> None:
        self._client_name = client_name
        self._pulse: Optional[pulsectl.Pulse] = None

    def _pulse_connect(self) -> pulsectl.Pulse:
        if self._pulse is None:
            try:
                self._pulse = pulsectl.Pulse(self._client_name)
            except pulsectl.PulseError as e:
                raise TransportError(f"Cannot connect to the sound server: {e}") from e
        return self._pulse

    def _drop(self) -> None:
        # A failed call can leave the connection unusable; reconnect next time.
        self.close()

    def close(self) -> None:
        if self._pulse is not None:
            try:
                self._pulse.close()
            except Exception:
                pass
        self._pulse = None

    def _lost(self, e: pulsectl.PulseError) -> TransportError:
        self._drop()
        return TransportError(str(e) or type(e).__name__)

    def _sink(self, pulse: pulsectl.Pulse, name: str):
        try:
            return pulse.get_sink_by_name(name)
        except pulsectl.PulseIndexError as e:
            raise CommandFailure(["get-sink-by-name", name], 1, f"No such sink: {name}") from e
        except pulsectl.PulseError as e:
            raise self._lost(e) from e

    def list_sinks(self) -> List[str]:
        pulse = self._pulse_connect()
        try:
            return [s.name for s in pulse.sink_list()]
        except pulsectl.PulseError as e:
            raise self._lost(e) from e

    def sink_descriptions(self) -> Dict[str, str]:
        pulse = self._pulse_connect()
        try:
            return {s.name: s.description for s in pulse.sink_list() if s.description}
        except pulsectl.PulseError as e:
            raise self._lost(e) from e

    def get_default_sink(self) -> Optional[str]:
        pulse = self._pulse_connect()
        try:
            name = (pulse.server_info().default_sink_name or "").strip()
        except pulsectl.PulseError as e:
            raise self._lost(e) from e
        return name or None

    def list_sink_inputs(self) -> List[str]:
        pulse = self._pulse_connect()
        try:
            return [str(si.index) for si in pulse.sink_input_list()]
        except pulsectl.PulseError as e:
            raise self._lost(e) from e

    def get_sink_volume(self, sink: str) -> Optional[int]:
        pulse = self._pulse_connect()
        s = self._sink(pulse, sink)
        try:
            return int(round(pulse.volume_get_all_chans(s) * 100))
        except pulsectl.PulseError as e:
            raise self._lost(e) from e

    def set_default_sink(self, sink: str) -> None:
        pulse = self._pulse_connect()
        try:
            pulse.sink_default_set(sink)
        except pulsectl.PulseOperationFailed as e:
            raise CommandFailure(["set-default-sink", sink], 1, str(e)) from e
        except pulsectl.PulseError as e:
            raise self._lost(e) from e

    def set_sink_volume(self, sink: str, percent: int) -> None:
        pulse = self._pulse_connect()
        s = self._sink(pulse, sink)
        try:
            pulse.volume_set_all_chans(s, max(0, int(percent)) / 100.0)
        except pulsectl.PulseError as e:
            raise self._lost(e) from e

    def move_sink_input(self, stream: str, sink: str) -> None:
        # Best-effort: a stream can vanish between listing and moving.
        try:
            pulse = self._pulse_connect()
            target = pulse.get_sink_by_name(sink)
            pulse.sink_input_move(int(stream), target.index)
        except (AudioServerError, pulsectl.PulseError, ValueError) as e:
            log.debug("Moving stream %s to %s skipped: %s", stream, sink, e)
