import sys
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

import pytest

# Add the project root directory to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from audio_server import AudioServer, CommandFailure, TransportError
from inventory import DeviceInventory
from models import SLOT_KEYS, DeviceSlot, SlotConfig
from orchestrator import SwitchOrchestrator
from scheduler import ScheduledTask, Scheduler
from store_config import SettingsPort
from volume_memory import VolumeMemory


class FakeAudioServer(AudioServer):
    """In-memory sound server that records every call."""

    name = "fake"

    def __init__(self, sinks: Optional[Dict[str, str]] = None, default: Optional[str] = None):
        self.sinks: Dict[str, str] = dict(sinks or {})
        self.default = default
        self.streams: List[str] = []
        self.volumes: Dict[str, int] = {}
        self.calls: List[tuple] = []
        self.fail_listing: Optional[Exception] = None
        self.fail_descriptions: Optional[Exception] = None
        self.fail_set_default: Optional[Exception] = None
        self.fail_volume: Optional[Exception] = None
        self.fail_streams: Optional[Exception] = None

    def list_sinks(self):
        self.calls.append(("list_sinks",))
        if self.fail_listing:
            raise self.fail_listing
        return list(self.sinks)

    def sink_descriptions(self):
        if self.fail_descriptions:
            raise self.fail_descriptions
        return {k: v for k, v in self.sinks.items() if v}

    def get_default_sink(self):
        if self.fail_listing:
            raise self.fail_listing
        return self.default

    def list_sink_inputs(self):
        self.calls.append(("list_sink_inputs",))
        if self.fail_streams:
            raise self.fail_streams
        return list(self.streams)

    def get_sink_volume(self, sink):
        self.calls.append(("get_sink_volume", sink))
        if self.fail_volume:
            raise self.fail_volume
        return self.volumes.get(sink)

    def set_default_sink(self, sink):
        self.calls.append(("set_default_sink", sink))
        if self.fail_set_default:
            raise self.fail_set_default
        self.default = sink

    def set_sink_volume(self, sink, percent):
        self.calls.append(("set_sink_volume", sink, percent))
        if self.fail_volume:
            raise self.fail_volume
        self.volumes[sink] = percent

    def move_sink_input(self, stream, sink):
        self.calls.append(("move_sink_input", stream, sink))

    def called(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]


class ManualScheduler(Scheduler):
    """Holds continuations until the test runs them."""

    def __init__(self):
        self.queue: List[tuple] = []

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask()
        self.queue.append((delay_ms, task, fn))
        return task

    def run_all(self) -> int:
        ran = 0
        while self.queue:
            _delay, task, fn = self.queue.pop(0)
            if task.active:
                task._fire(fn)
                ran += 1
        return ran


class MemorySettings(SettingsPort):
    """Settings port without option lists."""

    def __init__(self, slot1: str = "", slot2: str = "", **app):
        self.refs = {"slot1": slot1, "slot2": slot2}
        self.nicknames = {"slot1": "", "slot2": ""}
        self.app = dict(app)
        self.writes: List[tuple] = []

    def snapshot(self) -> SlotConfig:
        return SlotConfig(
            slot1=DeviceSlot("slot1", self.refs["slot1"], self.nicknames["slot1"]),
            slot2=DeviceSlot("slot2", self.refs["slot2"], self.nicknames["slot2"]),
            **self.app,
        )

    def set_slot_device(self, key: str, reference: str) -> None:
        assert key in SLOT_KEYS
        self.writes.append((key, reference))
        self.refs[key] = reference


class OptionSettings(MemorySettings):
    supports_options = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.options: Dict[str, Mapping[str, str]] = {}

    def set_options(self, key, options):
        self.options[key] = dict(options)


HDMI = "alsa_output.pci-0000_01_00.1.hdmi-stereo"
USB = "alsa_output.usb-Logitech_G533-00.analog-stereo"
ANALOG = "alsa_output.pci-0000_00_1f.3.analog-stereo"


@pytest.fixture
def server():
    return FakeAudioServer(
        sinks={"dev.hdmi": "HDMI Output", "dev.usb": "USB Headset"},
        default="dev.hdmi",
    )


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def inventory(server):
    return DeviceInventory(server)


@pytest.fixture
def orchestrator(server, inventory, scheduler):
    return SwitchOrchestrator(server, inventory, scheduler, volumes=VolumeMemory())


@pytest.fixture
def transport_error():
    return TransportError("pactl could not be started: [Errno 2] No such file or directory")


@pytest.fixture
def command_failure():
    return CommandFailure(["pactl", "set-default-sink", "dev.usb"], 1, "Failure: No such entity")
