import pytest

from conftest import ANALOG, HDMI, USB, FakeAudioServer
from inventory import DeviceInventory, friendly_name, short_name


@pytest.mark.unit
class TestFriendlyName:
    @pytest.mark.parametrize(
        "sink_id, expected",
        [
            (HDMI, "HDMI Output"),
            (USB, "USB Audio Device"),
            (ANALOG, "Analog Output"),
            ("bluez_output.00_1B_66_A1_B2_C3.1", "Bluetooth Device"),
            ("pipewire.combined", "PipeWire Device"),
            ("alsa_output.pci-0000_00_1b.0.iec958-stereo", "Pci 0000 00 1b"),
            ("alsa_output.my_dac", "My Dac"),
            ("auto_null", "auto_null"),
        ],
    )
    def test_heuristics(self, sink_id, expected):
        assert friendly_name(sink_id) == expected

    def test_short_name(self):
        assert short_name("alsa_output.foo.analog-stereo") == "analog-stereo"
        assert short_name("") == "Unknown"


@pytest.mark.unit
class TestDeviceInventory:
    def test_listing_order_and_descriptions(self):
        server = FakeAudioServer(sinks={HDMI: "", USB: "G533 Headset", ANALOG: ""})
        listing = DeviceInventory(server).list_devices()
        assert list(listing) == [HDMI, USB, ANALOG]
        assert listing[USB] == "G533 Headset"
        assert listing[HDMI] == "HDMI Output"
        assert listing[ANALOG] == "Analog Output"

    def test_transport_failure_degrades_to_empty(self, transport_error):
        server = FakeAudioServer(sinks={HDMI: "TV"})
        server.fail_listing = transport_error
        inv = DeviceInventory(server)
        assert inv.list_devices() == {}
        assert inv.last_error is transport_error

    def test_error_clears_after_recovery(self, transport_error):
        server = FakeAudioServer(sinks={HDMI: "TV"})
        server.fail_listing = transport_error
        inv = DeviceInventory(server)
        inv.list_devices()
        server.fail_listing = None
        assert inv.list_devices() == {HDMI: "TV"}
        assert inv.last_error is None

    def test_description_failure_falls_back_to_heuristics(self, command_failure):
        server = FakeAudioServer(sinks={HDMI: "TV", USB: "Headset"})
        server.fail_descriptions = command_failure
        listing = DeviceInventory(server).list_devices()
        assert listing == {HDMI: "HDMI Output", USB: "USB Audio Device"}

    def test_default_device(self, transport_error):
        server = FakeAudioServer(sinks={HDMI: "TV"}, default=HDMI)
        inv = DeviceInventory(server)
        assert inv.default_device() == HDMI

        server.default = "  "
        assert inv.default_device() is None

        server.fail_listing = transport_error
        assert inv.default_device() is None

    def test_devices_marks_default(self):
        server = FakeAudioServer(sinks={HDMI: "TV", USB: "Headset"}, default=USB)
        devices = DeviceInventory(server).devices()
        assert [(d.id, d.is_default) for d in devices] == [(HDMI, False), (USB, True)]

    def test_no_caching_between_calls(self):
        server = FakeAudioServer(sinks={HDMI: "TV"})
        inv = DeviceInventory(server)
        assert HDMI in inv.list_devices()
        del server.sinks[HDMI]
        assert inv.list_devices() == {}
