import pytest

from conftest import MemorySettings, OptionSettings
from controller import NOTIFY_TITLE, ToggleController
from models import NotConfigured, Switch, SwitchRejected, SwitchSuccess, Unresolvable, VisualOnly


class Recorder:
    def __init__(self):
        self.messages = []
        self.displays = []

    def notify(self, title, message):
        assert title == NOTIFY_TITLE
        self.messages.append(message)

    def display(self, state):
        self.displays.append(state)


@pytest.fixture
def recorder():
    return Recorder()


def _controller(settings, inventory, orchestrator, recorder):
    return ToggleController(
        settings,
        inventory,
        orchestrator,
        notify=recorder.notify,
        on_display=recorder.display,
    )


@pytest.mark.unit
class TestToggle:
    def test_end_to_end_click(self, server, inventory, orchestrator, scheduler, recorder):
        server.streams = ["21", "22"]
        server.volumes = {"dev.hdmi": 70}
        orchestrator.volumes.save("dev.usb", 35)
        settings = MemorySettings("dev.hdmi", "dev.usb", remember_volume=True)
        ctl = _controller(settings, inventory, orchestrator, recorder)

        decision = ctl.toggle()
        assert decision == Switch("dev.usb")
        scheduler.run_all()

        assert server.called("set_default_sink") == [("set_default_sink", "dev.usb")]
        assert server.called("move_sink_input") == [
            ("move_sink_input", "21", "dev.usb"),
            ("move_sink_input", "22", "dev.usb"),
        ]
        assert server.called("set_sink_volume") == [("set_sink_volume", "dev.usb", 35)]
        assert recorder.messages == ["Switched to USB Headset"]
        assert recorder.displays[-1].tooltip == "Audio: USB Headset (click to switch)"

    def test_second_click_switches_back(self, server, inventory, orchestrator, scheduler, recorder):
        ctl = _controller(MemorySettings("dev.hdmi", "dev.usb"), inventory, orchestrator, recorder)
        ctl.toggle()
        scheduler.run_all()
        assert ctl.toggle() == Switch("dev.hdmi")
        scheduler.run_all()
        assert server.default == "dev.hdmi"

    def test_click_while_settling_is_replayed(self, server, inventory, orchestrator, scheduler, recorder):
        ctl = _controller(MemorySettings("dev.hdmi", "dev.usb"), inventory, orchestrator, recorder)
        ctl.toggle()
        assert ctl.toggle() is None
        assert ctl.has_queued_action
        assert server.called("set_default_sink") == [("set_default_sink", "dev.usb")]

        scheduler.run_all()
        assert server.called("set_default_sink") == [
            ("set_default_sink", "dev.usb"),
            ("set_default_sink", "dev.hdmi"),
        ]
        assert not ctl.has_queued_action

    def test_visual_only_flips_without_switching(self, server, inventory, orchestrator, scheduler, recorder):
        ctl = _controller(MemorySettings("dev.hdmi", "HDMI Output"), inventory, orchestrator, recorder)

        assert ctl.toggle() == VisualOnly("dev.hdmi")
        assert ctl.visual_toggle is True
        assert ctl.toggle() == VisualOnly("dev.hdmi")
        assert ctl.visual_toggle is False

        assert server.called("set_default_sink") == []
        assert scheduler.queue == []
        assert len(recorder.displays) == 2

    def test_not_configured_always_notifies(self, inventory, orchestrator, recorder):
        settings = MemorySettings("dev.hdmi", "", show_notifications=False)
        ctl = _controller(settings, inventory, orchestrator, recorder)
        assert ctl.toggle() == NotConfigured()
        assert recorder.messages == ["Please configure audio devices in applet settings"]

    def test_unresolvable_respects_notification_flag(self, server, inventory, orchestrator, recorder):
        ctl = _controller(MemorySettings("dev.hdmi", "dev.bt"), inventory, orchestrator, recorder)
        assert isinstance(ctl.toggle(), Unresolvable)
        assert recorder.messages == ["Please configure two audio devices in settings."]

        silent = Recorder()
        quiet = _controller(
            MemorySettings("dev.hdmi", "dev.bt", show_notifications=False), inventory, orchestrator, silent
        )
        assert isinstance(quiet.toggle(), Unresolvable)
        assert silent.messages == []
        assert server.called("set_default_sink") == []

    def test_server_down_is_unresolvable(self, server, inventory, orchestrator, recorder, transport_error):
        server.fail_listing = transport_error
        ctl = _controller(MemorySettings("dev.hdmi", "dev.usb"), inventory, orchestrator, recorder)
        assert isinstance(ctl.toggle(), Unresolvable)
        assert server.called("set_default_sink") == []

    def test_failure_is_reported(self, server, inventory, orchestrator, recorder, command_failure):
        server.fail_set_default = command_failure
        ctl = _controller(MemorySettings("dev.hdmi", "dev.usb"), inventory, orchestrator, recorder)
        ctl.toggle()
        assert recorder.messages == ["Failed to switch to USB Headset: Failure: No such entity"]

    def test_config_snapshot_drives_orchestrator(self, inventory, orchestrator, scheduler, recorder):
        settings = MemorySettings("dev.hdmi", "dev.usb", remember_volume=True, settle_delay_ms=400)
        ctl = _controller(settings, inventory, orchestrator, recorder)
        ctl.toggle()
        assert orchestrator.remember_volume is True
        assert scheduler.queue[0][0] == 400


@pytest.mark.unit
class TestSwitchToSlot:
    def test_direct_pick(self, server, inventory, orchestrator, scheduler, recorder):
        settings = MemorySettings("dev.hdmi", "dev.usb")
        settings.nicknames["slot2"] = "Headphones"
        ctl = _controller(settings, inventory, orchestrator, recorder)

        result = ctl.switch_to_slot("slot2")
        scheduler.run_all()

        assert result == SwitchSuccess("dev.usb", "USB Headset")
        assert recorder.messages == ["Switched to Headphones"]

    def test_unavailable_slot(self, server, inventory, orchestrator, recorder):
        ctl = _controller(MemorySettings("dev.hdmi", "dev.bt"), inventory, orchestrator, recorder)
        assert isinstance(ctl.switch_to_slot("slot2"), SwitchRejected)
        assert recorder.messages == ["Device dev.bt not found. Please refresh device list in settings."]

    def test_bad_key(self, inventory, orchestrator, recorder):
        ctl = _controller(MemorySettings(), inventory, orchestrator, recorder)
        with pytest.raises(KeyError):
            ctl.switch_to_slot("slot3")


@pytest.mark.unit
class TestLifecycle:
    def test_startup_migrates_and_publishes(self, inventory, orchestrator, recorder):
        settings = OptionSettings("HDMI Output", "dev.usb")
        ctl = _controller(settings, inventory, orchestrator, recorder)
        ctl.startup()

        assert settings.refs["slot1"] == "dev.hdmi"
        assert "Updated device settings to match current system sink IDs." in recorder.messages
        assert settings.options["slot1"]["HDMI Output (dev.hdmi)"] == "dev.hdmi"
        assert settings.options["slot2"] == settings.options["slot1"]
        assert recorder.displays[-1].tooltip == "Audio: HDMI Output (click to switch)"

    def test_startup_auto_detects(self, server, inventory, orchestrator, recorder):
        settings = MemorySettings()
        _controller(settings, inventory, orchestrator, recorder).startup()
        assert settings.refs == {"slot1": "dev.hdmi", "slot2": "dev.usb"}
        assert recorder.messages == ["Auto-detected audio devices. Check settings to customize."]

    def test_options_skipped_without_capability(self, inventory, orchestrator, recorder):
        settings = MemorySettings("dev.hdmi", "dev.usb")
        ctl = _controller(settings, inventory, orchestrator, recorder)
        # MemorySettings.set_options would raise NotImplementedError if called.
        ctl.startup()
        ctl.on_settings_changed()

    def test_unavailable_reference_kept_in_options(self, inventory, orchestrator, recorder):
        settings = OptionSettings("dev.hdmi", "dev.bt")
        _controller(settings, inventory, orchestrator, recorder).startup()
        assert settings.options["slot2"]["(Unavailable) dev.bt"] == "dev.bt"
        assert settings.refs["slot2"] == "dev.bt"

    def test_settings_change_remigrates(self, server, inventory, orchestrator, recorder):
        settings = OptionSettings("dev.hdmi", "Bluetooth Speaker")
        ctl = _controller(settings, inventory, orchestrator, recorder)
        ctl.startup()
        assert settings.refs["slot2"] == "Bluetooth Speaker"

        server.sinks["dev.bt"] = "Bluetooth Speaker"
        ctl.on_settings_changed()
        assert settings.refs["slot2"] == "dev.bt"

    def test_refresh_devices_reports_count(self, inventory, orchestrator, recorder):
        ctl = _controller(OptionSettings("dev.hdmi", "dev.usb"), inventory, orchestrator, recorder)
        listing = ctl.refresh_devices()
        assert len(listing) == 2
        assert recorder.messages == ["Found 2 audio devices."]

    def test_shutdown_cancels_pending(self, server, inventory, orchestrator, scheduler, recorder):
        server.streams = ["5"]
        ctl = _controller(MemorySettings("dev.hdmi", "dev.usb"), inventory, orchestrator, recorder)
        ctl.toggle()
        ctl.toggle()
        ctl.shutdown()
        scheduler.run_all()
        assert server.called("move_sink_input") == []
        assert not ctl.has_queued_action
