"""Tests for settings and wire models."""

from workroom.config import WorkroomSettings, derive_ws_url
from workroom.models import ChannelEvent, PushEvent


class TestSettings:
    """Tests for WorkroomSettings."""

    def test_defaults(self, monkeypatch):
        for name in (
            "WORKROOM_API_BASE",
            "WORKROOM_WS_URL",
            "WORKROOM_RECONCILE_INTERVAL",
            "WORKROOM_TYPING_TIMEOUT",
            "WORKROOM_PUSH_ENABLED",
            "WORKROOM_RETENTION_DAYS",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = WorkroomSettings.from_env()

        assert settings.reconcile_interval == 1.0
        assert settings.typing_timeout == 2.0
        assert settings.retention_days == 7
        assert settings.push_enabled
        assert settings.ws_url == "ws://localhost:8000/ws"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("WORKROOM_API_BASE", "https://api.example.com/")
        monkeypatch.delenv("WORKROOM_WS_URL", raising=False)
        monkeypatch.setenv("WORKROOM_RECONCILE_INTERVAL", "5")
        monkeypatch.setenv("WORKROOM_PUSH_ENABLED", "false")

        settings = WorkroomSettings.from_env()

        assert settings.ws_url == "wss://api.example.com/ws"
        assert settings.reconcile_interval == 5.0
        assert not settings.push_enabled

    def test_derive_ws_url(self):
        assert derive_ws_url("http://h:1") == "ws://h:1/ws"
        assert derive_ws_url("https://h") == "wss://h/ws"


class TestPushEvent:
    """Tests for push envelopes."""

    def test_wire_shape(self):
        event = PushEvent(ChannelEvent.FINALISED, {"workroomId": "r1"})
        assert event.to_wire() == {"event": "workroom:finalised", "data": {"workroomId": "r1"}}

    def test_parse(self):
        parsed = PushEvent.from_wire({"event": "workroom:finalise:update", "data": {"x": 1}})
        assert parsed.event is ChannelEvent.FINALISE_UPDATE
        assert parsed.data == {"x": 1}

    def test_unknown_event(self):
        assert PushEvent.from_wire({"event": "presence", "data": {}}) is None

    def test_bad_data_becomes_empty(self):
        assert PushEvent.from_wire({"event": "typing", "data": "oops"}).data == {}
