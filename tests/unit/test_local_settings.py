"""Unit tests for the local settings file."""

import json

import pytest

from fxjournal.lib.errors import ConfigurationError
from fxjournal.lib.local_settings import LocalSettings


@pytest.mark.unit
class TestLocalSettings:
    """Tests for LocalSettings."""

    def test_missing_file_reads_as_empty(self, tmp_path):
        settings = LocalSettings(tmp_path / "nope.json")

        assert settings.get("vip-showcase-profile") is None

    def test_set_and_get(self, tmp_path):
        path = tmp_path / "sub" / "settings.json"
        settings = LocalSettings(path)

        settings.set("vip-showcase-profile", "demo")

        assert settings.get("vip-showcase-profile") == "demo"
        assert json.loads(path.read_text()) == {"vip-showcase-profile": "demo"}

    def test_remove(self, tmp_path):
        settings = LocalSettings(tmp_path / "settings.json")
        settings.set("a", "1")
        settings.set("b", "2")

        settings.remove("a", "missing")

        assert settings.get("a") is None
        assert settings.get("b") == "2"

    def test_empty_value_reads_as_unset(self, tmp_path):
        settings = LocalSettings(tmp_path / "settings.json")
        settings.set("a", "")

        assert settings.get("a") is None

    def test_corrupt_file_is_ignored(self, tmp_path, caplog):
        path = tmp_path / "settings.json"
        path.write_text("{not json")

        assert LocalSettings(path).get("a") is None
        assert "Ignoring unreadable settings file" in caplog.text

    def test_default_path_from_environment(self, isolated_local_settings):
        assert LocalSettings().path == isolated_local_settings

    def test_unwritable_location_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        settings = LocalSettings(blocker / "settings.json")

        with pytest.raises(ConfigurationError, match="Cannot write settings file"):
            settings.set("a", "1")
