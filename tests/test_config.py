"""Tests for configuration loading."""

import pytest
from studypaste.config import PasteConfig


def write_config(path, content: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


class TestDefaults:
    def test_package_defaults(self):
        config = PasteConfig()

        assert config.mode == "smart"
        assert config.guard_timeout == 0.5
        assert config.parser == "html.parser"
        assert config.auto_detect_structure is True
        assert config.source is None

    def test_default_policy(self):
        policy = PasteConfig().policy

        assert "p" in policy.allowed_tags
        assert "script" not in policy.allowed_tags
        assert policy.allows_uri("https://example.com")
        assert not policy.allows_uri("javascript:alert(1)")


class TestConfigLocations:
    def test_user_config_merged_over_defaults(self, tmp_path, monkeypatch):
        user = write_config(tmp_path / "user" / "config.yaml", "paste:\n  mode: plain\n")
        monkeypatch.setattr(PasteConfig, "CONFIG_LOCATIONS", [user])

        config = PasteConfig()

        assert config.source == user
        assert config.mode == "plain"
        # Keys the file does not set keep their defaults
        assert config.guard_timeout == 0.5

    def test_first_location_wins(self, tmp_path, monkeypatch):
        user = write_config(tmp_path / "user" / "config.yaml", "paste:\n  mode: formatted\n")
        project = write_config(tmp_path / "project" / "config.yaml", "paste:\n  mode: plain\n")
        monkeypatch.setattr(PasteConfig, "CONFIG_LOCATIONS", [user, project])

        assert PasteConfig().mode == "formatted"

    def test_missing_locations_skipped(self, tmp_path, monkeypatch):
        project = write_config(tmp_path / "project" / "config.yaml", "paste:\n  mode: plain\n")
        monkeypatch.setattr(PasteConfig, "CONFIG_LOCATIONS", [tmp_path / "nope.yaml", project])

        assert PasteConfig().mode == "plain"

    def test_explicit_path_takes_priority(self, tmp_path, monkeypatch):
        user = write_config(tmp_path / "user" / "config.yaml", "paste:\n  mode: formatted\n")
        explicit = write_config(tmp_path / "explicit.yaml", "paste:\n  guard_timeout: 2\n")
        monkeypatch.setattr(PasteConfig, "CONFIG_LOCATIONS", [user])

        config = PasteConfig(path=explicit)

        assert config.source == explicit
        assert config.guard_timeout == 2.0
        assert config.mode == "smart"

    def test_explicit_path_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PasteConfig(path=tmp_path / "missing.yaml")

    def test_invalid_yaml_ignored(self, tmp_path):
        broken = write_config(tmp_path / "broken.yaml", "paste: [unclosed\n")

        config = PasteConfig(path=broken)

        assert config.mode == "smart"

    def test_empty_file(self, tmp_path):
        empty = write_config(tmp_path / "empty.yaml", "")
        assert PasteConfig(path=empty).mode == "smart"


class TestOverrides:
    def test_overrides_merged_last(self, tmp_path):
        explicit = write_config(tmp_path / "c.yaml", "paste:\n  mode: formatted\n")

        config = PasteConfig(path=explicit, overrides={"paste": {"mode": "plain"}})

        assert config.mode == "plain"

    def test_sanitize_section(self):
        config = PasteConfig(overrides={"sanitize": {"allowed_uri_schemes": ["https"]}})
        policy = config.policy

        assert policy.allows_uri("https://example.com")
        assert not policy.allows_uri("http://example.com")
        assert "p" in policy.allowed_tags

    def test_mode_normalized(self):
        assert PasteConfig(overrides={"paste": {"mode": "PLAIN"}}).mode == "plain"

    def test_as_dict(self):
        data = PasteConfig().as_dict()
        assert set(data) == {"paste", "sanitize"}
        assert data["paste"]["mode"] == "smart"
