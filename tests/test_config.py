"""Tests for config system."""

import json
from pathlib import Path

import pytest

from questdo.config import Config, ConfigMeta, clear_config_cache
from questdo.storage import get_storage_path


class TestConfigMeta:
    def test_settings_defined(self):
        assert "default_backend" in ConfigMeta.SETTINGS
        assert "log_level" in ConfigMeta.SETTINGS

    def test_every_setting_has_default(self):
        assert set(ConfigMeta.SETTINGS) == set(Config.DEFAULTS)


class TestConfigDefaults:
    def test_defaults(self):
        config = Config(Path("/tmp/questdo-test-nonexistent"))
        assert config.default_backend == "sqlite"
        assert config.default_format == "table"
        assert config.log_level == "warning"
        assert config.show_ids is False

    def test_unknown_attribute(self):
        config = Config(Path("/tmp/questdo-test-nonexistent"))
        with pytest.raises(AttributeError):
            config.nonexistent_setting


class TestConfigLoad:
    def test_load_from_file(self, tmp_path: Path):
        (tmp_path / "config.json").write_text(json.dumps({"default_backend": "json"}))
        config = Config.load(tmp_path)
        assert config.default_backend == "json"

    def test_load_nonexistent_uses_defaults(self, tmp_path: Path):
        config = Config.load(tmp_path / "nonexistent")
        assert config.default_backend == "sqlite"

    def test_env_config_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("QUESTDO_CONFIG_DIR", str(tmp_path))
        assert Config.load().config_dir == tmp_path

    def test_cached_without_explicit_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("QUESTDO_CONFIG_DIR", str(tmp_path))
        assert Config.load() is Config.load()
        first = Config.load()
        clear_config_cache()
        assert Config.load() is not first


class TestConfigEnvOverrides:
    def test_env_overrides_string(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        (tmp_path / "config.json").write_text(json.dumps({"default_backend": "json"}))
        monkeypatch.setenv("QUESTDO_DEFAULT_BACKEND", "memory")
        assert Config.load(tmp_path).default_backend == "memory"

    def test_env_overrides_bool(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("QUESTDO_SHOW_IDS", "yes")
        assert Config.load(tmp_path).show_ids is True


class TestConfigSet:
    def test_set_persists(self, tmp_path: Path):
        config = Config.load(tmp_path)
        config.set("default_format", "jsonl")

        reloaded = Config.load(tmp_path)

        assert reloaded.default_format == "jsonl"
        assert json.loads((tmp_path / "config.json").read_text()) == {"default_format": "jsonl"}

    def test_set_coerces_bool(self, tmp_path: Path):
        config = Config.load(tmp_path)
        config.set("show_ids", "true")
        assert config.show_ids is True

    def test_set_unknown_key(self, tmp_path: Path):
        config = Config.load(tmp_path)
        with pytest.raises(KeyError):
            config.set("theme", "dark")

    def test_get_settings(self, tmp_path: Path):
        settings = {name: value for name, _, value in Config.load(tmp_path).get_settings()}
        assert settings["default_backend"] == "sqlite"


class TestStoragePath:
    def test_uses_config_dir(self, tmp_path: Path):
        config = Config.load(tmp_path)
        assert get_storage_path(config, "sqlite") == tmp_path / "questdo.db"
        assert get_storage_path(config, "json") == tmp_path / "questdo.json"

    def test_explicit_dir_wins(self, tmp_path: Path):
        config = Config.load(tmp_path / "config")
        path = get_storage_path(config, "json", tmp_path / "data")
        assert path == tmp_path / "data" / "questdo.json"
