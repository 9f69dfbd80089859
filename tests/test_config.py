"""Tests for sleepsense.config -- YAML settings."""

from pathlib import Path

import pytest

from sleepsense.config import ConfigFile, Settings, load_settings, CONFIG_ENV_VAR
from sleepsense.data import BUNDLED_MODEL_PATH


class TestConfigFile:
    def test_nested_get(self):
        config = ConfigFile({"store": {"path": "x.jsonl"}})
        assert config.get("store.path") == "x.jsonl"

    def test_missing_key_default(self):
        config = ConfigFile({"store": {}})
        assert config.get("store.path", "d") == "d"
        assert config.get("nope.deeper") is None

    def test_non_mapping_midway(self):
        config = ConfigFile({"store": "flat"})
        assert config.get("store.path", 1) == 1

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ConfigFile.load(path).data == {}

    def test_non_mapping_file_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            ConfigFile.load(path)


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.model_path == BUNDLED_MODEL_PATH
        assert s.dedupe is False
        assert s.history_days == 7

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "sleepsense.yaml"
        path.write_text(
            "samples:\n  path: in/samples.jsonl\n"
            "store:\n  path: out/entries.jsonl\n"
            "model:\n  path: m.json\n"
            "sync:\n  dedupe: true\n"
            "history:\n  days: 14\n"
        )
        s = load_settings(path)
        assert s.samples_path == Path("in/samples.jsonl")
        assert s.entries_path == Path("out/entries.jsonl")
        assert s.model_path == Path("m.json")
        assert s.dedupe is True
        assert s.history_days == 14

    @pytest.mark.parametrize("value", ["\"false\"", "\"no\"", "0", "maybe"])
    def test_dedupe_must_be_boolean(self, tmp_path, value):
        path = tmp_path / "sleepsense.yaml"
        path.write_text(f"sync:\n  dedupe: {value}\n")
        with pytest.raises(ValueError):
            load_settings(path)

    def test_dedupe_unquoted_false(self, tmp_path):
        path = tmp_path / "sleepsense.yaml"
        path.write_text("sync:\n  dedupe: false\n")
        assert load_settings(path).dedupe is False

    def test_empty_model_path_disables_model(self, tmp_path):
        path = tmp_path / "sleepsense.yaml"
        path.write_text("model:\n  path:\n")
        assert load_settings(path).model_path is None

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "sleepsense.yaml"
        path.write_text("sync:\n  dedupe: true\n")
        s = load_settings(path)
        assert s.dedupe is True
        assert s.entries_path == Settings().entries_path
        assert s.model_path == BUNDLED_MODEL_PATH

    def test_explicit_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("history:\n  days: 3\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_settings().history_days == 3

    def test_no_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert load_settings() == Settings()
