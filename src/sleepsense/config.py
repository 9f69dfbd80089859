"""Configuration for sleepsense.

Settings come from a YAML file (``--config`` on the command line or the
``SLEEPSENSE_CONFIG`` environment variable).  A missing file means
defaults.  Example::

    samples:
      path: data/samples.jsonl
    store:
      path: data/entries.jsonl
    model:
      path: models/sleep_score.json   # empty: heuristic only
    sync:
      dedupe: false
    history:
      days: 7
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from sleepsense.data import BUNDLED_MODEL_PATH

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SLEEPSENSE_CONFIG"
DEFAULT_CONFIG_PATH = Path("sleepsense.yaml")


class ConfigFile:
    """Parsed YAML document with dot-notation lookup."""

    def __init__(self, data: dict | None = None) -> None:
        self.data = data or {}

    @classmethod
    def load(cls, path: str | Path) -> ConfigFile:
        with open(path) as f:
            data = yaml.safe_load(f)
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"{path}: top level must be a mapping")
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up ``"a.b.c"`` style keys, returning *default* if any part is missing."""
        value: Any = self.data
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value


def _flag(config: ConfigFile, key: str, default: bool) -> bool:
    value = config.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false, got {value!r}")
    return value


@dataclass
class Settings:
    samples_path: Path = Path("data/samples.jsonl")
    entries_path: Path = Path("data/entries.jsonl")
    model_path: Path | None = BUNDLED_MODEL_PATH  # None: heuristic only
    dedupe: bool = False
    history_days: int = 7

    @classmethod
    def from_config(cls, config: ConfigFile) -> Settings:
        defaults = cls()
        model_path = config.get("model.path", defaults.model_path)
        return cls(
            samples_path=Path(config.get("samples.path", defaults.samples_path)),
            entries_path=Path(config.get("store.path", defaults.entries_path)),
            model_path=Path(model_path) if model_path else None,
            dedupe=_flag(config, "sync.dedupe", defaults.dedupe),
            history_days=int(config.get("history.days", defaults.history_days)),
        )


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from *path*, ``$SLEEPSENSE_CONFIG`` or ``./sleepsense.yaml``.

    An explicitly named file must exist; the default location is optional.
    """
    explicit = path or os.environ.get(CONFIG_ENV_VAR)
    config_path = Path(explicit) if explicit else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"config file not found: {config_path}")
        logger.debug("no config at %s, using defaults", config_path)
        return Settings()

    logger.debug("loading config from %s", config_path)
    return Settings.from_config(ConfigFile.load(config_path))
