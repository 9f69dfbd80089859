"""Bundled data files."""

from pathlib import Path

DATA_DIR = Path(__file__).resolve().parent
BUNDLED_MODEL_PATH = DATA_DIR / "sleep_score_model.json"
