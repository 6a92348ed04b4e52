"""Path helpers for project directories."""

from __future__ import annotations

import os
from pathlib import Path


ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_DATA_DIR = ROOT_DIR / "data"

LOCAL_STORE_KEY = "chrp_inspections"


def data_dir() -> Path:
    override = os.getenv("INSPECTPAD_DATA_DIR", "").strip()
    return Path(override) if override else DEFAULT_DATA_DIR


def local_store_path(base: Path | None = None) -> Path:
    return (base or data_dir()) / f"{LOCAL_STORE_KEY}.json"
