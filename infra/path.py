from __future__ import annotations

import os
import sys
from pathlib import Path

APP_DIR_NAME = "cvr-ledger"
DB_FILE_NAME = "cvr_ledger.db"


def _platform_data_root() -> Path:
    home = Path.home()
    if sys.platform.startswith("win"):
        return Path(os.getenv("LOCALAPPDATA") or os.getenv("APPDATA") or home / "AppData" / "Local")
    if sys.platform == "darwin":
        return home / "Library" / "Application Support"
    return Path(os.getenv("XDG_DATA_HOME") or home / ".local" / "share")


def user_data_dir() -> Path:
    """Where the ledger keeps its SQLite file, logs and support journal.

    ``CVR_DATA_DIR`` wins over the platform location; servers usually set it.
    """
    override = (os.getenv("CVR_DATA_DIR") or "").strip()
    path = Path(override) if override else _platform_data_root() / APP_DIR_NAME
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        # read-only home (containers); fall back to the working directory
        path = Path.cwd() / f".{APP_DIR_NAME}"
        path.mkdir(parents=True, exist_ok=True)
    return path


def default_db_path() -> Path:
    return user_data_dir() / DB_FILE_NAME


__all__ = ["default_db_path", "user_data_dir"]
