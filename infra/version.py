from __future__ import annotations

import os
from importlib import metadata

DIST_NAME = "cvr-ledger"
_DEFAULT_APP_VERSION = "0.1.0"


def get_app_version() -> str:
    """Version stamped on support events and the API; ``CVR_APP_VERSION`` overrides."""
    pinned = (os.getenv("CVR_APP_VERSION") or "").strip()
    if pinned:
        return pinned
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        # running from a source checkout
        return _DEFAULT_APP_VERSION


__all__ = ["DIST_NAME", "get_app_version"]
