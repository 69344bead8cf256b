# infra/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from core.exceptions import ValidationError
from infra.path import default_db_path, user_data_dir

DEFAULT_BATCH_SIZE = 200
DEFAULT_CURRENCY = "GBP"


def _flag(raw: str | None, default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class LedgerSettings:
    database_url: str
    backfill_batch_size: int = DEFAULT_BATCH_SIZE
    default_currency: str = DEFAULT_CURRENCY
    log_dir: Path | None = None
    reconcile_on_change: bool = True

    @property
    def resolved_log_dir(self) -> Path:
        return self.log_dir or (user_data_dir() / "logs")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LedgerSettings":
        env = os.environ if environ is None else environ

        database_url = (env.get("CVR_DATABASE_URL") or "").strip()
        if not database_url:
            database_url = f"sqlite:///{default_db_path().as_posix()}"

        raw_batch = (env.get("CVR_BACKFILL_BATCH_SIZE") or "").strip()
        try:
            batch_size = int(raw_batch) if raw_batch else DEFAULT_BATCH_SIZE
        except ValueError:
            raise ValidationError(
                f"CVR_BACKFILL_BATCH_SIZE must be an integer, got {raw_batch!r}.",
                code="CONFIG_INVALID",
            ) from None
        if batch_size <= 0:
            raise ValidationError("CVR_BACKFILL_BATCH_SIZE must be positive.", code="CONFIG_INVALID")

        currency = (env.get("CVR_DEFAULT_CURRENCY") or "").strip().upper() or DEFAULT_CURRENCY
        log_dir = (env.get("CVR_LOG_DIR") or "").strip()

        return cls(
            database_url=database_url,
            backfill_batch_size=batch_size,
            default_currency=currency,
            log_dir=Path(log_dir) if log_dir else None,
            reconcile_on_change=_flag(env.get("CVR_RECONCILE_ON_CHANGE"), True),
        )


__all__ = ["LedgerSettings", "DEFAULT_BATCH_SIZE", "DEFAULT_CURRENCY"]
