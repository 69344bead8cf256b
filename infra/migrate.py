import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)


def _app_dir() -> Path:
    """Project root in a source or editable install (infra -> project root)."""
    return Path(__file__).resolve().parents[1]


def _script_location() -> Path:
    candidates = [_app_dir() / "migration", Path.cwd() / "migration"]
    for candidate in candidates:
        if (candidate / "env.py").exists():
            return candidate
    raise RuntimeError(
        "Alembic script_location missing. Tried the following locations: "
        + ", ".join(str(p) for p in candidates)
    )


def alembic_config(db_url: str) -> Config:
    # No alembic.ini: everything the env script needs is set here.
    cfg = Config()
    cfg.set_main_option("script_location", str(_script_location()))
    cfg.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))
    return cfg


def run_migrations(db_url: str, revision: str = "head") -> None:
    logger.info("Upgrading database schema to %s", revision)
    command.upgrade(alembic_config(db_url), revision)


def downgrade(db_url: str, revision: str) -> None:
    logger.info("Downgrading database schema to %s", revision)
    command.downgrade(alembic_config(db_url), revision)


__all__ = ["alembic_config", "run_migrations", "downgrade"]
