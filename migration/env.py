"""Alembic environment for the ledger schema.

``infra.migrate.run_migrations`` sets ``sqlalchemy.url`` explicitly; when
alembic is driven directly the URL comes from the same environment
variables the application reads.
"""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

import infra.db.models  # noqa: F401  (registers tables on Base.metadata)
from infra.config import LedgerSettings
from infra.db.base import Base

config = context.config
target_metadata = Base.metadata

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or LedgerSettings.from_env().database_url


def _configure(**kwargs) -> None:
    url_or_dialect = kwargs.get("url") or kwargs["connection"].dialect.name
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER constraints in place
        render_as_batch=str(url_or_dialect).startswith("sqlite"),
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_offline() -> None:
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})


def run_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _configure(connection=connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
