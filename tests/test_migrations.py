from sqlalchemy import create_engine, inspect

from infra.db.base import Base
from infra.migrate import downgrade, run_migrations

LEDGER_TABLES = {
    "packages",
    "budget_lines",
    "contracts",
    "variations",
    "payment_applications",
    "commitment_facts",
    "actual_facts",
    "cvr_reports",
}


def test_upgrade_creates_ledger_schema(tmp_path):
    url = f"sqlite:///{(tmp_path / 'm.db').as_posix()}"

    run_migrations(url)

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        assert LEDGER_TABLES <= set(inspector.get_table_names())
        uniques = {uc["name"] for uc in inspector.get_unique_constraints("commitment_facts")}
        assert "uq_commitment_facts_source" in uniques
        columns = {col["name"] for col in inspector.get_columns("actual_facts")}
        assert {"source_type", "source_id", "status", "paid_date"} <= columns
    finally:
        engine.dispose()


def test_migrated_tables_match_models(tmp_path):
    url = f"sqlite:///{(tmp_path / 'm.db').as_posix()}"
    run_migrations(url)

    engine = create_engine(url)
    try:
        inspector = inspect(engine)
        for table in Base.metadata.sorted_tables:
            migrated = {col["name"] for col in inspector.get_columns(table.name)}
            assert migrated == set(table.columns.keys()), table.name
    finally:
        engine.dispose()


def test_downgrade_to_base_drops_tables(tmp_path):
    url = f"sqlite:///{(tmp_path / 'm.db').as_posix()}"
    run_migrations(url)

    downgrade(url, "base")

    engine = create_engine(url)
    try:
        assert not LEDGER_TABLES & set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
