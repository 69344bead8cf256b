import json
import logging
from decimal import Decimal

import pytest
from openpyxl import load_workbook
from typer.testing import CliRunner

from core.events.domain_events import DomainEvents
from core.models import Contract
from infra.config import LedgerSettings
from infra.db.base import make_engine, make_session_factory
from infra.db.sources.mapper import contract_to_orm
from infra.operational_support import OperationalSupport
from infra.services import build_service_graph
from main_cli import app

T = "t1"
runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        yield
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    monkeypatch.setenv("CVR_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("CVR_DATABASE_URL", raising=False)
    url = f"sqlite:///{(tmp_path / 'cvr.db').as_posix()}"
    result = runner.invoke(app, ["migrate", "--db-url", url])
    assert result.exit_code == 0, result.output
    return url


@pytest.fixture
def seeded(db_url, tmp_path):
    engine = make_engine(db_url)
    session = make_session_factory(engine)()
    graph = build_service_graph(
        session,
        LedgerSettings(database_url=db_url, log_dir=tmp_path, reconcile_on_change=False),
        events=DomainEvents(),
        support=OperationalSupport(tmp_path / "seed-events.jsonl"),
    )
    src = graph.source_service
    pkg = src.add_package(T, "P", "Groundworks")
    src.add_budget_line(T, "P", "BL-01", Decimal("100000"), package_id=pkg.id)
    contract = src.add_contract(T, "P", "Groundworks", Decimal("60000"), status="signed", package_id=pkg.id)
    afp = src.add_payment_application(T, contract.id, "AFP-01", Decimal("20000"))
    src.certify_payment_application(T, afp.id, Decimal("20000"))
    graph.close()
    engine.dispose()
    return db_url


def _json_from(output: str) -> dict:
    # log lines can share the captured stream; the payload is the indented block
    start = 0 if output.startswith("{") else output.index("\n{") + 1
    return json.loads(output[start:output.rindex("}") + 1])


def test_backfill_prints_report_json(seeded):
    result = runner.invoke(app, ["backfill", "--tenant", T, "--json", "--db-url", seeded])

    assert result.exit_code == 0, result.output
    report = _json_from(result.output)
    assert report["commitments"]["created"] == 1
    assert report["actuals"]["created"] == 1


def test_backfill_summary_and_rerun(seeded):
    first = runner.invoke(app, ["backfill", "--tenant", T, "--project", "P", "--db-url", seeded])
    second = runner.invoke(app, ["backfill", "--tenant", T, "--batch-size", "1", "--db-url", seeded])

    assert first.exit_code == 0, first.output
    assert "Commitments: created=1 updated=0 skipped=0 errors=0" in first.output
    assert second.exit_code == 0, second.output
    assert "Commitments: created=0 updated=0 skipped=1 errors=0" in second.output


def test_position_table_and_json(seeded):
    runner.invoke(app, ["backfill", "--tenant", T, "--db-url", seeded])

    table = runner.invoke(app, ["position", "--tenant", T, "--project", "P", "--db-url", seeded])
    as_json = runner.invoke(app, ["position", "--tenant", T, "--project", "P", "--json", "--db-url", seeded])

    assert table.exit_code == 0, table.output
    assert "Groundworks" in table.output
    assert "100,000.00" in table.output
    assert "40,000.00" in table.output
    assert as_json.exit_code == 0, as_json.output
    assert _json_from(as_json.output)["totalCommitted"] == 60000


def test_export_writes_workbook(seeded, tmp_path):
    runner.invoke(app, ["backfill", "--tenant", T, "--db-url", seeded])
    target = tmp_path / "out" / "cvr.xlsx"

    result = runner.invoke(app, ["export", "--tenant", T, "--project", "P", "-o", str(target), "--db-url", seeded])

    assert result.exit_code == 0, result.output
    assert target.exists()
    assert "Packages" in load_workbook(target).sheetnames


def test_backfill_exits_2_when_documents_fail(db_url):
    engine = make_engine(db_url)
    session = make_session_factory(engine)()
    session.add(
        contract_to_orm(
            Contract.create(tenant_id=T, project_id="P", title="Broken", value=Decimal("1"), status="bogus")
        )
    )
    session.commit()
    session.close()
    engine.dispose()

    result = runner.invoke(app, ["backfill", "--tenant", T, "--db-url", db_url])

    assert result.exit_code == 2
    assert "bogus" in result.output
    assert "errors=1" in result.output


def test_blank_tenant_exits_1(db_url):
    result = runner.invoke(app, ["position", "--tenant", " ", "--project", "P", "--db-url", db_url])

    assert result.exit_code == 1
    assert "TENANT_REQUIRED" in result.output


def test_snapshot_captures_a_period_report(seeded):
    runner.invoke(app, ["backfill", "--tenant", T, "--db-url", seeded])

    result = runner.invoke(
        app,
        ["snapshot", "--tenant", T, "--project", "P", "--period-end", "2026-09-30", "--type", "quarterly", "--db-url", seeded],
    )

    assert result.exit_code == 0, result.output
    assert "Captured QUARTERLY report" in result.output
    assert "period end 2026-09-30" in result.output
    assert "actual 20,000.00" in result.output


def test_snapshot_with_unknown_type_exits_1(seeded):
    result = runner.invoke(
        app,
        ["snapshot", "--tenant", T, "--project", "P", "--period-end", "2026-09-30", "--type", "weekly", "--db-url", seeded],
    )

    assert result.exit_code == 1
    assert "REPORT_TYPE_INVALID" in result.output
