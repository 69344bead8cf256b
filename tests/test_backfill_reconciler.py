import dataclasses
import threading
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from core.events.domain_events import DomainEvents
from core.exceptions import ValidationError
from core.models import (
    ActualStatus,
    CommitmentStatus,
    Contract,
    PaymentApplication,
    SourceType,
)
from core.services.ledger import BackfillReconciler
from infra.config import LedgerSettings
from infra.db.base import Base, make_engine, make_session_factory
from infra.db.models import ActualFactORM, CommitmentFactORM
from infra.services import build_service_graph

T = "t1"


def _seed_project(services, project_id="P"):
    src = services["source_service"]
    pkg = src.add_package(T, project_id, "Groundworks")
    src.add_budget_line(T, project_id, "BL-01", Decimal("100000"), package_id=pkg.id)
    contract = src.add_contract(
        T, project_id, "Groundworks subcontract", Decimal("60000"),
        status="signed", package_id=pkg.id, currency="GBP",
    )
    afp = src.add_payment_application(T, contract.id, "AFP-01", Decimal("20000"))
    src.certify_payment_application(T, afp.id, Decimal("20000"))
    return pkg, contract, afp


def _add_raw_contract(services, **fields):
    values = dict(tenant_id=T, project_id="P", title="Raw", value=Decimal("10"), status="signed")
    values.update(fields)
    contract = Contract.create(**values)
    services["contract_repo"].add(contract)
    services["session"].commit()
    return contract


def _add_raw_application(services, **fields):
    values = dict(tenant_id=T, application_no="AFP-X", status="CERTIFIED", certified_this_period=Decimal("100"))
    values.update(fields)
    application = PaymentApplication.create(**values)
    services["payment_application_repo"].add(application)
    services["session"].commit()
    return application


def test_backfill_builds_position_from_sources(services):
    pkg, contract, afp = _seed_project(services)
    ledger = services["ledger_service"]

    report = ledger.run_backfill(T)

    assert report.commitments.created == 1
    assert report.actuals.created == 1
    assert report.commitments.errors == 0 and report.actuals.errors == 0
    assert report.stopped is False

    position = ledger.get_financial_position(T, "P")
    entry = position.entry_for(pkg.id)
    assert entry.package_name == "Groundworks"
    assert entry.budget == Decimal("100000")
    assert entry.committed == Decimal("60000")
    assert entry.actual == Decimal("20000")
    assert entry.variance == Decimal("40000")
    assert entry.remaining == Decimal("80000")
    assert position.total_budget == Decimal("100000")
    assert position.total_committed == Decimal("60000")
    assert position.total_actual == Decimal("20000")
    assert position.total_variance == Decimal("40000")
    assert position.total_remaining == Decimal("80000")


def test_backfill_is_idempotent(services):
    _seed_project(services)
    ledger = services["ledger_service"]

    ledger.run_backfill(T)
    before = ledger.get_financial_position(T, "P")
    second = ledger.run_backfill(T)
    after = ledger.get_financial_position(T, "P")

    assert (second.commitments.created, second.commitments.updated) == (0, 0)
    assert (second.actuals.created, second.actuals.updated) == (0, 0)
    assert second.commitments.skipped == 1
    assert second.actuals.skipped == 1
    assert after == before
    assert len(services["commitment_repo"].list_by_project(T, "P")) == 1
    assert len(services["actual_repo"].list_by_project(T, "P")) == 1


def test_draft_contract_is_not_committed_until_signed(services):
    src = services["source_service"]
    ledger = services["ledger_service"]
    pkg = src.add_package(T, "P", "Groundworks")
    src.add_budget_line(T, "P", "BL-01", Decimal("100000"), package_id=pkg.id)
    contract = src.add_contract(T, "P", "Groundworks", Decimal("60000"), package_id=pkg.id)

    ledger.run_backfill(T)
    draft = ledger.get_financial_position(T, "P")
    assert draft.total_committed == Decimal("0")
    assert draft.total_variance == Decimal("100000")

    src.set_contract_status(T, contract.id, "signed")
    report = ledger.run_backfill(T)
    signed = ledger.get_financial_position(T, "P")

    assert report.commitments.created == 1
    assert signed.total_committed - draft.total_committed == contract.value
    assert signed.total_variance == Decimal("40000")


def test_payment_moves_fact_to_paid_without_changing_totals(services):
    pkg, _contract, afp = _seed_project(services)
    ledger = services["ledger_service"]
    ledger.run_backfill(T)
    assert services["package_repo"].get(T, pkg.id).actual_cost == Decimal("0")

    services["source_service"].record_payment(T, afp.id, Decimal("20000"), paid_date=date(2026, 5, 28))
    report = ledger.run_backfill(T)

    assert report.actuals.updated == 1
    fact = services["actual_repo"].get_by_source(T, SourceType.PAYMENT_APPLICATION, afp.id)
    assert fact.status == ActualStatus.PAID
    assert fact.paid_date == date(2026, 5, 28)
    assert fact.amount == Decimal("20000")
    assert ledger.get_financial_position(T, "P").total_actual == Decimal("20000")
    assert services["package_repo"].get(T, pkg.id).actual_cost == Decimal("20000")


def test_cancelled_application_is_hidden_not_deleted(services):
    _pkg, _contract, afp = _seed_project(services)
    ledger = services["ledger_service"]
    ledger.run_backfill(T)

    services["source_service"].set_payment_application_status(T, afp.id, "CANCELLED")
    report = ledger.run_backfill(T)

    assert report.actuals.updated == 1
    fact = services["actual_repo"].get_by_source(T, SourceType.PAYMENT_APPLICATION, afp.id)
    assert fact is not None
    assert fact.status == ActualStatus.CANCELLED
    assert ledger.get_financial_position(T, "P").total_actual == Decimal("0")

    again = ledger.run_backfill(T)
    assert again.actuals.updated == 0
    assert again.actuals.skipped == 1


def test_cancelled_contract_drops_out_of_committed(services):
    _pkg, contract, _afp = _seed_project(services)
    ledger = services["ledger_service"]
    ledger.run_backfill(T)

    services["source_service"].set_contract_status(T, contract.id, "cancelled")
    ledger.run_backfill(T)

    fact = services["commitment_repo"].get_by_source(T, SourceType.CONTRACT, contract.id)
    assert fact.status == CommitmentStatus.CANCELLED
    assert ledger.get_financial_position(T, "P").total_committed == Decimal("0")


def test_commitment_amount_is_a_snapshot(services):
    _pkg, contract, _afp = _seed_project(services)
    ledger = services["ledger_service"]
    ledger.run_backfill(T)

    stored = services["contract_repo"].get(T, contract.id)
    stored.value = Decimal("75000")
    services["contract_repo"].update(stored)
    services["session"].commit()
    report = ledger.run_backfill(T)

    assert report.commitments.updated == 0
    fact = services["commitment_repo"].get_by_source(T, SourceType.CONTRACT, contract.id)
    assert fact.amount == Decimal("60000")


def test_approved_variation_adds_to_committed(services):
    pkg, contract, _afp = _seed_project(services)
    src = services["source_service"]
    variation = src.add_variation(T, contract.id, "Extra drainage", Decimal("5000"))
    ledger = services["ledger_service"]
    ledger.run_backfill(T)
    assert ledger.get_financial_position(T, "P").entry_for(pkg.id).committed == Decimal("60000")

    src.set_variation_status(T, variation.id, "approved", approved_value=Decimal("4500"))
    report = ledger.run_backfill(T)

    assert report.commitments.created == 1
    assert ledger.get_financial_position(T, "P").entry_for(pkg.id).committed == Decimal("64500")


def test_bad_document_is_reported_and_the_rest_proceed(services):
    good = _add_raw_contract(services, value=Decimal("250"))
    broken = _add_raw_contract(services, status="bogus")

    report = services["ledger_service"].run_backfill(T)

    assert report.commitments.created == 1
    assert report.commitments.errors == 1
    issue = report.commitments.issues[0]
    assert issue.source_id == broken.id
    assert issue.source_type == "CONTRACT"
    assert issue.code == "STATUS_UNKNOWN"
    assert services["commitment_repo"].get_by_source(T, SourceType.CONTRACT, good.id) is not None
    assert services["commitment_repo"].get_by_source(T, SourceType.CONTRACT, broken.id) is None


def test_application_without_project_is_skipped_not_failed(services):
    _add_raw_application(services, project_id=None, contract_id=None)

    report = services["ledger_service"].run_backfill(T)

    assert report.actuals.skipped == 1
    assert report.actuals.errors == 0
    assert report.actuals.created == 0


def test_ineligible_documents_count_as_skipped(services):
    _add_raw_contract(services, status="draft")
    _add_raw_contract(services, value=Decimal("0"))

    report = services["ledger_service"].run_backfill(T)

    assert report.commitments.skipped == 2
    assert report.commitments.created == 0


def test_backfill_only_touches_requested_tenant(services):
    _add_raw_contract(services)
    other = _add_raw_contract(services, tenant_id="t2")

    services["ledger_service"].run_backfill(T)

    assert services["commitment_repo"].get_by_source("t2", SourceType.CONTRACT, other.id) is None


def test_project_filter_includes_children_linked_through_contract(services):
    in_scope = _add_raw_contract(services, project_id="P")
    _add_raw_contract(services, project_id="Q")
    afp = _add_raw_application(services, project_id=None, contract_id=in_scope.id)

    report = services["ledger_service"].run_backfill(T, project_id="P")

    assert report.commitments.created == 1
    assert report.actuals.created == 1
    fact = services["actual_repo"].get_by_source(T, SourceType.PAYMENT_APPLICATION, afp.id)
    assert fact.project_id == "P"
    assert services["commitment_repo"].list_by_project(T, "Q") == []


def test_date_window_limits_documents(services):
    _add_raw_contract(services, updated_at=datetime(2026, 1, 10))
    recent = _add_raw_contract(services, updated_at=datetime(2026, 3, 10))

    report = services["ledger_service"].run_backfill(
        T,
        updated_from=datetime(2026, 2, 1, tzinfo=timezone.utc),
        updated_to=datetime(2026, 4, 1),
    )

    assert report.commitments.created == 1
    assert services["commitment_repo"].get_by_source(T, SourceType.CONTRACT, recent.id) is not None


def test_invalid_arguments_are_rejected(services):
    ledger = services["ledger_service"]

    with pytest.raises(ValidationError) as exc:
        ledger.run_backfill("  ")
    assert exc.value.code == "TENANT_REQUIRED"

    with pytest.raises(ValidationError) as exc:
        ledger.run_backfill(T, updated_from=datetime(2026, 5, 1), updated_to=datetime(2026, 4, 1))
    assert exc.value.code == "DATE_RANGE_INVALID"


def test_reconciler_rejects_non_positive_batch_size(services):
    with pytest.raises(ValidationError) as exc:
        BackfillReconciler(
            session=services["session"],
            contract_repo=services["contract_repo"],
            variation_repo=services["variation_repo"],
            payment_application_repo=services["payment_application_repo"],
            package_repo=services["package_repo"],
            commitment_repo=services["commitment_repo"],
            actual_repo=services["actual_repo"],
            batch_size=0,
        )
    assert exc.value.code == "BATCH_SIZE_INVALID"


@pytest.mark.parametrize("batch_size", [1, 2, 50])
def test_batch_size_does_not_change_the_outcome(session, settings, support, services, batch_size):
    for n in range(5):
        _add_raw_contract(services, value=Decimal(100 + n))
    graph = build_service_graph(
        session,
        dataclasses.replace(settings, backfill_batch_size=batch_size),
        events=DomainEvents(),
        support=support,
    )

    report = graph.ledger_service.run_backfill(T)

    assert report.commitments.created == 5
    assert graph.ledger_service.get_financial_position(T, "P").total_committed == Decimal("510")


class _StopAfter(threading.Event):
    """Reports set once the given number of checks has passed."""

    def __init__(self, checks: int):
        super().__init__()
        self._remaining = checks

    def is_set(self) -> bool:
        self._remaining -= 1
        return self._remaining < 0


def test_stop_event_halts_between_batches_and_rerun_finishes(session, settings, support, services):
    for _ in range(3):
        _add_raw_contract(services)
    graph = build_service_graph(
        session,
        dataclasses.replace(settings, backfill_batch_size=1),
        events=DomainEvents(),
        support=support,
    )

    first = graph.ledger_service.run_backfill(T, stop_event=_StopAfter(2))

    assert first.stopped is True
    assert first.commitments.created == 2
    assert first.packages_recomputed == 0

    second = graph.ledger_service.run_backfill(T)
    assert second.stopped is False
    assert second.commitments.created == 1
    assert second.commitments.skipped == 2


def test_stop_before_start_writes_nothing(services):
    _add_raw_contract(services)
    stop = threading.Event()
    stop.set()

    report = services["ledger_service"].run_backfill(T, stop_event=stop)

    assert report.stopped is True
    assert report.commitments.created == 0
    assert services["commitment_repo"].list_by_project(T, "P") == []


def test_rollup_resets_packages_without_paid_actuals(services):
    src = services["source_service"]
    pkg_a = src.add_package(T, "P", "Alpha")
    pkg_b = src.add_package(T, "P", "Beta")
    services["package_repo"].set_actual_cost(T, pkg_b.id, Decimal("999"))
    services["session"].commit()

    report = services["ledger_service"].run_backfill(T, project_id="P")

    assert report.packages_recomputed == 2
    assert services["package_repo"].get(T, pkg_a.id).actual_cost == Decimal("0")
    assert services["package_repo"].get(T, pkg_b.id).actual_cost == Decimal("0")


def test_backfill_journals_a_support_event(services, support):
    _seed_project(services)

    report = services["ledger_service"].run_backfill(T)

    events = support.read_events(event_type="ledger.backfill.completed")
    assert len(events) == 1
    assert events[0]["trace_id"] == report.trace_id
    assert events[0]["data"]["commitments"]["created"] == 1


def test_unexpected_failure_is_journaled_and_raised(services, support, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(services["reconciler"], "run", _boom)

    with pytest.raises(RuntimeError):
        services["ledger_service"].run_backfill(T, trace_id="trc-test-1")

    events = support.read_events(trace_id="trc-test-1")
    assert [event["event_type"] for event in events] == ["ledger.backfill.failed"]
    assert events[0]["level"] == "ERROR"


def test_two_passes_on_separate_sessions_converge(tmp_path, support):
    url = f"sqlite:///{(tmp_path / 'cvr.db').as_posix()}"
    engine = make_engine(url)
    Base.metadata.create_all(bind=engine)
    factory = make_session_factory(engine)
    settings = LedgerSettings(database_url=url, log_dir=tmp_path, reconcile_on_change=False)
    first = build_service_graph(factory(), settings, events=DomainEvents(), support=support)
    # opened before the first pass runs, so nothing is cached from its writes
    second = build_service_graph(factory(), settings, events=DomainEvents(), support=support)
    try:
        _seed_project(first.as_dict())

        one = first.reconciler.run(T)
        two = second.reconciler.run(T)

        assert (one.commitments.created, one.actuals.created) == (1, 1)
        assert (two.commitments.created, two.actuals.created) == (0, 0)
        assert (two.commitments.updated, two.actuals.updated) == (0, 0)
        assert (two.commitments.skipped, two.actuals.skipped) == (1, 1)
        check = first.session
        assert check.execute(select(func.count()).select_from(CommitmentFactORM)).scalar_one() == 1
        assert check.execute(select(func.count()).select_from(ActualFactORM)).scalar_one() == 1
        assert first.ledger_service.get_financial_position(T, "P").total_actual == Decimal("20000")
    finally:
        first.close()
        second.close()
        engine.dispose()
