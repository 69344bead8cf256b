# tests/conftest.py
import dataclasses

import pytest

import infra.db.models  # noqa: F401  (registers tables on Base.metadata)
from core.events.domain_events import DomainEvents
from infra.config import LedgerSettings
from infra.db.base import Base, make_engine, make_session_factory
from infra.db.repositories import (
    SqlAlchemyActualFactRepository,
    SqlAlchemyBudgetLineRepository,
    SqlAlchemyCommitmentFactRepository,
    SqlAlchemyContractRepository,
    SqlAlchemyPackageRepository,
    SqlAlchemyPaymentApplicationRepository,
    SqlAlchemyVariationRepository,
)
from infra.operational_support import SUPPORT_EVENTS_FILE, OperationalSupport
from infra.services import build_service_graph


@pytest.fixture
def engine():
    # separate in-memory DB for every test
    engine = make_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def settings(tmp_path):
    return LedgerSettings(
        database_url="sqlite:///:memory:",
        log_dir=tmp_path,
        reconcile_on_change=False,
    )


@pytest.fixture
def support(tmp_path):
    return OperationalSupport(tmp_path / SUPPORT_EVENTS_FILE)


def _service_dict(session, settings, support):
    graph = build_service_graph(session, settings, events=DomainEvents(), support=support)
    services = graph.as_dict()
    services.update(
        {
            "graph": graph,
            "package_repo": SqlAlchemyPackageRepository(session),
            "budget_line_repo": SqlAlchemyBudgetLineRepository(session),
            "contract_repo": SqlAlchemyContractRepository(session),
            "variation_repo": SqlAlchemyVariationRepository(session),
            "payment_application_repo": SqlAlchemyPaymentApplicationRepository(session),
            "commitment_repo": SqlAlchemyCommitmentFactRepository(session),
            "actual_repo": SqlAlchemyActualFactRepository(session),
        }
    )
    return services


@pytest.fixture
def services(session, settings, support):
    # Ledger only moves when a test runs a backfill or reconciles explicitly
    return _service_dict(session, settings, support)


@pytest.fixture
def hooked_services(session, settings, support):
    # Source writes reconcile their own fact straight away
    services = _service_dict(session, dataclasses.replace(settings, reconcile_on_change=True), support)
    try:
        yield services
    finally:
        services["graph"].ledger_service.disconnect_hooks()
