from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from core.events.domain_events import DomainEvents, domain_events
from core.interfaces import InvoiceMatchingService
from core.models import SourceType
from core.services.ledger import BackfillReconciler, CvrLedgerService
from core.services.reports import CvrReportService
from core.services.sources import SourceDocumentService
from infra.config import LedgerSettings
from infra.db.repositories import (
    SqlAlchemyActualFactRepository,
    SqlAlchemyBudgetLineRepository,
    SqlAlchemyCommitmentFactRepository,
    SqlAlchemyContractRepository,
    SqlAlchemyCvrReportRepository,
    SqlAlchemyPackageRepository,
    SqlAlchemyPaymentApplicationRepository,
    SqlAlchemyVariationRepository,
)
from infra.operational_support import OperationalSupport, get_operational_support


@dataclass(frozen=True)
class ServiceGraph:
    session: Session
    settings: LedgerSettings
    events: DomainEvents
    support: OperationalSupport
    reconciler: BackfillReconciler
    ledger_service: CvrLedgerService
    source_service: SourceDocumentService
    report_service: CvrReportService

    def as_dict(self) -> dict[str, Any]:
        return {
            "session": self.session,
            "settings": self.settings,
            "events": self.events,
            "support": self.support,
            "reconciler": self.reconciler,
            "ledger_service": self.ledger_service,
            "source_service": self.source_service,
            "report_service": self.report_service,
        }

    def close(self) -> None:
        self.ledger_service.disconnect_hooks()
        self.session.close()


def build_service_graph(
    session: Session,
    settings: LedgerSettings | None = None,
    *,
    events: DomainEvents | None = None,
    support: OperationalSupport | None = None,
    matching_service: InvoiceMatchingService | None = None,
) -> ServiceGraph:
    settings = settings or LedgerSettings.from_env()
    events = events or domain_events
    support = support or get_operational_support(settings.resolved_log_dir)

    package_repo = SqlAlchemyPackageRepository(session)
    budget_line_repo = SqlAlchemyBudgetLineRepository(session)
    contract_repo = SqlAlchemyContractRepository(session)
    variation_repo = SqlAlchemyVariationRepository(session)
    payment_application_repo = SqlAlchemyPaymentApplicationRepository(session)
    commitment_repo = SqlAlchemyCommitmentFactRepository(session)
    actual_repo = SqlAlchemyActualFactRepository(session)

    reconciler = BackfillReconciler(
        session=session,
        contract_repo=contract_repo,
        variation_repo=variation_repo,
        payment_application_repo=payment_application_repo,
        package_repo=package_repo,
        commitment_repo=commitment_repo,
        actual_repo=actual_repo,
        batch_size=settings.backfill_batch_size,
        default_currency=settings.default_currency,
    )
    ledger_service = CvrLedgerService(
        session,
        budget_line_repo=budget_line_repo,
        package_repo=package_repo,
        commitment_repo=commitment_repo,
        actual_repo=actual_repo,
        source_repos={
            SourceType.CONTRACT: contract_repo,
            SourceType.VARIATION: variation_repo,
            SourceType.PAYMENT_APPLICATION: payment_application_repo,
        },
        reconciler=reconciler,
        matching_service=matching_service,
        support=support,
    )
    source_service = SourceDocumentService(
        session,
        package_repo,
        budget_line_repo,
        contract_repo,
        variation_repo,
        payment_application_repo,
        events=events,
    )
    report_service = CvrReportService(session, SqlAlchemyCvrReportRepository(session), ledger_service)
    if settings.reconcile_on_change:
        ledger_service.connect_hooks(events)

    return ServiceGraph(
        session=session,
        settings=settings,
        events=events,
        support=support,
        reconciler=reconciler,
        ledger_service=ledger_service,
        source_service=source_service,
        report_service=report_service,
    )


def build_service_dict(session: Session, settings: LedgerSettings | None = None, **kwargs: Any) -> dict[str, Any]:
    return build_service_graph(session, settings, **kwargs).as_dict()
