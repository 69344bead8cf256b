from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from core.domain.enums import ActualStatus, CommitmentStatus, SourceType
from core.domain.matching import MatchCandidate
from core.events.domain_events import DomainEvents, SourceChanged
from core.exceptions import DerivationError, NotFoundError, SourceLinkError, ValidationError
from core.interfaces import (
    ActualFactRepository,
    BudgetLineRepository,
    CommitmentFactRepository,
    InvoiceMatchingService,
    PackageRepository,
    SourceDocumentRepository,
)
from core.services.ledger.aggregation import build_financial_position, build_source_breakdown
from core.services.ledger.models import BackfillReport, CvrBreakdown, FinancialPosition, ReconcileOutcome
from core.services.ledger.reconciler import BackfillReconciler

logger = logging.getLogger(__name__)

_VISIBLE_COMMITMENTS = (CommitmentStatus.COMMITTED,)
_VISIBLE_ACTUALS = (ActualStatus.CERTIFIED, ActualStatus.PAID)


def _require(value: str | None, label: str, code: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{label} is required.", code=code)
    return cleaned


class CvrLedgerService:
    def __init__(
        self,
        session: Session,
        *,
        budget_line_repo: BudgetLineRepository,
        package_repo: PackageRepository,
        commitment_repo: CommitmentFactRepository,
        actual_repo: ActualFactRepository,
        source_repos: dict[SourceType, SourceDocumentRepository],
        reconciler: BackfillReconciler,
        matching_service: InvoiceMatchingService | None = None,
        support: Any = None,
    ):
        self._session: Session = session
        self._budget_line_repo = budget_line_repo
        self._package_repo = package_repo
        self._commitment_repo = commitment_repo
        self._actual_repo = actual_repo
        self._source_repos = source_repos
        self._reconciler = reconciler
        self._matching_service = matching_service
        self._support = support
        self._events: DomainEvents | None = None

    # ---- reads --------------------------------------------------------

    def get_financial_position(self, tenant_id: str, project_id: str) -> FinancialPosition:
        tenant_id = _require(tenant_id, "Tenant", "TENANT_REQUIRED")
        project_id = _require(project_id, "Project", "PROJECT_REQUIRED")
        budget_lines, commitments, actuals = self._fetch_inputs(tenant_id, project_id)

        package_ids = {line.package_id for line in budget_lines if line.package_id}
        package_ids.update(f.package_id for f in commitments if f.package_id)
        package_ids.update(f.package_id for f in actuals if f.package_id)
        packages = self._package_repo.list_by_ids(tenant_id, package_ids) if package_ids else []

        return build_financial_position(
            project_id=project_id,
            budget_lines=budget_lines,
            commitments=commitments,
            actuals=actuals,
            package_names={pkg.id: pkg.name for pkg in packages},
        )

    def get_source_breakdown(self, tenant_id: str, project_id: str) -> CvrBreakdown:
        position = self.get_financial_position(tenant_id, project_id)
        tenant_id = tenant_id.strip()
        project_id = project_id.strip()
        return build_source_breakdown(
            position=position,
            commitments=self._commitment_repo.list_by_project(tenant_id, project_id, _VISIBLE_COMMITMENTS),
            actuals=self._actual_repo.list_by_project(tenant_id, project_id, _VISIBLE_ACTUALS),
        )

    def _fetch_inputs(self, tenant_id: str, project_id: str):
        # One session cannot serve concurrent queries; the three reads run in turn.
        budget_lines = self._budget_line_repo.list_by_project(tenant_id, project_id)
        commitments = self._commitment_repo.list_by_project(tenant_id, project_id, _VISIBLE_COMMITMENTS)
        actuals = self._actual_repo.list_by_project(tenant_id, project_id, _VISIBLE_ACTUALS)
        return budget_lines, commitments, actuals

    # ---- writes -------------------------------------------------------

    def run_backfill(
        self,
        tenant_id: str,
        *,
        project_id: str | None = None,
        updated_from: datetime | None = None,
        updated_to: datetime | None = None,
        stop_event: threading.Event | None = None,
        trace_id: str | None = None,
    ) -> BackfillReport:
        try:
            report = self._reconciler.run(
                tenant_id,
                project_id=project_id,
                updated_from=updated_from,
                updated_to=updated_to,
                stop_event=stop_event,
            )
        except ValidationError:
            raise
        except Exception as e:
            self._session.rollback()
            logger.exception("Backfill failed for tenant %s", tenant_id)
            self._emit_support(
                event_type="ledger.backfill.failed",
                level="ERROR",
                message=f"Backfill failed: {e}",
                trace_id=trace_id,
                data={"tenant_id": tenant_id, "project_id": project_id},
            )
            raise e

        report.trace_id = self._emit_support(
            event_type="ledger.backfill.completed",
            level="WARNING" if report.stopped else "INFO",
            message="Backfill stopped early" if report.stopped else "Backfill completed",
            trace_id=trace_id,
            data=report.as_dict(),
        ) or trace_id
        if project_id and self._events is not None:
            self._events.ledger_reconciled.emit(project_id)
        return report

    def reconcile_source(self, tenant_id: str, source_type: SourceType, source_id: str) -> ReconcileOutcome:
        """Bring the fact for one source document in line with its current state."""
        tenant_id = _require(tenant_id, "Tenant", "TENANT_REQUIRED")
        if not isinstance(source_type, SourceType):
            source_type = SourceType(str(source_type))
        repo = self._source_repos[source_type]
        document = repo.get(tenant_id, source_id)
        if document is None:
            raise NotFoundError(
                f"{source_type.value} {source_id} not found.",
                code="SOURCE_NOT_FOUND",
            )
        try:
            outcome = self._reconciler.reconcile_one(source_type, document)
            project_id = None
            if outcome is not ReconcileOutcome.SKIPPED:
                project_id = document.project_id or self._fact_project(tenant_id, source_type, source_id)
                self._reconciler.recompute_package_rollups(tenant_id, project_id=project_id)
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            raise e
        logger.info("Reconciled %s %s -> %s", source_type.value, source_id, outcome.value)
        if self._events is not None and project_id:
            self._events.ledger_reconciled.emit(project_id)
        return outcome

    def _fact_project(self, tenant_id: str, source_type: SourceType, source_id: str) -> str | None:
        # AFPs may only reach their project through the contract
        repo = self._actual_repo if source_type is SourceType.PAYMENT_APPLICATION else self._commitment_repo
        fact = repo.get_by_source(tenant_id, source_type, source_id)
        return fact.project_id if fact is not None else None

    def accept_best_invoice_match(self, invoice_id: str) -> MatchCandidate | None:
        """Accept the top-ranked candidate that falls inside tolerance."""
        if self._matching_service is None:
            raise ValidationError("Invoice matching is not configured.", code="MATCHING_UNAVAILABLE")
        invoice_id = _require(invoice_id, "Invoice", "INVOICE_REQUIRED")
        result = self._matching_service.attempt_match(invoice_id)
        candidate = result.best_within_tolerance()
        if candidate is None:
            logger.info("No purchase order within tolerance for invoice %s", invoice_id)
            return None
        self._matching_service.accept_match(candidate.po_id, invoice_id)
        logger.info("Invoice %s matched to PO %s (variance %s)", invoice_id, candidate.po_id, candidate.variance)
        return candidate

    # ---- event hooks --------------------------------------------------

    def connect_hooks(self, events: DomainEvents) -> None:
        self._events = events
        for signal in events.source_signals():
            signal.connect(self._on_source_changed)

    def disconnect_hooks(self) -> None:
        if self._events is None:
            return
        for signal in self._events.source_signals():
            signal.disconnect(self._on_source_changed)
        self._events = None

    def _on_source_changed(self, event: SourceChanged) -> None:
        # The source write is already committed; a bad document must not fail it.
        # The next backfill pass retries anything that fails here.
        try:
            self.reconcile_source(event.tenant_id, event.source_type, event.source_id)
        except SourceLinkError as exc:
            logger.warning("Hook skipped %s %s: %s", event.source_type.value, event.source_id, exc)
        except DerivationError as exc:
            logger.error("Hook failed for %s %s: %s", event.source_type.value, event.source_id, exc)

    def _emit_support(self, **kwargs: Any) -> str | None:
        if self._support is None:
            return None
        return self._support.emit_event(**kwargs)


__all__ = ["CvrLedgerService"]
