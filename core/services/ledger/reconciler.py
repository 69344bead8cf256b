from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from sqlalchemy.orm import Session

from core.domain.enums import ActualStatus, CommitmentStatus, SourceType
from core.domain.ledger import ActualFact
from core.domain.sources import Contract
from core.exceptions import DerivationError, SourceLinkError, ValidationError
from core.interfaces import (
    ActualFactRepository,
    CommitmentFactRepository,
    ContractRepository,
    PackageRepository,
    PaymentApplicationRepository,
    SourceDocumentRepository,
    VariationRepository,
)
from core.services.ledger.deriver import SourceDocument, derive_fact
from core.services.ledger.helpers import as_naive_utc
from core.services.ledger.models import (
    BackfillCounts,
    BackfillIssue,
    BackfillReport,
    ReconcileOutcome,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 200


@dataclass(frozen=True)
class SourceBinding:
    """Ties a source type to the repository it is read from and its ledger."""

    source_type: SourceType
    repository: SourceDocumentRepository
    is_commitment: bool
    contract_id_of: Callable[[SourceDocument], Optional[str]]


class BackfillReconciler:
    """Bring the fact store into agreement with current source documents.

    Documents are read in id-ordered sub-batches; each document is reconciled
    inside its own SAVEPOINT and every sub-batch is committed, so an interrupted
    pass leaves consistent facts behind and can simply be run again.
    """

    def __init__(
        self,
        *,
        session: Session,
        contract_repo: ContractRepository,
        variation_repo: VariationRepository,
        payment_application_repo: PaymentApplicationRepository,
        package_repo: PackageRepository,
        commitment_repo: CommitmentFactRepository,
        actual_repo: ActualFactRepository,
        batch_size: int = DEFAULT_BATCH_SIZE,
        default_currency: str | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValidationError("Batch size must be positive.", code="BATCH_SIZE_INVALID")
        self._session = session
        self._contract_repo = contract_repo
        self._package_repo = package_repo
        self._commitment_repo = commitment_repo
        self._actual_repo = actual_repo
        self._batch_size = batch_size
        self._default_currency = default_currency
        self._bindings: dict[SourceType, SourceBinding] = {
            SourceType.CONTRACT: SourceBinding(
                source_type=SourceType.CONTRACT,
                repository=contract_repo,
                is_commitment=True,
                contract_id_of=lambda doc: None,
            ),
            SourceType.VARIATION: SourceBinding(
                source_type=SourceType.VARIATION,
                repository=variation_repo,
                is_commitment=True,
                contract_id_of=lambda doc: doc.contract_id,
            ),
            SourceType.PAYMENT_APPLICATION: SourceBinding(
                source_type=SourceType.PAYMENT_APPLICATION,
                repository=payment_application_repo,
                is_commitment=False,
                contract_id_of=lambda doc: doc.contract_id,
            ),
        }

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def run(
        self,
        tenant_id: str,
        *,
        project_id: str | None = None,
        updated_from: datetime | None = None,
        updated_to: datetime | None = None,
        stop_event: threading.Event | None = None,
    ) -> BackfillReport:
        tenant_id = (tenant_id or "").strip()
        if not tenant_id:
            raise ValidationError("Tenant is required for backfill.", code="TENANT_REQUIRED")
        updated_from = as_naive_utc(updated_from)
        updated_to = as_naive_utc(updated_to)
        if updated_from and updated_to and updated_from > updated_to:
            raise ValidationError("Date range start is after its end.", code="DATE_RANGE_INVALID")

        report = BackfillReport(tenant_id=tenant_id)
        logger.info(
            "Backfill started tenant=%s project=%s range=%s..%s batch=%s",
            tenant_id,
            project_id or "*",
            updated_from,
            updated_to,
            self._batch_size,
        )

        for binding in self._bindings.values():
            counts = report.commitments if binding.is_commitment else report.actuals
            batches = binding.repository.iter_batches(
                tenant_id,
                batch_size=self._batch_size,
                project_id=project_id,
                updated_from=updated_from,
                updated_to=updated_to,
            )
            for batch in batches:
                if stop_event is not None and stop_event.is_set():
                    report.stopped = True
                    break
                self._reconcile_batch(binding, tenant_id, batch, counts)
                self._session.commit()
            if report.stopped:
                break

        if report.stopped:
            logger.warning("Backfill stopped early tenant=%s; rerun to finish.", tenant_id)
        else:
            report.packages_recomputed = self.recompute_package_rollups(tenant_id, project_id=project_id)
            self._session.commit()

        logger.info(
            "Backfill finished tenant=%s commitments=%s actuals=%s packages=%s",
            tenant_id,
            _summary(report.commitments),
            _summary(report.actuals),
            report.packages_recomputed,
        )
        return report

    def reconcile_one(self, source_type: SourceType, document: SourceDocument) -> ReconcileOutcome:
        """Reconcile a single document (the event-hook path). Caller commits."""
        binding = self._bindings[source_type]
        contract = self._contract_for(binding, document)
        with self._session.begin_nested():
            return self._reconcile_document(binding, document, contract)

    def recompute_package_rollups(self, tenant_id: str, *, project_id: str | None = None) -> int:
        """Rewrite each package's cached actual cost from its PAID actual facts."""
        packages = self._package_repo.list_for_scope(tenant_id, project_id)
        if not packages:
            return 0
        sums = self._actual_repo.sum_paid_by_package(tenant_id, [pkg.id for pkg in packages])
        for package in packages:
            self._package_repo.set_actual_cost(tenant_id, package.id, sums.get(package.id, Decimal("0")))
        return len(packages)

    # ------------------------------------------------------------------

    def _reconcile_batch(
        self,
        binding: SourceBinding,
        tenant_id: str,
        batch: list,
        counts: BackfillCounts,
    ) -> None:
        contract_ids = {cid for cid in (binding.contract_id_of(doc) for doc in batch) if cid}
        contracts = self._contract_repo.get_many(tenant_id, contract_ids) if contract_ids else {}

        for document in batch:
            contract_id = binding.contract_id_of(document)
            contract = contracts.get(contract_id) if contract_id else None
            try:
                with self._session.begin_nested():
                    outcome = self._reconcile_document(binding, document, contract)
            except SourceLinkError as exc:
                counts.skipped += 1
                logger.warning("Skipped %s %s: %s", binding.source_type.value, document.id, exc)
                continue
            except DerivationError as exc:
                counts.record_error(
                    BackfillIssue(
                        source_type=binding.source_type.value,
                        source_id=document.id,
                        code=exc.code,
                        message=str(exc),
                    )
                )
                logger.error("Derivation failed for %s %s: %s", binding.source_type.value, document.id, exc)
                continue
            counts.record(outcome)
            logger.debug("%s %s -> %s", binding.source_type.value, document.id, outcome.value)

    def _contract_for(self, binding: SourceBinding, document: SourceDocument) -> Contract | None:
        contract_id = binding.contract_id_of(document)
        if not contract_id:
            return None
        return self._contract_repo.get(document.tenant_id, contract_id)

    def _reconcile_document(
        self,
        binding: SourceBinding,
        document: SourceDocument,
        contract: Contract | None,
    ) -> ReconcileOutcome:
        fact = derive_fact(
            binding.source_type,
            document,
            contract,
            default_currency=self._default_currency,
        )
        repo = self._commitment_repo if binding.is_commitment else self._actual_repo

        if fact is None:
            # Source is no longer eligible: hide the fact, never delete it.
            existing = repo.get_by_source(document.tenant_id, binding.source_type, document.id)
            cancelled = CommitmentStatus.CANCELLED if binding.is_commitment else ActualStatus.CANCELLED
            if existing is None or existing.status == cancelled:
                return ReconcileOutcome.SKIPPED
            changed = repo.update_status(document.tenant_id, binding.source_type, document.id, cancelled)
            return ReconcileOutcome.UPDATED if changed else ReconcileOutcome.SKIPPED

        if repo.insert_if_absent(fact):
            return ReconcileOutcome.CREATED

        # Amount is a snapshot: only the status follows the source.
        if isinstance(fact, ActualFact):
            changed = self._actual_repo.update_status(
                fact.tenant_id,
                fact.source_type,
                fact.source_id,
                fact.status,
                paid_date=fact.paid_date,
            )
        else:
            changed = self._commitment_repo.update_status(
                fact.tenant_id,
                fact.source_type,
                fact.source_id,
                fact.status,
            )
        return ReconcileOutcome.UPDATED if changed else ReconcileOutcome.SKIPPED


def _summary(counts: BackfillCounts) -> str:
    return f"{counts.created}/{counts.updated}/{counts.skipped}/{counts.errors}"


__all__ = ["BackfillReconciler", "SourceBinding", "DEFAULT_BATCH_SIZE"]
