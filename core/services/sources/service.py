from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from core.domain.enums import (
    ContractStatus,
    PaymentApplicationStatus,
    SourceType,
    VariationStatus,
)
from core.domain.sources import BudgetLine, Contract, Package, PaymentApplication, Variation, _utc_now
from core.events.domain_events import DomainEvents, SourceChanged, domain_events
from core.exceptions import NotFoundError, ValidationError
from core.interfaces import (
    BudgetLineRepository,
    ContractRepository,
    PackageRepository,
    PaymentApplicationRepository,
    VariationRepository,
)

logger = logging.getLogger(__name__)


def _coerce_status(enum_type, value):
    if isinstance(value, enum_type):
        return value
    token = str(value or "").strip()
    for member in enum_type:
        if member.value.lower() == token.lower():
            return member
    raise ValidationError(f"Unknown {enum_type.__name__}: {value!r}.", code="STATUS_INVALID")


def _non_negative(value: Decimal | None, label: str) -> Decimal | None:
    if value is None:
        return None
    amount = Decimal(str(value))
    if amount < 0:
        raise ValidationError(f"{label} cannot be negative.")
    return amount


class SourceDocumentService:
    """Writes to the authoritative documents the ledger derives from.

    Every committed change emits the matching domain event so the ledger can
    reconcile that one document straight away.
    """

    def __init__(
        self,
        session: Session,
        package_repo: PackageRepository,
        budget_line_repo: BudgetLineRepository,
        contract_repo: ContractRepository,
        variation_repo: VariationRepository,
        payment_application_repo: PaymentApplicationRepository,
        events: DomainEvents | None = None,
    ):
        self._session: Session = session
        self._package_repo = package_repo
        self._budget_line_repo = budget_line_repo
        self._contract_repo = contract_repo
        self._variation_repo = variation_repo
        self._payment_application_repo = payment_application_repo
        self._events = events or domain_events

    # ---- packages & budget ---------------------------------------------

    def add_package(self, tenant_id: str, project_id: str, name: str) -> Package:
        if not (name or "").strip():
            raise ValidationError("Package name is required.", code="PACKAGE_NAME_REQUIRED")
        package = Package.create(tenant_id=tenant_id, project_id=project_id, name=name)
        self._save(lambda: self._package_repo.add(package))
        return package

    def add_budget_line(
        self,
        tenant_id: str,
        project_id: str,
        code: str,
        planned_amount: Decimal | None,
        description: str = "",
        package_id: str | None = None,
    ) -> BudgetLine:
        if package_id is not None:
            self._require_package(tenant_id, project_id, package_id)
        line = BudgetLine.create(
            tenant_id=tenant_id,
            project_id=project_id,
            code=(code or "").strip(),
            planned_amount=_non_negative(planned_amount, "Planned amount"),
            description=(description or "").strip(),
            package_id=package_id,
        )
        self._save(lambda: self._budget_line_repo.add(line))
        return line

    # ---- contracts -----------------------------------------------------

    def add_contract(
        self,
        tenant_id: str,
        project_id: str,
        title: str,
        value: Decimal | None,
        status: ContractStatus | str = ContractStatus.DRAFT,
        package_id: str | None = None,
        currency: str | None = None,
        signed_date: date | None = None,
    ) -> Contract:
        resolved = _coerce_status(ContractStatus, status)
        if package_id is not None:
            self._require_package(tenant_id, project_id, package_id)
        contract = Contract.create(
            tenant_id=tenant_id,
            project_id=project_id,
            title=(title or "").strip(),
            value=_non_negative(value, "Contract value"),
            status=resolved.value,
            package_id=package_id,
            currency=currency,
            signed_date=signed_date,
        )
        self._save(lambda: self._contract_repo.add(contract))
        self._notify(SourceType.CONTRACT, contract.tenant_id, contract.id)
        return contract

    def set_contract_status(self, tenant_id: str, contract_id: str, status: ContractStatus | str) -> Contract:
        contract = self._contract_repo.get(tenant_id, contract_id)
        if contract is None:
            raise NotFoundError("Contract not found.", code="CONTRACT_NOT_FOUND")
        resolved = _coerce_status(ContractStatus, status)
        contract.status = resolved.value
        if resolved == ContractStatus.SIGNED and contract.signed_date is None:
            contract.signed_date = date.today()
        contract.updated_at = _utc_now()
        self._save(lambda: self._contract_repo.update(contract))
        self._notify(SourceType.CONTRACT, tenant_id, contract_id)
        return contract

    # ---- variations ----------------------------------------------------

    def add_variation(
        self,
        tenant_id: str,
        contract_id: str,
        title: str,
        value: Decimal | None,
        status: VariationStatus | str = VariationStatus.DRAFT,
        approved_value: Decimal | None = None,
    ) -> Variation:
        contract = self._contract_repo.get(tenant_id, contract_id)
        if contract is None:
            raise NotFoundError("Contract not found.", code="CONTRACT_NOT_FOUND")
        resolved = _coerce_status(VariationStatus, status)
        variation = Variation.create(
            tenant_id=tenant_id,
            project_id=contract.project_id,
            title=(title or "").strip(),
            value=_non_negative(value, "Variation value"),
            status=resolved.value,
            contract_id=contract.id,
            package_id=contract.package_id,
            approved_value=_non_negative(approved_value, "Approved value"),
            currency=contract.currency,
        )
        self._save(lambda: self._variation_repo.add(variation))
        self._notify(SourceType.VARIATION, tenant_id, variation.id)
        return variation

    def set_variation_status(
        self,
        tenant_id: str,
        variation_id: str,
        status: VariationStatus | str,
        approved_value: Decimal | None = None,
    ) -> Variation:
        variation = self._variation_repo.get(tenant_id, variation_id)
        if variation is None:
            raise NotFoundError("Variation not found.", code="VARIATION_NOT_FOUND")
        resolved = _coerce_status(VariationStatus, status)
        variation.status = resolved.value
        if approved_value is not None:
            variation.approved_value = _non_negative(approved_value, "Approved value")
        if resolved == VariationStatus.APPROVED and variation.approved_date is None:
            variation.approved_date = date.today()
        variation.updated_at = _utc_now()
        self._save(lambda: self._variation_repo.update(variation))
        self._notify(SourceType.VARIATION, tenant_id, variation_id)
        return variation

    # ---- payment applications -----------------------------------------

    def add_payment_application(
        self,
        tenant_id: str,
        contract_id: str,
        application_no: str,
        claimed_this_period: Decimal | None,
        status: PaymentApplicationStatus | str = PaymentApplicationStatus.SUBMITTED,
        application_date: date | None = None,
    ) -> PaymentApplication:
        contract = self._contract_repo.get(tenant_id, contract_id)
        if contract is None:
            raise NotFoundError("Contract not found.", code="CONTRACT_NOT_FOUND")
        resolved = _coerce_status(PaymentApplicationStatus, status)
        application = PaymentApplication.create(
            tenant_id=tenant_id,
            application_no=(application_no or "").strip(),
            status=resolved.value,
            project_id=contract.project_id,
            contract_id=contract.id,
            package_id=contract.package_id,
            claimed_this_period=_non_negative(claimed_this_period, "Claimed amount"),
            currency=contract.currency,
            application_date=application_date or date.today(),
        )
        self._save(lambda: self._payment_application_repo.add(application))
        self._notify(SourceType.PAYMENT_APPLICATION, tenant_id, application.id)
        return application

    def certify_payment_application(
        self,
        tenant_id: str,
        application_id: str,
        certified_this_period: Decimal,
        certified_net_value: Decimal | None = None,
    ) -> PaymentApplication:
        application = self._get_application(tenant_id, application_id)
        application.certified_this_period = _non_negative(certified_this_period, "Certified amount")
        application.certified_net_value = _non_negative(certified_net_value, "Certified net value")
        application.status = PaymentApplicationStatus.CERTIFIED.value
        return self._update_application(application)

    def record_payment(
        self,
        tenant_id: str,
        application_id: str,
        amount_paid: Decimal,
        paid_date: date | None = None,
        partial: bool = False,
    ) -> PaymentApplication:
        application = self._get_application(tenant_id, application_id)
        application.amount_paid = _non_negative(amount_paid, "Amount paid")
        application.paid_date = paid_date or date.today()
        application.status = (
            PaymentApplicationStatus.PARTIALLY_PAID if partial else PaymentApplicationStatus.PAID
        ).value
        return self._update_application(application)

    def set_payment_application_status(
        self,
        tenant_id: str,
        application_id: str,
        status: PaymentApplicationStatus | str,
    ) -> PaymentApplication:
        application = self._get_application(tenant_id, application_id)
        application.status = _coerce_status(PaymentApplicationStatus, status).value
        return self._update_application(application)

    # ---- helpers -------------------------------------------------------

    def _get_application(self, tenant_id: str, application_id: str) -> PaymentApplication:
        application = self._payment_application_repo.get(tenant_id, application_id)
        if application is None:
            raise NotFoundError("Payment application not found.", code="PAYMENT_APPLICATION_NOT_FOUND")
        return application

    def _update_application(self, application: PaymentApplication) -> PaymentApplication:
        application.updated_at = _utc_now()
        self._save(lambda: self._payment_application_repo.update(application))
        self._notify(SourceType.PAYMENT_APPLICATION, application.tenant_id, application.id)
        return application

    def _require_package(self, tenant_id: str, project_id: str, package_id: str) -> None:
        package = self._package_repo.get(tenant_id, package_id)
        if package is None:
            raise NotFoundError("Package not found.", code="PACKAGE_NOT_FOUND")
        if package.project_id != project_id:
            raise ValidationError(
                "Package must belong to the selected project.",
                code="PACKAGE_PROJECT_MISMATCH",
            )

    def _save(self, write) -> None:
        try:
            write()
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            raise e

    def _notify(self, source_type: SourceType, tenant_id: str, source_id: str) -> None:
        logger.debug("%s %s changed", source_type.value, source_id)
        self._events.signal_for(source_type).emit(
            SourceChanged(tenant_id=tenant_id, source_type=source_type, source_id=source_id)
        )


__all__ = ["SourceDocumentService"]
