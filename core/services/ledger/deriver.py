"""Pure mapping from a source document's current state to its ledger fact.

Each deriver returns ``None`` when the document is not eligible (wrong status,
zero or negative amount). Documents that cannot be linked to a project raise
:class:`SourceLinkError`; malformed amounts or statuses raise
:class:`DerivationError`.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Callable, Union

from core.domain.enums import (
    ACTUAL_INELIGIBLE_APPLICATION_STATUSES,
    COMMITMENT_ELIGIBLE_CONTRACT_STATUSES,
    COMMITMENT_ELIGIBLE_VARIATION_STATUSES,
    PAID_APPLICATION_STATUSES,
    ActualStatus,
    CommitmentStatus,
    ContractStatus,
    PaymentApplicationStatus,
    SourceType,
    VariationStatus,
)
from core.domain.ledger import ActualFact, CommitmentFact
from core.domain.sources import Contract, PaymentApplication, Variation
from core.exceptions import SourceLinkError
from core.services.ledger.helpers import ZERO, as_date, normalize_currency, parse_status, to_amount

LedgerFact = Union[CommitmentFact, ActualFact]
SourceDocument = Union[Contract, Variation, PaymentApplication]


def _first_nonzero(*amounts: Decimal | None) -> Decimal | None:
    for amount in amounts:
        if amount is not None and amount != ZERO:
            return amount
    return None


def derive_commitment(contract: Contract, *, default_currency: str | None = None) -> CommitmentFact | None:
    status = parse_status(ContractStatus, contract.status, source_id=contract.id)
    if status not in COMMITMENT_ELIGIBLE_CONTRACT_STATUSES:
        return None
    value = to_amount(contract.value, source_id=contract.id, field="value")
    if value is None or value <= ZERO:
        return None
    if not contract.project_id:
        raise SourceLinkError("Contract has no project.", source_id=contract.id)
    return CommitmentFact.create(
        tenant_id=contract.tenant_id,
        project_id=contract.project_id,
        source_type=SourceType.CONTRACT,
        source_id=contract.id,
        amount=value,
        currency=normalize_currency(contract.currency, default_currency),
        status=CommitmentStatus.COMMITTED,
        package_id=contract.package_id,
        committed_date=as_date(contract.signed_date) or as_date(contract.created_at),
    )


def derive_variation_commitment(
    variation: Variation,
    contract: Contract | None = None,
    *,
    default_currency: str | None = None,
) -> CommitmentFact | None:
    status = parse_status(VariationStatus, variation.status, source_id=variation.id)
    if status not in COMMITMENT_ELIGIBLE_VARIATION_STATUSES:
        return None
    amount = _first_nonzero(
        to_amount(variation.approved_value, source_id=variation.id, field="approved_value"),
        to_amount(variation.value, source_id=variation.id, field="value"),
    )
    if amount is None or amount <= ZERO:
        return None
    project_id = variation.project_id or (contract.project_id if contract is not None else None)
    if not project_id:
        raise SourceLinkError("Variation has no resolvable project.", source_id=variation.id)
    package_id = variation.package_id or (contract.package_id if contract is not None else None)
    currency = variation.currency or (contract.currency if contract is not None else None)
    return CommitmentFact.create(
        tenant_id=variation.tenant_id,
        project_id=project_id,
        source_type=SourceType.VARIATION,
        source_id=variation.id,
        amount=amount,
        currency=normalize_currency(currency, default_currency),
        status=CommitmentStatus.COMMITTED,
        package_id=package_id,
        committed_date=as_date(variation.approved_date) or as_date(variation.created_at),
    )


def resolve_actual_amount(application: PaymentApplication) -> Decimal | None:
    """Amount to recognise: paid, then certified net, then certified.

    A bare claim is not a cost yet; an application with nothing paid or
    certified yields no amount.
    """
    paid = to_amount(application.amount_paid, source_id=application.id, field="amount_paid")
    if paid is not None and paid > ZERO:
        return paid
    return _first_nonzero(
        to_amount(application.certified_net_value, source_id=application.id, field="certified_net_value"),
        to_amount(application.certified_this_period, source_id=application.id, field="certified_this_period"),
    )


def derive_actual(
    application: PaymentApplication,
    contract: Contract | None = None,
    *,
    default_currency: str | None = None,
) -> ActualFact | None:
    status = parse_status(PaymentApplicationStatus, application.status, source_id=application.id)
    if status in ACTUAL_INELIGIBLE_APPLICATION_STATUSES:
        return None
    amount = resolve_actual_amount(application)
    if amount is None or amount <= ZERO:
        return None

    project_id = application.project_id or (contract.project_id if contract is not None else None)
    if not project_id:
        raise SourceLinkError(
            f"Payment application {application.application_no} has no resolvable project.",
            source_id=application.id,
        )
    package_id = application.package_id or (contract.package_id if contract is not None else None)
    currency = application.currency or (contract.currency if contract is not None else None)

    paid = status in PAID_APPLICATION_STATUSES
    return ActualFact.create(
        tenant_id=application.tenant_id,
        project_id=project_id,
        source_id=application.id,
        amount=amount,
        currency=normalize_currency(currency, default_currency),
        status=ActualStatus.PAID if paid else ActualStatus.CERTIFIED,
        package_id=package_id,
        incurred_date=as_date(application.application_date) or as_date(application.created_at),
        paid_date=(as_date(application.paid_date) or as_date(application.updated_at)) if paid else None,
    )


def _derive_contract(
    contract: Contract,
    _parent: Contract | None = None,
    *,
    default_currency: str | None = None,
) -> CommitmentFact | None:
    return derive_commitment(contract, default_currency=default_currency)


Deriver = Callable[..., "LedgerFact | None"]

# Closed mapping of source type to its deriver. Every deriver takes the
# document, the contract it hangs off (or None) and the tenant currency.
DERIVERS: dict[SourceType, Deriver] = {
    SourceType.CONTRACT: _derive_contract,
    SourceType.VARIATION: derive_variation_commitment,
    SourceType.PAYMENT_APPLICATION: derive_actual,
}


def derive_fact(
    source_type: SourceType,
    document: SourceDocument,
    contract: Contract | None = None,
    *,
    default_currency: str | None = None,
) -> LedgerFact | None:
    return DERIVERS[source_type](document, contract, default_currency=default_currency)


__all__ = [
    "DERIVERS",
    "LedgerFact",
    "SourceDocument",
    "derive_actual",
    "derive_commitment",
    "derive_fact",
    "derive_variation_commitment",
    "resolve_actual_amount",
]
