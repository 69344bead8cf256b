from __future__ import annotations

from enum import Enum


class ContractStatus(str, Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    SIGNED = "signed"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class VariationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PaymentApplicationStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    CERTIFIED = "CERTIFIED"
    APPROVED = "APPROVED"
    PAYMENT_NOTICE_SENT = "PAYMENT_NOTICE_SENT"
    PAY_LESS_ISSUED = "PAY_LESS_ISSUED"
    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    PAID = "PAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


class CvrReportType(str, Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEAR_END = "YEAR_END"
    AD_HOC = "AD_HOC"


class CvrReportStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SourceType(str, Enum):
    CONTRACT = "CONTRACT"
    VARIATION = "VARIATION"
    PAYMENT_APPLICATION = "PAYMENT_APPLICATION"


class CommitmentStatus(str, Enum):
    COMMITTED = "COMMITTED"
    CANCELLED = "CANCELLED"


class ActualStatus(str, Enum):
    CERTIFIED = "CERTIFIED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


COMMITMENT_ELIGIBLE_CONTRACT_STATUSES = frozenset({ContractStatus.SIGNED, ContractStatus.ACTIVE})
COMMITMENT_ELIGIBLE_VARIATION_STATUSES = frozenset({VariationStatus.APPROVED})
ACTUAL_INELIGIBLE_APPLICATION_STATUSES = frozenset(
    {PaymentApplicationStatus.CANCELLED, PaymentApplicationStatus.REJECTED}
)
PAID_APPLICATION_STATUSES = frozenset(
    {PaymentApplicationStatus.PAID, PaymentApplicationStatus.PARTIALLY_PAID}
)

# Fact statuses that count towards aggregated totals.
VISIBLE_COMMITMENT_STATUSES = frozenset({CommitmentStatus.COMMITTED})
VISIBLE_ACTUAL_STATUSES = frozenset({ActualStatus.CERTIFIED, ActualStatus.PAID})

COMMITMENT_SOURCE_TYPES = frozenset({SourceType.CONTRACT, SourceType.VARIATION})
ACTUAL_SOURCE_TYPES = frozenset({SourceType.PAYMENT_APPLICATION})

# Approved reports are final; a rejected one goes back to the preparer.
REPORT_STATUS_TRANSITIONS: dict[CvrReportStatus, frozenset[CvrReportStatus]] = {
    CvrReportStatus.IN_PROGRESS: frozenset({CvrReportStatus.SUBMITTED}),
    CvrReportStatus.SUBMITTED: frozenset(
        {CvrReportStatus.APPROVED, CvrReportStatus.REJECTED, CvrReportStatus.IN_PROGRESS}
    ),
    CvrReportStatus.APPROVED: frozenset(),
    CvrReportStatus.REJECTED: frozenset({CvrReportStatus.IN_PROGRESS}),
}


__all__ = [
    "ContractStatus",
    "VariationStatus",
    "PaymentApplicationStatus",
    "SourceType",
    "CommitmentStatus",
    "ActualStatus",
    "CvrReportType",
    "CvrReportStatus",
    "COMMITMENT_ELIGIBLE_CONTRACT_STATUSES",
    "COMMITMENT_ELIGIBLE_VARIATION_STATUSES",
    "ACTUAL_INELIGIBLE_APPLICATION_STATUSES",
    "PAID_APPLICATION_STATUSES",
    "VISIBLE_COMMITMENT_STATUSES",
    "VISIBLE_ACTUAL_STATUSES",
    "COMMITMENT_SOURCE_TYPES",
    "ACTUAL_SOURCE_TYPES",
    "REPORT_STATUS_TRANSITIONS",
]
