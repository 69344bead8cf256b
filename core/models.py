# core/models.py
from core.domain import (
    ActualFact,
    ActualStatus,
    BudgetLine,
    CommitmentFact,
    CommitmentStatus,
    Contract,
    ContractStatus,
    CvrReport,
    CvrReportStatus,
    CvrReportType,
    Package,
    PaymentApplication,
    PaymentApplicationStatus,
    SourceType,
    Variation,
    VariationStatus,
    generate_id,
)

__all__ = [
    "generate_id",
    "ContractStatus",
    "VariationStatus",
    "PaymentApplicationStatus",
    "SourceType",
    "CommitmentStatus",
    "ActualStatus",
    "CvrReportType",
    "CvrReportStatus",
    "Package",
    "BudgetLine",
    "Contract",
    "Variation",
    "PaymentApplication",
    "CommitmentFact",
    "ActualFact",
    "CvrReport",
]
