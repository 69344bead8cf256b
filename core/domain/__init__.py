from core.domain.enums import (
    ActualStatus,
    CommitmentStatus,
    ContractStatus,
    CvrReportStatus,
    CvrReportType,
    PaymentApplicationStatus,
    SourceType,
    VariationStatus,
)
from core.domain.identifiers import generate_id
from core.domain.ledger import ActualFact, CommitmentFact
from core.domain.reports import CvrReport
from core.domain.sources import BudgetLine, Contract, Package, PaymentApplication, Variation

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
