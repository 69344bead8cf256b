# infra/db/repositories.py
from __future__ import annotations

from infra.db.ledger import (
    SqlAlchemyActualFactRepository,
    SqlAlchemyCommitmentFactRepository,
)
from infra.db.reports import SqlAlchemyCvrReportRepository
from infra.db.sources import (
    SqlAlchemyBudgetLineRepository,
    SqlAlchemyContractRepository,
    SqlAlchemyPackageRepository,
    SqlAlchemyPaymentApplicationRepository,
    SqlAlchemyVariationRepository,
)

__all__ = [
    "SqlAlchemyPackageRepository",
    "SqlAlchemyBudgetLineRepository",
    "SqlAlchemyContractRepository",
    "SqlAlchemyVariationRepository",
    "SqlAlchemyPaymentApplicationRepository",
    "SqlAlchemyCommitmentFactRepository",
    "SqlAlchemyActualFactRepository",
    "SqlAlchemyCvrReportRepository",
]
