from core.services.ledger.aggregation import (
    budget_line_amount,
    build_financial_position,
    build_source_breakdown,
)
from core.services.ledger.deriver import (
    DERIVERS,
    derive_actual,
    derive_commitment,
    derive_fact,
    derive_variation_commitment,
    resolve_actual_amount,
)
from core.services.ledger.models import (
    BackfillCounts,
    BackfillIssue,
    BackfillReport,
    BudgetLineEntry,
    CvrBreakdown,
    FinancialPosition,
    PackagePosition,
    ReconcileOutcome,
    SourceBreakdownRow,
)
from core.services.ledger.reconciler import BackfillReconciler
from core.services.ledger.service import CvrLedgerService

__all__ = [
    "BackfillCounts",
    "BackfillIssue",
    "BackfillReconciler",
    "BackfillReport",
    "BudgetLineEntry",
    "CvrBreakdown",
    "CvrLedgerService",
    "DERIVERS",
    "FinancialPosition",
    "PackagePosition",
    "ReconcileOutcome",
    "SourceBreakdownRow",
    "budget_line_amount",
    "build_financial_position",
    "build_source_breakdown",
    "derive_actual",
    "derive_commitment",
    "derive_fact",
    "derive_variation_commitment",
    "resolve_actual_amount",
]
