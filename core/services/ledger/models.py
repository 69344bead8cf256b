from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from core.services.ledger.helpers import money

UNALLOCATED_LABEL = "Unallocated"
UNKNOWN_PACKAGE_LABEL = "Unknown Package"


class ReconcileOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


def _num(value: Decimal) -> float:
    # JSON boundary only; arithmetic stays in Decimal.
    return float(money(value))


@dataclass(frozen=True)
class BackfillIssue:
    source_type: str
    source_id: str
    code: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {
            "sourceType": self.source_type,
            "sourceId": self.source_id,
            "code": self.code,
            "message": self.message,
        }


@dataclass
class BackfillCounts:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    issues: list[BackfillIssue] = field(default_factory=list)

    def record_error(self, issue: BackfillIssue) -> None:
        self.errors += 1
        self.issues.append(issue)

    def record(self, outcome: "ReconcileOutcome") -> None:
        if outcome is ReconcileOutcome.CREATED:
            self.created += 1
        elif outcome is ReconcileOutcome.UPDATED:
            self.updated += 1
        else:
            self.skipped += 1

    def as_dict(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "issues": [issue.as_dict() for issue in self.issues],
        }


@dataclass
class BackfillReport:
    tenant_id: str
    commitments: BackfillCounts = field(default_factory=BackfillCounts)
    actuals: BackfillCounts = field(default_factory=BackfillCounts)
    packages_recomputed: int = 0
    stopped: bool = False
    trace_id: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "tenantId": self.tenant_id,
            "commitments": self.commitments.as_dict(),
            "actuals": self.actuals.as_dict(),
            "packagesRecomputed": self.packages_recomputed,
            "stopped": self.stopped,
            "traceId": self.trace_id,
        }


@dataclass(frozen=True)
class BudgetLineEntry:
    id: str
    code: str
    name: str
    budget: Decimal

    def as_dict(self) -> dict[str, Any]:
        return {"id": self.id, "code": self.code, "name": self.name, "budget": _num(self.budget)}


@dataclass(frozen=True)
class PackagePosition:
    package_id: Optional[str]
    package_name: str
    budget: Decimal
    committed: Decimal
    actual: Decimal
    variance: Decimal
    remaining: Decimal
    budget_lines: list[BudgetLineEntry]

    def as_dict(self) -> dict[str, Any]:
        return {
            "packageId": self.package_id,
            "packageName": self.package_name,
            "budget": _num(self.budget),
            "committed": _num(self.committed),
            "actual": _num(self.actual),
            "variance": _num(self.variance),
            "remaining": _num(self.remaining),
            "budgetLines": [line.as_dict() for line in self.budget_lines],
        }


@dataclass(frozen=True)
class FinancialPosition:
    project_id: str
    total_budget: Decimal
    total_committed: Decimal
    total_actual: Decimal
    total_variance: Decimal
    total_remaining: Decimal
    entries: list[PackagePosition]

    def entry_for(self, package_id: Optional[str]) -> PackagePosition | None:
        return next((entry for entry in self.entries if entry.package_id == package_id), None)

    def as_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "totalBudget": _num(self.total_budget),
            "totalCommitted": _num(self.total_committed),
            "totalActual": _num(self.total_actual),
            "totalVariance": _num(self.total_variance),
            "totalRemaining": _num(self.total_remaining),
            "entries": [entry.as_dict() for entry in self.entries],
        }


@dataclass(frozen=True)
class SourceBreakdownRow:
    source_type: str
    total: Decimal
    count: int

    def as_dict(self) -> dict[str, Any]:
        return {"sourceType": self.source_type, "total": _num(self.total), "count": self.count}


@dataclass(frozen=True)
class CvrBreakdown:
    project_id: str
    budget: Decimal
    commitments: list[SourceBreakdownRow]
    actuals: list[SourceBreakdownRow]
    percent_committed: Decimal
    percent_actual: Decimal

    def as_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "budget": _num(self.budget),
            "commitments": [row.as_dict() for row in self.commitments],
            "actuals": [row.as_dict() for row in self.actuals],
            "percentCommitted": float(self.percent_committed),
            "percentActual": float(self.percent_actual),
        }


__all__ = [
    "ReconcileOutcome",
    "UNALLOCATED_LABEL",
    "UNKNOWN_PACKAGE_LABEL",
    "BackfillIssue",
    "BackfillCounts",
    "BackfillReport",
    "BudgetLineEntry",
    "PackagePosition",
    "FinancialPosition",
    "SourceBreakdownRow",
    "CvrBreakdown",
]
