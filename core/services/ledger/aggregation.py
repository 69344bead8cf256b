from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Optional

from core.domain.enums import VISIBLE_ACTUAL_STATUSES, VISIBLE_COMMITMENT_STATUSES
from core.domain.ledger import ActualFact, CommitmentFact
from core.domain.sources import BudgetLine
from core.services.ledger.helpers import ZERO, percent_of
from core.services.ledger.models import (
    UNALLOCATED_LABEL,
    UNKNOWN_PACKAGE_LABEL,
    BudgetLineEntry,
    CvrBreakdown,
    FinancialPosition,
    PackagePosition,
    SourceBreakdownRow,
)


def budget_line_amount(line: BudgetLine) -> Decimal:
    if line.planned_amount is not None:
        return Decimal(line.planned_amount)
    if line.amount is not None:
        return Decimal(line.amount)
    return ZERO


def _package_label(package_id: Optional[str], package_names: Mapping[str, str]) -> str:
    if package_id is None:
        return UNALLOCATED_LABEL
    return package_names.get(package_id) or UNKNOWN_PACKAGE_LABEL


def build_financial_position(
    *,
    project_id: str,
    budget_lines: Iterable[BudgetLine],
    commitments: Iterable[CommitmentFact],
    actuals: Iterable[ActualFact],
    package_names: Mapping[str, str],
) -> FinancialPosition:
    """Roll budget lines and visible facts up to package and project totals.

    Each package bucket is a plain sum, so the result does not depend on the
    order the inputs arrive in. Facts without a package land in the
    ``Unallocated`` bucket (``package_id`` None).
    """
    buckets: dict[Optional[str], dict[str, object]] = {}

    def bucket_for(package_id: Optional[str]) -> dict[str, object]:
        bucket = buckets.get(package_id)
        if bucket is None:
            bucket = {
                "budget": ZERO,
                "committed": ZERO,
                "actual": ZERO,
                "lines": [],
            }
            buckets[package_id] = bucket
        return bucket

    for line in budget_lines:
        amount = budget_line_amount(line)
        bucket = bucket_for(line.package_id)
        bucket["budget"] = bucket["budget"] + amount  # type: ignore[operator]
        bucket["lines"].append(  # type: ignore[union-attr]
            BudgetLineEntry(
                id=line.id,
                code=line.code,
                name=line.description or line.code,
                budget=amount,
            )
        )

    for fact in commitments:
        if fact.status not in VISIBLE_COMMITMENT_STATUSES:
            continue
        bucket = bucket_for(fact.package_id)
        bucket["committed"] = bucket["committed"] + fact.amount  # type: ignore[operator]

    for fact in actuals:
        if fact.status not in VISIBLE_ACTUAL_STATUSES:
            continue
        bucket = bucket_for(fact.package_id)
        bucket["actual"] = bucket["actual"] + fact.amount  # type: ignore[operator]

    entries: list[PackagePosition] = []
    for package_id, bucket in buckets.items():
        budget: Decimal = bucket["budget"]  # type: ignore[assignment]
        committed: Decimal = bucket["committed"]  # type: ignore[assignment]
        actual: Decimal = bucket["actual"]  # type: ignore[assignment]
        lines: list[BudgetLineEntry] = bucket["lines"]  # type: ignore[assignment]
        entries.append(
            PackagePosition(
                package_id=package_id,
                package_name=_package_label(package_id, package_names),
                budget=budget,
                committed=committed,
                actual=actual,
                variance=budget - committed,
                remaining=budget - actual,
                budget_lines=sorted(lines, key=lambda entry: (entry.code, entry.id)),
            )
        )
    # Named packages first, the unallocated bucket last.
    entries.sort(key=lambda row: (row.package_id is None, row.package_name.lower(), row.package_id or ""))

    total_budget = sum((row.budget for row in entries), ZERO)
    total_committed = sum((row.committed for row in entries), ZERO)
    total_actual = sum((row.actual for row in entries), ZERO)
    return FinancialPosition(
        project_id=project_id,
        total_budget=total_budget,
        total_committed=total_committed,
        total_actual=total_actual,
        total_variance=total_budget - total_committed,
        total_remaining=total_budget - total_actual,
        entries=entries,
    )


def _breakdown_rows(facts: Iterable[CommitmentFact | ActualFact], visible: frozenset) -> list[SourceBreakdownRow]:
    totals: dict[str, list] = {}
    for fact in facts:
        if fact.status not in visible:
            continue
        slot = totals.setdefault(fact.source_type.value, [ZERO, 0])
        slot[0] += fact.amount
        slot[1] += 1
    return [
        SourceBreakdownRow(source_type=key, total=value[0], count=value[1])
        for key, value in sorted(totals.items())
    ]


def build_source_breakdown(
    *,
    position: FinancialPosition,
    commitments: Iterable[CommitmentFact],
    actuals: Iterable[ActualFact],
) -> CvrBreakdown:
    return CvrBreakdown(
        project_id=position.project_id,
        budget=position.total_budget,
        commitments=_breakdown_rows(commitments, VISIBLE_COMMITMENT_STATUSES),
        actuals=_breakdown_rows(actuals, VISIBLE_ACTUAL_STATUSES),
        percent_committed=percent_of(position.total_committed, position.total_budget),
        percent_actual=percent_of(position.total_actual, position.total_budget),
    )


__all__ = ["budget_line_amount", "build_financial_position", "build_source_breakdown"]
