from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from core.domain.enums import CvrReportStatus
from core.domain.reports import CvrReport
from core.services.ledger.helpers import ZERO, money


def _num(value: Decimal) -> float:
    return float(money(value))


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def report_as_dict(report: CvrReport) -> dict[str, Any]:
    return {
        "id": report.id,
        "projectId": report.project_id,
        "periodEnd": _iso(report.period_end),
        "reportDate": _iso(report.report_date),
        "reportType": report.report_type.value,
        "status": report.status.value,
        "totalBudget": _num(report.total_budget),
        "totalCommitted": _num(report.total_committed),
        "totalActual": _num(report.total_actual),
        "totalVariance": _num(report.total_variance),
        "totalRemaining": _num(report.total_remaining),
        "snapshot": report.snapshot,
        "capturedAt": _iso(report.captured_at),
        "createdBy": report.created_by,
        "submittedBy": report.submitted_by,
        "submittedAt": _iso(report.submitted_at),
        "approvedBy": report.approved_by,
        "approvedAt": _iso(report.approved_at),
        "rejectedBy": report.rejected_by,
        "rejectedAt": _iso(report.rejected_at),
        "rejectionReason": report.rejection_reason,
        "comments": report.comments,
        "createdAt": _iso(report.created_at),
        "updatedAt": _iso(report.updated_at),
    }


@dataclass(frozen=True)
class ReportPage:
    reports: list[CvrReport]
    total: int
    limit: int
    offset: int

    def as_dict(self) -> dict[str, Any]:
        return {
            "reports": [report_as_dict(report) for report in self.reports],
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
        }


@dataclass(frozen=True)
class ReportSummary:
    project_id: str
    counts: dict[CvrReportStatus, int]
    total: int
    latest_approved: Optional[CvrReport] = None
    latest_submitted: Optional[CvrReport] = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "counts": {status.value: self.counts.get(status, 0) for status in CvrReportStatus},
            "totalReports": self.total,
            "latestApproved": report_as_dict(self.latest_approved) if self.latest_approved else None,
            "latestSubmitted": report_as_dict(self.latest_submitted) if self.latest_submitted else None,
        }


@dataclass(frozen=True)
class Movement:
    """Later totals minus earlier totals."""

    budget: Decimal
    committed: Decimal
    actual: Decimal
    variance: Decimal
    remaining: Decimal

    @staticmethod
    def between(earlier: CvrReport, later: CvrReport) -> "Movement":
        return Movement(
            budget=money(later.total_budget - earlier.total_budget),
            committed=money(later.total_committed - earlier.total_committed),
            actual=money(later.total_actual - earlier.total_actual),
            variance=money(later.total_variance - earlier.total_variance),
            remaining=money(later.total_remaining - earlier.total_remaining),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "budget": _num(self.budget),
            "committed": _num(self.committed),
            "actual": _num(self.actual),
            "variance": _num(self.variance),
            "remaining": _num(self.remaining),
        }


@dataclass(frozen=True)
class PackageMovement:
    package_id: Optional[str]
    package_name: str
    committed: Decimal = ZERO
    actual: Decimal = ZERO

    def as_dict(self) -> dict[str, Any]:
        return {
            "packageId": self.package_id,
            "packageName": self.package_name,
            "committed": _num(self.committed),
            "actual": _num(self.actual),
        }


@dataclass(frozen=True)
class ReportComparison:
    project_id: str
    from_report: CvrReport
    to_report: CvrReport
    movement: Movement
    packages: list[PackageMovement] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "projectId": self.project_id,
            "fromReport": report_as_dict(self.from_report),
            "toReport": report_as_dict(self.to_report),
            "movement": self.movement.as_dict(),
            "packages": [row.as_dict() for row in self.packages],
        }


__all__ = [
    "report_as_dict",
    "ReportPage",
    "ReportSummary",
    "Movement",
    "PackageMovement",
    "ReportComparison",
]
