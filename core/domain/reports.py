from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from core.domain.enums import CvrReportStatus, CvrReportType
from core.domain.identifiers import generate_id
from core.domain.sources import _utc_now

ZERO = Decimal("0")


@dataclass
class CvrReport:
    """A project's financial position frozen at a period end."""

    id: str
    tenant_id: str
    project_id: str
    period_end: date
    report_date: date
    report_type: CvrReportType = CvrReportType.MONTHLY
    status: CvrReportStatus = CvrReportStatus.IN_PROGRESS
    total_budget: Decimal = ZERO
    total_committed: Decimal = ZERO
    total_actual: Decimal = ZERO
    total_variance: Decimal = ZERO
    total_remaining: Decimal = ZERO
    snapshot: dict[str, Any] = field(default_factory=dict)
    captured_at: Optional[datetime] = None
    created_by: Optional[str] = None
    submitted_by: Optional[str] = None
    submitted_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    comments: Optional[str] = None
    is_deleted: bool = False
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @property
    def editable(self) -> bool:
        return self.status == CvrReportStatus.IN_PROGRESS

    @staticmethod
    def create(
        tenant_id: str,
        project_id: str,
        period_end: date,
        report_date: date,
        report_type: CvrReportType = CvrReportType.MONTHLY,
        created_by: Optional[str] = None,
    ) -> "CvrReport":
        return CvrReport(
            id=generate_id(),
            tenant_id=tenant_id,
            project_id=project_id,
            period_end=period_end,
            report_date=report_date,
            report_type=report_type,
            created_by=created_by,
        )


__all__ = ["CvrReport"]
