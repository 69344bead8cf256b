from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from core.domain.enums import REPORT_STATUS_TRANSITIONS, CvrReportStatus, CvrReportType
from core.domain.reports import CvrReport
from core.domain.sources import _utc_now
from core.exceptions import NotFoundError, ValidationError
from core.interfaces import CvrReportRepository
from core.services.ledger.helpers import ZERO, money
from core.services.ledger.service import CvrLedgerService
from core.services.reports.models import (
    Movement,
    PackageMovement,
    ReportComparison,
    ReportPage,
    ReportSummary,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500


def _require(value: str | None, label: str, code: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{label} is required.", code=code)
    return cleaned


def _coerce(enum_type, value, code: str):
    if value is None or isinstance(value, enum_type):
        return value
    token = str(value).strip()
    for member in enum_type:
        if member.value.lower() == token.lower():
            return member
    raise ValidationError(f"Unknown {enum_type.__name__}: {value!r}.", code=code)


def _snapshot_amount(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else ZERO


class CvrReportService:
    """Period-end CVR reports.

    A report freezes the project's live financial position when it is created
    (or refreshed while still in progress) and then moves through a sign-off
    workflow. Approved reports are final; comparing two of them gives the
    movement between periods.
    """

    def __init__(
        self,
        session: Session,
        report_repo: CvrReportRepository,
        ledger_service: CvrLedgerService,
    ):
        self._session: Session = session
        self._report_repo = report_repo
        self._ledger_service = ledger_service

    # ---- snapshots -----------------------------------------------------

    def create_report(
        self,
        tenant_id: str,
        project_id: str,
        period_end: date,
        *,
        report_type: CvrReportType | str = CvrReportType.MONTHLY,
        report_date: Optional[date] = None,
        created_by: Optional[str] = None,
    ) -> CvrReport:
        tenant_id = _require(tenant_id, "Tenant", "TENANT_REQUIRED")
        project_id = _require(project_id, "Project", "PROJECT_REQUIRED")
        if period_end is None:
            raise ValidationError("Period end is required.", code="PERIOD_END_REQUIRED")
        report = CvrReport.create(
            tenant_id=tenant_id,
            project_id=project_id,
            period_end=period_end,
            report_date=report_date or date.today(),
            report_type=_coerce(CvrReportType, report_type, "REPORT_TYPE_INVALID") or CvrReportType.MONTHLY,
            created_by=created_by,
        )
        self._capture(report)
        self._save(lambda: self._report_repo.add(report))
        logger.info(
            "CVR report %s created for project %s (period end %s)",
            report.id,
            project_id,
            period_end.isoformat(),
        )
        return report

    def refresh_snapshot(self, tenant_id: str, report_id: str) -> CvrReport:
        report = self.get_report(tenant_id, report_id)
        self._require_editable(report, "refreshed")
        self._capture(report)
        report.updated_at = _utc_now()
        self._save(lambda: self._report_repo.update(report))
        return report

    def _capture(self, report: CvrReport) -> None:
        position = self._ledger_service.get_financial_position(report.tenant_id, report.project_id)
        report.total_budget = position.total_budget
        report.total_committed = position.total_committed
        report.total_actual = position.total_actual
        report.total_variance = position.total_variance
        report.total_remaining = position.total_remaining
        report.snapshot = position.as_dict()
        report.captured_at = _utc_now()

    # ---- reads ---------------------------------------------------------

    def get_report(self, tenant_id: str, report_id: str) -> CvrReport:
        tenant_id = _require(tenant_id, "Tenant", "TENANT_REQUIRED")
        report = self._report_repo.get(tenant_id, (report_id or "").strip())
        if report is None:
            raise NotFoundError("CVR report not found.", code="REPORT_NOT_FOUND")
        return report

    def list_reports(
        self,
        tenant_id: str,
        project_id: str,
        *,
        report_type: CvrReportType | str | None = None,
        status: CvrReportStatus | str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> ReportPage:
        tenant_id = _require(tenant_id, "Tenant", "TENANT_REQUIRED")
        project_id = _require(project_id, "Project", "PROJECT_REQUIRED")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}.", code="LIMIT_INVALID")
        if offset < 0:
            raise ValidationError("Offset cannot be negative.", code="OFFSET_INVALID")
        filters = {
            "report_type": _coerce(CvrReportType, report_type, "REPORT_TYPE_INVALID"),
            "status": _coerce(CvrReportStatus, status, "STATUS_INVALID"),
        }
        reports = self._report_repo.list_for_project(tenant_id, project_id, limit=limit, offset=offset, **filters)
        total = self._report_repo.count_for_project(tenant_id, project_id, **filters)
        return ReportPage(reports=reports, total=total, limit=limit, offset=offset)

    def get_project_report_summary(self, tenant_id: str, project_id: str) -> ReportSummary:
        tenant_id = _require(tenant_id, "Tenant", "TENANT_REQUIRED")
        project_id = _require(project_id, "Project", "PROJECT_REQUIRED")
        counts = {
            status: self._report_repo.count_for_project(tenant_id, project_id, status=status)
            for status in CvrReportStatus
        }
        return ReportSummary(
            project_id=project_id,
            counts=counts,
            total=sum(counts.values()),
            latest_approved=self._latest(tenant_id, project_id, CvrReportStatus.APPROVED),
            latest_submitted=self._latest(tenant_id, project_id, CvrReportStatus.SUBMITTED),
        )

    def _latest(self, tenant_id: str, project_id: str, status: CvrReportStatus) -> Optional[CvrReport]:
        rows = self._report_repo.list_for_project(tenant_id, project_id, status=status, limit=1)
        return rows[0] if rows else None

    def compare_reports(self, tenant_id: str, from_report_id: str, to_report_id: str) -> ReportComparison:
        earlier = self.get_report(tenant_id, from_report_id)
        later = self.get_report(tenant_id, to_report_id)
        if earlier.project_id != later.project_id:
            raise ValidationError(
                "Reports belong to different projects.",
                code="REPORT_PROJECT_MISMATCH",
            )
        return ReportComparison(
            project_id=later.project_id,
            from_report=earlier,
            to_report=later,
            movement=Movement.between(earlier, later),
            packages=_package_movements(earlier.snapshot, later.snapshot),
        )

    # ---- workflow ------------------------------------------------------

    def update_report_status(
        self,
        tenant_id: str,
        report_id: str,
        status: CvrReportStatus | str,
        *,
        user_id: Optional[str] = None,
        comments: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> CvrReport:
        new_status = _coerce(CvrReportStatus, status, "STATUS_INVALID")
        if new_status is None:
            raise ValidationError("Status is required.", code="STATUS_INVALID")
        report = self.get_report(tenant_id, report_id)
        if new_status not in REPORT_STATUS_TRANSITIONS[report.status]:
            raise ValidationError(
                f"Cannot move a {report.status.value} report to {new_status.value}.",
                code="STATUS_TRANSITION_INVALID",
            )

        now = _utc_now()
        if new_status == CvrReportStatus.SUBMITTED:
            report.submitted_at, report.submitted_by = now, user_id
        elif new_status == CvrReportStatus.APPROVED:
            report.approved_at, report.approved_by = now, user_id
        elif new_status == CvrReportStatus.REJECTED:
            report.rejected_at, report.rejected_by = now, user_id
            report.rejection_reason = rejection_reason
        if comments is not None:
            report.comments = comments

        previous = report.status
        report.status = new_status
        report.updated_at = now
        self._save(lambda: self._report_repo.update(report))
        logger.info("CVR report %s moved %s -> %s", report.id, previous.value, new_status.value)
        return report

    def delete_report(self, tenant_id: str, report_id: str) -> None:
        report = self.get_report(tenant_id, report_id)
        self._require_editable(report, "deleted")
        report.is_deleted = True
        report.updated_at = _utc_now()
        self._save(lambda: self._report_repo.update(report))
        logger.info("CVR report %s deleted", report.id)

    @staticmethod
    def _require_editable(report: CvrReport, action: str) -> None:
        if not report.editable:
            raise ValidationError(
                f"Only in-progress reports can be {action}; this one is {report.status.value}.",
                code="REPORT_LOCKED",
            )

    def _save(self, write) -> None:
        try:
            write()
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            raise e


def _package_movements(earlier: dict[str, Any], later: dict[str, Any]) -> list[PackageMovement]:
    before = {entry.get("packageId"): entry for entry in earlier.get("entries", [])}
    after = {entry.get("packageId"): entry for entry in later.get("entries", [])}
    rows = []
    # later order first, then packages that dropped out of the position
    for package_id in list(after) + [pid for pid in before if pid not in after]:
        old = before.get(package_id, {})
        new = after.get(package_id, {})
        rows.append(
            PackageMovement(
                package_id=package_id,
                package_name=new.get("packageName") or old.get("packageName") or "",
                committed=money(_snapshot_amount(new.get("committed")) - _snapshot_amount(old.get("committed"))),
                actual=money(_snapshot_amount(new.get("actual")) - _snapshot_amount(old.get("actual"))),
            )
        )
    return rows


__all__ = ["CvrReportService"]
