from __future__ import annotations

from core.models import CvrReport, CvrReportStatus, CvrReportType
from infra.db.models import CvrReportORM


def report_to_orm(report: CvrReport) -> CvrReportORM:
    return CvrReportORM(
        id=report.id,
        tenant_id=report.tenant_id,
        project_id=report.project_id,
        period_end=report.period_end,
        report_date=report.report_date,
        report_type=report.report_type,
        status=report.status,
        total_budget=report.total_budget,
        total_committed=report.total_committed,
        total_actual=report.total_actual,
        total_variance=report.total_variance,
        total_remaining=report.total_remaining,
        snapshot=dict(report.snapshot),
        captured_at=report.captured_at,
        created_by=report.created_by,
        submitted_by=report.submitted_by,
        submitted_at=report.submitted_at,
        approved_by=report.approved_by,
        approved_at=report.approved_at,
        rejected_by=report.rejected_by,
        rejected_at=report.rejected_at,
        rejection_reason=report.rejection_reason,
        comments=report.comments,
        is_deleted=report.is_deleted,
        created_at=report.created_at,
        updated_at=report.updated_at,
    )


def report_from_orm(obj: CvrReportORM) -> CvrReport:
    return CvrReport(
        id=obj.id,
        tenant_id=obj.tenant_id,
        project_id=obj.project_id,
        period_end=obj.period_end,
        report_date=obj.report_date,
        report_type=CvrReportType(obj.report_type),
        status=CvrReportStatus(obj.status),
        total_budget=obj.total_budget,
        total_committed=obj.total_committed,
        total_actual=obj.total_actual,
        total_variance=obj.total_variance,
        total_remaining=obj.total_remaining,
        snapshot=dict(obj.snapshot or {}),
        captured_at=obj.captured_at,
        created_by=obj.created_by,
        submitted_by=obj.submitted_by,
        submitted_at=obj.submitted_at,
        approved_by=obj.approved_by,
        approved_at=obj.approved_at,
        rejected_by=obj.rejected_by,
        rejected_at=obj.rejected_at,
        rejection_reason=obj.rejection_reason,
        comments=obj.comments,
        is_deleted=bool(obj.is_deleted),
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )
