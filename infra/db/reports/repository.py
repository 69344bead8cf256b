from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.interfaces import CvrReportRepository
from core.models import CvrReport, CvrReportStatus, CvrReportType
from infra.db.models import CvrReportORM
from infra.db.reports.mapper import report_from_orm, report_to_orm


class SqlAlchemyCvrReportRepository(CvrReportRepository):
    """Period reports; soft-deleted rows are invisible to every read."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, report: CvrReport) -> None:
        self.session.add(report_to_orm(report))

    def update(self, report: CvrReport) -> None:
        self.session.merge(report_to_orm(report))

    def get(self, tenant_id: str, report_id: str) -> Optional[CvrReport]:
        obj = self.session.get(CvrReportORM, report_id)
        if obj is None or obj.tenant_id != tenant_id or obj.is_deleted:
            return None
        return report_from_orm(obj)

    def list_for_project(
        self,
        tenant_id: str,
        project_id: str,
        *,
        report_type: CvrReportType | None = None,
        status: CvrReportStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> List[CvrReport]:
        stmt = self._filtered(select(CvrReportORM), tenant_id, project_id, report_type, status)
        stmt = stmt.order_by(CvrReportORM.period_end.desc(), CvrReportORM.created_at.desc(), CvrReportORM.id)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        rows = self.session.execute(stmt).scalars().all()
        return [report_from_orm(row) for row in rows]

    def count_for_project(
        self,
        tenant_id: str,
        project_id: str,
        *,
        report_type: CvrReportType | None = None,
        status: CvrReportStatus | None = None,
    ) -> int:
        stmt = self._filtered(select(func.count(CvrReportORM.id)), tenant_id, project_id, report_type, status)
        return int(self.session.execute(stmt).scalar_one())

    @staticmethod
    def _filtered(stmt, tenant_id, project_id, report_type, status):
        stmt = stmt.where(
            CvrReportORM.tenant_id == tenant_id,
            CvrReportORM.project_id == project_id,
            CvrReportORM.is_deleted.is_(False),
        )
        if report_type is not None:
            stmt = stmt.where(CvrReportORM.report_type == report_type)
        if status is not None:
            stmt = stmt.where(CvrReportORM.status == status)
        return stmt


__all__ = ["SqlAlchemyCvrReportRepository"]
