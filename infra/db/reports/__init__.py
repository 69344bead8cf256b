from infra.db.reports.mapper import report_from_orm, report_to_orm
from infra.db.reports.repository import SqlAlchemyCvrReportRepository

__all__ = [
    "report_from_orm",
    "report_to_orm",
    "SqlAlchemyCvrReportRepository",
]
