from core.services.reports.models import (
    Movement,
    PackageMovement,
    ReportComparison,
    ReportPage,
    ReportSummary,
    report_as_dict,
)
from core.services.reports.service import CvrReportService

__all__ = [
    "CvrReportService",
    "ReportPage",
    "ReportSummary",
    "Movement",
    "PackageMovement",
    "ReportComparison",
    "report_as_dict",
]
