from .ledger import BackfillReconciler, CvrLedgerService
from .reports import CvrReportService
from .sources import SourceDocumentService

__all__ = [
    "CvrLedgerService",
    "BackfillReconciler",
    "CvrReportService",
    "SourceDocumentService",
]
