"""Reporting API wrappers around renderer classes."""

from datetime import datetime, timezone
from pathlib import Path

from core.reporting.contexts import CvrReportContext
from core.reporting.renderers.excel import CvrExcelRenderer
from core.services.ledger import CvrLedgerService


def _ensure_parent(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def generate_cvr_excel(
    ledger_service: CvrLedgerService,
    tenant_id: str,
    project_id: str,
    output_path: str | Path,
    currency: str = "",
) -> Path:
    position = ledger_service.get_financial_position(tenant_id, project_id)
    breakdown = ledger_service.get_source_breakdown(tenant_id, project_id)
    ctx = CvrReportContext(
        tenant_id=tenant_id,
        position=position,
        breakdown=breakdown,
        generated_at=datetime.now(timezone.utc),
        currency=currency,
    )
    return CvrExcelRenderer().render(ctx, _ensure_parent(Path(output_path)))


__all__ = ["generate_cvr_excel"]
