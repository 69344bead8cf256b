from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.services.ledger.models import CvrBreakdown, FinancialPosition


@dataclass
class CvrReportContext:
    tenant_id: str
    position: FinancialPosition
    breakdown: Optional[CvrBreakdown] = None
    generated_at: Optional[datetime] = None
    currency: str = ""
