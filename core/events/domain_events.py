"""Track changes in source documents and ledger passes."""
from __future__ import annotations

from dataclasses import dataclass

from core.domain.enums import SourceType
from core.events.signal import Signal


@dataclass(frozen=True)
class SourceChanged:
    tenant_id: str
    source_type: SourceType
    source_id: str


class DomainEvents:
    def __init__(self) -> None:
        self.contract_changed: Signal[SourceChanged] = Signal()
        self.variation_changed: Signal[SourceChanged] = Signal()
        self.payment_application_changed: Signal[SourceChanged] = Signal()
        self.ledger_reconciled: Signal[str] = Signal()  # project_id

    def source_signals(self) -> list[Signal[SourceChanged]]:
        return [self.contract_changed, self.variation_changed, self.payment_application_changed]

    def signal_for(self, source_type: SourceType) -> Signal[SourceChanged]:
        return {
            SourceType.CONTRACT: self.contract_changed,
            SourceType.VARIATION: self.variation_changed,
            SourceType.PAYMENT_APPLICATION: self.payment_application_changed,
        }[source_type]


# SINGLE global instance
domain_events = DomainEvents()


__all__ = ["DomainEvents", "SourceChanged", "domain_events"]
