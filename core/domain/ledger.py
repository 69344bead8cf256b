from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from core.domain.enums import ActualStatus, CommitmentStatus, SourceType
from core.domain.identifiers import generate_id


@dataclass
class CommitmentFact:
    id: str
    tenant_id: str
    project_id: str
    source_type: SourceType
    source_id: str
    amount: Decimal
    currency: str
    status: CommitmentStatus
    package_id: Optional[str] = None
    committed_date: Optional[date] = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.tenant_id, self.source_type.value, self.source_id)

    @staticmethod
    def create(
        tenant_id: str,
        project_id: str,
        source_type: SourceType,
        source_id: str,
        amount: Decimal,
        currency: str,
        status: CommitmentStatus = CommitmentStatus.COMMITTED,
        package_id: Optional[str] = None,
        committed_date: Optional[date] = None,
    ) -> "CommitmentFact":
        return CommitmentFact(
            id=generate_id(),
            tenant_id=tenant_id,
            project_id=project_id,
            source_type=source_type,
            source_id=source_id,
            amount=amount,
            currency=currency,
            status=status,
            package_id=package_id,
            committed_date=committed_date,
        )


@dataclass
class ActualFact:
    id: str
    tenant_id: str
    project_id: str
    source_type: SourceType
    source_id: str
    amount: Decimal
    currency: str
    status: ActualStatus
    package_id: Optional[str] = None
    incurred_date: Optional[date] = None
    paid_date: Optional[date] = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.tenant_id, self.source_type.value, self.source_id)

    @staticmethod
    def create(
        tenant_id: str,
        project_id: str,
        source_id: str,
        amount: Decimal,
        currency: str,
        status: ActualStatus = ActualStatus.CERTIFIED,
        package_id: Optional[str] = None,
        incurred_date: Optional[date] = None,
        paid_date: Optional[date] = None,
        source_type: SourceType = SourceType.PAYMENT_APPLICATION,
    ) -> "ActualFact":
        return ActualFact(
            id=generate_id(),
            tenant_id=tenant_id,
            project_id=project_id,
            source_type=source_type,
            source_id=source_id,
            amount=amount,
            currency=currency,
            status=status,
            package_id=package_id,
            incurred_date=incurred_date,
            paid_date=paid_date,
        )


__all__ = ["CommitmentFact", "ActualFact"]
