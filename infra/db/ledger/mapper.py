from __future__ import annotations

from typing import Any

from core.models import ActualFact, ActualStatus, CommitmentFact, CommitmentStatus, SourceType
from infra.db.models import ActualFactORM, CommitmentFactORM


def commitment_row_values(fact: CommitmentFact) -> dict[str, Any]:
    return {
        "id": fact.id,
        "tenant_id": fact.tenant_id,
        "project_id": fact.project_id,
        "source_type": fact.source_type,
        "source_id": fact.source_id,
        "amount": fact.amount,
        "currency": fact.currency,
        "status": fact.status,
        "package_id": fact.package_id,
        "committed_date": fact.committed_date,
    }


def commitment_from_orm(obj: CommitmentFactORM) -> CommitmentFact:
    return CommitmentFact(
        id=obj.id,
        tenant_id=obj.tenant_id,
        project_id=obj.project_id,
        source_type=SourceType(obj.source_type),
        source_id=obj.source_id,
        amount=obj.amount,
        currency=obj.currency,
        status=CommitmentStatus(obj.status),
        package_id=obj.package_id,
        committed_date=obj.committed_date,
    )


def actual_row_values(fact: ActualFact) -> dict[str, Any]:
    return {
        "id": fact.id,
        "tenant_id": fact.tenant_id,
        "project_id": fact.project_id,
        "source_type": fact.source_type,
        "source_id": fact.source_id,
        "amount": fact.amount,
        "currency": fact.currency,
        "status": fact.status,
        "package_id": fact.package_id,
        "incurred_date": fact.incurred_date,
        "paid_date": fact.paid_date,
    }


def actual_from_orm(obj: ActualFactORM) -> ActualFact:
    return ActualFact(
        id=obj.id,
        tenant_id=obj.tenant_id,
        project_id=obj.project_id,
        source_type=SourceType(obj.source_type),
        source_id=obj.source_id,
        amount=obj.amount,
        currency=obj.currency,
        status=ActualStatus(obj.status),
        package_id=obj.package_id,
        incurred_date=obj.incurred_date,
        paid_date=obj.paid_date,
    )


__all__ = [
    "commitment_row_values",
    "commitment_from_orm",
    "actual_row_values",
    "actual_from_orm",
]
