from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import Numeric, func, select
from sqlalchemy.orm import Session

from core.interfaces import ActualFactRepository, CommitmentFactRepository
from core.models import ActualFact, ActualStatus, CommitmentFact, CommitmentStatus, SourceType
from infra.db.ledger.mapper import (
    actual_from_orm,
    actual_row_values,
    commitment_from_orm,
    commitment_row_values,
)
from infra.db.models import ActualFactORM, CommitmentFactORM
from infra.db.optimistic import insert_on_conflict_do_nothing, update_if_changed

SOURCE_KEY = ("tenant_id", "source_type", "source_id")


class SqlAlchemyCommitmentFactRepository(CommitmentFactRepository):
    def __init__(self, session: Session):
        self.session = session

    def get_by_source(self, tenant_id: str, source_type: SourceType, source_id: str) -> Optional[CommitmentFact]:
        stmt = select(CommitmentFactORM).where(
            CommitmentFactORM.tenant_id == tenant_id,
            CommitmentFactORM.source_type == source_type,
            CommitmentFactORM.source_id == source_id,
        )
        obj = self.session.execute(stmt).scalars().first()
        return commitment_from_orm(obj) if obj else None

    def insert_if_absent(self, fact: CommitmentFact) -> bool:
        return insert_on_conflict_do_nothing(
            self.session,
            CommitmentFactORM,
            commitment_row_values(fact),
            SOURCE_KEY,
        )

    def update_status(
        self,
        tenant_id: str,
        source_type: SourceType,
        source_id: str,
        status: CommitmentStatus,
    ) -> bool:
        return update_if_changed(
            self.session,
            CommitmentFactORM,
            {"tenant_id": tenant_id, "source_type": source_type, "source_id": source_id},
            column="status",
            new_value=status,
        )

    def list_by_project(
        self,
        tenant_id: str,
        project_id: str,
        statuses: Iterable[CommitmentStatus] | None = None,
    ) -> List[CommitmentFact]:
        stmt = select(CommitmentFactORM).where(
            CommitmentFactORM.tenant_id == tenant_id,
            CommitmentFactORM.project_id == project_id,
        )
        if statuses is not None:
            stmt = stmt.where(CommitmentFactORM.status.in_(list(statuses)))
        rows = self.session.execute(stmt).scalars().all()
        return [commitment_from_orm(row) for row in rows]


class SqlAlchemyActualFactRepository(ActualFactRepository):
    def __init__(self, session: Session):
        self.session = session

    def get_by_source(self, tenant_id: str, source_type: SourceType, source_id: str) -> Optional[ActualFact]:
        stmt = select(ActualFactORM).where(
            ActualFactORM.tenant_id == tenant_id,
            ActualFactORM.source_type == source_type,
            ActualFactORM.source_id == source_id,
        )
        obj = self.session.execute(stmt).scalars().first()
        return actual_from_orm(obj) if obj else None

    def insert_if_absent(self, fact: ActualFact) -> bool:
        return insert_on_conflict_do_nothing(
            self.session,
            ActualFactORM,
            actual_row_values(fact),
            SOURCE_KEY,
        )

    def update_status(
        self,
        tenant_id: str,
        source_type: SourceType,
        source_id: str,
        status: ActualStatus,
        paid_date: date | None = None,
    ) -> bool:
        if status == ActualStatus.PAID:
            extra = {"paid_date": paid_date} if paid_date else None
        else:
            # a reversed payment leaves no paid date behind
            extra = {"paid_date": None}
        return update_if_changed(
            self.session,
            ActualFactORM,
            {"tenant_id": tenant_id, "source_type": source_type, "source_id": source_id},
            column="status",
            new_value=status,
            extra_values=extra,
        )

    def list_by_project(
        self,
        tenant_id: str,
        project_id: str,
        statuses: Iterable[ActualStatus] | None = None,
    ) -> List[ActualFact]:
        stmt = select(ActualFactORM).where(
            ActualFactORM.tenant_id == tenant_id,
            ActualFactORM.project_id == project_id,
        )
        if statuses is not None:
            stmt = stmt.where(ActualFactORM.status.in_(list(statuses)))
        rows = self.session.execute(stmt).scalars().all()
        return [actual_from_orm(row) for row in rows]

    def sum_paid_by_package(self, tenant_id: str, package_ids: Iterable[str]) -> dict[str, Decimal]:
        ids = list(package_ids)
        if not ids:
            return {}
        stmt = (
            select(
                ActualFactORM.package_id,
                func.sum(ActualFactORM.amount, type_=Numeric(18, 2, asdecimal=True)),
            )
            .where(
                ActualFactORM.tenant_id == tenant_id,
                ActualFactORM.status == ActualStatus.PAID,
                ActualFactORM.package_id.in_(ids),
            )
            .group_by(ActualFactORM.package_id)
        )
        return {package_id: Decimal(total) for package_id, total in self.session.execute(stmt).all()}


__all__ = ["SqlAlchemyCommitmentFactRepository", "SqlAlchemyActualFactRepository"]
