from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Callable, Generic, Iterable, Iterator, List, Optional, TypeVar

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from core.interfaces import (
    BudgetLineRepository,
    ContractRepository,
    PackageRepository,
    PaymentApplicationRepository,
    VariationRepository,
)
from core.models import BudgetLine, Contract, Package, PaymentApplication, Variation
from infra.db.models import (
    BudgetLineORM,
    ContractORM,
    PackageORM,
    PaymentApplicationORM,
    VariationORM,
)
from infra.db.sources.mapper import (
    budget_line_from_orm,
    budget_line_to_orm,
    contract_from_orm,
    contract_to_orm,
    package_from_orm,
    package_to_orm,
    payment_application_from_orm,
    payment_application_to_orm,
    variation_from_orm,
    variation_to_orm,
)

D = TypeVar("D")


class SqlAlchemyPackageRepository(PackageRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, package: Package) -> None:
        self.session.add(package_to_orm(package))

    def get(self, tenant_id: str, package_id: str) -> Optional[Package]:
        obj = self.session.get(PackageORM, package_id)
        if obj is None or obj.tenant_id != tenant_id:
            return None
        return package_from_orm(obj)

    def list_by_ids(self, tenant_id: str, package_ids: Iterable[str]) -> List[Package]:
        ids = list(package_ids)
        if not ids:
            return []
        stmt = select(PackageORM).where(PackageORM.tenant_id == tenant_id, PackageORM.id.in_(ids))
        rows = self.session.execute(stmt).scalars().all()
        return [package_from_orm(row) for row in rows]

    def list_for_scope(self, tenant_id: str, project_id: str | None = None) -> List[Package]:
        stmt = select(PackageORM).where(PackageORM.tenant_id == tenant_id)
        if project_id:
            stmt = stmt.where(PackageORM.project_id == project_id)
        rows = self.session.execute(stmt.order_by(PackageORM.id)).scalars().all()
        return [package_from_orm(row) for row in rows]

    def set_actual_cost(self, tenant_id: str, package_id: str, amount: Decimal) -> None:
        stmt = (
            update(PackageORM)
            .where(PackageORM.tenant_id == tenant_id, PackageORM.id == package_id)
            .values(actual_cost=amount)
        )
        self.session.execute(stmt)


class SqlAlchemyBudgetLineRepository(BudgetLineRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, line: BudgetLine) -> None:
        self.session.add(budget_line_to_orm(line))

    def list_by_project(self, tenant_id: str, project_id: str) -> List[BudgetLine]:
        stmt = select(BudgetLineORM).where(
            BudgetLineORM.tenant_id == tenant_id,
            BudgetLineORM.project_id == project_id,
        )
        rows = self.session.execute(stmt).scalars().all()
        return [budget_line_from_orm(row) for row in rows]


class _SourceDocumentRepository(Generic[D]):
    """Shared tenant-scoped reads for contracts, variations and payment applications."""

    orm_type: type
    to_orm: Callable[[D], object]
    from_orm: Callable[[object], D]

    def __init__(self, session: Session):
        self.session = session

    def add(self, document: D) -> None:
        self.session.add(self.to_orm(document))

    def update(self, document: D) -> None:
        self.session.merge(self.to_orm(document))

    def get(self, tenant_id: str, document_id: str) -> Optional[D]:
        obj = self.session.get(self.orm_type, document_id)
        if obj is None or obj.tenant_id != tenant_id:
            return None
        return self.from_orm(obj)

    def iter_batches(
        self,
        tenant_id: str,
        *,
        batch_size: int,
        project_id: str | None = None,
        updated_from: datetime | None = None,
        updated_to: datetime | None = None,
    ) -> Iterator[List[D]]:
        orm = self.orm_type
        base = self._scoped(tenant_id, project_id)
        if updated_from is not None:
            base = base.where(orm.updated_at >= updated_from)
        if updated_to is not None:
            base = base.where(orm.updated_at <= updated_to)

        # keyset paging on id, stable across the commits made between batches
        last_id: str | None = None
        while True:
            stmt = base
            if last_id is not None:
                stmt = stmt.where(orm.id > last_id)
            rows = self.session.execute(stmt.order_by(orm.id).limit(batch_size)).scalars().all()
            if not rows:
                return
            batch = [self.from_orm(row) for row in rows]
            last_id = rows[-1].id
            yield batch
            if len(rows) < batch_size:
                return

    def _scoped(self, tenant_id: str, project_id: str | None):
        stmt = select(self.orm_type).where(self.orm_type.tenant_id == tenant_id)
        if project_id:
            stmt = stmt.where(self._project_clause(project_id))
        return stmt

    def _project_clause(self, project_id: str):
        return self.orm_type.project_id == project_id


class _ContractChildRepository(_SourceDocumentRepository[D]):
    def _project_clause(self, project_id: str):
        # Children without their own project inherit it from the parent contract.
        parent_ids = select(ContractORM.id).where(ContractORM.project_id == project_id)
        return or_(
            self.orm_type.project_id == project_id,
            (self.orm_type.project_id.is_(None)) & (self.orm_type.contract_id.in_(parent_ids)),
        )


class SqlAlchemyContractRepository(_SourceDocumentRepository[Contract], ContractRepository):
    orm_type = ContractORM
    to_orm = staticmethod(contract_to_orm)
    from_orm = staticmethod(contract_from_orm)

    def get_many(self, tenant_id: str, contract_ids: Iterable[str]) -> dict[str, Contract]:
        ids = list(contract_ids)
        if not ids:
            return {}
        stmt = select(ContractORM).where(ContractORM.tenant_id == tenant_id, ContractORM.id.in_(ids))
        rows = self.session.execute(stmt).scalars().all()
        return {row.id: contract_from_orm(row) for row in rows}


class SqlAlchemyVariationRepository(_ContractChildRepository[Variation], VariationRepository):
    orm_type = VariationORM
    to_orm = staticmethod(variation_to_orm)
    from_orm = staticmethod(variation_from_orm)


class SqlAlchemyPaymentApplicationRepository(
    _ContractChildRepository[PaymentApplication],
    PaymentApplicationRepository,
):
    orm_type = PaymentApplicationORM
    to_orm = staticmethod(payment_application_to_orm)
    from_orm = staticmethod(payment_application_from_orm)


__all__ = [
    "SqlAlchemyPackageRepository",
    "SqlAlchemyBudgetLineRepository",
    "SqlAlchemyContractRepository",
    "SqlAlchemyVariationRepository",
    "SqlAlchemyPaymentApplicationRepository",
]
