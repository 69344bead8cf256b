# core/interfaces.py
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Generic, Iterable, Iterator, List, Optional, TypeVar

from core.domain.enums import ActualStatus, CommitmentStatus, CvrReportStatus, CvrReportType, SourceType
from core.domain.ledger import ActualFact, CommitmentFact
from core.domain.matching import MatchResult
from core.domain.reports import CvrReport
from core.domain.sources import BudgetLine, Contract, Package, PaymentApplication, Variation

T = TypeVar("T")


class PackageRepository(ABC):
    @abstractmethod
    def add(self, package: Package) -> None: ...

    @abstractmethod
    def get(self, tenant_id: str, package_id: str) -> Optional[Package]: ...

    @abstractmethod
    def list_by_ids(self, tenant_id: str, package_ids: Iterable[str]) -> List[Package]: ...

    @abstractmethod
    def list_for_scope(self, tenant_id: str, project_id: str | None = None) -> List[Package]: ...

    @abstractmethod
    def set_actual_cost(self, tenant_id: str, package_id: str, amount: Decimal) -> None: ...


class BudgetLineRepository(ABC):
    @abstractmethod
    def add(self, line: BudgetLine) -> None: ...

    @abstractmethod
    def list_by_project(self, tenant_id: str, project_id: str) -> List[BudgetLine]: ...


class SourceDocumentRepository(ABC, Generic[T]):
    """Read access to one kind of authoritative source document."""

    @abstractmethod
    def add(self, document: T) -> None: ...

    @abstractmethod
    def update(self, document: T) -> None: ...

    @abstractmethod
    def get(self, tenant_id: str, document_id: str) -> Optional[T]: ...

    @abstractmethod
    def iter_batches(
        self,
        tenant_id: str,
        *,
        batch_size: int,
        project_id: str | None = None,
        updated_from: datetime | None = None,
        updated_to: datetime | None = None,
    ) -> Iterator[List[T]]:
        """Yield documents ordered by id in chunks of at most ``batch_size``."""


class ContractRepository(SourceDocumentRepository[Contract], ABC):
    @abstractmethod
    def get_many(self, tenant_id: str, contract_ids: Iterable[str]) -> dict[str, Contract]: ...


class VariationRepository(SourceDocumentRepository[Variation], ABC):
    pass


class PaymentApplicationRepository(SourceDocumentRepository[PaymentApplication], ABC):
    pass


class CommitmentFactRepository(ABC):
    @abstractmethod
    def get_by_source(
        self, tenant_id: str, source_type: SourceType, source_id: str
    ) -> Optional[CommitmentFact]: ...

    @abstractmethod
    def insert_if_absent(self, fact: CommitmentFact) -> bool:
        """Insert keyed on (tenant, source_type, source_id); False if a row already exists."""

    @abstractmethod
    def update_status(
        self,
        tenant_id: str,
        source_type: SourceType,
        source_id: str,
        status: CommitmentStatus,
    ) -> bool:
        """Compare-and-set the status; False when it already matched."""

    @abstractmethod
    def list_by_project(
        self,
        tenant_id: str,
        project_id: str,
        statuses: Iterable[CommitmentStatus] | None = None,
    ) -> List[CommitmentFact]: ...


class ActualFactRepository(ABC):
    @abstractmethod
    def get_by_source(
        self, tenant_id: str, source_type: SourceType, source_id: str
    ) -> Optional[ActualFact]: ...

    @abstractmethod
    def insert_if_absent(self, fact: ActualFact) -> bool: ...

    @abstractmethod
    def update_status(
        self,
        tenant_id: str,
        source_type: SourceType,
        source_id: str,
        status: ActualStatus,
        paid_date: date | None = None,
    ) -> bool: ...

    @abstractmethod
    def list_by_project(
        self,
        tenant_id: str,
        project_id: str,
        statuses: Iterable[ActualStatus] | None = None,
    ) -> List[ActualFact]: ...

    @abstractmethod
    def sum_paid_by_package(self, tenant_id: str, package_ids: Iterable[str]) -> dict[str, Decimal]: ...


class CvrReportRepository(ABC):
    @abstractmethod
    def add(self, report: CvrReport) -> None: ...

    @abstractmethod
    def update(self, report: CvrReport) -> None: ...

    @abstractmethod
    def get(self, tenant_id: str, report_id: str) -> Optional[CvrReport]: ...

    @abstractmethod
    def list_for_project(
        self,
        tenant_id: str,
        project_id: str,
        *,
        report_type: CvrReportType | None = None,
        status: CvrReportStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> List[CvrReport]: ...

    @abstractmethod
    def count_for_project(
        self,
        tenant_id: str,
        project_id: str,
        *,
        report_type: CvrReportType | None = None,
        status: CvrReportStatus | None = None,
    ) -> int: ...


class InvoiceMatchingService(ABC):
    """Opaque invoice-to-purchase-order matcher owned by the procurement module."""

    @abstractmethod
    def attempt_match(self, invoice_id: str) -> MatchResult: ...

    @abstractmethod
    def accept_match(self, po_id: str, invoice_id: str) -> None: ...


__all__ = [
    "PackageRepository",
    "BudgetLineRepository",
    "SourceDocumentRepository",
    "ContractRepository",
    "VariationRepository",
    "PaymentApplicationRepository",
    "CommitmentFactRepository",
    "ActualFactRepository",
    "CvrReportRepository",
    "InvoiceMatchingService",
]
