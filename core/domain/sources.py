from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from core.domain.identifiers import generate_id


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class Package:
    id: str
    tenant_id: str
    project_id: str
    name: str
    actual_cost: Decimal = Decimal("0")

    @staticmethod
    def create(tenant_id: str, project_id: str, name: str) -> "Package":
        return Package(id=generate_id(), tenant_id=tenant_id, project_id=project_id, name=name.strip())


@dataclass
class BudgetLine:
    id: str
    tenant_id: str
    project_id: str
    code: str
    description: str = ""
    package_id: Optional[str] = None
    planned_amount: Optional[Decimal] = None
    amount: Optional[Decimal] = None  # legacy total, used when planned is absent

    @staticmethod
    def create(
        tenant_id: str,
        project_id: str,
        code: str,
        planned_amount: Optional[Decimal] = None,
        description: str = "",
        package_id: Optional[str] = None,
        amount: Optional[Decimal] = None,
    ) -> "BudgetLine":
        return BudgetLine(
            id=generate_id(),
            tenant_id=tenant_id,
            project_id=project_id,
            code=code,
            description=description,
            package_id=package_id,
            planned_amount=planned_amount,
            amount=amount,
        )


@dataclass
class Contract:
    id: str
    tenant_id: str
    project_id: str
    title: str
    value: Optional[Decimal]
    status: str
    package_id: Optional[str] = None
    currency: Optional[str] = None
    contract_ref: Optional[str] = None
    signed_date: Optional[date] = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @staticmethod
    def create(
        tenant_id: str,
        project_id: str,
        title: str,
        value: Optional[Decimal],
        status: str = "draft",
        **extra,
    ) -> "Contract":
        return Contract(
            id=generate_id(),
            tenant_id=tenant_id,
            project_id=project_id,
            title=title,
            value=value,
            status=status,
            **extra,
        )


@dataclass
class Variation:
    id: str
    tenant_id: str
    project_id: str
    title: str
    value: Optional[Decimal]
    status: str
    contract_id: Optional[str] = None
    package_id: Optional[str] = None
    approved_value: Optional[Decimal] = None
    currency: Optional[str] = None
    reference: Optional[str] = None
    approved_date: Optional[date] = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @staticmethod
    def create(
        tenant_id: str,
        project_id: str,
        title: str,
        value: Optional[Decimal],
        status: str = "draft",
        **extra,
    ) -> "Variation":
        return Variation(
            id=generate_id(),
            tenant_id=tenant_id,
            project_id=project_id,
            title=title,
            value=value,
            status=status,
            **extra,
        )


@dataclass
class PaymentApplication:
    """Application for payment (AfP) raised against a contract."""

    id: str
    tenant_id: str
    application_no: str
    status: str
    project_id: Optional[str] = None
    contract_id: Optional[str] = None
    package_id: Optional[str] = None
    claimed_this_period: Optional[Decimal] = None
    certified_this_period: Optional[Decimal] = None
    certified_net_value: Optional[Decimal] = None
    amount_paid: Optional[Decimal] = None
    currency: Optional[str] = None
    application_date: Optional[date] = None
    paid_date: Optional[date] = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @staticmethod
    def create(
        tenant_id: str,
        application_no: str,
        status: str = "SUBMITTED",
        **extra,
    ) -> "PaymentApplication":
        return PaymentApplication(
            id=generate_id(),
            tenant_id=tenant_id,
            application_no=application_no,
            status=status,
            **extra,
        )


__all__ = ["Package", "BudgetLine", "Contract", "Variation", "PaymentApplication"]
