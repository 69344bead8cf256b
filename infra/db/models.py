# infra/db/models.py
from __future__ import annotations
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from infra.db.base import Base
from core.models import ActualStatus, CommitmentStatus, CvrReportStatus, CvrReportType, SourceType

Money = Numeric(18, 2, asdecimal=True)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PackageORM(Base):
    __tablename__ = "packages"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    actual_cost: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
Index("idx_packages_tenant_project", PackageORM.tenant_id, PackageORM.project_id)


class BudgetLineORM(Base):
    __tablename__ = "budget_lines"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[str] = mapped_column(String, nullable=False)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(String, default="")
    package_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    planned_amount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    amount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
Index("idx_budget_lines_tenant_project", BudgetLineORM.tenant_id, BudgetLineORM.project_id)


class ContractORM(Base):
    __tablename__ = "contracts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    title: Mapped[str] = mapped_column(String, default="")
    value: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    # raw workflow status as written by the contracts module
    status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    package_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    contract_ref: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    signed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
Index("idx_contracts_tenant_project", ContractORM.tenant_id, ContractORM.project_id)
Index("idx_contracts_tenant_updated", ContractORM.tenant_id, ContractORM.updated_at)


class VariationORM(Base):
    __tablename__ = "variations"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    contract_id: Mapped[Optional[str]] = mapped_column(
        String,
        ForeignKey("contracts.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String, default="")
    value: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    approved_value: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    package_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    approved_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
Index("idx_variations_tenant_project", VariationORM.tenant_id, VariationORM.project_id)
Index("idx_variations_tenant_updated", VariationORM.tenant_id, VariationORM.updated_at)


class PaymentApplicationORM(Base):
    __tablename__ = "payment_applications"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    application_no: Mapped[str] = mapped_column(String, default="")
    status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    project_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    contract_id: Mapped[Optional[str]] = mapped_column(
        String,
        ForeignKey("contracts.id", ondelete="SET NULL"),
        nullable=True,
    )
    package_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    claimed_this_period: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    certified_this_period: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    certified_net_value: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    amount_paid: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    application_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    paid_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
Index("idx_payment_applications_tenant_project", PaymentApplicationORM.tenant_id, PaymentApplicationORM.project_id)
Index("idx_payment_applications_tenant_updated", PaymentApplicationORM.tenant_id, PaymentApplicationORM.updated_at)


class CommitmentFactORM(Base):
    __tablename__ = "commitment_facts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "source_type", "source_id", name="uq_commitment_facts_source"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[str] = mapped_column(String, nullable=False)
    source_type: Mapped[SourceType] = mapped_column(SAEnum(SourceType, native_enum=False, length=32), nullable=False)
    source_id: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    status: Mapped[CommitmentStatus] = mapped_column(
        SAEnum(CommitmentStatus, native_enum=False, length=16),
        default=CommitmentStatus.COMMITTED,
        nullable=False,
    )
    package_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    committed_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now, nullable=False)
Index("idx_commitment_facts_project", CommitmentFactORM.tenant_id, CommitmentFactORM.project_id, CommitmentFactORM.status)


class ActualFactORM(Base):
    __tablename__ = "actual_facts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "source_type", "source_id", name="uq_actual_facts_source"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[str] = mapped_column(String, nullable=False)
    source_type: Mapped[SourceType] = mapped_column(SAEnum(SourceType, native_enum=False, length=32), nullable=False)
    source_id: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), nullable=False)
    status: Mapped[ActualStatus] = mapped_column(
        SAEnum(ActualStatus, native_enum=False, length=16),
        default=ActualStatus.CERTIFIED,
        nullable=False,
    )
    package_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    incurred_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    paid_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now, nullable=False)
Index("idx_actual_facts_project", ActualFactORM.tenant_id, ActualFactORM.project_id, ActualFactORM.status)
Index("idx_actual_facts_package", ActualFactORM.tenant_id, ActualFactORM.package_id)


class CvrReportORM(Base):
    __tablename__ = "cvr_reports"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String, nullable=False)
    project_id: Mapped[str] = mapped_column(String, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    report_date: Mapped[date] = mapped_column(Date, nullable=False)
    report_type: Mapped[CvrReportType] = mapped_column(
        SAEnum(CvrReportType, native_enum=False, length=16),
        default=CvrReportType.MONTHLY,
        nullable=False,
    )
    status: Mapped[CvrReportStatus] = mapped_column(
        SAEnum(CvrReportStatus, native_enum=False, length=16),
        default=CvrReportStatus.IN_PROGRESS,
        nullable=False,
    )
    total_budget: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    total_committed: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    total_actual: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    total_variance: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    total_remaining: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    # FinancialPosition.as_dict() at capture time
    snapshot: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    captured_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    submitted_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    approved_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejected_by: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now, onupdate=_utc_now, nullable=False)
Index("idx_cvr_reports_project_period", CvrReportORM.tenant_id, CvrReportORM.project_id, CvrReportORM.period_end)
