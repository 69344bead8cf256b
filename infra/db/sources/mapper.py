from __future__ import annotations

from decimal import Decimal

from core.models import BudgetLine, Contract, Package, PaymentApplication, Variation
from infra.db.models import (
    BudgetLineORM,
    ContractORM,
    PackageORM,
    PaymentApplicationORM,
    VariationORM,
)


def package_to_orm(package: Package) -> PackageORM:
    return PackageORM(
        id=package.id,
        tenant_id=package.tenant_id,
        project_id=package.project_id,
        name=package.name,
        actual_cost=package.actual_cost,
    )


def package_from_orm(obj: PackageORM) -> Package:
    return Package(
        id=obj.id,
        tenant_id=obj.tenant_id,
        project_id=obj.project_id,
        name=obj.name,
        actual_cost=obj.actual_cost if obj.actual_cost is not None else Decimal("0"),
    )


def budget_line_to_orm(line: BudgetLine) -> BudgetLineORM:
    return BudgetLineORM(
        id=line.id,
        tenant_id=line.tenant_id,
        project_id=line.project_id,
        code=line.code,
        description=line.description,
        package_id=line.package_id,
        planned_amount=line.planned_amount,
        amount=line.amount,
    )


def budget_line_from_orm(obj: BudgetLineORM) -> BudgetLine:
    return BudgetLine(
        id=obj.id,
        tenant_id=obj.tenant_id,
        project_id=obj.project_id,
        code=obj.code,
        description=obj.description or "",
        package_id=obj.package_id,
        planned_amount=obj.planned_amount,
        amount=obj.amount,
    )


def contract_to_orm(contract: Contract) -> ContractORM:
    return ContractORM(
        id=contract.id,
        tenant_id=contract.tenant_id,
        project_id=contract.project_id,
        title=contract.title,
        value=contract.value,
        status=contract.status,
        package_id=contract.package_id,
        currency=contract.currency,
        contract_ref=contract.contract_ref,
        signed_date=contract.signed_date,
        created_at=contract.created_at,
        updated_at=contract.updated_at,
    )


def contract_from_orm(obj: ContractORM) -> Contract:
    return Contract(
        id=obj.id,
        tenant_id=obj.tenant_id,
        project_id=obj.project_id,
        title=obj.title or "",
        value=obj.value,
        status=obj.status,
        package_id=obj.package_id,
        currency=obj.currency,
        contract_ref=obj.contract_ref,
        signed_date=obj.signed_date,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


def variation_to_orm(variation: Variation) -> VariationORM:
    return VariationORM(
        id=variation.id,
        tenant_id=variation.tenant_id,
        project_id=variation.project_id,
        contract_id=variation.contract_id,
        title=variation.title,
        value=variation.value,
        approved_value=variation.approved_value,
        status=variation.status,
        package_id=variation.package_id,
        currency=variation.currency,
        reference=variation.reference,
        approved_date=variation.approved_date,
        created_at=variation.created_at,
        updated_at=variation.updated_at,
    )


def variation_from_orm(obj: VariationORM) -> Variation:
    return Variation(
        id=obj.id,
        tenant_id=obj.tenant_id,
        project_id=obj.project_id,
        title=obj.title or "",
        value=obj.value,
        status=obj.status,
        contract_id=obj.contract_id,
        package_id=obj.package_id,
        approved_value=obj.approved_value,
        currency=obj.currency,
        reference=obj.reference,
        approved_date=obj.approved_date,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


def payment_application_to_orm(application: PaymentApplication) -> PaymentApplicationORM:
    return PaymentApplicationORM(
        id=application.id,
        tenant_id=application.tenant_id,
        application_no=application.application_no,
        status=application.status,
        project_id=application.project_id,
        contract_id=application.contract_id,
        package_id=application.package_id,
        claimed_this_period=application.claimed_this_period,
        certified_this_period=application.certified_this_period,
        certified_net_value=application.certified_net_value,
        amount_paid=application.amount_paid,
        currency=application.currency,
        application_date=application.application_date,
        paid_date=application.paid_date,
        created_at=application.created_at,
        updated_at=application.updated_at,
    )


def payment_application_from_orm(obj: PaymentApplicationORM) -> PaymentApplication:
    return PaymentApplication(
        id=obj.id,
        tenant_id=obj.tenant_id,
        application_no=obj.application_no or "",
        status=obj.status,
        project_id=obj.project_id,
        contract_id=obj.contract_id,
        package_id=obj.package_id,
        claimed_this_period=obj.claimed_this_period,
        certified_this_period=obj.certified_this_period,
        certified_net_value=obj.certified_net_value,
        amount_paid=obj.amount_paid,
        currency=obj.currency,
        application_date=obj.application_date,
        paid_date=obj.paid_date,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


__all__ = [
    "package_to_orm",
    "package_from_orm",
    "budget_line_to_orm",
    "budget_line_from_orm",
    "contract_to_orm",
    "contract_from_orm",
    "variation_to_orm",
    "variation_from_orm",
    "payment_application_to_orm",
    "payment_application_from_orm",
]
