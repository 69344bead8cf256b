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
from infra.db.sources.repository import (
    SqlAlchemyBudgetLineRepository,
    SqlAlchemyContractRepository,
    SqlAlchemyPackageRepository,
    SqlAlchemyPaymentApplicationRepository,
    SqlAlchemyVariationRepository,
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
    "SqlAlchemyPackageRepository",
    "SqlAlchemyBudgetLineRepository",
    "SqlAlchemyContractRepository",
    "SqlAlchemyVariationRepository",
    "SqlAlchemyPaymentApplicationRepository",
]
