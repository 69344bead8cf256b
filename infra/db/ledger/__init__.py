from infra.db.ledger.mapper import (
    actual_from_orm,
    actual_row_values,
    commitment_from_orm,
    commitment_row_values,
)
from infra.db.ledger.repository import (
    SqlAlchemyActualFactRepository,
    SqlAlchemyCommitmentFactRepository,
)

__all__ = [
    "actual_from_orm",
    "actual_row_values",
    "commitment_from_orm",
    "commitment_row_values",
    "SqlAlchemyActualFactRepository",
    "SqlAlchemyCommitmentFactRepository",
]
