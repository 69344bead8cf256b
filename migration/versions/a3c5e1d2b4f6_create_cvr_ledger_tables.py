"""create cvr ledger tables

Revision ID: a3c5e1d2b4f6
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a3c5e1d2b4f6"
down_revision = None
branch_labels = None
depends_on = None


def _money(name: str, nullable: bool = True) -> sa.Column:
    return sa.Column(name, sa.Numeric(18, 2), nullable=nullable)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "packages",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        _money("actual_cost", nullable=False),
    )
    op.create_index("idx_packages_tenant_project", "packages", ["tenant_id", "project_id"])

    op.create_table(
        "budget_lines",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("package_id", sa.String(), nullable=True),
        _money("planned_amount"),
        _money("amount"),
    )
    op.create_index("idx_budget_lines_tenant_project", "budget_lines", ["tenant_id", "project_id"])

    op.create_table(
        "contracts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=True),
        sa.Column("title", sa.String(), nullable=True),
        _money("value"),
        sa.Column("status", sa.String(32), nullable=True),
        sa.Column("package_id", sa.String(), nullable=True),
        sa.Column("currency", sa.String(8), nullable=True),
        sa.Column("contract_ref", sa.String(), nullable=True),
        sa.Column("signed_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_contracts_tenant_project", "contracts", ["tenant_id", "project_id"])
    op.create_index("idx_contracts_tenant_updated", "contracts", ["tenant_id", "updated_at"])

    op.create_table(
        "variations",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=True),
        sa.Column(
            "contract_id",
            sa.String(),
            sa.ForeignKey("contracts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(), nullable=True),
        _money("value"),
        _money("approved_value"),
        sa.Column("status", sa.String(32), nullable=True),
        sa.Column("package_id", sa.String(), nullable=True),
        sa.Column("currency", sa.String(8), nullable=True),
        sa.Column("reference", sa.String(), nullable=True),
        sa.Column("approved_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_variations_tenant_project", "variations", ["tenant_id", "project_id"])
    op.create_index("idx_variations_tenant_updated", "variations", ["tenant_id", "updated_at"])

    op.create_table(
        "payment_applications",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("application_no", sa.String(), nullable=True),
        sa.Column("status", sa.String(32), nullable=True),
        sa.Column("project_id", sa.String(), nullable=True),
        sa.Column(
            "contract_id",
            sa.String(),
            sa.ForeignKey("contracts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("package_id", sa.String(), nullable=True),
        _money("claimed_this_period"),
        _money("certified_this_period"),
        _money("certified_net_value"),
        _money("amount_paid"),
        sa.Column("currency", sa.String(8), nullable=True),
        sa.Column("application_date", sa.Date(), nullable=True),
        sa.Column("paid_date", sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "idx_payment_applications_tenant_project",
        "payment_applications",
        ["tenant_id", "project_id"],
    )
    op.create_index(
        "idx_payment_applications_tenant_updated",
        "payment_applications",
        ["tenant_id", "updated_at"],
    )

    op.create_table(
        "commitment_facts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("source_type", sa.String(32), nullable=False),
        sa.Column("source_id", sa.String(), nullable=False),
        _money("amount", nullable=False),
        sa.Column("currency", sa.String(8), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("package_id", sa.String(), nullable=True),
        sa.Column("committed_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "source_type", "source_id", name="uq_commitment_facts_source"),
    )
    op.create_index(
        "idx_commitment_facts_project",
        "commitment_facts",
        ["tenant_id", "project_id", "status"],
    )

    op.create_table(
        "actual_facts",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("source_type", sa.String(32), nullable=False),
        sa.Column("source_id", sa.String(), nullable=False),
        _money("amount", nullable=False),
        sa.Column("currency", sa.String(8), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("package_id", sa.String(), nullable=True),
        sa.Column("incurred_date", sa.Date(), nullable=True),
        sa.Column("paid_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "source_type", "source_id", name="uq_actual_facts_source"),
    )
    op.create_index("idx_actual_facts_project", "actual_facts", ["tenant_id", "project_id", "status"])
    op.create_index("idx_actual_facts_package", "actual_facts", ["tenant_id", "package_id"])


def downgrade() -> None:
    op.drop_index("idx_actual_facts_package", table_name="actual_facts")
    op.drop_index("idx_actual_facts_project", table_name="actual_facts")
    op.drop_table("actual_facts")
    op.drop_index("idx_commitment_facts_project", table_name="commitment_facts")
    op.drop_table("commitment_facts")
    op.drop_index("idx_payment_applications_tenant_updated", table_name="payment_applications")
    op.drop_index("idx_payment_applications_tenant_project", table_name="payment_applications")
    op.drop_table("payment_applications")
    op.drop_index("idx_variations_tenant_updated", table_name="variations")
    op.drop_index("idx_variations_tenant_project", table_name="variations")
    op.drop_table("variations")
    op.drop_index("idx_contracts_tenant_updated", table_name="contracts")
    op.drop_index("idx_contracts_tenant_project", table_name="contracts")
    op.drop_table("contracts")
    op.drop_index("idx_budget_lines_tenant_project", table_name="budget_lines")
    op.drop_table("budget_lines")
    op.drop_index("idx_packages_tenant_project", table_name="packages")
    op.drop_table("packages")
