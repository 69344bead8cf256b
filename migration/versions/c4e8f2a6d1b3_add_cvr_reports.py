"""add cvr period reports

Revision ID: c4e8f2a6d1b3
Revises: a3c5e1d2b4f6
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "c4e8f2a6d1b3"
down_revision = "a3c5e1d2b4f6"
branch_labels = None
depends_on = None


def _total(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(18, 2), nullable=False, server_default="0")


def upgrade() -> None:
    op.create_table(
        "cvr_reports",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("project_id", sa.String(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("report_type", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        _total("total_budget"),
        _total("total_committed"),
        _total("total_actual"),
        _total("total_variance"),
        _total("total_remaining"),
        sa.Column("snapshot", sa.JSON(), nullable=False),
        sa.Column("captured_at", sa.DateTime(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("submitted_by", sa.String(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.String(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("rejected_by", sa.String(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "idx_cvr_reports_project_period",
        "cvr_reports",
        ["tenant_id", "project_id", "period_end"],
    )


def downgrade() -> None:
    op.drop_index("idx_cvr_reports_project_period", table_name="cvr_reports")
    op.drop_table("cvr_reports")
