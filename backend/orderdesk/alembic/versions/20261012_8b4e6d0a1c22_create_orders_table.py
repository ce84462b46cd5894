"""create orders table

Revision ID: 8b4e6d0a1c22
Revises: 3f1a9c2b7d10
Create Date: 2026-10-12 09:00:01.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "8b4e6d0a1c22"
down_revision = "3f1a9c2b7d10"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_identity", sa.String(length=255), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("total_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("final_total", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("applied_coupon", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_orders_user_identity"), "orders", ["user_identity"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_orders_user_identity"), table_name="orders")
    op.drop_table("orders")
