"""create idempotency records table

Revision ID: c27d5e9f4a31
Revises: 8b4e6d0a1c22
Create Date: 2026-10-15 14:20:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "c27d5e9f4a31"
down_revision = "8b4e6d0a1c22"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "idempotency_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_identity", sa.String(length=255), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("request_method", sa.String(length=10), nullable=False),
        sa.Column("request_path", sa.String(length=500), nullable=False),
        sa.Column("response_status", sa.Integer(), nullable=True),
        sa.Column("response_body", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_identity", "idempotency_key", name="uq_user_idempotency_key"),
    )
    op.create_index(
        op.f("ix_idempotency_records_user_identity"),
        "idempotency_records",
        ["user_identity"],
        unique=False,
    )
    op.create_index(
        op.f("ix_idempotency_records_idempotency_key"),
        "idempotency_records",
        ["idempotency_key"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_idempotency_records_idempotency_key"), table_name="idempotency_records"
    )
    op.drop_index(op.f("ix_idempotency_records_user_identity"), table_name="idempotency_records")
    op.drop_table("idempotency_records")
