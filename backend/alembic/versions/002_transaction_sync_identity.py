"""transaction remote id and transfer destination

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("transactions") as batch_op:
        batch_op.add_column(sa.Column("remote_id", sa.String(64), nullable=True))
        batch_op.add_column(sa.Column("destination_account_id", sa.Integer(), nullable=True))
        batch_op.create_foreign_key(
            "fk_transactions_destination_account_id_accounts",
            "accounts", ["destination_account_id"], ["id"], ondelete="SET NULL",
        )
        batch_op.create_index("ix_transactions_remote_id", ["remote_id"], unique=True)


def downgrade() -> None:
    with op.batch_alter_table("transactions") as batch_op:
        batch_op.drop_index("ix_transactions_remote_id")
        batch_op.drop_constraint("fk_transactions_destination_account_id_accounts", type_="foreignkey")
        batch_op.drop_column("destination_account_id")
        batch_op.drop_column("remote_id")
