"""initial ledger schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None

KINDS = ("CREDIT", "DEBIT", "TRANSFER", "WITHDRAW")
STATUSES = ("UNCATEGORIZED", "CATEGORIZED")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("sender_pattern", sa.String(50), nullable=False),
        sa.Column("balance", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        "category_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("category_id", "name", name="uq_category_item_name"),
    )
    op.create_index("ix_category_items_category_id", "category_items", ["category_id"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "category_item_id", sa.Integer(),
            sa.ForeignKey("category_items.id", ondelete="SET NULL"), nullable=True
        ),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("fee", sa.Numeric(12, 2), nullable=False),
        sa.Column("kind", sa.Enum(*KINDS, name="transactionkind"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("status", sa.Enum(*STATUSES, name="transactionstatus"), nullable=False),
        sa.Column("fingerprint", sa.String(64), nullable=True),
        sa.Column("exclude_from_weekly", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_transaction_amount_non_negative"),
    )
    op.create_index("ix_transactions_fingerprint", "transactions", ["fingerprint"], unique=True)
    op.create_index("ix_transactions_date", "transactions", ["date"])
    op.create_index("idx_transaction_date_account", "transactions", ["date", "account_id"])
    op.create_index("idx_transaction_status", "transactions", ["status"])

    op.create_table(
        "multi_categorization_lists",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column(
            "transaction_id", sa.Integer(),
            sa.ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("is_applied", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_multi_categorization_lists_transaction_id", "multi_categorization_lists", ["transaction_id"]
    )
    op.create_table(
        "multi_categorization_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "list_id", sa.Integer(),
            sa.ForeignKey("multi_categorization_lists.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "category_item_id", sa.Integer(),
            sa.ForeignKey("category_items.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "weekly_spending_limits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("week_start", sa.Date(), nullable=False, unique=True),
        sa.Column("week_end", sa.Date(), nullable=False),
        sa.Column("target_amount", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "schema_version",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("applied_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("schema_version")
    op.drop_table("weekly_spending_limits")
    op.drop_table("multi_categorization_items")
    op.drop_index("ix_multi_categorization_lists_transaction_id", table_name="multi_categorization_lists")
    op.drop_table("multi_categorization_lists")
    op.drop_index("idx_transaction_status", table_name="transactions")
    op.drop_index("idx_transaction_date_account", table_name="transactions")
    op.drop_index("ix_transactions_date", table_name="transactions")
    op.drop_index("ix_transactions_fingerprint", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_category_items_category_id", table_name="category_items")
    op.drop_table("category_items")
    op.drop_table("categories")
    op.drop_table("accounts")
