"""initial budget engine schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-01-01 00:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

UUID_TYPE = sa.Uuid(as_uuid=True)


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("user_id", UUID_TYPE, primary_key=True),
        sa.Column("first_name", sa.String(length=120)),
        sa.Column("salary_day", sa.Integer(), nullable=False, server_default="25"),
        sa.Column("ccm_invoice_break_date", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("salary_day BETWEEN 1 AND 31", name="ck_profiles_salary_day"),
        sa.CheckConstraint(
            "ccm_invoice_break_date BETWEEN 1 AND 28", name="ck_profiles_ccm_invoice_break_date"
        ),
    )
    op.create_table(
        "partner_connections",
        sa.Column("connection_id", UUID_TYPE, primary_key=True),
        sa.Column("user1_id", UUID_TYPE, nullable=False),
        sa.Column("user2_id", UUID_TYPE, nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_partner_connections_user1", "partner_connections", ["user1_id"])
    op.create_index("ix_partner_connections_user2", "partner_connections", ["user2_id"])

    op.create_table(
        "categories",
        sa.Column("category_id", UUID_TYPE, primary_key=True),
        sa.Column("user_id", UUID_TYPE, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("cost_type", sa.String(length=16), nullable=False, server_default="Variable"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_categories_user_id", "categories", ["user_id"])

    op.create_table(
        "recurring_expenses",
        sa.Column("recurring_expense_id", UUID_TYPE, primary_key=True),
        sa.Column("user_id", UUID_TYPE, nullable=False),
        sa.Column(
            "category_id",
            UUID_TYPE,
            sa.ForeignKey("categories.category_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("day_of_month", sa.Integer(), nullable=False),
        sa.Column("cost_assignment", sa.String(length=16), nullable=False, server_default="personal"),
        sa.Column("is_ccm", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("day_of_month BETWEEN 1 AND 31", name="ck_recurring_expenses_day_of_month"),
    )
    op.create_index(
        "ix_recurring_expenses_active_day", "recurring_expenses", ["is_active", "day_of_month"]
    )

    op.create_table(
        "expenses",
        sa.Column("expense_id", UUID_TYPE, primary_key=True),
        sa.Column("user_id", UUID_TYPE, nullable=False),
        sa.Column(
            "category_id",
            UUID_TYPE,
            sa.ForeignKey("categories.category_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("cost_assignment", sa.String(length=16), nullable=False, server_default="personal"),
        sa.Column("is_ccm", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "recurring_expense_id",
            UUID_TYPE,
            sa.ForeignKey("recurring_expenses.recurring_expense_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("recurring_period", sa.String(length=7), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "recurring_expense_id", "recurring_period", name="uq_expenses_recurring_period"
        ),
    )
    op.create_index("ix_expenses_user_date", "expenses", ["user_id", "date"])
    op.create_index("ix_expenses_recurring_expense_id", "expenses", ["recurring_expense_id"])

    op.create_table(
        "monthly_incomes",
        sa.Column("income_id", UUID_TYPE, primary_key=True),
        sa.Column("user_id", UUID_TYPE, nullable=False),
        sa.Column("period", sa.String(length=7), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_monthly_incomes_user_period", "monthly_incomes", ["user_id", "period"])


def downgrade() -> None:
    op.drop_index("ix_monthly_incomes_user_period", table_name="monthly_incomes")
    op.drop_table("monthly_incomes")
    op.drop_index("ix_expenses_recurring_expense_id", table_name="expenses")
    op.drop_index("ix_expenses_user_date", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_recurring_expenses_active_day", table_name="recurring_expenses")
    op.drop_table("recurring_expenses")
    op.drop_index("ix_categories_user_id", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_partner_connections_user2", table_name="partner_connections")
    op.drop_index("ix_partner_connections_user1", table_name="partner_connections")
    op.drop_table("partner_connections")
    op.drop_table("profiles")
