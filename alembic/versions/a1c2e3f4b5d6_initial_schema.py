"""initial_schema

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "a1c2e3f4b5d6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


# Same arithmetic as kost.services.balance.compute_outstanding
CALCULATE_OUTSTANDING_BALANCE = """
CREATE OR REPLACE FUNCTION calculate_outstanding_balance(p_tenant_id uuid)
RETURNS bigint
LANGUAGE plpgsql STABLE AS $$
DECLARE
    v_checkin date;
    v_rent bigint;
    v_months integer;
    v_paid bigint;
BEGIN
    SELECT checkin_date, monthly_rent INTO v_checkin, v_rent
    FROM tenants WHERE id = p_tenant_id;
    IF NOT FOUND THEN
        RETURN 0;
    END IF;

    v_months := (EXTRACT(YEAR FROM current_date)::int - EXTRACT(YEAR FROM v_checkin)::int) * 12
              + (EXTRACT(MONTH FROM current_date)::int - EXTRACT(MONTH FROM v_checkin)::int) + 1;
    IF v_months < 1 THEN
        RETURN 0;
    END IF;

    SELECT COALESCE(SUM(payment_amount), 0) INTO v_paid
    FROM payments WHERE tenant_id = p_tenant_id;

    RETURN GREATEST(v_rent * v_months - v_paid, 0);
END;
$$;
"""

UPDATE_TENANT_BALANCE = """
CREATE OR REPLACE FUNCTION update_tenant_balance(p_tenant_id uuid)
RETURNS void
LANGUAGE plpgsql AS $$
DECLARE
    v_checkin date;
    v_next date;
    v_month_end integer;
BEGIN
    SELECT checkin_date INTO v_checkin FROM tenants WHERE id = p_tenant_id;
    IF NOT FOUND THEN
        RETURN;
    END IF;

    -- Next due date: check-in day of next month, clamped to the month's length
    v_next := (date_trunc('month', current_date) + interval '1 month')::date;
    v_month_end := EXTRACT(DAY FROM (v_next + interval '1 month' - interval '1 day'))::int;
    v_next := v_next + (LEAST(EXTRACT(DAY FROM v_checkin)::int, v_month_end) - 1);

    INSERT INTO tenant_balances (id, tenant_id, current_balance, last_payment_date, next_due_date, updated_at)
    VALUES (
        gen_random_uuid(),
        p_tenant_id,
        calculate_outstanding_balance(p_tenant_id),
        (SELECT MAX(payment_date) FROM payments WHERE tenant_id = p_tenant_id),
        v_next,
        now()
    )
    ON CONFLICT (tenant_id) DO UPDATE SET
        current_balance = EXCLUDED.current_balance,
        last_payment_date = EXCLUDED.last_payment_date,
        next_due_date = EXCLUDED.next_due_date,
        updated_at = now();
END;
$$;
"""


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("room_number", sa.String(length=20), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("checkin_date", sa.Date(), nullable=False),
        sa.Column("monthly_rent", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("monthly_rent > 0", name="ck_tenants_monthly_rent_positive"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tenants_room_number"), "tenants", ["room_number"], unique=False)

    op.create_table(
        "payments",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("tenant_id", sa.UUID(), nullable=False),
        sa.Column("receipt_number", sa.String(length=32), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("period_month", sa.Integer(), nullable=False),
        sa.Column("period_year", sa.Integer(), nullable=False),
        sa.Column("rent_amount", sa.BigInteger(), nullable=False),
        sa.Column("previous_balance", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("payment_amount", sa.BigInteger(), nullable=False),
        sa.Column("discount_amount", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("remaining_balance", sa.BigInteger(), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint(
            "payment_status IN ('paid_in_full', 'under_paid', 'over_paid')",
            name="ck_payments_status",
        ),
        sa.CheckConstraint(
            "payment_method IN ('cash', 'transfer', 'e-wallet')",
            name="ck_payments_method",
        ),
        sa.CheckConstraint("period_month BETWEEN 1 AND 12", name="ck_payments_period_month"),
        sa.CheckConstraint("payment_amount > 0", name="ck_payments_amount_positive"),
        sa.CheckConstraint("discount_amount >= 0", name="ck_payments_discount_non_negative"),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("receipt_number"),
    )
    op.create_index(op.f("ix_payments_tenant_id"), "payments", ["tenant_id"], unique=False)
    op.create_index(
        "ix_payments_period", "payments", ["period_year", "period_month"], unique=False
    )

    op.create_table(
        "tenant_balances",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("tenant_id", sa.UUID(), nullable=False),
        sa.Column("current_balance", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("last_payment_date", sa.Date(), nullable=True),
        sa.Column("next_due_date", sa.Date(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id"),
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_expenses_date"), "expenses", ["date"], unique=False)

    op.execute(CALCULATE_OUTSTANDING_BALANCE)
    op.execute(UPDATE_TENANT_BALANCE)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS update_tenant_balance(uuid)")
    op.execute("DROP FUNCTION IF EXISTS calculate_outstanding_balance(uuid)")
    op.drop_index(op.f("ix_expenses_date"), table_name="expenses")
    op.drop_table("expenses")
    op.drop_table("tenant_balances")
    op.drop_index("ix_payments_period", table_name="payments")
    op.drop_index(op.f("ix_payments_tenant_id"), table_name="payments")
    op.drop_table("payments")
    op.drop_index(op.f("ix_tenants_room_number"), table_name="tenants")
    op.drop_table("tenants")
