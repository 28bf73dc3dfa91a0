"""001: create common functions

Revision ID: 001
Revises: 
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    # Clearing fields of an allocation are write-once; only settlement columns may change.
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_guard_allocation_clearing_fields()
        RETURNS TRIGGER AS $$
        BEGIN
            IF NEW.auction_id         IS DISTINCT FROM OLD.auction_id
            OR NEW.bid_id             IS DISTINCT FROM OLD.bid_id
            OR NEW.bidder_id          IS DISTINCT FROM OLD.bidder_id
            OR NEW.original_quantity  IS DISTINCT FROM OLD.original_quantity
            OR NEW.allocated_quantity IS DISTINCT FROM OLD.allocated_quantity
            OR NEW.clearing_price     IS DISTINCT FROM OLD.clearing_price
            OR NEW.total_amount       IS DISTINCT FROM OLD.total_amount
            OR NEW.allocation_type    IS DISTINCT FROM OLD.allocation_type THEN
                RAISE EXCEPTION 'clearing fields of allocation % are immutable', OLD.id;
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS fn_guard_allocation_clearing_fields();")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
