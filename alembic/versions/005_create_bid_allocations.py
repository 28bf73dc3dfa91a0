"""005: create bid_allocations table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bid_allocations (
            id                          VARCHAR(64)   PRIMARY KEY,
            auction_id                  VARCHAR(64)   NOT NULL REFERENCES auctions (id),
            bid_id                      VARCHAR(64)   NOT NULL REFERENCES auction_bids (id),
            bidder_id                   VARCHAR(64)   NOT NULL,
            bidder_email                VARCHAR(320)  NOT NULL,
            original_quantity           BIGINT        NOT NULL,
            allocated_quantity          BIGINT        NOT NULL,
            clearing_price              BIGINT        NOT NULL,
            total_amount                BIGINT        NOT NULL,
            allocation_type             VARCHAR(20)   NOT NULL,
            pro_rata_percentage         NUMERIC(7, 4),
            settlement_status           VARCHAR(30),
            settlement_date             TIMESTAMPTZ,
            payment_confirmation_date   TIMESTAMPTZ,
            payment_reference           VARCHAR(255),
            share_transfer_date         TIMESTAMPTZ,
            settlement_completed_at     TIMESTAMPTZ,
            settlement_notes            TEXT,
            settlement_updated_at       TIMESTAMPTZ,
            created_at                  TIMESTAMPTZ   NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_bid_allocations_bidder UNIQUE (auction_id, bidder_id),
            CONSTRAINT ck_bid_allocations_quantity CHECK (
                allocated_quantity >= 0 AND allocated_quantity <= original_quantity
            ),
            CONSTRAINT ck_bid_allocations_amount CHECK (
                total_amount = allocated_quantity * clearing_price
            ),
            CONSTRAINT ck_bid_allocations_type CHECK (
                allocation_type IN ('full', 'pro_rata', 'rejected')
            ),
            CONSTRAINT ck_bid_allocations_settlement_status CHECK (
                settlement_status IS NULL OR settlement_status IN (
                    'pending_payment', 'payment_received', 'shares_transferred', 'completed'
                )
            ),
            CONSTRAINT ck_bid_allocations_settlement_only_winners CHECK (
                (allocated_quantity > 0) = (settlement_status IS NOT NULL)
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_bid_allocations_settlement
            ON bid_allocations (auction_id, settlement_status)
            WHERE allocated_quantity > 0;
    """)
    op.execute("""
        CREATE TRIGGER trg_bid_allocations_clearing_immutable
            BEFORE UPDATE ON bid_allocations
            FOR EACH ROW EXECUTE FUNCTION fn_guard_allocation_clearing_fields();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bid_allocations CASCADE;")
