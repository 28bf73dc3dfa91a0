"""003: create auction_bids table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE auction_bids (
            id                  VARCHAR(64)  PRIMARY KEY,
            auction_id          VARCHAR(64)  NOT NULL REFERENCES auctions (id),
            bidder_id           VARCHAR(64)  NOT NULL,
            bidder_email        VARCHAR(320) NOT NULL,
            quantity_requested  BIGINT       NOT NULL,
            max_price           BIGINT       NOT NULL,
            bid_time            TIMESTAMPTZ  NOT NULL,
            active              BOOLEAN      NOT NULL DEFAULT TRUE,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_auction_bids_quantity_gt_0  CHECK (quantity_requested > 0),
            CONSTRAINT ck_auction_bids_price_gt_0     CHECK (max_price > 0)
        );
    """)
    # One active bid per (auction, bidder); withdrawn rows stay for audit.
    op.execute("""
        CREATE UNIQUE INDEX uq_auction_bids_active
            ON auction_bids (auction_id, bidder_id)
            WHERE active;
    """)
    op.execute("""
        CREATE INDEX idx_auction_bids_ranking
            ON auction_bids (auction_id, max_price DESC, bid_time ASC)
            WHERE active;
    """)
    op.execute("""
        CREATE TRIGGER trg_auction_bids_updated_at
            BEFORE UPDATE ON auction_bids
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS auction_bids CASCADE;")
