"""002: create auctions table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE auctions (
            id                          VARCHAR(64)  PRIMARY KEY,
            company_id                  VARCHAR(64)  NOT NULL,
            title                       VARCHAR(200) NOT NULL,
            description                 TEXT,
            shares_count                BIGINT       NOT NULL,
            max_price                   BIGINT       NOT NULL,
            min_price                   BIGINT       NOT NULL,
            duration_minutes            INT          NOT NULL DEFAULT 1440,
            invited_members             TEXT[]       NOT NULL DEFAULT '{}',
            status                      VARCHAR(20)  NOT NULL DEFAULT 'draft',
            bid_collection_start_time   TIMESTAMPTZ,
            bid_collection_end_time     TIMESTAMPTZ,
            clearing_price              BIGINT,
            total_demand                BIGINT,
            clearing_calculated_at      TIMESTAMPTZ,
            cancelled_at                TIMESTAMPTZ,
            created_by                  VARCHAR(64),
            created_at                  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_auctions_status CHECK (
                status IN ('draft', 'collecting_bids', 'completed', 'cancelled')
            ),
            CONSTRAINT ck_auctions_shares_gt_0      CHECK (shares_count > 0),
            CONSTRAINT ck_auctions_min_price_gt_0   CHECK (min_price > 0),
            CONSTRAINT ck_auctions_price_range      CHECK (max_price > min_price),
            CONSTRAINT ck_auctions_duration_gt_0    CHECK (duration_minutes > 0),
            CONSTRAINT ck_auctions_window CHECK (
                status = 'draft'
                OR status = 'cancelled'
                OR bid_collection_end_time IS NOT NULL
            )
        );
    """)
    op.execute("CREATE INDEX idx_auctions_company ON auctions (company_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_auctions_collecting_end ON auctions (bid_collection_end_time)
            WHERE status = 'collecting_bids';
    """)
    op.execute("""
        CREATE TRIGGER trg_auctions_updated_at
            BEFORE UPDATE ON auctions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE auctions IS 'Private share auctions; all prices in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS auctions CASCADE;")
