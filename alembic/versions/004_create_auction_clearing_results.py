"""004: create auction_clearing_results table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE auction_clearing_results (
            id                   VARCHAR(64) PRIMARY KEY,
            auction_id           VARCHAR(64) NOT NULL REFERENCES auctions (id),
            clearing_price       BIGINT      NOT NULL,
            total_bids_count     INT         NOT NULL,
            total_demand         BIGINT      NOT NULL,
            shares_allocated     BIGINT      NOT NULL,
            shares_remaining     BIGINT      NOT NULL,
            pro_rata_applied     BOOLEAN     NOT NULL DEFAULT FALSE,
            calculation_details  JSONB       NOT NULL DEFAULT '{}',
            created_at           TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_clearing_results_auction      UNIQUE (auction_id),
            CONSTRAINT ck_clearing_results_allocated    CHECK (shares_allocated >= 0),
            CONSTRAINT ck_clearing_results_remaining    CHECK (shares_remaining >= 0)
        );
    """)
    op.execute(
        "COMMENT ON TABLE auction_clearing_results IS "
        "'Immutable clearing outcome; at most one row per auction';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS auction_clearing_results CASCADE;")
