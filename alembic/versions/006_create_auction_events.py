"""006: create auction_events outbox table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE auction_events (
            id            BIGSERIAL    PRIMARY KEY,
            auction_id    VARCHAR(64)  NOT NULL,
            event_type    VARCHAR(50)  NOT NULL,
            payload       JSONB        NOT NULL,
            created_at    TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            published_at  TIMESTAMPTZ,
            CONSTRAINT ck_auction_events_type CHECK (event_type IN (
                'AUCTION_STARTED', 'AUCTION_CANCELLED', 'AUCTION_CLEARED',
                'SETTLEMENT_STATUS_CHANGED', 'SHARES_TRANSFER_CONFIRMED',
                'ALL_SETTLEMENTS_COMPLETED'
            ))
        );
    """)
    op.execute("CREATE INDEX idx_auction_events_auction ON auction_events (auction_id, id);")
    op.execute("""
        CREATE INDEX idx_auction_events_unpublished ON auction_events (id)
            WHERE published_at IS NULL;
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS auction_events CASCADE;")
