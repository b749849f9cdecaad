"""003: create bids table

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
        CREATE TABLE bids (
            id          SERIAL          PRIMARY KEY,
            listing_id  INT             NOT NULL REFERENCES bid_listings (id) ON DELETE CASCADE,
            bidder_id   INT             NOT NULL REFERENCES users (id),
            amount      NUMERIC(10, 2)  NOT NULL,
            status      VARCHAR(10)     NOT NULL DEFAULT 'ACTIVE',
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bids_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_bids_status      CHECK (status IN ('ACTIVE', 'WON', 'LOST'))
        );
    """)
    op.execute("CREATE INDEX idx_bids_listing ON bids (listing_id, created_at, id);")
    op.execute("CREATE INDEX idx_bids_bidder ON bids (bidder_id, created_at DESC);")
    # At most one winner per listing.
    op.execute("""
        CREATE UNIQUE INDEX uq_bids_one_winner
        ON bids (listing_id)
        WHERE status = 'WON';
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
