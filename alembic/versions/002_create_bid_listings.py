"""002: create bid_listings table

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
        CREATE TABLE bid_listings (
            id                  SERIAL          PRIMARY KEY,
            seller_id           INT             NOT NULL REFERENCES users (id),
            product_id          INT             NOT NULL REFERENCES products (id),
            title               VARCHAR(200)    NOT NULL,
            description         TEXT,
            starting_price      NUMERIC(10, 2)  NOT NULL,
            current_price       NUMERIC(10, 2)  NOT NULL,
            minimum_increment   NUMERIC(10, 2)  NOT NULL DEFAULT 0,
            end_time            TIMESTAMPTZ     NOT NULL,
            status              VARCHAR(10)     NOT NULL DEFAULT 'ACTIVE',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bid_listings_starting_price CHECK (starting_price >= 0),
            CONSTRAINT ck_bid_listings_min_increment  CHECK (minimum_increment >= 0),
            CONSTRAINT ck_bid_listings_current_price  CHECK (current_price >= starting_price),
            CONSTRAINT ck_bid_listings_status         CHECK (status IN ('ACTIVE', 'ENDED', 'SOLD'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_bid_listings_active_end
        ON bid_listings (end_time)
        WHERE status = 'ACTIVE';
    """)
    op.execute("CREATE INDEX idx_bid_listings_created ON bid_listings (created_at DESC, id DESC);")
    op.execute("COMMENT ON TABLE bid_listings IS 'Auction listings; current_price never decreases';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bid_listings CASCADE;")
