"""004: create orders table

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
        CREATE TABLE orders (
            id                  SERIAL          PRIMARY KEY,
            buyer_id            INT             NOT NULL REFERENCES users (id),
            total_amount        NUMERIC(10, 2)  NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'PENDING_PAYMENT',
            escrow_status       VARCHAR(20)     NOT NULL DEFAULT 'AWAITING_PAYMENT',
            shipping_address    VARCHAR(500)    NOT NULL,
            tracking_number     VARCHAR(100),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_total_gte_0 CHECK (total_amount >= 0),
            CONSTRAINT ck_orders_status      CHECK (
                status IN ('PENDING_PAYMENT', 'PAYMENT_IN_ESCROW', 'SHIPPED', 'DELIVERED',
                           'COMPLETED', 'DISPUTED', 'CANCELLED')
            ),
            CONSTRAINT ck_orders_escrow      CHECK (
                escrow_status IN ('AWAITING_PAYMENT', 'FUNDS_HELD',
                                  'RELEASED_TO_SELLER', 'REFUNDED_TO_BUYER')
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_buyer ON orders (buyer_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
