"""005: create order_items table

price_at_time is the unit price snapshot taken at checkout; later product
price changes never touch it.

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
        CREATE TABLE order_items (
            id              SERIAL          PRIMARY KEY,
            order_id        INT             NOT NULL REFERENCES orders (id) ON DELETE CASCADE,
            product_id      INT             NOT NULL REFERENCES products (id),
            seller_id       INT             NOT NULL REFERENCES users (id),
            quantity        INT             NOT NULL,
            price_at_time   NUMERIC(10, 2)  NOT NULL,
            CONSTRAINT ck_order_items_quantity CHECK (quantity > 0),
            CONSTRAINT ck_order_items_price    CHECK (price_at_time >= 0),
            CONSTRAINT uq_order_items_product  UNIQUE (order_id, product_id)
        );
    """)
    op.execute("CREATE INDEX idx_order_items_seller ON order_items (seller_id, order_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS order_items CASCADE;")
