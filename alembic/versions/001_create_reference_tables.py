"""001: shared trigger function + minimal reference tables

users and products belong to the catalog/auth services. They are created
IF NOT EXISTS so the auction/order core can run against an empty database;
an existing catalog schema is left untouched.

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
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id          SERIAL          PRIMARY KEY,
            username    VARCHAR(64)     NOT NULL UNIQUE,
            email       VARCHAR(255)    NOT NULL UNIQUE,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS products (
            id          SERIAL          PRIMARY KEY,
            seller_id   INT             NOT NULL REFERENCES users (id),
            name        VARCHAR(255)    NOT NULL,
            price       NUMERIC(10, 2)  NOT NULL,
            stock       INT             NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_price_gte_0 CHECK (price >= 0),
            CONSTRAINT ck_products_stock_gte_0 CHECK (stock >= 0)
        );
    """)


def downgrade() -> None:
    # Reference tables are shared with other services; only drop what we own.
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp() CASCADE;")
