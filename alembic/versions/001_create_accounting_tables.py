"""001: create accounting tables and the movement key sequence

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
        CREATE TABLE participant_accounts (
            participant         VARCHAR(64) PRIMARY KEY,
            available           BIGINT      NOT NULL DEFAULT 0,
            blocked             BIGINT      NOT NULL DEFAULT 0,
            last_movement_key   VARCHAR(128),
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_participant_accounts_available_gte_0 CHECK (available >= 0),
            CONSTRAINT ck_participant_accounts_blocked_gte_0   CHECK (blocked >= 0)
        );
    """)
    op.execute("""
        CREATE TABLE account_movements (
            key                 VARCHAR(128) PRIMARY KEY,
            participant         VARCHAR(64)  NOT NULL,
            movement_type       VARCHAR(30)  NOT NULL,
            available_delta     BIGINT       NOT NULL DEFAULT 0,
            blocked_delta       BIGINT       NOT NULL DEFAULT 0,
            reference           VARCHAR(255),
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_account_movements_type CHECK (
                movement_type IN (
                    'DEPOSIT', 'BLOCK', 'UNBLOCK', 'SETTLE_DEBIT', 'SETTLE_CREDIT'
                )
            )
        );
    """)
    op.execute(
        "CREATE INDEX idx_account_movements_participant "
        "ON account_movements (participant, created_at DESC);"
    )
    op.execute("""
        CREATE TABLE deposits (
            uid                 VARCHAR(128) PRIMARY KEY,
            participant         VARCHAR(64)  NOT NULL,
            amount              BIGINT       NOT NULL,
            reference           VARCHAR(255),
            movement_key        VARCHAR(128),
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_deposits_amount_gt_0 CHECK (amount > 0)
        );
    """)
    op.execute("CREATE SEQUENCE account_movement_key_seq START 1;")
    op.execute("COMMENT ON TABLE account_movements IS 'Ledger movements, amounts in cents';")


def downgrade() -> None:
    op.execute("DROP SEQUENCE IF EXISTS account_movement_key_seq;")
    op.execute("DROP TABLE IF EXISTS deposits CASCADE;")
    op.execute("DROP TABLE IF EXISTS account_movements CASCADE;")
    op.execute("DROP TABLE IF EXISTS participant_accounts CASCADE;")
