"""create raffle tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "raffles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("entrance_fee", sa.BigInteger(), nullable=False),
        sa.Column("interval_seconds", sa.Integer(), nullable=False),
        sa.Column("key_hash", sa.String(length=66), nullable=False),
        sa.Column("subscription_id", sa.String(length=100), nullable=False),
        sa.Column("callback_gas_limit", sa.Integer(), nullable=False),
        sa.Column("request_confirmations", sa.Integer(), nullable=False),
        sa.Column("num_words", sa.Integer(), nullable=False),
        sa.Column("state", sa.String(length=20), nullable=False),
        sa.Column("last_timestamp", sa.BigInteger(), nullable=False),
        sa.Column("pool_balance", sa.BigInteger(), nullable=False),
        sa.Column("pending_request_id", sa.String(length=80), nullable=True),
        sa.Column("recent_winner", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("state IN ('open','calculating')", name=op.f("ck_raffles_state_enum")),
        sa.CheckConstraint("entrance_fee > 0", name=op.f("ck_raffles_entrance_fee_positive")),
        sa.CheckConstraint("interval_seconds > 0", name=op.f("ck_raffles_interval_positive")),
        sa.CheckConstraint("pool_balance >= 0", name=op.f("ck_raffles_pool_balance_non_negative")),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_raffles")),
        sa.UniqueConstraint("name", name="raffles_name_key"),
    )
    op.create_table(
        "raffle_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("raffle_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("participant", sa.String(length=255), nullable=False),
        sa.Column("value", sa.BigInteger(), nullable=False),
        sa.Column("entered_at", sa.BigInteger(), nullable=False),
        sa.CheckConstraint("position >= 0", name=op.f("ck_raffle_entries_position_non_negative")),
        sa.CheckConstraint("value > 0", name=op.f("ck_raffle_entries_value_positive")),
        sa.ForeignKeyConstraint(
            ["raffle_id"],
            ["raffles.id"],
            name=op.f("fk_raffle_entries_raffle_id_raffles"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_raffle_entries")),
        sa.UniqueConstraint("raffle_id", "position", name="uq_raffle_entry_position"),
    )
    op.create_index(
        op.f("ix_raffle_entries_raffle_id"), "raffle_entries", ["raffle_id"], unique=False
    )
    op.create_table(
        "draw_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("raffle_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("emitted_at", sa.BigInteger(), nullable=False),
        sa.CheckConstraint(
            "name IN ('raffle_enter','requested_raffle_winner','winner_picked')",
            name=op.f("ck_draw_events_name_enum"),
        ),
        sa.ForeignKeyConstraint(
            ["raffle_id"],
            ["raffles.id"],
            name=op.f("fk_draw_events_raffle_id_raffles"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draw_events")),
    )
    op.create_index(
        op.f("ix_draw_events_raffle_id"), "draw_events", ["raffle_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_draw_events_raffle_id"), table_name="draw_events")
    op.drop_table("draw_events")
    op.drop_index(op.f("ix_raffle_entries_raffle_id"), table_name="raffle_entries")
    op.drop_table("raffle_entries")
    op.drop_table("raffles")
