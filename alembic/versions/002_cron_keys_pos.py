"""Cron schedules, public API keys, POS inventory + history

Revision ID: 002_cron_keys_pos
Revises: 001_cards_and_prices
Create Date: 2026-10-19

Seeds cron_schedules with the two jobs the platform cron triggers:
  - exchange-rate-sync: daily at 00:05 UTC
  - overseas-price-sync: every 20 minutes
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "002_cron_keys_pos"
down_revision: Union[str, None] = "001_cards_and_prices"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ------------------------------------------------------------------
    # 1. cron_schedules
    # ------------------------------------------------------------------
    cron_schedules = op.create_table(
        "cron_schedules",
        sa.Column("job_name", sa.String(), primary_key=True),
        sa.Column("display_name", sa.String(), nullable=False, server_default=""),
        sa.Column("enabled", sa.BOOLEAN(), nullable=False, server_default=sa.true()),
        sa.Column(
            "schedule_type",
            sa.String(),
            nullable=False,
            server_default="interval",
            comment="interval | daily | multi_daily",
        ),
        sa.Column("interval_minutes", sa.INTEGER(), nullable=True),
        sa.Column("run_at_hours", sa.JSON(), nullable=True, comment="UTC hours for daily/multi_daily jobs"),
        sa.Column("run_at_minute", sa.INTEGER(), nullable=True),
        sa.Column("last_run_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("last_status", sa.String(), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.bulk_insert(
        cron_schedules,
        [
            {
                "job_name": "exchange-rate-sync",
                "display_name": "Exchange rate sync",
                "enabled": True,
                "schedule_type": "daily",
                "run_at_hours": [0],
                "run_at_minute": 5,
            },
            {
                "job_name": "overseas-price-sync",
                "display_name": "Overseas price sync",
                "enabled": True,
                "schedule_type": "interval",
                "interval_minutes": 20,
            },
        ],
    )

    # ------------------------------------------------------------------
    # 2. api_keys
    # ------------------------------------------------------------------
    op.create_table(
        "api_keys",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("rate_limit", sa.INTEGER(), nullable=False, server_default="60"),
        sa.Column("is_active", sa.BOOLEAN(), nullable=False, server_default=sa.true()),
        sa.Column("last_used_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_api_keys_key", "api_keys", ["key"], unique=True)

    # ------------------------------------------------------------------
    # 3. pos_inventory + pos_history
    # ------------------------------------------------------------------
    op.create_table(
        "pos_inventory",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column(
            "tracking_mode",
            sa.String(),
            nullable=False,
            server_default="quantity",
            comment="quantity | lot",
        ),
        sa.Column("quantity", sa.INTEGER(), nullable=False, server_default="0"),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint("quantity >= 0", name="ck_pos_inventory_quantity_non_negative"),
    )
    op.create_table(
        "pos_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "inventory_id",
            sa.String(36),
            sa.ForeignKey("pos_inventory.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action_type", sa.String(), nullable=False),
        sa.Column("quantity_change", sa.INTEGER(), nullable=False),
        sa.Column("quantity_before", sa.INTEGER(), nullable=False),
        sa.Column("quantity_after", sa.INTEGER(), nullable=False),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_pos_history_inventory_id", "pos_history", ["inventory_id"])


def downgrade() -> None:
    op.drop_index("ix_pos_history_inventory_id", table_name="pos_history")
    op.drop_table("pos_history")
    op.drop_table("pos_inventory")
    op.drop_index("ix_api_keys_key", table_name="api_keys")
    op.drop_table("api_keys")
    op.drop_table("cron_schedules")
