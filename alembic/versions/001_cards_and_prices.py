"""Cards, overseas price samples, exchange rates

Revision ID: 001_cards_and_prices
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001_cards_and_prices"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- cards: local catalog + external links ---
    op.create_table(
        "cards",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("card_number", sa.String(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("pricecharting_id", sa.String(), nullable=True, comment="PriceCharting product id"),
        sa.Column("pricecharting_name", sa.String(), nullable=True),
        sa.Column("shinsoku_item_id", sa.String(), nullable=True),
        sa.Column("shinsoku_linked_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("lounge_card_key", sa.String(), nullable=True),
        sa.Column("lounge_linked_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_cards_pricecharting_id", "cards", ["pricecharting_id"])

    # --- overseas_prices: append-only PriceCharting samples ---
    op.create_table(
        "overseas_prices",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "card_id",
            sa.String(36),
            sa.ForeignKey("cards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("pricecharting_id", sa.String(), nullable=True),
        sa.Column("loose_price_usd", sa.INTEGER(), nullable=True, comment="pennies"),
        sa.Column("cib_price_usd", sa.INTEGER(), nullable=True, comment="pennies"),
        sa.Column("new_price_usd", sa.INTEGER(), nullable=True, comment="pennies"),
        sa.Column("graded_price_usd", sa.INTEGER(), nullable=True, comment="pennies"),
        sa.Column(
            "exchange_rate",
            sa.DECIMAL(12, 6),
            nullable=True,
            comment="USD/JPY rate used for the yen columns",
        ),
        sa.Column("loose_price_jpy", sa.INTEGER(), nullable=True),
        sa.Column("graded_price_jpy", sa.INTEGER(), nullable=True),
        sa.Column(
            "recorded_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_overseas_prices_card_recorded", "overseas_prices", ["card_id", "recorded_at"]
    )

    # --- exchange_rates: daily snapshots ---
    op.create_table(
        "exchange_rates",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("base_currency", sa.String(3), nullable=False),
        sa.Column("target_currency", sa.String(3), nullable=False),
        sa.Column("rate", sa.DECIMAL(12, 6), nullable=False),
        sa.Column(
            "recorded_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_exchange_rates_pair_recorded",
        "exchange_rates",
        ["base_currency", "target_currency", "recorded_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_exchange_rates_pair_recorded", table_name="exchange_rates")
    op.drop_table("exchange_rates")
    op.drop_index("ix_overseas_prices_card_recorded", table_name="overseas_prices")
    op.drop_table("overseas_prices")
    op.drop_index("ix_cards_pricecharting_id", table_name="cards")
    op.drop_table("cards")
