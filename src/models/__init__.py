"""
Models package — export all SQLAlchemy models.
"""

from src.models.api_key import ApiKey
from src.models.base import Base
from src.models.card import Card
from src.models.cron_schedule import CronSchedule
from src.models.exchange_rate import ExchangeRate
from src.models.inventory import PosHistory, PosInventory
from src.models.overseas_price import OverseasPrice

__all__ = [
    "ApiKey",
    "Base",
    "Card",
    "CronSchedule",
    "ExchangeRate",
    "OverseasPrice",
    "PosHistory",
    "PosInventory",
]
