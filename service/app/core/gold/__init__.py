from .client import GoldPriceQuote, HistoricalGoldPricePoint, fetch_gold_price, fetch_historical_data
from .exceptions import GoldPriceError

__all__ = [
    "GoldPriceError",
    "GoldPriceQuote",
    "HistoricalGoldPricePoint",
    "fetch_gold_price",
    "fetch_historical_data",
]
