"""HTTP shapes for the gold price proxy."""

from __future__ import annotations

from app.core.gold.client import GoldPriceQuote
from app.schemas.push import CamelModel


class GoldPriceResponse(CamelModel):
    """Quote as served to the client; field names mirror goldprice.org."""

    timestamp: int
    metal: str
    currency: str
    xau_price: float
    xag_price: float
    chg_xau: float
    chg_xag: float
    pc_xau: float
    pc_xag: float
    xau_close: float
    xag_close: float

    @classmethod
    def from_quote(cls, quote: GoldPriceQuote) -> GoldPriceResponse:
        return cls(**quote.to_dict())


class HistoricalPointResponse(CamelModel):
    date: str
    price: float
