"""Gold price proxy endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from app.core.gold import GoldPriceError, fetch_gold_price, fetch_historical_data
from app.schemas.gold import GoldPriceResponse, HistoricalPointResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gold", tags=["gold"])


@router.get("/price", response_model=GoldPriceResponse)
async def get_current_price(currency: str = Query(default="USD", min_length=3, max_length=6)) -> GoldPriceResponse:
    """Current gold/silver quote in *currency*."""
    try:
        quote = await fetch_gold_price(currency)
    except GoldPriceError as e:
        logger.error("Gold price fetch failed for %s: %s", currency.upper(), e)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return GoldPriceResponse.from_quote(quote)


@router.get("/history", response_model=list[HistoricalPointResponse])
async def get_history(
    currency: str = Query(default="USD", min_length=3, max_length=6),
    days: int = Query(default=30, ge=1, le=3650),
) -> list[HistoricalPointResponse]:
    """The upstream has no history; always an empty series."""
    points = await fetch_historical_data(currency, days)
    return [HistoricalPointResponse(date=p.date, price=p.price) for p in points]
