"""goldprice.org client.

The upstream answers ``GET <ApiBase>/<CURRENCY>`` with::

    {"ts": 1700000000000, "tsj": ..., "date": "...",
     "items": [{"curr": "USD", "xauPrice": 2345.67, "xagPrice": 27.1,
                "chgXau": 12.34, "chgXag": 0.2, "pcXau": 0.56, "pcXag": 0.7,
                "xauClose": 2333.33, "xagClose": 26.9}]}

It has no historical endpoint; :func:`fetch_historical_data` reports "no data"
instead of inventing a series.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import asdict, dataclass
from typing import Any

import httpx

from app.configs import configs
from app.core.gold.exceptions import GoldPriceError

logger = logging.getLogger(__name__)

# The endpoint rejects requests that do not look like they come from goldprice.org.
_REQUEST_HEADERS = {
    "accept": "*/*",
    "accept-language": "en-US,en-GB;q=0.9,en;q=0.8",
    "origin": "https://goldprice.org",
    "referer": "https://goldprice.org/",
    "sec-fetch-dest": "empty",
    "sec-fetch-mode": "cors",
    "sec-fetch-site": "same-site",
    "user-agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36"
    ),
}


@dataclass(frozen=True, slots=True)
class GoldPriceQuote:
    """One quote per currency; ``timestamp`` is in epoch seconds."""

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

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class HistoricalGoldPricePoint:
    date: str
    price: float


def _to_number(value: Any) -> float:
    try:
        parsed = float(value) if isinstance(value, (int, float, str)) and not isinstance(value, bool) else math.nan
    except ValueError:
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def parse_gold_price_response(data: Any, currency: str) -> GoldPriceQuote:
    if not isinstance(data, dict):
        raise GoldPriceError("Invalid API response", currency=currency)

    items = data.get("items")
    if not isinstance(items, list) or not items:
        raise GoldPriceError("Invalid API response structure", currency=currency)
    item = items[0] if isinstance(items[0], dict) else {}

    ts = data.get("ts")
    if isinstance(ts, (int, float)) and not isinstance(ts, bool) and math.isfinite(ts):
        timestamp = math.floor(ts / 1000)
    else:
        timestamp = math.floor(time.time())

    curr = item.get("curr")
    return GoldPriceQuote(
        timestamp=timestamp,
        metal="XAU",
        currency=curr.upper() if isinstance(curr, str) and curr else currency.upper(),
        xau_price=_to_number(item.get("xauPrice")),
        xag_price=_to_number(item.get("xagPrice")),
        chg_xau=_to_number(item.get("chgXau")),
        chg_xag=_to_number(item.get("chgXag")),
        pc_xau=_to_number(item.get("pcXau")),
        pc_xag=_to_number(item.get("pcXag")),
        xau_close=_to_number(item.get("xauClose")),
        xag_close=_to_number(item.get("xagClose")),
    )


async def fetch_gold_price(currency: str = "USD", *, client: httpx.AsyncClient | None = None) -> GoldPriceQuote:
    """Fetch the current quote for *currency*.

    Raises :class:`GoldPriceError` on transport errors, non-2xx responses and
    malformed bodies.  Pass *client* to reuse a connection pool (or inject a
    mock transport).
    """
    upper = currency.strip().upper()
    url = f"{configs.GoldPrice.ApiBase.rstrip('/')}/{upper}"

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=configs.GoldPrice.TimeoutSeconds) as owned:
                resp = await owned.get(url, headers=_REQUEST_HEADERS)
        else:
            resp = await client.get(url, headers=_REQUEST_HEADERS)
    except httpx.HTTPError as e:
        raise GoldPriceError(f"Gold price request failed: {e}", currency=upper) from e

    if not resp.is_success:
        raise GoldPriceError(f"API error: {resp.status_code}", currency=upper, status_code=resp.status_code)

    try:
        data = resp.json()
    except ValueError as e:
        raise GoldPriceError("Gold price response is not JSON", currency=upper) from e

    return parse_gold_price_response(data, upper)


async def fetch_historical_data(currency: str = "USD", days: int = 30) -> list[HistoricalGoldPricePoint]:
    logger.warning("Historical data for %d days (%s) is not available from goldprice.org", days, currency.upper())
    return []
